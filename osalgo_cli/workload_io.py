from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from .models import Process


@dataclass
class BankersInput:
    """Max / Allocation / Available triple for the deadlock analyzer."""

    max_demand: List[List[int]]
    allocation: List[List[int]]
    available: List[int]


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    validate_processes(processes)
    return processes


def validate_processes(processes: List[Process]) -> None:
    seen: set[int] = set()
    for p in processes:
        if p.pid <= 0:
            raise ValueError(f"Process id must be positive, got {p.pid}")
        if p.pid in seen:
            raise ValueError(f"Duplicate process id {p.pid}")
        if p.arrival_time < 0:
            raise ValueError(f"Process {p.pid}: arrival_time must be >= 0")
        if p.burst_time <= 0:
            raise ValueError(f"Process {p.pid}: burst_time must be > 0")
        seen.add(p.pid)


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise ValueError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for entry in raw:
        processes.append(_process_from_mapping(entry))

    return processes


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _process_from_mapping(mapping) -> Process:
    try:
        pid = int(mapping["pid"])
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc

    return Process(pid=pid, arrival_time=arrival_time, burst_time=burst_time)


def load_bankers_input(path: str | Path) -> BankersInput:
    """
    Load a JSON scenario with "max", "allocation" and "available" keys.

    Only the JSON structure is checked here; shape and value checks belong
    to the Banker's engine.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Banker's scenario must be a JSON object")

    missing = [key for key in ("max", "allocation", "available") if key not in data]
    if missing:
        raise ValueError(f"Banker's scenario missing field(s): {', '.join(missing)}")

    for key in ("max", "allocation"):
        rows = data[key]
        if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
            raise ValueError(f"Banker's scenario field '{key}' must be a list of lists")
    if not isinstance(data["available"], list):
        raise ValueError("Banker's scenario field 'available' must be a list")

    try:
        max_demand = [[int(v) for v in row] for row in data["max"]]
        allocation = [[int(v) for v in row] for row in data["allocation"]]
        available = [int(v) for v in data["available"]]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Banker's scenario has non-integer entries: {exc}") from exc

    return BankersInput(max_demand=max_demand, allocation=allocation, available=available)
