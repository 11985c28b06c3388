"""
Built-in workloads: small process sets for the schedulers and textbook
Banker's examples, sized so the numbers can be checked by hand.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .models import Process
from .workload_io import BankersInput

# (arrival_time, burst_time) pairs; pids are assigned 1..n in order.
PROCESS_PRESETS: Dict[str, List[Tuple[int, int]]] = {
    "basic": [(0, 5), (2, 3), (4, 6), (6, 2)],
    "simultaneous": [(0, 8), (0, 4), (0, 2), (0, 5)],
    "increasing": [(0, 2), (1, 4), (3, 6), (5, 8)],
    "decreasing": [(0, 8), (2, 6), (4, 4), (6, 2)],
    "mixed": [(0, 7), (1, 3), (2, 8), (3, 2)],
    "srt-challenge": [(0, 10), (1, 1), (3, 4), (5, 3)],
    "round-robin": [(0, 5), (1, 6), (2, 5), (3, 7)],
}

PROCESS_PRESET_TITLES = {
    "basic": "Basic Sequential",
    "simultaneous": "Simultaneous Arrivals",
    "increasing": "Increasing Bursts",
    "decreasing": "Decreasing Bursts (short job arrives late)",
    "mixed": "Mixed Bursts",
    "srt-challenge": "SRT Challenge - Preemption",
    "round-robin": "Round Robin Focus",
}

DEADLOCK_PRESETS: Dict[str, dict] = {
    "classic-safe": {
        "title": "Safe State (classic)",
        "max": [[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]],
        "allocation": [[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]],
        "available": [3, 3, 2],
    },
    "unsafe": {
        "title": "Unsafe (no safe sequence)",
        "max": [[1, 7, 5, 0], [2, 3, 5, 6], [7, 5, 3, 4], [4, 6, 5, 6]],
        "allocation": [[0, 1, 0, 0], [2, 0, 0, 1], [3, 0, 2, 1], [2, 1, 1, 0]],
        "available": [1, 0, 0, 2],
    },
    "deadlock": {
        "title": "Deadlock Present",
        "max": [[4, 4, 2], [2, 2, 2], [3, 3, 3]],
        "allocation": [[2, 2, 2], [2, 0, 0], [0, 3, 1]],
        "available": [0, 0, 0],
    },
    "blank": {
        "title": "Blank (all zeros)",
        "max": [[0, 0, 0], [0, 0, 0], [0, 0, 0]],
        "allocation": [[0, 0, 0], [0, 0, 0], [0, 0, 0]],
        "available": [0, 0, 0],
    },
}


def process_preset(name: str) -> List[Process]:
    try:
        pairs = PROCESS_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown process preset '{name}' (choose from {', '.join(PROCESS_PRESETS)})") from None
    return [Process(pid=i, arrival_time=a, burst_time=b) for i, (a, b) in enumerate(pairs, start=1)]


def deadlock_preset(name: str) -> BankersInput:
    try:
        data = DEADLOCK_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown deadlock preset '{name}' (choose from {', '.join(DEADLOCK_PRESETS)})") from None
    # Copy rows so callers can edit the matrices freely.
    return BankersInput(
        max_demand=[list(row) for row in data["max"]],
        allocation=[list(row) for row in data["allocation"]],
        available=list(data["available"]),
    )
