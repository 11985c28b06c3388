"""
Deadlock avoidance analysis: Banker's Algorithm plus resource-allocation
graph and Coffman condition diagnostics.

Matrices are accepted as nested lists of ints (P processes x R resource
types) and handled as numpy arrays internally. Results are returned as
plain lists so callers never share state with the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)

Matrix = Sequence[Sequence[int]]


class BankersInputError(ValueError):
    """Raised when the Max/Allocation/Available input is malformed."""


class DimensionMismatchError(BankersInputError):
    """Raised when matrix or vector shapes disagree."""


class AllocationExceedsMaxError(BankersInputError):
    """Raised when a process holds more of a resource than it ever claimed."""

    def __init__(self, process: int, resource: int, allocated: int, maximum: int):
        super().__init__(
            f"Invalid Banker's input: allocation[{process}][{resource}] = {allocated} "
            f"exceeds max demand {maximum}"
        )
        self.process = process
        self.resource = resource


@dataclass
class BankersStep:
    process: int
    work_before: List[int]
    work_after: List[int]
    need: List[int]
    allocation: List[int]


@dataclass
class CoffmanConditions:
    mutual_exclusion: bool
    hold_and_wait: bool
    no_preemption: bool
    circular_wait: bool
    deadlock_possible: bool


@dataclass
class ResourceEdge:
    """
    Edge of the resource-allocation graph.

    Process nodes are numbered [0, P), resource nodes [P, P + R).
    ``is_request`` is True for process -> resource (unmet need) and False
    for resource -> process (allocated unit).
    """

    source: int
    target: int
    is_request: bool


@dataclass
class ResourceGraph:
    edges: List[ResourceEdge] = field(default_factory=list)
    has_cycle: bool = False
    cycle: List[int] = field(default_factory=list)


@dataclass
class BankersResult:
    is_safe: bool
    safe_sequence: List[int]
    need: List[List[int]]
    steps: List[BankersStep]
    resource_condition_satisfied: bool
    coffman_conditions: CoffmanConditions
    resource_graph: ResourceGraph

    @property
    def unfinished(self) -> List[int]:
        """Processes that could not complete before the system stalled."""
        finished = set(self.safe_sequence)
        return [i for i in range(len(self.need)) if i not in finished]


def _as_matrix(rows: Matrix, n_resources: int, name: str) -> np.ndarray:
    for i, row in enumerate(rows):
        if len(row) != n_resources:
            raise DimensionMismatchError(
                f"Banker's Algorithm: row {i} of '{name}' has {len(row)} entries, expected {n_resources}"
            )
    matrix = np.array(rows, dtype=int).reshape(len(rows), n_resources)
    if (matrix < 0).any():
        raise BankersInputError(f"Banker's Algorithm: '{name}' contains negative entries")
    return matrix


def _validated(max_demand: Matrix, allocation: Matrix, available: Sequence[int]):
    if len(max_demand) != len(allocation):
        raise DimensionMismatchError(
            "Banker's Algorithm: 'max' and 'allocation' must have the same #processes "
            f"({len(max_demand)} != {len(allocation)})"
        )
    n_resources = len(max_demand[0]) if len(max_demand) else len(available)
    if len(available) != n_resources:
        raise DimensionMismatchError(
            f"Banker's Algorithm: length of 'available' ({len(available)}) must equal #resources ({n_resources})"
        )

    max_arr = _as_matrix(max_demand, n_resources, "max")
    alloc_arr = _as_matrix(allocation, n_resources, "allocation")
    avail_arr = np.array(available, dtype=int).reshape(n_resources)
    if (avail_arr < 0).any():
        raise BankersInputError("Banker's Algorithm: 'available' contains negative entries")
    return max_arr, alloc_arr, avail_arr


def _need_array(max_arr: np.ndarray, alloc_arr: np.ndarray) -> np.ndarray:
    need = max_arr - alloc_arr
    negative = np.argwhere(need < 0)
    if len(negative):
        i, j = (int(v) for v in negative[0])
        raise AllocationExceedsMaxError(i, j, int(alloc_arr[i, j]), int(max_arr[i, j]))
    return need


def compute_need(max_demand: Matrix, allocation: Matrix) -> List[List[int]]:
    """
    Need[i][j] = Max[i][j] - Allocation[i][j].

    Raises AllocationExceedsMaxError for the first (row-major) entry where
    the allocation exceeds the claimed maximum.
    """
    if len(max_demand) != len(allocation):
        raise DimensionMismatchError("'max' and 'allocation' must have the same #processes")
    n_resources = len(max_demand[0]) if len(max_demand) else 0
    max_arr = _as_matrix(max_demand, n_resources, "max")
    alloc_arr = _as_matrix(allocation, n_resources, "allocation")
    return _need_array(max_arr, alloc_arr).tolist()


def check_resource_condition(max_demand: Matrix) -> bool:
    """
    Advisory heuristic: sum of all maximum demands < P + R.
    """
    n_processes = len(max_demand)
    n_resources = len(max_demand[0]) if n_processes else 0
    total = sum(sum(row) for row in max_demand)
    return total < n_processes + n_resources


def check_coffman_conditions(max_demand: Matrix, allocation: Matrix) -> CoffmanConditions:
    """
    Evaluate mutual exclusion, hold-and-wait and no-preemption.

    Circular wait needs the resource graph, so it is reported as False here
    and filled in by ``bankers_algorithm``.
    """
    mutual_exclusion = any(v > 0 for row in allocation for v in row)

    hold_and_wait = False
    for held, claimed in zip(allocation, max_demand):
        holding = any(v > 0 for v in held)
        waiting = any(h < m for h, m in zip(held, claimed))
        if holding and waiting:
            hold_and_wait = True
            break

    # Resources are only ever released voluntarily in this model.
    no_preemption = True

    return CoffmanConditions(
        mutual_exclusion=mutual_exclusion,
        hold_and_wait=hold_and_wait,
        no_preemption=no_preemption,
        circular_wait=False,
        deadlock_possible=mutual_exclusion and hold_and_wait and no_preemption,
    )


def detect_cycle(edges: Iterable[ResourceEdge], n_nodes: int, start_nodes: Iterable[int]) -> List[int]:
    """
    Depth-first search with a recursion stack.

    Searches from each unvisited node of ``start_nodes`` in order and returns
    the first cycle found, starting at the node the back edge re-enters.
    Returns an empty list when the graph is acyclic from those nodes.
    """
    adjacency: List[List[int]] = [[] for _ in range(n_nodes)]
    for edge in edges:
        if edge.target not in adjacency[edge.source]:
            adjacency[edge.source].append(edge.target)

    visited = [False] * n_nodes
    on_stack = [False] * n_nodes
    path: List[int] = []

    def visit(node: int) -> List[int]:
        visited[node] = True
        on_stack[node] = True
        path.append(node)
        for neighbor in adjacency[node]:
            if not visited[neighbor]:
                cycle = visit(neighbor)
                if cycle:
                    return cycle
            elif on_stack[neighbor]:
                return path[path.index(neighbor):]
        on_stack[node] = False
        path.pop()
        return []

    for node in start_nodes:
        if not visited[node]:
            cycle = visit(node)
            if cycle:
                return list(cycle)
    return []


def build_resource_graph(max_demand: Matrix, allocation: Matrix) -> ResourceGraph:
    """
    Build the resource-allocation graph with one edge per resource unit.

    With multi-instance resources a cycle means deadlock is possible, not
    certain.
    """
    n_processes = len(max_demand)
    n_resources = len(max_demand[0]) if n_processes else 0
    edges: List[ResourceEdge] = []

    for i in range(n_processes):
        for j in range(n_resources):
            for _ in range(allocation[i][j]):
                edges.append(ResourceEdge(source=n_processes + j, target=i, is_request=False))

    for i in range(n_processes):
        for j in range(n_resources):
            for _ in range(max_demand[i][j] - allocation[i][j]):
                edges.append(ResourceEdge(source=i, target=n_processes + j, is_request=True))

    cycle = detect_cycle(edges, n_processes + n_resources, range(n_processes))
    return ResourceGraph(edges=edges, has_cycle=bool(cycle), cycle=cycle)


def bankers_algorithm(max_demand: Matrix, allocation: Matrix, available: Sequence[int]) -> BankersResult:
    """
    Check whether the system is in a safe state using Banker's Algorithm.

    Algorithm:
    1. Work = Available, Finish = [False] * P
    2. Scan processes in index order; any i with Finish[i] == False and
       Need[i] <= Work finishes at once: Work += Allocation[i]
    3. Repeat full passes until every process finished (SAFE) or a pass
       finishes nobody (UNSAFE)

    Time Complexity: O(P^2 x R)

    The sequence returned is the first one this scan finds; other valid
    safe sequences may exist.

    Raises:
        DimensionMismatchError: shapes of the three inputs disagree
        AllocationExceedsMaxError: some allocation exceeds its max claim
        BankersInputError: negative entries
    """
    max_arr, alloc_arr, avail_arr = _validated(max_demand, allocation, available)
    need = _need_array(max_arr, alloc_arr)
    n_processes = len(max_arr)

    max_rows = max_arr.tolist()
    alloc_rows = alloc_arr.tolist()

    resource_condition = check_resource_condition(max_rows)
    coffman = check_coffman_conditions(max_rows, alloc_rows)
    graph = build_resource_graph(max_rows, alloc_rows)
    coffman.circular_wait = graph.has_cycle
    coffman.deadlock_possible = (
        coffman.mutual_exclusion and coffman.hold_and_wait and coffman.no_preemption and coffman.circular_wait
    )

    work = avail_arr.copy()
    finish = np.zeros(n_processes, dtype=bool)
    safe_sequence: List[int] = []
    steps: List[BankersStep] = []

    made_progress = True
    while len(safe_sequence) < n_processes and made_progress:
        made_progress = False
        for i in range(n_processes):
            if finish[i] or not np.all(need[i] <= work):
                continue
            work_before = work.tolist()
            work += alloc_arr[i]
            finish[i] = True
            safe_sequence.append(i)
            steps.append(
                BankersStep(
                    process=i,
                    work_before=work_before,
                    work_after=work.tolist(),
                    need=need[i].tolist(),
                    allocation=alloc_arr[i].tolist(),
                )
            )
            logger.debug("Banker's: P%d finishes, work %s -> %s", i, work_before, work.tolist())
            made_progress = True

    is_safe = bool(finish.all())
    if not is_safe:
        logger.debug("Banker's: stalled with %d of %d processes finished", len(safe_sequence), n_processes)

    return BankersResult(
        is_safe=is_safe,
        safe_sequence=safe_sequence,
        need=need.tolist(),
        steps=steps,
        resource_condition_satisfied=resource_condition,
        coffman_conditions=coffman,
        resource_graph=graph,
    )


def explain_unsafe(result: BankersResult) -> str:
    """
    Human-readable reason for an unsafe verdict; empty for safe states.
    """
    if result.is_safe:
        return ""
    names = ", ".join(f"P{i}" for i in result.unfinished)
    return (
        f"No safe sequence exists because processes {names} cannot obtain "
        "their remaining need with current Available."
    )


def node_label(node: int, n_processes: int) -> str:
    return f"P{node}" if node < n_processes else f"R{node - n_processes}"


def resource_totals(allocation: Matrix, available: Sequence[int]) -> Dict[int, int]:
    """Total instances per resource type (allocated + available)."""
    return {j: int(available[j]) + sum(int(row[j]) for row in allocation) for j in range(len(available))}
