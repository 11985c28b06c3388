from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Dict, List, Optional, Sequence, Union

from .gantt import consolidate_timeline
from .metrics import compute_system_metrics
from .models import CONTEXT_SWITCH, Policy, Process, ProcessMetrics, ScheduledSlice, SimulationResult

logger = logging.getLogger(__name__)


def _validate(processes: Sequence[Process]) -> None:
    for p in processes:
        if p.arrival_time < 0:
            raise ValueError(f"Process {p.pid} has negative arrival time {p.arrival_time}")
        if p.burst_time <= 0:
            raise ValueError(f"Process {p.pid} needs a positive burst time, got {p.burst_time}")


def _build_records(
    processes: Sequence[Process],
    start: Dict[int, int],
    completion: Dict[int, int],
    preemptive: bool,
) -> List[ProcessMetrics]:
    """
    Turn the per-index start/completion times into metric records, in input order.

    Preemptive policies count every interval spent ready as waiting, so they
    use turnaround - burst; non-preemptive ones use start - arrival.
    """
    records: List[ProcessMetrics] = []
    for idx, p in enumerate(processes):
        start_time = start[idx]
        completion_time = completion[idx]
        turnaround_time = completion_time - p.arrival_time
        if preemptive:
            waiting_time = turnaround_time - p.burst_time
        else:
            waiting_time = start_time - p.arrival_time
        records.append(
            ProcessMetrics(
                pid=p.pid,
                arrival_time=p.arrival_time,
                burst_time=p.burst_time,
                start_time=start_time,
                completion_time=completion_time,
                waiting_time=waiting_time,
                turnaround_time=turnaround_time,
                response_time=start_time - p.arrival_time,
            )
        )
    return records


def _run_to_completion(
    processes: Sequence[Process],
    policy: Policy,
    select: Callable[[List[int]], int],
) -> SimulationResult:
    """
    Shared loop for the non-preemptive policies.

    ``select`` receives the indices of arrived, uncompleted processes in
    input order and returns the one to run.
    """
    result = SimulationResult(algorithm=policy)
    if not processes:
        compute_system_metrics(result)
        return result
    _validate(processes)

    pending = list(range(len(processes)))
    start: Dict[int, int] = {}
    completion: Dict[int, int] = {}
    timeline: List[ScheduledSlice] = []

    time = min(p.arrival_time for p in processes)

    while pending:
        ready = [i for i in pending if processes[i].arrival_time <= time]

        if not ready:
            # CPU idles until the next arrival; idle time is not charted.
            time = min(processes[i].arrival_time for i in pending)
            continue

        idx = select(ready)
        p = processes[idx]
        pending.remove(idx)

        start[idx] = time
        time += p.burst_time
        completion[idx] = time
        timeline.append(ScheduledSlice(pid=p.pid, start_time=start[idx], end_time=time))
        logger.debug("%s: P%d runs [%d, %d)", policy.label, p.pid, start[idx], time)

    result.processes = _build_records(processes, start, completion, preemptive=False)
    result.timeline = timeline
    result.raw_timeline = [ScheduledSlice(s.pid, s.start_time, s.end_time) for s in timeline]
    compute_system_metrics(result)
    return result


def schedule_fifo(processes: Sequence[Process]) -> SimulationResult:
    """
    First-In First-Out (non-preemptive) scheduling.
    """
    # Stable sort once by arrival; equal arrivals keep input order.
    order = sorted(range(len(processes)), key=lambda i: processes[i].arrival_time)
    rank = {idx: pos for pos, idx in enumerate(order)}
    return _run_to_completion(processes, Policy.FIFO, lambda ready: min(ready, key=rank.__getitem__))


def schedule_sjf(processes: Sequence[Process]) -> SimulationResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time. Ties go to the
    process listed first.
    """
    return _run_to_completion(processes, Policy.SJF, lambda ready: min(ready, key=lambda i: processes[i].burst_time))


def schedule_lpt(processes: Sequence[Process]) -> SimulationResult:
    """
    Longest Processing Time first (non-preemptive).

    Same as SJF but picks the largest burst time; ties go to the process
    listed first.
    """
    return _run_to_completion(processes, Policy.LPT, lambda ready: max(ready, key=lambda i: processes[i].burst_time))


def schedule_srt(processes: Sequence[Process]) -> SimulationResult:
    """
    Shortest Remaining Time (preemptive SJF).

    The running process is re-evaluated at every arrival: each segment runs
    until the process finishes or the next process arrives, whichever is
    first. Burst times are integers, so this is exact.
    """
    result = SimulationResult(algorithm=Policy.SRT)
    if not processes:
        compute_system_metrics(result)
        return result
    _validate(processes)

    n = len(processes)
    remaining = [p.burst_time for p in processes]
    start: Dict[int, int] = {}
    completion: Dict[int, int] = {}
    raw: List[ScheduledSlice] = []

    time = min(p.arrival_time for p in processes)

    while len(completion) < n:
        ready = [i for i in range(n) if processes[i].arrival_time <= time and remaining[i] > 0]
        if not ready:
            time = min(processes[i].arrival_time for i in range(n) if remaining[i] > 0)
            continue

        # Smallest remaining time; min() keeps the first index on ties.
        idx = min(ready, key=lambda i: remaining[i])
        p = processes[idx]
        start.setdefault(idx, time)

        future = [q.arrival_time for q in processes if q.arrival_time > time]
        run_time = remaining[idx] if not future else min(remaining[idx], min(future) - time)

        raw.append(ScheduledSlice(pid=p.pid, start_time=time, end_time=time + run_time))
        time += run_time
        remaining[idx] -= run_time

        if remaining[idx] == 0:
            completion[idx] = time
            logger.debug("SRT: P%d completes at %d", p.pid, time)
        else:
            logger.debug("SRT: P%d runs until arrival at %d, %d left", p.pid, time, remaining[idx])

    result.processes = _build_records(processes, start, completion, preemptive=True)
    result.raw_timeline = raw
    result.timeline = consolidate_timeline(raw)
    compute_system_metrics(result)
    return result


def schedule_rr(
    processes: Sequence[Process],
    quantum: Optional[int],
    context_switch_time: int = 0,
) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    The ready queue holds process indices; process data stays in
    ``processes``. Switching to a different process than the one last
    dispatched costs ``context_switch_time`` units, charted with the
    ``CONTEXT_SWITCH`` pid. Arrivals during a switch or a slice join the
    queue before the preempted process is re-appended.
    """
    if context_switch_time < 0:
        raise ValueError(f"Context switch time must be non-negative, got {context_switch_time}")

    result = SimulationResult(algorithm=Policy.RR, quantum=quantum, context_switch_time=context_switch_time)
    _validate(processes)
    if not processes or quantum is None or quantum <= 0:
        compute_system_metrics(result)
        return result

    n = len(processes)
    arrival_order = sorted(range(n), key=lambda i: processes[i].arrival_time)
    next_arrival = 0

    remaining = [p.burst_time for p in processes]
    start: Dict[int, int] = {}
    completion: Dict[int, int] = {}
    raw: List[ScheduledSlice] = []
    ready: deque[int] = deque()

    def admit(now: int) -> None:
        nonlocal next_arrival
        while next_arrival < n and processes[arrival_order[next_arrival]].arrival_time <= now:
            ready.append(arrival_order[next_arrival])
            next_arrival += 1

    time = processes[arrival_order[0]].arrival_time
    last_dispatched: Optional[int] = None

    while len(completion) < n:
        admit(time)
        if not ready:
            time = processes[arrival_order[next_arrival]].arrival_time
            admit(time)

        idx = ready.popleft()
        p = processes[idx]

        if last_dispatched is not None and last_dispatched != idx and context_switch_time > 0:
            raw.append(ScheduledSlice(pid=CONTEXT_SWITCH, start_time=time, end_time=time + context_switch_time))
            logger.debug("RR: context switch to P%d at %d", p.pid, time)
            time += context_switch_time
            admit(time)
        last_dispatched = idx

        start.setdefault(idx, time)

        run_time = min(quantum, remaining[idx])
        raw.append(ScheduledSlice(pid=p.pid, start_time=time, end_time=time + run_time))
        time += run_time
        remaining[idx] -= run_time

        admit(time)

        if remaining[idx] == 0:
            completion[idx] = time
            logger.debug("RR: P%d completes at %d", p.pid, time)
        else:
            ready.append(idx)

    result.processes = _build_records(processes, start, completion, preemptive=True)
    result.raw_timeline = raw
    result.timeline = consolidate_timeline(raw)
    compute_system_metrics(result)
    return result


ALGORITHMS: Dict[Policy, Callable[..., SimulationResult]] = {
    Policy.FIFO: schedule_fifo,
    Policy.SJF: schedule_sjf,
    Policy.SRT: schedule_srt,
    Policy.RR: schedule_rr,
    Policy.LPT: schedule_lpt,
}


def parse_policy(name: Union[str, Policy]) -> Policy:
    if isinstance(name, Policy):
        return name
    try:
        return Policy(name.lower())
    except ValueError:
        choices = ", ".join(p.value for p in Policy)
        raise ValueError(f"Unknown algorithm '{name}' (choose from {choices})") from None


def run_algorithm(
    name: Union[str, Policy],
    processes: Sequence[Process],
    quantum: Optional[int] = None,
    context_switch_time: int = 0,
) -> SimulationResult:
    """
    Dispatch to the requested policy. Quantum and context switch time only
    apply to round robin.
    """
    policy = parse_policy(name)
    func = ALGORITHMS[policy]
    if policy is Policy.RR:
        return func(processes, quantum, context_switch_time=context_switch_time)
    return func(processes)
