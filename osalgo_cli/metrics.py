from __future__ import annotations

from typing import List

from .models import ProcessMetrics, SimulationResult, SystemMetrics


def compute_system_metrics(result: SimulationResult) -> SystemMetrics:
    """
    Compute aggregate metrics from the populated per-process records and
    attach them to ``result``.

    Zero denominators (makespan or arrival span) are treated as 1 so that
    degenerate inputs still produce defined numbers.
    """
    processes = result.processes
    if not processes:
        result.system = SystemMetrics()
        return result.system

    n = len(processes)
    averages = summarize_process_metrics(processes)

    makespan = max(p.completion_time for p in processes)
    total_burst = sum(p.burst_time for p in processes)
    elapsed = makespan if makespan > 0 else 1

    arrival_span = max(p.arrival_time for p in processes) - min(p.arrival_time for p in processes)
    arrival_rate = n / (arrival_span if arrival_span > 0 else 1)

    system = SystemMetrics(
        average_turnaround_time=averages["avg_turnaround"],
        average_waiting_time=averages["avg_waiting"],
        average_response_time=averages["avg_response"],
        cpu_utilization=total_burst / elapsed * 100,
        cpu_efficiency=total_burst / elapsed,
        throughput=n / elapsed,
        # Little's Law, L = lambda * W
        avg_ready_queue_length=averages["avg_waiting"] * arrival_rate,
        arrival_rate=arrival_rate,
        makespan=makespan,
        cpu_busy_time=total_burst,
    )
    result.system = system
    return system


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }
