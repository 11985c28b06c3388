from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# Sentinel pid for a context-switch interval in the timeline.
CONTEXT_SWITCH = -1


class Policy(str, Enum):
    FIFO = "fifo"
    SJF = "sjf"
    SRT = "srt"
    RR = "rr"
    LPT = "lpt"

    @property
    def label(self) -> str:
        return _POLICY_LABELS[self]

    @property
    def preemptive(self) -> bool:
        return self in (Policy.SRT, Policy.RR)


_POLICY_LABELS = {
    Policy.FIFO: "FIFO",
    Policy.SJF: "SJF (non-preemptive)",
    Policy.SRT: "SRT (preemptive)",
    Policy.RR: "Round Robin",
    Policy.LPT: "LPT",
}


@dataclass(frozen=True)
class Process:
    pid: int
    arrival_time: int
    burst_time: int


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of CPU occupancy in the Gantt chart.

    ``end_time`` is exclusive. A slice whose pid is ``CONTEXT_SWITCH`` marks
    switching overhead rather than useful work.
    """

    pid: int
    start_time: int
    end_time: int

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_context_switch(self) -> bool:
        return self.pid == CONTEXT_SWITCH


@dataclass
class ProcessMetrics:
    pid: int
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int


@dataclass
class SystemMetrics:
    average_turnaround_time: float = 0.0
    average_waiting_time: float = 0.0
    average_response_time: float = 0.0
    cpu_utilization: float = 0.0  # percent
    cpu_efficiency: float = 0.0
    throughput: float = 0.0
    avg_ready_queue_length: float = 0.0
    arrival_rate: float = 0.0
    makespan: int = 0
    cpu_busy_time: int = 0


@dataclass
class SimulationResult:
    algorithm: Policy
    quantum: Optional[int] = None
    context_switch_time: int = 0
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    raw_timeline: List[ScheduledSlice] = field(default_factory=list)
    system: SystemMetrics = field(default_factory=SystemMetrics)
