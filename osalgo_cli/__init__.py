"""
OS algorithms simulator package.

Deterministic CPU scheduling simulations (FIFO, SJF, SRT, Round Robin, LPT)
and Banker's Algorithm deadlock analysis, with a Rich command-line front end.
"""

from .algorithms import (
    run_algorithm,
    schedule_fifo,
    schedule_lpt,
    schedule_rr,
    schedule_sjf,
    schedule_srt,
)
from .deadlock import bankers_algorithm

__all__ = [
    "bankers_algorithm",
    "cli",
    "run_algorithm",
    "schedule_fifo",
    "schedule_lpt",
    "schedule_rr",
    "schedule_sjf",
    "schedule_srt",
]
