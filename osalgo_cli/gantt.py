from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice


def consolidate_timeline(raw: List[ScheduledSlice]) -> List[ScheduledSlice]:
    """
    Merge consecutive slices of the same pid that touch end-to-start.

    A gap between two slices of the same pid is a real interruption and
    is kept as two entries. The input list is not modified.
    """
    merged: List[ScheduledSlice] = []
    for sl in raw:
        if merged and merged[-1].pid == sl.pid and merged[-1].end_time == sl.start_time:
            merged[-1].end_time = sl.end_time
        else:
            merged.append(ScheduledSlice(pid=sl.pid, start_time=sl.start_time, end_time=sl.end_time))
    return merged


def slice_label(sl: ScheduledSlice) -> str:
    return "CS" if sl.is_context_switch else f"P{sl.pid}"


def build_rich_gantt(slices: List[ScheduledSlice], title: str = "Gantt Chart") -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not slices:
        panel = Panel("No execution", title=title)
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[int, str] = {}

    def pid_color(sl: ScheduledSlice) -> str:
        if sl.is_context_switch:
            return "bright_black"
        if sl.pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[sl.pid] = colors[idx]
        return pid_to_color[sl.pid]

    timeline = Text()
    labels = Text()
    first_time = slices[0].start_time
    time_marks = str(first_time)
    last_time = first_time

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            timeline.append(" " * idle_gap)
            labels.append(" " * idle_gap)
            last_time = sl.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, sl.duration)
        timeline.append(" " * width, style=f"on {pid_color(sl)}")
        labels.append(slice_label(sl)[:width].ljust(width), style="dim" if sl.is_context_switch else "bold")

        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title=title)
    return panel, time_marks
