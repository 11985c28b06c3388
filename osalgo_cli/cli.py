from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import parse_policy, run_algorithm
from .deadlock import BankersResult, bankers_algorithm, explain_unsafe, node_label, resource_totals
from .gantt import build_rich_gantt
from .models import Policy, Process, SimulationResult
from .presets import (
    DEADLOCK_PRESETS,
    PROCESS_PRESET_TITLES,
    PROCESS_PRESETS,
    deadlock_preset,
    process_preset,
)
from .workload_io import BankersInput, load_bankers_input, load_workload

logger = logging.getLogger(__name__)

POLICY_NAMES = [p.value for p in Policy]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osalgo-cli",
        description="CPU scheduling (FIFO, SJF, SRT, RR, LPT) and Banker's Algorithm simulator.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log individual scheduling decisions and Banker's steps.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(POLICY_NAMES)}).",
    )
    _add_workload_args(run_parser)
    _add_rr_args(run_parser)
    run_parser.add_argument(
        "--raw",
        action="store_true",
        help="Also show the unmerged timeline (one entry per dispatch).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare metrics.",
    )
    _add_workload_args(compare_parser)
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=POLICY_NAMES,
        help=f"Algorithms to compare (default: {' '.join(POLICY_NAMES)}).",
    )
    _add_rr_args(compare_parser)

    bankers_parser = subparsers.add_parser(
        "bankers",
        help="Check a Max/Allocation/Available state with Banker's Algorithm.",
    )
    source = bankers_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--scenario", "-s", help="Path to JSON scenario file.")
    source.add_argument(
        "--preset",
        "-p",
        choices=list(DEADLOCK_PRESETS),
        help="Built-in deadlock preset.",
    )

    subparsers.add_parser("presets", help="List built-in workloads and deadlock scenarios.")

    return parser


def _add_workload_args(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--workload", "-w", help="Path to JSON or CSV workload file.")
    source.add_argument(
        "--preset",
        "-p",
        choices=list(PROCESS_PRESETS),
        help="Built-in process preset.",
    )


def _add_rr_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=2,
        help="Time quantum for round robin (default: 2).",
    )
    parser.add_argument(
        "--context-switch",
        "-c",
        type=int,
        default=0,
        help="Context switch time for round robin (default: 0).",
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _load_processes(args: argparse.Namespace) -> List[Process]:
    if args.preset:
        return process_preset(args.preset)
    return load_workload(args.workload)


def _print_result(result: SimulationResult, console: Console, show_raw: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm.label}")
    if result.algorithm is Policy.RR:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")
        console.print(f"[bold]Context switch:[/bold] {result.context_switch_time}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline, title=f"Gantt Chart: {result.algorithm.label}")
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    if show_raw:
        console.print()
        raw_table = Table(title="Execution history (raw)", box=box.SIMPLE_HEAVY)
        raw_table.add_column("#", justify="right")
        raw_table.add_column("PID", justify="center")
        raw_table.add_column("Start", justify="right")
        raw_table.add_column("End", justify="right")
        for n, sl in enumerate(result.raw_timeline, start=1):
            raw_table.add_row(
                str(n),
                "CS" if sl.is_context_switch else f"P{sl.pid}",
                str(sl.start_time),
                str(sl.end_time),
            )
        console.print(raw_table)

    console.print()

    headers = ["PID", "Arrive", "Burst", "Start", "Complete", "Wait", "Turnaround", "Response"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h == "PID" else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            f"P{p.pid}",
            str(p.arrival_time),
            str(p.burst_time),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    sys = result.system
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{sys.average_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{sys.average_turnaround_time:.2f}")
    sys_table.add_row("Avg response", f"{sys.average_response_time:.2f}")
    sys_table.add_row("CPU utilization", f"{sys.cpu_utilization:.1f}%")
    sys_table.add_row("CPU efficiency", f"{sys.cpu_efficiency:.3f}")
    sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
    sys_table.add_row("Arrival rate", f"{sys.arrival_rate:.3f}")
    sys_table.add_row("Avg ready queue (Little's Law)", f"{sys.avg_ready_queue_length:.2f}")

    console.print(sys_table)
    if result.algorithm.preemptive:
        console.print("[dim]Waiting time = (completion - arrival) - burst[/dim]")
    else:
        console.print("[dim]Waiting time = start - arrival[/dim]")


def _print_compare(results: List[SimulationResult], console: Console) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util.", justify="right")
    summary_table.add_column("Throughput", justify="right")

    for result in results:
        sys = result.system
        summary_table.add_row(
            result.algorithm.label,
            "" if result.algorithm is not Policy.RR else str(result.quantum),
            f"{sys.average_waiting_time:.2f}",
            f"{sys.average_turnaround_time:.2f}",
            f"{sys.average_response_time:.2f}",
            f"{sys.cpu_utilization:.1f}%",
            f"{sys.throughput:.3f}",
        )

    console.print(summary_table)


def _matrix_table(title: str, rows: List[List[int]], n_resources: int) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Process", justify="center")
    for j in range(n_resources):
        table.add_column(f"R{j}", justify="right")
    for i, row in enumerate(rows):
        table.add_row(f"P{i}", *(str(v) for v in row))
    return table


def _print_bankers(state: BankersInput, result: BankersResult, console: Console) -> None:
    n_processes = len(state.max_demand)
    n_resources = len(state.available)

    totals = resource_totals(state.allocation, state.available)
    console.print(
        "[bold]Total instances:[/bold] "
        + ", ".join(f"R{j}={totals[j]}" for j in range(n_resources))
    )
    console.print(
        "[bold]Available:[/bold] "
        + ", ".join(f"R{j}={v}" for j, v in enumerate(state.available))
    )
    console.print()

    console.print(_matrix_table("Need (Max - Allocation)", result.need, n_resources))

    if result.steps:
        steps_table = Table(title="Safety check trace", box=box.SIMPLE_HEAVY)
        for h in ("Step", "Process", "Need", "Work before", "Allocation", "Work after"):
            steps_table.add_column(h, justify="right" if h == "Step" else "center")
        for n, step in enumerate(result.steps, start=1):
            steps_table.add_row(
                str(n),
                f"P{step.process}",
                str(step.need),
                str(step.work_before),
                str(step.allocation),
                str(step.work_after),
            )
        console.print(steps_table)

    if result.is_safe:
        sequence = " -> ".join(f"P{i}" for i in result.safe_sequence) or "(no processes)"
        console.print(f"[bold green]SAFE[/bold green] sequence: {sequence}")
    else:
        console.print(f"[bold red]UNSAFE[/bold red] {explain_unsafe(result)}")

    console.print()

    cc = result.coffman_conditions
    cond_table = Table(title="Deadlock conditions", box=box.SIMPLE_HEAVY)
    cond_table.add_column("Condition")
    cond_table.add_column("Holds", justify="center")

    def yes_no(flag: bool) -> str:
        return "[green]yes[/green]" if flag else "[dim]no[/dim]"

    cond_table.add_row("Mutual exclusion", yes_no(cc.mutual_exclusion))
    cond_table.add_row("Hold and wait", yes_no(cc.hold_and_wait))
    cond_table.add_row("No preemption", yes_no(cc.no_preemption))
    cond_table.add_row("Circular wait", yes_no(cc.circular_wait))
    cond_table.add_row("Deadlock possible", yes_no(cc.deadlock_possible))
    cond_table.add_row("Sum(Max) < P + R", yes_no(result.resource_condition_satisfied))
    console.print(cond_table)

    graph = result.resource_graph
    requests = sum(1 for e in graph.edges if e.is_request)
    console.print(
        f"[bold]Resource graph:[/bold] {len(graph.edges) - requests} allocation edge(s), "
        f"{requests} request edge(s)"
    )
    if graph.has_cycle:
        cycle = graph.cycle + graph.cycle[:1]
        console.print("[bold]Cycle:[/bold] " + " -> ".join(node_label(n, n_processes) for n in cycle))
    else:
        console.print("[bold]Cycle:[/bold] none")


def _print_presets(console: Console) -> None:
    proc_table = Table(title="Process presets", box=box.SIMPLE_HEAVY)
    proc_table.add_column("Name")
    proc_table.add_column("Description")
    proc_table.add_column("(arrival, burst)")
    for name, pairs in PROCESS_PRESETS.items():
        proc_table.add_row(name, PROCESS_PRESET_TITLES[name], " ".join(f"({a},{b})" for a, b in pairs))
    console.print(proc_table)

    dl_table = Table(title="Deadlock presets", box=box.SIMPLE_HEAVY)
    dl_table.add_column("Name")
    dl_table.add_column("Description")
    dl_table.add_column("Processes x Resources", justify="right")
    for name, data in DEADLOCK_PRESETS.items():
        dl_table.add_row(name, data["title"], f"{len(data['max'])} x {len(data['available'])}")
    console.print(dl_table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    try:
        if args.command == "run":
            processes = _load_processes(args)
            result = run_algorithm(
                args.algorithm,
                processes,
                quantum=args.quantum,
                context_switch_time=args.context_switch,
            )
            _print_result(result, console, show_raw=args.raw)
            return 0

        if args.command == "compare":
            processes = _load_processes(args)
            policies = [parse_policy(name) for name in args.algorithms]
            results = [
                run_algorithm(policy, processes, quantum=args.quantum, context_switch_time=args.context_switch)
                for policy in policies
            ]
            _print_compare(results, console)
            return 0

        if args.command == "bankers":
            state = deadlock_preset(args.preset) if args.preset else load_bankers_input(args.scenario)
            result = bankers_algorithm(state.max_demand, state.allocation, state.available)
            _print_bankers(state, result, console)
            return 0

        if args.command == "presets":
            _print_presets(console)
            return 0
    except (OSError, ValueError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
