from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import (
    ALGORITHMS,
    DEFAULT_AGING_INTERVAL,
    DEFAULT_CONTEXT_SWITCH,
    DEFAULT_RR_QUANTUM,
    run_algorithm,
)
from .fixtures import Scenario, VerificationOutcome, load_scenario, load_scenarios, run_scenario
from .gantt import build_rich_gantt
from .metrics import summarize_process_metrics
from .models import ScheduleResult
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def _add_policy_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--context-switch",
        "-c",
        type=int,
        default=DEFAULT_CONTEXT_SWITCH,
        help=f"Context switch delay in ticks (default: {DEFAULT_CONTEXT_SWITCH}).",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_RR_QUANTUM,
        help=f"Time quantum for round-robin (default: {DEFAULT_RR_QUANTUM}). AG uses per-process quanta.",
    )
    parser.add_argument(
        "--aging-interval",
        type=int,
        default=DEFAULT_AGING_INTERVAL,
        help=f"Ticks of waiting per priority boost for priority (default: {DEFAULT_AGING_INTERVAL}).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="CPU scheduling simulator (RR, preemptive SJF, priority with aging, AG).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Shortcut for --log-level DEBUG; traces every dispatch and preemption.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHMS)}).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    _add_policy_options(run_parser)

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help=f"Algorithms to compare (default: {' '.join(ALGORITHMS)}).",
    )
    _add_policy_options(compare_parser)

    verify_parser = subparsers.add_parser(
        "verify",
        help="Run scenario fixtures and check every policy against its expected output.",
    )
    verify_parser.add_argument(
        "path",
        help="A scenario JSON file or a directory of them.",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _print_result(result: ScheduleResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")
    console.print(f"[bold]Execution order:[/bold] {' -> '.join(result.execution_order) or '(none)'}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline, title=f"Gantt Chart ({result.algorithm})")
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "Name",
        "Arrive",
        "Burst",
        "Priority",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]
    show_history = bool(result.quantum_history)
    if show_history:
        headers.append("Quantum history")

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"Name", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        priority = str(p.priority)
        if p.effective_priority != p.priority:
            priority += f" -> {p.effective_priority}"
        row = [
            p.name,
            str(p.arrival_time),
            str(p.burst_time),
            priority,
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        ]
        if show_history:
            row.append(", ".join(str(q) for q in result.quantum_history.get(p.name, [])))
        proc_table.add_row(*row)

    console.print(proc_table)
    console.print()

    summary = summarize_process_metrics(result.processes)
    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{result.average_waiting:.2f}")
        sys_table.add_row("Avg turnaround", f"{result.average_turnaround:.2f}")
        sys_table.add_row("Avg response", f"{summary['avg_response']:.2f}")
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
        sys_table.add_row("Context switches", str(sys.context_switches))

        console.print(sys_table)


def _run_compare(args: argparse.Namespace, console: Console) -> None:
    """
    Run every requested algorithm on one workload and print the summary table.
    """
    workload_path = Path(args.workload)
    processes = load_workload(workload_path)

    summary_table = Table(title=f"Algorithm comparison: {workload_path}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Context switches", justify="right")

    for alg in args.algorithms:
        result = run_algorithm(
            alg,
            processes,
            context_switch=args.context_switch,
            quantum=args.quantum,
            aging_interval=args.aging_interval,
        )
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{result.average_waiting:.2f}",
            f"{result.average_turnaround:.2f}",
            str(result.system.context_switches if result.system else 0),
        )

    console.print(summary_table)


def _print_outcome(outcome: VerificationOutcome, console: Console) -> None:
    if outcome.passed:
        console.print(f"[green]PASS[/green] {outcome.scenario} [{outcome.policy}]")
        return

    console.print(f"[red]FAIL[/red] {outcome.scenario} [{outcome.policy}]")
    for reason in outcome.reasons:
        console.print(f"    - {reason}")
    if outcome.result is not None:
        console.print(f"    actual order:   {outcome.result.execution_order}")
    if outcome.expected is not None:
        console.print(f"    expected order: {outcome.expected.execution_order}")


def _run_verify(path: Path, console: Console) -> int:
    scenarios: List[Scenario]
    if path.is_dir():
        scenarios, errors = load_scenarios(path)
        for err in errors:
            console.print(f"[yellow]SKIP[/yellow] {err}")
    else:
        scenarios = [load_scenario(path)]

    outcomes: List[VerificationOutcome] = []
    for scenario in scenarios:
        outcomes.extend(run_scenario(scenario))

    for outcome in outcomes:
        _print_outcome(outcome, console)

    passed = sum(1 for o in outcomes if o.passed)
    failed = len(outcomes) - passed
    console.print()
    console.print(f"[bold]Summary:[/bold] {passed} Passed, {failed} Failed (Total: {len(outcomes)})")
    return 0 if failed == 0 else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else args.log_level)
    console = Console()

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(
                args.algorithm,
                processes,
                context_switch=args.context_switch,
                quantum=args.quantum,
                aging_interval=args.aging_interval,
            )
            _print_result(result, console)
            return 0

        if args.command == "compare":
            _run_compare(args, console)
            return 0

        if args.command == "verify":
            return _run_verify(Path(args.path), console)
    except (ValueError, OSError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
