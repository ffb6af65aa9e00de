from __future__ import annotations

from typing import List, Optional, Sequence

from .models import Process, ProcessMetrics, ScheduledSlice, ScheduleResult, SystemMetrics


def build_result(
    algorithm: str,
    processes: Sequence[Process],
    execution_order: List[str],
    timeline: List[ScheduledSlice],
    context_switches: int = 0,
    quantum: Optional[int] = None,
    include_quantum_history: bool = False,
) -> ScheduleResult:
    """
    Turn finished process entities into a ScheduleResult.

    Turnaround is completion minus arrival, waiting is turnaround minus burst.
    Per-process entries keep the input order.
    """
    metrics: List[ProcessMetrics] = []
    for p in processes:
        metrics.append(
            ProcessMetrics(
                name=p.name,
                arrival_time=p.arrival_time,
                burst_time=p.burst_time,
                start_time=p.start_time,
                completion_time=p.completion_time,
                waiting_time=p.waiting_time,
                turnaround_time=p.turnaround_time,
                response_time=p.start_time - p.arrival_time,
                priority=p.base_priority,
                effective_priority=p.current_priority,
            )
        )

    summary = summarize_process_metrics(metrics)
    result = ScheduleResult(
        algorithm=algorithm,
        quantum=quantum,
        execution_order=list(execution_order),
        waiting_times={m.name: m.waiting_time for m in metrics},
        turnaround_times={m.name: m.turnaround_time for m in metrics},
        average_waiting=summary["avg_waiting"],
        average_turnaround=summary["avg_turnaround"],
        processes=metrics,
        timeline=list(timeline),
    )
    if include_quantum_history:
        result.quantum_history = {p.name: list(p.quantum_history) for p in processes}

    compute_system_metrics(result, context_switches=context_switches)
    return result


def compute_system_metrics(result: ScheduleResult, context_switches: int = 0) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given populated per-process metrics
    and timeline slices.
    """
    if not result.processes:
        system = SystemMetrics(cpu_busy_time=0, makespan=0, throughput=0.0, cpu_utilization=0.0)
        result.system = system
        return system

    makespan = max(p.completion_time for p in result.processes)
    cpu_busy_time = sum(slice_.end_time - slice_.start_time for slice_ in result.timeline)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        context_switches=context_switches,
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
