from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from .ag import schedule_ag
from .engine import SimulationClock
from .models import Process, ProcessSpec, ScheduleResult

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_SWITCH = 0
DEFAULT_RR_QUANTUM = 2
DEFAULT_AGING_INTERVAL = 5


class UnsupportedAlgorithmError(ValueError):
    """Raised when no scheduler is registered under the requested name."""


def _check_context_switch(context_switch: int) -> None:
    if context_switch < 0:
        raise ValueError("Context switch delay must be >= 0")


def schedule_rr(
    processes: Sequence[ProcessSpec],
    context_switch: int = DEFAULT_CONTEXT_SWITCH,
    quantum: int = DEFAULT_RR_QUANTUM,
) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Switching to a different process than the one that ran last costs
    ``context_switch`` ticks; everything in the ready queue keeps waiting
    during those ticks.
    """
    if quantum is None or quantum <= 0:
        raise ValueError("Round Robin requires a positive quantum (use --quantum)")
    _check_context_switch(context_switch)

    clock = SimulationClock(processes)
    clock.admit_arrivals()

    current: Optional[Process] = None
    slice_remaining = 0

    while not clock.is_finished():
        if current is None or slice_remaining == 0:
            if current is not None:
                # Quantum expired: back of the queue, behind anything that just arrived.
                clock.requeue(current)
                current = None

            if not clock.ready:
                clock.advance_idle()
                continue

            nxt = clock.ready[0]
            if clock.last_dispatched is not None and clock.last_dispatched is not nxt:
                clock.context_switch(context_switch)

            current = nxt
            clock.dispatch(current)
            slice_remaining = quantum

        slice_remaining -= 1
        if clock.execute(current):
            current = None
            slice_remaining = 0

    return clock.build_result("Round Robin", quantum=quantum)


def _shortest(ready: List[Process]) -> Process:
    return min(enumerate(ready), key=lambda item: (item[1].remaining_time, item[1].arrival_time, item[0]))[1]


def schedule_sjf(
    processes: Sequence[ProcessSpec],
    context_switch: int = DEFAULT_CONTEXT_SWITCH,
) -> ScheduleResult:
    """
    Shortest Job First, preemptive (shortest remaining time first).

    The ready queue is ordered by remaining time, ties broken by arrival time
    and then by queue order. A running process is preempted only by a
    strictly shorter one.
    """
    _check_context_switch(context_switch)

    clock = SimulationClock(processes)
    current: Optional[Process] = None

    while not clock.is_finished():
        clock.admit_arrivals()

        if current is not None and clock.ready:
            best = _shortest(clock.ready)
            if best.remaining_time < current.remaining_time:
                logger.debug("t=%d: %s preempted by %s", clock.time, current.name, best.name)
                clock.requeue(current)
                current = None

        if current is None and clock.ready:
            selected = _shortest(clock.ready)
            clock.ready.remove(selected)
            if clock.last_dispatched is not None and clock.last_dispatched is not selected:
                clock.context_switch(context_switch)
            current = selected
            clock.dispatch(current)

        if current is None:
            clock.advance_idle()
            continue

        if clock.execute(current):
            current = None

    return clock.build_result("SJF (preemptive)")


def _priority_key(p: Process):
    return (p.current_priority, p.arrival_time, p.base_priority)


def age_waiting_processes(
    waiting: Sequence[Process],
    time: int,
    aging_interval: int,
    age_timers: Dict[str, int],
) -> None:
    """
    Advance the aging timer of every process that spent the last tick waiting.

    A process whose timer reaches ``aging_interval`` improves its priority by
    one (never below 1) and starts counting again.
    """
    for p in waiting:
        if p.arrival_time >= time or p.is_completed:
            continue
        age_timers[p.name] = age_timers.get(p.name, 0) + 1
        if age_timers[p.name] >= aging_interval:
            old = p.current_priority
            p.current_priority = max(1, p.current_priority - 1)
            age_timers[p.name] = 0
            if p.current_priority != old:
                logger.debug("t=%d: %s aged to priority %d", time, p.name, p.current_priority)


def schedule_priority(
    processes: Sequence[ProcessSpec],
    context_switch: int = DEFAULT_CONTEXT_SWITCH,
    aging_interval: int = DEFAULT_AGING_INTERVAL,
) -> ScheduleResult:
    """
    Preemptive Priority scheduling with aging.

    Lower numeric priority means more urgent. Selection happens every tick:
    lowest current priority, then earlier arrival, then lower base
    priority. Waiting processes improve by one level every
    ``aging_interval`` ticks, including ticks spent on context switches.
    """
    if aging_interval is None or aging_interval < 1:
        raise ValueError("Priority scheduling requires an aging interval >= 1")
    _check_context_switch(context_switch)

    clock = SimulationClock(processes)
    age_timers: Dict[str, int] = {}

    def age_all(time: int) -> None:
        age_waiting_processes(clock.ready, time, aging_interval, age_timers)

    def best_candidate(running: Optional[Process]) -> Optional[Process]:
        pool = list(clock.ready)
        if running is not None:
            pool.append(running)
        if not pool:
            return None
        best = min(pool, key=_priority_key)
        # The running process keeps the CPU unless something is strictly better.
        if running is not None and not _priority_key(best) < _priority_key(running):
            return running
        return best

    current: Optional[Process] = None

    while not clock.is_finished():
        clock.admit_arrivals()

        best = best_candidate(current)
        if best is None:
            clock.advance_idle()
            continue

        if best is not current:
            if current is not None:
                logger.debug("t=%d: %s preempted by %s", clock.time, current.name, best.name)
                clock.requeue(current)
                current = None

            last = clock.last_dispatched
            if last is not None and last is not best:
                clock.context_switch(context_switch, on_tick=age_all)
                if context_switch > 0:
                    winner = best_candidate(None)
                    if winner is not best:
                        logger.debug(
                            "t=%d: aging during the switch changed the winner from %s to %s",
                            clock.time,
                            best.name,
                            winner.name,
                        )
                        if winner is not last:
                            clock.context_switch(context_switch, on_tick=age_all)
                        best = winner

            current = best
            age_timers[current.name] = 0
            clock.dispatch(current)

        done = clock.execute(current)
        age_all(clock.time)
        if done:
            current = None

    return clock.build_result("Priority (preemptive, aging)")


ALGORITHMS: Dict[str, Callable[..., ScheduleResult]] = {
    "rr": schedule_rr,
    "sjf": schedule_sjf,
    "priority": schedule_priority,
    "ag": schedule_ag,
}


def run_algorithm(
    name: str,
    processes: Sequence[ProcessSpec],
    context_switch: int = DEFAULT_CONTEXT_SWITCH,
    quantum: Optional[int] = None,
    aging_interval: Optional[int] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. ``quantum`` only matters for Round
    Robin and ``aging_interval`` only for Priority; AG takes each process's
    own quantum.
    """
    key = name.lower()
    if key not in ALGORITHMS:
        raise UnsupportedAlgorithmError(f"Unknown or unimplemented algorithm '{name}'")

    func = ALGORITHMS[key]
    if key == "rr":
        return func(processes, context_switch, quantum=DEFAULT_RR_QUANTUM if quantum is None else quantum)
    if key == "priority":
        interval = DEFAULT_AGING_INTERVAL if aging_interval is None else aging_interval
        return func(processes, context_switch, aging_interval=interval)
    return func(processes, context_switch)
