"""
AG scheduling: a hybrid of FCFS, Priority and SJF inside a single quantum.

Every dispatch splits the running process's quantum Q into three phases that
always run in the same order:

    FCFS      ceil(Q / 4) ticks
    Priority  ceil(Q / 4) ticks
    SJF       the rest of Q, if any

Preemption is only considered at phase boundaries:

- Before the Priority phase, a ready process with a strictly better (lower)
  priority takes the CPU. The preempted process gets
  ``ceil((Q - fcfs ticks used) / 2)`` added to its quantum.
- Before the SJF phase, a ready process with strictly less remaining time
  takes the CPU. The preempted process gets its unused SJF allotment added.
- If all three phases run out, the process gets ``+2`` and goes to the back
  of the ready queue. When nobody else is waiting it simply keeps the CPU for
  another cycle under the same quantum.

Every quantum change is appended to the process's quantum history.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from .engine import SimulationClock
from .models import Process, ProcessSpec, ScheduleResult

logger = logging.getLogger(__name__)

QUANTUM_EXHAUSTED_BONUS = 2


def phase_lengths(quantum: int) -> Tuple[int, int, int]:
    """
    Split a quantum into (fcfs, priority, sjf) phase lengths.

    A zero quantum is treated as one tick so that the process still makes
    progress. For a quantum of 1 the FCFS and Priority phases each still get
    a tick and the SJF phase is empty.
    """
    q = max(quantum, 1)
    fcfs = math.ceil(q * 0.25)
    priority = math.ceil(q * 0.25)
    sjf = max(q - fcfs - priority, 0)
    return fcfs, priority, sjf


def pick_higher_priority(ready: List[Process], running: Process) -> Optional[Process]:
    """
    Ready process with strictly lower priority than ``running``.

    Ties go to the earliest arrival, then to the one queued first.
    """
    candidates = [
        (p.current_priority, p.arrival_time, idx, p)
        for idx, p in enumerate(ready)
        if p.current_priority < running.current_priority
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda c: c[:3])[3]


def pick_shorter_job(ready: List[Process], running: Process) -> Optional[Process]:
    """
    Ready process with strictly less remaining time than ``running``.

    Ties go to the earliest arrival, then to the one queued first.
    """
    candidates = [
        (p.remaining_time, p.arrival_time, idx, p)
        for idx, p in enumerate(ready)
        if p.remaining_time < running.remaining_time
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda c: c[:3])[3]


def _preempt(clock: SimulationClock, running: Process, challenger: Process, new_quantum: int) -> Process:
    logger.debug(
        "t=%d: %s preempted by %s, quantum %d -> %d",
        clock.time,
        running.name,
        challenger.name,
        running.quantum,
        new_quantum,
    )
    running.assign_quantum(new_quantum)
    clock.requeue(running)
    clock.dispatch(challenger)
    return challenger


def schedule_ag(processes: Sequence[ProcessSpec], context_switch: int = 0) -> ScheduleResult:
    """
    AG scheduling. Each process brings its own starting quantum.

    ``context_switch`` is accepted for a uniform call signature; AG does not
    charge switching overhead.
    """
    clock = SimulationClock(processes)
    clock.admit_arrivals()

    current: Optional[Process] = None

    while not clock.is_finished():
        if current is None:
            if not clock.ready:
                clock.advance_idle()
                continue
            current = clock.ready[0]
            clock.dispatch(current)

        # A zero quantum runs, and earns bonuses, as a quantum of 1.
        q = max(current.quantum, 1)
        fcfs_len, priority_len, sjf_len = phase_lengths(q)

        # FCFS phase
        fcfs_used = clock.run_for(current, fcfs_len)
        if current.is_completed:
            current.quantum = 0
            current = None
            continue

        challenger = pick_higher_priority(clock.ready, current)
        if challenger is not None:
            bonus = math.ceil((q - fcfs_used) * 0.5)
            current = _preempt(clock, current, challenger, q + bonus)
            continue

        # Priority phase
        clock.run_for(current, priority_len)
        if current.is_completed:
            current.quantum = 0
            current = None
            continue

        challenger = pick_shorter_job(clock.ready, current)
        if challenger is not None:
            current = _preempt(clock, current, challenger, q + sjf_len)
            continue

        # SJF phase
        clock.run_for(current, sjf_len)
        if current.is_completed:
            current.quantum = 0
            current = None
            continue

        if clock.ready:
            logger.debug(
                "t=%d: %s used its whole quantum, %d -> %d",
                clock.time,
                current.name,
                q,
                q + QUANTUM_EXHAUSTED_BONUS,
            )
            current.assign_quantum(q + QUANTUM_EXHAUSTED_BONUS)
            clock.requeue(current)
            current = None

    return clock.build_result("AG", include_quantum_history=True)
