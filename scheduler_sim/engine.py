from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from .metrics import build_result
from .models import Process, ProcessSpec, ScheduledSlice, ScheduleResult

logger = logging.getLogger(__name__)


class SimulationClock:
    """
    Shared time and ready-queue primitives used by every policy.

    Each instance owns private copies of the input processes. Time is an
    integer tick counter starting at 0; a process is admitted to the ready
    queue exactly once, as soon as the clock reaches its arrival time.
    """

    def __init__(self, processes: Sequence[ProcessSpec]) -> None:
        self.processes: List[Process] = [Process.from_spec(spec) for spec in processes]
        self.time = 0
        self.ready: List[Process] = []
        self.execution_order: List[str] = []
        self.timeline: List[ScheduledSlice] = []
        self.context_switches = 0
        self.last_dispatched: Optional[Process] = None

        # Stable sort keeps input order for processes arriving on the same tick.
        self._pending: List[Process] = sorted(self.processes, key=lambda p: p.arrival_time)
        self._slice: Optional[ScheduledSlice] = None

    def admit_arrivals(self) -> List[Process]:
        """Queue every not-yet-admitted process whose arrival time has been reached."""
        admitted: List[Process] = []
        while self._pending and self._pending[0].arrival_time <= self.time:
            p = self._pending.pop(0)
            self.ready.append(p)
            admitted.append(p)

        if admitted:
            logger.debug("t=%d: admitted %s", self.time, ", ".join(p.name for p in admitted))
        return admitted

    def is_finished(self) -> bool:
        return all(p.is_completed for p in self.processes)

    def next_arrival(self) -> Optional[int]:
        return self._pending[0].arrival_time if self._pending else None

    def advance_idle(self) -> bool:
        """
        Jump the clock to the next unmet arrival and admit it.

        Returns False when nothing is left to arrive.
        """
        nxt = self.next_arrival()
        if nxt is None:
            return False
        if nxt > self.time:
            logger.debug("t=%d: CPU idle until t=%d", self.time, nxt)
            self.time = nxt
        self.admit_arrivals()
        return True

    def context_switch(self, delay: int, on_tick: Optional[Callable[[int], None]] = None) -> None:
        """
        Charge ``delay`` idle ticks. Arrivals are still admitted on every tick.
        """
        self.context_switches += 1
        self._slice = None
        if delay > 0:
            logger.debug("t=%d: context switch (%d ticks)", self.time, delay)
        for _ in range(delay):
            self.time += 1
            self.admit_arrivals()
            if on_tick is not None:
                on_tick(self.time)

    def dispatch(self, process: Process) -> None:
        """Make ``process`` the running one and log the transition if it changed."""
        if process in self.ready:
            self.ready.remove(process)
        if process.start_time == -1:
            process.start_time = self.time
        if not self.execution_order or self.execution_order[-1] != process.name:
            self.execution_order.append(process.name)
            logger.debug("t=%d: dispatch %s", self.time, process.name)

        self.last_dispatched = process
        self._slice = None

    def requeue(self, process: Process) -> None:
        self.ready.append(process)
        self._slice = None

    def execute(self, process: Process) -> bool:
        """
        Run ``process`` for one tick, then admit anything that arrived.

        Returns True when the tick completed the process.
        """
        if self._slice is None or self._slice.name != process.name:
            self._slice = ScheduledSlice(name=process.name, start_time=self.time, end_time=self.time)
            self.timeline.append(self._slice)

        process.remaining_time -= 1
        self.time += 1
        self._slice.end_time = self.time
        self.admit_arrivals()

        if process.remaining_time == 0:
            self.complete(process)
            return True
        return False

    def run_for(self, process: Process, ticks: int) -> int:
        """Run up to ``ticks`` ticks, stopping early on completion. Returns ticks used."""
        used = 0
        while used < ticks and not process.is_completed:
            self.execute(process)
            used += 1
        return used

    def complete(self, process: Process) -> None:
        process.completion_time = self.time
        if process in self.ready:
            self.ready.remove(process)
        self._slice = None
        logger.debug("t=%d: %s completed", self.time, process.name)

    def build_result(
        self,
        algorithm: str,
        quantum: Optional[int] = None,
        include_quantum_history: bool = False,
    ) -> ScheduleResult:
        return build_result(
            algorithm,
            self.processes,
            self.execution_order,
            self.timeline,
            context_switches=self.context_switches,
            quantum=quantum,
            include_quantum_history=include_quantum_history,
        )
