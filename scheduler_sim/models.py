from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ProcessSpec:
    """
    Immutable description of a process as supplied by a workload or scenario.
    """

    name: str
    arrival_time: int
    burst_time: int
    priority: int = 0
    quantum: int = 0

    def __post_init__(self) -> None:
        if self.arrival_time < 0:
            raise ValueError(f"Process {self.name!r}: arrival time must be >= 0")
        if self.burst_time < 1:
            raise ValueError(f"Process {self.name!r}: burst time must be >= 1")
        if self.quantum < 0:
            raise ValueError(f"Process {self.name!r}: quantum must be >= 0")


@dataclass(eq=False)
class Process:
    """
    Mutable simulation state for one process, owned by a single policy run.

    Always built through ``from_spec`` so that every run works on its own copy.
    """

    name: str
    arrival_time: int
    burst_time: int
    base_priority: int
    remaining_time: int
    current_priority: int
    quantum: int
    quantum_history: List[int] = field(default_factory=list)
    start_time: int = -1
    completion_time: int = -1

    @classmethod
    def from_spec(cls, spec: ProcessSpec) -> "Process":
        return cls(
            name=spec.name,
            arrival_time=spec.arrival_time,
            burst_time=spec.burst_time,
            base_priority=spec.priority,
            remaining_time=spec.burst_time,
            current_priority=spec.priority,
            quantum=spec.quantum,
            quantum_history=[spec.quantum],
        )

    @property
    def is_completed(self) -> bool:
        return self.remaining_time == 0

    def assign_quantum(self, quantum: int) -> None:
        """Set a new quantum and record it in the history."""
        self.quantum = quantum
        self.quantum_history.append(quantum)

    @property
    def turnaround_time(self) -> int:
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self) -> int:
        return self.turnaround_time - self.burst_time


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    name: str
    start_time: int
    end_time: int


@dataclass
class ProcessMetrics:
    name: str
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int
    priority: int
    effective_priority: int


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    context_switches: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int] = None
    execution_order: List[str] = field(default_factory=list)
    waiting_times: Dict[str, int] = field(default_factory=dict)
    turnaround_times: Dict[str, int] = field(default_factory=dict)
    # Only populated by the AG scheduler.
    quantum_history: Dict[str, List[int]] = field(default_factory=dict)
    average_waiting: float = 0.0
    average_turnaround: float = 0.0
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
