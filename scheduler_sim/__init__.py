"""
Scheduler simulation package.

Simulates CPU dispatch under Round Robin, preemptive SJF, preemptive Priority
with aging and the hybrid AG scheduler, and reports per-process and aggregate
waiting/turnaround metrics.
"""

from .algorithms import ALGORITHMS, UnsupportedAlgorithmError, run_algorithm
from .models import ProcessSpec, ScheduleResult

__all__ = [
    "ALGORITHMS",
    "ProcessSpec",
    "ScheduleResult",
    "UnsupportedAlgorithmError",
    "run_algorithm",
]
