import pytest

from scheduler_sim.algorithms import (
    ALGORITHMS,
    UnsupportedAlgorithmError,
    run_algorithm,
    schedule_priority,
    schedule_rr,
    schedule_sjf,
)
from scheduler_sim.models import ProcessSpec


def _procs():
    return [
        ProcessSpec("P1", arrival_time=0, burst_time=8, priority=1),
        ProcessSpec("P2", arrival_time=1, burst_time=4, priority=1),
        ProcessSpec("P3", arrival_time=2, burst_time=9, priority=1),
        ProcessSpec("P4", arrival_time=3, burst_time=5, priority=1),
    ]


def _two():
    return [
        ProcessSpec("A", arrival_time=0, burst_time=5, priority=1),
        ProcessSpec("B", arrival_time=1, burst_time=3, priority=1),
    ]


def test_rr_quantum_2():
    res = schedule_rr(_two(), context_switch=0, quantum=2)
    assert res.execution_order == ["A", "B", "A", "B", "A"]
    assert res.waiting_times == {"A": 3, "B": 3}
    assert res.turnaround_times == {"A": 8, "B": 6}
    assert res.average_waiting == 3.0
    assert res.average_turnaround == 7.0


def test_rr_context_switch_charged_between_processes():
    res = schedule_rr(_two(), context_switch=1, quantum=2)
    assert res.execution_order == ["A", "B", "A", "B", "A"]
    assert res.waiting_times == {"A": 7, "B": 6}
    assert res.turnaround_times == {"A": 12, "B": 9}
    assert res.system.context_switches == 4


def test_rr_four_processes():
    res = schedule_rr(_procs(), quantum=2)
    assert res.execution_order == ["P1", "P2", "P3", "P1", "P4", "P2", "P3", "P1", "P4", "P3", "P1", "P4", "P3"]
    assert res.waiting_times == {"P1": 14, "P2": 7, "P3": 15, "P4": 15}
    assert res.average_waiting == pytest.approx(12.75)
    assert res.average_turnaround == pytest.approx(19.25)


def test_rr_lone_process_is_not_charged_a_switch():
    res = schedule_rr([ProcessSpec("A", 0, 4)], context_switch=3, quantum=2)
    assert res.execution_order == ["A"]
    assert res.waiting_times == {"A": 0}
    assert res.turnaround_times == {"A": 4}


def test_rr_jumps_over_idle_gap():
    procs = [ProcessSpec("A", 0, 2), ProcessSpec("B", 5, 1)]
    res = schedule_rr(procs, context_switch=1, quantum=2)
    assert res.execution_order == ["A", "B"]
    assert res.turnaround_times == {"A": 2, "B": 2}
    assert res.waiting_times == {"A": 0, "B": 1}


def test_rr_requires_positive_quantum():
    with pytest.raises(ValueError):
        schedule_rr(_two(), quantum=0)


def test_rr_slices_never_exceed_quantum():
    res = schedule_rr(_procs(), context_switch=1, quantum=3)
    assert all(s.end_time - s.start_time <= 3 for s in res.timeline)


def test_sjf_preempts_for_shorter_job():
    res = schedule_sjf(_procs())
    assert res.execution_order == ["P1", "P2", "P4", "P1", "P3"]
    assert res.waiting_times == {"P1": 9, "P2": 0, "P3": 15, "P4": 2}
    assert res.turnaround_times == {"P1": 17, "P2": 4, "P3": 24, "P4": 7}
    assert res.average_waiting == 6.5
    assert res.average_turnaround == 13.0


def test_sjf_with_context_switch():
    res = schedule_sjf(_procs(), context_switch=1)
    assert res.execution_order == ["P1", "P2", "P4", "P1", "P3"]
    assert res.waiting_times == {"P1": 12, "P2": 1, "P3": 19, "P4": 4}
    assert res.turnaround_times == {"P1": 20, "P2": 5, "P3": 28, "P4": 9}
    assert res.average_waiting == 9.0
    assert res.average_turnaround == 15.5


def test_sjf_equal_remaining_does_not_preempt():
    procs = [ProcessSpec("A", 0, 3), ProcessSpec("B", 1, 2)]
    res = schedule_sjf(procs)
    # At t=1 both have 2 ticks left; the running process keeps the CPU.
    assert res.execution_order == ["A", "B"]
    assert res.waiting_times == {"A": 0, "B": 2}


def test_priority_aging_improves_one_level_per_interval():
    procs = [
        ProcessSpec("A", arrival_time=0, burst_time=10, priority=1),
        ProcessSpec("B", arrival_time=0, burst_time=2, priority=5),
    ]
    res = schedule_priority(procs, aging_interval=3)
    assert res.execution_order == ["A", "B"]
    assert res.waiting_times == {"A": 0, "B": 10}
    # B waited 10 ticks: three full intervals of 3.
    b = next(p for p in res.processes if p.name == "B")
    assert b.priority == 5
    assert b.effective_priority == 2


def test_priority_aging_is_floored_at_one():
    procs = [
        ProcessSpec("A", arrival_time=0, burst_time=10, priority=1),
        ProcessSpec("B", arrival_time=0, burst_time=1, priority=2),
    ]
    res = schedule_priority(procs, aging_interval=1)
    assert res.execution_order == ["A", "B"]
    b = next(p for p in res.processes if p.name == "B")
    assert b.effective_priority == 1
    assert res.turnaround_times == {"A": 10, "B": 11}


def test_priority_aged_process_preempts():
    procs = [
        ProcessSpec("A", arrival_time=0, burst_time=8, priority=3),
        ProcessSpec("B", arrival_time=1, burst_time=3, priority=5),
    ]
    res = schedule_priority(procs, aging_interval=2)
    assert res.execution_order == ["A", "B", "A", "B"]
    assert res.turnaround_times == {"A": 10, "B": 10}
    assert res.waiting_times == {"A": 2, "B": 7}
    assert res.average_waiting == 4.5
    assert res.average_turnaround == 10.0


def test_priority_reevaluates_winner_after_context_switch():
    procs = [
        ProcessSpec("A", arrival_time=0, burst_time=2, priority=1),
        ProcessSpec("C", arrival_time=0, burst_time=2, priority=3),
        ProcessSpec("B", arrival_time=1, burst_time=2, priority=2),
    ]
    res = schedule_priority(procs, context_switch=1, aging_interval=3)
    # B wins at t=2, but C ages during the switch and takes over (second delay charged).
    assert res.execution_order == ["A", "C", "B", "C"]
    assert res.turnaround_times == {"A": 2, "C": 10, "B": 7}
    assert res.waiting_times == {"A": 0, "C": 8, "B": 5}


def test_priority_second_delay_is_not_reevaluated():
    procs = [
        ProcessSpec("L", arrival_time=0, burst_time=2, priority=1),
        ProcessSpec("B", arrival_time=0, burst_time=2, priority=4),
        ProcessSpec("C", arrival_time=1, burst_time=2, priority=3),
    ]
    res = schedule_priority(procs, context_switch=1, aging_interval=3)
    # At t=2 C wins; B ages during the first delay and takes over. C ages during
    # the second delay, but B is dispatched at t=4 anyway and only loses the CPU
    # after running a tick.
    assert res.execution_order == ["L", "B", "C", "B"]
    starts = {p.name: p.start_time for p in res.processes}
    assert starts == {"L": 0, "B": 4, "C": 6}
    assert res.turnaround_times == {"L": 2, "B": 10, "C": 7}
    assert res.waiting_times == {"L": 0, "B": 8, "C": 5}
    assert res.system.context_switches == 4


def test_priority_requires_aging_interval():
    with pytest.raises(ValueError):
        schedule_priority(_procs(), aging_interval=0)


def test_negative_context_switch_rejected():
    with pytest.raises(ValueError):
        schedule_sjf(_procs(), context_switch=-1)


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_single_process_any_policy(name):
    res = run_algorithm(name, [ProcessSpec("P", 0, 4, priority=1, quantum=2)], context_switch=1)
    assert res.execution_order == ["P"]
    assert res.waiting_times == {"P": 0}
    assert res.turnaround_times == {"P": 4}


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_empty_process_set(name):
    res = run_algorithm(name, [])
    assert res.execution_order == []
    assert res.waiting_times == {}
    assert res.turnaround_times == {}
    assert res.average_waiting == 0.0
    assert res.average_turnaround == 0.0


def test_run_algorithm_unknown_name():
    with pytest.raises(UnsupportedAlgorithmError):
        run_algorithm("mlfq", _procs())


def test_run_algorithm_is_case_insensitive():
    res = run_algorithm("SJF", _procs())
    assert res.execution_order == ["P1", "P2", "P4", "P1", "P3"]
