from scheduler_sim.engine import SimulationClock
from scheduler_sim.models import ProcessSpec


def _procs():
    return [
        ProcessSpec("late", arrival_time=4, burst_time=2),
        ProcessSpec("B", arrival_time=0, burst_time=3),
        ProcessSpec("A", arrival_time=0, burst_time=1),
    ]


def test_admits_same_tick_arrivals_in_input_order():
    clock = SimulationClock(_procs())
    admitted = clock.admit_arrivals()
    assert [p.name for p in admitted] == ["B", "A"]
    assert clock.admit_arrivals() == []


def test_processes_are_private_copies():
    specs = _procs()
    first = SimulationClock(specs)
    second = SimulationClock(specs)
    first.processes[0].remaining_time = 0
    assert second.processes[0].remaining_time == 2
    assert first.processes[0].quantum_history is not second.processes[0].quantum_history


def test_advance_idle_jumps_to_next_arrival():
    clock = SimulationClock([ProcessSpec("X", arrival_time=7, burst_time=1)])
    assert clock.admit_arrivals() == []
    assert clock.advance_idle() is True
    assert clock.time == 7
    assert [p.name for p in clock.ready] == ["X"]
    assert clock.advance_idle() is False


def test_execute_records_completion_at_the_finishing_tick():
    clock = SimulationClock(_procs())
    clock.admit_arrivals()
    a = clock.processes[2]
    clock.dispatch(a)
    assert clock.execute(a) is True
    assert a.completion_time == 1
    assert a.start_time == 0
    assert a.is_completed
    assert a not in clock.ready


def test_run_for_stops_on_completion():
    clock = SimulationClock(_procs())
    clock.admit_arrivals()
    b = clock.processes[1]
    clock.dispatch(b)
    assert clock.run_for(b, 10) == 3
    assert clock.time == 3
    assert b.completion_time == 3


def test_dispatch_logs_transitions_only():
    clock = SimulationClock(_procs())
    clock.admit_arrivals()
    b, a = clock.processes[1], clock.processes[2]
    clock.dispatch(b)
    clock.execute(b)
    clock.requeue(b)
    clock.dispatch(b)
    clock.execute(b)
    clock.dispatch(a)
    assert clock.execution_order == ["B", "A"]
    # Re-dispatching B started a new slice.
    assert [(s.name, s.start_time, s.end_time) for s in clock.timeline] == [("B", 0, 1), ("B", 1, 2)]


def test_context_switch_admits_arrivals_each_tick():
    clock = SimulationClock(_procs())
    clock.admit_arrivals()
    ticks = []
    clock.context_switch(5, on_tick=ticks.append)
    assert ticks == [1, 2, 3, 4, 5]
    assert clock.time == 5
    assert [p.name for p in clock.ready] == ["B", "A", "late"]
    assert clock.context_switches == 1


def test_is_finished():
    clock = SimulationClock([ProcessSpec("A", 0, 1)])
    assert not clock.is_finished()
    clock.admit_arrivals()
    clock.dispatch(clock.processes[0])
    clock.execute(clock.processes[0])
    assert clock.is_finished()
    assert SimulationClock([]).is_finished()
