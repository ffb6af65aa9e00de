"""
Scenario fixtures: load recorded test cases and check scheduler output against them.

A scenario file looks like::

    {
      "name": "basic",
      "input": {
        "contextSwitch": 1, "rrQuantum": 2, "agingInterval": 5,
        "processes": [{"name": "P1", "arrival": 0, "burst": 5, "priority": 2, "quantum": 4}]
      },
      "expectedOutput": {
        "RR": {"executionOrder": [...], "processResults": [...],
               "averageWaitingTime": 1.5, "averageTurnaroundTime": 4.0},
        "SJF": {...}, "Priority": {...}, "AG": {...}
      }
    }

AG-only files may put the expected block directly under ``expectedOutput``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .algorithms import UnsupportedAlgorithmError, run_algorithm
from .models import ProcessSpec, ScheduleResult

logger = logging.getLogger(__name__)

AVERAGE_TOLERANCE = 0.1

DEFAULT_CONTEXT_SWITCH = 1
DEFAULT_RR_QUANTUM = 2
DEFAULT_AGING_INTERVAL = 5

# Labels used by fixtures for their expected outputs, mapped to registry names.
POLICY_LABELS = {
    "RR": "rr",
    "SJF": "sjf",
    "Priority": "priority",
    "AG": "ag",
}


class ScenarioError(ValueError):
    """A scenario file is missing a required field or holds a malformed value."""


@dataclass
class ExpectedProcess:
    name: str
    waiting_time: int
    turnaround_time: int
    quantum_history: List[int] = field(default_factory=list)


@dataclass
class ExpectedOutput:
    execution_order: List[str] = field(default_factory=list)
    process_results: Dict[str, ExpectedProcess] = field(default_factory=dict)
    average_waiting: float = 0.0
    average_turnaround: float = 0.0


@dataclass
class Scenario:
    name: str
    processes: List[ProcessSpec]
    context_switch: int = DEFAULT_CONTEXT_SWITCH
    rr_quantum: int = DEFAULT_RR_QUANTUM
    aging_interval: int = DEFAULT_AGING_INTERVAL
    expected: Dict[str, ExpectedOutput] = field(default_factory=dict)


@dataclass
class VerificationOutcome:
    scenario: str
    policy: str
    reasons: List[str] = field(default_factory=list)
    result: Optional[ScheduleResult] = None
    expected: Optional[ExpectedOutput] = None

    @property
    def passed(self) -> bool:
        return not self.reasons


def _parse_process(entry: Mapping[str, Any]) -> ProcessSpec:
    try:
        return ProcessSpec(
            name=str(entry["name"]),
            arrival_time=int(entry["arrival"]),
            burst_time=int(entry["burst"]),
            priority=int(entry["priority"]),
            quantum=int(entry.get("quantum", 0)),
        )
    except KeyError as exc:
        raise ScenarioError(f"process entry missing field {exc.args[0]!r}: {entry!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ScenarioError(f"invalid process entry {entry!r}: {exc}") from exc


def _parse_expected(block: Mapping[str, Any]) -> ExpectedOutput:
    output = ExpectedOutput(
        execution_order=[str(name) for name in block.get("executionOrder", [])],
        average_waiting=float(block.get("averageWaitingTime", 0.0)),
        average_turnaround=float(block.get("averageTurnaroundTime", 0.0)),
    )
    for entry in block.get("processResults", []):
        try:
            expected = ExpectedProcess(
                name=str(entry["name"]),
                waiting_time=int(entry["waitingTime"]),
                turnaround_time=int(entry["turnaroundTime"]),
                quantum_history=[int(q) for q in entry.get("quantumHistory", [])],
            )
        except KeyError as exc:
            raise ScenarioError(f"process result missing field {exc.args[0]!r}: {entry!r}") from exc
        output.process_results[expected.name] = expected
    return output


def parse_scenario(data: Mapping[str, Any], default_name: str = "scenario") -> Scenario:
    """Build a Scenario from decoded JSON, raising ScenarioError when it is malformed."""
    if not isinstance(data, Mapping):
        raise ScenarioError("scenario must be a JSON object")
    if "input" not in data:
        raise ScenarioError("scenario missing field 'input'")

    inp = data["input"]
    if not isinstance(inp, Mapping) or "processes" not in inp:
        raise ScenarioError("scenario input missing field 'processes'")

    try:
        scenario = Scenario(
            name=str(data.get("name", default_name)),
            processes=[_parse_process(entry) for entry in inp["processes"]],
            context_switch=int(inp.get("contextSwitch", DEFAULT_CONTEXT_SWITCH)),
            rr_quantum=int(inp.get("rrQuantum", DEFAULT_RR_QUANTUM)),
            aging_interval=int(inp.get("agingInterval", DEFAULT_AGING_INTERVAL)),
        )
        expected_block = data.get("expectedOutput", {})
        if "executionOrder" in expected_block or "processResults" in expected_block:
            scenario.expected["AG"] = _parse_expected(expected_block)
        else:
            for label, block in expected_block.items():
                scenario.expected[label] = _parse_expected(block)
    except ScenarioError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise ScenarioError(f"malformed scenario: {exc}") from exc

    return scenario


def load_scenario(path: str | Path) -> Scenario:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ScenarioError(f"{path.name}: invalid JSON ({exc})") from exc
    return parse_scenario(data, default_name=path.name)


def load_scenarios(directory: str | Path) -> Tuple[List[Scenario], List[str]]:
    """
    Load every ``*.json`` scenario in a directory, in name order.

    Malformed files are skipped; their errors are returned alongside the
    scenarios that loaded.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ValueError(f"{directory} is not a directory")

    scenarios: List[Scenario] = []
    errors: List[str] = []
    for path in sorted(directory.glob("*.json")):
        try:
            scenarios.append(load_scenario(path))
        except ScenarioError as exc:
            logger.warning("Skipping scenario %s: %s", path.name, exc)
            errors.append(f"{path.name}: {exc}")
    return scenarios, errors


def verify_result(actual: ScheduleResult, expected: ExpectedOutput) -> List[str]:
    """
    Compare a result against its expected output. Returns every mismatch found.
    """
    reasons: List[str] = []

    if actual.execution_order != expected.execution_order:
        reasons.append(
            "Execution order mismatch: "
            f"expected {expected.execution_order}, got {actual.execution_order}"
        )

    for name, exp in expected.process_results.items():
        if name not in actual.waiting_times:
            reasons.append(f"Process {name} not found in results")
            continue

        waiting = actual.waiting_times[name]
        if waiting != exp.waiting_time:
            reasons.append(f"Waiting time mismatch for {name}: expected {exp.waiting_time}, got {waiting}")

        turnaround = actual.turnaround_times[name]
        if turnaround != exp.turnaround_time:
            reasons.append(
                f"Turnaround time mismatch for {name}: expected {exp.turnaround_time}, got {turnaround}"
            )

        if exp.quantum_history:
            history = actual.quantum_history.get(name, [])
            if history != exp.quantum_history:
                reasons.append(
                    f"Quantum history mismatch for {name}: expected {exp.quantum_history}, got {history}"
                )

    if abs(actual.average_waiting - expected.average_waiting) > AVERAGE_TOLERANCE:
        reasons.append(
            f"Average waiting time mismatch: expected {expected.average_waiting}, got {actual.average_waiting:.2f}"
        )
    if abs(actual.average_turnaround - expected.average_turnaround) > AVERAGE_TOLERANCE:
        reasons.append(
            "Average turnaround time mismatch: "
            f"expected {expected.average_turnaround}, got {actual.average_turnaround:.2f}"
        )

    return reasons


def run_policy(scenario: Scenario, label: str) -> ScheduleResult:
    """Run the policy behind a fixture label with the scenario's settings."""
    return run_algorithm(
        POLICY_LABELS.get(label, label),
        scenario.processes,
        context_switch=scenario.context_switch,
        quantum=scenario.rr_quantum,
        aging_interval=scenario.aging_interval,
    )


def run_scenario(scenario: Scenario) -> List[VerificationOutcome]:
    """Run and verify every policy the scenario has an expected output for."""
    outcomes: List[VerificationOutcome] = []
    for label, expected in scenario.expected.items():
        outcome = VerificationOutcome(scenario=scenario.name, policy=label, expected=expected)
        try:
            outcome.result = run_policy(scenario, label)
        except UnsupportedAlgorithmError:
            outcome.reasons.append(f"unsupported policy: {label}")
        except ValueError as exc:
            outcome.reasons.append(f"invalid configuration: {exc}")
        else:
            outcome.reasons.extend(verify_result(outcome.result, expected))

        if not outcome.passed:
            logger.info("%s [%s] failed: %d mismatch(es)", scenario.name, label, len(outcome.reasons))
        outcomes.append(outcome)
    return outcomes
