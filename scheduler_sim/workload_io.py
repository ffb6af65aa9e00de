from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, List, Mapping

from .models import ProcessSpec


def load_workload(path: str | Path) -> List[ProcessSpec]:
    """
    Load a workload from a JSON or CSV file into a list of ProcessSpec objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[ProcessSpec]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    # Scenario-style files wrap the list as {"processes": [...]}.
    if isinstance(raw, dict):
        raw = raw.get("processes")
    if not isinstance(raw, list):
        raise ValueError("JSON workload must be a list of process objects")

    return [process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[ProcessSpec]:
    processes: List[ProcessSpec] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(process_from_mapping(row))
    return processes


def _optional_int(mapping: Mapping[str, Any], key: str) -> int:
    value = mapping.get(key)
    return int(value) if value not in (None, "") else 0


def process_from_mapping(mapping: Mapping[str, Any]) -> ProcessSpec:
    try:
        name = str(mapping["name"] if "name" in mapping else mapping["pid"])
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
        return ProcessSpec(
            name=name,
            arrival_time=arrival_time,
            burst_time=burst_time,
            priority=_optional_int(mapping, "priority"),
            quantum=_optional_int(mapping, "quantum"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc
