from __future__ import annotations

from itertools import cycle
from typing import Dict, Iterator, List, Optional, Tuple

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice

PALETTE = ("red", "green", "yellow", "blue", "magenta", "cyan")
IDLE_FILL = "░"


def _segments(slices: List[ScheduledSlice]) -> Iterator[Tuple[Optional[str], int, int]]:
    """Yield (name, start, end) in time order, with None for gaps between slices."""
    clock = 0
    for sl in sorted(slices, key=lambda s: (s.start_time, s.end_time)):
        if sl.start_time > clock:
            yield None, clock, sl.start_time
        yield sl.name, sl.start_time, sl.end_time
        clock = sl.end_time


def build_rich_gantt(slices: List[ScheduledSlice], title: str = "Gantt Chart") -> tuple[Panel, str]:
    """
    Build a Rich Panel holding a colored Gantt bar, plus a line of time marks.

    Gaps (context switches or an idle CPU) are shaded.
    """
    if not slices:
        return Panel("No execution", title=title), ""

    colors: Dict[str, str] = {}
    next_color = cycle(PALETTE)

    bar = Text()
    names = Text()
    marks = ["0"]

    for name, start, end in _segments(slices):
        width = max(1, end - start)
        if name is None:
            bar.append(IDLE_FILL * width, style="dim")
            names.append(" " * width)
        else:
            if name not in colors:
                colors[name] = next(next_color)
            bar.append(" " * width, style=f"on {colors[name]}")
            names.append(name[:width].ljust(width), style="bold")
        marks.append(f"{end:>3}")

    grid = Table.grid(padding=(0, 0))
    grid.add_row(bar)
    grid.add_row(names)

    return Panel.fit(grid, title=title), "".join(marks)
