"""
Hot Numbers
Frequency rankings over any newest-first slice of a game's timeline.
NOT predictions - purely historical frequency observations.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple

from taicai.records import DrawRecord

HOT_TOP = 5

# (label, number of newest records; None = whole timeline)
HOT_WINDOWS = [("all", None), ("recent30", 30), ("recent10", 10)]


def rolling_window(draws_desc: Sequence[DrawRecord], k: Optional[int]) -> Sequence[DrawRecord]:
    return draws_desc if k is None else draws_desc[:k]


def hot_numbers(window: Sequence[DrawRecord], top: int = HOT_TOP) -> Optional[List[Tuple[int, int]]]:
    """
    Top numbers by appearance count in the as-drawn `numbers` field.
    Equal counts are ordered by ascending value.
    Returns None for an empty window so "no data" is not mistaken for ties.
    """
    if not window:
        return None
    counts = Counter(n for d in window for n in d.numbers)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return ranked[:top]


def hot_number_panels(timeline: Sequence[DrawRecord]) -> Dict[str, Any]:
    panels: Dict[str, Any] = {}
    for label, k in HOT_WINDOWS:
        ranked = hot_numbers(rolling_window(timeline, k))
        if ranked is None:
            panels[label] = {"error": "No data available"}
        else:
            panels[label] = [{"n": n, "c": c} for n, c in ranked]
    return panels


def filter_timeline(
    timeline: Sequence[DrawRecord],
    period: Optional[str] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> List[DrawRecord]:
    """Dashboard filters: period substring, draw year, draw month."""
    out = list(timeline)
    if period:
        out = [d for d in out if period in str(d.period)]
    if year:
        out = [d for d in out if d.date is not None and d.date.year == year]
    if month:
        out = [d for d in out if d.date is not None and d.date.month == month]
    return out
