"""
Merge Engine

Combines draw batches from every source into one canonical timeline per game.
Precedence, lowest to highest:

    baseline < archive years (in order) < local cache < live feed

A higher source replaces the whole record for the same (game, period).
Jackpots come from the live feed only: the newest record per game that
carries a positive amount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from taicai.games import GAMES, GameDefinition
from taicai.records import DrawRecord, normalize_record, parse_jackpot, period_key, period_sort_key

logger = logging.getLogger(__name__)

RawBatch = Mapping[str, List[Dict[str, Any]]]
Timeline = Tuple[DrawRecord, ...]


@dataclass(frozen=True)
class MergedData:
    timelines: Dict[str, Timeline] = field(default_factory=dict)
    jackpots: Dict[str, int] = field(default_factory=dict)

    def timeline(self, game: str) -> Timeline:
        return self.timelines.get(game, ())

    @property
    def record_count(self) -> int:
        return sum(len(t) for t in self.timelines.values())


def _sort_key(record: DrawRecord) -> Tuple[int, date, Tuple[int, Any]]:
    # Undated records sink below every dated one
    if record.date is None:
        return (0, date.min, period_sort_key(record.period))
    return (1, record.date, period_sort_key(record.period))


def order_newest_first(records: Iterable[DrawRecord]) -> Timeline:
    return tuple(sorted(records, key=_sort_key, reverse=True))


def latest_live_jackpots(live: Optional[RawBatch]) -> Dict[str, int]:
    """Newest-by-date positive jackpot per game in the live batch."""
    out: Dict[str, int] = {}
    if not live:
        return out
    for game, rows in live.items():
        best: Optional[DrawRecord] = None
        for raw in rows or []:
            if not isinstance(raw, dict) or parse_jackpot(raw.get("jackpot")) is None:
                continue
            rec = normalize_record(game, raw, GAMES.get(game))
            if best is None or _sort_key(rec) > _sort_key(best):
                best = rec
        if best is not None and best.jackpot is not None:
            out[game] = best.jackpot
    return out


def merge(
    baseline: Optional[RawBatch],
    archives: Iterable[Optional[RawBatch]],
    cache: Optional[RawBatch],
    live: Optional[RawBatch],
    games: Mapping[str, GameDefinition] = GAMES,
    baseline_jackpots: Optional[Mapping[str, Any]] = None,
) -> MergedData:
    """
    Build a fresh MergedData from the given batches. Inputs are not mutated
    and None / empty batches count as empty contributions.
    """
    layers: List[Tuple[str, Optional[RawBatch]]] = [("baseline", baseline)]
    layers.extend((f"archive[{i}]", batch) for i, batch in enumerate(archives))
    layers.append(("cache", cache))
    layers.append(("live", live))

    by_game: Dict[str, Dict[str, DrawRecord]] = {}
    for source, batch in layers:
        if not batch:
            continue
        for game, rows in batch.items():
            if not isinstance(rows, list):
                logger.warning("[MERGE] %s: ignoring non-list rows for %s", source, game)
                continue
            game_def = games.get(game)
            slot = by_game.setdefault(game, {})
            for raw in rows:
                if not isinstance(raw, dict):
                    continue
                rec = normalize_record(game, raw, game_def)
                # later layer wins on the same period
                slot[period_key(rec.period)] = rec

    timelines = {game: order_newest_first(slot.values()) for game, slot in by_game.items()}

    jackpots: Dict[str, int] = {}
    for game, amount in (baseline_jackpots or {}).items():
        value = parse_jackpot(amount)
        if value is not None:
            jackpots[game] = value
    jackpots.update(latest_live_jackpots(live))

    logger.debug(
        "[MERGE] %s",
        ", ".join(f"{g}={len(t)}" for g, t in timelines.items()) or "no records",
    )
    return MergedData(timelines=timelines, jackpots=jackpots)
