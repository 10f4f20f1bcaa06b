from __future__ import annotations

import logging
from itertools import combinations
from typing import Any, Iterable, List, Optional

from taicai.games import GameDefinition
from taicai.records import coerce_int
from taicai.results import Selection, TaggedNumber
from taicai.schools.base import ZONE2_TAG

logger = logging.getLogger(__name__)

PACK_TAG = "包牌"


def _clean_pool(values: Iterable[Any], lo: int, hi: int) -> List[int]:
    pool = set()
    for v in values or []:
        if isinstance(v, dict):
            v = v.get("val")
        n = coerce_int(v)
        if n is not None and lo <= n <= hi:
            pool.add(n)
    return sorted(pool)


def expand(
    candidates: Iterable[Any],
    game_def: GameDefinition,
    zone2: Optional[Iterable[Any]] = None,
    limit: Optional[int] = None,
) -> List[Selection]:
    """
    Every ticket drawable from a candidate pool, in lexicographic order.
    Candidates may be ints or {val, tag} dicts straight from a phase-1 result.
    Digit games expand to box (組彩) combinations. Power tickets pair each main
    combination with every zone-2 candidate. A pool smaller than the game's
    count yields no tickets.
    """
    pool = _clean_pool(candidates, game_def.min_value, game_def.range)
    if len(pool) < game_def.count:
        return []

    zone2_pool: List[Optional[int]] = [None]
    if game_def.type == "power" and zone2 is not None:
        zone2_pool = list(_clean_pool(zone2, 1, game_def.zone2 or 1)) or [None]

    tickets: List[Selection] = []
    for combo in combinations(pool, game_def.count):
        for z in zone2_pool:
            if limit is not None and len(tickets) >= limit:
                logger.warning("[PACK] %s expansion truncated at %d tickets", game_def.name, limit)
                return tickets
            tickets.append(Selection(
                numbers=[TaggedNumber(n, PACK_TAG) for n in combo],
                zone2=[TaggedNumber(z, ZONE2_TAG)] if z is not None else [],
                metadata={"packIndex": len(tickets) + 1},
            ))
    return tickets
