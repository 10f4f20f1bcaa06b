"""
Shared machinery for the prediction schools.

Every school scores a number domain from history and the base class turns
those scores into tickets shaped for the game:

  lotto / today : `count` distinct numbers
  power         : `count` distinct main numbers + one zone-2 number
  digit         : one digit per position (repeats allowed), tagged Pos1..PosN

Modes: single / random -> Selection, pack_1 -> game-specific pack (or a
candidate pool for lotto games), any other pack* -> `target_count` tickets.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from taicai.games import GameDefinition
from taicai.records import DrawRecord
from taicai.results import Pack, Selection, TaggedNumber

JITTER = 0.25
CANDIDATE_EXTRA = 2
ZONE2_TAG = "二區"


class School(str, Enum):
    BALANCE = "balance"
    STAT = "stat"
    PATTERN = "pattern"
    AI = "ai"
    WUXING = "wuxing"


SCHOOL_IDS = [s.value for s in School]


@dataclass(frozen=True)
class StrategyParams:
    data: Tuple[DrawRecord, ...]
    game_def: GameDefinition
    sub_mode: Optional[str] = None
    exclude_numbers: Tuple[int, ...] = ()
    random: bool = False
    mode: str = "single"
    set_index: int = 0
    pack_mode: Optional[str] = None
    target_count: int = 5
    seed: Any = None
    user_data: Any = None


def seed_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return abs(value)
    return zlib.crc32(str(value).encode("utf-8"))


def freq_counts(draws: Sequence[Sequence[int]], domain: np.ndarray) -> np.ndarray:
    """Appearances of each domain value, aligned with `domain` in whatever order it comes."""
    domain = np.asarray(domain, dtype=int)
    if domain.size == 0:
        return np.zeros(0, dtype=float)
    lo, hi = int(domain.min()), int(domain.max())
    counts = np.zeros(hi - lo + 1, dtype=float)
    for d in draws:
        for n in d:
            if lo <= n <= hi:
                counts[n - lo] += 1.0
    return counts[domain - lo]


def normalized(scores: np.ndarray) -> np.ndarray:
    span = float(scores.max() - scores.min()) if scores.size else 0.0
    if span <= 0:
        return np.zeros_like(scores, dtype=float)
    return (scores - scores.min()) / span


class Strategy:
    school: School = School.STAT
    tag = ""
    reason = ""

    # ----- hooks for subclasses -----

    def score(self, domain: np.ndarray, draws: List[Tuple[int, ...]], params: StrategyParams) -> np.ndarray:
        return freq_counts(draws, domain)

    def tag_for(self, value: int, params: StrategyParams) -> str:
        return self.tag

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        return self.reason or None

    def select(self, domain: np.ndarray, scores: np.ndarray, k: int, rng: np.random.Generator,
               params: StrategyParams) -> List[int]:
        if params.random:
            weights = normalized(scores) + 0.1
            picks = rng.choice(domain, size=k, replace=False, p=weights / weights.sum())
            return [int(n) for n in picks]
        jittered = normalized(scores) + rng.random(len(domain)) * JITTER
        order = np.argsort(-jittered, kind="stable")[:k]
        return [int(domain[i]) for i in order]

    # ----- history views -----

    def rng(self, params: StrategyParams, salt: int = 0) -> np.random.Generator:
        school_salt = SCHOOL_IDS.index(self.school.value)
        if params.seed is not None:
            return np.random.default_rng([seed_int(params.seed), params.set_index, salt, school_salt])
        if params.random:
            return np.random.default_rng()
        return np.random.default_rng([params.set_index, salt, school_salt, len(params.data)])

    def main_draws(self, params: StrategyParams) -> List[Tuple[int, ...]]:
        g = params.game_def
        if g.type == "today":
            return [d.numbers for d in params.data]
        # Drop the trailing bonus / zone-2 number
        return [d.numbers[:g.count] for d in params.data]

    def zone2_draws(self, params: StrategyParams) -> List[Tuple[int, ...]]:
        g = params.game_def
        return [(d.numbers[g.count],) for d in params.data if len(d.numbers) > g.count]

    def position_draws(self, params: StrategyParams, pos: int) -> List[Tuple[int, ...]]:
        return [(d.numbers[pos],) for d in params.data if len(d.numbers) > pos]

    # ----- ticket building -----

    def _domain(self, lo: int, hi: int, exclude: Sequence[int]) -> np.ndarray:
        skip = set(exclude)
        return np.array([n for n in range(lo, hi + 1) if n not in skip], dtype=int)

    def pick_main(self, params: StrategyParams, rng: np.random.Generator, k: int) -> List[int]:
        g = params.game_def
        domain = self._domain(g.min_value, g.range, params.exclude_numbers)
        if len(domain) < k:
            raise ValueError(f"Only {len(domain)} numbers left after exclusions, need {k}")
        scores = self.score(domain, self.main_draws(params), params)
        return sorted(self.select(domain, scores, k, rng, params))

    def rank_zone2(self, params: StrategyParams, rng: np.random.Generator) -> List[int]:
        g = params.game_def
        domain = self._domain(1, g.zone2 or 1, ())
        scores = normalized(self.score(domain, self.zone2_draws(params), params))
        if params.random:
            scores = scores + rng.random(len(domain))
        else:
            scores = scores + rng.random(len(domain)) * JITTER
        return [int(domain[i]) for i in np.argsort(-scores, kind="stable")]

    def rank_digits(self, params: StrategyParams, rng: np.random.Generator) -> List[List[int]]:
        g = params.game_def
        domain = self._domain(g.min_value, g.range, params.exclude_numbers)
        if len(domain) == 0:
            raise ValueError("Every digit is excluded")
        ranked = []
        for pos in range(g.count):
            scores = normalized(self.score(domain, self.position_draws(params, pos), params))
            scores = scores + rng.random(len(domain)) * (1.0 if params.random else JITTER)
            ranked.append([int(domain[i]) for i in np.argsort(-scores, kind="stable")])
        return ranked

    def _tagged(self, values: Sequence[int], params: StrategyParams) -> List[TaggedNumber]:
        return [TaggedNumber(v, self.tag_for(v, params)) for v in values]

    def _digit_ticket(self, digits: Sequence[int], reason: Optional[str]) -> Selection:
        return Selection(
            numbers=[TaggedNumber(d, f"Pos{i + 1}") for i, d in enumerate(digits)],
            group_reason=reason,
        )

    def single(self, params: StrategyParams, rng: np.random.Generator) -> Selection:
        g = params.game_def
        if g.type == "digit":
            digits = [ranked[0] for ranked in self.rank_digits(params, rng)]
            return self._digit_ticket(digits, self.group_reason(digits, params))
        values = self.pick_main(params, rng, g.count)
        zone2: List[TaggedNumber] = []
        if g.type == "power":
            zone2 = [TaggedNumber(self.rank_zone2(params, rng)[0], ZONE2_TAG)]
        return Selection(
            numbers=self._tagged(values, params),
            zone2=zone2,
            group_reason=self.group_reason(values, params),
        )

    def primary_pack(self, params: StrategyParams) -> Union[Selection, Pack]:
        g = params.game_def
        rng = self.rng(params)
        if g.type == "power":
            values = self.pick_main(params, rng, g.count)
            main = self._tagged(values, params)
            return Pack([
                Selection(numbers=main, zone2=[TaggedNumber(z, ZONE2_TAG)], group_reason="二區包牌")
                for z in range(1, (g.zone2 or 1) + 1)
            ])
        if g.type == "digit":
            top = [ranked[:2] for ranked in self.rank_digits(params, rng)]
            return Pack([self._digit_ticket(combo, "強勢包牌") for combo in product(*top)])
        # Lotto games answer with a candidate pool; the caller expands it later
        available = len(self._domain(g.min_value, g.range, params.exclude_numbers))
        k = min(g.count + CANDIDATE_EXTRA, available)
        values = self.pick_main(params, rng, k)
        return Selection(
            numbers=self._tagged(values, params),
            group_reason="智能包牌候選",
            metadata={"isCandidate": True},
        )

    def generate(self, params: StrategyParams) -> Union[Selection, Pack]:
        if params.pack_mode is None:
            return self.single(params, self.rng(params))
        if params.pack_mode == "pack_1":
            return self.primary_pack(params)
        return Pack([self.single(params, self.rng(params, salt=i + 1)) for i in range(params.target_count)])
