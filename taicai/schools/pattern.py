from __future__ import annotations

from itertools import combinations
from typing import Dict, List, Optional, Tuple

import numpy as np

from taicai.schools.base import School, StrategyParams, Strategy, freq_counts

REPEAT_WEIGHT = 0.5


def pair_counts(draws: List[Tuple[int, ...]]) -> Dict[Tuple[int, int], int]:
    pairs: Dict[Tuple[int, int], int] = {}
    for d in draws:
        for a, b in combinations(sorted(set(d)), 2):
            pairs[(a, b)] = pairs.get((a, b), 0) + 1
    return pairs


class PatternStrategy(Strategy):
    """Association school: numbers that historically travel with the latest draw."""

    school = School.PATTERN
    tag = "關聯"

    def score(self, domain, draws, params):
        if not draws:
            return np.zeros(len(domain), dtype=float)
        latest = set(draws[0])
        pairs = pair_counts(draws)
        scores = np.zeros(len(domain), dtype=float)
        for i, n in enumerate(domain):
            n = int(n)
            for m in latest:
                if m != n:
                    scores[i] += pairs.get((min(n, m), max(n, m)), 0)
            if n in latest:
                scores[i] += REPEAT_WEIGHT * len(draws)
        # light tie-break on raw frequency
        return scores + freq_counts(draws, domain) * 0.01

    def tag_for(self, value: int, params: StrategyParams) -> str:
        if params.data and value in params.data[0].numbers:
            return "連莊"
        return self.tag

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        if not params.data:
            return None
        return f"參考第 {params.data[0].period} 期號碼關聯"
