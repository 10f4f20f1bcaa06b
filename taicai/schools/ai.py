from __future__ import annotations

from typing import List, Optional

import numpy as np

from taicai.schools.base import School, StrategyParams, Strategy, freq_counts, normalized

DECAY = 0.9
W_RECENT = 0.5
W_FREQ = 0.3
W_GAP = 0.2


class AIStrategy(Strategy):
    """Scored heuristic: blends decayed recency, raw frequency and gap since last seen."""

    school = School.AI
    tag = "AI"

    def score(self, domain, draws, params):
        if not draws:
            return np.ones(len(domain), dtype=float)
        recent = np.zeros(len(domain), dtype=float)
        last_seen = np.full(len(domain), len(draws), dtype=float)
        index = {int(n): i for i, n in enumerate(domain)}
        for age, d in enumerate(draws):  # newest first
            weight = DECAY ** age
            for n in d:
                i = index.get(n)
                if i is None:
                    continue
                recent[i] += weight
                if last_seen[i] == len(draws):
                    last_seen[i] = age
        freq = freq_counts(draws, domain)
        return W_RECENT * normalized(recent) + W_FREQ * normalized(freq) + W_GAP * normalized(last_seen) + 0.05

    def select(self, domain, scores, k, rng, params) -> List[int]:
        # Always a weighted draw; determinism comes from the rng seeding
        weights = np.clip(scores, 1e-6, None)
        picks = rng.choice(domain, size=k, replace=False, p=weights / weights.sum())
        return [int(n) for n in picks]

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        return f"AI 綜合評分（近期權重 {W_RECENT}、頻率 {W_FREQ}、遺漏 {W_GAP}）"
