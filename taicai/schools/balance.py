from __future__ import annotations

from typing import List, Optional

import numpy as np

from taicai.schools.base import JITTER, School, StrategyParams, Strategy, freq_counts, normalized

PARITY_ATTEMPTS = 8


class BalanceStrategy(Strategy):
    """
    Balance school: one number from each contiguous zone of the range,
    then nudge picks until odd/even counts differ by at most one.
    """

    school = School.BALANCE
    tag = "平衡"

    def score(self, domain, draws, params):
        # Mild preference for numbers that have been quiet
        counts = freq_counts(draws, domain)
        return counts.max() - counts if counts.size else counts

    def select(self, domain, scores, k, rng, params) -> List[int]:
        spread = 1.0 if params.random else JITTER
        noisy = normalized(scores) + rng.random(len(domain)) * spread
        zones = np.array_split(np.arange(len(domain)), k)
        picks = [int(domain[z[np.argmax(noisy[z])]]) for z in zones]

        for _ in range(PARITY_ATTEMPTS):
            odd = sum(1 for p in picks if p % 2)
            even = len(picks) - odd
            if abs(odd - even) <= 1:
                break
            want_odd = odd < even
            # Swap within the zone whose pick has the surplus parity
            for zi, z in enumerate(zones):
                if (picks[zi] % 2 == 1) == want_odd:
                    continue
                options = [i for i in z if (int(domain[i]) % 2 == 1) == want_odd]
                if options:
                    best = max(options, key=lambda i: noisy[i])
                    picks[zi] = int(domain[best])
                    break
            else:
                break
        return picks

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        odd = sum(1 for v in values if v % 2)
        return f"奇偶 {odd}:{len(values) - odd}，區間分散"
