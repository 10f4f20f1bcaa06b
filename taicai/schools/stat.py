from __future__ import annotations

from typing import List, Optional

import numpy as np

from taicai.schools.base import School, StrategyParams, Strategy, freq_counts


class StatStrategy(Strategy):
    """Frequency school: favours numbers drawn most often in the supplied history."""

    school = School.STAT
    tag = "熱門"

    def score(self, domain, draws, params):
        return freq_counts(draws, domain)

    def tag_for(self, value: int, params: StrategyParams) -> str:
        if not params.data:
            return "機率"
        return self.tag

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        if not params.data:
            return "無歷史資料，依機率均分"
        # Digit tickets may repeat a value; count each distinct one once
        picked = np.array(sorted(set(values)), dtype=int)
        counts = freq_counts(self.main_draws(params), picked) if values else []
        return f"近 {len(params.data)} 期出現次數 {int(sum(counts))}"
