"""
Five-elements school with four sub-modes driven by the caller's profile
(`userData = {"name": ..., "birthday": "YYYY-MM-DD"}`):

  wuxing   : favour numbers of the birth year's element
  ziwei    : heavenly stem / earthly branch of the birth year
  starsign : western zodiac sign of the birthday
  name     : code-point sum of the name
"""

from __future__ import annotations

import zlib
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np

from taicai.records import normalize_date
from taicai.schools.base import School, StrategyParams, Strategy, freq_counts, normalized

SUB_MODES = ("wuxing", "ziwei", "starsign", "name")

# Hetu pairing of final digits to elements
ELEMENT_BY_DIGIT = {1: "水", 6: "水", 2: "火", 7: "火", 3: "木", 8: "木", 4: "金", 9: "金", 5: "土", 0: "土"}
# Birth-year element by the year's last digit
YEAR_ELEMENT = {0: "金", 1: "金", 2: "水", 3: "水", 4: "木", 5: "木", 6: "火", 7: "火", 8: "土", 9: "土"}

# (month, day) each sign starts on, in calendar order
ZODIAC_STARTS = [
    (1, 20), (2, 19), (3, 21), (4, 20), (5, 21), (6, 22),
    (7, 23), (8, 23), (9, 23), (10, 24), (11, 23), (12, 22),
]


def element_of(n: int) -> str:
    return ELEMENT_BY_DIGIT[n % 10]


def zodiac_index(d: date) -> int:
    idx = 11  # Capricorn until Jan 20
    for i, (m, day) in enumerate(ZODIAC_STARTS):
        if (d.month, d.day) >= (m, day):
            idx = i
    return idx


def _profile(user_data: Any) -> Dict[str, Any]:
    return user_data if isinstance(user_data, dict) else {}


class WuxingStrategy(Strategy):
    school = School.WUXING
    tag = "五行"

    def sub_mode(self, params: StrategyParams) -> str:
        mode = params.sub_mode or "wuxing"
        if mode not in SUB_MODES:
            raise ValueError(f"Unknown wuxing sub-mode: {mode}")
        return mode

    def anchor(self, params: StrategyParams) -> int:
        profile = _profile(params.user_data)
        birthday = normalize_date(profile.get("birthday"))
        name = str(profile.get("name") or "")
        mode = self.sub_mode(params)
        if mode == "name":
            return sum(ord(c) for c in name) if name else zlib.crc32(b"anonymous")
        if birthday is None:
            return zlib.crc32(name.encode("utf-8")) % 60
        if mode == "ziwei":
            stem, branch = (birthday.year - 4) % 10, (birthday.year - 4) % 12
            return stem * 12 + branch
        if mode == "starsign":
            return zodiac_index(birthday) + birthday.day
        return birthday.year

    def user_element(self, params: StrategyParams) -> Optional[str]:
        if self.sub_mode(params) != "wuxing":
            return None
        birthday = normalize_date(_profile(params.user_data).get("birthday"))
        return YEAR_ELEMENT[birthday.year % 10] if birthday else None

    def score(self, domain, draws, params):
        anchor = self.anchor(params)
        element = self.user_element(params)
        span = max(len(domain), 1)
        scores = np.zeros(len(domain), dtype=float)
        for i, n in enumerate(domain):
            n = int(n)
            if element and element_of(n) == element:
                scores[i] += 1.0
            # numbers resonating with the anchor
            if (n - anchor) % span in (0, 3, 6) or n % 9 == anchor % 9:
                scores[i] += 0.5
        return scores + normalized(freq_counts(draws, domain)) * 0.1

    def tag_for(self, value: int, params: StrategyParams) -> str:
        return element_of(value)

    def group_reason(self, values: List[int], params: StrategyParams) -> Optional[str]:
        mode = self.sub_mode(params)
        element = self.user_element(params)
        if element:
            return f"五行屬{element}"
        return {"ziwei": "紫微命盤", "starsign": "星座運勢", "name": "姓名筆劃"}.get(mode, self.tag)
