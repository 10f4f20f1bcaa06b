from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple, Union

from taicai.games import GameDefinition

Period = Union[str, int]

_DATE_RE = re.compile(r"^\s*(\d{2,4})[/\-.](\d{1,2})[/\-.](\d{1,2})")


@dataclass(frozen=True)
class DrawRecord:
    game: str
    period: Period
    date: Optional[date]
    numbers: Tuple[int, ...]
    numbers_size: Tuple[int, ...]
    jackpot: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.game, period_key(self.period))

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update({
            "period": self.period,
            "date": self.date.isoformat() if self.date else None,
            "numbers": list(self.numbers),
            "numbers_size": list(self.numbers_size),
        })
        if self.jackpot is not None:
            out["jackpot"] = self.jackpot
        return out


def period_key(period: Any) -> str:
    return str(period).strip()


def period_sort_key(period: Any) -> Tuple[int, Any]:
    # Numeric periods compare as numbers, anything else falls back to text
    text = period_key(period)
    if text.isdigit():
        return (1, int(text))
    return (0, text)


def normalize_date(value: Any) -> Optional[date]:
    """
    Sources disagree on date shape:
      '2024-01-02', '2024-01-02T00:00:00.000Z', '2024/01/02',
      or ROC calendar '113/01/02' from the official exports.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    m = _DATE_RE.match(s)
    if not m:
        return None
    year, month, day = (int(p) for p in m.groups())
    if year < 1911:
        year += 1911
    try:
        return date(year, month, day)
    except ValueError:
        return None


def coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            try:
                f = float(s)
            except ValueError:
                return None
            return int(f) if f.is_integer() else None
    return None


def parse_jackpot(value: Any) -> Optional[int]:
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
    n = coerce_int(value)
    if n is None and isinstance(value, (str, float)):
        try:
            n = int(float(value))
        except (ValueError, OverflowError):
            return None
    if n is None or n <= 0:
        return None
    return n


def clean_numbers(raw: Any, game_def: Optional[GameDefinition]) -> Tuple[int, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    lo = game_def.min_value if game_def else 1
    hi = game_def.range if game_def else None
    out = []
    for item in raw:
        n = coerce_int(item)
        if n is None or n < lo:
            continue
        if hi is not None and n > hi:
            continue
        out.append(n)
    if game_def is not None:
        if game_def.type == "today":
            out = out[:5]
        elif game_def.type == "digit":
            out = out[:game_def.count]
    return tuple(out)


def normalize_record(game: str, raw: Dict[str, Any], game_def: Optional[GameDefinition]) -> DrawRecord:
    numbers = clean_numbers(raw.get("numbers"), game_def)
    numbers_size = clean_numbers(raw.get("numbers_size"), game_def)
    if not numbers_size and numbers:
        numbers_size = tuple(sorted(numbers))
    extra = {k: v for k, v in raw.items() if k not in ("period", "date", "numbers", "numbers_size", "jackpot")}
    return DrawRecord(
        game=game,
        period=raw.get("period", ""),
        date=normalize_date(raw.get("date")),
        numbers=numbers,
        numbers_size=numbers_size,
        jackpot=parse_jackpot(raw.get("jackpot")),
        extra=extra,
    )
