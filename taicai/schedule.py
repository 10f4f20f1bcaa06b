from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Sequence, Union

from taicai.games import GameDefinition
from taicai.hot_numbers import hot_number_panels
from taicai.records import DrawRecord

UNSCHEDULED = "--"
JACKPOT_PENDING = "累計中"

# Index 0 = Sunday, matching GameDefinition.draw_days
WEEKDAY_LABELS = ["日", "一", "二", "三", "四", "五", "六"]


@dataclass(frozen=True)
class NextDraw:
    date: date
    weekday_label: str
    days_away: int

    def display(self) -> str:
        return f"{self.date.strftime('%Y/%m/%d')} ({self.weekday_label})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_date": self.date.isoformat(),
            "next_day": self.weekday_label,
            "days_away": self.days_away,
            "display": self.display(),
        }


def sunday_weekday(d: date) -> int:
    return (d.weekday() + 1) % 7


def next_draw_date(draw_days: Sequence[int], today: Union[date, datetime, None] = None) -> Optional[NextDraw]:
    """
    Smallest draw weekday on or after today's weekday, else the first draw
    weekday of next week. None when the game has no schedule.
    """
    days = sorted(set(d for d in draw_days if 0 <= d <= 6))
    if not days:
        return None
    if today is None:
        today = datetime.now()
    if isinstance(today, datetime):
        today = today.date()

    current = sunday_weekday(today)
    days_ahead = None
    for d in days:
        if d >= current:
            days_ahead = d - current
            break
    if days_ahead is None:
        # Wrap around to next week
        days_ahead = (7 - current) + days[0]

    nxt = today + timedelta(days=days_ahead)
    return NextDraw(date=nxt, weekday_label=WEEKDAY_LABELS[sunday_weekday(nxt)], days_away=days_ahead)


def split_special(game_def: GameDefinition, numbers: Sequence[int]):
    """Trailing bonus / zone-2 number is shown apart from the main ones."""
    if game_def.type != "digit" and (game_def.type == "power" or game_def.special) and len(numbers) > game_def.count:
        return list(numbers[:-1]), numbers[-1]
    return list(numbers), None


def history_row(game_def: GameDefinition, record: DrawRecord, order: str = "size") -> Dict[str, Any]:
    # Bonus is always the last drawn number, so split on the as-drawn order
    main, special = split_special(game_def, record.numbers)
    if order == "size":
        main = sorted(main)
    return {
        "period": record.period,
        "date": record.date.isoformat() if record.date else None,
        "numbers": main,
        "special": special,
    }


def game_summary(
    game_def: GameDefinition,
    timeline: Sequence[DrawRecord],
    jackpot: Optional[int] = None,
    today: Union[date, datetime, None] = None,
    order: str = "size",
) -> Dict[str, Any]:
    nxt = next_draw_date(game_def.draw_days, today)
    return {
        "game": game_def.name,
        "type": game_def.type,
        "total_count": len(timeline),
        "latest_period": timeline[0].period if timeline else None,
        "jackpot": jackpot if jackpot else JACKPOT_PENDING,
        "next_draw": nxt.to_dict() if nxt else UNSCHEDULED,
        "hot": hot_number_panels(timeline),
        "recent": [history_row(game_def, r, order) for r in timeline[:5]],
    }
