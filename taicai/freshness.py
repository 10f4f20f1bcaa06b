from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from taicai.records import DrawRecord

STALE_AFTER_DAYS = 3
NO_DATA_LABEL = "無資料"


@dataclass(frozen=True)
class FreshnessReport:
    status: str  # "success" | "error"
    most_recent_date: Optional[date]
    record_count: int

    @property
    def is_stale(self) -> bool:
        return self.status != "success"

    @property
    def display_date(self) -> str:
        return self.most_recent_date.isoformat() if self.most_recent_date else NO_DATA_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "most_recent_date": self.display_date,
            "record_count": self.record_count,
            "stale": self.is_stale,
        }


def evaluate(timelines: Mapping[str, Sequence[DrawRecord]], now: Union[date, datetime, None] = None) -> FreshnessReport:
    """
    success only when there is data at all and at least one game drew
    within the last three calendar days. Stale data never blocks predictions.
    """
    if now is None:
        now = datetime.now()
    today = now.date() if isinstance(now, datetime) else now
    cutoff = today - timedelta(days=STALE_AFTER_DAYS)

    most_recent: Optional[date] = None
    has_recent = False
    total = 0
    for records in timelines.values():
        total += len(records)
        dated = [r.date for r in records if r.date is not None]
        if not dated:
            continue
        newest = max(dated)
        if most_recent is None or newest > most_recent:
            most_recent = newest
        if newest >= cutoff:
            has_recent = True

    status = "success" if total > 0 and has_recent else "error"
    return FreshnessReport(status=status, most_recent_date=most_recent, record_count=total)
