from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from taicai.data_sources import BaselineFeed
from taicai.records import DrawRecord


def make_raw(period: Any, day: Any, numbers: List[Any], **extra: Any) -> Dict[str, Any]:
    out = {"period": period, "date": day, "numbers": numbers}
    out.update(extra)
    return out


def make_record(game: str, period: Any, day: Optional[date], numbers: List[int]) -> DrawRecord:
    return DrawRecord(
        game=game,
        period=period,
        date=day,
        numbers=tuple(numbers),
        numbers_size=tuple(sorted(numbers)),
    )


class FakeSources:
    """Stands in for HttpSources; counts calls so tests can see what was fetched."""

    def __init__(self, baseline=None, archives=None, live=None, archive_urls=None):
        self.baseline = baseline or BaselineFeed()
        self.archives = archives or {}
        self.live_batch = live or {}
        self.archive_urls = archive_urls if archive_urls is not None else list(self.archives)
        self.archive_calls: List[List[str]] = []
        self.live_calls = 0

    async def baseline_and_archives(self, urls):
        self.archive_calls.append(list(urls))
        return self.baseline, [self.archives.get(u) for u in urls]

    async def live(self):
        self.live_calls += 1
        return self.live_batch


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def raw():
    return make_raw


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sources():
    return FakeSources
