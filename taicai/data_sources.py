from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from taicai.config import Settings
from taicai.errors import SourceUnavailable

logger = logging.getLogger(__name__)

RawBatch = Dict[str, List[Dict[str, Any]]]

# Column names used by the official Taiwan Lottery CSV exports
CSV_GAME = "遊戲名稱"
CSV_PERIOD = "期別"
CSV_DATE = "開獎日期"
CSV_NUMBER_PREFIX = "獎號"
CSV_BONUS_FIELDS = ("特別號", "第二區")
CSV_JACKPOT_FIELDS = ("累積至下期獎金", "頭獎累積")


@dataclass(frozen=True)
class SourceConfig:
    data_url: str
    archive_urls: List[str]
    live_url: str = ""
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings, current_year: Optional[int] = None) -> "SourceConfig":
        year = current_year or datetime.now().year
        urls = [settings.archive_url.format(year=y) for y in range(settings.archive_start_year, year + 1)]
        return cls(
            data_url=settings.data_url,
            archive_urls=urls,
            live_url=settings.live_url,
            timeout=settings.fetch_timeout,
        )


@dataclass
class BaselineFeed:
    games: RawBatch = field(default_factory=dict)
    jackpots: Dict[str, Any] = field(default_factory=dict)
    last_updated: Optional[str] = None


def _headers() -> Dict[str, str]:
    return {"Accept": "application/json, application/zip, */*"}


def _as_batch(data: Any) -> RawBatch:
    """Keep only {game: [record, ...]} entries, accepting a {"games": {...}} wrapper."""
    if isinstance(data, dict) and isinstance(data.get("games"), dict):
        data = data["games"]
    if not isinstance(data, dict):
        return {}
    out: RawBatch = {}
    for game, rows in data.items():
        if isinstance(rows, list):
            out[str(game)] = [r for r in rows if isinstance(r, dict)]
    return out


def _log_unavailable(err: SourceUnavailable) -> None:
    logger.warning("[DATA_SOURCES] %s unavailable, using empty contribution: %s", err.source, err.reason)


async def _get(client: httpx.AsyncClient, source: str, url: str, **kwargs: Any) -> httpx.Response:
    try:
        r = await client.get(url, headers=_headers(), **kwargs)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise SourceUnavailable(source, str(e) or e.__class__.__name__) from e
    return r


def _json(r: httpx.Response, source: str) -> Any:
    try:
        return r.json()
    except ValueError as e:
        raise SourceUnavailable(source, f"invalid JSON: {e}") from e


def parse_winning_numbers_field(s: str) -> List[str]:
    """Official exports sometimes keep the numbers in one cell: '01 04 13 21 35'."""
    return [p.strip() for p in s.replace(",", " ").split() if p.strip()]


def parse_csv_rows(text: str) -> RawBatch:
    """
    Official CSV layout:
      遊戲名稱,期別,開獎日期,銷售總額,...,獎號1,獎號2,...,特別號
    Numbers stay as strings here; the merge step coerces them.
    """
    out: RawBatch = {}
    reader = csv.DictReader(io.StringIO(text))
    for row in reader:
        game = (row.get(CSV_GAME) or "").strip()
        if not game:
            continue
        number_cols = sorted(
            (k for k in row if k and k.startswith(CSV_NUMBER_PREFIX) and k[len(CSV_NUMBER_PREFIX):].isdigit()),
            key=lambda k: int(k[len(CSV_NUMBER_PREFIX):]),
        )
        numbers: List[str] = []
        for col in number_cols:
            value = (row.get(col) or "").strip()
            if value:
                numbers.extend(parse_winning_numbers_field(value))
        for col in CSV_BONUS_FIELDS:
            value = (row.get(col) or "").strip()
            if value:
                numbers.append(value)
                break
        record: Dict[str, Any] = {
            "period": (row.get(CSV_PERIOD) or "").strip(),
            "date": (row.get(CSV_DATE) or "").strip(),
            "numbers": numbers,
        }
        for col in CSV_JACKPOT_FIELDS:
            if row.get(col):
                record["jackpot"] = row[col]
                break
        out.setdefault(game, []).append(record)
    return out


def parse_archive_zip(content: bytes) -> RawBatch:
    out: RawBatch = {}
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        for name in sorted(zf.namelist()):
            lower = name.lower()
            if lower.endswith(".json"):
                part = _as_batch(json.loads(zf.read(name).decode("utf-8-sig")))
            elif lower.endswith(".csv"):
                part = parse_csv_rows(zf.read(name).decode("utf-8-sig"))
            else:
                continue
            for game, rows in part.items():
                out.setdefault(game, []).extend(rows)
    return out


async def fetch_baseline(client: httpx.AsyncClient, cfg: SourceConfig) -> BaselineFeed:
    """Static baseline JSON: {games: {...}, jackpots: {...}, last_updated: '...'}."""
    source = f"baseline {cfg.data_url}"
    try:
        r = await _get(client, source, cfg.data_url, params={"t": str(int(datetime.now().timestamp()))})
        data = _json(r, source)
        if not isinstance(data, dict):
            raise SourceUnavailable(source, "Unexpected baseline response")
    except SourceUnavailable as e:
        _log_unavailable(e)
        return BaselineFeed()

    jackpots = data.get("jackpots") if isinstance(data.get("jackpots"), dict) else {}
    last_updated = data.get("last_updated")
    return BaselineFeed(
        games=_as_batch(data),
        jackpots=dict(jackpots),
        last_updated=str(last_updated) if last_updated else None,
    )


async def fetch_archive(client: httpx.AsyncClient, url: str) -> Optional[RawBatch]:
    """One year bundle. None means the fetch failed and should be retried next cycle."""
    source = f"archive {url}"
    try:
        r = await _get(client, source, url)
        try:
            return parse_archive_zip(r.content)
        except (zipfile.BadZipFile, ValueError, UnicodeDecodeError, KeyError) as e:
            raise SourceUnavailable(source, f"unreadable bundle: {e}") from e
    except SourceUnavailable as e:
        _log_unavailable(e)
        return None


async def fetch_all_archives(client: httpx.AsyncClient, urls: List[str]) -> List[Optional[RawBatch]]:
    # gather keeps input order, so results line up with ascending years
    return list(await asyncio.gather(*(fetch_archive(client, u) for u in urls)))


async def fetch_live(client: httpx.AsyncClient, cfg: SourceConfig) -> RawBatch:
    if not cfg.live_url:
        return {}
    source = f"live {cfg.live_url}"
    try:
        r = await _get(client, source, cfg.live_url)
        return _as_batch(_json(r, source))
    except SourceUnavailable as e:
        _log_unavailable(e)
        return {}
