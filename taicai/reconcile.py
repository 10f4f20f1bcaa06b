"""
Reconciliation cycle.

Pass 1 merges baseline + archive years + local cache and publishes a
snapshot right away. Pass 2 adds the live feed on top, publishes again and
overwrites the local cache with the live batch. Snapshots are replaced
wholesale so readers never see a half-merged state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from taicai.cache import CacheStore, MemoryCache
from taicai.data_sources import BaselineFeed, RawBatch, SourceConfig, fetch_all_archives, fetch_baseline, fetch_live
from taicai.freshness import FreshnessReport, evaluate
from taicai.merge import MergedData, merge

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = 5.0


class Lifecycle(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class Snapshot:
    merged: MergedData
    freshness: FreshnessReport
    phase: str  # "initial" | "refresh"
    built_at: datetime
    last_updated: Optional[str] = None


class HttpSources:
    def __init__(self, cfg: SourceConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg
        self.transport = transport

    @property
    def archive_urls(self) -> List[str]:
        return list(self.cfg.archive_urls)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.cfg.timeout, transport=self.transport, follow_redirects=True)

    async def baseline_and_archives(self, urls: List[str]) -> Tuple[BaselineFeed, List[Optional[RawBatch]]]:
        async with self._client() as client:
            baseline, archives = await asyncio.gather(
                fetch_baseline(client, self.cfg),
                fetch_all_archives(client, urls),
            )
        return baseline, archives

    async def live(self) -> RawBatch:
        async with self._client() as client:
            return await fetch_live(client, self.cfg)


class Reconciler:
    def __init__(
        self,
        sources: Any,
        cache: Optional[CacheStore] = None,
        cooldown: float = DEFAULT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.sources = sources
        self.cache = cache if cache is not None else MemoryCache()
        self.cooldown = cooldown
        self.clock = clock
        self.now = now
        self.state = Lifecycle.UNINITIALIZED
        self._snapshot: Optional[Snapshot] = None
        self._archives: Dict[str, RawBatch] = {}
        self._last_trigger: Optional[float] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def merged(self) -> MergedData:
        snap = self._snapshot
        return snap.merged if snap else MergedData()

    def _publish(self, merged: MergedData, phase: str, last_updated: Optional[str]) -> Snapshot:
        snap = Snapshot(
            merged=merged,
            freshness=evaluate(merged.timelines, self.now()),
            phase=phase,
            built_at=self.now(),
            last_updated=last_updated,
        )
        self._snapshot = snap  # single reference swap
        logger.info(
            "[RECONCILE] %s pass: %d records, status=%s (latest %s)",
            phase, merged.record_count, snap.freshness.status, snap.freshness.display_date,
        )
        return snap

    def _read_cache(self) -> Optional[RawBatch]:
        try:
            payload = self.cache.get()
        except Exception as e:
            logger.warning("[CACHE] Local cache read failed: %s", e)
            return None
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            return None
        return payload["data"]

    def _write_cache(self, live: RawBatch) -> None:
        try:
            self.cache.set(live)
        except Exception as e:
            logger.warning("[CACHE] Local cache write failed: %s", e)

    async def run_cycle(self, on_initial: Optional[Callable[[Snapshot], Any]] = None) -> Optional[Snapshot]:
        if self.state is Lifecycle.INITIALIZING:
            logger.warning("[RECONCILE] Cycle already running, skipping concurrent trigger")
            return self._snapshot
        t = self.clock()
        if self._last_trigger is not None and t - self._last_trigger < self.cooldown:
            logger.warning("[RECONCILE] Triggered again within %.0fs cooldown, skipping", self.cooldown)
            return self._snapshot
        self._last_trigger = t
        self.state = Lifecycle.INITIALIZING

        try:
            urls = list(self.sources.archive_urls)
            missing = [u for u in urls if u not in self._archives]
            baseline, fetched = await self.sources.baseline_and_archives(missing)
            for url, batch in zip(missing, fetched):
                if batch is not None:
                    self._archives[url] = batch
            archives = [self._archives.get(u) for u in urls]
            cached = self._read_cache()

            snap = self._publish(
                merge(baseline.games, archives, cached, None, baseline_jackpots=baseline.jackpots),
                "initial",
                baseline.last_updated,
            )
            if on_initial is not None:
                on_initial(snap)

            live = await self.sources.live()
            if live:
                snap = self._publish(
                    merge(baseline.games, archives, cached, live, baseline_jackpots=baseline.jackpots),
                    "refresh",
                    baseline.last_updated,
                )
                self._write_cache(live)
            else:
                logger.info("[RECONCILE] No live data this cycle, keeping initial pass")
        except Exception:
            self.state = Lifecycle.READY if self._snapshot is not None else Lifecycle.UNINITIALIZED
            raise

        self.state = Lifecycle.READY
        return snap
