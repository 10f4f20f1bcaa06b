from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

RawBatch = Dict[str, List[Dict[str, Any]]]


class CacheStore(Protocol):
    def get(self) -> Optional[Dict[str, Any]]: ...

    def set(self, batch: RawBatch) -> None: ...


class MemoryCache:
    def __init__(self, payload: Optional[Dict[str, Any]] = None):
        self._payload = payload

    def get(self) -> Optional[Dict[str, Any]]:
        return self._payload

    def set(self, batch: RawBatch) -> None:
        self._payload = {"data": batch, "saved_at": datetime.now().isoformat()}


class SqliteCache:
    """Single-slot store for the latest live batch, overwritten wholesale."""

    def __init__(self, path: str):
        self.path = path

    def connect(self) -> sqlite3.Connection:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def init_db(self) -> None:
        conn = self.connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS live_cache (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    payload TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                );
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get(self) -> Optional[Dict[str, Any]]:
        self.init_db()
        conn = self.connect()
        try:
            row = conn.execute("SELECT payload, saved_at FROM live_cache WHERE id = 1").fetchone()
        finally:
            conn.close()
        if not row:
            return None
        try:
            data = json.loads(row[0])
        except ValueError as e:
            logger.warning("[CACHE] Discarding unreadable cache payload: %s", e)
            return None
        if not isinstance(data, dict):
            return None
        return {"data": data, "saved_at": row[1]}

    def set(self, batch: RawBatch) -> None:
        self.init_db()
        conn = self.connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO live_cache (id, payload, saved_at) VALUES (1, ?, ?)",
                (json.dumps(batch, ensure_ascii=False, default=str), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
