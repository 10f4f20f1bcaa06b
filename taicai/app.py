from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taicai.cache import SqliteCache
from taicai.config import Settings, load_settings
from taicai.data_sources import SourceConfig
from taicai.dispatch import VERSION, predict
from taicai.games import GAME_ORDER, GAMES
from taicai.hot_numbers import filter_timeline
from taicai.pack import expand
from taicai.reconcile import HttpSources, Reconciler
from taicai.schedule import game_summary, history_row

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "POST /api/predict",
    "POST /api/pack",
    "GET /api/history/{game}",
    "GET /api/stats/{game}",
    "GET /api/status",
    "POST /api/refresh",
]


class PredictBody(BaseModel):
    game: Optional[str] = None
    school: Optional[str] = None
    mode: Optional[str] = None
    subMode: Optional[str] = None
    userData: Optional[Any] = None
    historyData: Optional[List[Dict[str, Any]]] = None
    excludeNumbers: Optional[List[Any]] = None
    setIndex: Optional[Any] = 0
    seed: Optional[Any] = None


class PackBody(BaseModel):
    game: Optional[str] = None
    numbers: List[Any] = []
    zone2: Optional[List[Any]] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _unknown_game(game: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid game", "game": game, "available": list(GAMES)},
    )


def build_reconciler(settings: Settings) -> Reconciler:
    sources = HttpSources(SourceConfig.from_settings(settings))
    return Reconciler(sources, cache=SqliteCache(settings.cache_db_path), cooldown=settings.reconcile_cooldown)


def create_app(reconciler: Optional[Reconciler] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    app = FastAPI(title="Taicai Analyzer", version=VERSION)
    app.state.settings = settings
    app.state.reconciler = reconciler or build_reconciler(settings)

    @app.on_event("startup")
    async def _startup():
        logger.info("[STARTUP] Reconciling draw history (env=%s)", settings.app_env)
        try:
            snap = await app.state.reconciler.run_cycle()
            if snap is not None:
                logger.info("[STARTUP] Data status: %s", snap.freshness.status)
        except Exception:
            logger.exception("[STARTUP] Initial reconciliation failed, serving empty data")

    @app.get("/health")
    def health():
        return {"status": "ok", "timestamp": _now_iso(), "version": VERSION}

    @app.get("/api/test")
    def api_test():
        return {"status": "ok", "message": "API is running", "timestamp": _now_iso(), "endpoints": ENDPOINTS}

    @app.post("/api/predict")
    def api_predict(body: PredictBody):
        status, content = predict(body.model_dump(), expose_errors=settings.expose_errors)
        return JSONResponse(status_code=status, content=content)

    @app.post("/api/pack")
    def api_pack(body: PackBody):
        """Second phase of pack mode: expand a candidate pool into full tickets."""
        if not body.game:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "Missing required parameters", "required": ["game", "numbers"]},
            )
        game_def = GAMES.get(body.game)
        if game_def is None:
            return _unknown_game(body.game)
        tickets = expand(body.numbers, game_def, zone2=body.zone2, limit=settings.pack_expansion_limit)
        return {
            "success": True,
            "tickets": [t.to_dict() for t in tickets],
            "metadata": {
                "game": body.game,
                "mode": "pack",
                "count": len(tickets),
                "timestamp": _now_iso(),
                "version": VERSION,
            },
        }

    @app.get("/api/history/{game}")
    def api_history(
        game: str,
        limit: int = 100,
        year: Optional[int] = None,
        month: Optional[int] = None,
        period: Optional[str] = None,
        order: str = "size",
    ):
        game_def = GAMES.get(game)
        if game_def is None:
            return _unknown_game(game)
        rows = filter_timeline(app.state.reconciler.merged().timeline(game), period=period, year=year, month=month)
        limited = rows[:max(limit, 0)]
        return {
            "game": game,
            "data": [r.to_dict() for r in limited],
            "display": [history_row(game_def, r, order) for r in limited],
            "count": len(limited),
            "total": len(rows),
            "filters": {"limit": limit, "year": year, "month": month, "period": period},
        }

    @app.get("/api/stats/{game}")
    def api_stats(game: str, order: str = "size"):
        game_def = GAMES.get(game)
        if game_def is None:
            return _unknown_game(game)
        merged = app.state.reconciler.merged()
        return game_summary(game_def, merged.timeline(game), merged.jackpots.get(game), order=order)

    @app.get("/api/status")
    def api_status():
        rec: Reconciler = app.state.reconciler
        snap = rec.snapshot
        out: Dict[str, Any] = {"lifecycle": rec.state.value, "games": [g.name for g in GAME_ORDER]}
        if snap is None:
            out.update({"status": "error", "most_recent_date": None, "record_count": 0, "phase": None})
            return out
        out.update(snap.freshness.to_dict())
        out.update({
            "phase": snap.phase,
            "built_at": snap.built_at.isoformat(),
            "last_updated": snap.last_updated,
            "counts": {g: len(t) for g, t in snap.merged.timelines.items()},
        })
        return out

    @app.post("/api/refresh")
    async def api_refresh():
        snap = await app.state.reconciler.run_cycle()
        return {
            "lifecycle": app.state.reconciler.state.value,
            "status": snap.freshness.status if snap else "error",
            "phase": snap.phase if snap else None,
        }

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("[ERROR] %s %s", request.method, request.url.path)
        message = str(exc) if settings.expose_errors else "Internal server error"
        return JSONResponse(status_code=500, content={"success": False, "error": message})

    return app


app = create_app()
