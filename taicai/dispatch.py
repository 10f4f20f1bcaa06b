"""
Prediction Dispatcher

Validates a prediction request, hands a normalized parameter bundle to the
selected school and shapes whatever comes back into one response layout:

  Pack      -> {success, tickets: [...], metadata: {game, school, mode, count, timestamp, version}}
  Selection -> {success, numbers, zone2?, groupReason?, metadata: {...}}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from taicai.errors import InvalidRequest, StrategyFailure
from taicai.games import GAMES, GameDefinition
from taicai.records import DrawRecord, coerce_int, normalize_record
from taicai.results import Pack, Selection
from taicai.schools.ai import AIStrategy
from taicai.schools.balance import BalanceStrategy
from taicai.schools.base import SCHOOL_IDS, School, Strategy, StrategyParams
from taicai.schools.pattern import PatternStrategy
from taicai.schools.stat import StatStrategy
from taicai.schools.wuxing import WuxingStrategy

logger = logging.getLogger(__name__)

VERSION = "2.0.0"
TARGET_COUNT = 5
REQUIRED_FIELDS = ["game", "school", "mode"]

Result = Union[Selection, Pack]


@dataclass(frozen=True)
class PredictionRequest:
    game: str
    school: School
    mode: str
    sub_mode: Optional[str] = None
    user_data: Any = None
    history: Tuple[DrawRecord, ...] = ()
    exclude_numbers: Tuple[int, ...] = ()
    set_index: int = 0
    seed: Any = None
    game_def: Optional[GameDefinition] = field(default=None, compare=False)


def parse_request(payload: Mapping[str, Any]) -> PredictionRequest:
    if not isinstance(payload, Mapping):
        raise InvalidRequest("Request body must be an object", required=REQUIRED_FIELDS)

    missing = [f for f in REQUIRED_FIELDS if not payload.get(f)]
    if missing:
        raise InvalidRequest("Missing required parameters", field=missing[0], required=REQUIRED_FIELDS)

    game = str(payload["game"])
    game_def = GAMES.get(game)
    if game_def is None:
        raise InvalidRequest("Invalid game", field="game", value=game, available=list(GAMES))

    school_id = str(payload["school"])
    if school_id not in SCHOOL_IDS:
        raise InvalidRequest("Unsupported school", field="school", value=school_id, available=SCHOOL_IDS)

    mode = str(payload["mode"])

    exclude_raw = payload.get("excludeNumbers") or []
    if not isinstance(exclude_raw, (list, tuple)):
        raise InvalidRequest("excludeNumbers must be a list of integers", field="excludeNumbers")
    exclude = []
    for v in exclude_raw:
        n = coerce_int(v)
        if n is None:
            raise InvalidRequest("excludeNumbers must be a list of integers", field="excludeNumbers")
        exclude.append(n)

    set_index = coerce_int(payload.get("setIndex", 0) or 0)
    if set_index is None or set_index < 0:
        raise InvalidRequest("setIndex must be a non-negative integer", field="setIndex")

    history_raw = payload.get("historyData") or []
    if not isinstance(history_raw, list):
        raise InvalidRequest("historyData must be a list of draw records", field="historyData")
    history = tuple(normalize_record(game, r, game_def) for r in history_raw if isinstance(r, dict))

    return PredictionRequest(
        game=game,
        school=School(school_id),
        mode=mode,
        sub_mode=payload.get("subMode"),
        user_data=payload.get("userData"),
        history=history,
        exclude_numbers=tuple(exclude),
        set_index=set_index,
        seed=payload.get("seed"),
        game_def=game_def,
    )


def build_params(request: PredictionRequest) -> StrategyParams:
    game_def = request.game_def or GAMES[request.game]
    return StrategyParams(
        data=request.history,
        game_def=game_def,
        sub_mode=request.sub_mode,
        exclude_numbers=request.exclude_numbers,
        random=(request.mode == "random"),
        mode=request.mode,
        set_index=request.set_index,
        pack_mode=request.mode if request.mode.startswith("pack") else None,
        target_count=TARGET_COUNT,
        seed=request.seed,
        user_data=request.user_data,
    )


def strategy_for(school: School) -> Strategy:
    if school is School.BALANCE:
        return BalanceStrategy()
    elif school is School.STAT:
        return StatStrategy()
    elif school is School.PATTERN:
        return PatternStrategy()
    elif school is School.AI:
        return AIStrategy()
    elif school is School.WUXING:
        return WuxingStrategy()
    raise ValueError(f"No strategy registered for {school}")


def dispatch(request: PredictionRequest) -> Result:
    params = build_params(request)
    try:
        return strategy_for(request.school).generate(params)
    except Exception as e:
        logger.exception("[PREDICT] %s/%s/%s failed", request.game, request.school.value, request.mode)
        raise StrategyFailure(request.school.value, e) from e


def _timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat().replace("+00:00", "Z")


def shape_response(result: Result, request: PredictionRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
    base = {"game": request.game, "school": request.school.value, "mode": request.mode}
    if result.kind == "pack":
        tickets = result.to_list()
        return {
            "success": True,
            "tickets": tickets,
            "metadata": {**base, "count": len(tickets), "timestamp": _timestamp(now), "version": VERSION},
        }
    body = result.to_dict()
    # The selection's own metadata wins, except for the stamps
    body["metadata"] = {**base, **body.get("metadata", {}), "timestamp": _timestamp(now), "version": VERSION}
    return {"success": True, **body}


def predict(payload: Mapping[str, Any], expose_errors: bool = False) -> Tuple[int, Dict[str, Any]]:
    """Full request path used by the HTTP layer: (status_code, body)."""
    try:
        request = parse_request(payload)
    except InvalidRequest as e:
        return 400, e.to_dict()

    try:
        result = dispatch(request)
    except StrategyFailure as e:
        return 500, {
            "success": False,
            "error": "Prediction failed",
            "message": str(e.cause) if expose_errors else "Server error",
        }
    return 200, shape_response(result, request)

