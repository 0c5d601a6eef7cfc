from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from redis.exceptions import RedisError

from ..puzzles.day_keys import resolve_day_key
from ..puzzles.engine import PuzzleUnavailableError
from ..puzzles.models import (
    GameStateResponse,
    GiveUpResponse,
    GuessResponse,
    LockModeResponse,
    normalize_mode,
)
from ..services.game_session import get_game_session
from ..services.identity import resolve_player_id

logger = logging.getLogger(__name__)

router = APIRouter()

RETRY_MESSAGE = "Today's puzzle is unavailable right now. Please try again shortly."


class ModePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Any = None
    day_key: Any = Field(default=None, validation_alias=AliasChoices("day_key", "dateKey"))


class GuessPayload(ModePayload):
    guess: Any = Field(default=None, validation_alias=AliasChoices("guess", "subredditGuess"))
    stage_used: Any = Field(default=None, validation_alias=AliasChoices("stage_used", "stageUsed"))


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


@contextmanager
def _retryable_errors() -> Iterator[None]:
    try:
        yield
    except PuzzleUnavailableError as exc:
        logger.warning("Puzzle unavailable: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=RETRY_MESSAGE) from exc
    except RedisError as exc:
        logger.exception("Store unavailable")
        raise HTTPException(status_code=503, detail=RETRY_MESSAGE) from exc


@router.get("/state", response_model=GameStateResponse)
async def get_state(
    request: Request,
    mode: Optional[str] = Query(default=None),
    day_key: Optional[str] = Query(default=None, description="Client day in YYYY-MM-DD format"),
    date_key: Optional[str] = Query(default=None, alias="dateKey"),
) -> GameStateResponse:
    player_id = resolve_player_id(request)
    session = await get_game_session()
    with _retryable_errors():
        return await session.request_state(
            player_id, normalize_mode(mode), resolve_day_key(day_key or date_key)
        )


@router.post("/lock", response_model=LockModeResponse)
async def lock_mode(request: Request) -> LockModeResponse:
    payload = ModePayload.model_validate(await _read_body(request))
    player_id = resolve_player_id(request)
    session = await get_game_session()
    with _retryable_errors():
        return await session.commit(
            player_id, normalize_mode(payload.mode), resolve_day_key(payload.day_key)
        )


@router.post("/guess", response_model=GuessResponse)
async def submit_guess(request: Request) -> GuessResponse:
    payload = GuessPayload.model_validate(await _read_body(request))
    player_id = resolve_player_id(request)
    session = await get_game_session()
    with _retryable_errors():
        return await session.guess(
            player_id,
            normalize_mode(payload.mode),
            resolve_day_key(payload.day_key),
            payload.guess,
            payload.stage_used,
        )


@router.post("/giveup", response_model=GiveUpResponse)
async def give_up(request: Request) -> GiveUpResponse:
    payload = ModePayload.model_validate(await _read_body(request))
    player_id = resolve_player_id(request)
    session = await get_game_session()
    with _retryable_errors():
        return await session.give_up(
            player_id, normalize_mode(payload.mode), resolve_day_key(payload.day_key)
        )
