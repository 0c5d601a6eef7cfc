from __future__ import annotations

import re

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from ..core.config import settings
from ..services.identity import resolve_player_id
from ..services.store import get_store

router = APIRouter()

COUNTER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")


class CounterResponse(BaseModel):
    counter_id: str
    count: int
    player_id: str


def _counter_key(counter_id: str) -> str:
    if not COUNTER_ID_PATTERN.match(counter_id):
        raise HTTPException(status_code=400, detail="counter_id must be 1-64 letters, digits, '-' or '_'")
    return f"{settings.key_prefix}:counter:{counter_id}"


async def _apply(request: Request, counter_id: str, delta: int) -> CounterResponse:
    key = _counter_key(counter_id)
    store = await get_store(settings.redis_url)
    if delta:
        count = await store.increment_by(key, delta)
    else:
        raw = await store.get(key)
        count = int(raw) if raw is not None else 0
    return CounterResponse(counter_id=counter_id, count=count, player_id=resolve_player_id(request))


@router.get("/{counter_id}", response_model=CounterResponse)
async def get_counter(request: Request, counter_id: str) -> CounterResponse:
    return await _apply(request, counter_id, 0)


@router.post("/{counter_id}/increment", response_model=CounterResponse)
async def increment_counter(request: Request, counter_id: str) -> CounterResponse:
    return await _apply(request, counter_id, 1)


@router.post("/{counter_id}/decrement", response_model=CounterResponse)
async def decrement_counter(request: Request, counter_id: str) -> CounterResponse:
    return await _apply(request, counter_id, -1)
