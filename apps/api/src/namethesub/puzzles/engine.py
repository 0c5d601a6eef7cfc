from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError

from ..core.config import settings
from ..services.reddit import get_content_source
from ..services.store import KeyValueStore, get_store
from .builder import PuzzleBuilder, PuzzleUnavailableError
from .models import DailyPuzzle, GameMode

__all__ = [
    "PuzzleUnavailableError",
    "get_daily_puzzle",
    "puzzle_cache_key",
    "warm_daily_puzzles",
]

logger = logging.getLogger(__name__)


async def _get_store() -> KeyValueStore:
    return await get_store(settings.redis_url)


def puzzle_cache_key(day: date, mode: GameMode) -> str:
    return f"{settings.key_prefix}:puzzle:{day.isoformat()}:{mode.value}"


async def get_daily_puzzle(
    day: date,
    mode: GameMode,
    *,
    store: Optional[KeyValueStore] = None,
    builder: Optional[PuzzleBuilder] = None,
) -> DailyPuzzle:
    """Return the (day, mode) puzzle, building and caching it on first request.

    Two concurrent misses may both build; the builder is deterministic so
    whichever write lands last stores an equivalent puzzle.
    """
    store = store or await _get_store()
    cache_key = puzzle_cache_key(day, mode)

    async def creator() -> dict:
        active_builder = builder or PuzzleBuilder(get_content_source())
        puzzle = await active_builder.build(day, mode)
        return puzzle.model_dump(mode="json")

    payload = await store.remember(cache_key, settings.puzzle_cache_ttl_seconds, creator)
    try:
        return DailyPuzzle.model_validate(payload)
    except ValidationError:
        logger.warning("Discarding malformed cached puzzle at %s", cache_key)
        await store.delete(cache_key)

    payload = await store.remember(cache_key, settings.puzzle_cache_ttl_seconds, creator)
    return DailyPuzzle.model_validate(payload)


async def warm_daily_puzzles(day: date) -> None:
    for mode in GameMode:
        try:
            await get_daily_puzzle(day, mode)
        except Exception as exc:
            logger.warning("Failed to warm %s puzzle cache for %s: %s", mode.value, day.isoformat(), exc)
