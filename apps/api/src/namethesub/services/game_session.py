"""Per-player, per-mode, per-day game flow.

States for one (player, mode, day)::

    Fresh --commit/guess--> Committed --win / final miss / give up--> Completed

Completed is absorbing: later guesses and give-ups replay the finished result
without touching score or streak. Flags are always read back from the store;
nothing here keeps state between calls.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

from ..core.config import Settings, settings
from ..puzzles.engine import get_daily_puzzle
from ..puzzles.models import (
    FINAL_STAGE,
    DailyPuzzle,
    GameMode,
    GameStateResponse,
    GiveUpResponse,
    GuessResponse,
    LockModeResponse,
    Stage,
)
from .player_state import PlayerStateStore
from .store import KeyValueStore, get_store

logger = logging.getLogger(__name__)

STAGE_POINTS: Dict[int, int] = {1: 100, 2: 60, 3: 30}

COMMUNITY_PREFIX_PATTERN = re.compile(r"^/?r/", re.IGNORECASE)
DISALLOWED_GUESS_CHARS = re.compile(r"[^A-Za-z0-9_]")

PuzzleLoader = Callable[[date, GameMode], Awaitable[DailyPuzzle]]


def normalize_guess(raw: Any) -> str:
    text = str(raw if raw is not None else "").strip()
    text = COMMUNITY_PREFIX_PATTERN.sub("", text)
    return DISALLOWED_GUESS_CHARS.sub("", text)


def normalize_stage(raw: Any) -> Stage:
    try:
        stage = int(raw)
    except (TypeError, ValueError):
        return FINAL_STAGE
    if stage in STAGE_POINTS:
        return stage  # type: ignore[return-value]
    return FINAL_STAGE


def points_for_stage(stage: int) -> int:
    return STAGE_POINTS.get(stage, STAGE_POINTS[FINAL_STAGE])


def is_correct_guess(guess: str, answer: str) -> bool:
    normalized = normalize_guess(guess)
    return bool(normalized) and normalized.casefold() == answer.casefold()


class GameSession:
    """Request-facing operations for the daily game."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        load_puzzle: Optional[PuzzleLoader] = None,
        config: Settings = settings,
    ) -> None:
        self.players = PlayerStateStore(store, config)
        self._load_puzzle = load_puzzle or partial(get_daily_puzzle, store=store)

    async def request_state(self, user_id: str, mode: GameMode, day: date) -> GameStateResponse:
        flags = await self.players.load_day_flags(user_id, mode, day)
        puzzle = await self._load_puzzle(day, mode)
        totals = await self.players.load_mode_state(user_id, mode)
        return GameStateResponse(
            puzzle=puzzle,
            mode_locked=mode,
            committed=flags.committed,
            completed=flags.completed,
            total_score=totals.total_score,
            streak=totals.streak,
            last_played_day=totals.last_played_day,
        )

    async def commit(self, user_id: str, mode: GameMode, day: date) -> LockModeResponse:
        if not await self.players.is_committed(user_id, mode, day):
            await self.players.mark_committed(user_id, mode, day)
        completed = await self.players.is_completed(user_id, mode, day)
        return LockModeResponse(mode_locked=mode, committed=True, completed=completed)

    async def guess(
        self,
        user_id: str,
        mode: GameMode,
        day: date,
        guess_text: Any,
        stage_used: Any,
    ) -> GuessResponse:
        stage = normalize_stage(stage_used)
        if not await self.players.is_committed(user_id, mode, day):
            await self.players.mark_committed(user_id, mode, day)

        puzzle = await self._load_puzzle(day, mode)
        answer = puzzle.community
        correct = is_correct_guess(guess_text, answer)

        if await self.players.is_completed(user_id, mode, day):
            totals = await self.players.load_mode_state(user_id, mode)
            return GuessResponse(
                correct=correct,
                stage_used=stage,
                points_awarded=0,
                answer=answer,
                total_score=totals.total_score,
                streak=totals.streak,
                mode_locked=mode,
                completed=True,
            )

        points_awarded = 0
        if correct and await self.players.claim_points(user_id, mode, day):
            points_awarded = points_for_stage(stage)
            await self.players.record_win(user_id, mode, day, points_awarded)

        if correct or stage == FINAL_STAGE:
            await self.players.mark_completed(user_id, mode, day)

        totals = await self.players.load_mode_state(user_id, mode)
        completed = await self.players.is_completed(user_id, mode, day)
        return GuessResponse(
            correct=correct,
            stage_used=stage,
            points_awarded=points_awarded,
            answer=answer,
            total_score=totals.total_score,
            streak=totals.streak,
            mode_locked=mode,
            completed=completed,
        )

    async def give_up(self, user_id: str, mode: GameMode, day: date) -> GiveUpResponse:
        if not await self.players.is_completed(user_id, mode, day):
            await self.players.mark_completed(user_id, mode, day)
            logger.debug("Player %s gave up %s on %s", user_id, mode.value, day.isoformat())
        puzzle = await self._load_puzzle(day, mode)
        return GiveUpResponse(mode_locked=mode, completed=True, answer=puzzle.community)


async def get_game_session() -> GameSession:
    store = await get_store(settings.redis_url)
    return GameSession(store)
