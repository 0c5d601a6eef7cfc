from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from ..core.config import Settings, settings
from ..puzzles.day_keys import parse_day_key, previous_day
from ..puzzles.models import GameMode, PlayerDayFlags, PlayerModeState
from .store import KeyValueStore

logger = logging.getLogger(__name__)

FLAG_SET = 1


def _as_int(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def _as_flag(raw: Any) -> bool:
    return raw is not None and str(raw) in {"1", "true", "True"}


def next_streak(previous_streak: int, last_played: Optional[date], day: date) -> int:
    if last_played is not None and last_played == previous_day(day):
        return previous_streak + 1
    return 1


class PlayerStateStore:
    """Per-player score, streak and daily flags, addressed by composite keys.

    Totals live forever; daily flags expire after ``player_flag_ttl_seconds``.
    Daily flags are written with ``set_if_absent`` so only one request can
    flip each of them.
    """

    def __init__(self, store: KeyValueStore, config: Settings = settings) -> None:
        self.store = store
        self.config = config

    def _user_key(self, user_id: str, mode: GameMode, suffix: str) -> str:
        return f"{self.config.key_prefix}:user:{user_id}:{mode.value}:{suffix}"

    def score_key(self, user_id: str, mode: GameMode) -> str:
        return self._user_key(user_id, mode, "score")

    def streak_key(self, user_id: str, mode: GameMode) -> str:
        return self._user_key(user_id, mode, "streak")

    def last_played_key(self, user_id: str, mode: GameMode) -> str:
        return self._user_key(user_id, mode, "lastDate")

    def points_key(self, user_id: str, mode: GameMode, day: date) -> str:
        return self._user_key(user_id, mode, f"played:{day.isoformat()}")

    def commit_key(self, user_id: str, mode: GameMode, day: date) -> str:
        return self._user_key(user_id, mode, f"commit:{day.isoformat()}")

    def completed_key(self, user_id: str, mode: GameMode, day: date) -> str:
        return self._user_key(user_id, mode, f"completed:{day.isoformat()}")

    async def load_mode_state(self, user_id: str, mode: GameMode) -> PlayerModeState:
        total_score = _as_int(await self.store.get(self.score_key(user_id, mode)))
        streak = _as_int(await self.store.get(self.streak_key(user_id, mode)))
        last_played = parse_day_key(await self.store.get(self.last_played_key(user_id, mode)))
        return PlayerModeState(total_score=total_score, streak=streak, last_played_day=last_played)

    async def load_day_flags(self, user_id: str, mode: GameMode, day: date) -> PlayerDayFlags:
        return PlayerDayFlags(
            committed=_as_flag(await self.store.get(self.commit_key(user_id, mode, day))),
            points_awarded=_as_flag(await self.store.get(self.points_key(user_id, mode, day))),
            completed=_as_flag(await self.store.get(self.completed_key(user_id, mode, day))),
        )

    async def is_committed(self, user_id: str, mode: GameMode, day: date) -> bool:
        return _as_flag(await self.store.get(self.commit_key(user_id, mode, day)))

    async def is_completed(self, user_id: str, mode: GameMode, day: date) -> bool:
        return _as_flag(await self.store.get(self.completed_key(user_id, mode, day)))

    async def mark_committed(self, user_id: str, mode: GameMode, day: date) -> bool:
        return await self.store.set_if_absent(
            self.commit_key(user_id, mode, day), FLAG_SET, self.config.player_flag_ttl_seconds
        )

    async def mark_completed(self, user_id: str, mode: GameMode, day: date) -> bool:
        await self.mark_committed(user_id, mode, day)
        return await self.store.set_if_absent(
            self.completed_key(user_id, mode, day), FLAG_SET, self.config.player_flag_ttl_seconds
        )

    async def claim_points(self, user_id: str, mode: GameMode, day: date) -> bool:
        """Claim today's single win award. Only the first caller gets True."""
        await self.mark_committed(user_id, mode, day)
        return await self.store.set_if_absent(
            self.points_key(user_id, mode, day), FLAG_SET, self.config.player_flag_ttl_seconds
        )

    async def record_win(self, user_id: str, mode: GameMode, day: date, points: int) -> PlayerModeState:
        current = await self.load_mode_state(user_id, mode)
        if current.last_played_day is not None and day < current.last_played_day:
            # A late win for an earlier day only adds points.
            updated = current.model_copy(update={"total_score": current.total_score + points})
            await self.store.set(self.score_key(user_id, mode), updated.total_score)
        else:
            updated = PlayerModeState(
                total_score=current.total_score + points,
                streak=next_streak(current.streak, current.last_played_day, day),
                last_played_day=day,
            )
            await self.store.set(self.score_key(user_id, mode), updated.total_score)
            await self.store.set(self.streak_key(user_id, mode), updated.streak)
            await self.store.set(self.last_played_key(user_id, mode), day.isoformat())
        logger.info(
            "Player %s won %s on %s for %d points (streak %d)",
            user_id,
            mode.value,
            day.isoformat(),
            points,
            updated.streak,
        )
        return updated
