from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


class GameMode(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DEFAULT_MODE = GameMode.MEDIUM

Stage = Literal[1, 2, 3]
FINAL_STAGE: Stage = 3


def normalize_mode(raw: Any) -> GameMode:
    if isinstance(raw, GameMode):
        return raw
    value = str(raw if raw is not None else "").strip().lower()
    try:
        return GameMode(value)
    except ValueError:
        return DEFAULT_MODE


class DailyPuzzle(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_key: date
    mode: GameMode
    community: str
    source_post_id: str
    source_post_title: str
    source_post_body: str
    source_comment_id: str
    source_comment_body: str
    source_post_permalink: Optional[str] = None
    community_subscribers: Optional[int] = None


class PlayerModeState(BaseModel):
    total_score: int = 0
    streak: int = 0
    last_played_day: Optional[date] = None


class PlayerDayFlags(BaseModel):
    committed: bool = False
    points_awarded: bool = False
    completed: bool = False


class GameStateResponse(BaseModel):
    puzzle: DailyPuzzle
    mode_locked: GameMode
    committed: bool
    completed: bool
    total_score: int
    streak: int
    last_played_day: Optional[date] = None


class LockModeResponse(BaseModel):
    mode_locked: GameMode
    committed: bool = True
    completed: bool


class GuessResponse(BaseModel):
    correct: bool
    stage_used: Stage
    points_awarded: int
    answer: str
    total_score: int
    streak: int
    mode_locked: GameMode
    committed: bool = True
    completed: bool


class GiveUpResponse(BaseModel):
    mode_locked: GameMode
    committed: bool = True
    completed: bool = True
    answer: str
