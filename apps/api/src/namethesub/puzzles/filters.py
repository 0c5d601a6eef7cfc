from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from ..core.config import Settings, settings
from ..services.reddit import CommunityInfo
from .models import GameMode

MIN_COMMENT_LENGTH = 25
REMOVED_MARKERS = frozenset({"[deleted]", "[removed]"})
SELF_REFERENCE_PHRASES = ("this sub", "this subreddit")
BOT_SIGNATURES = ("i am a bot", "i'm a bot", "automod")


class CommunityVerdict(str, Enum):
    REJECTED = "rejected"
    QUALIFIED = "qualified"
    UNKNOWN_SAFE = "unknown_safe"


def is_adult_community(info: CommunityInfo) -> bool:
    return info.over_18


def min_subscribers_for_mode(mode: GameMode, config: Settings = settings) -> int:
    if mode is GameMode.EASY:
        return config.easy_min_subscribers
    if mode is GameMode.MEDIUM:
        return config.medium_min_subscribers
    return 0


def max_subscribers_for_mode(mode: GameMode, config: Settings = settings) -> Optional[int]:
    # The middle tier stays below the easy floor so it never outranks easy.
    if mode is GameMode.MEDIUM:
        return config.easy_min_subscribers
    return None


def classify_community(
    info: CommunityInfo, mode: GameMode, config: Settings = settings
) -> CommunityVerdict:
    if is_adult_community(info):
        return CommunityVerdict.REJECTED
    if mode is GameMode.HARD:
        return CommunityVerdict.QUALIFIED
    if info.subscribers is None:
        return CommunityVerdict.UNKNOWN_SAFE
    if info.subscribers < min_subscribers_for_mode(mode, config):
        return CommunityVerdict.REJECTED
    ceiling = max_subscribers_for_mode(mode, config)
    if ceiling is not None and info.subscribers >= ceiling:
        return CommunityVerdict.REJECTED
    return CommunityVerdict.QUALIFIED


def is_present_comment(body: Optional[str]) -> bool:
    text = (body or "").strip()
    return bool(text) and text not in REMOVED_MARKERS


def _mentions_community(lowered: str, community: str) -> bool:
    name = community.strip().lower()
    if not name:
        return False
    pattern = rf"(?<![a-z0-9_]){re.escape(name)}(?![a-z0-9_])"
    return re.search(pattern, lowered) is not None


def is_usable_comment(body: Optional[str], community: str) -> bool:
    """Whether a comment is a fair clue: substantial and not giving the answer away."""
    if not is_present_comment(body):
        return False
    text = (body or "").strip()
    if len(text) < MIN_COMMENT_LENGTH:
        return False
    lowered = text.lower()
    if _mentions_community(lowered, community):
        return False
    if any(phrase in lowered for phrase in SELF_REFERENCE_PHRASES):
        return False
    if any(signature in lowered for signature in BOT_SIGNATURES):
        return False
    return True
