from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

import httpx

from ..core.config import Settings, settings
from ..services.reddit import (
    CommunityInfo,
    ContentSource,
    ListingSort,
    RedditComment,
    RedditError,
    RedditPost,
)
from .filters import CommunityVerdict, classify_community, is_present_comment, is_usable_comment
from .models import DailyPuzzle, GameMode
from .sampler import deterministic_shuffle, pick

logger = logging.getLogger(__name__)

LISTING_STRATEGIES: Sequence[ListingSort] = (ListingSort.NEW, ListingSort.HOT)

_LOOKUP_ERRORS = (RedditError, httpx.HTTPError)


class PuzzleUnavailableError(RuntimeError):
    """Raised when the content source runs dry before a puzzle could be assembled."""

    def __init__(self, message: str, *, status_code: int = 503) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class CommunityScan:
    qualified: List[CommunityInfo] = field(default_factory=list)
    unknown_safe: List[CommunityInfo] = field(default_factory=list)
    adult: set[str] = field(default_factory=set)


def unique_communities(posts: Sequence[RedditPost]) -> List[str]:
    seen: set[str] = set()
    names: List[str] = []
    for post in posts:
        name = (post.community or "").strip()
        if not name:
            continue
        key = name.casefold()
        if key in seen:
            continue
        seen.add(key)
        names.append(name)
    return names


def largest_half(bucket: Sequence[CommunityInfo]) -> List[CommunityInfo]:
    ranked = sorted(bucket, key=lambda info: (-(info.subscribers or 0), info.name.casefold()))
    keep = max(1, math.ceil(len(ranked) / 2))
    return ranked[:keep]


class PuzzleBuilder:
    """Turns a (day, mode) pair into a DailyPuzzle using only deterministic picks."""

    def __init__(self, source: ContentSource, config: Settings = settings) -> None:
        self.source = source
        self.config = config

    async def build(self, day_key: date, mode: GameMode) -> DailyPuzzle:
        seed_base = f"{day_key.isoformat()}:{mode.value}"
        community, info = await self._choose_community(seed_base, mode)

        posts = await self._list_posts(community, self.config.community_listing_limit)
        safe_posts = [post for post in posts if not post.over_18] or posts
        if not safe_posts:
            raise PuzzleUnavailableError(f"No posts found for r/{community}")
        post = pick(safe_posts, f"{seed_base}:{community}:post")

        comment = await self._choose_comment(seed_base, community, post)

        logger.info(
            "Built %s puzzle for %s from r/%s (post %s, comment %s)",
            mode.value,
            day_key.isoformat(),
            community,
            post.id,
            comment.id,
        )
        return DailyPuzzle(
            day_key=day_key,
            mode=mode,
            community=community,
            source_post_id=post.id,
            source_post_title=post.title,
            source_post_body=post.body,
            source_comment_id=comment.id,
            source_comment_body=comment.body,
            source_post_permalink=post.permalink,
            community_subscribers=info.subscribers if info else None,
        )

    async def _list_posts(self, community: Optional[str], limit: int) -> List[RedditPost]:
        for sort in LISTING_STRATEGIES:
            try:
                posts = await self.source.list_posts(community, sort=sort, limit=limit)
            except _LOOKUP_ERRORS as exc:
                logger.warning(
                    "Listing %s posts for r/%s failed: %s", sort.value, community or "all", exc
                )
                continue
            if posts:
                return posts
        return []

    async def _scan(self, ordered: Sequence[str], mode: GameMode) -> CommunityScan:
        scan = CommunityScan()
        for name in ordered[: self.config.scan_limit]:
            try:
                info = await self.source.get_community_info(name)
            except _LOOKUP_ERRORS as exc:
                logger.debug("Skipping r/%s, metadata lookup failed: %s", name, exc)
                continue
            info = info.model_copy(update={"name": name})
            verdict = classify_community(info, mode, self.config)
            if verdict is CommunityVerdict.REJECTED:
                if info.over_18:
                    scan.adult.add(name.casefold())
                continue
            if verdict is CommunityVerdict.UNKNOWN_SAFE:
                scan.unknown_safe.append(info)
                continue
            scan.qualified.append(info)
            if mode is GameMode.HARD or len(scan.qualified) >= self.config.qualified_cap:
                break
        return scan

    async def _choose_community(
        self, seed_base: str, mode: GameMode
    ) -> Tuple[str, Optional[CommunityInfo]]:
        posts = await self._list_posts(None, self.config.global_listing_limit)
        candidates = unique_communities(posts)
        if not candidates:
            raise PuzzleUnavailableError("No candidate communities in the global feed")

        ordered = deterministic_shuffle(candidates, f"{seed_base}:scan")
        scan = await self._scan(ordered, mode)

        qualified = scan.qualified
        if mode is GameMode.EASY and qualified:
            qualified = largest_half(qualified)
        strategies: Sequence[Tuple[str, List[CommunityInfo]]] = (
            ("qualified", qualified),
            ("unknown", scan.unknown_safe),
        )
        for label, bucket in strategies:
            if bucket:
                chosen = pick(bucket, f"{seed_base}:pick-{label}")
                return chosen.name, chosen

        fallback = [name for name in ordered if name.casefold() not in scan.adult] or ordered
        name = pick(fallback, f"{seed_base}:pick-fallback")
        logger.warning("No %s community passed the scan; falling back to r/%s", mode.value, name)
        return name, None

    async def _choose_comment(
        self, seed_base: str, community: str, post: RedditPost
    ) -> RedditComment:
        try:
            comments = await self.source.list_comments(post.id, limit=self.config.comment_limit)
        except _LOOKUP_ERRORS as exc:
            logger.warning("Fetching comments for post %s failed: %s", post.id, exc)
            comments = []

        limit = self.config.comment_pool_limit
        pool = [comment for comment in comments if is_usable_comment(comment.body, community)][:limit]
        if not pool:
            pool = [comment for comment in comments if is_present_comment(comment.body)][:limit]
        if not pool:
            raise PuzzleUnavailableError(f"No usable comments for post {post.id}")
        return pick(pool, f"{seed_base}:{community}:comment")
