from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

import httpx
from pydantic import BaseModel, model_validator

from ..core.config import settings

logger = logging.getLogger(__name__)

GLOBAL_FEED = "all"
MAX_PAGE_SIZE = 100

SUBSCRIBER_FIELDS: Sequence[str] = (
    "subscribers",
    "subscriberCount",
    "subscriber_count",
    "subscribersCount",
    "communitySize",
)
ADULT_FIELDS: Sequence[str] = ("over18", "over_18", "nsfw", "isNsfw", "isOver18")


class RedditError(RuntimeError):
    """Raised when Reddit cannot be reached or returns an unusable payload."""


class ListingSort(str, Enum):
    NEW = "new"
    HOT = "hot"


def _probe_flag(payload: Dict[str, Any], fields: Sequence[str]) -> bool:
    return any(payload.get(field) is True for field in fields)


def _probe_count(payload: Dict[str, Any], fields: Sequence[str]) -> Optional[int]:
    for field in fields:
        value = payload.get(field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if not math.isfinite(value):
            continue
        return int(value)
    return None


class RedditPost(BaseModel):
    id: str
    community: Optional[str] = None
    title: str = ""
    body: str = ""
    permalink: Optional[str] = None
    over_18: bool = False

    @model_validator(mode="before")
    @classmethod
    def _probe_fields(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        community = value.get("subredditName")
        subreddit = value.get("subreddit")
        if not community and isinstance(subreddit, dict):
            community = subreddit.get("name") or subreddit.get("display_name")
        if not community and isinstance(subreddit, str):
            community = subreddit
        body = value.get("selftext")
        if body is None:
            body = value.get("body")
        return {
            "id": value.get("id"),
            "community": community or value.get("community"),
            "title": value.get("title") or "",
            "body": str(body or ""),
            "permalink": value.get("permalink"),
            "over_18": _probe_flag(value, ADULT_FIELDS),
        }


class RedditComment(BaseModel):
    id: str
    body: str = ""
    author: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _probe_fields(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        body = value.get("body")
        if body is None:
            body = value.get("text")
        return {
            "id": value.get("id"),
            "body": str(body or "").strip(),
            "author": value.get("author"),
        }


class CommunityInfo(BaseModel):
    name: str
    subscribers: Optional[int] = None
    over_18: bool = False

    @model_validator(mode="before")
    @classmethod
    def _probe_fields(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            "name": value.get("display_name") or value.get("name"),
            "subscribers": _probe_count(value, SUBSCRIBER_FIELDS),
            "over_18": _probe_flag(value, ADULT_FIELDS),
        }


class ContentSource(ABC):
    """Read-only view of the community/post/comment platform."""

    @abstractmethod
    async def list_posts(
        self,
        community: Optional[str],
        *,
        sort: ListingSort = ListingSort.NEW,
        limit: int = 50,
    ) -> List[RedditPost]:
        """List posts in ``community``, or across all communities when it is None."""
        raise NotImplementedError

    @abstractmethod
    async def list_comments(self, post_id: str, *, limit: int = 200) -> List[RedditComment]:
        raise NotImplementedError

    @abstractmethod
    async def get_community_info(self, name: str) -> CommunityInfo:
        raise NotImplementedError


def _listing_children(payload: Any, kind: str) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise RedditError("Listing payload is not an object")
    children = (payload.get("data") or {}).get("children") or []
    return [
        child.get("data") or {}
        for child in children
        if isinstance(child, dict) and child.get("kind") == kind
    ]


def _walk_comments(nodes: List[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
    for node in nodes:
        yield node
        replies = node.get("replies")
        if isinstance(replies, dict):
            yield from _walk_comments(_listing_children(replies, "t1"))


class RedditContentSource(ContentSource):
    """Reddit's public JSON endpoints over httpx."""

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    async def _request(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params={"raw_json": 1, **(params or {})})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            raise RedditError(f"Request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise RedditError(f"Malformed JSON from {path}") from exc

    async def list_posts(
        self,
        community: Optional[str],
        *,
        sort: ListingSort = ListingSort.NEW,
        limit: int = 50,
    ) -> List[RedditPost]:
        name = community or GLOBAL_FEED
        posts: List[RedditPost] = []
        after: Optional[str] = None
        while len(posts) < limit:
            params: Dict[str, Any] = {"limit": min(MAX_PAGE_SIZE, limit - len(posts))}
            if after:
                params["after"] = after
            payload = await self._request(f"/r/{name}/{sort.value}.json", params=params)
            children = _listing_children(payload, "t3")
            posts.extend(RedditPost.model_validate(child) for child in children if child.get("id"))
            after = (payload.get("data") or {}).get("after")
            if not after or not children:
                break
        return posts[:limit]

    async def list_comments(self, post_id: str, *, limit: int = 200) -> List[RedditComment]:
        bare_id = post_id[3:] if post_id.startswith("t3_") else post_id
        payload = await self._request(f"/comments/{bare_id}.json", params={"limit": limit})
        if not isinstance(payload, list) or len(payload) < 2:
            raise RedditError(f"Unexpected comments payload for post {post_id}")
        comments: List[RedditComment] = []
        for node in _walk_comments(_listing_children(payload[1], "t1")):
            if not node.get("id"):
                continue
            comments.append(RedditComment.model_validate(node))
            if len(comments) >= limit:
                break
        return comments

    async def get_community_info(self, name: str) -> CommunityInfo:
        payload = await self._request(f"/r/{name}/about.json")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise RedditError(f"Unexpected about payload for r/{name}")
        return CommunityInfo.model_validate({"name": name, **data})


_source: ContentSource | None = None


def get_content_source() -> ContentSource:
    global _source
    if _source is None:
        logger.debug("Creating Reddit content source for %s", settings.reddit_base_url)
        _source = RedditContentSource(
            settings.reddit_base_url,
            user_agent=settings.reddit_user_agent,
            timeout=settings.reddit_timeout_seconds,
        )
    return _source
