from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from namethesub.core.config import settings  # noqa: E402
from namethesub.services import reddit as reddit_module  # noqa: E402
from namethesub.services import store as store_module  # noqa: E402
from namethesub.services.reddit import (  # noqa: E402
    CommunityInfo,
    ContentSource,
    ListingSort,
    RedditComment,
    RedditError,
    RedditPost,
)
from namethesub.services.store import InMemoryStore  # noqa: E402


SUBSCRIBERS: Dict[str, Optional[int]] = {
    "AskReddit": 45_000_000,
    "pics": 30_000_000,
    "woodworking": 3_000_000,
    "gardening": 600_000,
    "Bonsai": 150_000,
    "sourdough": 90_000,
    "tinyhobby": 500,
}
ADULT_COMMUNITY = "afterdark"
BROKEN_COMMUNITY = "mysterysub"
USABLE_COMMENT_SUFFIXES = ("c6", "c7")


def make_comments(post_id: str, community: str) -> List[RedditComment]:
    return [
        RedditComment(id=f"{post_id}-c1", body="[deleted]"),
        RedditComment(id=f"{post_id}-c2", body="ten chars!"),
        RedditComment(id=f"{post_id}-c3", body=f"I only come to r/{community} for threads like this one"),
        RedditComment(id=f"{post_id}-c4", body="Beep boop, I am a bot and this action was automatic."),
        RedditComment(id=f"{post_id}-c5", body="This is exactly why this sub is the best place online."),
        RedditComment(id=f"{post_id}-c6", body="Honestly the best advice I have read all week, saving this."),
        RedditComment(id=f"{post_id}-c7", body="My grandfather used to do the exact same thing every summer."),
    ]


def make_posts(community: str, count: int = 3) -> List[RedditPost]:
    return [
        RedditPost(
            id=f"{community}-p{index}",
            community=community,
            title=f"Post {index} in {community}",
            body=f"Body {index}",
            permalink=f"/r/{community}/comments/{community}-p{index}/",
        )
        for index in range(count)
    ]


class FakeContentSource(ContentSource):
    """In-memory stand-in for Reddit that records every call."""

    def __init__(
        self,
        *,
        communities: Dict[str, object],
        posts: Dict[Optional[str], List[RedditPost]],
        comments: Dict[str, object],
        failing_listings: Optional[set] = None,
    ) -> None:
        self.communities = communities
        self.posts = posts
        self.comments = comments
        self.failing_listings = failing_listings or set()
        self.calls: List[tuple] = []

    async def list_posts(self, community, *, sort=ListingSort.NEW, limit=50):
        self.calls.append(("list_posts", community, sort))
        if (community, sort) in self.failing_listings:
            raise RedditError(f"{sort.value} listing unavailable")
        return list(self.posts.get(community, []))[:limit]

    async def list_comments(self, post_id, *, limit=200):
        self.calls.append(("list_comments", post_id))
        value = self.comments.get(post_id, [])
        if isinstance(value, Exception):
            raise value
        return list(value)[:limit]

    async def get_community_info(self, name):
        self.calls.append(("get_community_info", name))
        info = self.communities.get(name)
        if info is None:
            raise RedditError(f"r/{name} not found")
        if isinstance(info, Exception):
            raise info
        return info

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


def default_dataset() -> dict:
    communities: Dict[str, object] = {
        name: CommunityInfo(name=name, subscribers=count) for name, count in SUBSCRIBERS.items()
    }
    communities[ADULT_COMMUNITY] = CommunityInfo(name=ADULT_COMMUNITY, subscribers=2_000_000, over_18=True)
    communities[BROKEN_COMMUNITY] = RedditError("about.json timed out")

    names = list(SUBSCRIBERS) + [ADULT_COMMUNITY, BROKEN_COMMUNITY]
    posts: Dict[Optional[str], List[RedditPost]] = {}
    comments: Dict[str, object] = {}
    global_feed: List[RedditPost] = []
    for name in names:
        community_posts = make_posts(name)
        posts[name] = community_posts
        global_feed.extend(community_posts[:2])
        for post in community_posts:
            comments[post.id] = make_comments(post.id, name)
    posts[None] = global_feed
    return {"communities": communities, "posts": posts, "comments": comments}


@pytest.fixture
def make_source():
    def _factory(**overrides) -> FakeContentSource:
        dataset = default_dataset()
        dataset.update(overrides)
        return FakeContentSource(**dataset)

    return _factory


@pytest.fixture
def fake_source(make_source, monkeypatch: pytest.MonkeyPatch) -> FakeContentSource:
    source = make_source()
    monkeypatch.setattr(reddit_module, "_source", source)
    return source


@pytest.fixture(autouse=True)
def isolated_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryStore:
    store = InMemoryStore()
    monkeypatch.setattr(store_module, "_store", store)
    monkeypatch.setattr(settings, "redis_url", None)
    monkeypatch.setattr(settings, "warm_cache_on_startup", False)
    return store
