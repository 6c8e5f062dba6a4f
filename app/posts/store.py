from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import structlog

from app.posts.models import PostPage, PostQuery, PostRecord, TermRecord

logger = structlog.get_logger(__name__)


class PostStore(ABC):
    @abstractmethod
    def get_post(self, post_id: int) -> PostRecord | None:
        raise NotImplementedError

    @abstractmethod
    def list_posts(self, query: PostQuery) -> PostPage:
        raise NotImplementedError

    @abstractmethod
    def get_term(self, taxonomy: str, term_id: int) -> TermRecord | None:
        raise NotImplementedError

    def ping(self) -> None:
        """Raise when the backing storage is unreachable."""


class InMemoryPostStore(PostStore):
    def __init__(
        self,
        posts: Iterable[PostRecord] = (),
        terms: Iterable[TermRecord] = (),
    ) -> None:
        self._posts: dict[int, PostRecord] = {post.id: post for post in posts}
        self._terms: dict[tuple[str, int], TermRecord] = {
            (term.taxonomy, term.id): term for term in terms
        }

    @classmethod
    def from_json(cls, path: Path | str) -> InMemoryPostStore:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls(
            posts=[PostRecord.model_validate(item) for item in data.get("posts", [])],
            terms=[TermRecord.model_validate(item) for item in data.get("terms", [])],
        )
        logger.info(
            "post_store_seeded",
            path=str(path),
            posts=len(store._posts),
            terms=len(store._terms),
        )
        return store

    def add_post(self, post: PostRecord) -> None:
        self._posts[post.id] = post

    def add_term(self, term: TermRecord) -> None:
        self._terms[(term.taxonomy, term.id)] = term

    def get_post(self, post_id: int) -> PostRecord | None:
        return self._posts.get(post_id)

    def get_term(self, taxonomy: str, term_id: int) -> TermRecord | None:
        return self._terms.get((taxonomy, term_id))

    def list_posts(self, query: PostQuery) -> PostPage:
        matches = [post for post in self._posts.values() if _matches(post, query)]
        matches = _sort_posts(matches, query)
        start = query.start
        return PostPage(items=matches[start : start + query.per_page], total=len(matches))


def _matches(post: PostRecord, query: PostQuery) -> bool:
    if post.post_type != query.post_type:
        return False
    if query.statuses and post.status not in query.statuses:
        return False
    if query.include and post.id not in query.include:
        return False
    if post.id in query.exclude:
        return False
    if query.slugs and post.slug not in query.slugs:
        return False
    if query.parent and post.parent not in query.parent:
        return False
    if query.search:
        needle = query.search.lower()
        haystacks = (post.title, post.content, post.excerpt)
        if not any(needle in text.lower() for text in haystacks):
            return False
    return True


_SORT_KEYS: dict[str, Callable[[PostRecord], Any]] = {
    "date": lambda post: (post.date, post.id),
    "id": lambda post: post.id,
    "modified": lambda post: (post.modified, post.id),
    "slug": lambda post: (post.slug, post.id),
    "title": lambda post: (post.title.lower(), post.id),
    "menu_order": lambda post: (post.menu_order, post.id),
}


def _sort_posts(posts: list[PostRecord], query: PostQuery) -> list[PostRecord]:
    if query.orderby == "include" and query.include:
        position = {post_id: index for index, post_id in enumerate(query.include)}
        return sorted(posts, key=lambda post: position[post.id])
    key = _SORT_KEYS.get(query.orderby, _SORT_KEYS["date"])
    return sorted(posts, key=key, reverse=query.order == "desc")
