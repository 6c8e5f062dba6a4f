from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

PostOrderBy = Literal["date", "id", "include", "modified", "slug", "title", "menu_order"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PostRecord(BaseModel):
    id: int = Field(..., ge=0)
    post_type: str = "post"
    status: str = "publish"
    title: str = ""
    content: str = ""
    excerpt: str = ""
    slug: str = ""
    author: int = 0
    parent: int = 0
    menu_order: int = 0
    password: str = ""
    link: str = ""
    date: datetime = Field(default_factory=_now)
    modified: datetime = Field(default_factory=_now)
    meta: dict[str, Any] = Field(default_factory=dict)


class TermRecord(BaseModel):
    id: int = Field(..., ge=1)
    taxonomy: str
    name: str
    slug: str = ""
    link: str = ""


class PostQuery(BaseModel):
    post_type: str
    statuses: list[str] = Field(default_factory=lambda: ["publish"])
    search: str | None = None
    include: list[int] = Field(default_factory=list)
    exclude: list[int] = Field(default_factory=list)
    slugs: list[str] = Field(default_factory=list)
    parent: list[int] = Field(default_factory=list)
    offset: int | None = Field(default=None, ge=0)
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1)
    order: Literal["asc", "desc"] = "desc"
    orderby: PostOrderBy = "date"

    @property
    def start(self) -> int:
        if self.offset is not None:
            return self.offset
        return (self.page - 1) * self.per_page


class PostPage(BaseModel):
    items: list[PostRecord]
    total: int
