from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import psycopg
import pytest
from fastapi.testclient import TestClient

from app.core.auth import ANONYMOUS, Principal
from app.core.config import settings
from app.main import create_app
from app.menus.resource import MenuItemResource, build_menu_item_resource
from app.posts.models import PostRecord, TermRecord
from app.posts.store import InMemoryPostStore
from app.rest.request import RestRequest

REST_ROOT = "http://testserver/api"
MENU_ITEMS_URL = "/api/nav/v1/menu-items"


def _ts(day: int) -> datetime:
    return datetime(2024, 2, day, 10, 0, tzinfo=timezone.utc)


def menu_item_record(
    item_id: int,
    *,
    title: str = "",
    day: int = 1,
    menu_order: int = 0,
    status: str = "publish",
    content: str = "",
    excerpt: str = "",
    password: str = "",
    **meta: Any,
) -> PostRecord:
    return PostRecord(
        id=item_id,
        post_type="nav_menu_item",
        status=status,
        title=title,
        content=content,
        excerpt=excerpt,
        password=password,
        menu_order=menu_order,
        date=_ts(day),
        modified=_ts(day),
        meta=meta,
    )


def make_request(context: str | None = "view", principal: Principal = ANONYMOUS, **params: Any) -> RestRequest:
    return RestRequest(
        method="GET",
        route="/menu-items/{id}",
        params={"context": context, **params},
        principal=principal,
        rest_root=REST_ROOT,
    )


@pytest.fixture()
def store() -> InMemoryPostStore:
    return InMemoryPostStore(
        posts=[
            PostRecord(id=5, post_type="page", title="Home", slug="home", link="https://example.test/"),
            PostRecord(id=6, post_type="page", title="About", slug="about", link="https://example.test/about/"),
            PostRecord(id=7, post_type="page", status="trash", title="Old page"),
            menu_item_record(
                12,
                day=1,
                menu_order=1,
                password="secret",
                menu_item_type="post_type",
                menu_item_object="page",
                menu_item_object_id=5,
                menu_item_parent=0,
                menu_item_classes=["home"],
                menu_item_target="",
                menu_item_xfn="",
            ),
            menu_item_record(
                13,
                title="About us",
                day=2,
                menu_order=2,
                menu_item_type="post_type",
                menu_item_object="page",
                menu_item_object_id=6,
                menu_item_parent=12,
            ),
            menu_item_record(
                14,
                day=3,
                menu_order=3,
                menu_item_type="taxonomy",
                menu_item_object="category",
                menu_item_object_id=3,
                menu_item_parent=13,
            ),
            menu_item_record(
                15,
                title="GitHub",
                excerpt="Source code",
                day=4,
                menu_order=4,
                menu_item_type="custom",
                menu_item_object="custom",
                menu_item_url="https://github.com/example",
                menu_item_target="_blank",
                menu_item_xfn="me",
            ),
            menu_item_record(
                16,
                title="Coming soon",
                status="draft",
                day=5,
                menu_order=5,
                menu_item_type="custom",
                menu_item_object="custom",
                menu_item_url="https://example.test/soon/",
            ),
        ],
        terms=[TermRecord(id=3, taxonomy="category", name="News", slug="news")],
    )


@pytest.fixture()
def resource(store: InMemoryPostStore) -> MenuItemResource:
    return build_menu_item_resource(store)


@pytest.fixture()
def client(store: InMemoryPostStore) -> TestClient:
    return TestClient(create_app(store=store))


@pytest.fixture(scope="session")
def postgres_dsn() -> str:
    dsn = os.getenv("POSTGRES_DSN", settings.postgres_dsn)
    try:
        psycopg.connect(dsn, connect_timeout=2).close()
    except psycopg.OperationalError as exc:
        pytest.skip(f"postgres unavailable: {exc}")
    return dsn
