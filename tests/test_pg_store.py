from __future__ import annotations

import psycopg
import pytest

from app.posts.models import PostQuery, PostRecord, TermRecord
from app.posts.pg_store import PostgresPostStore

from conftest import menu_item_record


@pytest.fixture()
def pg_store(postgres_dsn: str):
    store = PostgresPostStore(postgres_dsn)
    with psycopg.connect(postgres_dsn) as conn:
        with conn.cursor() as cur:
            cur.execute("TRUNCATE TABLE posts, terms")
        conn.commit()
    yield store
    store.close()


def test_roundtrip_menu_item(pg_store: PostgresPostStore) -> None:
    pg_store.upsert_post(
        menu_item_record(
            12,
            title="Home",
            menu_item_type="post_type",
            menu_item_object="page",
            menu_item_object_id=5,
            menu_item_classes=["home"],
        )
    )
    pg_store.upsert_term(TermRecord(id=3, taxonomy="category", name="News", slug="news"))

    record = pg_store.get_post(12)

    assert record.title == "Home"
    assert record.meta["menu_item_classes"] == ["home"]
    assert record.date.tzinfo is not None
    assert pg_store.get_term("category", 3).name == "News"
    assert pg_store.get_post(99) is None


def test_upsert_replaces_existing_row(pg_store: PostgresPostStore) -> None:
    pg_store.upsert_post(PostRecord(id=5, post_type="page", title="Home"))
    pg_store.upsert_post(PostRecord(id=5, post_type="page", title="Start"))

    assert pg_store.get_post(5).title == "Start"


def test_list_posts_filters_and_pages(pg_store: PostgresPostStore) -> None:
    for item_id, day in ((12, 1), (13, 2), (14, 3)):
        pg_store.upsert_post(menu_item_record(item_id, title=f"Item {item_id}", day=day, menu_order=item_id))
    pg_store.upsert_post(menu_item_record(15, title="Draft", day=4, status="draft"))
    pg_store.upsert_post(PostRecord(id=5, post_type="page", title="Item page"))

    page = pg_store.list_posts(PostQuery(post_type="nav_menu_item", per_page=2))
    assert page.total == 3
    assert [post.id for post in page.items] == [14, 13]

    searched = pg_store.list_posts(PostQuery(post_type="nav_menu_item", search="item 12"))
    assert [post.id for post in searched.items] == [12]

    ordered = pg_store.list_posts(
        PostQuery(post_type="nav_menu_item", orderby="include", include=[13, 12, 14])
    )
    assert [post.id for post in ordered.items] == [13, 12, 14]


def test_ping(pg_store: PostgresPostStore) -> None:
    pg_store.ping()
