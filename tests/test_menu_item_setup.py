from __future__ import annotations

from unittest.mock import patch

import pytest

from app.core.config import settings
from app.menus.models import MenuItemType
from app.menus.setup import MenuItemSetup, normalize_classes, trim_words
from app.posts.models import PostRecord
from app.posts.store import InMemoryPostStore

from conftest import menu_item_record


@pytest.fixture()
def setup(store: InMemoryPostStore) -> MenuItemSetup:
    return MenuItemSetup(store)


def test_post_type_item_takes_title_and_url_from_linked_post(
    setup: MenuItemSetup, store: InMemoryPostStore
) -> None:
    item = setup.setup(store.get_post(12))

    assert item.id == 12
    assert item.db_id == 12
    assert item.type is MenuItemType.post_type
    assert item.type_label == "Page"
    assert item.object == "page"
    assert item.object_id == 5
    assert item.title == "Home"
    assert item.url == "https://example.test/"
    assert item.classes == ["home"]
    assert item.invalid is False


def test_own_title_wins_over_linked_title(setup: MenuItemSetup, store: InMemoryPostStore) -> None:
    item = setup.setup(store.get_post(13))

    assert item.title == "About us"
    assert item.url == "https://example.test/about/"
    assert item.menu_item_parent == 12


def test_linked_post_without_title_gets_placeholder(store: InMemoryPostStore) -> None:
    store.add_post(PostRecord(id=8, post_type="page", title="", link="https://example.test/8/"))
    record = menu_item_record(
        31, menu_item_type="post_type", menu_item_object="page", menu_item_object_id=8
    )

    item = MenuItemSetup(store).setup(record)

    assert item.title == "#8 (no title)"


@pytest.mark.parametrize("object_id", [7, 404])
def test_missing_or_trashed_object_marks_item_invalid(
    setup: MenuItemSetup, object_id: int
) -> None:
    record = menu_item_record(
        32,
        title="Gone",
        menu_item_type="post_type",
        menu_item_object="page",
        menu_item_object_id=object_id,
    )

    item = setup.setup(record)

    assert item.invalid is True
    assert item.url == ""
    assert item.title == "Gone"


def test_taxonomy_item_uses_term(setup: MenuItemSetup, store: InMemoryPostStore) -> None:
    item = setup.setup(store.get_post(14))

    assert item.type is MenuItemType.taxonomy
    assert item.type_label == "Category"
    assert item.title == "News"
    assert item.url == f"{settings.site_url.rstrip('/')}/?category=news"


def test_custom_item_uses_stored_url(setup: MenuItemSetup, store: InMemoryPostStore) -> None:
    item = setup.setup(store.get_post(15))

    assert item.type is MenuItemType.custom
    assert item.type_label == "Custom Link"
    assert item.url == "https://github.com/example"
    assert item.object_id is None
    assert item.attr_title == "Source code"
    assert item.target == "_blank"
    assert item.xfn == "me"


def test_description_comes_from_trimmed_content(store: InMemoryPostStore) -> None:
    record = menu_item_record(
        33,
        title="Docs",
        content="<p>Read the <strong>full</strong> manual today</p>",
        menu_item_type="custom",
        menu_item_url="https://example.test/docs/",
    )

    item = MenuItemSetup(store, description_max_words=3).setup(record)

    assert item.description == "Read the full…"


def test_non_menu_record_links_to_itself(setup: MenuItemSetup, store: InMemoryPostStore) -> None:
    item = setup.setup(store.get_post(6))

    assert item.id == 6
    assert item.db_id == 0
    assert item.menu_item_parent == 0
    assert item.object == "page"
    assert item.object_id == 6
    assert item.title == "About"
    assert item.url == "https://example.test/about/"


def test_setup_filters_run_in_order(store: InMemoryPostStore) -> None:
    def add_class(item, record):
        item.classes.append(f"item-{record.id}")
        return item

    def upper_title(item, record):
        item.title = item.title.upper()
        return item

    item = MenuItemSetup(store, filters=[add_class, upper_title]).setup(store.get_post(12))

    assert item.classes == ["home", "item-12"]
    assert item.title == "HOME"


def test_post_type_archive_item_derives_url(setup: MenuItemSetup) -> None:
    record = menu_item_record(34, menu_item_type="post_type_archive", menu_item_object="product")

    item = setup.setup(record)

    assert item.type is MenuItemType.post_type_archive
    assert item.type_label == "Post Type Archive"
    assert item.title == "Product"
    assert item.url == f"{settings.site_url.rstrip('/')}/?post_type=product"
    assert item.invalid is False


def test_post_type_archive_item_prefers_stored_url(setup: MenuItemSetup) -> None:
    record = menu_item_record(
        35,
        title="Shop",
        menu_item_type="post_type_archive",
        menu_item_object="product",
        menu_item_url="https://example.test/shop/",
    )

    item = setup.setup(record)

    assert item.title == "Shop"
    assert item.url == "https://example.test/shop/"


def test_unknown_item_type_falls_back_to_custom_link(setup: MenuItemSetup) -> None:
    record = menu_item_record(
        36,
        title="Widget",
        menu_item_type="widget",
        menu_item_object="widget",
        menu_item_url="https://example.test/widget/",
    )

    with patch("app.menus.setup.logger") as mock_logger:
        item = setup.setup(record)

    assert item.type is MenuItemType.custom
    assert item.type_label == "Custom Link"
    assert item.url == "https://example.test/widget/"
    assert item.title == "Widget"
    mock_logger.warning.assert_called_once_with(
        "menu_item_type_unknown", item_id=36, menu_item_type="widget"
    )


def test_normalize_classes() -> None:
    assert normalize_classes(None) == []
    assert normalize_classes("nav  primary") == ["nav", "primary"]
    assert normalize_classes(["a", "", None, 3]) == ["a", "3"]


def test_trim_words_keeps_short_text() -> None:
    assert trim_words("  one   two ", 5) == "one two"
    assert trim_words("", 5) == ""
