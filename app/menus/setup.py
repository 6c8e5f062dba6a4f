from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from app.core.config import settings
from app.menus.models import NAV_MENU_ITEM, MenuItem, MenuItemType
from app.posts.models import PostRecord
from app.posts.resource import post_permalink
from app.posts.store import PostStore

logger = structlog.get_logger(__name__)

SetupFilter = Callable[[MenuItem, PostRecord], MenuItem]

TAG_PATTERN = re.compile(r"<[^>]*>")


def trim_words(text: str, limit: int, more: str = "…") -> str:
    words = TAG_PATTERN.sub(" ", text).split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + more


def meta_int(meta: dict[str, Any], key: str) -> int | None:
    value = meta.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def _meta_str(meta: dict[str, Any], key: str) -> str:
    value = meta.get(key)
    return "" if value is None else str(value)


def normalize_classes(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(item) for item in value if item is not None and str(item) != ""]


def _label(name: str) -> str:
    return name.replace("_", " ").title()


class MenuItemSetup:
    """Resolves stored records into ``MenuItem`` views.

    Linked objects are looked up in the post store; lookup errors propagate
    to the caller untouched.
    """

    def __init__(
        self,
        store: PostStore,
        filters: Iterable[SetupFilter] = (),
        description_max_words: int | None = None,
    ) -> None:
        self.store = store
        self.filters = list(filters)
        self.description_max_words = (
            settings.description_max_words
            if description_max_words is None
            else description_max_words
        )

    def setup(self, record: PostRecord) -> MenuItem:
        if record.post_type == NAV_MENU_ITEM:
            item = self._setup_nav_menu_item(record)
        else:
            item = self._setup_post_link(record)

        for setup_filter in self.filters:
            item = setup_filter(item, record)
        return item

    def _setup_nav_menu_item(self, record: PostRecord) -> MenuItem:
        meta = record.meta
        object_id = meta_int(meta, "menu_item_object_id")
        object_name = _meta_str(meta, "menu_item_object")
        item_type = self._item_type(record)

        item = MenuItem(
            id=record.id,
            db_id=record.id,
            menu_item_parent=meta_int(meta, "menu_item_parent") or 0,
            object_id=object_id,
            object=object_name,
            type=item_type,
            title=record.title,
            target=_meta_str(meta, "menu_item_target"),
            attr_title=record.excerpt,
            description=trim_words(record.content, self.description_max_words),
            classes=normalize_classes(meta.get("menu_item_classes")),
            xfn=_meta_str(meta, "menu_item_xfn"),
            menu_order=record.menu_order,
        )

        if item_type is MenuItemType.post_type:
            self._resolve_post_object(item)
        elif item_type is MenuItemType.taxonomy:
            self._resolve_term_object(item)
        elif item_type is MenuItemType.post_type_archive:
            self._resolve_archive(item, _meta_str(meta, "menu_item_url"))
        else:
            item.type_label = "Custom Link"
            item.url = _meta_str(meta, "menu_item_url")

        return item

    @staticmethod
    def _item_type(record: PostRecord) -> MenuItemType:
        raw = _meta_str(record.meta, "menu_item_type")
        if not raw:
            return MenuItemType.custom
        try:
            return MenuItemType(raw)
        except ValueError:
            # Unknown types are treated as custom links.
            logger.warning("menu_item_type_unknown", item_id=record.id, menu_item_type=raw)
            return MenuItemType.custom

    def _resolve_archive(self, item: MenuItem, stored_url: str) -> None:
        label = _label(item.object)
        item.type_label = "Post Type Archive"
        site = settings.site_url.rstrip("/")
        item.url = stored_url or (f"{site}/?post_type={item.object}" if item.object else "")
        if not item.object:
            item.invalid = True
            logger.warning("menu_item_object_missing", item_id=item.id, object=item.object)
        item.title = item.title or label

    def _resolve_post_object(self, item: MenuItem) -> None:
        item.type_label = _label(item.object)
        original = self.store.get_post(item.object_id) if item.object_id else None
        if original is None or original.status == "trash":
            item.invalid = True
            logger.warning(
                "menu_item_object_missing",
                item_id=item.id,
                object=item.object,
                object_id=item.object_id,
            )
            return

        item.url = post_permalink(original)
        original_title = original.title or f"#{original.id} (no title)"
        item.title = item.title or original_title

    def _resolve_term_object(self, item: MenuItem) -> None:
        item.type_label = _label(item.object)
        term = self.store.get_term(item.object, item.object_id) if item.object_id else None
        if term is None:
            item.invalid = True
            logger.warning(
                "menu_item_object_missing",
                item_id=item.id,
                object=item.object,
                object_id=item.object_id,
            )
            return

        site = settings.site_url.rstrip("/")
        item.url = term.link or f"{site}/?{term.taxonomy}={term.slug or term.id}"
        item.title = item.title or term.name

    def _setup_post_link(self, record: PostRecord) -> MenuItem:
        return MenuItem(
            id=record.id,
            db_id=0,
            menu_item_parent=0,
            object_id=record.id,
            object=record.post_type,
            type=MenuItemType.post_type,
            type_label=_label(record.post_type),
            title=record.title,
            url=post_permalink(record),
            menu_order=record.menu_order,
        )
