from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from app.core.config import settings
from app.menus.models import NAV_MENU_ITEM, MenuItem
from app.menus.setup import MenuItemSetup, SetupFilter, meta_int
from app.menus.tree import walk_parent_chain
from app.posts.models import PostRecord
from app.posts.resource import PostResource
from app.posts.store import PostStore
from app.rest.hooks import ResponseFilter, apply_response_filters
from app.rest.request import RestRequest
from app.rest.response import RestResponse, ensure_response
from app.rest.schema import ContextFilter, filter_response_by_context
from app.rest.server import RestDispatcher, RouteHandler

logger = structlog.get_logger(__name__)

# Fields copied verbatim from the resolved menu item over the base document.
COPIED_FIELDS = ("title", "object", "target", "attr_title", "description", "classes", "xfn")


class MenuItemResource:
    """Read-only REST resource for navigation menu items.

    Composes a generic ``PostResource`` for listing, retrieval, permissions
    and links, and overlays the menu-specific fields resolved by
    ``MenuItemSetup``.
    """

    def __init__(
        self,
        posts: PostResource,
        setup: MenuItemSetup,
        *,
        context_filter: ContextFilter = filter_response_by_context,
        response_filters: Iterable[ResponseFilter] = (),
        parent_chain_max_depth: int | None = None,
    ) -> None:
        self.posts = posts
        self.setup = setup
        self.context_filter = context_filter
        self.response_filters = list(response_filters)
        self.parent_chain_max_depth = (
            settings.parent_chain_max_depth
            if parent_chain_max_depth is None
            else parent_chain_max_depth
        )

    def register_routes(self, dispatcher: RestDispatcher) -> None:
        namespace = self.posts.namespace
        base = f"/{self.posts.rest_base}"

        dispatcher.register_route(
            namespace,
            base,
            [
                RouteHandler(
                    callback=self.get_items,
                    permission_callback=self.posts.check_list_permission,
                    args=self.posts.get_collection_params(),
                )
            ],
            schema=self.get_public_item_schema,
        )
        dispatcher.register_route(
            namespace,
            f"{base}/{{id}}",
            [
                RouteHandler(
                    callback=self.get_item,
                    permission_callback=self.posts.check_item_permission,
                    args={"context": self.posts.get_context_param(default="view")},
                )
            ],
            args={
                "id": {
                    "description": "Unique identifier for the object.",
                    "type": "integer",
                    "minimum": 1,
                    "required": True,
                },
            },
            schema=self.get_public_item_schema,
        )

    def get_items(self, request: RestRequest) -> RestResponse:
        return self.posts.list_items(request, self.prepare_item_for_response)

    def get_item(self, request: RestRequest) -> RestResponse:
        return self.posts.get_item(request, self.prepare_item_for_response)

    def prepare_item_for_response(self, record: PostRecord, request: RestRequest) -> RestResponse:
        data = self.posts.prepare_item_document(record, request)

        menu_item = self.setup.setup(record)

        data["id"] = int(menu_item.id)
        data["menu_item_parent"] = int(menu_item.menu_item_parent)
        if menu_item.object_id is not None:
            data["object_id"] = int(menu_item.object_id)

        for name in COPIED_FIELDS:
            data[name] = getattr(menu_item, name)
        if menu_item.url:
            data["link"] = menu_item.url

        context = request["context"] or "view"
        data = self.context_filter(data, self.get_item_schema(), context)

        response = ensure_response(data)
        response.add_links(self.build_links(record, menu_item, request))

        return apply_response_filters(self.response_filters, response, record, request)

    def build_links(
        self, record: PostRecord, menu_item: MenuItem, request: RestRequest
    ) -> dict[str, Any]:
        links = self.posts.build_links(record, request)
        # "up" points at the menu parent, never at the record's own post parent.
        links.pop("up", None)

        parent = menu_item.menu_item_parent
        parents = self._parent_cache(request)
        parents[record.id] = parent
        if parent:
            chain = walk_parent_chain(
                record.id,
                parent,
                lambda item_id: self._parent_of(item_id, parents),
                self.parent_chain_max_depth,
            )
            if not chain.returns_to(record.id):
                href = request.rest_url(f"{self.posts.namespace}/{self.posts.rest_base}/{parent}")
                links["up"] = {"href": href, "embeddable": True}
        return links

    @staticmethod
    def _parent_cache(request: RestRequest) -> dict[int, int | None]:
        return request.state.setdefault("menu_item_parents", {})

    def _parent_of(self, item_id: int, parents: dict[int, int | None]) -> int | None:
        if item_id not in parents:
            record = self.posts.store.get_post(item_id)
            if record is None or record.post_type != self.posts.post_type:
                parents[item_id] = None
            else:
                parents[item_id] = meta_int(record.meta, "menu_item_parent") or 0
        return parents[item_id]

    def get_public_item_schema(self) -> dict[str, Any]:
        return self.get_item_schema()

    def get_item_schema(self) -> dict[str, Any]:
        schema = self.posts.get_item_schema()
        properties = schema["properties"]

        properties["object"] = {
            "description": 'The type of object originally represented, such as "category", "post", or "attachment".',
            "type": "string",
            "context": ["view"],
            "readonly": True,
        }
        properties["object_id"] = {
            "description": "The ID of the original object this menu item represents, e.g. the post ID or the term ID.",
            "type": "integer",
            "context": ["view"],
        }
        properties["menu_item_parent"] = {
            "description": "The ID of the menu item that is this item's menu parent, if any. 0 otherwise.",
            "type": "integer",
            "context": ["view"],
        }
        properties["menu_order"] = {
            "description": "The order of the object in relation to other object of its type.",
            "type": "integer",
            "context": ["view", "embed"],
        }
        properties["attr_title"] = {
            "description": "Text for the title attribute of the link element for this menu item.",
            "type": "string",
            "context": ["view", "embed"],
        }
        properties["classes"] = {
            "description": "Array of class attribute values for the link element of this menu item.",
            "type": "array",
            "items": {"type": "string"},
            "context": ["view", "embed"],
        }
        properties["target"] = {
            "description": "The target attribute of the link element for this menu item.",
            "type": "string",
            "context": ["view", "embed"],
        }
        properties["xfn"] = {
            "description": "The XFN relationship expressed in the link of this menu item.",
            "type": "string",
            "context": ["view", "embed"],
        }
        properties["description"] = {
            "description": "The description of this menu item.",
            "type": "string",
            "context": ["view", "embed"],
        }
        properties["link"] = {
            "description": "The URL to which this menu item points.",
            "type": "string",
            "context": ["view", "embed"],
        }

        properties.pop("password", None)
        return schema


def build_menu_item_resource(
    store: PostStore,
    *,
    setup_filters: Iterable[SetupFilter] = (),
    response_filters: Iterable[ResponseFilter] = (),
) -> MenuItemResource:
    posts = PostResource(
        store,
        post_type=NAV_MENU_ITEM,
        rest_base=settings.menu_items_rest_base,
        namespace=settings.api_namespace,
    )
    return MenuItemResource(
        posts,
        MenuItemSetup(store, filters=setup_filters),
        response_filters=response_filters,
    )
