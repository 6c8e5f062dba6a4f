from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import structlog

from app.core.config import settings
from app.core.errors import ForbiddenError, NotFoundError, RestError
from app.posts.models import PostQuery, PostRecord
from app.posts.store import PostStore
from app.rest.params import ArgSpec
from app.rest.request import RestRequest
from app.rest.response import RestResponse
from app.rest.schema import filter_response_by_context, schema_contexts

logger = structlog.get_logger(__name__)

Preparer = Callable[[PostRecord, RestRequest], RestResponse]


def post_permalink(record: PostRecord) -> str:
    if record.link:
        return record.link
    return f"{settings.site_url.rstrip('/')}/?p={record.id}"


class PostResource:
    """Generic read access to the records of one post type.

    Holds no per-request state; the listing and retrieval operations take the
    item preparer as an argument so a composing resource can substitute its
    own document shape.
    """

    def __init__(
        self,
        store: PostStore,
        *,
        post_type: str,
        rest_base: str,
        namespace: str | None = None,
    ) -> None:
        self.store = store
        self.post_type = post_type
        self.rest_base = rest_base.strip("/")
        self.namespace = (namespace or settings.api_namespace).strip("/")

    # Routes

    def list_items(self, request: RestRequest, prepare: Preparer | None = None) -> RestResponse:
        prepare = prepare or self.prepare_item_for_response
        query = self._build_query(request)
        page = self.store.list_posts(query)

        max_pages = math.ceil(page.total / query.per_page) if page.total else 0
        if page.total and query.page > max_pages and query.offset is None:
            raise RestError(
                "The page number requested is larger than the number of pages available.",
                code="rest_post_invalid_page_number",
                status_code=400,
            )

        items = [
            prepare(record, request).render()
            for record in page.items
            if self.can_read(record, request)
        ]

        logger.debug(
            "post_items_listed",
            post_type=self.post_type,
            total=page.total,
            returned=len(items),
        )
        response = RestResponse(items)
        response.header("X-Total-Count", str(page.total))
        response.header("X-Total-Pages", str(max_pages))
        link_header = self._pagination_links(request, query.page, max_pages)
        if link_header:
            response.header("Link", link_header)
        return response

    def get_item(self, request: RestRequest, prepare: Preparer | None = None) -> RestResponse:
        prepare = prepare or self.prepare_item_for_response
        return prepare(self.get_record(request["id"]), request)

    def get_record(self, post_id: Any) -> PostRecord:
        record = None
        if isinstance(post_id, int) and post_id > 0:
            record = self.store.get_post(post_id)
        if record is None or record.post_type != self.post_type:
            raise NotFoundError("Invalid post ID.", code="rest_post_invalid_id")
        return record

    # Permissions

    def check_list_permission(self, request: RestRequest) -> None:
        principal = request.principal
        if request["context"] == "edit" and not principal.can_edit:
            raise ForbiddenError(
                "Sorry, you are not allowed to edit posts in this post type.",
                code="rest_forbidden_context",
                authenticated=principal.authenticated,
            )
        statuses = request.get("status", ["publish"])
        if any(status != "publish" for status in statuses) and not principal.can_edit:
            raise ForbiddenError(
                "Status is forbidden.",
                code="rest_forbidden_status",
                authenticated=principal.authenticated,
            )

    def check_item_permission(self, request: RestRequest) -> None:
        record = self.get_record(request["id"])
        principal = request.principal
        if request["context"] == "edit" and not principal.can_edit:
            raise ForbiddenError(
                "Sorry, you are not allowed to edit this post.",
                code="rest_forbidden_context",
                authenticated=principal.authenticated,
            )
        if not self.can_read(record, request):
            raise ForbiddenError(
                "Sorry, you are not allowed to view this post.",
                code="rest_forbidden",
                authenticated=principal.authenticated,
            )

    def can_read(self, record: PostRecord, request: RestRequest) -> bool:
        if record.status == "publish":
            return True
        return request.principal.can_edit

    # Params

    def get_context_param(self, default: str | None = None) -> ArgSpec:
        param: ArgSpec = {
            "description": "Scope under which the request is made; determines fields present in response.",
            "type": "string",
            "enum": schema_contexts(self.get_item_schema()),
        }
        if default is not None:
            param["default"] = default
        return param

    def get_collection_params(self) -> dict[str, ArgSpec]:
        return {
            "context": self.get_context_param(default="view"),
            "page": {
                "description": "Current page of the collection.",
                "type": "integer",
                "default": 1,
                "minimum": 1,
            },
            "per_page": {
                "description": "Maximum number of items to be returned in result set.",
                "type": "integer",
                "default": settings.default_per_page,
                "minimum": 1,
                "maximum": settings.max_per_page,
            },
            "search": {
                "description": "Limit results to those matching a string.",
                "type": "string",
            },
            "include": {
                "description": "Limit result set to specific IDs.",
                "type": "array",
                "items": {"type": "integer", "minimum": 1},
                "default": [],
            },
            "exclude": {
                "description": "Ensure result set excludes specific IDs.",
                "type": "array",
                "items": {"type": "integer", "minimum": 1},
                "default": [],
            },
            "offset": {
                "description": "Offset the result set by a specific number of items.",
                "type": "integer",
                "minimum": 0,
            },
            "order": {
                "description": "Order sort attribute ascending or descending.",
                "type": "string",
                "default": "desc",
                "enum": ["asc", "desc"],
            },
            "orderby": {
                "description": "Sort collection by object attribute.",
                "type": "string",
                "default": "date",
                "enum": ["date", "id", "include", "modified", "slug", "title", "menu_order"],
            },
            "slug": {
                "description": "Limit result set to posts with one or more specific slugs.",
                "type": "array",
                "items": {"type": "string"},
                "default": [],
            },
            "status": {
                "description": "Limit result set to posts assigned one or more statuses.",
                "type": "array",
                "items": {
                    "type": "string",
                    "enum": ["publish", "future", "draft", "pending", "private", "trash"],
                },
                "default": ["publish"],
            },
            "parent": {
                "description": "Limit result set to items with particular parent IDs.",
                "type": "array",
                "items": {"type": "integer", "minimum": 0},
                "default": [],
            },
        }

    # Shaping

    def prepare_item_document(self, record: PostRecord, request: RestRequest) -> dict[str, Any]:
        return {
            "id": record.id,
            "date": record.date.isoformat(),
            "modified": record.modified.isoformat(),
            "slug": record.slug,
            "status": record.status,
            "type": record.post_type,
            "link": post_permalink(record),
            "title": record.title,
            "content": record.content,
            "excerpt": record.excerpt,
            "author": record.author,
            "menu_order": record.menu_order,
            "parent": record.parent,
            "password": record.password,
        }

    def prepare_item_for_response(self, record: PostRecord, request: RestRequest) -> RestResponse:
        context = request["context"] or "view"
        data = self.filter_response_by_context(self.prepare_item_document(record, request), context)
        response = RestResponse(data)
        response.add_links(self.build_links(record, request))
        return response

    def filter_response_by_context(
        self, data: dict[str, Any], context: str, schema: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return filter_response_by_context(data, schema or self.get_item_schema(), context)

    def build_links(self, record: PostRecord, request: RestRequest) -> dict[str, Any]:
        base = f"{self.namespace}/{self.rest_base}"
        links: dict[str, Any] = {
            "self": {"href": request.rest_url(f"{base}/{record.id}")},
            "collection": {"href": request.rest_url(base)},
        }
        if record.parent:
            links["up"] = {"href": request.rest_url(f"{base}/{record.parent}"), "embeddable": True}
        return links

    def get_item_schema(self) -> dict[str, Any]:
        return {
            "$schema": "http://json-schema.org/draft-04/schema#",
            "title": self.post_type,
            "type": "object",
            "properties": {
                "id": {
                    "description": "Unique identifier for the object.",
                    "type": "integer",
                    "context": ["view", "edit", "embed"],
                    "readonly": True,
                },
                "date": {
                    "description": "The date the object was published.",
                    "type": "string",
                    "format": "date-time",
                    "context": ["view", "edit", "embed"],
                },
                "modified": {
                    "description": "The date the object was last modified.",
                    "type": "string",
                    "format": "date-time",
                    "context": ["view", "edit"],
                    "readonly": True,
                },
                "slug": {
                    "description": "An alphanumeric identifier for the object unique to its type.",
                    "type": "string",
                    "context": ["view", "edit", "embed"],
                },
                "status": {
                    "description": "A named status for the object.",
                    "type": "string",
                    "enum": ["publish", "future", "draft", "pending", "private"],
                    "context": ["view", "edit"],
                },
                "type": {
                    "description": "Type of post.",
                    "type": "string",
                    "context": ["view", "edit", "embed"],
                    "readonly": True,
                },
                "link": {
                    "description": "URL to the object.",
                    "type": "string",
                    "format": "uri",
                    "context": ["view", "edit", "embed"],
                    "readonly": True,
                },
                "title": {
                    "description": "The title for the object.",
                    "type": "string",
                    "context": ["view", "edit", "embed"],
                },
                "content": {
                    "description": "The content for the object.",
                    "type": "string",
                    "context": ["view", "edit"],
                },
                "excerpt": {
                    "description": "The excerpt for the object.",
                    "type": "string",
                    "context": ["view", "edit", "embed"],
                },
                "author": {
                    "description": "The ID for the author of the object.",
                    "type": "integer",
                    "context": ["view", "edit", "embed"],
                },
                "menu_order": {
                    "description": "The order of the object in relation to other object of its type.",
                    "type": "integer",
                    "context": ["view", "edit"],
                },
                "parent": {
                    "description": "The ID for the parent of the object.",
                    "type": "integer",
                    "context": ["view", "edit"],
                },
                "password": {
                    "description": "A password to protect access to the content and excerpt.",
                    "type": "string",
                    "context": ["edit"],
                },
            },
        }

    def _build_query(self, request: RestRequest) -> PostQuery:
        return PostQuery(
            post_type=self.post_type,
            statuses=request.get("status", ["publish"]),
            search=request["search"] or None,
            include=request.get("include", []),
            exclude=request.get("exclude", []),
            slugs=request.get("slug", []),
            parent=request.get("parent", []),
            offset=request["offset"],
            page=request.get("page", 1),
            per_page=request.get("per_page", settings.default_per_page),
            order=request.get("order", "desc"),
            orderby=request.get("orderby", "date"),
        )

    def _pagination_links(self, request: RestRequest, page: int, max_pages: int) -> str:
        base = request.rest_url(f"{self.namespace}/{self.rest_base}")
        passthrough = {
            key: ",".join(str(item) for item in value) if isinstance(value, list) else value
            for key, value in request.params.items()
            if key not in ("page", "id") and value not in (None, [], "")
        }
        links = []
        if page > 1:
            prev_page = min(page - 1, max_pages) if max_pages else 1
            links.append(f'<{base}?{urlencode({**passthrough, "page": prev_page})}>; rel="prev"')
        if page < max_pages:
            links.append(f'<{base}?{urlencode({**passthrough, "page": page + 1})}>; rel="next"')
        return ", ".join(links)
