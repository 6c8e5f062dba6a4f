from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import anyio
import anyio.to_thread
import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.auth import resolve_principal
from app.core.config import settings
from app.rest.params import ArgSpec, validate_args
from app.rest.request import RestRequest
from app.rest.response import RestResponse, ensure_response
from app.rest.schema import filter_response_fields

logger = structlog.get_logger(__name__)

Callback = Callable[[RestRequest], Any]
PermissionCallback = Callable[[RestRequest], None]


@dataclass
class RouteHandler:
    callback: Callback
    methods: tuple[str, ...] = ("GET",)
    permission_callback: PermissionCallback | None = None
    args: dict[str, ArgSpec] = field(default_factory=dict)


@dataclass
class RegisteredRoute:
    namespace: str
    route: str
    path: str
    handlers: list[RouteHandler]
    args: dict[str, ArgSpec]
    schema: Callable[[], dict[str, Any]] | None = None

    @property
    def methods(self) -> list[str]:
        return [method for handler in self.handlers for method in handler.methods]


class RestDispatcher:
    """Registers REST routes on an injected FastAPI app or router.

    Each registered endpoint validates its declared args, runs the
    permission callback, then the callback, both in a worker thread since
    stores do blocking I/O. Errors propagate as ``RestError`` to the app's
    exception handlers.
    """

    def __init__(
        self,
        router: APIRouter | FastAPI,
        prefix: str | None = None,
        editor_token: str | None = None,
    ) -> None:
        self.router = router
        self.prefix = (settings.api_prefix if prefix is None else prefix).rstrip("/")
        self.editor_token = editor_token
        self.routes: dict[str, RegisteredRoute] = {}

    def register_route(
        self,
        namespace: str,
        route: str,
        handlers: Sequence[RouteHandler],
        *,
        args: dict[str, ArgSpec] | None = None,
        schema: Callable[[], dict[str, Any]] | None = None,
    ) -> RegisteredRoute:
        namespace = namespace.strip("/")
        path = f"{self.prefix}/{namespace}/{route.strip('/')}"
        registered = RegisteredRoute(
            namespace=namespace,
            route=route,
            path=path,
            handlers=list(handlers),
            args=dict(args or {}),
            schema=schema,
        )

        for handler in registered.handlers:
            self.router.add_api_route(
                path,
                self._make_endpoint(registered, handler),
                methods=list(handler.methods),
                name=f"{namespace}{route}:{','.join(handler.methods)}",
            )
        if schema is not None:
            self.router.add_api_route(
                path,
                self._make_options_endpoint(registered),
                methods=["OPTIONS"],
                name=f"{namespace}{route}:OPTIONS",
            )

        self.routes[path] = registered
        logger.info("route_registered", path=path, methods=registered.methods)
        return registered

    def _make_endpoint(self, registered: RegisteredRoute, handler: RouteHandler):
        async def endpoint(request: Request) -> JSONResponse:
            rest_request = self._build_request(request, registered, handler)
            result = await anyio.to_thread.run_sync(self._dispatch, handler, rest_request)
            return self._to_http(ensure_response(result), rest_request)

        return endpoint

    def _make_options_endpoint(self, registered: RegisteredRoute):
        async def options(request: Request) -> JSONResponse:
            body = {
                "namespace": registered.namespace,
                "methods": registered.methods,
                "endpoints": [
                    {
                        "methods": list(handler.methods),
                        "args": {**registered.args, **handler.args},
                    }
                    for handler in registered.handlers
                ],
                "schema": registered.schema() if registered.schema else None,
            }
            return JSONResponse(content=body)

        return options

    @staticmethod
    def _dispatch(handler: RouteHandler, request: RestRequest) -> Any:
        if handler.permission_callback is not None:
            handler.permission_callback(request)
        return handler.callback(request)

    def _build_request(
        self, request: Request, registered: RegisteredRoute, handler: RouteHandler
    ) -> RestRequest:
        raw: dict[str, Any] = {}
        for key in request.query_params.keys():
            values = request.query_params.getlist(key)
            raw[key] = values if len(values) > 1 else values[0]
        raw.update(request.path_params)

        params = validate_args(raw, {**registered.args, **handler.args})
        return RestRequest(
            method=request.method,
            route=registered.route,
            params=params,
            headers=request.headers,
            principal=resolve_principal(request.headers, self.editor_token),
            rest_root=f"{str(request.base_url).rstrip('/')}{self.prefix}",
        )

    @staticmethod
    def _to_http(response: RestResponse, request: RestRequest) -> JSONResponse:
        body = response.render()
        fields = request["_fields"]
        if fields:
            names = fields if isinstance(fields, list) else str(fields).split(",")
            body = filter_response_fields(body, [name.strip() for name in names])
        return JSONResponse(content=body, status_code=response.status, headers=response.headers)
