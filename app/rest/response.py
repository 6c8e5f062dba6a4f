from __future__ import annotations

from typing import Any


class RestResponse:
    """Transport-neutral response envelope with relation links."""

    def __init__(
        self,
        data: Any = None,
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.data = data
        self.status = status
        self.headers: dict[str, str] = dict(headers or {})
        self.links: dict[str, list[dict[str, Any]]] = {}

    def add_link(self, rel: str, href: str, **attributes: Any) -> None:
        self.links.setdefault(rel, []).append({"href": href, **attributes})

    def add_links(self, links: dict[str, dict[str, Any] | list[dict[str, Any]]]) -> None:
        for rel, value in links.items():
            entries = value if isinstance(value, list) else [value]
            for entry in entries:
                attributes = {key: item for key, item in entry.items() if key != "href"}
                self.add_link(rel, entry["href"], **attributes)

    def header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def render(self) -> Any:
        """Return the JSON body, with links merged under ``_links`` for objects."""
        if isinstance(self.data, dict) and self.links:
            return {**self.data, "_links": self.links}
        return self.data


def ensure_response(value: Any) -> RestResponse:
    if isinstance(value, RestResponse):
        return value
    return RestResponse(value)
