from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

CONTEXTS = ("view", "embed", "edit")


class ContextFilter(Protocol):
    def __call__(
        self, data: dict[str, Any], schema: dict[str, Any], context: str
    ) -> dict[str, Any]: ...


def filter_response_by_context(
    data: dict[str, Any], schema: dict[str, Any], context: str
) -> dict[str, Any]:
    """Keep only the fields the schema declares visible in ``context``.

    Fields the schema does not declare at all are dropped as well, so the
    result is always a subset of the schema's properties for that context.
    """
    properties = schema.get("properties", {})
    filtered: dict[str, Any] = {}
    for key, value in data.items():
        prop = properties.get(key)
        if prop is None or context not in prop.get("context", ()):
            continue
        if prop.get("type") == "object" and "properties" in prop and isinstance(value, dict):
            value = _filter_nested(value, prop, context)
        filtered[key] = value
    return filtered


def _filter_nested(value: dict[str, Any], prop: dict[str, Any], context: str) -> dict[str, Any]:
    nested = prop["properties"]
    return {
        key: item
        for key, item in value.items()
        if key not in nested or context in nested[key].get("context", prop.get("context", ()))
    }


def schema_contexts(schema: dict[str, Any]) -> list[str]:
    """All contexts mentioned by any property, in canonical order."""
    found: set[str] = set()
    for prop in schema.get("properties", {}).values():
        found.update(prop.get("context", ()))
    return [context for context in CONTEXTS if context in found]


def filter_response_fields(data: Any, fields: Iterable[str]) -> Any:
    """Apply the ``_fields`` param; dotted names select nested keys."""
    wanted = [field for field in fields if field]
    if not wanted:
        return data
    if isinstance(data, list):
        return [filter_response_fields(item, wanted) for item in data]
    if not isinstance(data, dict):
        return data

    result: dict[str, Any] = {}
    for field in wanted:
        head, _, rest = field.partition(".")
        if head not in data:
            continue
        if rest and isinstance(data[head], dict):
            nested = filter_response_fields(data[head], [rest])
            existing = result.get(head)
            result[head] = {**existing, **nested} if isinstance(existing, dict) else nested
        else:
            result[head] = data[head]
    return result
