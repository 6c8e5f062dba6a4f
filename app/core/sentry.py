from __future__ import annotations

import re
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from app.core.config import settings

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
BEARER_PATTERN = re.compile(r"Bearer\s+\S+", re.IGNORECASE)
SENSITIVE_HEADERS = frozenset({"authorization", "cookie"})


def mask_pii(text: str | None) -> str | None:
    """Mask e-mail addresses and bearer tokens from text."""
    if text is None:
        return None
    text = EMAIL_PATTERN.sub("[EMAIL_REDACTED]", text)
    return BEARER_PATTERN.sub("Bearer [TOKEN_REDACTED]", text)


def _scrub_request(request_data: dict[str, Any]) -> None:
    headers = request_data.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in SENSITIVE_HEADERS:
                headers[name] = "[REDACTED]"
    query = request_data.get("query_string")
    if isinstance(query, str):
        request_data["query_string"] = mask_pii(query)


def _scrub_values(entries: list[dict[str, Any]], key: str) -> None:
    for entry in entries:
        if isinstance(entry.get(key), str):
            entry[key] = mask_pii(entry[key])


def before_send(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Tag events with the request id and strip tokens and addresses."""
    request = hint.get("request")
    if request is not None and hasattr(request, "headers"):
        request_id = request.headers.get("x-request-id")
        if request_id:
            event.setdefault("tags", {})["request_id"] = request_id

    if isinstance(event.get("request"), dict):
        _scrub_request(event["request"])

    _scrub_values(event.get("exception", {}).get("values", []), "value")

    breadcrumbs = event.get("breadcrumbs", {}).get("values", [])
    _scrub_values(breadcrumbs, "message")
    for breadcrumb in breadcrumbs:
        data = breadcrumb.get("data") or {}
        for key, value in data.items():
            if isinstance(value, str):
                data[key] = mask_pii(value)

    return event


def init_sentry() -> bool:
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment or settings.environment,
        integrations=[
            FastApiIntegration(transaction_style="url"),
            # Log records are not forwarded.
            LoggingIntegration(level=None, event_level=None),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=before_send,
        send_default_pii=False,
        max_breadcrumbs=50,
    )
    sentry_sdk.set_tag("service", settings.app_name)
    sentry_sdk.set_tag("api_namespace", settings.api_namespace)
    return True
