from __future__ import annotations

import secrets
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    authenticated: bool = False
    can_edit: bool = False


ANONYMOUS = Principal()
EDITOR = Principal(authenticated=True, can_edit=True)


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    authorization = headers.get("authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_principal(headers: Mapping[str, str], editor_token: str | None = None) -> Principal:
    token = extract_bearer_token(headers)
    if token is None:
        return ANONYMOUS

    expected = editor_token if editor_token is not None else settings.editor_token
    if expected and secrets.compare_digest(token, expected):
        return EDITOR

    logger.warning("editor_token_rejected")
    return ANONYMOUS
