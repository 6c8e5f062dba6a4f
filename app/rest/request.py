from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.core.auth import ANONYMOUS, Principal


@dataclass
class RestRequest:
    method: str
    route: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    principal: Principal = ANONYMOUS
    rest_root: str = "http://localhost:8000/api"
    # Per-request scratch space shared by the items prepared for one response.
    state: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.params.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.params.get(key)
        return default if value is None else value

    def rest_url(self, path: str = "") -> str:
        return f"{self.rest_root.rstrip('/')}/{path.lstrip('/')}"
