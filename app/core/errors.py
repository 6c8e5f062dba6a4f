from __future__ import annotations

from typing import Any


class RestError(RuntimeError):
    status_code = 500
    default_code = "rest_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        self.data = data or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": {"status": self.status_code, **self.data},
        }


class InvalidParamError(RestError):
    status_code = 400
    default_code = "rest_invalid_param"

    def __init__(self, params: dict[str, str]) -> None:
        names = ", ".join(sorted(params))
        super().__init__(f"Invalid parameter(s): {names}", data={"params": params})
        self.params = params


class NotFoundError(RestError):
    status_code = 404
    default_code = "rest_not_found"


class ForbiddenError(RestError):
    status_code = 403
    default_code = "rest_forbidden"

    def __init__(self, message: str, *, code: str | None = None, authenticated: bool = False) -> None:
        super().__init__(message, code=code, status_code=403 if authenticated else 401)


class StoreUnavailableError(RestError):
    status_code = 503
    default_code = "store_unavailable"

    def __init__(self, message: str, *, service: str = "post_store") -> None:
        super().__init__(message)
        self.service = service
