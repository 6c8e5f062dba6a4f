from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.core.errors import InvalidParamError

ArgSpec = dict[str, Any]


def _coerce_integer(value: Any, spec: ArgSpec) -> int:
    if isinstance(value, bool):
        raise ValueError("is not of type integer.")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not text.lstrip("-").isdigit():
            raise ValueError("is not of type integer.")
        number = int(text)
    minimum = spec.get("minimum")
    maximum = spec.get("maximum")
    if minimum is not None and number < minimum:
        raise ValueError(f"must be greater than or equal to {minimum}")
    if maximum is not None and number > maximum:
        raise ValueError(f"must be less than or equal to {maximum}")
    return number


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes"):
        return True
    if text in ("0", "false", "no", ""):
        return False
    raise ValueError("is not of type boolean.")


def _coerce_array(value: Any, spec: ArgSpec) -> list[Any]:
    if isinstance(value, (list, tuple)):
        raw = [part for item in value for part in str(item).split(",")]
    else:
        raw = str(value).split(",")
    items_spec = spec.get("items", {"type": "string"})
    return [coerce_value(part.strip(), items_spec) for part in raw if part.strip()]


def coerce_value(value: Any, spec: ArgSpec) -> Any:
    """Sanitize one value against a JSON-schema style argument spec."""
    arg_type = spec.get("type", "string")
    if arg_type == "integer":
        result: Any = _coerce_integer(value, spec)
    elif arg_type == "boolean":
        result = _coerce_boolean(value)
    elif arg_type == "array":
        return _coerce_array(value, spec)
    else:
        result = value if isinstance(value, str) else str(value)

    enum = spec.get("enum")
    if enum is not None and result not in enum:
        raise ValueError(f"is not one of {', '.join(str(option) for option in enum)}.")
    return result


def validate_args(raw: Mapping[str, Any], args: Mapping[str, ArgSpec]) -> dict[str, Any]:
    """Validate declared args, apply defaults, and pass unknown params through.

    Every invalid param is reported at once in a single ``InvalidParamError``.
    """
    params: dict[str, Any] = {
        key: value for key, value in raw.items() if key not in args
    }
    errors: dict[str, str] = {}

    for name, spec in args.items():
        value = raw.get(name)
        blank = value == "" and (spec.get("type", "string") != "string" or "enum" in spec)
        if value is None or blank:
            if spec.get("required"):
                errors[name] = f"{name} is a required parameter."
            elif "default" in spec:
                params[name] = spec["default"]
            continue
        try:
            params[name] = coerce_value(value, spec)
        except ValueError as exc:
            errors[name] = f"{name} {exc}"

    if errors:
        raise InvalidParamError(errors)
    return params
