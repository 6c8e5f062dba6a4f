from __future__ import annotations

import pytest

from app.core.errors import InvalidParamError
from app.rest.params import coerce_value, validate_args
from app.rest.request import RestRequest
from app.rest.response import RestResponse, ensure_response
from app.rest.schema import filter_response_by_context, filter_response_fields, schema_contexts

SCHEMA = {
    "properties": {
        "id": {"type": "integer", "context": ["view", "edit", "embed"]},
        "secret": {"type": "string", "context": ["edit"]},
        "meta": {
            "type": "object",
            "context": ["view", "edit"],
            "properties": {
                "public": {"type": "string", "context": ["view", "edit"]},
                "private": {"type": "string", "context": ["edit"]},
            },
        },
    }
}

ARGS = {
    "context": {"type": "string", "enum": ["view", "embed", "edit"], "default": "view"},
    "page": {"type": "integer", "default": 1, "minimum": 1},
    "include": {"type": "array", "items": {"type": "integer"}, "default": []},
    "search": {"type": "string"},
}


def test_validate_args_applies_defaults_and_passes_unknown_params() -> None:
    params = validate_args({"_fields": "id", "page": "3"}, ARGS)

    assert params == {"_fields": "id", "context": "view", "page": 3, "include": []}


def test_blank_enum_value_falls_back_to_default() -> None:
    assert validate_args({"context": ""}, ARGS)["context"] == "view"


def test_blank_string_is_kept() -> None:
    assert validate_args({"search": ""}, ARGS)["search"] == ""


def test_validate_args_collects_every_error() -> None:
    with pytest.raises(InvalidParamError) as exc_info:
        validate_args({"context": "admin", "page": "x", "include": "1,b"}, ARGS)

    error = exc_info.value
    assert set(error.params) == {"context", "page", "include"}
    assert error.status_code == 400
    assert error.to_dict()["data"]["params"]["page"] == "page is not of type integer."


def test_required_arg_is_enforced() -> None:
    with pytest.raises(InvalidParamError) as exc_info:
        validate_args({}, {"id": {"type": "integer", "required": True}})

    assert exc_info.value.params == {"id": "id is a required parameter."}


@pytest.mark.parametrize(
    ("value", "spec", "expected"),
    [
        ("7", {"type": "integer"}, 7),
        (" 7 ", {"type": "integer"}, 7),
        ("true", {"type": "boolean"}, True),
        ("0", {"type": "boolean"}, False),
        ("1, 2,,3", {"type": "array", "items": {"type": "integer"}}, [1, 2, 3]),
        (["a,b", "c"], {"type": "array"}, ["a", "b", "c"]),
        (5, {"type": "string"}, "5"),
    ],
)
def test_coerce_value(value, spec, expected) -> None:
    assert coerce_value(value, spec) == expected


@pytest.mark.parametrize(
    ("value", "spec"),
    [
        (True, {"type": "integer"}),
        ("1.5", {"type": "integer"}),
        ("11", {"type": "integer", "maximum": 10}),
        ("maybe", {"type": "boolean"}),
        ("x", {"type": "string", "enum": ["a", "b"]}),
    ],
)
def test_coerce_value_rejects(value, spec) -> None:
    with pytest.raises(ValueError):
        coerce_value(value, spec)


def test_context_filter_drops_undeclared_and_hidden_fields() -> None:
    data = {"id": 1, "secret": "x", "extra": True, "meta": {"public": "p", "private": "q"}}

    assert filter_response_by_context(data, SCHEMA, "view") == {"id": 1, "meta": {"public": "p"}}
    assert filter_response_by_context(data, SCHEMA, "embed") == {"id": 1}
    assert filter_response_by_context(data, SCHEMA, "edit") == {
        "id": 1,
        "secret": "x",
        "meta": {"public": "p", "private": "q"},
    }


def test_schema_contexts_in_canonical_order() -> None:
    assert schema_contexts(SCHEMA) == ["view", "embed", "edit"]
    assert schema_contexts({"properties": {"a": {"context": ["edit", "view"]}}}) == ["view", "edit"]


def test_filter_response_fields_handles_nested_and_lists() -> None:
    data = {"id": 1, "title": "t", "meta": {"a": 1, "b": 2}}

    assert filter_response_fields(data, ["id", "meta.b"]) == {"id": 1, "meta": {"b": 2}}
    assert filter_response_fields([data, data], ["title"]) == [{"title": "t"}, {"title": "t"}]
    assert filter_response_fields(data, []) is data


def test_response_links_render_under_links_key() -> None:
    response = RestResponse({"id": 1})
    response.add_links({"self": {"href": "/a"}, "up": [{"href": "/b", "embeddable": True}]})

    assert response.render() == {
        "id": 1,
        "_links": {"self": [{"href": "/a"}], "up": [{"href": "/b", "embeddable": True}]},
    }
    assert ensure_response(response) is response
    assert ensure_response([1]).render() == [1]


def test_request_accessors() -> None:
    request = RestRequest(method="GET", route="/x", params={"a": None, "b": 2}, rest_root="http://h/api/")

    assert request["missing"] is None
    assert request.get("a", "fallback") == "fallback"
    assert request.get("b", 0) == 2
    assert request.rest_url("/nav/v1/menu-items") == "http://h/api/nav/v1/menu-items"
