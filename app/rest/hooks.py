from __future__ import annotations

from collections.abc import Callable, Iterable

from app.posts.models import PostRecord
from app.rest.request import RestRequest
from app.rest.response import RestResponse

ResponseFilter = Callable[[RestResponse, PostRecord, RestRequest], RestResponse]


def apply_response_filters(
    filters: Iterable[ResponseFilter],
    response: RestResponse,
    record: PostRecord,
    request: RestRequest,
) -> RestResponse:
    for response_filter in filters:
        response = response_filter(response, record, request)
    return response
