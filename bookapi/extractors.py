"""Helpers that pull typed values out of incoming requests."""

from __future__ import annotations

import uuid
from urllib.parse import parse_qsl

from starlette.requests import Request

from bookapi.errors import AppError, AppErrorCode, app_error
from bookapi.query import PaginateSortQuery


def request_id(request: Request) -> str:
    """Return the ``x-request-id`` header, or an empty string."""
    return request.headers.get("x-request-id", "")


def path_uuid(request: Request, name: str) -> uuid.UUID:
    """Return the path parameter ``name`` parsed as a UUID."""
    try:
        value = request.path_params[name]
    except KeyError:
        raise app_error(
            AppErrorCode.INTERNAL_ERROR,
            f"No path parameter `{name}` found for matched route",
        ) from None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise AppError(
            AppErrorCode.BAD_REQUEST, f"UUID parsing failed: {exc}"
        ) from exc


def parse_query(query_string: str | bytes) -> PaginateSortQuery:
    """Decode a URL query string into pagination and sort parameters."""
    if isinstance(query_string, bytes):
        query_string = query_string.decode("latin-1")
    pairs = parse_qsl(query_string, keep_blank_values=True)
    return PaginateSortQuery.from_params(pairs)