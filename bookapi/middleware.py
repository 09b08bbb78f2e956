"""ASGI middleware: request ids, access logging and error rewriting."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from bookapi.errors import AppError, AppErrorCode, app_error

logger = logging.getLogger(__name__)

_REQUEST_ID = b"x-request-id"
_MEDIA_PREFIXES = ("image/", "audio/", "video/")
_DESERIALIZE_MARKER = "Failed to deserialize the JSON body"
_HTTP_VERSIONS = {
    "0.9": "HTTP/0.9",
    "1.0": "HTTP/1.0",
    "1.1": "HTTP/1.1",
    "2": "HTTP/2.0",
    "2.0": "HTTP/2.0",
    "3": "HTTP/3.0",
    "3.0": "HTTP/3.0",
}


def make_request_id() -> str:
    """Return a fresh random request id."""
    return str(uuid.uuid4())


def header_value_to_str(value: bytes | str | None) -> str:
    """Decode a header value as UTF-8; missing or undecodable gives ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return ""


def _find_header(headers, name: bytes) -> bytes | None:
    return next((value for key, value in headers if key.lower() == name), None)


def _format_latency(seconds: float) -> str:
    nanos = max(0, round(seconds * 1_000_000_000))
    for divisor, unit in ((1_000_000_000, "s"), (1_000_000, "ms"), (1_000, "µs")):
        if nanos >= divisor:
            whole, fraction = divmod(nanos, divisor)
            digits = len(str(divisor)) - 1
            fraction_text = str(fraction).rjust(digits, "0").rstrip("0")
            return f"{whole}.{fraction_text}{unit}" if fraction_text else f"{whole}{unit}"
    return f"{nanos}ns"


def _request_uri(scope: Scope) -> str:
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope.get("path", "")
    query = scope.get("query_string", b"")
    return f"{path}?{query.decode('latin-1')}" if query else path


def _error_response(error: AppError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=int(error.status))


@dataclass
class LoggerMessage:
    """One access-log line."""

    method: str = ""
    request_id: str = ""
    host: str = ""
    uri: str = ""
    user_agent: str = ""
    status_code: int = 0
    version: str = ""
    latency: float = 0.0

    def __str__(self) -> str:
        return (
            f"status_code: {self.status_code}, method: {self.method}, "
            f"uri: {self.uri}, host: {self.host}, request_id: {self.request_id}, "
            f"user_agent: {self.user_agent}, version: {self.version}, "
            f"latency: {_format_latency(self.latency)}"
        )


class RequestIdMiddleware:
    """Give each request an ``x-request-id`` and echo it in the response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = list(scope.get("headers", []))
        current = _find_header(headers, _REQUEST_ID)
        if current is None:
            current = make_request_id().encode("latin-1")
            headers.append((_REQUEST_ID, current))
            scope = {**scope, "headers": headers}

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                if _find_header(response_headers, _REQUEST_ID) is None:
                    response_headers.append((_REQUEST_ID, current))
                    message = {**message, "headers": response_headers}
            await send(message)

        await self.app(scope, receive, send_with_id)


class LoggerMiddleware:
    """Log one line per answered request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        headers = scope.get("headers", [])
        message = LoggerMessage(
            method=scope.get("method", ""),
            uri=_request_uri(scope),
            host=header_value_to_str(_find_header(headers, b"host")),
            request_id=header_value_to_str(_find_header(headers, _REQUEST_ID)),
            user_agent=header_value_to_str(_find_header(headers, b"user-agent")),
        )
        status: int | None = None

        async def capture(event: Message) -> None:
            nonlocal status
            if event["type"] == "http.response.start":
                status = event["status"]
            await send(event)

        await self.app(scope, receive, capture)

        message.status_code = status or 0
        message.version = _HTTP_VERSIONS.get(
            scope.get("http_version", "1.1"), f"HTTP/{scope.get('http_version')}"
        )
        message.latency = time.perf_counter() - started
        logger.info("%s", message)


class OverrideHttpErrorsMiddleware:
    """Rewrite some plain HTTP errors into the application's JSON errors."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start: Message | None = None
        chunks: list[bytes] = []
        passthrough = False

        async def intercept(message: Message) -> None:
            nonlocal start, passthrough
            if passthrough:
                await send(message)
            elif message["type"] == "http.response.start":
                content_type = header_value_to_str(
                    _find_header(message.get("headers", []), b"content-type")
                )
                if content_type.startswith(_MEDIA_PREFIXES):
                    passthrough = True
                    await send(message)
                else:
                    start = message
            elif message["type"] == "http.response.body":
                chunks.append(message.get("body", b""))
            else:
                await send(message)

        await self.app(scope, receive, intercept)
        if passthrough or start is None:
            return

        body = b"".join(chunks)
        error: AppError | None = None
        try:
            text_body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            error = app_error(AppErrorCode.INTERNAL_ERROR, str(exc))
        else:
            status = start["status"]
            if status == 405:
                error = app_error(AppErrorCode.METHOD_NOT_ALLOWED)
            elif status == 422 and _DESERIALIZE_MARKER in text_body:
                error = app_error(AppErrorCode.UNPROCESSABLE_ENTITY, text_body)

        if error is not None:
            await _error_response(error)(scope, receive, send)
            return
        await send(start)
        await send({"type": "http.response.body", "body": body, "more_body": False})