"""Application and command-line error types."""

from __future__ import annotations

import logging
from enum import Enum
from http import HTTPStatus

logger = logging.getLogger(__name__)


class AppErrorCode(Enum):
    """Kinds of application errors, each tied to an HTTP status."""

    INTERNAL_ERROR = (HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
    BAD_REQUEST = (HTTPStatus.BAD_REQUEST, "Bad Request")
    NOT_FOUND = (HTTPStatus.NOT_FOUND, "Not Found")
    UNPROCESSABLE_ENTITY = (HTTPStatus.UNPROCESSABLE_ENTITY, "Unprocessable Entity")
    METHOD_NOT_ALLOWED = (HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")

    @property
    def status(self) -> HTTPStatus:
        return self.value[0]

    @property
    def default_message(self) -> str:
        return self.value[1]


class AppError(Exception):
    """An error that is reported to API clients as a JSON body."""

    def __init__(self, code: AppErrorCode, message: str | None = None) -> None:
        if code is AppErrorCode.METHOD_NOT_ALLOWED or message is None:
            message = code.default_message
        self.code = code
        self.message = str(message)
        super().__init__(self.message)

    @property
    def status(self) -> HTTPStatus:
        return self.code.status

    def to_dict(self) -> dict[str, object]:
        """Return the JSON body sent to clients."""
        return {"code": int(self.status), "message": self.message}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"AppError({self.code.name}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppError):
            return NotImplemented
        return self.code is other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))


def app_error(
    code: AppErrorCode, message: str | None = None, details: str | None = None
) -> AppError:
    """Build an AppError, logging internal errors that carry a message."""
    if code is AppErrorCode.INTERNAL_ERROR and message is not None:
        logger.error("%s", details if details is not None else message)
    return AppError(code, message)


class CliErrorKind(Enum):
    """Kinds of command-line errors with their display prefix."""

    PANIC = "Panic"
    CONFIG = "Config error"
    DATABASE = "Database error"
    ERROR = "CLI error"
    SERVER = "Server error"


class CliError(Exception):
    """An error that stops the command-line program."""

    def __init__(self, kind: CliErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CliError):
            return NotImplemented
        return self.kind is other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))