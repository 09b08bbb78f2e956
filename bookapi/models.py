"""Book models and request validation."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Protocol

from bookapi.errors import AppError, AppErrorCode

_DESERIALIZE_PREFIX = "Failed to deserialize the JSON body into the target type"


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"boolean `{str(value).lower()}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"floating point `{value}`"
    if isinstance(value, str):
        return f"string {json.dumps(value)}"
    if isinstance(value, list):
        return "sequence"
    return "map"


@dataclass
class Book:
    """A stored book."""

    id: str
    title: str
    author: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def new(cls, creation: BookCreation) -> Book:
        """Create a book with a fresh id and the current time."""
        return cls(
            id=str(uuid.uuid4()),
            title=creation.title,
            author=creation.author,
            created_at=datetime.now(timezone.utc),
            updated_at=None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "created_at": _format_datetime(self.created_at),
            "updated_at": (
                None if self.updated_at is None else _format_datetime(self.updated_at)
            ),
        }


@dataclass
class BookCreation:
    """Payload used to create or update a book."""

    title: str
    author: str

    @classmethod
    def from_json(cls, payload: str | bytes | bytearray | Any) -> BookCreation:
        """Decode a JSON body (text, bytes or already parsed value)."""
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = bytes(payload).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise AppError(
                    AppErrorCode.BAD_REQUEST,
                    f"Failed to parse the request body as JSON: {exc}",
                ) from exc
        if isinstance(payload, str):
            try:
                data = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise AppError(
                    AppErrorCode.BAD_REQUEST,
                    f"Failed to parse the request body as JSON: {exc}",
                ) from exc
        else:
            data = payload

        if not isinstance(data, dict):
            raise AppError(
                AppErrorCode.UNPROCESSABLE_ENTITY,
                f"{_DESERIALIZE_PREFIX}: invalid type: {_json_kind(data)}, "
                "expected struct BookCreation",
            )
        values: dict[str, str] = {}
        for spec in fields(cls):
            if spec.name not in data:
                raise AppError(
                    AppErrorCode.UNPROCESSABLE_ENTITY,
                    f"{_DESERIALIZE_PREFIX}: missing field `{spec.name}`",
                )
            value = data[spec.name]
            if not isinstance(value, str):
                raise AppError(
                    AppErrorCode.UNPROCESSABLE_ENTITY,
                    f"{_DESERIALIZE_PREFIX}: {spec.name}: invalid type: "
                    f"{_json_kind(value)}, expected a string",
                )
            values[spec.name] = value
        return cls(**values)

    def validate(self) -> dict[str, list[dict[str, Any]]]:
        """Return validation errors per field; empty when valid."""
        errors: dict[str, list[dict[str, Any]]] = {}
        for spec in fields(self):
            value = getattr(self, spec.name)
            if not isinstance(value, str):
                errors[spec.name] = [
                    {"code": "type", "message": None, "params": {"value": repr(value)}}
                ]
        return errors


class _Validatable(Protocol):
    def validate(self) -> dict[str, Any]: ...


def validate_request_data(data: _Validatable) -> None:
    """Raise a bad-request error carrying the validation errors as JSON."""
    errors = data.validate()
    if errors:
        raise AppError(AppErrorCode.BAD_REQUEST, json.dumps(errors))