"""Pagination and sorting of list results."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bookapi.errors import AppError, AppErrorCode

PAGINATION_MAX_LIMIT = 500

_U32_MAX = 2**32 - 1
_U32_RE = re.compile(r"\+?[0-9]+")
_FIELD_NAMES = {"p": "page", "l": "limit", "s": "sort"}


def _parse_u32(key: str, value: str) -> int:
    if not _U32_RE.fullmatch(value):
        raise AppError(
            AppErrorCode.BAD_REQUEST, f"invalid digit found in string for `{key}`"
        )
    number = int(value)
    if number > _U32_MAX:
        raise AppError(
            AppErrorCode.BAD_REQUEST, f"number too large to fit in target type for `{key}`"
        )
    return number


@dataclass(frozen=True)
class PaginateSortQuery:
    """Raw query parameters: ``p`` (page), ``l`` (limit) and ``s`` (sort)."""

    page: int | None = None
    limit: int | None = None
    sort: str | None = None

    @classmethod
    def from_params(
        cls, params: Mapping[str, str] | Iterable[tuple[str, str]]
    ) -> PaginateSortQuery:
        """Build from decoded query parameters; unknown keys are ignored."""
        pairs = params.items() if isinstance(params, Mapping) else params
        values: dict[str, Any] = {}
        for key, value in pairs:
            name = _FIELD_NAMES.get(key)
            if name is None:
                continue
            if name in values:
                raise AppError(AppErrorCode.BAD_REQUEST, f"duplicate field `{key}`")
            values[name] = value if name == "sort" else _parse_u32(key, value)
        return cls(**values)


class Sort(Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"

    def __str__(self) -> str:
        return self.value


@dataclass
class PaginateSort:
    """Parameters used to paginate and sort database results."""

    page: int
    limit: int
    offset: int
    sorts: list[tuple[str, Sort]] = field(default_factory=list)

    @classmethod
    def from_query(cls, query: PaginateSortQuery) -> PaginateSort:
        page = query.page if query.page is not None and query.page >= 1 else 1
        limit = query.limit
        if limit is None or not 1 <= limit <= PAGINATION_MAX_LIMIT:
            limit = PAGINATION_MAX_LIMIT
        sorts: list[tuple[str, Sort]] = []
        for part in (query.sort or "").split(","):
            if part.startswith("+"):
                sorts.append((part[1:], Sort.ASC))
            elif part.startswith("-"):
                sorts.append((part[1:], Sort.DESC))
        return cls(page=page, limit=limit, offset=(page - 1) * limit, sorts=sorts)

    def pagination_sql(self) -> str:
        return f" LIMIT {self.limit} OFFSET {self.offset}"

    def sorts_sql(self, valid_fields: Iterable[str] | None = None) -> str:
        """Return an ORDER BY clause, keeping only allowed fields if given."""
        allowed = None if valid_fields is None else set(valid_fields)
        terms = [
            f"{name} {sort}"
            for name, sort in self.sorts
            if allowed is None or name in allowed
        ]
        return f" ORDER BY {', '.join(terms)}" if terms else ""


@dataclass
class PaginateResponse:
    """A page of results together with the total count."""

    data: Any
    total: int

    def to_dict(self) -> dict[str, Any]:
        data = self.data
        if isinstance(data, (list, tuple)):
            data = [item.to_dict() if hasattr(item, "to_dict") else item for item in data]
        elif hasattr(data, "to_dict"):
            data = data.to_dict()
        return {"data": data, "total": self.total}