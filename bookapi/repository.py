"""Storage of books in a SQL database."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    delete,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bookapi.errors import AppError, AppErrorCode
from bookapi.models import Book, BookCreation
from bookapi.query import PaginateResponse, PaginateSort

logger = logging.getLogger(__name__)

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

SORTABLE_FIELDS = ("id", "title", "author", "created_at", "updated_at")

metadata = MetaData()

book_table = Table(
    "book",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String, nullable=False),
    Column("author", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=True),
)


def create_schema(engine: Engine) -> None:
    """Create the book table if it does not exist yet."""
    metadata.create_all(engine)


@contextmanager
def _database_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Database error: %r", exc)
        raise AppError(AppErrorCode.INTERNAL_ERROR, "Database Error") from exc


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_book(row) -> Book:
    return Book(
        id=row.id,
        title=row.title,
        author=row.author,
        created_at=_to_utc(row.created_at),
        updated_at=_to_utc(row.updated_at),
    )


def _check_i32(value: int) -> None:
    if not _I32_MIN <= value <= _I32_MAX:
        logger.error("Pagination error: %d out of range for a 32-bit integer", value)
        raise AppError(AppErrorCode.BAD_REQUEST, "Parameter Error")


class BookRepository:
    """Reads and writes books through a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, book: Book) -> None:
        """Add a new book."""
        with _database_errors(), self.engine.begin() as conn:
            conn.execute(
                insert(book_table).values(
                    id=book.id,
                    title=book.title,
                    author=book.author,
                    created_at=_to_utc(book.created_at),
                )
            )

    def get_all(self, paginate_sort: PaginateSort) -> PaginateResponse:
        """Return one page of books together with the total count."""
        total = self.total()
        _check_i32(paginate_sort.limit)
        _check_i32(paginate_sort.offset)

        sql = (
            "SELECT id, title, author, created_at, updated_at FROM book"
            + paginate_sort.sorts_sql(SORTABLE_FIELDS)
            + paginate_sort.pagination_sql()
        )
        statement = text(sql).columns(*book_table.c)
        with _database_errors(), self.engine.connect() as conn:
            books = [_row_to_book(row) for row in conn.execute(statement)]
        return PaginateResponse(data=books, total=total)

    def get_by_id(self, book_id: str) -> Book | None:
        """Return the book with this id, or None."""
        statement = select(book_table).where(book_table.c.id == book_id)
        with _database_errors(), self.engine.connect() as conn:
            row = conn.execute(statement).first()
        return None if row is None else _row_to_book(row)

    def delete(self, book_id: str) -> int:
        """Delete a book and return the number of rows removed."""
        statement = delete(book_table).where(book_table.c.id == book_id)
        with _database_errors(), self.engine.begin() as conn:
            result = conn.execute(statement)
        return result.rowcount

    def update(self, book_id: str, book: BookCreation) -> None:
        """Overwrite title and author and stamp the update time."""
        statement = (
            update(book_table)
            .where(book_table.c.id == book_id)
            .values(
                title=book.title,
                author=book.author,
                updated_at=datetime.now(timezone.utc),
            )
        )
        with _database_errors(), self.engine.begin() as conn:
            conn.execute(statement)

    def total(self) -> int:
        """Return the number of stored books."""
        statement = select(func.count(book_table.c.id))
        with _database_errors(), self.engine.connect() as conn:
            return int(conn.execute(statement).scalar_one())