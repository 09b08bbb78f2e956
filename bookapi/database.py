"""Creation of the database connection pool."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from bookapi.errors import CliError, CliErrorKind
from bookapi.repository import create_schema

logger = logging.getLogger(__name__)


def _engine(url, max_connections, connection_lifetime, connect_timeout) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        return create_engine(
            parsed, connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    return create_engine(
        parsed,
        pool_size=max_connections,
        max_overflow=0,
        pool_recycle=connection_lifetime,
        pool_timeout=connect_timeout,
        pool_pre_ping=True,
    )


def init_db_pool(
    url: str,
    max_connections: int = 10,
    min_connections: int = 1,
    connection_lifetime: int = 1800,
    connect_timeout: int = 30,
    idle_timeout: int = 600,
    auto_migration: bool = False,
) -> Engine:
    """Open a pooled engine, check it connects and optionally create the schema.

    The pool does not keep a minimum of idle connections nor close them on an
    idle timeout; those settings are accepted for configuration compatibility.
    """
    try:
        engine = _engine(url, max_connections, connection_lifetime, connect_timeout)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise CliError(CliErrorKind.DATABASE, str(exc)) from exc

    if auto_migration:
        logger.info("Run database migrations")
        try:
            create_schema(engine)
        except SQLAlchemyError as exc:
            raise CliError(
                CliErrorKind.DATABASE, f"failed to run database migrations: {exc}"
            ) from exc
    return engine