"""Server settings, startup and the command-line entry point."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields

import uvicorn

from bookapi.app import create_app
from bookapi.database import init_db_pool
from bookapi.errors import CliError, CliErrorKind
from bookapi.logging_setup import init_logging
from bookapi.metrics import APP_NAME

VERSION = "0.1.0"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Server configuration, read from environment variables."""

    environment: str = "development"
    bind_address: str = "127.0.0.1"
    bind_port: int = 3000
    database_url: str = "sqlite:///books.db"
    database_max_connections: int = 10
    database_min_connections: int = 1
    database_connection_lifetime: int = 1800
    database_connect_timeout: int = 30
    database_idle_timeout: int = 600
    database_auto_migration: bool = True
    prometheus_metrics_enabled: bool = False
    assets_dir: str = "assets"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from upper-case variables named like the fields."""
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for spec in fields(cls):
            raw = environ.get(spec.name.upper())
            if raw is None:
                continue
            kind = type(spec.default)
            if kind is bool:
                lowered = raw.strip().lower()
                if lowered not in _TRUE | _FALSE:
                    raise CliError(
                        CliErrorKind.CONFIG, f"invalid boolean for {spec.name}: {raw}"
                    )
                values[spec.name] = lowered in _TRUE
            elif kind is int:
                try:
                    values[spec.name] = int(raw)
                except ValueError:
                    raise CliError(
                        CliErrorKind.CONFIG, f"invalid integer for {spec.name}: {raw}"
                    ) from None
            else:
                values[spec.name] = raw
        return cls(**values)


def start_server(settings: Settings | None = None) -> None:
    """Configure logging and the database, then serve HTTP until stopped."""
    if settings is None:
        settings = Settings.from_env()
    init_logging(settings.environment)
    engine = init_db_pool(
        settings.database_url,
        settings.database_max_connections,
        settings.database_min_connections,
        settings.database_connection_lifetime,
        settings.database_connect_timeout,
        settings.database_idle_timeout,
        settings.database_auto_migration,
    )
    app = create_app(engine, settings.prometheus_metrics_enabled, settings.assets_dir)
    # No graceful shutdown in development.
    grace = 0 if settings.environment == "development" else None
    config = uvicorn.Config(
        app,
        host=settings.bind_address,
        port=settings.bind_port,
        timeout_graceful_shutdown=grace,
        log_config=None,
    )
    try:
        uvicorn.Server(config).run()
    except OSError as exc:
        raise CliError(CliErrorKind.SERVER, str(exc)) from exc


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(prog=APP_NAME)
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {VERSION}")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("serve", help="Start HTTP server")
    args = parser.parse_args(argv)

    if args.command == "serve":
        try:
            start_server()
        except CliError as exc:
            print(f"Error: {CliError(CliErrorKind.SERVER, str(exc))}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())