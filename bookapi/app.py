"""Application assembly: routes, middleware and error handling."""

from __future__ import annotations

import os

from sqlalchemy.engine import Engine
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles

from bookapi import handlers
from bookapi.errors import AppError
from bookapi.metrics import PrometheusMetric, PrometheusMiddleware
from bookapi.middleware import (
    LoggerMiddleware,
    OverrideHttpErrorsMiddleware,
    RequestIdMiddleware,
)
from bookapi.repository import BookRepository

API_PREFIX = "/api/v1/book"


async def _root_redirect(request: Request) -> Response:
    return RedirectResponse("/rapidoc-ui.html", status_code=308)


def web_routes() -> list[BaseRoute]:
    """Routes for the web front: root redirect and health check."""
    return [
        Route("/", _root_redirect, methods=["GET"]),
        Route("/health-check", handlers.health_check, methods=["GET"]),
    ]


def api_routes() -> list[BaseRoute]:
    """Routes of the book API."""
    item = f"{API_PREFIX}/{{id}}"
    return [
        Route(API_PREFIX, handlers.create, methods=["POST"]),
        Route(API_PREFIX, handlers.get_all, methods=["GET"]),
        Route(item, handlers.get_by_id, methods=["GET"]),
        Route(item, handlers.update, methods=["PUT"]),
        Route(item, handlers.delete, methods=["DELETE"]),
    ]


async def _app_error_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, AppError)
    return JSONResponse(exc.to_dict(), status_code=int(exc.status))


def create_app(
    engine: Engine,
    prometheus_metrics_enabled: bool = False,
    assets_dir: str | None = "assets",
) -> Starlette:
    """Build the ASGI application around a database engine."""
    routes = api_routes() + web_routes()
    middleware = [
        Middleware(RequestIdMiddleware),
        Middleware(LoggerMiddleware),
        Middleware(OverrideHttpErrorsMiddleware),
    ]

    if prometheus_metrics_enabled:
        metric = PrometheusMetric()

        async def render_metrics(request: Request) -> Response:
            return PlainTextResponse(metric.render())

        routes.append(Route("/metrics", render_metrics, methods=["GET"]))
        middleware.append(Middleware(PrometheusMiddleware, metric=metric))

    if assets_dir is not None and os.path.isdir(assets_dir):
        routes.append(Mount("/", StaticFiles(directory=assets_dir, html=True)))

    app = Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={AppError: _app_error_handler},
    )
    app.state.repository = BookRepository(engine)
    return app