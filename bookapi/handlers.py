"""HTTP handlers for the book API and the health check."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from bookapi.errors import AppError, AppErrorCode, app_error
from bookapi.extractors import parse_query, path_uuid, request_id
from bookapi.models import Book, BookCreation, validate_request_data
from bookapi.query import PaginateSort
from bookapi.repository import BookRepository

logger = logging.getLogger(__name__)

_NOT_FOUND_MESSAGE = "book could not be found"


def _repository(request: Request) -> BookRepository:
    return request.app.state.repository


async def _payload(request: Request) -> BookCreation:
    creation = BookCreation.from_json(await request.body())
    validate_request_data(creation)
    return creation


async def create(request: Request) -> Response:
    """POST /api/v1/book"""
    logger.debug("create book, request_id=%s", request_id(request))
    creation = await _payload(request)
    book = Book.new(creation)
    await run_in_threadpool(_repository(request).create, book)
    return JSONResponse(book.to_dict())


async def get_all(request: Request) -> Response:
    """GET /api/v1/book"""
    logger.debug("list books, request_id=%s", request_id(request))
    paginate_sort = PaginateSort.from_query(parse_query(request.url.query))
    books = await run_in_threadpool(_repository(request).get_all, paginate_sort)
    return JSONResponse(books.to_dict())


async def get_by_id(request: Request) -> Response:
    """GET /api/v1/book/{id}"""
    logger.debug("get book, request_id=%s", request_id(request))
    book_id = str(path_uuid(request, "id"))
    book = await run_in_threadpool(_repository(request).get_by_id, book_id)
    if book is None:
        raise AppError(AppErrorCode.NOT_FOUND, _NOT_FOUND_MESSAGE)
    return JSONResponse(book.to_dict())


async def update(request: Request) -> Response:
    """PUT /api/v1/book/{id}"""
    logger.debug("update book, request_id=%s", request_id(request))
    book_id = str(path_uuid(request, "id"))
    creation = await _payload(request)
    repository = _repository(request)
    await run_in_threadpool(repository.update, book_id, creation)
    book = await run_in_threadpool(repository.get_by_id, book_id)
    if book is None:
        raise AppError(AppErrorCode.NOT_FOUND, _NOT_FOUND_MESSAGE)
    return JSONResponse(book.to_dict())


async def delete(request: Request) -> Response:
    """DELETE /api/v1/book/{id}"""
    logger.debug("delete book, request_id=%s", request_id(request))
    book_id = str(path_uuid(request, "id"))
    removed = await run_in_threadpool(_repository(request).delete, book_id)
    if removed != 1:
        raise app_error(AppErrorCode.INTERNAL_ERROR, "no book or book already deleted")
    return Response(status_code=204)


async def health_check(request: Request) -> Response:
    """GET /health-check"""
    return PlainTextResponse("OK")