import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from bookapi.app import api_routes, create_app, web_routes
from bookapi.repository import create_schema


def _engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    return engine


@pytest.fixture
def client():
    with TestClient(create_app(_engine(), False, None)) as test_client:
        yield test_client


def _create(client, body):
    return client.post(
        "/api/v1/book", content=body, headers={"Content-Type": "application/json"}
    )


def test_route_lists():
    assert [route.path for route in web_routes()] == ["/", "/health-check"]
    assert len(api_routes()) == 5


def test_health_check(client):
    assert client.get("/health-check").status_code == 200


def test_root_redirect(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code == 308
    assert response.headers["location"] == "/rapidoc-ui.html"


def test_request_id_is_returned(client):
    response = client.get("/health-check", headers={"x-request-id": "abc"})
    assert response.headers["x-request-id"] == "abc"


def test_api_create_book(client):
    assert _create(client, '{"title": "foo", "author": "bar"}').status_code == 200


def test_api_create_book_invalid_json(client):
    assert _create(client, "invalid_json").status_code == 400


def test_api_fetch_all_books(client):
    for i in range(2):
        _create(client, f'{{"title": "foo-{i}", "author": "bar"}}')
    response = client.get("/api/v1/book?")
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["total"] == 2


def test_api_fetch_all_books_invalid_filter(client):
    assert client.get("/api/v1/book?p=not_an_int").status_code == 400


def test_api_fetch_one_book(client):
    book_id = _create(client, '{"title": "foo", "author": "bar"}').json()["id"]
    response = client.get(f"/api/v1/book/{book_id}")
    assert response.status_code == 200
    assert response.json()["id"] == book_id
    assert response.json()["updated_at"] is None


def test_api_fetch_one_book_invalid_id(client):
    assert client.get("/api/v1/book/not_an_uuid").status_code == 400


def test_api_fetch_one_book_unknown_id(client):
    assert client.get(f"/api/v1/book/{uuid.uuid4()}").status_code == 404


def test_api_update_book(client):
    book_id = _create(client, '{"title": "foo", "author": "bar"}').json()["id"]
    response = client.put(f"/api/v1/book/{book_id}", json={"title": "bar", "author": "foo"})
    assert response.status_code == 200
    book = response.json()
    assert book["title"] == "bar"
    assert book["author"] == "foo"
    assert book["updated_at"] is not None


def test_api_update_book_unknown_id(client):
    response = client.put(f"/api/v1/book/{uuid.uuid4()}", json={"title": "bar", "author": "foo"})
    assert response.status_code == 404


def test_api_delete_book(client):
    book_id = _create(client, '{"title": "foo", "author": "bar"}').json()["id"]
    assert client.delete(f"/api/v1/book/{book_id}").status_code == 204


def test_api_delete_book_invalid_id(client):
    assert client.delete("/api/v1/book/not_an_uuid").status_code == 400


def test_api_delete_book_unknown_id(client):
    assert client.delete(f"/api/v1/book/{uuid.uuid4()}").status_code == 500


def test_method_not_allowed_is_json(client):
    response = client.patch("/api/v1/book")
    assert response.status_code == 405
    assert response.json() == {"code": 405, "message": "Method Not Allowed"}


def test_metrics_route():
    with TestClient(create_app(_engine(), True, None)) as client:
        client.get("/health-check")
        text = client.get("/metrics").text
    assert "http_requests_duration_seconds" in text


def test_static_assets(tmp_path):
    (tmp_path / "index.html").write_text("<p>hello</p>")
    with TestClient(create_app(_engine(), False, str(tmp_path))) as client:
        response = client.get("/index.html")
    assert "hello" in response.text