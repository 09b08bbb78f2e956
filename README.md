# bookapi

A small HTTP JSON API for managing a collection of books. It offers create,
read, update and delete endpoints, paginated and sorted listings, request IDs,
access logging, uniform JSON error bodies and optional Prometheus metrics.
It is built on Starlette, SQLAlchemy and uvicorn.

## Installation

```
pip install .
```

Install the test extras with `pip install .[test]`.

## Running the server

```
bookapi serve
```

`bookapi --version` prints the version. If startup fails (bad settings, no
database, port in use), the error is printed to stderr and the command exits
with status 1.

### Settings

`bookapi.server.Settings.from_env()` reads these environment variables. Each is
the upper-case name of a `Settings` field:

| Variable                       | Default              |
|--------------------------------|----------------------|
| `ENVIRONMENT`                  | `development`        |
| `BIND_ADDRESS`                 | `127.0.0.1`          |
| `BIND_PORT`                    | `3000`               |
| `DATABASE_URL`                 | `sqlite:///books.db` |
| `DATABASE_MAX_CONNECTIONS`     | `10`                 |
| `DATABASE_MIN_CONNECTIONS`     | `1`                  |
| `DATABASE_CONNECTION_LIFETIME` | `1800` (seconds)     |
| `DATABASE_CONNECT_TIMEOUT`     | `30` (seconds)       |
| `DATABASE_IDLE_TIMEOUT`        | `600` (seconds)      |
| `DATABASE_AUTO_MIGRATION`      | `true`               |
| `PROMETHEUS_METRICS_ENABLED`   | `false`              |
| `ASSETS_DIR`                   | `assets`             |

Booleans accept `1/true/yes/on` and `0/false/no/off`. An invalid boolean or
integer raises `bookapi.errors.CliError`.

`DATABASE_URL` is any SQLAlchemy URL. Only SQLite works without further
installs. Other databases need their SQLAlchemy driver installed separately.

### Logging

`bookapi.logging_setup.init_logging(environment)` installs one root handler and
may be called only once. In `production` it writes JSON lines to stderr at the
`error` level. In any other environment it writes readable text to stdout at
the `info` level. The `LOG_LEVEL` variable overrides the level. Every answered
request is logged as one line with status, method, URI, host, request ID, user
agent, HTTP version and latency.

In `development` the server stops at once on SIGINT or SIGTERM. In any other
environment it first waits for open requests to finish.

## Endpoints

| Method | Path                 | Description                               |
|--------|----------------------|-------------------------------------------|
| GET    | `/`                  | Permanent (308) redirect to `/rapidoc-ui.html` |
| GET    | `/health-check`      | Returns `OK`                              |
| POST   | `/api/v1/book`       | Create a book (`{"title", "author"}`)     |
| GET    | `/api/v1/book`       | List books, paginated and sorted          |
| GET    | `/api/v1/book/{id}`  | Fetch one book by UUID                    |
| PUT    | `/api/v1/book/{id}`  | Update a book's title and author          |
| DELETE | `/api/v1/book/{id}`  | Delete a book (204 on success)            |
| GET    | `/metrics`           | Prometheus metrics, when enabled          |

If the assets directory exists, any other path is served from it, with
`index.html` for directories. Every request gets an `x-request-id` header if it
does not carry one, and the response echoes that header.

A book is returned as
`{"id", "title", "author", "created_at", "updated_at"}`. The timestamps are ISO
8601 in UTC. `updated_at` is `null` until the first update.

### Pagination and sorting

The list endpoint takes these query parameters:

- `p`: page number, from 1. Values below 1 count as 1.
- `l`: page size, from 1 to 500. Values outside that range count as 500.
- `s`: a comma-separated list of sort fields. Each field starts with `+` for
  ascending order or `-` for descending order, for example `s=+title,-created_at`.
  Fields without a prefix, or not among `id`, `title`, `author`, `created_at`
  and `updated_at`, are ignored.

A non-numeric or repeated `p` or `l` gives a 400 error. The response has the
form `{"data": [...], "total": <count>}`.

### Errors

Every error response has a JSON body of the form
`{"code": <http status>, "message": "<text>"}`. These are the responses:

- A body that is not JSON gives 400.
- A JSON body with a missing or non-string field gives 422.
- An `id` that is not a UUID gives 400.
- An unknown book gives 404 on fetch and update, and 500 on delete.
- A method the route does not accept gives 405 with the message `Method Not Allowed`.
- A database failure gives 500 with the message `Database Error`.

### Metrics

With metrics enabled, each request's latency is recorded in the
`http_requests_duration_seconds` histogram. Its labels are `method`, `path` (the
route pattern), `service` and `status`. The `http_requests_total` series is
listed for each label set but stays at 0.

## Using it as a library

```python
from sqlalchemy import create_engine

from bookapi.app import create_app
from bookapi.repository import create_schema

engine = create_engine("sqlite://")
create_schema(engine)
app = create_app(engine, prometheus_metrics_enabled=False, assets_dir="assets")
```

`app` is a Starlette ASGI application. Serve it with any ASGI server.
`bookapi.database.init_db_pool(url, ...)` opens an engine, checks that it
connects and, when asked, creates the schema. `bookapi.repository.BookRepository`
and `bookapi.query.PaginateSort` can be used on their own.

## What it does not do

- There is no migration system. "Auto migration" only creates the `book` table
  if it is missing, and existing tables are never altered.
- The `DATABASE_MIN_CONNECTIONS` and `DATABASE_IDLE_TIMEOUT` settings are
  accepted but do not affect the connection pool.
- No API documentation page is included. The root redirects to
  `/rapidoc-ui.html`, which exists only if you put it in the assets directory.