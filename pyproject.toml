[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookapi"
version = "0.1.0"
description = "A small HTTP JSON API for managing books, with pagination, sorting and optional Prometheus metrics"
requires-python = ">=3.10"
keywords = ["api", "rest", "books", "starlette", "sqlalchemy", "asgi", "prometheus"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "starlette>=0.37",
    "sqlalchemy>=2.0",
    "uvicorn>=0.29",
]

[project.optional-dependencies]
test = [
    "pytest>=8.0",
    "httpx>=0.27",
]

[project.scripts]
bookapi = "bookapi.server:main"

[tool.hatch.build.targets.wheel]
packages = ["bookapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
