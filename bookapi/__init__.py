"""HTTP JSON API for managing books, built on Starlette and SQLAlchemy."""

__version__ = "0.1.0"
__all__ = ["__version__"]