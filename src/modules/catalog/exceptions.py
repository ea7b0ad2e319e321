"""Catalog domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFoundError


class BookNotFound(NotFoundError):
    """No book exists with the requested ISBN."""
