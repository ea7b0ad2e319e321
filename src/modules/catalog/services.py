"""Catalog lookup used by the order workflow."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

from modules.catalog.exceptions import BookNotFound

if TYPE_CHECKING:
    from modules.catalog.models import Book
    from modules.catalog.repositories.interfaces import IBookRepository

logger = structlog.get_logger(__name__)


class CatalogLookup:
    """Read-only access to books and their current prices."""

    def __init__(self, repository: IBookRepository) -> None:
        self._repo = repository

    def find_book(self, isbn: str) -> Book:
        """Retrieve a book by ISBN.

        Raises:
            BookNotFound: if no book carries the ISBN.
        """
        book = self._repo.get_by_isbn(isbn)
        if not book:
            logger.warning("book.not_found", isbn=isbn)
            raise BookNotFound(f"Book {isbn} not found.")
        return book

    def price_of(self, isbn: str) -> Decimal:
        """Current unit price of the book with *isbn*."""
        return self.find_book(isbn).price
