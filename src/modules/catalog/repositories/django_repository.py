"""Django ORM implementation of the Book repository.

Methods return ``None`` for missing rows; ``CatalogLookup`` decides how
to report a missing book.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.catalog.models import Book
from modules.catalog.repositories.interfaces import IBookRepository

logger = structlog.get_logger(__name__)


class BookDjangoRepository(IBookRepository):
    """Concrete Book repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Book]:
        try:
            return Book.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Book]:
        """List books with optional Django ORM look-ups.

        Examples of valid filters::

            {"title__icontains": "python"}
            {"publisher": "O'Reilly"}
        """
        queryset = Book.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Book) -> Book:
        entity.save()
        logger.info("book.saved", book_id=str(entity.id), isbn=entity.isbn)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        book = self.get_by_id(id)
        if not book:
            return False
        book.delete()
        logger.info("book.deleted", book_id=str(id))
        return True

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Retrieve a book by ISBN (dashes and spaces are ignored)."""
        return Book.objects.filter(isbn=Book.normalize_isbn(isbn)).first()
