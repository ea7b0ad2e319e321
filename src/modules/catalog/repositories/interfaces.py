"""Book repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Book


class IBookRepository(IRepository["Book"]):
    """Repository contract for catalog books."""

    @abstractmethod
    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Retrieve a book by ISBN."""
