"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import BookDjangoRepository
from modules.catalog.repositories.interfaces import IBookRepository

__all__ = ["BookDjangoRepository", "IBookRepository"]
