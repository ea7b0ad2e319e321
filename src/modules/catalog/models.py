"""Book model.

Business rules implemented:
- ISBN must be unique in the system (normalised without dashes/spaces).
- Price must be greater than zero.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Book(BaseModel):
    """Catalog entry referenced by order items.

    ``isbn`` is normalised on save so "978-3-16-148410-0" and
    "9783161484100" resolve to the same book.
    """

    isbn = models.CharField(max_length=17, unique=True)
    title = models.CharField(max_length=255)
    authors = models.CharField(max_length=255, blank=True, default="")
    publisher = models.CharField(max_length=255, blank=True, default="")
    publication_year = models.PositiveSmallIntegerField(null=True, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    class Meta:
        db_table = "books"
        ordering = ["title"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="books_price_positive",
            ),
        ]

    @staticmethod
    def normalize_isbn(value: str) -> str:
        return value.replace("-", "").replace(" ", "").strip().upper()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.isbn:
            self.isbn = self.normalize_isbn(self.isbn)
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.isbn:
            self.isbn = self.normalize_isbn(self.isbn)
        super().save(*args, **kwargs)
        if is_new:
            logger.info("book_created", book_id=str(self.id), isbn=self.isbn)

    def __str__(self) -> str:
        return f"{self.isbn} - {self.title}"
