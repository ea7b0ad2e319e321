"""Customer model with an embedded credit card.

The order workflow only reads customers: it resolves them by ID and
validates their card before accepting an order.  Card details are stored
as flat columns and surfaced as an immutable ``CreditCard`` value.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CreditCard:
    """Card data read by the payment validation rules."""

    number: str
    expiration_month: int
    expiration_year: int

    @property
    def masked_number(self) -> str:
        return f"***{self.number[-4:]}" if self.number else "****"


class Customer(BaseModel):
    """Customer aggregate root (read-only to the order workflow)."""

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=254, unique=True)
    card_number = models.CharField(max_length=32, blank=True, default="")
    card_expiration_month = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(12)],
    )
    card_expiration_year = models.PositiveSmallIntegerField()

    class Meta:
        db_table = "customers"
        ordering = ["last_name", "first_name"]

    @property
    def credit_card(self) -> CreditCard:
        return CreditCard(
            number=self.card_number,
            expiration_month=self.card_expiration_month,
            expiration_year=self.card_expiration_year,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def clean(self) -> None:
        super().clean()
        if self.card_number:
            self.card_number = self.card_number.replace(" ", "").replace("-", "")
        if not 1 <= (self.card_expiration_month or 0) <= 12:
            raise ValidationError(
                {"card_expiration_month": "Month must be between 1 and 12."}
            )

    # Card number is masked, never printed in full
    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}> (card {self.credit_card.masked_number})"
