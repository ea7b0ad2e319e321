"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``PlaceOrderItemDTO``: input for a single order line (ISBN + quantity).
- ``PlaceOrderDTO``: input for order placement.
- ``OrderItemOutputDTO`` / ``OrderOutputDTO``: full order read model.
- ``OrderInfo``: summary projection returned by order searches.
- ``OrderStatistic``: per-customer, per-year aggregate.

Item-list rules (non-empty, positive quantities) are enforced by the
pricing step so that they surface as ``InvalidOrder``, not as a
Pydantic ``ValidationError``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PlaceOrderItemDTO(BaseModel):
    """Immutable DTO for a single order line in a placement request.

    ``unit_price`` is resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    isbn: str
    quantity: int

    @field_validator("isbn")
    @classmethod
    def isbn_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ISBN must not be blank.")
        return v


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for order placement requests."""

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[PlaceOrderItemDTO]


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    isbn: str
    title: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderOutputDTO(BaseModel):
    """Immutable DTO for a fully loaded order."""

    model_config = ConfigDict(frozen=True)

    order_number: str
    customer_id: UUID
    status: str
    total_amount: Decimal
    version: int
    created_at: datetime
    items: List[OrderItemOutputDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``items`` (with their book) are prefetched.
        """
        items = [
            OrderItemOutputDTO(
                isbn=item.book.isbn,  # type: ignore[attr-defined]
                title=item.book.title,  # type: ignore[attr-defined]
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            order_number=order.order_number,
            customer_id=order.customer_id,
            status=order.status,
            total_amount=order.total_amount,
            version=order.version,
            created_at=order.created_at,
            items=items,
        )


class OrderInfo(BaseModel):
    """Read-only summary of an order used in search results."""

    model_config = ConfigDict(frozen=True)

    order_number: str
    created_at: datetime
    total_amount: Decimal
    status: str


class OrderStatistic(BaseModel):
    """Aggregate of one customer's orders in one year."""

    model_config = ConfigDict(frozen=True)

    year: int
    customer_id: UUID
    first_name: str
    last_name: str
    positions_count: int
    total_amount: Decimal
    average_amount: Decimal
