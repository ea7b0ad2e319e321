"""Order pricing.

Amounts are computed with ``Decimal`` end to end and quantized to cents.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Protocol, Sequence

from modules.orders.exceptions import InvalidOrder

CENTS = Decimal("0.01")

PriceLookup = Callable[[str], Decimal]


class OrderLine(Protocol):
    isbn: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    """An order line with the unit price snapshotted at pricing time."""

    isbn: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price


def check_lines(items: Sequence[OrderLine]) -> None:
    """Reject empty item lists and non-positive quantities."""
    if not items:
        raise InvalidOrder("Order must have at least one item.")
    for item in items:
        if item.quantity is None or item.quantity < 1:
            raise InvalidOrder(
                f"Quantity for {item.isbn} must be at least 1, got {item.quantity}."
            )


def price_lines(items: Sequence[OrderLine], price_of: PriceLookup) -> List[PricedLine]:
    """Snapshot the current unit price of every line.

    Lines are validated before any price is looked up.
    """
    check_lines(items)
    return [
        PricedLine(
            isbn=item.isbn,
            quantity=item.quantity,
            unit_price=Decimal(str(price_of(item.isbn))),
        )
        for item in items
    ]


def total_of(lines: Sequence[PricedLine]) -> Decimal:
    total = sum((line.subtotal for line in lines), Decimal("0"))
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_amount(items: Sequence[OrderLine], price_of: PriceLookup) -> Decimal:
    """Return ``sum(quantity * price_of(isbn))`` over *items*.

    Raises:
        InvalidOrder: the sequence is empty or holds a quantity below 1.
    """
    return total_of(price_lines(items, price_of))
