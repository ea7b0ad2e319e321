"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
Every failure is a distinct type; payment rejections additionally carry
a ``PaymentFailureCode`` so callers can branch on the exact cause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.core.exceptions import NotFoundError

if TYPE_CHECKING:
    from modules.orders.constants import PaymentFailureCode


class OrderNotFound(NotFoundError):
    """The requested order does not exist or has been removed."""


class StatisticNotFound(NotFoundError):
    """No orders exist for the requested year (and customer)."""


class InvalidOrder(Exception):
    """The item list is empty or contains a non-positive quantity."""


class InvalidOrderStatus(Exception):
    """An illegal status transition was attempted."""


class OrderAlreadyCanceled(InvalidOrderStatus):
    """Cancel attempted on an order that is already canceled."""


class OrderAlreadyShipped(InvalidOrderStatus):
    """Cancel attempted after the order was dispatched."""


class PaymentFailed(Exception):
    """Payment validation rejected the order; no order was created."""

    def __init__(self, code: PaymentFailureCode, message: str = "") -> None:
        self.code = code
        super().__init__(message or code.label)
