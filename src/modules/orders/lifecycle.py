"""Order lifecycle state machine.

States: ``ACCEPTED`` -> ``SHIPPED`` | ``CANCELED``.  Removal is a delete,
not a state.

The shipping transition is time-driven: an accepted order counts as
shipped once ``dispatch_delay`` has elapsed since it was created.  The
stored status is settled lazily by whoever locks the order row next (a
cancel, a read through the service, or the dispatch sweep task), so a
cancel and the shipping transition can never both win.

``OrderLifecycle`` only mutates the in-memory order; persisting the
change is the caller's job.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAlreadyCanceled,
    OrderAlreadyShipped,
)

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class OrderLifecycle:
    initial_status = OrderStatus.ACCEPTED

    def __init__(self, dispatch_delay: timedelta) -> None:
        if dispatch_delay < timedelta(0):
            raise ValueError("dispatch_delay must not be negative.")
        self.dispatch_delay = dispatch_delay

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def dispatch_due_at(self, order: Order) -> datetime:
        return order.created_at + self.dispatch_delay

    def is_dispatch_due(self, order: Order, now: datetime) -> bool:
        """``True`` when *order* is accepted and its dispatch delay has elapsed."""
        return (
            order.status == OrderStatus.ACCEPTED
            and now >= self.dispatch_due_at(order)
        )

    def effective_status(self, order: Order, now: datetime) -> str:
        """Status the order has at *now*, whether or not it was persisted."""
        if self.is_dispatch_due(order, now):
            return OrderStatus.SHIPPED
        return order.status

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def ship_if_due(self, order: Order, now: datetime) -> bool:
        """Apply the ``ACCEPTED -> SHIPPED`` transition when it is due.

        Returns ``True`` if the status changed.
        """
        if not self.is_dispatch_due(order, now):
            return False
        self._transition(order, OrderStatus.SHIPPED)
        return True

    def cancel(self, order: Order, now: datetime) -> None:
        """Apply ``ACCEPTED -> CANCELED``.

        Raises:
            OrderAlreadyCanceled: the order is already canceled.
            OrderAlreadyShipped: the order shipped, or its dispatch delay
                has elapsed.
        """
        status = self.effective_status(order, now)
        if status == OrderStatus.CANCELED:
            raise OrderAlreadyCanceled(
                f"Order {order.order_number} is already canceled."
            )
        if status == OrderStatus.SHIPPED:
            raise OrderAlreadyShipped(
                f"Order {order.order_number} has already been shipped."
            )
        self._transition(order, OrderStatus.CANCELED)

    def _transition(self, order: Order, new_status: str) -> None:
        if not order.can_transition_to(new_status):
            logger.warning(
                "order.invalid_transition",
                order_number=order.order_number,
                current_status=order.status,
                new_status=new_status,
            )
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )
        order.status = new_status
