"""Order service layer (Use Cases).

Orchestrates order placement, cancellation, removal, look-up, search and
statistics.  Every command is atomic: the service defines the
unit-of-work boundary.

Placement pipeline:
1. Resolve the customer (``CustomerNotFound``).
2. Price the items from the catalog (``InvalidOrder``, ``BookNotFound``).
3. Validate the customer's card against the amount (``PaymentFailed``).
4. Create the order in ``ACCEPTED`` and persist it with its items.

Time-driven shipping is settled under the order's row lock by every path
that makes a decision on an order (cancel, find, dispatch sweep), so a
cancel and the shipping transition never both succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.catalog.services import CatalogLookup
from modules.core.exceptions import ConcurrentUpdate
from modules.customers.services import CustomerDirectory
from modules.orders.dtos import OrderInfo, OrderStatistic
from modules.orders.events import OrderCanceled, OrderPlaced, OrderRemoved, OrderShipped
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.lifecycle import OrderLifecycle
from modules.orders.pricing import price_lines, total_of
from modules.orders.statistics import StatisticsAggregator
from modules.orders.validation import validate_payment
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.catalog.models import Book
    from modules.catalog.repositories.interfaces import IBookRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class OrderPolicy:
    """Configurable limits of the order workflow."""

    payment_limit: Decimal
    dispatch_delay: timedelta

    @classmethod
    def from_settings(cls) -> OrderPolicy:
        return cls(
            payment_limit=Decimal(settings.ORDER_PAYMENT_LIMIT),
            dispatch_delay=settings.ORDER_DISPATCH_DELAY,
        )


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  ``clock``
    returns the current aware datetime; tests substitute a controllable one.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        book_repository: IBookRepository,
        policy: Optional[OrderPolicy] = None,
        clock: Clock = timezone.now,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customers = CustomerDirectory(customer_repository)
        self._catalog = CatalogLookup(book_repository)
        self._policy = policy or OrderPolicy.from_settings()
        self._lifecycle = OrderLifecycle(self._policy.dispatch_delay)
        self._statistics = StatisticsAggregator(order_repository)
        self._clock = clock
        self._event_bus = event_bus or default_event_bus

    @property
    def policy(self) -> OrderPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Validate, price and accept a new order.

        Raises:
            CustomerNotFound: the customer does not exist.
            InvalidOrder: no items, or an item quantity below 1.
            BookNotFound: an item references an unknown ISBN.
            PaymentFailed: the card is invalid or expired, or the amount
                exceeds the payment limit.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.placement_started", item_count=len(dto.items))

        customer = self._customers.find_customer(dto.customer_id)

        books: Dict[str, Book] = {}

        def price_of(isbn: str) -> Decimal:
            if isbn not in books:
                books[isbn] = self._catalog.find_book(isbn)
            return books[isbn].price

        lines = price_lines(dto.items, price_of)
        amount = total_of(lines)

        now = self._clock()
        validate_payment(
            customer.credit_card,
            amount,
            limit=self._policy.payment_limit,
            today=timezone.localdate(now),
        )

        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "status": self._lifecycle.initial_status,
                "total_amount": amount,
                "items": [
                    {
                        "book_id": books[line.isbn].id,
                        "quantity": line.quantity,
                        "unit_price": line.unit_price,
                    }
                    for line in lines
                ],
            }
        )

        log.info(
            "order.placed",
            order_number=order.order_number,
            amount=str(amount),
        )
        self._publish(OrderPlaced(aggregate_id=order.id, order_number=order.order_number))
        return order

    def cancel_order(self, order_number: str) -> Order:
        """Cancel an accepted order that has not been dispatched yet.

        A shipping transition that became due is committed even though the
        cancel itself is rejected.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAlreadyCanceled: the order is already canceled.
            OrderAlreadyShipped: the dispatch delay has elapsed.
            ConcurrentUpdate: another writer changed the order meanwhile.
        """
        log = logger.bind(order_number=order_number)
        rejection: Optional[InvalidOrderStatus] = None

        with transaction.atomic():
            order = self._get_for_update(order_number)
            now = self._clock()
            self._settle_dispatch(order, now)

            try:
                self._lifecycle.cancel(order, now)
            except InvalidOrderStatus as exc:
                rejection = exc
            else:
                self._order_repo.save(order)
                self._publish(
                    OrderCanceled(aggregate_id=order.id, order_number=order_number)
                )

        if rejection is not None:
            log.warning(
                "order.cancel_rejected",
                reason=type(rejection).__name__,
                current_status=order.status,
            )
            raise rejection

        log.info("order.canceled", version=order.version)
        return order

    @transaction.atomic
    def remove_order(self, order_number: str) -> None:
        """Hard-delete an order in any status.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._get_for_update(order_number)
        self._order_repo.delete_by_number(order_number)
        logger.info("order.removed", order_number=order_number, status=order.status)
        self._publish(OrderRemoved(aggregate_id=order.id, order_number=order_number))

    def ship_dispatched_orders(self) -> int:
        """Commit ``ACCEPTED -> SHIPPED`` for every order past its dispatch delay.

        Each order is settled in its own transaction under its row lock.
        Returns the number of orders shipped.
        """
        now = self._clock()
        shipped = 0
        for order_number in self._order_repo.list_due_for_dispatch(
            now - self._policy.dispatch_delay
        ):
            try:
                with transaction.atomic():
                    order = self._order_repo.get_for_update(order_number)
                    # canceled or removed since it was listed
                    if order and self._settle_dispatch(order, now):
                        shipped += 1
            except ConcurrentUpdate:
                logger.warning("order.dispatch_conflict", order_number=order_number)
        if shipped:
            logger.info("order.dispatch_sweep", shipped=shipped)
        return shipped

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_order(self, order_number: str) -> Order:
        """Retrieve an order, settling a due shipping transition first.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        with transaction.atomic():
            order = self._get_for_update(order_number)
            self._settle_dispatch(order, self._clock())
        return order

    def search_orders(self, customer_id: UUID, year: int) -> List[OrderInfo]:
        """Summaries of the customer's orders created in *year*, newest first.

        An empty list means the customer placed no order that year.
        """
        now = self._clock()
        orders = self._order_repo.list_by_customer_and_year(customer_id, year)
        return [
            OrderInfo(
                order_number=order.order_number,
                created_at=order.created_at,
                total_amount=order.total_amount,
                status=self._lifecycle.effective_status(order, now),
            )
            for order in orders
        ]

    def get_statistics_by_year(self, year: int) -> List[OrderStatistic]:
        """Per-customer statistics for *year*.

        Raises:
            StatisticNotFound: no order was placed in *year*.
        """
        return self._statistics.statistics_by_year(year)

    def get_statistic_by_year(self, year: int, customer_id: UUID) -> OrderStatistic:
        """Statistic of one customer for *year*.

        Raises:
            StatisticNotFound: the customer placed no order in *year*.
        """
        return self._statistics.statistic_by_year(year, customer_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_for_update(self, order_number: str) -> Order:
        order = self._order_repo.get_for_update(order_number)
        if not order:
            logger.warning("order.not_found", order_number=order_number)
            raise OrderNotFound(f"Order {order_number} not found.")
        return order

    def _settle_dispatch(self, order: Order, now: datetime) -> bool:
        """Persist the shipping transition if it is due.  Caller holds the lock."""
        if not self._lifecycle.ship_if_due(order, now):
            return False
        self._order_repo.save(order)
        logger.info(
            "order.shipped",
            order_number=order.order_number,
            due_at=self._lifecycle.dispatch_due_at(order).isoformat(),
        )
        self._publish(OrderShipped(aggregate_id=order.id, order_number=order.order_number))
        return True

    def _publish(self, event: DomainEvent) -> None:
        """Publish *event* once the current transaction commits."""
        transaction.on_commit(partial(self._event_bus.publish, event))
