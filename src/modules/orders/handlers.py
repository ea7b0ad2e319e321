"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCanceled, OrderPlaced, OrderRemoved, OrderShipped
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            "order.event.placed",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderCanceledHandler(IEventHandler[OrderCanceled]):
    def handle(self, event: OrderCanceled) -> None:
        logger.info(
            "order.event.canceled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderShippedHandler(IEventHandler[OrderShipped]):
    def handle(self, event: OrderShipped) -> None:
        logger.info(
            "order.event.shipped",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderRemovedHandler(IEventHandler[OrderRemoved]):
    def handle(self, event: OrderRemoved) -> None:
        logger.info(
            "order.event.removed",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


order_placed_handler = OrderPlacedHandler()
order_canceled_handler = OrderCanceledHandler()
order_shipped_handler = OrderShippedHandler()
order_removed_handler = OrderRemovedHandler()
