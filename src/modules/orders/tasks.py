"""Background tasks for the orders module."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


def build_order_service():
    from modules.catalog.repositories import BookDjangoRepository
    from modules.customers.repositories.django_repository import (
        CustomerDjangoRepository,
    )
    from modules.orders.repositories import OrderDjangoRepository
    from modules.orders.services import OrderService

    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        book_repository=BookDjangoRepository(),
    )


@shared_task(name="orders.ship_dispatched_orders")
def ship_dispatched_orders():
    """Ship every accepted order whose dispatch delay has elapsed."""
    shipped = build_order_service().ship_dispatched_orders()
    logger.info("ship_dispatched_orders.executed", shipped=shipped)
    return {"shipped": shipped}
