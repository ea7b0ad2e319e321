"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` so the
Order aggregate (Order + OrderItems) is persisted atomically.

Concurrency control:
- ``get_for_update`` takes a row-level lock (``select_for_update``).
- ``save`` on an existing order issues a conditional
  ``UPDATE ... WHERE id = %s AND version = %s`` and bumps ``version``.
  When no row matches, another writer got there first and
  ``ConcurrentUpdate`` is raised instead of overwriting its change.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from modules.core.exceptions import ConcurrentUpdate
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``customer_id`` (required)
        - ``status`` (required)
        - ``total_amount`` (required): already priced and validated
        - ``items`` (required): list of dicts with ``book_id``,
          ``quantity``, ``unit_price``
        """
        order = Order(
            customer_id=data["customer_id"],
            status=data["status"],
            total_amount=data["total_amount"],
        )
        order.save()

        items = data.get("items", [])
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    book_id=item_data["book_id"],
                    quantity=item_data["quantity"],
                    unit_price=item_data["unit_price"],
                    subtotal=item_data["quantity"] * item_data["unit_price"],
                )
                for item_data in items
            ]
        )

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("customer")
                .prefetch_related("items__book")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return (
            Order.objects.select_related("customer")
            .prefetch_related("items__book")
            .filter(order_number=order_number)
            .first()
        )

    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  ``of=("self",)`` keeps the
        lock on the order row only, not on the joined customer.
        """
        return (
            Order.objects.select_for_update(of=("self",))
            .select_related("customer")
            .prefetch_related("items__book")
            .filter(order_number=order_number)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters and eager-loaded relations.

        Examples of valid filters::

            {"status": "ACCEPTED"}
            {"customer_id": customer.id, "created_at__year": 2026}
        """
        queryset = Order.objects.select_related("customer").prefetch_related(
            "items__book"
        )
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_customer_and_year(self, customer_id: UUID, year: int) -> List[Order]:
        return list(
            Order.objects.filter(customer_id=customer_id, created_at__year=year)
            .order_by("-created_at")
        )

    def list_due_for_dispatch(self, created_before: datetime) -> List[str]:
        return list(
            Order.objects.filter(
                status=OrderStatus.ACCEPTED,
                created_at__lte=created_before,
            )
            .order_by("created_at")
            .values_list("order_number", flat=True)
        )

    def statistics_rows(self, year: int) -> List[Dict[str, Any]]:
        """Aggregate orders of *year* per customer.

        Amounts and positions are aggregated in separate queries: joining
        items into the amount query would count each order total once per
        item.
        """
        totals = (
            Order.objects.filter(created_at__year=year)
            .values("customer_id", "customer__first_name", "customer__last_name")
            .annotate(order_count=Count("id"), total_amount=Sum("total_amount"))
            .order_by()
        )
        positions = dict(
            OrderItem.objects.filter(order__created_at__year=year)
            .values("order__customer_id")
            .annotate(positions=Count("id"))
            .order_by()
            .values_list("order__customer_id", "positions")
        )
        return [
            {
                "customer_id": row["customer_id"],
                "first_name": row["customer__first_name"],
                "last_name": row["customer__last_name"],
                "order_count": row["order_count"],
                "positions_count": positions.get(row["customer_id"], 0),
                "total_amount": row["total_amount"] or Decimal("0.00"),
            }
            for row in totals
        ]

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order.

        New orders are inserted; existing ones only ever change their
        ``status``, guarded by the version check.

        Raises:
            ConcurrentUpdate: the stored version differs from ``entity.version``.
        """
        if entity._state.adding:
            entity.save()
        else:
            self._update_versioned(entity)

        logger.info(
            "order.saved",
            order_number=entity.order_number,
            version=entity.version,
        )
        return entity

    def _update_versioned(self, entity: Order) -> None:
        key = entity.key
        now = timezone.now()
        updated = Order.objects.filter(id=key.id, version=key.version).update(
            status=entity.status,
            version=F("version") + 1,
            updated_at=now,
        )
        if not updated:
            logger.warning(
                "order.version_conflict",
                order_number=entity.order_number,
                version=key.version,
            )
            raise ConcurrentUpdate(
                f"Order {entity.order_number} was modified concurrently "
                f"(expected version {key.version})."
            )
        entity.version = key.next().version
        entity.updated_at = now

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order (and its items) by ID."""
        try:
            deleted, _ = Order.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        if deleted:
            logger.info("order.deleted", order_id=str(id))
        return bool(deleted)

    @transaction.atomic
    def delete_by_number(self, order_number: str) -> bool:
        deleted, _ = Order.objects.filter(order_number=order_number).delete()
        if deleted:
            logger.info("order.deleted", order_number=order_number)
        return bool(deleted)
