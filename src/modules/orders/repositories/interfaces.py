"""Order repository interface.

Extends ``IRepository[Order]`` with the look-ups the order workflow
needs: atomic creation with items, access by order number, row locking,
per-customer/year search, dispatch sweeps and statistics rows.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderItem children.  ``save`` on an
    existing order must reject stale versions with ``ConcurrentUpdate``.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``customer_id``, ``status``, ``total_amount``
        and ``items`` (list of dicts with ``book_id``, ``quantity``,
        ``unit_price``).
        """

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its public order number."""

    @abstractmethod
    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def delete_by_number(self, order_number: str) -> bool:
        """Hard-delete an order and its items."""

    @abstractmethod
    def list_by_customer_and_year(self, customer_id: UUID, year: int) -> List[Order]:
        """Orders of *customer_id* created in *year*, newest first."""

    @abstractmethod
    def list_due_for_dispatch(self, created_before: datetime) -> List[str]:
        """Numbers of accepted orders created at or before *created_before*."""

    @abstractmethod
    def statistics_rows(self, year: int) -> List[Dict[str, Any]]:
        """Per-customer aggregates of the orders created in *year*.

        Each row holds ``customer_id``, ``first_name``, ``last_name``,
        ``order_count``, ``positions_count`` and ``total_amount``.
        """
