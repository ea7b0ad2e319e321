"""Customer directory used by the order workflow.

Wraps ``ICustomerRepository`` and turns a missing customer into
``CustomerNotFound``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from modules.customers.exceptions import CustomerNotFound

if TYPE_CHECKING:
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDirectory:
    """Read-only customer lookup.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    def find_customer(self, customer_id: UUID | str) -> Customer:
        """Retrieve a customer by ID.

        Raises:
            CustomerNotFound: if the customer does not exist.
        """
        customer = self._repo.get_by_id(str(customer_id))
        if not customer:
            logger.warning("customer.not_found", customer_id=str(customer_id))
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        return customer
