from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.catalog.models import Book
from modules.catalog.repositories import BookDjangoRepository
from modules.customers.models import Customer
from modules.customers.repositories import CustomerDjangoRepository
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderItemDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderPolicy, OrderService

VALID_CARD = "1111222233334444"
BOOK_ISBN = "978-0-13-468599-1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now=None) -> None:
        self.now = now or timezone.now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def policy():
    return OrderPolicy(
        payment_limit=Decimal("100.00"),
        dispatch_delay=timedelta(seconds=15),
    )


@pytest.fixture()
def customer():
    return Customer.objects.create(
        first_name="Max",
        last_name="Muster",
        email="max.muster@example.com",
        card_number=VALID_CARD,
        card_expiration_month=12,
        card_expiration_year=timezone.localdate().year,
    )


@pytest.fixture()
def book():
    return Book.objects.create(
        isbn=BOOK_ISBN,
        title="Effective Testing",
        authors="Max Muster",
        publisher="Bookstore Press",
        price=Decimal("10.00"),
    )


@pytest.fixture()
def service(policy, clock):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        book_repository=BookDjangoRepository(),
        policy=policy,
        clock=clock,
    )


@pytest.fixture()
def place_order(service, customer, book):
    """Factory placing an order of *quantity* copies of ``book``."""

    def _place(quantity: int = 3, for_customer=None):
        dto = PlaceOrderDTO(
            customer_id=(for_customer or customer).id,
            items=[PlaceOrderItemDTO(isbn=book.isbn, quantity=quantity)],
        )
        return service.place_order(dto)

    return _place
