"""Integration tests for OrderDjangoRepository.

Covers:
- Create success: order + items persisted atomically.
- Create atomicity: forced error rolls back entire aggregate.
- Read: get_by_number loads relations without N+1 queries.
- Locking: get_for_update returns order correctly.
- Versioned save: version bump, stale version raises ConcurrentUpdate.
- Search and dispatch queries.
- Statistics rows.
- Hard delete.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.utils import timezone

from modules.catalog.models import Book
from modules.core.exceptions import ConcurrentUpdate
from modules.customers.models import Customer
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


@pytest.fixture()
def second_book():
    return Book.objects.create(
        isbn="978-1-4919-5017-0",
        title="Fluent Data",
        price=Decimal("25.50"),
    )


@pytest.fixture()
def other_customer(customer):
    return Customer.objects.create(
        first_name="Erika",
        last_name="Beispiel",
        email="erika.beispiel@example.com",
        card_number=customer.card_number,
        card_expiration_month=6,
        card_expiration_year=customer.card_expiration_year,
    )


@pytest.fixture()
def order_data(customer, book, second_book):
    return {
        "customer_id": customer.id,
        "status": OrderStatus.ACCEPTED,
        "total_amount": Decimal("45.50"),
        "items": [
            {"book_id": book.id, "quantity": 2, "unit_price": book.price},
            {"book_id": second_book.id, "quantity": 1, "unit_price": second_book.price},
        ],
    }


@pytest.fixture()
def created_order(repo, order_data):
    return repo.create(order_data)


def _simple_order(repo, customer, book, quantity=1):
    return repo.create(
        {
            "customer_id": customer.id,
            "status": OrderStatus.ACCEPTED,
            "total_amount": quantity * book.price,
            "items": [{"book_id": book.id, "quantity": quantity, "unit_price": book.price}],
        }
    )


# ===========================================================================
# CREATE
# ===========================================================================


class TestOrderRepoCreate:
    def test_create_persists_order(self, created_order, customer):
        order = Order.objects.get(pk=created_order.pk)

        assert order.customer_id == customer.id
        assert order.status == OrderStatus.ACCEPTED
        assert order.total_amount == Decimal("45.50")
        assert order.version == 0
        assert order.order_number.startswith("ORD-")

    def test_create_persists_items(self, created_order, book, second_book):
        items = list(OrderItem.objects.filter(order=created_order))
        assert len(items) == 2

        item_a = next(i for i in items if i.book_id == book.id)
        assert item_a.quantity == 2
        assert item_a.unit_price == Decimal("10.00")
        assert item_a.subtotal == Decimal("20.00")

        item_b = next(i for i in items if i.book_id == second_book.id)
        assert item_b.subtotal == Decimal("25.50")

    def test_create_atomicity_rolls_back_on_item_failure(self, repo, order_data):
        """If the items cannot be written, the order must be rolled back."""
        with patch.object(
            OrderItem.objects, "bulk_create", side_effect=RuntimeError("forced error")
        ):
            with pytest.raises(RuntimeError, match="forced error"):
                repo.create(order_data)

        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0


# ===========================================================================
# READ
# ===========================================================================


class TestOrderRepoRead:
    def test_get_by_number(self, repo, created_order):
        order = repo.get_by_number(created_order.order_number)

        assert order.id == created_order.id
        assert order.customer.last_name == "Muster"

    def test_get_by_number_returns_none_for_missing(self, repo):
        assert repo.get_by_number("ORD-20990101-ZZZZZZ") is None

    def test_get_by_id_returns_none_for_invalid_uuid(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_get_by_number_no_n_plus_one(
        self, repo, created_order, django_assert_num_queries
    ):
        with django_assert_num_queries(3):
            # 1: SELECT order JOIN customer (select_related)
            # 2: SELECT order_items (prefetch items)
            # 3: SELECT books (prefetch items__book)
            order = repo.get_by_number(created_order.order_number)
            for item in order.items.all():
                _ = item.book.title

    def test_list_filter_by_status(self, repo, created_order):
        assert repo.list({"status": OrderStatus.ACCEPTED}) == [created_order]
        assert repo.list({"status": OrderStatus.CANCELED}) == []

    def test_list_by_customer_and_year(
        self, repo, customer, other_customer, book
    ):
        older = _simple_order(repo, customer, book)
        newer = _simple_order(repo, customer, book, quantity=2)
        _simple_order(repo, other_customer, book)
        Order.objects.filter(pk=older.pk).update(
            created_at=newer.created_at - timedelta(hours=1)
        )
        year = timezone.localdate().year

        orders = repo.list_by_customer_and_year(customer.id, year)

        assert [o.pk for o in orders] == [newer.pk, older.pk]
        assert repo.list_by_customer_and_year(customer.id, year - 1) == []


class TestOrderRepoLocking:
    def test_get_for_update_returns_order(self, repo, created_order):
        order = repo.get_for_update(created_order.order_number)

        assert order.id == created_order.id
        assert len(order.items.all()) == 2

    def test_get_for_update_returns_none_for_missing(self, repo):
        assert repo.get_for_update("ORD-20990101-ZZZZZZ") is None


# ===========================================================================
# SAVE (optimistic concurrency)
# ===========================================================================


class TestOrderRepoVersionedSave:
    def test_save_bumps_version(self, repo, created_order):
        created_order.status = OrderStatus.CANCELED

        repo.save(created_order)

        assert created_order.version == 1
        stored = Order.objects.get(pk=created_order.pk)
        assert stored.status == OrderStatus.CANCELED
        assert stored.version == 1

    def test_stale_version_raises(self, repo, created_order):
        stale = Order.objects.get(pk=created_order.pk)
        created_order.status = OrderStatus.SHIPPED
        repo.save(created_order)

        stale.status = OrderStatus.CANCELED
        with pytest.raises(ConcurrentUpdate):
            repo.save(stale)

        stored = Order.objects.get(pk=created_order.pk)
        assert stored.status == OrderStatus.SHIPPED
        assert stored.version == 1
        assert stale.version == 0

    def test_save_only_writes_status(self, repo, created_order):
        created_order.total_amount = Decimal("1.00")
        created_order.status = OrderStatus.SHIPPED

        repo.save(created_order)

        assert Order.objects.get(pk=created_order.pk).total_amount == Decimal("45.50")


# ===========================================================================
# Dispatch and statistics queries
# ===========================================================================


class TestOrderRepoQueries:
    def test_list_due_for_dispatch(self, repo, customer, book):
        due = _simple_order(repo, customer, book)
        not_due = _simple_order(repo, customer, book)
        canceled = _simple_order(repo, customer, book)
        past = timezone.now() - timedelta(minutes=1)
        Order.objects.filter(pk__in=[due.pk, canceled.pk]).update(created_at=past)
        Order.objects.filter(pk=canceled.pk).update(status=OrderStatus.CANCELED)

        numbers = repo.list_due_for_dispatch(timezone.now() - timedelta(seconds=15))

        assert numbers == [due.order_number]
        assert not_due.order_number not in numbers

    def test_statistics_rows(self, repo, customer, other_customer, book, second_book):
        repo.create(
            {
                "customer_id": customer.id,
                "status": OrderStatus.ACCEPTED,
                "total_amount": Decimal("35.50"),
                "items": [
                    {"book_id": book.id, "quantity": 1, "unit_price": book.price},
                    {"book_id": second_book.id, "quantity": 1, "unit_price": second_book.price},
                ],
            }
        )
        _simple_order(repo, customer, book, quantity=2)
        _simple_order(repo, other_customer, book)

        rows = {
            row["customer_id"]: row
            for row in repo.statistics_rows(timezone.localdate().year)
        }

        assert rows[customer.id]["order_count"] == 2
        assert rows[customer.id]["positions_count"] == 3
        assert rows[customer.id]["total_amount"] == Decimal("55.50")
        assert rows[customer.id]["first_name"] == "Max"
        assert rows[other_customer.id]["order_count"] == 1
        assert rows[other_customer.id]["total_amount"] == Decimal("10.00")

    def test_statistics_rows_empty_year(self, repo, created_order):
        assert repo.statistics_rows(timezone.localdate().year - 1) == []


# ===========================================================================
# DELETE
# ===========================================================================


class TestOrderRepoDelete:
    def test_delete_by_number_removes_items(self, repo, created_order):
        assert repo.delete_by_number(created_order.order_number) is True

        assert not Order.objects.filter(pk=created_order.pk).exists()
        assert OrderItem.objects.count() == 0

    def test_delete_by_number_missing(self, repo):
        assert repo.delete_by_number("ORD-20990101-ZZZZZZ") is False

    def test_delete_by_id(self, repo, created_order):
        assert repo.delete(str(created_order.id)) is True
        assert repo.delete(str(created_order.id)) is False

    def test_delete_invalid_id(self, repo):
        assert repo.delete("not-a-uuid") is False
