"""Unit tests for the order lifecycle state machine.

Covers:
- Transition map completeness (every status has an entry, terminal
  states have none, no self-transitions).
- Model-level helpers (can_transition_to, is_terminal).
- Effective status derived from the dispatch delay.
- Cancel rules: already canceled, already shipped, dispatch delay elapsed.
- Shipping settlement only when due.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, OrderStatus
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAlreadyCanceled,
    OrderAlreadyShipped,
)
from modules.orders.lifecycle import OrderLifecycle
from modules.orders.models import Order

pytestmark = pytest.mark.unit

DELAY = timedelta(seconds=15)


@pytest.fixture()
def lifecycle():
    return OrderLifecycle(DELAY)


@pytest.fixture()
def created_at():
    return timezone.now()


def _order(status=OrderStatus.ACCEPTED, created_at=None) -> Order:
    return Order(
        order_number="ORD-20261018-ABC123",
        status=status,
        total_amount=Decimal("30.00"),
        created_at=created_at or timezone.now(),
    )


# ===========================================================================
# Transition map
# ===========================================================================


class TestTransitionsMapCompleteness:
    def test_all_statuses_have_transition_entry(self):
        for status in OrderStatus:
            assert status in VALID_TRANSITIONS, f"{status} missing"

    def test_terminal_states_have_empty_transitions(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == set()

    def test_no_self_transitions(self):
        for state, targets in VALID_TRANSITIONS.items():
            assert state not in targets

    def test_accepted_is_the_only_non_terminal_state(self):
        assert set(OrderStatus) - TERMINAL_STATES == {OrderStatus.ACCEPTED}


class TestModelHelpers:
    def test_accepted_can_ship_or_cancel(self):
        order = _order()
        assert order.can_transition_to(OrderStatus.SHIPPED) is True
        assert order.can_transition_to(OrderStatus.CANCELED) is True
        assert order.is_terminal is False

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.CANCELED])
    def test_terminal_states_reject_everything(self, status):
        order = _order(status=status)
        assert order.is_terminal is True
        for target in OrderStatus:
            assert order.can_transition_to(target) is False


# ===========================================================================
# Dispatch delay
# ===========================================================================


class TestEffectiveStatus:
    def test_accepted_before_delay(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        now = created_at + DELAY - timedelta(milliseconds=1)
        assert lifecycle.effective_status(order, now) == OrderStatus.ACCEPTED

    def test_shipped_once_delay_elapsed(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        assert lifecycle.effective_status(order, created_at + DELAY) == OrderStatus.SHIPPED

    def test_canceled_order_never_ships(self, lifecycle, created_at):
        order = _order(status=OrderStatus.CANCELED, created_at=created_at)
        later = created_at + DELAY * 10
        assert lifecycle.effective_status(order, later) == OrderStatus.CANCELED

    def test_dispatch_due_at(self, lifecycle, created_at):
        assert lifecycle.dispatch_due_at(_order(created_at=created_at)) == created_at + DELAY

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            OrderLifecycle(timedelta(seconds=-1))


class TestShipIfDue:
    def test_not_due_leaves_status(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        assert lifecycle.ship_if_due(order, created_at + timedelta(seconds=1)) is False
        assert order.status == OrderStatus.ACCEPTED

    def test_due_ships(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        assert lifecycle.ship_if_due(order, created_at + timedelta(seconds=20)) is True
        assert order.status == OrderStatus.SHIPPED

    def test_already_shipped_is_not_shipped_twice(self, lifecycle, created_at):
        order = _order(status=OrderStatus.SHIPPED, created_at=created_at)
        assert lifecycle.ship_if_due(order, created_at + timedelta(seconds=20)) is False


# ===========================================================================
# Cancel
# ===========================================================================


class TestCancel:
    def test_cancel_accepted_within_delay(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        lifecycle.cancel(order, created_at + timedelta(seconds=1))
        assert order.status == OrderStatus.CANCELED

    def test_cancel_twice_raises_already_canceled(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        lifecycle.cancel(order, created_at)
        with pytest.raises(OrderAlreadyCanceled):
            lifecycle.cancel(order, created_at)

    def test_cancel_shipped_raises_already_shipped(self, lifecycle, created_at):
        order = _order(status=OrderStatus.SHIPPED, created_at=created_at)
        with pytest.raises(OrderAlreadyShipped):
            lifecycle.cancel(order, created_at)

    def test_cancel_after_delay_raises_even_if_not_settled(self, lifecycle, created_at):
        order = _order(created_at=created_at)
        with pytest.raises(OrderAlreadyShipped):
            lifecycle.cancel(order, created_at + timedelta(seconds=20))
        assert order.status == OrderStatus.ACCEPTED

    def test_rejections_are_invalid_status_errors(self):
        assert issubclass(OrderAlreadyCanceled, InvalidOrderStatus)
        assert issubclass(OrderAlreadyShipped, InvalidOrderStatus)


class TestInitialStatus:
    def test_orders_start_accepted(self, lifecycle):
        assert lifecycle.initial_status == OrderStatus.ACCEPTED
