"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order is accepted."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderCanceled(DomainEvent):
    """Raised when an accepted order is canceled."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderShipped(DomainEvent):
    """Raised when an order's dispatch delay elapses and it ships."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderRemoved(DomainEvent):
    """Raised when an order is deleted."""

    order_number: str = ""
