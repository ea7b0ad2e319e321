"""Payment validation rules.

Pure checks run before an order is accepted.  They run in a fixed order
and stop at the first failure:

1. The card number is exactly 16 digits.
2. The card has not expired (expiration year >= current year).
3. The order amount does not exceed the per-order payment limit.

No charge is made; this is a local rule check only.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

from modules.orders.constants import CARD_NUMBER_LENGTH, PaymentFailureCode
from modules.orders.exceptions import PaymentFailed

if TYPE_CHECKING:
    from modules.customers.models import CreditCard

logger = structlog.get_logger(__name__)


def is_valid_card_number(number: str | None) -> bool:
    # str.isdigit() accepts non-ASCII digits such as "²"
    if not number or len(number) != CARD_NUMBER_LENGTH:
        return False
    return number.isascii() and number.isdigit()


def is_card_expired(card: CreditCard, today: date) -> bool:
    return card.expiration_year < today.year


def exceeds_limit(amount: Decimal, limit: Decimal) -> bool:
    return amount > limit


def validate_payment(
    card: CreditCard,
    amount: Decimal,
    *,
    limit: Decimal,
    today: date,
) -> None:
    """Validate *card* for an order of *amount*.

    Raises:
        PaymentFailed: with ``INVALID_CREDIT_CARD``, ``CREDIT_CARD_EXPIRED``
            or ``PAYMENT_LIMIT_EXCEEDED``, whichever check fails first.
    """
    log = logger.bind(card=card.masked_number, amount=str(amount))

    if not is_valid_card_number(card.number):
        log.warning("payment.invalid_card")
        raise PaymentFailed(PaymentFailureCode.INVALID_CREDIT_CARD)

    if is_card_expired(card, today):
        log.warning("payment.card_expired", expiration_year=card.expiration_year)
        raise PaymentFailed(PaymentFailureCode.CREDIT_CARD_EXPIRED)

    if exceeds_limit(amount, limit):
        log.warning("payment.limit_exceeded", limit=str(limit))
        raise PaymentFailed(
            PaymentFailureCode.PAYMENT_LIMIT_EXCEEDED,
            f"Order amount {amount} exceeds the payment limit of {limit}.",
        )
