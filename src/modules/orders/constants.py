"""Order domain constants.

Defines status choices, the valid status transitions of the order
state machine and the payment failure codes.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    ACCEPTED = "ACCEPTED", "Accepted"
    SHIPPED = "SHIPPED", "Shipped"
    CANCELED = "CANCELED", "Canceled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.ACCEPTED: {OrderStatus.SHIPPED, OrderStatus.CANCELED},
    OrderStatus.SHIPPED: set(),
    OrderStatus.CANCELED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.SHIPPED, OrderStatus.CANCELED}


class PaymentFailureCode(models.TextChoices):
    INVALID_CREDIT_CARD = "INVALID_CREDIT_CARD", "Invalid credit card"
    CREDIT_CARD_EXPIRED = "CREDIT_CARD_EXPIRED", "Credit card expired"
    PAYMENT_LIMIT_EXCEEDED = "PAYMENT_LIMIT_EXCEEDED", "Payment limit exceeded"


CARD_NUMBER_LENGTH = 16

ORDER_NUMBER_MAX_RETRIES = 5
