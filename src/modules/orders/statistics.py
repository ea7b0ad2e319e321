"""Per-year order statistics.

Builds ``OrderStatistic`` read models from the per-customer rows returned
by ``IOrderRepository.statistics_rows``.  Nothing is persisted.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

import structlog

from modules.orders.dtos import OrderStatistic
from modules.orders.exceptions import StatisticNotFound
from modules.orders.pricing import CENTS

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class StatisticsAggregator:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def statistics_by_year(self, year: int) -> List[OrderStatistic]:
        """One statistic per customer who ordered in *year*.

        Sorted by total amount (highest first), then by name.

        Raises:
            StatisticNotFound: no order was placed in *year*.
        """
        rows = self._order_repo.statistics_rows(year)
        if not rows:
            logger.info("statistics.no_data", year=year)
            raise StatisticNotFound(f"No orders found for {year}.")

        statistics = [self._to_statistic(year, row) for row in rows]
        statistics.sort(key=lambda s: (-s.total_amount, s.last_name, s.first_name))
        logger.info("statistics.computed", year=year, customers=len(statistics))
        return statistics

    def statistic_by_year(self, year: int, customer_id: UUID) -> OrderStatistic:
        """Statistic of a single customer for *year*.

        Raises:
            StatisticNotFound: the customer placed no order in *year*.
        """
        for row in self._order_repo.statistics_rows(year):
            if str(row["customer_id"]) == str(customer_id):
                return self._to_statistic(year, row)
        raise StatisticNotFound(
            f"No orders found for customer {customer_id} in {year}."
        )

    @staticmethod
    def _to_statistic(year: int, row: Dict[str, Any]) -> OrderStatistic:
        total = Decimal(row["total_amount"]).quantize(CENTS, rounding=ROUND_HALF_UP)
        average = (total / row["order_count"]).quantize(CENTS, rounding=ROUND_HALF_UP)
        return OrderStatistic(
            year=year,
            customer_id=row["customer_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            positions_count=row["positions_count"],
            total_amount=total,
            average_amount=average,
        )
