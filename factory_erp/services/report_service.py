# ==============================================================================
# REPORT SERVICE
# ==============================================================================
# Customer statement for a month or a quarter.
#
# MAIN RULE: only goods that left the shop count.
# - 已发货 (SHIPPED)    ✅
# - 已完成 (COMPLETED)  ✅
# - 待处理 / 生产中 / 已取消 ❌
# ==============================================================================

import logging
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from factory_erp.models import Order, OrderStatus
from factory_erp.repositories.interfaces import IEntityRepository

logger = logging.getLogger(__name__)

PERIOD_MONTH = 'MONTH'
PERIOD_QUARTER = 'QUARTER'


class ReportService:
    """Period statements per customer, based on the delivery date."""

    VALID_STATUSES = (OrderStatus.SHIPPED, OrderStatus.COMPLETED)

    def __init__(self, order_repo: IEntityRepository):
        self.order_repo = order_repo

    def _parse_date(self, date_str: str) -> Optional[datetime]:
        """
        Parse an ISO date. Returns None when it can't be parsed.
        """
        if not date_str:
            return None
        try:
            return datetime.fromisoformat(date_str)
        except (ValueError, TypeError):
            return None

    def _in_period(self, order: Order, year: int, period_type: str, value: int) -> bool:
        order_date = self._parse_date(order.report_date)
        if order_date is None:
            return False
        if order_date.year != year:
            return False
        if period_type == PERIOD_QUARTER:
            return math.ceil(order_date.month / 3) == value
        return order_date.month == value

    def period_summary(
        self,
        customer: str,
        year: int,
        period_type: str = PERIOD_MONTH,
        value: int = 1
    ) -> Optional[Dict[str, Any]]:
        """
        Shipped orders of a customer in a month or quarter.

        Args:
            customer: Customer name; None/blank -> no report
            year: Calendar year
            period_type: 'MONTH' (value 1-12) or 'QUARTER' (value 1-4)
            value: Month or quarter number

        Returns:
            {'orders', 'total_quantity', 'total_amount', ...} or None
        """
        if not customer:
            return None
        if period_type not in (PERIOD_MONTH, PERIOD_QUARTER):
            period_type = PERIOD_MONTH

        orders: List[Order] = [
            o for o in self.order_repo.load()
            if o.customer_name == customer
            and o.status in self.VALID_STATUSES
            and self._in_period(o, int(year), period_type, int(value))
        ]
        total_quantity = sum(o.quantity for o in orders)
        total_amount = round(sum(o.amount for o in orders), 2)

        logger.debug("Period summary %s %s %s-%s: %d order(s)",
                     customer, year, period_type, value, len(orders))
        return {
            'customer': customer,
            'year': int(year),
            'period_type': period_type,
            'value': int(value),
            'orders': orders,
            'total_quantity': total_quantity,
            'total_amount': total_amount,
        }

    @staticmethod
    def year_options(today: date = None) -> List[int]:
        """Last year plus the next three."""
        current = (today or date.today()).year
        return [current - 1 + offset for offset in range(4)]
