# ==============================================================================
# ANALYTICS SERVICE
# ==============================================================================
# Aggregates for the analytics view and the dashboard STAT widgets.
# Everything is computed on the fly from the stored collections.
# ==============================================================================

import logging
from typing import Any, Dict

from factory_erp.models import KPIStats, OrderStatus, TransactionType
from factory_erp.repositories.interfaces import IEntityRepository

logger = logging.getLogger(__name__)

# Statuses shown in the distribution chart (cancelled orders are left out)
DISTRIBUTION_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.PRODUCTION,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
)

CHART_TRANSACTIONS = 7


class AnalyticsService:

    def __init__(self, order_repo: IEntityRepository, transaction_repo: IEntityRepository):
        self.order_repo = order_repo
        self.transaction_repo = transaction_repo

    def summary(self) -> Dict[str, Any]:
        """
        Figures of the analytics view.

        Returns:
            dict with total_revenue, total_expenses, net_profit,
            pending_count, production_count, status_distribution
            [{'name', 'value'}] and recent_transactions (last seven of the
            stored ledger, for the bar chart)
        """
        orders = self.order_repo.load()
        transactions = self.transaction_repo.load()

        revenue = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
        expenses = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)

        counts = {status: 0 for status in DISTRIBUTION_STATUSES}
        for order in orders:
            if order.status in counts:
                counts[order.status] += 1

        return {
            'total_revenue': round(revenue, 2),
            'total_expenses': round(expenses, 2),
            'net_profit': round(revenue - expenses, 2),
            'pending_count': counts[OrderStatus.PENDING],
            'production_count': counts[OrderStatus.PRODUCTION],
            'status_distribution': [
                {'name': status.value, 'value': count}
                for status, count in counts.items()
                if count > 0
            ],
            'recent_transactions': [t.to_dict() for t in transactions[-CHART_TRANSACTIONS:]],
        }

    def kpi_stats(self) -> KPIStats:
        """Values behind the dashboard STAT widgets."""
        orders = self.order_repo.load()
        transactions = self.transaction_repo.load()
        return KPIStats(
            total_revenue=round(sum(
                t.amount for t in transactions if t.type == TransactionType.INCOME), 2),
            total_orders=len(orders),
            pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
            # The dashboard has always shown all-time expenses under this key
            monthly_expenses=round(sum(
                t.amount for t in transactions if t.type == TransactionType.EXPENSE), 2),
        )
