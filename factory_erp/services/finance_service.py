# ==============================================================================
# FINANCE SERVICE
# ==============================================================================
# The cash ledger and payment reconciliation.
#
# GOLDEN RULE: money received against an order is always recorded as an
# INCOME transaction linked to that order, and only that raises the order's
# paid_amount.
# ==============================================================================

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from factory_erp.models import Order, OrderStatus, Transaction, TransactionType
from factory_erp.performance_logger import profile_function
from factory_erp.repositories.interfaces import IEntityRepository
from factory_erp.services.ids import random_id
from factory_erp.services.numbers import to_number

logger = logging.getLogger(__name__)

TYPE_FILTER_ALL = 'ALL'

INCOME_CATEGORIES = ['销售回款', '其他收入']
EXPENSE_CATEGORIES = ['原材料', '运营成本', '人工工资', '维修保养', '其他支出']


class FinanceService:
    """
    Service for the ledger.

    Responsibilities:
    - Record income and expense entries
    - Validate amounts
    - Reconcile order payments
    """

    def __init__(
        self,
        transaction_repo: IEntityRepository,
        order_repo: IEntityRepository
    ):
        """
        Args:
            transaction_repo: Ledger storage
            order_repo: Orders, updated when a payment is linked
        """
        self.transaction_repo = transaction_repo
        self.order_repo = order_repo

    def list_transactions(self, type_filter: str = TYPE_FILTER_ALL) -> List[Transaction]:
        """
        Args:
            type_filter: 'ALL' or a TransactionType value

        Returns:
            Entries sorted by date, newest first
        """
        entries = self.transaction_repo.load()
        if type_filter and type_filter != TYPE_FILTER_ALL:
            entries = [t for t in entries if t.type.value == type_filter]
        return sorted(entries, key=lambda t: t.date, reverse=True)

    def unpaid_orders(self) -> List[Order]:
        """Orders that can still receive a payment."""
        return [
            o for o in self.order_repo.load()
            if (o.paid_amount or 0) < o.amount and o.status != OrderStatus.CANCELLED
        ]

    def linked_order(self, transaction: Transaction) -> Optional[Order]:
        if not transaction.related_order_id:
            return None
        return self.order_repo.get(transaction.related_order_id)

    @profile_function
    def add_transaction(
        self,
        tx_date: str,
        description: str,
        amount: Any,
        tx_type: str,
        category: str = '',
        related_order_id: str = None
    ) -> Dict[str, Any]:
        """
        Record a ledger entry.
        GOLDEN RULE: an INCOME entry linked to an order adds to its paid amount.

        Args:
            tx_date: YYYY-MM-DD, defaults to today
            description: Free text
            amount: Positive amount
            tx_type: TransactionType value
            category: Ledger category
            related_order_id: Order being paid (INCOME only)

        Returns:
            {'ok': True, 'transaction': Transaction, 'order': Order|None}
            or {'ok': False, 'error': str}
        """
        # Validate amount
        amount = to_number(amount or 0)
        if amount is None:
            return {'ok': False, 'error': '金额格式无效'}
        if amount <= 0:
            return {'ok': False, 'error': '金额必须大于0'}

        try:
            type_enum = TransactionType(tx_type)
        except ValueError:
            return {'ok': False, 'error': '无效的收支类型'}

        description = (description or '').strip()
        if not description:
            return {'ok': False, 'error': '请填写摘要说明'}

        # Expenses never reference an order
        related_order_id = (related_order_id or '').strip() or None
        if type_enum == TransactionType.EXPENSE:
            related_order_id = None

        order = None
        if related_order_id:
            order = self.order_repo.get(related_order_id)
            if order is None:
                return {'ok': False, 'error': '关联订单不存在'}

        transaction = Transaction(
            id=random_id('TRX', (t.id for t in self.transaction_repo.load())),
            date=(tx_date or '').strip() or date.today().isoformat(),
            description=description,
            amount=round(amount, 2),
            type=type_enum,
            category=(category or '').strip(),
            related_order_id=related_order_id,
        )
        self.transaction_repo.add(transaction)

        # Payment reconciliation, incremented under the storage lock
        if order is not None:
            def add_payment(o: Order) -> None:
                o.paid_amount = round((o.paid_amount or 0) + transaction.amount, 2)

            order = self.order_repo.update(order.id, add_payment)
            logger.info("Payment %s of %.2f linked to order %s (paid %.2f / %.2f)",
                        transaction.id, transaction.amount, order.id,
                        order.paid_amount, order.amount)

        logger.info("Transaction %s recorded: %s %.2f",
                    transaction.id, type_enum.value, transaction.amount)
        return {'ok': True, 'transaction': transaction, 'order': order}
