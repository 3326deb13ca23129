# ==============================================================================
# TRANSACTION REPOSITORY
# ==============================================================================

import os
from typing import List

from factory_erp.models import Transaction
from factory_erp.repositories.base import EntityRepository
from factory_erp.seed_data import INITIAL_TRANSACTIONS


class TransactionRepository(EntityRepository[Transaction]):
    """
    transactions.json, the cash ledger.

    New entries are stored first; list order is what the analytics chart
    slices from.
    """

    seed = INITIAL_TRANSACTIONS

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'transactions.json'), Transaction.from_dict)

    def find_by_order(self, order_id: str) -> List[Transaction]:
        return [t for t in self.load() if t.related_order_id == order_id]
