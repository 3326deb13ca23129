# ==============================================================================
# ORDER REPOSITORY
# ==============================================================================
# Wraps orders.json. Older records predate multi-line orders and payment
# tracking; `_migrate` upgrades them on every load so the services only ever
# see the current shape.
# ==============================================================================

import os
from typing import Any, Dict, List

from factory_erp.models import Order, OrderStatus
from factory_erp.repositories.base import EntityRepository
from factory_erp.seed_data import INITIAL_ORDERS

SHIPPED_STATES = (OrderStatus.SHIPPED.value, OrderStatus.COMPLETED.value)


def migrate_order_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upgrade a stored order record to the current format.

    - No `items` list: synthesize one line from the header summary. It counts
      as fully shipped when the order is already shipped or completed.
    - Existing lines get `shipped_quantity` defaulted to 0.
    - Missing `paid_amount`, `materials`, `other_cost` get their defaults.
    """
    migrated = dict(record)
    items = migrated.get('items')

    if not isinstance(items, list):
        quantity = int(record.get('quantity') or 0)
        amount = float(record.get('amount') or 0)
        migrated['items'] = [{
            'product_name': record.get('product_name', ''),
            'model': 'N/A',
            'quantity': quantity,
            'shipped_quantity': quantity if record.get('status') in SHIPPED_STATES else 0,
            'unit_price': amount / quantity if quantity > 0 else 0,
            'unit': '件',
            'amount': amount,
        }]
    else:
        migrated['items'] = [
            {**item, 'shipped_quantity': item.get('shipped_quantity') or 0}
            for item in items
        ]

    if migrated.get('paid_amount') is None:
        migrated['paid_amount'] = 0
    if not isinstance(migrated.get('materials'), list):
        migrated['materials'] = []
    if migrated.get('other_cost') is None:
        migrated['other_cost'] = 0
    return migrated


class OrderRepository(EntityRepository[Order]):
    """orders.json, newest first."""

    seed = INITIAL_ORDERS

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'orders.json'), Order.from_dict)

    def _migrate(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return migrate_order_record(record)

    def ids(self) -> List[str]:
        return [o.id for o in self.load()]
