# ==============================================================================
# PRODUCT SERVICE
# ==============================================================================
# The catalog the order cart picks from. Order lines copy name, model, price
# and unit at creation time; later catalog edits don't touch existing orders.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from factory_erp.models import Product
from factory_erp.repositories.interfaces import IEntityRepository
from factory_erp.services.ids import random_id
from factory_erp.services.numbers import to_number

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(self, product_repo: IEntityRepository):
        self.product_repo = product_repo

    def get_all(self) -> List[Product]:
        return self.product_repo.load()

    def search(self, term: str = '') -> List[Product]:
        """Case-insensitive match on name or model number."""
        products = self.product_repo.load()
        term = (term or '').strip().lower()
        if not term:
            return products
        return [
            p for p in products
            if term in p.name.lower() or term in (p.model or '').lower()
        ]

    def find_by_name(self, name: str) -> Optional[Product]:
        return self.product_repo.find_by_name(name)

    def add_product(
        self,
        name: str,
        model: str = '',
        unit_price: Any = 0,
        unit: str = '件'
    ) -> Dict[str, Any]:
        """
        Add a catalog entry.

        Returns:
            {'ok': True, 'product': Product} or {'ok': False, 'error': str}
        """
        name = (name or '').strip()
        if not name:
            return {'ok': False, 'error': '产品名称不能为空'}

        # Validate price
        price = to_number(unit_price or 0)
        if price is None:
            return {'ok': False, 'error': '单价格式无效'}
        if price < 0:
            return {'ok': False, 'error': '单价不能为负数'}

        taken = {p.id for p in self.product_repo.load()}
        product = Product(
            id=random_id('PROD', taken, width=3),
            name=name,
            model=(model or '').strip(),
            unit_price=price,
            unit=(unit or '').strip() or '件',
        )
        self.product_repo.add(product)
        logger.info("Product %s created (%s)", product.id, product.name)
        return {'ok': True, 'product': product}
