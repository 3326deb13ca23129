# ==============================================================================
# PRODUCT REPOSITORY
# ==============================================================================

import os
from typing import Optional

from factory_erp.models import Product
from factory_erp.repositories.base import EntityRepository
from factory_erp.seed_data import INITIAL_PRODUCTS


class ProductRepository(EntityRepository[Product]):
    """products.json, the catalog order lines are picked from."""

    seed = INITIAL_PRODUCTS

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'products.json'), Product.from_dict)

    def find_by_name(self, name: str) -> Optional[Product]:
        for product in self.load():
            if product.name == name:
                return product
        return None
