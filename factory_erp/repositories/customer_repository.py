# ==============================================================================
# CUSTOMER REPOSITORY
# ==============================================================================

import os
from typing import Optional

from factory_erp.models import Customer
from factory_erp.repositories.base import EntityRepository
from factory_erp.seed_data import INITIAL_CUSTOMERS


class CustomerRepository(EntityRepository[Customer]):
    """customers.json, newest first."""

    seed = INITIAL_CUSTOMERS

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'customers.json'), Customer.from_dict)

    def find_by_name(self, name: str) -> Optional[Customer]:
        for customer in self.load():
            if customer.name == name:
                return customer
        return None
