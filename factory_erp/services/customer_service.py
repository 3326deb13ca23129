# ==============================================================================
# CUSTOMER SERVICE
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from factory_erp.models import Customer
from factory_erp.repositories.interfaces import IEntityRepository
from factory_erp.services.ids import random_id

logger = logging.getLogger(__name__)


class CustomerService:
    """Customer profiles: list, search, create."""

    def __init__(self, customer_repo: IEntityRepository):
        self.customer_repo = customer_repo

    def get_all(self) -> List[Customer]:
        return self.customer_repo.load()

    def search(self, term: str = '') -> List[Customer]:
        """Case-insensitive match on name or contact person."""
        customers = self.customer_repo.load()
        term = (term or '').strip().lower()
        if not term:
            return customers
        return [
            c for c in customers
            if term in c.name.lower() or term in (c.contact_person or '').lower()
        ]

    def find_by_name(self, name: str) -> Optional[Customer]:
        return self.customer_repo.find_by_name(name)

    def add_customer(
        self,
        name: str,
        contact_person: str = '',
        phone: str = '',
        address: str = ''
    ) -> Dict[str, Any]:
        """
        Returns:
            {'ok': True, 'customer': Customer} or {'ok': False, 'error': str}
        """
        name = (name or '').strip()
        if not name:
            return {'ok': False, 'error': '客户名称不能为空'}

        taken = {c.id for c in self.customer_repo.load()}
        customer = Customer(
            id=random_id('CUST', taken, width=3),
            name=name,
            contact_person=(contact_person or '').strip(),
            phone=(phone or '').strip(),
            address=(address or '').strip(),
        )
        self.customer_repo.add(customer)
        logger.info("Customer %s created (%s)", customer.id, customer.name)
        return {'ok': True, 'customer': customer}
