# ==============================================================================
# REPOSITORY LAYER - data access
# ==============================================================================
# Every read and write of the JSON storage goes through this package.
#
# LAYOUT:
# ├── interfaces.py              -> Protocols the services depend on
# ├── base.py                    -> BaseRepository, DictRepository, ListRepository, EntityRepository
# ├── user_repository.py         -> users.json
# ├── customer_repository.py     -> customers.json
# ├── product_repository.py      -> products.json
# ├── order_repository.py        -> orders.json (+ legacy order migration)
# ├── transaction_repository.py  -> transactions.json
# └── settings_repository.py     -> user_settings.json
# ==============================================================================

from .interfaces import (
    IEntityRepository,
    IUserRepository,
    ISettingsRepository,
)

from .base import BaseRepository, DictRepository, ListRepository, EntityRepository
from .user_repository import UserRepository
from .customer_repository import CustomerRepository
from .product_repository import ProductRepository
from .order_repository import OrderRepository, migrate_order_record
from .transaction_repository import TransactionRepository
from .settings_repository import SettingsRepository

__all__ = [
    # Interfaces
    'IEntityRepository',
    'IUserRepository',
    'ISettingsRepository',

    # Base classes
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'EntityRepository',

    # JSON implementations
    'UserRepository',
    'CustomerRepository',
    'ProductRepository',
    'OrderRepository',
    'migrate_order_record',
    'TransactionRepository',
    'SettingsRepository',
]
