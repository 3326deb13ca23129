# ==============================================================================
# MODEL LAYER - data structures of the system
# ==============================================================================
# Every domain entity is a dataclass that converts to/from the JSON records
# stored by the repositories.
# ==============================================================================

from .entities import (
    # Users
    User,
    UserRole,

    # Master data
    Customer,
    Product,

    # Orders
    Order,
    OrderItem,
    OrderStatus,
    Material,

    # Finance
    Transaction,
    TransactionType,

    # Dashboard
    DashboardWidget,
    WidgetType,
    KPIStats,
    View,
)

__all__ = [
    'User',
    'UserRole',
    'Customer',
    'Product',
    'Order',
    'OrderItem',
    'OrderStatus',
    'Material',
    'Transaction',
    'TransactionType',
    'DashboardWidget',
    'WidgetType',
    'KPIStats',
    'View',
]
