# ==============================================================================
# DOMAIN ENTITIES - dataclass definitions
# ==============================================================================
# Each entity is one business concept of the shop.
# They know how to serialize themselves to the JSON records the repositories
# persist, and nothing about where those records live.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


# ==============================================================================
# ENUMERATIONS
# ==============================================================================

class OrderStatus(str, Enum):
    """Order lifecycle states (stored by display value)."""
    PENDING = "待处理"
    PRODUCTION = "生产中"
    SHIPPED = "已发货"
    COMPLETED = "已完成"
    CANCELLED = "已取消"


class TransactionType(str, Enum):
    """Ledger entry direction."""
    INCOME = "收入"
    EXPENSE = "支出"


class UserRole(str, Enum):
    """Staff roles; each role unlocks a set of views."""
    ADMIN = "管理员"
    SALES = "销售经理"
    FINANCE = "财务主管"
    PRODUCTION = "生产主管"


class WidgetType(str, Enum):
    LINK = "LINK"
    STAT = "STAT"
    ACTION = "ACTION"


class View(str, Enum):
    """Top-level screens of the application."""
    DASHBOARD = "DASHBOARD"
    ORDERS = "ORDERS"
    FINANCE = "FINANCE"
    ANALYTICS = "ANALYTICS"
    CUSTOMERS = "CUSTOMERS"
    PRODUCTS = "PRODUCTS"
    USERS = "USERS"


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value if value is not None else default)
    except (TypeError, ValueError):
        return default


# ==============================================================================
# USERS
# ==============================================================================

@dataclass
class User:
    """
    A staff account.

    Attributes:
        id: Stable identifier (USR-...)
        username: Login name, unique ignoring case
        password: werkzeug password hash
        name: Display name
        role: Role that decides the visible views
        avatar: Optional avatar URL
    """
    id: str
    username: str
    password: str
    name: str
    role: UserRole = UserRole.SALES
    avatar: Optional[str] = None

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def initial(self) -> str:
        return (self.name or self.username or '?')[0]

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'username': self.username,
            'password': self.password,
            'name': self.name,
            'role': self.role.value,
        }
        if self.avatar:
            d['avatar'] = self.avatar
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data.get('id', '')),
            username=data.get('username', ''),
            password=data.get('password', ''),
            name=data.get('name', ''),
            role=_enum_or_default(UserRole, data.get('role'), UserRole.SALES),
            avatar=data.get('avatar'),
        )


# ==============================================================================
# MASTER DATA
# ==============================================================================

@dataclass
class Customer:
    """Contact profile of a buyer."""
    id: str
    name: str
    contact_person: str = ''
    phone: str = ''
    address: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'contact_person': self.contact_person,
            'phone': self.phone,
            'address': self.address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            contact_person=data.get('contact_person', ''),
            phone=data.get('phone', ''),
            address=data.get('address', ''),
        )


@dataclass
class Product:
    """
    A catalog SKU.

    Attributes:
        id: Identifier (PROD-...)
        name: Product name, used to reference the product from order lines
        model: Model number / SKU
        unit_price: Default selling price
        unit: Counting unit (张, 把, 组...)
    """
    id: str
    name: str
    model: str = ''
    unit_price: float = 0.0
    unit: str = '件'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'model': self.model,
            'unit_price': self.unit_price,
            'unit': self.unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            model=data.get('model', ''),
            unit_price=_to_float(data.get('unit_price')),
            unit=data.get('unit') or '件',
        )


# ==============================================================================
# ORDERS
# ==============================================================================

@dataclass
class OrderItem:
    """
    One product line of an order.

    `shipped_quantity` accumulates over partial shipments and never goes
    above `quantity`.
    """
    product_name: str
    quantity: int
    unit_price: float
    model: str = ''
    unit: str = '件'
    shipped_quantity: int = 0
    product_id: Optional[str] = None
    amount: float = 0.0

    def __post_init__(self):
        self.amount = round(self.quantity * self.unit_price, 2)

    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.shipped_quantity)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'product_name': self.product_name,
            'model': self.model,
            'quantity': self.quantity,
            'shipped_quantity': self.shipped_quantity,
            'unit_price': self.unit_price,
            'unit': self.unit,
            'amount': self.amount,
        }
        if self.product_id:
            d['product_id'] = self.product_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderItem':
        return cls(
            product_name=data.get('product_name', ''),
            quantity=int(data.get('quantity') or 0),
            unit_price=_to_float(data.get('unit_price')),
            model=data.get('model', ''),
            unit=data.get('unit') or '件',
            shipped_quantity=int(data.get('shipped_quantity') or 0),
            product_id=data.get('product_id'),
        )


@dataclass
class Material:
    """A raw-material cost line of an order's BOM."""
    id: str
    name: str
    quantity: float = 1
    unit_price: float = 0.0
    unit: str = '个'

    @property
    def cost(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'unit': self.unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Material':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            quantity=_to_float(data.get('quantity'), 1),
            unit_price=_to_float(data.get('unit_price')),
            unit=data.get('unit') or '个',
        )


@dataclass
class Order:
    """
    Order header with its lines, BOM and payment tracking.

    `product_name`, `quantity` and `amount` are list-view summaries derived
    from `items`; call `recalculate()` after touching the lines.
    """
    id: str
    customer_name: str
    status: OrderStatus = OrderStatus.PENDING
    order_date: str = ''
    delivery_date: str = ''
    items: List[OrderItem] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    other_cost: float = 0.0
    paid_amount: float = 0.0
    product_name: str = ''
    quantity: int = 0
    amount: float = 0.0

    def recalculate(self) -> None:
        """Refresh the header summaries from the line items."""
        for item in self.items:
            item.amount = round(item.quantity * item.unit_price, 2)
        self.quantity = sum(i.quantity for i in self.items)
        self.amount = round(sum(i.amount for i in self.items), 2)
        if self.items:
            name = self.items[0].product_name
            if len(self.items) > 1:
                name += f" 等{len(self.items)}种"
            self.product_name = name

    @property
    def shipped_total(self) -> int:
        return sum(i.shipped_quantity for i in self.items)

    @property
    def report_date(self) -> str:
        """Date used by period reports: delivery date, else order date."""
        return self.delivery_date or self.order_date

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_name': self.customer_name,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'amount': self.amount,
            'status': self.status.value,
            'order_date': self.order_date,
            'delivery_date': self.delivery_date,
            'items': [i.to_dict() for i in self.items],
            'materials': [m.to_dict() for m in self.materials],
            'other_cost': self.other_cost,
            'paid_amount': self.paid_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        return cls(
            id=str(data.get('id', '')),
            customer_name=data.get('customer_name', ''),
            product_name=data.get('product_name', ''),
            quantity=int(data.get('quantity') or 0),
            amount=_to_float(data.get('amount')),
            status=_enum_or_default(OrderStatus, data.get('status'), OrderStatus.PENDING),
            order_date=data.get('order_date', ''),
            delivery_date=data.get('delivery_date', ''),
            items=[OrderItem.from_dict(i) for i in data.get('items') or []],
            materials=[Material.from_dict(m) for m in data.get('materials') or []],
            other_cost=_to_float(data.get('other_cost')),
            paid_amount=_to_float(data.get('paid_amount')),
        )


# ==============================================================================
# FINANCE
# ==============================================================================

@dataclass
class Transaction:
    """A cash ledger entry, optionally tied to an order as a payment."""
    id: str
    date: str
    description: str
    amount: float
    type: TransactionType
    category: str = ''
    related_order_id: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'date': self.date,
            'description': self.description,
            'amount': self.amount,
            'type': self.type.value,
            'category': self.category,
        }
        if self.related_order_id:
            d['related_order_id'] = self.related_order_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data.get('id', '')),
            date=data.get('date', ''),
            description=data.get('description', ''),
            amount=_to_float(data.get('amount')),
            type=_enum_or_default(TransactionType, data.get('type'), TransactionType.EXPENSE),
            category=data.get('category', ''),
            related_order_id=data.get('related_order_id') or None,
        )


# ==============================================================================
# DASHBOARD
# ==============================================================================

@dataclass
class KPIStats:
    total_revenue: float = 0.0
    total_orders: int = 0
    pending_orders: int = 0
    monthly_expenses: float = 0.0

    def get(self, key: str) -> Optional[float]:
        return getattr(self, key, None)


@dataclass
class DashboardWidget:
    """
    A dashboard tile.

    LINK widgets navigate to `target_view`; STAT widgets show the KPIStats
    field named by `stat_key`. `allowed_roles` of None means everyone.
    """
    id: str
    title: str
    icon: str
    type: WidgetType
    bg_color: str = 'bg-white'
    text_color: str = 'text-gray-800'
    is_visible: bool = True
    target_view: Optional[View] = None
    description: Optional[str] = None
    stat_key: Optional[str] = None
    allowed_roles: Optional[List[UserRole]] = None

    def allows(self, role: UserRole) -> bool:
        if self.allowed_roles is None:
            return True
        return role in self.allowed_roles

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'icon': self.icon,
            'type': self.type.value,
            'bg_color': self.bg_color,
            'text_color': self.text_color,
            'is_visible': self.is_visible,
            'target_view': self.target_view.value if self.target_view else None,
            'description': self.description,
            'stat_key': self.stat_key,
            'allowed_roles': (
                [r.value for r in self.allowed_roles]
                if self.allowed_roles is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DashboardWidget':
        roles = data.get('allowed_roles')
        target = data.get('target_view')
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            icon=data.get('icon', 'ShoppingCart'),
            type=WidgetType(data.get('type', 'LINK')),
            bg_color=data.get('bg_color', 'bg-white'),
            text_color=data.get('text_color', 'text-gray-800'),
            is_visible=bool(data.get('is_visible', True)),
            target_view=View(target) if target else None,
            description=data.get('description'),
            stat_key=data.get('stat_key'),
            allowed_roles=[UserRole(r) for r in roles] if roles is not None else None,
        )
