# ==============================================================================
# ORDER SERVICE
# ==============================================================================
# All business logic of the order workflow.
#
# RULES:
# 1. Header totals (quantity, amount, summary name) are derived from the
#    lines and recomputed on every write.
# 2. Shipments accumulate per line and never exceed the ordered quantity.
# 3. paid_amount is never edited here; it grows through linked INCOME
#    transactions (see FinanceService).
# ==============================================================================

import logging
from datetime import date
from typing import Any, Dict, List, Mapping

from factory_erp.models import Material, Order, OrderItem, OrderStatus, Transaction
from factory_erp.performance_logger import profile_function
from factory_erp.repositories.interfaces import IEntityRepository
from factory_erp.services.errors import NotFoundError, ValidationError
from factory_erp.services.ids import epoch_id, random_id
from factory_erp.services.numbers import percent, to_number

logger = logging.getLogger(__name__)

DELIVERY_NOTE_MIN_ROWS = 5

PAYMENT_PAID = 'PAID'
PAYMENT_PARTIAL = 'PARTIAL'
PAYMENT_UNPAID = 'UNPAID'


class OrderService:
    """
    Orders, their lines, BOM and shipments.

    Responsibilities:
    - Cart lines and order creation
    - Status and detail edits
    - Partial shipments and delivery notes
    - Cost / margin / payment summaries for the detail view
    """

    def __init__(
        self,
        order_repo: IEntityRepository,
        product_repo: IEntityRepository,
        customer_repo: IEntityRepository,
        transaction_repo: IEntityRepository = None
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.customer_repo = customer_repo
        self.transaction_repo = transaction_repo

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def get_all(self) -> List[Order]:
        return self.order_repo.load()

    def get_order(self, order_id: str) -> Order:
        """
        Raises:
            NotFoundError: unknown order id
        """
        order = self.order_repo.get(order_id)
        if order is None:
            raise NotFoundError('Order', order_id)
        return order

    def filter_orders(self, term: str = '', status: str = 'ALL') -> List[Order]:
        """
        Search over customer, product summary and order id.

        Args:
            term: Case-insensitive substring
            status: 'ALL' or an OrderStatus value
        """
        term = (term or '').strip().lower()
        result = []
        for order in self.order_repo.load():
            if term and not (
                term in order.customer_name.lower()
                or term in order.product_name.lower()
                or term in order.id.lower()
            ):
                continue
            if status and status != 'ALL' and order.status.value != status:
                continue
            result.append(order)
        return result

    def known_customers(self) -> List[str]:
        """Customer names seen on orders or in the customer list, sorted."""
        names = {o.customer_name for o in self.order_repo.load() if o.customer_name}
        names.update(c.name for c in self.customer_repo.load() if c.name)
        return sorted(names)

    def order_transactions(self, order_id: str) -> List[Transaction]:
        """Payments and other entries linked to an order, newest date first."""
        if self.transaction_repo is None:
            return []
        linked = [t for t in self.transaction_repo.load() if t.related_order_id == order_id]
        return sorted(linked, key=lambda t: t.date, reverse=True)

    # =========================================================================
    # CREATION
    # =========================================================================

    def build_line_item(
        self,
        product_name: str,
        quantity: Any,
        unit_price: Any = None
    ) -> Dict[str, Any]:
        """
        Turn a cart entry into an order line, copying model and unit from
        the catalog. The catalog price applies when no price is given.

        Returns:
            {'ok': True, 'item': OrderItem} or {'ok': False, 'error': str}
        """
        product = self.product_repo.find_by_name((product_name or '').strip())
        if product is None:
            return {'ok': False, 'error': f'产品 "{product_name}" 不存在'}

        qty = to_number(quantity, int)
        if qty is None or qty <= 0:
            return {'ok': False, 'error': '数量必须大于0'}

        if unit_price is None or unit_price == '':
            price = product.unit_price
        else:
            price = to_number(unit_price)
            if price is None:
                return {'ok': False, 'error': '单价格式无效'}
        if price < 0:
            return {'ok': False, 'error': '单价不能为负数'}

        item = OrderItem(
            product_id=product.id,
            product_name=product.name,
            model=product.model,
            quantity=qty,
            unit_price=price,
            unit=product.unit,
        )
        return {'ok': True, 'item': item}

    def _new_order_id(self) -> str:
        year = date.today().year
        return random_id(f'ORD-{year}', self.order_repo.ids(), low=0, high=9999, width=4)

    @profile_function
    def create_order(
        self,
        customer_name: str,
        items: List[Any],
        delivery_date: str = '',
        order_date: str = None,
        order_id: str = None,
        status: OrderStatus = OrderStatus.PENDING
    ) -> Dict[str, Any]:
        """
        Create an order from cart lines.

        Args:
            customer_name: Buyer (free text, usually picked from the list)
            items: OrderItem objects or dicts {product_name, quantity, unit_price?}
            delivery_date: Promised date (YYYY-MM-DD)
            order_date: Defaults to today
            order_id: Custom order number; generated when blank

        Returns:
            {'ok': True, 'order': Order} or {'ok': False, 'error': str}
        """
        customer_name = (customer_name or '').strip()
        if not customer_name:
            return {'ok': False, 'error': '请选择客户'}
        if not items:
            return {'ok': False, 'error': '请至少添加一个产品'}

        # Resolve cart lines
        lines = []
        for raw in items:
            if isinstance(raw, OrderItem):
                lines.append(raw)
                continue
            if not isinstance(raw, Mapping):
                return {'ok': False, 'error': '订单明细格式无效'}
            result = self.build_line_item(
                raw.get('product_name'), raw.get('quantity'), raw.get('unit_price'))
            if not result['ok']:
                return result
            lines.append(result['item'])

        # Order number
        custom_id = (order_id or '').strip()
        if custom_id:
            if '/' in custom_id:
                return {'ok': False, 'error': '订单号不能包含 "/" 字符'}
            if self.order_repo.exists(custom_id):
                return {'ok': False, 'error': f'订单号 "{custom_id}" 已存在，请使用其他单号或留空自动生成。'}
            new_id = custom_id
        else:
            new_id = self._new_order_id()

        order = Order(
            id=new_id,
            customer_name=customer_name,
            status=OrderStatus(status),
            order_date=order_date or date.today().isoformat(),
            delivery_date=delivery_date or '',
            items=lines,
        )
        order.recalculate()
        self.order_repo.add(order)
        logger.info("Order %s created for %s: %d line(s), amount %.2f",
                    order.id, customer_name, len(lines), order.amount)
        return {'ok': True, 'order': order}

    # =========================================================================
    # EDITS
    # =========================================================================
    # Field edits and shipments go through order_repo.update(): the
    # read-modify-write runs under the storage lock.

    def update_order(self, order: Order) -> Order:
        """
        Persist an edited order, recomputing its totals first.

        Raises:
            NotFoundError: the order is not stored
        """
        order.recalculate()
        if not self.order_repo.replace(order):
            raise NotFoundError('Order', order.id)
        return order

    def _modify(self, order_id: str, mutate) -> Dict[str, Any]:
        """
        Apply `mutate` to the stored order and save it with fresh totals.

        `mutate` raises ValidationError to abort without saving.
        """
        def apply(order: Order) -> None:
            mutate(order)
            order.recalculate()

        try:
            order = self.order_repo.update(order_id, apply)
        except ValidationError as e:
            return {'ok': False, 'error': str(e)}
        if order is None:
            return {'ok': False, 'error': '订单不存在'}
        return {'ok': True, 'order': order}

    def change_status(self, order_id: str, status: str) -> Dict[str, Any]:
        try:
            new_status = OrderStatus(status)
        except ValueError:
            return {'ok': False, 'error': '无效的订单状态'}

        def mutate(order: Order) -> None:
            logger.info("Order %s status %s -> %s",
                        order_id, order.status.value, new_status.value)
            order.status = new_status

        return self._modify(order_id, mutate)

    def update_details(
        self,
        order_id: str,
        delivery_date: str = None,
        other_cost: Any = None
    ) -> Dict[str, Any]:
        """Edit the delivery date and the non-material cost."""
        cost = None
        if other_cost is not None:
            cost = to_number(other_cost) if str(other_cost).strip() else 0.0
            if cost is None:
                return {'ok': False, 'error': '其他费用必须是数字'}
            if cost < 0:
                return {'ok': False, 'error': '其他费用不能为负数'}

        def mutate(order: Order) -> None:
            if cost is not None:
                order.other_cost = cost
            if delivery_date is not None:
                order.delivery_date = delivery_date.strip()

        return self._modify(order_id, mutate)

    def add_material(
        self,
        order_id: str,
        name: str,
        quantity: Any = 1,
        unit_price: Any = 0,
        unit: str = '个'
    ) -> Dict[str, Any]:
        """Append a raw-material line to the order's BOM."""
        name = (name or '').strip()
        if not name:
            return {'ok': False, 'error': '物料名称不能为空'}

        qty = to_number(quantity)
        price = to_number(unit_price)
        if qty is None or price is None or qty < 0 or price < 0:
            return {'ok': False, 'error': '物料数量和单价必须是非负数字'}

        material = Material(
            id=epoch_id('MAT'),
            name=name,
            quantity=qty,
            unit_price=price,
            unit=(unit or '').strip() or '个',
        )
        result = self._modify(order_id, lambda order: order.materials.append(material))
        if result['ok']:
            result['material'] = material
        return result

    def remove_material(self, order_id: str, material_id: str) -> Dict[str, Any]:
        def mutate(order: Order) -> None:
            order.materials = [m for m in order.materials if m.id != material_id]

        return self._modify(order_id, mutate)

    # =========================================================================
    # SHIPMENTS
    # =========================================================================

    def shipment_plan(self, order: Order) -> List[Dict[str, Any]]:
        """
        Default shipment: everything still outstanding on each line.

        Returns:
            [{'index', 'item', 'shipped', 'remaining'}] per line
        """
        return [
            {
                'index': idx,
                'item': item,
                'shipped': item.shipped_quantity,
                'remaining': item.remaining,
            }
            for idx, item in enumerate(order.items)
        ]

    def shipment_lines(self, order: Order, quantities: Mapping[Any, Any]) -> List[OrderItem]:
        """
        Delivery-note lines: copies of the order lines carrying one
        shipment's quantities, zero-quantity lines left out.

        Args:
            quantities: {line index: quantity}; keys may be int or str
        """
        lines = []
        for idx, item in enumerate(order.items):
            qty = to_number(quantities.get(idx, quantities.get(str(idx), 0)), int) or 0
            if qty > 0:
                line = OrderItem.from_dict(item.to_dict())
                line.quantity = qty
                line.amount = round(qty * line.unit_price, 2)
                lines.append(line)
        return lines

    @profile_function
    def confirm_shipment(self, order_id: str, quantities: Mapping[Any, Any]) -> Dict[str, Any]:
        """
        Record a (partial) shipment and produce the delivery-note lines.

        Quantities are checked against the stored remaining amounts while
        the storage lock is held, so two concurrent shipments can never
        exceed an ordered quantity.

        Args:
            order_id: Order being shipped
            quantities: {line index: quantity shipped now}; missing = 0

        Returns:
            {'ok': True, 'order': Order, 'lines': [OrderItem],
             'quantities': {line index: quantity}} where each line carries
            this shipment's quantity, or {'ok': False, 'error'}
        """
        shipped_now = {}

        def mutate(order: Order) -> None:
            if not order.items:
                raise ValidationError('订单没有可发货的明细')

            # Validate per-line quantities
            shipping = []
            for idx, item in enumerate(order.items):
                raw = quantities.get(idx, quantities.get(str(idx), 0))
                qty = to_number(raw, int)
                if qty is None:
                    raise ValidationError(f'第{idx + 1}行发货数量无效')
                if qty < 0:
                    raise ValidationError(f'第{idx + 1}行发货数量不能为负数')
                if qty > item.remaining:
                    raise ValidationError(
                        f'{item.product_name} 本次发货数量超过剩余数量 ({item.remaining})')
                shipping.append(qty)

            if not any(shipping):
                raise ValidationError('本次发货数量均为0，无法生成送货单。')

            # Accumulate and derive status
            for idx, (item, qty) in enumerate(zip(order.items, shipping)):
                item.shipped_quantity += qty
                if qty > 0:
                    shipped_now[idx] = qty

            total_ordered = sum(i.quantity for i in order.items)
            total_shipped = order.shipped_total
            if total_ordered > 0 and total_shipped >= total_ordered:
                order.status = OrderStatus.COMPLETED
            elif total_shipped > 0:
                order.status = OrderStatus.SHIPPED

        result = self._modify(order_id, mutate)
        if not result['ok']:
            return result

        order = result['order']
        logger.info("Shipment recorded for %s: %d unit(s), status %s",
                    order.id, sum(shipped_now.values()), order.status.value)
        result['lines'] = self.shipment_lines(order, shipped_now)
        result['quantities'] = shipped_now
        return result

    def delivery_note(self, order: Order, lines: List[OrderItem]) -> Dict[str, Any]:
        """
        Printable delivery note: customer contact block, shipped lines and
        blank filler rows up to five.
        """
        customer = self.customer_repo.find_by_name(order.customer_name)
        return {
            'order': order,
            'customer_name': order.customer_name,
            'contact_person': (customer.contact_person if customer else '') or '---',
            'phone': (customer.phone if customer else '') or '---',
            'address': (customer.address if customer else '') or '---',
            'lines': lines,
            'total_quantity': sum(line.quantity for line in lines),
            'blank_rows': max(0, DELIVERY_NOTE_MIN_ROWS - len(lines)),
            'date': date.today().isoformat(),
        }

    # =========================================================================
    # SUMMARIES
    # =========================================================================

    def cost_summary(self, order: Order) -> Dict[str, Any]:
        """
        Margin and payment figures of the detail view.

        margin is a string with one decimal ("0" for zero-amount orders).
        """
        material_cost = round(sum(m.cost for m in order.materials), 2)
        total_cost = round(material_cost + (order.other_cost or 0), 2)
        profit = round(order.amount - total_cost, 2)
        margin = f"{profit / order.amount * 100:.1f}" if order.amount else '0'

        paid = order.paid_amount or 0
        if paid >= order.amount:
            payment_status = PAYMENT_PAID
        elif paid > 0:
            payment_status = PAYMENT_PARTIAL
        else:
            payment_status = PAYMENT_UNPAID

        return {
            'material_cost': material_cost,
            'other_cost': order.other_cost or 0,
            'total_cost': total_cost,
            'estimated_profit': profit,
            'margin': margin,
            'paid_amount': paid,
            'remaining_balance': round(order.amount - paid, 2),
            'payment_status': payment_status,
        }

    def row_summary(self, order: Order) -> Dict[str, Any]:
        """Figures of one row of the order list."""
        if len(order.items) > 1:
            display_name = f"{order.items[0].product_name} 等{len(order.items)}件商品"
        else:
            display_name = order.product_name

        total_qty = sum(i.quantity for i in order.items)
        total_shipped = order.shipped_total
        paid = order.paid_amount or 0
        return {
            'display_name': display_name,
            'total_quantity': total_qty,
            'total_shipped': total_shipped,
            'progress': percent(total_shipped, total_qty) if total_qty > 0 else 0,
            'paid_pct': percent(paid, order.amount) if order.amount > 0 else 100,
            'fully_paid': paid >= order.amount,
        }
