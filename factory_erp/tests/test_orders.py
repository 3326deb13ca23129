import re
import threading
from datetime import date

import pytest

from factory_erp.models import OrderStatus
from factory_erp.services import NotFoundError
from factory_erp.services import ids


@pytest.fixture
def orders(container):
    return container.order_service


def _two_line_order(orders, **kwargs):
    return orders.create_order(
        '蓝天贸易',
        [
            {'product_name': '办公椅 X200', 'quantity': 10},
            {'product_name': '简约茶几', 'quantity': 4, 'unit_price': 100},
        ],
        delivery_date='2024-03-01',
        **kwargs,
    )


def test_create_order_sums_lines(orders):
    result = _two_line_order(orders)
    assert result['ok']
    order = result['order']

    assert re.fullmatch(r'ORD-\d{4}-\d{4}', order.id)
    assert order.product_name == '办公椅 X200 等2种'
    assert order.quantity == 14
    assert order.amount == 10 * 300 + 4 * 100
    assert order.items[0].model == 'OC-X200'
    assert order.status == OrderStatus.PENDING
    assert order.paid_amount == 0 and order.materials == [] and order.other_cost == 0
    assert orders.get_all()[0].id == order.id


def test_create_order_custom_id_must_be_unique(orders):
    assert _two_line_order(orders, order_id='  PO-777 ')['order'].id == 'PO-777'
    dup = _two_line_order(orders, order_id='PO-777')
    assert not dup['ok']
    assert 'PO-777' in dup['error']


def test_create_order_validation(orders):
    assert orders.create_order('蓝天贸易', [])['error'] == '请至少添加一个产品'
    assert not orders.create_order('蓝天贸易', [{'product_name': '不存在', 'quantity': 1}])['ok']
    assert not orders.create_order('蓝天贸易', [{'product_name': '重型货架', 'quantity': 0}])['ok']


def test_get_order_unknown_raises(orders):
    with pytest.raises(NotFoundError):
        orders.get_order('NOPE')


def test_partial_then_full_shipment(orders):
    order = _two_line_order(orders)['order']

    first = orders.confirm_shipment(order.id, {0: 4, 1: 0})
    assert first['ok']
    assert first['order'].status == OrderStatus.SHIPPED
    assert [(l.product_name, l.quantity) for l in first['lines']] == [('办公椅 X200', 4)]
    assert first['lines'][0].amount == 1200

    plan = orders.shipment_plan(orders.get_order(order.id))
    assert [p['remaining'] for p in plan] == [6, 4]

    second = orders.confirm_shipment(order.id, {'0': '6', '1': '4'})
    assert second['ok']
    stored = orders.get_order(order.id)
    assert stored.status == OrderStatus.COMPLETED
    assert [i.shipped_quantity for i in stored.items] == [10, 4]


def test_shipment_rejects_zero_and_excess(orders):
    order = _two_line_order(orders)['order']
    assert orders.confirm_shipment(order.id, {})['error'] == '本次发货数量均为0，无法生成送货单。'
    assert not orders.confirm_shipment(order.id, {0: 11})['ok']
    assert not orders.confirm_shipment(order.id, {0: -1, 1: 2})['ok']
    assert orders.get_order(order.id).shipped_total == 0


def test_delivery_note_contact_and_padding(orders):
    order = orders.get_order('ORD-2023-003')
    result = orders.confirm_shipment(order.id, {0: 5})
    note = orders.delivery_note(result['order'], result['lines'])

    assert note['contact_person'] == '王主管'
    assert note['total_quantity'] == 5
    assert note['blank_rows'] == 4

    unknown = _two_line_order(orders)['order']
    unknown.customer_name = '路人甲'
    note = orders.delivery_note(unknown, [])
    assert (note['contact_person'], note['phone'], note['address']) == ('---', '---', '---')


def test_cost_summary_of_seed_order(orders):
    costs = orders.cost_summary(orders.get_order('ORD-2023-001'))
    assert costs['material_cost'] == 100 * 120 + 10 * 300
    assert costs['total_cost'] == 17000
    assert costs['estimated_profit'] == 8000
    assert costs['margin'] == '32.0'
    assert costs['payment_status'] == 'UNPAID'
    assert costs['remaining_balance'] == 25000


def test_cost_summary_zero_amount_and_payment_states(orders):
    order = orders.get_order('ORD-2023-004')
    order.paid_amount = 100
    assert orders.cost_summary(order)['payment_status'] == 'PARTIAL'
    order.paid_amount = order.amount
    assert orders.cost_summary(order)['payment_status'] == 'PAID'

    order.items = []
    order.amount = 0
    assert orders.cost_summary(order)['margin'] == '0'


def test_materials_and_details(orders):
    result = orders.add_material('ORD-2023-004', '玻璃', 2, 50, '块')
    assert result['ok']
    material = result['material']
    assert material.id.startswith('MAT-')

    assert orders.update_details('ORD-2023-004', delivery_date='2023-12-01', other_cost='300')['ok']
    stored = orders.get_order('ORD-2023-004')
    assert stored.other_cost == 300 and stored.delivery_date == '2023-12-01'
    assert orders.cost_summary(stored)['total_cost'] == 400

    assert not orders.add_material('ORD-2023-004', '', 1, 1)['ok']
    orders.remove_material('ORD-2023-004', material.id)
    assert orders.get_order('ORD-2023-004').materials == []


def test_update_order_recomputes_totals(orders):
    order = orders.get_order('ORD-2023-005')
    order.items[0].quantity = 20
    orders.update_order(order)
    stored = orders.get_order('ORD-2023-005')
    assert stored.quantity == 20
    assert stored.amount == 30000


def test_change_status(orders):
    assert orders.change_status('ORD-2023-004', OrderStatus.PRODUCTION.value)['ok']
    assert orders.get_order('ORD-2023-004').status == OrderStatus.PRODUCTION
    assert not orders.change_status('ORD-2023-004', 'bogus')['ok']


def test_filter_orders(orders):
    assert [o.id for o in orders.filter_orders('蓝天')] == ['ORD-2023-002']
    assert [o.id for o in orders.filter_orders('ord-2023-003')] == ['ORD-2023-003']
    assert len(orders.filter_orders('', OrderStatus.PENDING.value)) == 2
    assert len(orders.filter_orders('', 'ALL')) == 5


def test_row_summary_and_known_customers(container, orders):
    order = _two_line_order(orders)['order']
    orders.confirm_shipment(order.id, {0: 7})
    summary = orders.row_summary(orders.get_order(order.id))
    assert summary['display_name'] == '办公椅 X200 等2件商品'
    assert summary['progress'] == 50
    assert summary['paid_pct'] == 0
    assert not summary['fully_paid']

    container.customer_service.add_customer('Acme')
    names = orders.known_customers()
    assert names == sorted(names)
    assert 'Acme' in names and '蓝天贸易' in names


def test_generated_order_number_is_zero_padded(orders, monkeypatch):
    monkeypatch.setattr(ids.random, 'randint', lambda low, high: low)
    order = orders.create_order('蓝天贸易', [{'product_name': '简约茶几', 'quantity': 1}])['order']
    assert order.id == f'ORD-{date.today().year}-0000'


def test_order_number_cannot_contain_slash(orders):
    result = orders.create_order('蓝天贸易', [{'product_name': '简约茶几', 'quantity': 1}],
                                 order_id='PO/2024/1')
    assert not result['ok']
    assert '/' in result['error']
    assert not orders.order_repo.exists('PO/2024/1')


@pytest.mark.parametrize('value', ['nan', 'inf', '-inf', 'NaN'])
def test_non_finite_numbers_are_rejected(orders, value):
    assert not orders.build_line_item('简约茶几', 1, value)['ok']
    assert not orders.build_line_item('简约茶几', value)['ok']
    assert not orders.add_material('ORD-2023-004', '玻璃', value, 10)['ok']
    assert not orders.add_material('ORD-2023-004', '玻璃', 1, value)['ok']
    assert not orders.update_details('ORD-2023-004', other_cost=value)['ok']

    stored = orders.get_order('ORD-2023-004')
    assert stored.materials == [] and stored.other_cost == 0


def test_blank_other_cost_resets_to_zero(orders):
    orders.update_details('ORD-2023-004', other_cost='300')
    assert orders.update_details('ORD-2023-004', other_cost='')['ok']
    assert orders.get_order('ORD-2023-004').other_cost == 0


def test_row_summary_rounds_halves_up(container, orders):
    order = orders.create_order(
        '蓝天贸易', [{'product_name': '简约茶几', 'quantity': 8, 'unit_price': 100}])['order']
    orders.confirm_shipment(order.id, {0: 1})
    container.finance_service.add_transaction('2024-01-01', '定金', 4, '收入', '', order.id)

    summary = orders.row_summary(orders.get_order(order.id))
    assert summary['progress'] == 13    # 12.5
    assert summary['paid_pct'] == 1     # 0.5


def test_concurrent_shipments_never_exceed_ordered_quantity(orders):
    order = orders.create_order('蓝天贸易', [{'product_name': '简约茶几', 'quantity': 5}])['order']
    results = []

    def ship_one():
        results.append(orders.confirm_shipment(order.id, {0: 1}))

    threads = [threading.Thread(target=ship_one) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in results if r['ok']) == 5
    stored = orders.get_order(order.id)
    assert stored.items[0].shipped_quantity == 5
    assert stored.status == OrderStatus.COMPLETED


def test_shipment_lines_rebuild_a_note_from_quantities(orders):
    order = _two_line_order(orders)['order']
    result = orders.confirm_shipment(order.id, {0: 2, 1: 1})
    assert result['quantities'] == {0: 2, 1: 1}

    lines = orders.shipment_lines(orders.get_order(order.id), {'0': 2, '1': 1})
    assert [(l.product_name, l.quantity, l.amount) for l in lines] == \
        [(l.product_name, l.quantity, l.amount) for l in result['lines']]
