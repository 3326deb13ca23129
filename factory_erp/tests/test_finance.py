import re
import threading

import pytest

from factory_erp.models import OrderStatus, TransactionType

INCOME = TransactionType.INCOME.value
EXPENSE = TransactionType.EXPENSE.value


@pytest.fixture
def finance(container):
    return container.finance_service


def test_income_linked_to_order_raises_paid_amount(container, finance):
    result = finance.add_transaction('2023-11-01', '蓝天贸易首款', '5000', INCOME,
                                     '销售回款', related_order_id='ORD-2023-002')
    assert result['ok']
    assert re.fullmatch(r'TRX-\d+', result['transaction'].id)

    finance.add_transaction('2023-11-02', '蓝天贸易二期', 1000, INCOME, '销售回款', 'ORD-2023-002')
    order = container.order_service.get_order('ORD-2023-002')
    assert order.paid_amount == 6000
    assert [t.amount for t in container.order_service.order_transactions(order.id)] == [1000, 5000]


def test_expense_never_links_an_order(container, finance):
    result = finance.add_transaction('2023-11-01', '采购木材', 800, EXPENSE, '原材料', 'ORD-2023-002')
    assert result['ok']
    assert result['transaction'].related_order_id is None
    assert container.order_service.get_order('ORD-2023-002').paid_amount == 0


def test_add_transaction_validation(finance):
    assert finance.add_transaction('2023-11-01', 'x', 0, INCOME)['error'] == '金额必须大于0'
    assert not finance.add_transaction('2023-11-01', 'x', 'abc', INCOME)['ok']
    assert not finance.add_transaction('2023-11-01', 'x', 10, 'LOAN')['ok']
    assert finance.add_transaction('2023-11-01', 'x', 10, INCOME, '', 'ORD-NOPE')['error'] == '关联订单不存在'


def test_new_entries_are_stored_first(container, finance):
    finance.add_transaction('2020-01-01', '很早的收入', 10, INCOME)
    assert container.transaction_repo.load()[0].description == '很早的收入'


def test_list_transactions_newest_first_and_filtered(finance):
    entries = finance.list_transactions()
    dates = [t.date for t in entries]
    assert dates == sorted(dates, reverse=True)

    expenses = finance.list_transactions(EXPENSE)
    assert len(expenses) == 3
    assert all(t.type == TransactionType.EXPENSE for t in expenses)


def test_unpaid_orders_skip_cancelled_and_settled(container, finance):
    container.order_service.change_status('ORD-2023-004', OrderStatus.CANCELLED.value)
    finance.add_transaction('2023-11-01', '全款', 9000, INCOME, '销售回款', 'ORD-2023-003')
    finance.add_transaction('2023-11-01', '全款', 36000, INCOME, '销售回款', 'ORD-2023-003')

    ids = [o.id for o in finance.unpaid_orders()]
    assert 'ORD-2023-004' not in ids
    assert 'ORD-2023-003' not in ids
    assert 'ORD-2023-005' in ids


def test_linked_order(finance):
    tx = finance.add_transaction('2023-11-01', '货款', 100, INCOME, '', 'ORD-2023-005')['transaction']
    assert finance.linked_order(tx).id == 'ORD-2023-005'
    other = finance.add_transaction('2023-11-01', '杂项', 100, INCOME)['transaction']
    assert finance.linked_order(other) is None


@pytest.mark.parametrize('value', ['nan', 'inf', '-inf', 'Infinity'])
def test_non_finite_amount_is_rejected(container, finance, value):
    result = finance.add_transaction('2023-11-01', '异常金额', value, INCOME, '销售回款', 'ORD-2023-002')
    assert result['error'] == '金额格式无效'
    assert not finance.add_transaction('2023-11-01', '异常金额', value, EXPENSE)['ok']

    assert container.order_service.get_order('ORD-2023-002').paid_amount == 0
    assert container.analytics_service.summary()['net_profit'] == 48100


def test_concurrent_payments_all_count(container, finance):
    def pay():
        finance.add_transaction('2023-11-01', '分期付款', 100, INCOME, '销售回款', 'ORD-2023-003')

    threads = [threading.Thread(target=pay) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert container.order_service.get_order('ORD-2023-003').paid_amount == 1000
    assert len(container.order_service.order_transactions('ORD-2023-003')) == 10
