import json
import logging
import os

import pytest

from factory_erp.models import OrderStatus
from factory_erp.repositories import (
    OrderRepository,
    TransactionRepository,
    UserRepository,
    CustomerRepository,
    migrate_order_record,
)
from factory_erp.repositories.user_repository import is_password_hashed


def test_missing_files_are_seeded(data_dir):
    orders = OrderRepository(data_dir).load()
    assert [o.id for o in orders][:2] == ['ORD-2023-001', 'ORD-2023-002']
    assert len(orders) == 5
    assert len(TransactionRepository(data_dir).load()) == 6
    assert len(CustomerRepository(data_dir).load()) == 5
    assert os.path.exists(os.path.join(data_dir, 'orders.json'))


def test_corrupt_file_falls_back_to_seed(data_dir, caplog):
    path = os.path.join(data_dir, 'transactions.json')
    repo = TransactionRepository(data_dir)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('{not json')

    with caplog.at_level(logging.WARNING):
        entries = repo.load()

    assert len(entries) == 6
    assert 'Failed to load transactions.json from storage, using fallback.' in caplog.text
    # The broken file is left until the next write
    with open(path, encoding='utf-8') as f:
        assert f.read() == '{not json'


def test_writes_leave_no_temp_file(data_dir):
    repo = CustomerRepository(data_dir)
    repo.save(repo.load()[:1])
    assert not os.path.exists(repo.file_path + '.tmp')
    with open(repo.file_path, encoding='utf-8') as f:
        assert len(json.load(f)) == 1


def test_migrate_legacy_order_without_items():
    legacy = {
        'id': 'ORD-OLD', 'customer_name': '老客户', 'product_name': '旧款椅子',
        'quantity': 10, 'amount': 1000, 'status': '已发货',
        'order_date': '2022-01-01', 'delivery_date': '2022-01-10',
    }
    migrated = migrate_order_record(legacy)

    assert migrated['items'] == [{
        'product_name': '旧款椅子', 'model': 'N/A', 'quantity': 10,
        'shipped_quantity': 10, 'unit_price': 100.0, 'unit': '件', 'amount': 1000.0,
    }]
    assert migrated['paid_amount'] == 0
    assert migrated['materials'] == []
    assert migrated['other_cost'] == 0


def test_migrate_pending_legacy_order_is_unshipped():
    migrated = migrate_order_record({'id': 'X', 'quantity': 0, 'amount': 0, 'status': '待处理'})
    item = migrated['items'][0]
    assert item['shipped_quantity'] == 0
    assert item['unit_price'] == 0


def test_existing_items_get_shipped_quantity_default(data_dir):
    order = OrderRepository(data_dir).get('ORD-2023-002')
    assert order.status == OrderStatus.SHIPPED
    assert order.items[0].shipped_quantity == 0
    assert order.paid_amount == 0


def test_plaintext_passwords_are_hashed_on_load(data_dir):
    path = os.path.join(data_dir, 'users.json')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([{'id': 'USR-1', 'username': 'boss', 'password': 'secret',
                    'name': 'Boss', 'role': '管理员'}], f)

    users = UserRepository(data_dir).load()
    assert is_password_hashed(users[0].password)
    with open(path, encoding='utf-8') as f:
        assert is_password_hashed(json.load(f)[0]['password'])


def test_empty_user_list_reseeds_admin(data_dir):
    with open(os.path.join(data_dir, 'users.json'), 'w', encoding='utf-8') as f:
        json.dump([], f)
    users = UserRepository(data_dir).load()
    assert [u.username for u in users] == ['admin']


def test_reset_all_data_restores_seed(container):
    container.customer_service.add_customer('新客户')
    assert len(container.customer_service.get_all()) == 6

    container.reset_all_data()

    assert len(container.customer_service.get_all()) == 5


def test_update_mutates_and_saves(data_dir):
    repo = OrderRepository(data_dir)

    def mark_cancelled(order):
        order.status = OrderStatus.CANCELLED

    updated = repo.update('ORD-2023-004', mark_cancelled)
    assert updated.status == OrderStatus.CANCELLED
    assert OrderRepository(data_dir).get('ORD-2023-004').status == OrderStatus.CANCELLED
    assert repo.update('ORD-NOPE', mark_cancelled) is None


def test_update_saves_nothing_when_mutate_raises(data_dir):
    repo = OrderRepository(data_dir)

    def half_done(order):
        order.other_cost = 999
        raise ValueError("stop")

    with pytest.raises(ValueError):
        repo.update('ORD-2023-004', half_done)
    assert repo.get('ORD-2023-004').other_cost == 0
