import re

import pytest
from werkzeug.security import check_password_hash

from factory_erp.models import UserRole, View
from factory_erp.services import has_access, can_view_cost


@pytest.fixture
def users(container):
    return container.user_service


def test_authenticate_ignores_username_case(users):
    assert users.authenticate('ADMIN', '123').id == 'USR-ADMIN'
    assert users.authenticate('admin', 'wrong') is None
    assert users.authenticate('nobody', '123') is None


def test_add_user_appends_with_epoch_id(users):
    result = users.add_user('张三', 'zhangsan', 'pw', UserRole.SALES.value)
    assert result['ok']
    assert re.fullmatch(r'USR-\d{13}', result['user'].id)
    assert [u.username for u in users.get_all_users()] == ['admin', 'zhangsan']
    assert check_password_hash(users.get_all_users()[-1].password, 'pw')


def test_add_user_requires_password_and_unique_username(users):
    assert users.add_user('张三', 'zhangsan', '', UserRole.SALES.value)['error'] == '创建新用户必须设置密码'
    assert users.add_user('Other', 'Admin', 'pw', UserRole.SALES.value)['error'] == '用户名已存在'


def test_update_user_blank_password_keeps_hash(users):
    user = users.add_user('李四', 'lisi', 'old', UserRole.FINANCE.value)['user']
    result = users.update_user(user.id, '李四四', 'lisi', UserRole.PRODUCTION.value, password='')
    assert result['ok']
    assert users.authenticate('lisi', 'old').name == '李四四'

    users.update_user(user.id, '李四四', 'lisi', UserRole.PRODUCTION.value, password='new')
    assert users.authenticate('lisi', 'new') is not None


def test_last_admin_cannot_be_demoted(users):
    result = users.update_user('USR-ADMIN', '超级管理员', 'admin', UserRole.SALES.value)
    assert not result['ok']
    assert users.authenticate('admin', '123').role == UserRole.ADMIN


def test_admin_can_be_demoted_when_another_exists(users):
    users.add_user('副管理员', 'admin2', 'pw', UserRole.ADMIN.value)
    assert users.update_user('USR-ADMIN', '超级管理员', 'admin', UserRole.SALES.value)['ok']


def test_delete_user_rules(users):
    sales = users.add_user('王五', 'wangwu', 'pw', UserRole.SALES.value)['user']

    assert not users.delete_user('USR-ADMIN', 'USR-ADMIN')['ok']
    # only administrator, even when someone else asks
    assert users.delete_user('USR-ADMIN', sales.id)['error'] == '无法删除系统中唯一的管理员账号。'

    assert users.delete_user(sales.id, 'USR-ADMIN')['ok']
    assert users.get_session_user(sales.id) is None


def test_delete_user_drops_settings(container):
    sales = container.user_service.add_user('王五', 'wangwu', 'pw', UserRole.SALES.value)['user']
    container.settings_repo.set_setting(sales.id, 'dashboard_layout', [])
    container.user_service.delete_user(sales.id, 'USR-ADMIN')
    assert container.settings_repo.get_user_settings(sales.id) == {}


@pytest.mark.parametrize('role,allowed', [
    (UserRole.ADMIN, set(View)),
    (UserRole.SALES, {View.DASHBOARD, View.ORDERS, View.CUSTOMERS, View.PRODUCTS, View.ANALYTICS}),
    (UserRole.FINANCE, {View.DASHBOARD, View.FINANCE, View.ANALYTICS}),
    (UserRole.PRODUCTION, {View.DASHBOARD, View.ORDERS, View.PRODUCTS}),
])
def test_view_access_matrix(role, allowed):
    assert {v for v in View if has_access(role, v)} == allowed


def test_cost_hidden_from_sales_only():
    assert not can_view_cost(UserRole.SALES)
    assert all(can_view_cost(r) for r in UserRole if r != UserRole.SALES)
