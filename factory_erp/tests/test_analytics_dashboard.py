import pytest

from factory_erp.models import User, UserRole


def _user(role, user_id='USR-T'):
    return User(id=user_id, username='t', password='', name='T', role=role)


def test_summary_of_seed_data(container):
    data = container.analytics_service.summary()
    assert data['total_revenue'] == 61000
    assert data['total_expenses'] == 12900
    assert data['net_profit'] == 48100
    assert data['pending_count'] == 2
    assert data['production_count'] == 1
    assert data['status_distribution'] == [
        {'name': '待处理', 'value': 2},
        {'name': '生产中', 'value': 1},
        {'name': '已发货', 'value': 1},
        {'name': '已完成', 'value': 1},
    ]
    assert len(data['recent_transactions']) == 6


def test_distribution_drops_empty_buckets(container):
    container.order_service.change_status('ORD-2023-003', '已取消')
    names = [d['name'] for d in container.analytics_service.summary()['status_distribution']]
    assert '生产中' not in names
    assert '已取消' not in names


def test_kpi_stats(container):
    stats = container.analytics_service.kpi_stats()
    assert stats.total_revenue == 61000
    assert stats.total_orders == 5
    assert stats.pending_orders == 2
    assert stats.monthly_expenses == 12900


def test_admin_sees_all_widgets(container):
    widgets = container.dashboard_service.widgets_for(_user(UserRole.ADMIN))
    assert len(widgets['visible']) == 8
    assert [w['id'] for w in widgets['hidden']] == ['w-production']
    revenue = next(w for w in widgets['visible'] if w['id'] == 'w-stat-rev')
    assert revenue['value'] == '¥61,000.00'
    pending = next(w for w in widgets['visible'] if w['id'] == 'w-stat-pending')
    assert pending['value'] == '2'


@pytest.mark.parametrize('role,expected', [
    (UserRole.SALES, ['w-orders', 'w-analytics', 'w-customers', 'w-products', 'w-stat-pending']),
    (UserRole.FINANCE, ['w-finance', 'w-analytics', 'w-stat-rev']),
])
def test_widgets_filtered_by_role(container, role, expected):
    widgets = container.dashboard_service.widgets_for(_user(role))
    assert [w['id'] for w in widgets['visible']] == expected


def test_move_widget_persists_per_user(container):
    dashboard = container.dashboard_service
    user = _user(UserRole.ADMIN)

    assert dashboard.move_widget(user, 0, 2)
    assert [w.id for w in dashboard.get_layout(user.id)][:3] == ['w-finance', 'w-analytics', 'w-orders']
    # another user keeps the defaults
    assert dashboard.get_layout('USR-OTHER')[0].id == 'w-orders'


def test_move_widget_ignores_bad_indices(container):
    dashboard = container.dashboard_service
    user = _user(UserRole.ADMIN)
    assert not dashboard.move_widget(user, 0, 99)
    assert not dashboard.move_widget(user, -1, 0)
    assert container.settings_repo.get_setting(user.id, 'dashboard_layout') is None


def test_set_visibility(container):
    dashboard = container.dashboard_service
    user = _user(UserRole.PRODUCTION)
    assert dashboard.set_visibility(user, 'w-production', True)
    assert not dashboard.set_visibility(user, 'w-missing', True)
    visible = [w['id'] for w in dashboard.widgets_for(user)['visible']]
    assert 'w-production' in visible


def test_unreadable_layout_falls_back_to_defaults(container):
    container.settings_repo.set_setting('USR-T', 'dashboard_layout', [{'title': 'no id'}])
    layout = container.dashboard_service.get_layout('USR-T')
    assert len(layout) == 9
