# ==============================================================================
# DASHBOARD SERVICE
# ==============================================================================
# The customizable home screen. Each user keeps their own ordered list of
# widgets in user_settings.json under "dashboard_layout".
# ==============================================================================

import copy
import logging
from typing import Any, Dict, List

from factory_erp.models import DashboardWidget, User, UserRole, View, WidgetType
from factory_erp.repositories.interfaces import ISettingsRepository
from factory_erp.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

LAYOUT_KEY = 'dashboard_layout'

# Stat keys displayed as money
CURRENCY_STATS = ('total_revenue', 'monthly_expenses')

_ADMIN = UserRole.ADMIN
_SALES = UserRole.SALES
_FINANCE = UserRole.FINANCE
_PRODUCTION = UserRole.PRODUCTION

DEFAULT_WIDGETS = [
    DashboardWidget(
        id='w-orders', title='订单管理', icon='ShoppingCart', type=WidgetType.LINK,
        target_view=View.ORDERS, bg_color='bg-blue-500', text_color='text-white',
        description='处理客户订单', allowed_roles=[_ADMIN, _SALES, _PRODUCTION],
    ),
    DashboardWidget(
        id='w-finance', title='财务管理', icon='Wallet', type=WidgetType.LINK,
        target_view=View.FINANCE, bg_color='bg-emerald-500', text_color='text-white',
        description='查看收支流水', allowed_roles=[_ADMIN, _FINANCE],
    ),
    DashboardWidget(
        id='w-analytics', title='数据报表', icon='BarChart2', type=WidgetType.LINK,
        target_view=View.ANALYTICS, bg_color='bg-purple-600', text_color='text-white',
        description='详细运营数据', allowed_roles=[_ADMIN, _FINANCE, _SALES],
    ),
    DashboardWidget(
        id='w-customers', title='客户管理', icon='Users', type=WidgetType.LINK,
        target_view=View.CUSTOMERS, bg_color='bg-indigo-500', text_color='text-white',
        description='管理客户档案', allowed_roles=[_ADMIN, _SALES],
    ),
    DashboardWidget(
        id='w-products', title='产品库', icon='Package', type=WidgetType.LINK,
        target_view=View.PRODUCTS, bg_color='bg-orange-500', text_color='text-white',
        description='维护产品信息', allowed_roles=[_ADMIN, _SALES, _PRODUCTION],
    ),
    DashboardWidget(
        id='w-users', title='用户管理', icon='Shield', type=WidgetType.LINK,
        target_view=View.USERS, bg_color='bg-slate-700', text_color='text-white',
        description='员工账号与权限', allowed_roles=[_ADMIN],
    ),
    DashboardWidget(
        id='w-stat-rev', title='本月收入', icon='CreditCard', type=WidgetType.STAT,
        stat_key='total_revenue', allowed_roles=[_ADMIN, _FINANCE],
    ),
    DashboardWidget(
        id='w-stat-pending', title='待处理订单', icon='ClipboardList', type=WidgetType.STAT,
        stat_key='pending_orders', allowed_roles=[_ADMIN, _SALES, _PRODUCTION],
    ),
    DashboardWidget(
        id='w-production', title='生产监控', icon='Truck', type=WidgetType.LINK,
        target_view=View.ORDERS, bg_color='bg-pink-500', text_color='text-white',
        description='车间进度看板', is_visible=False, allowed_roles=[_ADMIN, _PRODUCTION],
    ),
]


def format_currency(value: float) -> str:
    return f"¥{value:,.2f}"


class DashboardService:
    """
    Per-user widget layout.

    Responsibilities:
    - Load / persist the layout (defaults when missing or unreadable)
    - Role filtering and visible / hidden split
    - Reordering and show / hide
    """

    def __init__(self, settings_repo: ISettingsRepository, analytics_service: AnalyticsService):
        self.settings_repo = settings_repo
        self.analytics_service = analytics_service

    # =========================================================================
    # LAYOUT STORAGE
    # =========================================================================

    def get_layout(self, user_id: str) -> List[DashboardWidget]:
        """Saved layout of a user, or a fresh copy of the defaults."""
        saved = self.settings_repo.get_setting(user_id, LAYOUT_KEY)
        if not saved:
            return copy.deepcopy(DEFAULT_WIDGETS)
        try:
            return [DashboardWidget.from_dict(w) for w in saved]
        except (KeyError, TypeError, ValueError):
            logger.warning("Unreadable dashboard layout for %s, using defaults", user_id)
            return copy.deepcopy(DEFAULT_WIDGETS)

    def save_layout(self, user_id: str, widgets: List[DashboardWidget]) -> None:
        self.settings_repo.set_setting(user_id, LAYOUT_KEY, [w.to_dict() for w in widgets])

    # =========================================================================
    # VIEW DATA
    # =========================================================================

    def widgets_for(self, user: User) -> Dict[str, List[Dict[str, Any]]]:
        """
        Widgets the user's role allows, in saved order.

        Returns:
            {'visible': [...], 'hidden': [...]} where each entry is the widget
            dict plus 'index' (position in the saved layout) and, for STAT
            widgets, 'value' (formatted)
        """
        stats = self.analytics_service.kpi_stats()
        visible, hidden = [], []
        for index, widget in enumerate(self.get_layout(user.id)):
            if not widget.allows(user.role):
                continue
            entry = widget.to_dict()
            entry['index'] = index
            if widget.type == WidgetType.STAT and widget.stat_key:
                value = stats.get(widget.stat_key)
                if value is None:
                    entry['value'] = '-'
                elif widget.stat_key in CURRENCY_STATS:
                    entry['value'] = format_currency(value)
                else:
                    entry['value'] = str(value)
            (visible if widget.is_visible else hidden).append(entry)
        return {'visible': visible, 'hidden': hidden}

    # =========================================================================
    # EDITING
    # =========================================================================

    def move_widget(self, user: User, from_index: int, to_index: int) -> bool:
        """
        Move the widget at `from_index` to `to_index` of the saved layout.
        Out-of-range indices leave the layout untouched.

        Returns:
            True when the layout changed
        """
        widgets = self.get_layout(user.id)
        size = len(widgets)
        if not (0 <= from_index < size and 0 <= to_index < size) or from_index == to_index:
            return False
        widget = widgets.pop(from_index)
        widgets.insert(to_index, widget)
        self.save_layout(user.id, widgets)
        return True

    def set_visibility(self, user: User, widget_id: str, visible: bool) -> bool:
        """Show or hide a widget. Returns False for an unknown id."""
        widgets = self.get_layout(user.id)
        for widget in widgets:
            if widget.id == widget_id:
                widget.is_visible = bool(visible)
                self.save_layout(user.id, widgets)
                return True
        return False
