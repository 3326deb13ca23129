# ==============================================================================
# SERVICE LAYER - business logic
# ==============================================================================
# All business rules of the application live here.
#
# PRINCIPLES:
# 1. Services orchestrate operations across repositories
# 2. They validate input and return {'ok': bool, 'error': str, ...} dicts
# 3. Routes (controllers) only call services
# 4. Services depend on repository interfaces, not on JSON files
#
# LAYOUT:
# ├── user_service.py       -> login, staff accounts, role -> view policy
# ├── customer_service.py   -> customer profiles
# ├── product_service.py    -> product catalog
# ├── order_service.py      -> orders, BOM, shipments, delivery notes
# ├── report_service.py     -> customer period statements
# ├── finance_service.py    -> ledger, payment reconciliation
# ├── analytics_service.py  -> aggregates and KPI stats
# ├── dashboard_service.py  -> per-user widget layout
# └── ai_service.py         -> optional AI briefing
#
# ACCESS RULE:
# The administrator role sees every view. The system refuses to delete or
# demote the last administrator; see UserService.
# ==============================================================================

from factory_erp.services.errors import ERPError, NotFoundError, AccessDeniedError, ValidationError
from factory_erp.services.user_service import UserService, has_access, can_view_cost, nav_items_for
from factory_erp.services.customer_service import CustomerService
from factory_erp.services.product_service import ProductService
from factory_erp.services.order_service import OrderService
from factory_erp.services.report_service import ReportService
from factory_erp.services.finance_service import FinanceService
from factory_erp.services.analytics_service import AnalyticsService
from factory_erp.services.dashboard_service import DashboardService, DEFAULT_WIDGETS
from factory_erp.services.ai_service import AIService

__all__ = [
    'ERPError',
    'NotFoundError',
    'AccessDeniedError',
    'ValidationError',
    'UserService',
    'has_access',
    'can_view_cost',
    'nav_items_for',
    'CustomerService',
    'ProductService',
    'OrderService',
    'ReportService',
    'FinanceService',
    'AnalyticsService',
    'DashboardService',
    'DEFAULT_WIDGETS',
    'AIService',
]
