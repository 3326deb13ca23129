# ==============================================================================
# DEPENDENCY CONTAINER - service wiring
# ==============================================================================
# One place to obtain repository and service instances bound to a data
# directory. Routes never build services themselves, which keeps them easy
# to swap in tests.
#
# ═══════════════════════════════════════════════════════════════════════════════
# ANOTHER STORAGE BACKEND
# ═══════════════════════════════════════════════════════════════════════════════
# Services depend on the Protocols in repositories/interfaces.py. A new
# backend only needs classes implementing them, instantiated below.
# ==============================================================================

import logging
from typing import Optional

from factory_erp import config

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIES - persistence layer
# ═══════════════════════════════════════════════════════════════════════════════
from factory_erp.repositories import (
    UserRepository,
    CustomerRepository,
    ProductRepository,
    OrderRepository,
    TransactionRepository,
    SettingsRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICES - business layer
# ═══════════════════════════════════════════════════════════════════════════════
from factory_erp.services import (
    UserService,
    CustomerService,
    ProductService,
    OrderService,
    ReportService,
    FinanceService,
    AnalyticsService,
    DashboardService,
    AIService,
)

logger = logging.getLogger(__name__)


class AppContainer:
    """
    Application dependency container.

    Singleton: one instance of every repository and service per process.

    Usage:
        container = AppContainer(base_path='/var/lib/factory_erp')
        order_service = container.order_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Args:
            base_path: Directory holding the JSON files
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self.reset()
        self._initialized = True
        logger.info("Container bound to data directory %s", self._base_path)

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIES
    # =========================================================================

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository(self._base_path)
        return self._user_repo

    @property
    def customer_repo(self) -> CustomerRepository:
        if self._customer_repo is None:
            self._customer_repo = CustomerRepository(self._base_path)
        return self._customer_repo

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(self._base_path)
        return self._product_repo

    @property
    def order_repo(self) -> OrderRepository:
        if self._order_repo is None:
            self._order_repo = OrderRepository(self._base_path)
        return self._order_repo

    @property
    def transaction_repo(self) -> TransactionRepository:
        if self._transaction_repo is None:
            self._transaction_repo = TransactionRepository(self._base_path)
        return self._transaction_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self._base_path)
        return self._settings_repo

    # =========================================================================
    # SERVICES
    # =========================================================================

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.settings_repo)
        return self._user_service

    @property
    def customer_service(self) -> CustomerService:
        if self._customer_service is None:
            self._customer_service = CustomerService(self.customer_repo)
        return self._customer_service

    @property
    def product_service(self) -> ProductService:
        if self._product_service is None:
            self._product_service = ProductService(self.product_repo)
        return self._product_service

    @property
    def order_service(self) -> OrderService:
        if self._order_service is None:
            self._order_service = OrderService(
                self.order_repo,
                self.product_repo,
                self.customer_repo,
                self.transaction_repo
            )
        return self._order_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(self.order_repo)
        return self._report_service

    @property
    def finance_service(self) -> FinanceService:
        if self._finance_service is None:
            self._finance_service = FinanceService(self.transaction_repo, self.order_repo)
        return self._finance_service

    @property
    def analytics_service(self) -> AnalyticsService:
        if self._analytics_service is None:
            self._analytics_service = AnalyticsService(self.order_repo, self.transaction_repo)
        return self._analytics_service

    @property
    def dashboard_service(self) -> DashboardService:
        if self._dashboard_service is None:
            self._dashboard_service = DashboardService(self.settings_repo, self.analytics_service)
        return self._dashboard_service

    @property
    def ai_service(self) -> AIService:
        if self._ai_service is None:
            self._ai_service = AIService(
                api_key=config.AI_API_KEY,
                model=config.AI_MODEL,
                base_url=config.AI_BASE_URL,
            )
        return self._ai_service

    # =========================================================================
    # UTILITIES
    # =========================================================================

    def reset(self) -> None:
        """Drop every instance; they are rebuilt on next access."""
        self._user_repo = None
        self._customer_repo = None
        self._product_repo = None
        self._order_repo = None
        self._transaction_repo = None
        self._settings_repo = None

        self._user_service = None
        self._customer_service = None
        self._product_service = None
        self._order_service = None
        self._report_service = None
        self._finance_service = None
        self._analytics_service = None
        self._dashboard_service = None
        self._ai_service = None

    def reset_all_data(self) -> None:
        """
        Delete every stored collection. The next read starts again from the
        seed data (and the default administrator).
        """
        for repo in (
            self.order_repo,
            self.transaction_repo,
            self.customer_repo,
            self.product_repo,
            self.user_repo,
            self.settings_repo,
        ):
            repo.reset()
        self.reset()
        logger.warning("All stored data cleared in %s", self._base_path)

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Args:
            base_path: Data directory (only used by the first call)
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the singleton (tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """Global dependency container."""
    return AppContainer.get_instance(base_path)
