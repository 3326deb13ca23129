# ==============================================================================
# USER SERVICE
# ==============================================================================
# Authentication, staff account management and the role -> view policy.
#
# RULES:
# - The system always keeps at least one administrator: the last one can
#   neither be deleted nor demoted.
# - Nobody deletes their own account.
# - Passwords are stored as werkzeug hashes only.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from factory_erp.models import User, UserRole, View
from factory_erp.repositories.interfaces import IUserRepository, ISettingsRepository
from factory_erp.services.ids import epoch_id

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ACCESS POLICY
# ═══════════════════════════════════════════════════════════════════════════════
# Roles (besides ADMIN, who sees everything) allowed on each view.
VIEW_ROLES = {
    View.DASHBOARD: frozenset(UserRole),
    View.ORDERS: frozenset([UserRole.SALES, UserRole.PRODUCTION]),
    View.CUSTOMERS: frozenset([UserRole.SALES]),
    View.PRODUCTS: frozenset([UserRole.SALES, UserRole.PRODUCTION]),
    View.FINANCE: frozenset([UserRole.FINANCE]),
    View.ANALYTICS: frozenset([UserRole.FINANCE, UserRole.SALES]),
    View.USERS: frozenset(),
}

# Sidebar order and labels
NAV_ITEMS = [
    (View.DASHBOARD, '工作台'),
    (View.ANALYTICS, '数据报表'),
    (View.ORDERS, '订单管理'),
    (View.FINANCE, '财务管理'),
    (View.CUSTOMERS, '客户管理'),
    (View.PRODUCTS, '产品库'),
    (View.USERS, '用户管理'),
]


def has_access(role: Optional[UserRole], view: View) -> bool:
    """
    Whether a role may open a view.

    Args:
        role: Role of the logged-in user (None = not logged in)
        view: Target view
    """
    if role is None:
        return False
    if role == UserRole.ADMIN:
        return True
    return role in VIEW_ROLES.get(view, frozenset())


def can_view_cost(role: UserRole) -> bool:
    """BOM, cost and profit figures are hidden from sales staff."""
    return role != UserRole.SALES


def nav_items_for(role: UserRole) -> List[Dict[str, str]]:
    return [
        {'view': view.value, 'label': label}
        for view, label in NAV_ITEMS
        if has_access(role, view)
    ]


class UserService:
    """
    Staff accounts.

    Responsibilities:
    - Login and session re-validation
    - Create / edit / delete accounts
    - Last-administrator and self-deletion protection
    """

    def __init__(
        self,
        user_repo: IUserRepository,
        settings_repo: ISettingsRepository = None
    ):
        """
        Args:
            user_repo: Users storage
            settings_repo: Per-user settings, cleaned up on delete (optional)
        """
        self.user_repo = user_repo
        self.settings_repo = settings_repo

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """
        Check credentials. The username matches ignoring case.

        Returns:
            The user, or None when the credentials are wrong
        """
        user = self.user_repo.find_by_username(username)
        if not user or not password or not check_password_hash(user.password, password):
            logger.info("Failed login for '%s'", username)
            return None
        logger.info("User %s logged in", user.username)
        return user

    def get_session_user(self, user_id: Optional[str]) -> Optional[User]:
        """
        Resolve the user stored in a session. A user deleted since login
        resolves to None, which ends the session.
        """
        if not user_id:
            return None
        return self.user_repo.get(user_id)

    # =========================================================================
    # ACCOUNT MANAGEMENT
    # =========================================================================

    def get_all_users(self) -> List[User]:
        return self.user_repo.load()

    def _username_taken(self, username: str, exclude_id: str = None) -> bool:
        existing = self.user_repo.find_by_username(username)
        return existing is not None and existing.id != exclude_id

    def add_user(
        self,
        name: str,
        username: str,
        password: str,
        role: str
    ) -> Dict[str, Any]:
        """
        Create a staff account.

        Args:
            name: Display name
            username: Login name, unique ignoring case
            password: Plain-text password (required)
            role: UserRole value

        Returns:
            {'ok': True, 'user': User} or {'ok': False, 'error': str}
        """
        username = (username or '').strip()
        name = (name or '').strip()
        if not username or not name:
            return {'ok': False, 'error': '姓名和用户名不能为空'}
        if not password:
            return {'ok': False, 'error': '创建新用户必须设置密码'}
        if self._username_taken(username):
            return {'ok': False, 'error': '用户名已存在'}
        try:
            role_enum = UserRole(role)
        except ValueError:
            return {'ok': False, 'error': '无效的角色'}

        user = User(
            id=epoch_id('USR'),
            username=username,
            password=generate_password_hash(password),
            name=name,
            role=role_enum,
        )
        self.user_repo.add(user, front=False)
        logger.info("User %s created with role %s", username, role_enum.value)
        return {'ok': True, 'user': user}

    def update_user(
        self,
        user_id: str,
        name: str,
        username: str,
        role: str,
        password: str = ''
    ) -> Dict[str, Any]:
        """
        Edit an account. A blank password keeps the current one.
        """
        user = self.user_repo.get(user_id)
        if not user:
            return {'ok': False, 'error': '用户不存在'}
        username = (username or '').strip()
        name = (name or '').strip()
        if not username or not name:
            return {'ok': False, 'error': '姓名和用户名不能为空'}
        if self._username_taken(username, exclude_id=user_id):
            return {'ok': False, 'error': '用户名已存在'}
        try:
            role_enum = UserRole(role)
        except ValueError:
            return {'ok': False, 'error': '无效的角色'}

        if (user.role == UserRole.ADMIN and role_enum != UserRole.ADMIN
                and self.user_repo.count_admins(exclude_id=user_id) == 0):
            return {'ok': False, 'error': '无法取消系统中唯一管理员的权限。'}

        user.name = name
        user.username = username
        user.role = role_enum
        if password:
            user.password = generate_password_hash(password)
        self.user_repo.replace(user)
        logger.info("User %s updated", username)
        return {'ok': True, 'user': user}

    def delete_user(self, user_id: str, acting_user_id: str) -> Dict[str, Any]:
        """
        Delete an account (the only hard delete in the system).

        Args:
            user_id: Account to delete
            acting_user_id: Administrator performing the deletion
        """
        user = self.user_repo.get(user_id)
        if not user:
            return {'ok': False, 'error': '用户不存在'}
        if user_id == acting_user_id:
            return {'ok': False, 'error': '不能删除当前登录的账号'}
        if user.role == UserRole.ADMIN and self.user_repo.count_admins(exclude_id=user_id) == 0:
            return {'ok': False, 'error': '无法删除系统中唯一的管理员账号。'}

        self.user_repo.delete(user_id)
        if self.settings_repo:
            self.settings_repo.delete_user_settings(user_id)
        logger.info("User %s deleted by %s", user.username, acting_user_id)
        return {'ok': True, 'user': user}
