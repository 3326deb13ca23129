# ==============================================================================
# USER SETTINGS REPOSITORY
# ==============================================================================
# Wraps user_settings.json, per-user preferences such as the dashboard
# layout.
# ==============================================================================

import os
from typing import Any, Dict

from .base import DictRepository


class SettingsRepository(DictRepository):
    """
    Per-user preferences.

    Format of user_settings.json:
    {
        "USR-ADMIN": {"dashboard_layout": [{...widget...}, ...]}
    }
    """

    def __init__(self, base_path: str):
        file_path = os.path.join(base_path, 'user_settings.json')
        super().__init__(file_path)

    def get_user_settings(self, user_id: str) -> Dict[str, Any]:
        """
        Args:
            user_id: Id of the user

        Returns:
            Settings dictionary (empty when none stored)
        """
        settings = self.get_all().get(user_id, {})
        return settings if isinstance(settings, dict) else {}

    def get_setting(self, user_id: str, key: str, default: Any = None) -> Any:
        return self.get_user_settings(user_id).get(key, default)

    def set_setting(self, user_id: str, key: str, value: Any) -> None:
        with self._file_lock:
            settings = self.get_all()
            user_settings = settings.get(user_id)
            if not isinstance(user_settings, dict):
                user_settings = {}
            user_settings[key] = value
            settings[user_id] = user_settings
            self.save_all(settings)

    def delete_user_settings(self, user_id: str) -> bool:
        """Drop everything stored for a user (used when the account is deleted)."""
        return self.delete(user_id) is not None
