# ==============================================================================
# USER REPOSITORY
# ==============================================================================
# Wraps users.json, a list of staff accounts:
# [{"id": "USR-ADMIN", "username": "admin", "password": "<hash>", ...}]
# ==============================================================================

import copy
import logging
import os
from typing import List, Optional

from werkzeug.security import generate_password_hash

from factory_erp.models import User, UserRole
from factory_erp.repositories.base import EntityRepository
from factory_erp.seed_data import DEFAULT_ADMIN

logger = logging.getLogger(__name__)

HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


def is_password_hashed(value: str) -> bool:
    return bool(value) and value.startswith(HASH_PREFIXES)


class UserRepository(EntityRepository[User]):
    """
    Staff accounts.

    The collection is never empty: an empty or missing file is re-seeded
    with the default administrator. Plain-text passwords found on load are
    hashed and written back.
    """

    seed = [DEFAULT_ADMIN]

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'users.json'), User.from_dict)

    def load(self) -> List[User]:
        with self._file_lock:
            records = self.get_all()
            seeded = not records
            if seeded:
                records = copy.deepcopy(self.seed)
                logger.info("No users stored, seeding default administrator")
            migrated = 0
            for record in records:
                pwd = record.get('password', '')
                if pwd and not is_password_hashed(pwd):
                    record['password'] = generate_password_hash(pwd)
                    migrated += 1
            if migrated or seeded:
                self.save_all(records)
            if migrated:
                logger.info("%d password(s) migrated to hash", migrated)
            return [User.from_dict(r) for r in records]

    def find_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive lookup by login name."""
        wanted = (username or '').strip().lower()
        for user in self.load():
            if user.username.lower() == wanted:
                return user
        return None

    def count_admins(self, exclude_id: str = None) -> int:
        return sum(
            1 for u in self.load()
            if u.role == UserRole.ADMIN and u.id != exclude_id
        )
