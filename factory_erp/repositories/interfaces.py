# ==============================================================================
# REPOSITORY INTERFACES
# ==============================================================================
# Contracts the services depend on. The JSON repositories implement them;
# another storage backend only has to provide the same methods.
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IEntityRepository(Protocol):
    """A collection of entities addressed by `id`."""

    def load(self) -> List[Any]:
        """Every entity, in stored order."""
        ...

    def save(self, entities: List[Any]) -> None:
        """Persist the whole collection."""
        ...

    def get(self, entity_id: str) -> Optional[Any]:
        ...

    def exists(self, entity_id: str) -> bool:
        ...

    def add(self, entity: Any, front: bool = True) -> Any:
        ...

    def replace(self, entity: Any) -> bool:
        ...

    def update(self, entity_id: str, mutate: Callable[[Any], Any]) -> Optional[Any]:
        """Apply `mutate` to the stored entity and save it atomically."""
        ...

    def delete(self, entity_id: str) -> Optional[Any]:
        ...

    def reset(self) -> None:
        """Forget stored data; defaults come back on next read."""
        ...


@runtime_checkable
class IUserRepository(IEntityRepository, Protocol):

    def find_by_username(self, username: str) -> Optional[Any]:
        """Case-insensitive lookup by login name."""
        ...

    def count_admins(self, exclude_id: str = None) -> int:
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """Per-user preferences."""

    def get_user_settings(self, user_id: str) -> Dict[str, Any]:
        ...

    def get_setting(self, user_id: str, key: str, default: Any = None) -> Any:
        ...

    def set_setting(self, user_id: str, key: str, value: Any) -> None:
        ...

    def delete_user_settings(self, user_id: str) -> bool:
        ...

    def reset(self) -> None:
        ...
