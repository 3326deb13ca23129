# ==============================================================================
# BASE REPOSITORY - shared JSON file access
# ==============================================================================

import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BaseRepository(ABC):
    """
    Abstract base for every repository.
    Reads and writes a single JSON file, serialized by a process-wide lock.

    The whole collection is rewritten on every change; a collection is a
    few hundred records at most.
    """

    # One lock for all files, writers never interleave
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Absolute path of the JSON file
        """
        self.file_path = file_path
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Create the file from the default data when it is missing."""
        with self._file_lock:
            if not os.path.exists(self.file_path):
                os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
                self._write_raw(self._default_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Empty structure of this collection (dict, list...)."""
        pass

    def _default_data(self) -> Any:
        """
        Data used when the file is missing or unreadable.
        Subclasses override it to provide seed records.
        """
        return self._empty_data()

    def _read_raw(self) -> Any:
        """
        Read the parsed JSON.

        A corrupt or vanished file falls back to the default data; the file
        itself is left alone until the next write.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._default_data()
            except json.JSONDecodeError:
                logger.warning("Failed to load %s from storage, using fallback.",
                               os.path.basename(self.file_path))
                return self._default_data()

    def _write_raw(self, data: Any) -> None:
        """
        Write data atomically (temp file + os.replace).

        Raises:
            OSError: when the file cannot be written
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def reset(self) -> None:
        """Delete the file; the next read starts again from default data."""
        with self._file_lock:
            if os.path.exists(self.file_path):
                os.remove(self.file_path)
        logger.info("Storage reset: %s", os.path.basename(self.file_path))


class DictRepository(BaseRepository):
    """
    Repository whose file holds a dictionary keyed by id.

    Example: user_settings.json -> {"USR-1": {...}}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def save_all(self, data: Dict[str, Any]) -> None:
        self._write_raw(data)

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Remove one record.

        Returns:
            The removed record or None when it did not exist
        """
        with self._file_lock:
            data = self.get_all()
            removed = data.pop(str(record_id), None)
            if removed is not None:
                self._write_raw(data)
        return removed


class ListRepository(BaseRepository):
    """
    Repository whose file holds a list of records.

    Example: orders.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)


class EntityRepository(ListRepository, Generic[T]):
    """
    List repository that maps records to dataclass entities.

    Subclasses set `entity_from_dict` and may provide `seed` records and a
    `_migrate` hook applied to every raw record on load.
    """

    seed: List[Dict[str, Any]] = []

    def __init__(self, file_path: str, entity_from_dict: Callable[[Dict[str, Any]], T]):
        self._from_dict = entity_from_dict
        super().__init__(file_path)

    def _default_data(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.seed)

    def _migrate(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return record

    def load(self) -> List[T]:
        """Every entity, in stored order."""
        return [self._from_dict(self._migrate(r)) for r in self.get_all()]

    def save(self, entities: List[T]) -> None:
        """Persist the whole collection."""
        self.save_all([e.to_dict() for e in entities])

    def get(self, entity_id: str) -> Optional[T]:
        for entity in self.load():
            if entity.id == entity_id:
                return entity
        return None

    def exists(self, entity_id: str) -> bool:
        return self.get(entity_id) is not None

    def add(self, entity: T, front: bool = True) -> T:
        """
        Insert a new entity.

        Args:
            entity: Entity to store
            front: True puts it first (newest-first lists), False appends
        """
        with self._file_lock:
            entities = self.load()
            if front:
                entities.insert(0, entity)
            else:
                entities.append(entity)
            self.save(entities)
        return entity

    def replace(self, entity: T) -> bool:
        """
        Replace the stored entity with the same id.

        Returns:
            True when a record was replaced
        """
        with self._file_lock:
            entities = self.load()
            for idx, current in enumerate(entities):
                if current.id == entity.id:
                    entities[idx] = entity
                    self.save(entities)
                    return True
        return False

    def delete(self, entity_id: str) -> Optional[T]:
        with self._file_lock:
            entities = self.load()
            for idx, current in enumerate(entities):
                if current.id == entity_id:
                    removed = entities.pop(idx)
                    self.save(entities)
                    return removed
        return None

    def update(self, entity_id: str, mutate: Callable[[T], Any]) -> Optional[T]:
        """
        Read-modify-write one entity under the storage lock.

        `mutate` changes the entity in place. If it raises, nothing is
        saved and the exception propagates.

        Returns:
            The saved entity, or None when no entity has that id
        """
        with self._file_lock:
            entities = self.load()
            for entity in entities:
                if entity.id == entity_id:
                    mutate(entity)
                    self.save(entities)
                    return entity
        return None
