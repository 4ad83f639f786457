"""
Record Storage

Named tables of JSON-compatible dictionaries keyed by record id. The workflow
store and the audit trail both persist through a StorageInterface; nothing in
this module knows what a workflow is.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import threading


def to_jsonable(value: Any) -> Any:
    """Reduce enums and datetimes (at any depth) to JSON types"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _snapshot(data: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(json.dumps(data, default=str))


@dataclass
class StorageRecord:
    """Identity and timestamps shared by persisted records"""
    id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.update(created_at=self.created_at.isoformat(), updated_at=self.updated_at.isoformat())
        return data


class StorageInterface(ABC):
    """Table-oriented record storage behind workflows and audit events"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Insert or replace a record"""

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record, None when the id is unknown"""

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Every record of a table, in first-insertion order"""

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        ...

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Records whose top-level fields equal every filter value"""

    @abstractmethod
    def count(self, table: str) -> int:
        ...


class InMemoryStorage(StorageInterface):
    """
    Process-local storage.

    Records are snapshotted through JSON on the way in and on the way out, so
    callers never share state with the stored copy. Replacing a record keeps
    its original position in the table.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._lock = threading.RLock()

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._tables[table][record_id] = _snapshot(data)

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._tables[table].get(record_id)
            return _snapshot(record) if record is not None else None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [_snapshot(record) for record in self._tables[table].values()]

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            return record_id in self._tables[table]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                _snapshot(record)
                for record in self._tables[table].values()
                if all(key in record and record[key] == value for key, value in filters.items())
            ]

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._tables[table])
