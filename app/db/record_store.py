"""Record store interface and the in-memory implementation.

Rows are plain dicts with string path columns, the same shape a SQL or
Supabase table would hold. Tagged paths, enums and datetimes are encoded on
the way in; the record models decode them on the way out.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from app.errors import RecordNotFound
from app.storage.paths import LocalPath, RemotePath


def encode_value(value: Any) -> Any:
    if isinstance(value, (LocalPath, RemotePath)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def encode_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: encode_value(v) for k, v in row.items()}


class RecordStore(ABC):
    """Keyed CRUD access to one table of records."""

    def __init__(self, kind: str):
        self.kind = kind

    @abstractmethod
    def insert(self, row: Dict[str, Any]) -> int:
        """Insert a row. Returns the new id."""
        ...

    @abstractmethod
    def select_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def select_page(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> List[Dict[str, Any]]:
        """Newest first. A ``name`` filter matches by substring."""
        ...

    @abstractmethod
    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        ...

    @abstractmethod
    def update(self, partial: Dict[str, Any]) -> int:
        """Apply the fields of ``partial`` to the row with ``partial['id']``."""
        ...

    @abstractmethod
    def remove(self, record_id: int) -> None:
        ...

    @abstractmethod
    def select_by_status(self, status: str) -> List[Dict[str, Any]]:
        """Rows with the given status, oldest first."""
        ...

    @abstractmethod
    def select_all(self) -> List[Dict[str, Any]]:
        ...

    def update_status(
        self,
        record_id: int,
        status: str,
        message: Any = None,
        progress: Any = None,
    ) -> int:
        partial = {"id": record_id, "status": status, "message": message}
        if progress is not None:
            partial["progress"] = progress
        return self.update(partial)

    def find_first_by_status(self, status: str) -> Optional[Dict[str, Any]]:
        rows = self.select_by_status(status)
        return rows[0] if rows else None

    def get(self, record_id: int) -> Dict[str, Any]:
        """Like select_by_id, but a missing row raises RecordNotFound."""
        row = self.select_by_id(record_id)
        if row is None:
            raise RecordNotFound(self.kind, record_id)
        return row


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    for key, expected in (filters or {}).items():
        if expected in (None, ""):
            continue
        actual = row.get(key)
        if key == "name":
            if str(expected).lower() not in str(actual or "").lower():
                return False
        elif actual != encode_value(expected):
            return False
    return True


class InMemoryRecordStore(RecordStore):
    """Dict-backed store for local development and tests."""

    def __init__(self, kind: str):
        super().__init__(kind)
        self._rows: Dict[int, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, row: Dict[str, Any]) -> int:
        with self._lock:
            record_id = row.get("id") or next(self._ids)
            stored = encode_row(row)
            stored["id"] = record_id
            stored.setdefault("created_at", datetime.utcnow().isoformat())
            self._rows[record_id] = stored
            return record_id

    def select_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        row = self._rows.get(record_id)
        return dict(row) if row is not None else None

    def select_page(self, filters=None, page=1, page_size=10):
        rows = [r for r in self._rows.values() if _matches(r, filters)]
        rows.sort(key=lambda r: r["id"], reverse=True)
        start = max(page - 1, 0) * page_size
        return [dict(r) for r in rows[start:start + page_size]]

    def count(self, filters=None) -> int:
        return sum(1 for r in self._rows.values() if _matches(r, filters))

    def update(self, partial: Dict[str, Any]) -> int:
        record_id = partial["id"]
        with self._lock:
            row = self._rows.get(record_id)
            if row is None:
                return 0
            row.update(encode_row({k: v for k, v in partial.items() if k != "id"}))
            return 1

    def remove(self, record_id: int) -> None:
        with self._lock:
            self._rows.pop(record_id, None)

    def select_by_status(self, status: str) -> List[Dict[str, Any]]:
        rows = [r for r in self._rows.values() if r.get("status") == encode_value(status)]
        rows.sort(key=lambda r: r["id"])
        return [dict(r) for r in rows]

    def select_all(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in sorted(self._rows.values(), key=lambda r: r["id"])]


@dataclass
class RecordStores:
    """The three tables the application works with."""
    jobs: RecordStore
    models: RecordStore
    voices: RecordStore


def create_record_stores(backend: str = "memory") -> RecordStores:
    if backend == "supabase":
        from app.db.supabase_store import SupabaseRecordStore

        return RecordStores(
            jobs=SupabaseRecordStore("job", "video"),
            models=SupabaseRecordStore("model", "f2f_model"),
            voices=SupabaseRecordStore("voice", "voice"),
        )
    if backend != "memory":
        raise ValueError(f"Unknown record store backend '{backend}'. Available: ['memory', 'supabase']")
    return RecordStores(
        jobs=InMemoryRecordStore("job"),
        models=InMemoryRecordStore("model"),
        voices=InMemoryRecordStore("voice"),
    )
