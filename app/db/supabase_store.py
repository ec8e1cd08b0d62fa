"""Record store backed by Supabase tables."""

from typing import Any, Dict, List, Optional

from app.db.record_store import RecordStore, encode_row, encode_value
from app.db.supabase_client import get_supabase


class SupabaseRecordStore(RecordStore):
    """One Supabase table per record kind. Rows keep integer ``id`` keys."""

    def __init__(self, kind: str, table: str, client=None):
        super().__init__(kind)
        self.table = table
        self._client = client

    def _table(self):
        client = self._client or get_supabase()
        return client.table(self.table)

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        for key, value in (filters or {}).items():
            if value in (None, ""):
                continue
            if key == "name":
                query = query.ilike("name", f"%{value}%")
            else:
                query = query.eq(key, encode_value(value))
        return query

    def insert(self, row: Dict[str, Any]) -> int:
        response = self._table().insert(encode_row(row)).execute()
        return response.data[0]["id"]

    def select_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        response = self._table().select("*").eq("id", record_id).limit(1).execute()
        return response.data[0] if response.data else None

    def select_page(self, filters=None, page=1, page_size=10) -> List[Dict[str, Any]]:
        start = max(page - 1, 0) * page_size
        query = self._apply_filters(self._table().select("*"), filters)
        response = query.order("id", desc=True).range(start, start + page_size - 1).execute()
        return response.data or []

    def count(self, filters=None) -> int:
        query = self._apply_filters(self._table().select("id", count="exact"), filters)
        response = query.execute()
        return response.count or 0

    def update(self, partial: Dict[str, Any]) -> int:
        fields = encode_row({k: v for k, v in partial.items() if k != "id"})
        response = self._table().update(fields).eq("id", partial["id"]).execute()
        return len(response.data or [])

    def remove(self, record_id: int) -> None:
        self._table().delete().eq("id", record_id).execute()

    def select_by_status(self, status: str) -> List[Dict[str, Any]]:
        response = (
            self._table()
            .select("*")
            .eq("status", encode_value(status))
            .order("id")
            .execute()
        )
        return response.data or []

    def select_all(self) -> List[Dict[str, Any]]:
        response = self._table().select("*").order("id").execute()
        return response.data or []
