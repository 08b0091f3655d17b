from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from conversation.errors import StoreConflictError, StoreError
from conversation.store.base import RecordStore


# PostgREST code for a filter value the column type cannot parse, e.g. a
# malformed uuid.
INVALID_TEXT_REPRESENTATION = "22P02"


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def _eq_params(filters: Dict[str, Any]) -> Dict[str, str]:
    return {key: f"eq.{value}" for key, value in filters.items()}


class SupabaseRecordStore(RecordStore):
    """Record store backed by Supabase's PostgREST endpoint.

    A fresh ``httpx.Client`` is opened per call; nothing is held between
    requests.
    """

    def __init__(
        self,
        url: Optional[str],
        key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = url.rstrip("/") + "/rest/v1" if url else None
        self.key = key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, str],
        json: Optional[Dict[str, Any]] = None,
        prefer: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        if not self.base_url or not self.key:
            raise StoreError("Missing Supabase environment variables: SUPABASE_URL, SUPABASE_ANON_KEY")
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    f"{self.base_url}/{table}",
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
                if response.status_code == 409:
                    raise StoreConflictError(f"Conflict writing to {table}: {response.text[:200]}")
                if (
                    method == "GET"
                    and response.status_code == 400
                    and _error_code(response) == INVALID_TEXT_REPRESENTATION
                ):
                    # Such a value cannot equal any stored row.
                    return []
                response.raise_for_status()
                data = response.json() if response.content else []
        except httpx.HTTPError as exc:
            raise StoreError(f"Supabase {method} {table} failed: {exc}") from exc
        except ValueError as exc:
            raise StoreError(f"Supabase {method} {table} returned invalid JSON") from exc

        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise StoreError(f"Supabase {method} {table} returned an unexpected payload")
        return data

    def select(
        self,
        table: str,
        filters: Dict[str, Any],
        *,
        columns: str = "*",
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": columns, **_eq_params(filters)}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", table, params)

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request("POST", table, {"select": "*"}, json=record, prefer="return=representation")
        if not rows:
            raise StoreError(f"Supabase insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._request("PATCH", table, _eq_params(filters), json=values, prefer="return=representation")
