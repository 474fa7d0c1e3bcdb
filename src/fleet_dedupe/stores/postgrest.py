from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from fleet_dedupe.errors import RecordStoreError
from fleet_dedupe.models import CustomerRecord
from fleet_dedupe.schema import PROFILE_SCHEMA, RecordSchema

logger = logging.getLogger(__name__)

_PROFILE_COLUMNS = "id,full_name,phone_number,email"


class PostgrestRecordStore:
    """Record store backed by a PostgREST (Supabase) ``profiles`` table.

    Requires two database functions: ``fuzzy_name_match(search_name)`` and
    ``merge_customers(primary_id, duplicate_ids)``. Merged profiles are soft
    deleted through ``merged_into`` and filtered out of every read.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "profiles",
        schema: RecordSchema = PROFILE_SCHEMA,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._table = table
        self._schema = schema
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PostgrestRecordStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def query_records_excluding(
        self, self_id: str | None, limit: int
    ) -> list[CustomerRecord]:
        params = {
            "select": _PROFILE_COLUMNS,
            "merged_into": "is.null",
            "order": "created_at.desc",
            "limit": str(limit),
        }
        if self_id:
            params["id"] = f"neq.{self_id}"
        rows = await self._request("GET", f"/{self._table}", params=params)
        return self._records(rows)

    async def fuzzy_name_search(self, search_name: str) -> list[CustomerRecord]:
        rows = await self._request("POST", "/rpc/fuzzy_name_match", json={"search_name": search_name})
        return self._records(rows)

    async def fetch_all_records(self, role: str = "customer") -> list[CustomerRecord]:
        params = {
            "select": _PROFILE_COLUMNS,
            "role": f"eq.{role}",
            "merged_into": "is.null",
        }
        rows = await self._request("GET", f"/{self._table}", params=params)
        return self._records(rows)

    async def merge_records(self, primary_id: str, duplicate_ids: Sequence[str]) -> None:
        await self._request(
            "POST",
            "/rpc/merge_customers",
            json={"primary_id": primary_id, "duplicate_ids": list(duplicate_ids)},
        )

    async def mark_merged(self, duplicate_ids: Sequence[str], primary_id: str) -> None:
        if not duplicate_ids:
            return
        await self._request(
            "PATCH",
            f"/{self._table}",
            params={"id": f"in.({','.join(duplicate_ids)})"},
            json={"merged_into": primary_id},
            headers={"Prefer": "return=minimal"},
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RecordStoreError(
                f"{method} {path} failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RecordStoreError(f"{method} {path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RecordStoreError(f"{method} {path} returned a non-JSON body") from exc

    def _records(self, rows: Any) -> list[CustomerRecord]:
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise RecordStoreError(f"expected a list of rows, got {type(rows).__name__}")
        if not all(isinstance(row, Mapping) for row in rows):
            raise RecordStoreError("expected every row to be a JSON object")
        return [self._schema.to_record(row) for row in rows]
