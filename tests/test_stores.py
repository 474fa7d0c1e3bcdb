import json

import httpx
import pytest

from fleet_dedupe.errors import RecordStoreError
from fleet_dedupe.models import CustomerRecord
from fleet_dedupe.stores import InMemoryRecordStore, PostgrestRecordStore


def _memory_store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.add(CustomerRecord(id="c1", full_name="John Smith", phone_number="55551234"), owned=["agr-1"])
    store.add(CustomerRecord(id="c2", full_name="Jon Smith", email="jon@example.com"), owned=["agr-2", "pay-7"])
    store.add(CustomerRecord(id="s1", full_name="Maria Fernandes"), role="staff")
    store.add(CustomerRecord(id="c3", full_name="Aisha Nasser"))
    return store


@pytest.mark.asyncio
class TestInMemoryRecordStore:
    async def test_query_returns_newest_first_without_self(self) -> None:
        store = _memory_store()

        records = await store.query_records_excluding("c3", limit=2)

        assert [r.id for r in records] == ["s1", "c2"]

    async def test_fuzzy_name_search_returns_names_only(self) -> None:
        store = _memory_store()

        records = await store.fuzzy_name_search("John Smith")

        assert {r.id for r in records} >= {"c1", "c2"}
        assert "c3" not in {r.id for r in records}
        assert all(r.phone_number is None and r.email is None for r in records)
        assert await store.fuzzy_name_search("   ") == []

    async def test_fetch_all_filters_by_role(self) -> None:
        store = _memory_store()

        assert [r.id for r in await store.fetch_all_records()] == ["c1", "c2", "c3"]
        assert [r.id for r in await store.fetch_all_records("staff")] == ["s1"]

    async def test_merge_reassigns_and_soft_deletes(self) -> None:
        store = _memory_store()

        await store.merge_records("c1", ["c2"])
        await store.mark_merged(["c2"], "c1")

        assert store.owned_by("c1") == ["agr-1", "agr-2", "pay-7"]
        assert store.owned_by("c2") == []
        assert store.merged_into("c2") == "c1"
        assert "c2" not in {r.id for r in await store.fetch_all_records()}
        assert "c2" not in {r.id for r in await store.query_records_excluding(None, 10)}

    async def test_unknown_record_raises(self) -> None:
        store = _memory_store()

        with pytest.raises(RecordStoreError):
            await store.merge_records("c1", ["missing"])


def test_memory_store_rejects_records_without_id_or_repeated_id() -> None:
    store = _memory_store()

    with pytest.raises(ValueError):
        store.add(CustomerRecord(full_name="No Id"))
    with pytest.raises(ValueError):
        store.add(CustomerRecord(id="c1"))


def _postgrest(handler) -> PostgrestRecordStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://db.test/rest/v1")
    return PostgrestRecordStore("https://db.test/rest/v1", "anon-key", client=client)


@pytest.mark.asyncio
class TestPostgrestRecordStore:
    async def test_query_records_excluding_builds_filter(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json=[{"id": "c2", "full_name": "Jon Smith", "phone_number": "55551234", "email": None}],
            )

        store = _postgrest(handler)
        records = await store.query_records_excluding("c1", 100)

        assert seen["path"] == "/rest/v1/profiles"
        assert seen["params"]["id"] == "neq.c1"
        assert seen["params"]["limit"] == "100"
        assert seen["params"]["merged_into"] == "is.null"
        assert records == [CustomerRecord(id="c2", full_name="Jon Smith", phone_number="55551234")]

    async def test_unsaved_record_is_not_filtered_by_id(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        await _postgrest(handler).query_records_excluding(None, 5)

        assert "id" not in seen["params"]

    async def test_fuzzy_name_search_calls_rpc(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{"id": "c1", "full_name": "Jon Smith", "similarity": 0.8}])

        records = await _postgrest(handler).fuzzy_name_search("John Smith")

        assert seen["path"] == "/rest/v1/rpc/fuzzy_name_match"
        assert seen["body"] == {"search_name": "John Smith"}
        assert records == [CustomerRecord(id="c1", full_name="Jon Smith")]

    async def test_fetch_all_records_filters_role(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        assert await _postgrest(handler).fetch_all_records("customer") == []
        assert seen["params"]["role"] == "eq.customer"

    async def test_merge_and_mark_merged(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        store = _postgrest(handler)
        await store.merge_records("p", ["a", "b"])
        await store.mark_merged(["a", "b"], "p")

        merge, mark = requests
        assert merge.method == "POST"
        assert merge.url.path == "/rest/v1/rpc/merge_customers"
        assert json.loads(merge.content) == {"primary_id": "p", "duplicate_ids": ["a", "b"]}
        assert mark.method == "PATCH"
        assert mark.url.params["id"] == "in.(a,b)"
        assert json.loads(mark.content) == {"merged_into": "p"}

    async def test_http_error_becomes_record_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "boom"})

        with pytest.raises(RecordStoreError, match="HTTP 500"):
            await _postgrest(handler).fetch_all_records()

    async def test_transport_error_becomes_record_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RecordStoreError):
            await _postgrest(handler).fuzzy_name_search("John")

    async def test_non_json_body_becomes_record_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(RecordStoreError, match="non-JSON"):
            await _postgrest(handler).fetch_all_records()

    async def test_rows_that_are_not_objects_become_record_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["oops"])

        with pytest.raises(RecordStoreError, match="JSON object"):
            await _postgrest(handler).query_records_excluding("c1", 100)
