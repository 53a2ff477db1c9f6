"""
Tests for the JSON and Supabase roster sources.

HTTP is served by httpx.MockTransport; no network access is made.
"""

import asyncio
import json
import tempfile
from pathlib import Path

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from terminal_attribution.config import SupabaseConfig
from terminal_attribution.enums import RosterErrorCode
from terminal_attribution.exceptions import RecordError, RosterSourceError
from terminal_attribution.roster_source import JsonRosterSource, SupabaseRosterSource


CUSTOMER_ROWS = [
    {"id": "1", "cariAdi": "Acme", "domain": "acme.com"},
    {"id": "2", "cariAdi": "Tint", "guncelMyPayterDomain": "SIPAY34",
     "ignoreMainDomain": True, "domainHierarchy": [{"name": "TINTCAFE", "children": []}]},
]
TERMINAL_ROWS = [
    {"id": "t1", "serialNumber": "PT1", "domain": "acme.com"},
    {"id": "t2", "serialNumber": "PT2", "domain": "tintcafe"},
]


def supabase_config(**overrides) -> SupabaseConfig:
    values = {
        "url": "https://project.supabase.co",
        "api_key": "service-key",
        "page_size": 2,
    }
    values.update(overrides)
    return SupabaseConfig(**values)


def table_handler(tables: dict[str, list[dict]], requests: list[httpx.Request]):
    """Serve tables with PostgREST-style offset/limit paging."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        if table not in tables:
            return httpx.Response(404, json={"message": "relation does not exist"})
        offset = int(request.url.params.get("offset", "0"))
        limit = int(request.url.params.get("limit", "1000"))
        return httpx.Response(200, json=tables[table][offset:offset + limit])

    return handler


async def load_all(source: SupabaseRosterSource):
    async with source:
        return await source.load_customers(), await source.load_terminals()


class TestJsonRosterSource:
    """JSON exports load into profiles."""

    def test_loads_both_rosters(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            customers_path = Path(tmp) / "customers.json"
            terminals_path = Path(tmp) / "products.json"
            customers_path.write_text(json.dumps(CUSTOMER_ROWS), encoding="utf-8")
            terminals_path.write_text(json.dumps(TERMINAL_ROWS), encoding="utf-8")

            source = JsonRosterSource(customers_path, terminals_path)
            customers = source.load_customers()
            terminals = source.load_terminals()

        assert [c.main_domain for c in customers] == ["acme.com", "SIPAY34"]
        assert customers[1].domain_hierarchy[0].name == "TINTCAFE"
        assert [t.serial_number for t in terminals] == ["PT1", "PT2"]

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = JsonRosterSource(Path(tmp) / "missing.json", Path(tmp) / "missing.json")
            with pytest.raises(RosterSourceError) as exc_info:
                source.load_customers()
        assert exc_info.value.code == RosterErrorCode.FILE_NOT_FOUND.value

    @pytest.mark.parametrize("content", ["{not json", '{"rows": []}'])
    def test_invalid_content(self, content) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "customers.json"
            path.write_text(content, encoding="utf-8")
            with pytest.raises(RosterSourceError) as exc_info:
                JsonRosterSource(path, path).load_customers()
        assert exc_info.value.code == RosterErrorCode.PARSE_ERROR.value

    def test_malformed_row_raises_record_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "products.json"
            path.write_text(json.dumps(["not a row"]), encoding="utf-8")
            with pytest.raises(RecordError):
                JsonRosterSource(path, path).load_terminals()


class TestSupabaseRosterSource:
    """The Supabase source pages through tables over HTTPS."""

    def test_loads_and_pages(self) -> None:
        requests: list[httpx.Request] = []
        transport = httpx.MockTransport(table_handler(
            {"customers": CUSTOMER_ROWS, "products": TERMINAL_ROWS},
            requests,
        ))

        customers, terminals = asyncio.run(load_all(
            SupabaseRosterSource(supabase_config(), transport=transport)
        ))

        assert [c.id for c in customers] == ["1", "2"]
        assert [t.domain for t in terminals] == ["acme.com", "tintcafe"]
        # two full pages of 2 rows each need a third, empty page to stop
        assert len(requests) == 4
        first = requests[0]
        assert first.url.path == "/rest/v1/customers"
        assert first.headers["apikey"] == "service-key"
        assert first.headers["authorization"] == "Bearer service-key"
        assert first.url.params["select"] == "*"

    @given(row_count=st.integers(min_value=0, max_value=25), page_size=st.integers(min_value=1, max_value=10))
    @settings(max_examples=50)
    def test_every_row_fetched_once(self, row_count, page_size) -> None:
        rows = [{"id": str(i), "domain": f"d{i}.com"} for i in range(row_count)]
        requests: list[httpx.Request] = []
        transport = httpx.MockTransport(table_handler({"products": rows}, requests))
        source = SupabaseRosterSource(supabase_config(page_size=page_size), transport=transport)

        async def run():
            async with source:
                return await source.fetch_table("products")

        assert asyncio.run(run()) == rows
        assert len(requests) == row_count // page_size + 1

    def test_http_error(self) -> None:
        transport = httpx.MockTransport(table_handler({}, []))
        with pytest.raises(RosterSourceError) as exc_info:
            asyncio.run(load_all(SupabaseRosterSource(supabase_config(), transport=transport)))
        assert exc_info.value.code == RosterErrorCode.HTTP_ERROR.value
        assert exc_info.value.details["status_code"] == 404

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = httpx.MockTransport(handler)
        with pytest.raises(RosterSourceError) as exc_info:
            asyncio.run(load_all(SupabaseRosterSource(supabase_config(), transport=transport)))
        assert exc_info.value.code == RosterErrorCode.NETWORK_ERROR.value

    def test_non_array_body(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"rows": []}))
        with pytest.raises(RosterSourceError) as exc_info:
            asyncio.run(load_all(SupabaseRosterSource(supabase_config(), transport=transport)))
        assert exc_info.value.code == RosterErrorCode.PARSE_ERROR.value

    def test_requires_https(self) -> None:
        with pytest.raises(RosterSourceError) as exc_info:
            SupabaseRosterSource(supabase_config(url="http://project.supabase.co"))
        assert exc_info.value.code == RosterErrorCode.TLS_ERROR.value

    def test_requires_credentials(self) -> None:
        with pytest.raises(RosterSourceError) as exc_info:
            SupabaseRosterSource(SupabaseConfig())
        assert exc_info.value.code == RosterErrorCode.NOT_CONFIGURED.value
