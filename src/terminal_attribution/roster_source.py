"""
Roster sources: where customer and terminal rows come from.

Two sources are provided. JsonRosterSource reads table exports (a JSON
array of row objects per file). SupabaseRosterSource reads the live
tables through the Supabase REST API with an async httpx client; only
HTTPS endpoints are accepted.

Both return profiles built by the record adapters.
"""

import json
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from .config import SupabaseConfig
from .enums import RosterErrorCode
from .exceptions import RosterSourceError
from .models import CustomerDomainProfile, TerminalDomainProfile
from .records import customer_profile_from_record, terminal_profile_from_record


def _read_rows(path: Path) -> list[dict]:
    """Read a JSON array of row objects from a file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise RosterSourceError(
            code=RosterErrorCode.FILE_NOT_FOUND.value,
            message=f"Roster file not found: {path}",
            details={"path": str(path)},
        )
    except json.JSONDecodeError as e:
        raise RosterSourceError(
            code=RosterErrorCode.PARSE_ERROR.value,
            message=f"Roster file is not valid JSON: {e}",
            details={"path": str(path)},
        )
    except OSError as e:
        raise RosterSourceError(
            code=RosterErrorCode.FILE_NOT_FOUND.value,
            message=f"Roster file could not be read: {e}",
            details={"path": str(path)},
        )

    if not isinstance(data, list):
        raise RosterSourceError(
            code=RosterErrorCode.PARSE_ERROR.value,
            message="Roster file must contain a JSON array",
            details={"path": str(path), "type": type(data).__name__},
        )
    return data


class JsonRosterSource:
    """Rosters read from exported JSON files."""

    def __init__(self, customers_path: Path, terminals_path: Path) -> None:
        self._customers_path = Path(customers_path)
        self._terminals_path = Path(terminals_path)

    def load_customers(self) -> list[CustomerDomainProfile]:
        return [customer_profile_from_record(row) for row in _read_rows(self._customers_path)]

    def load_terminals(self) -> list[TerminalDomainProfile]:
        return [terminal_profile_from_record(row) for row in _read_rows(self._terminals_path)]


class SupabaseRosterSource:
    """
    Rosters read from Supabase tables over the REST API.

    Use as an async context manager:

        async with SupabaseRosterSource(config) as source:
            customers = await source.load_customers()
    """

    def __init__(
        self,
        config: SupabaseConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the source.

        Args:
            config: Supabase URL, key, table names and paging settings
            transport: Optional httpx transport (tests pass a MockTransport)

        Raises:
            RosterSourceError: If the URL or key is missing, or the URL is not HTTPS
        """
        if not config.configured:
            raise RosterSourceError(
                code=RosterErrorCode.NOT_CONFIGURED.value,
                message="Supabase URL and API key are required",
            )

        parsed = urlparse(config.url)
        if parsed.scheme.lower() != "https":
            raise RosterSourceError(
                code=RosterErrorCode.TLS_ERROR.value,
                message=f"Supabase URL must use HTTPS: {config.url}",
                details={"url": config.url, "scheme": parsed.scheme},
            )

        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "SupabaseRosterSource":
        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/") + "/rest/v1/",
            headers={
                "apikey": self._config.api_key,
                "Authorization": f"Bearer {self._config.api_key}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(self._config.timeout),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_table(self, table: str) -> list[dict]:
        """
        Fetch every row of a table, one page at a time.

        Raises:
            RosterSourceError: On transport errors, non-2xx responses or
                a body that is not a JSON array
        """
        if self._client is None:
            raise RuntimeError("SupabaseRosterSource must be used as an async context manager")

        page_size = self._config.page_size
        rows: list[dict] = []
        offset = 0

        while True:
            page = await self._fetch_page(table, offset, page_size)
            rows.extend(page)
            if len(page) < page_size:
                return rows
            offset += page_size

    async def _fetch_page(self, table: str, offset: int, limit: int) -> list[Any]:
        try:
            response = await self._client.get(
                table,
                params={"select": "*", "offset": str(offset), "limit": str(limit)},
            )
        except httpx.TimeoutException as e:
            raise RosterSourceError(
                code=RosterErrorCode.NETWORK_ERROR.value,
                message=f"Timed out reading table {table}: {e}",
                details={"table": table, "offset": offset},
            )
        except httpx.HTTPError as e:
            raise RosterSourceError(
                code=RosterErrorCode.NETWORK_ERROR.value,
                message=f"Could not read table {table}: {e}",
                details={"table": table, "offset": offset},
            )

        if not response.is_success:
            raise RosterSourceError(
                code=RosterErrorCode.HTTP_ERROR.value,
                message=f"Reading table {table} failed with HTTP {response.status_code}",
                details={"table": table, "status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RosterSourceError(
                code=RosterErrorCode.PARSE_ERROR.value,
                message=f"Table {table} returned invalid JSON: {e}",
                details={"table": table},
            )

        if not isinstance(data, list):
            raise RosterSourceError(
                code=RosterErrorCode.PARSE_ERROR.value,
                message=f"Table {table} did not return a JSON array",
                details={"table": table, "type": type(data).__name__},
            )
        return data

    async def load_customers(self) -> list[CustomerDomainProfile]:
        rows = await self.fetch_table(self._config.customers_table)
        return [customer_profile_from_record(row) for row in rows]

    async def load_terminals(self) -> list[TerminalDomainProfile]:
        rows = await self.fetch_table(self._config.terminals_table)
        return [terminal_profile_from_record(row) for row in rows]
