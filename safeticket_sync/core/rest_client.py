"""Async client for the hosted table service's REST API (PostgREST dialect)."""

import asyncio
import json
from typing import Any, Literal, Optional

import aiohttp
import structlog

from .exceptions import RemoteOperationError
from .settings import CONNECT_TIMEOUT, HTTP_TIMEOUT

logger = structlog.get_logger()

REST_PREFIX = "/rest/v1"

Operation = Literal["select", "insert"]


class TableClient:
    """Table-level access to the remote service over a single HTTP session.

    Use as an async context manager so the session is closed on exit:

        async with TableClient(url, key) as client:
            rows = await client.table("ventas").select("*").limit(3).execute()
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = HTTP_TIMEOUT):
        """Initialize the client.

        Args:
            base_url: Project URL, e.g. https://<ref>.supabase.co
            api_key: Publishable or service-role key
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._session: Optional[aiohttp.ClientSession] = None
        self.logger = logger.bind(component="table_client")

    async def __aenter__(self) -> "TableClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is not None:
            return
        self._session = aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout, connect=CONNECT_TIMEOUT),
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    def table(self, name: str) -> "TableQuery":
        """Start a query against a table."""
        return TableQuery(self, name)

    def table_url(self, table: str) -> str:
        return f"{self.base_url}{REST_PREFIX}/{table}"

    async def request(
        self,
        method: str,
        table: str,
        operation: Operation,
        *,
        params: dict[str, str] | None = None,
        payload: Any = None,
        extra_headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and decode the JSON response body (None when empty).

        Raises:
            RemoteOperationError: On transport errors, unencodable bodies or non-2xx responses
        """
        if self._session is None:
            raise RemoteOperationError(
                "Client session is not open", table=table, operation=operation
            )

        url = self.table_url(table)
        self.logger.debug("request", method=method, table=table, operation=operation, params=params)

        headers = dict(extra_headers or {})
        data = None
        if payload is not None:
            data = _encode_payload(payload, table, operation)
            headers["Content-Type"] = "application/json"

        try:
            async with self._session.request(
                method, url, params=params, data=data, headers=headers
            ) as response:
                body = await response.text()
                if response.status >= 400:
                    raise _error_from_response(response.status, body, table, operation)
                if not body.strip():
                    return None
                return json.loads(body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteOperationError(
                f"{type(e).__name__}: {e}", table=table, operation=operation
            ) from e
        except json.JSONDecodeError as e:
            raise RemoteOperationError(
                f"Invalid JSON in response: {e}", table=table, operation=operation
            ) from e


class TableQuery:
    """Builder for a single select or insert against one table."""

    def __init__(self, client: TableClient, table: str):
        self.client = client
        self.table = table
        self._operation: Operation = "select"
        self._columns = "*"
        self._order: list[str] = []
        self._limit: int | None = None
        self._rows: list[dict[str, Any]] = []

    def select(self, columns: str = "*") -> "TableQuery":
        self._operation = "select"
        self._columns = columns
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        direction = "asc" if ascending else "desc"
        self._order.append(f"{column}.{direction}")
        return self

    def limit(self, count: int) -> "TableQuery":
        if count < 0:
            raise ValueError("limit must be non-negative")
        self._limit = count
        return self

    def insert(self, rows: dict[str, Any] | list[dict[str, Any]]) -> "TableQuery":
        """Queue rows for a single batched insert."""
        self._operation = "insert"
        self._rows = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def build_params(self) -> dict[str, str]:
        """Query-string parameters for a select."""
        params = {"select": self._columns}
        if self._order:
            params["order"] = ",".join(self._order)
        if self._limit is not None:
            params["limit"] = str(self._limit)
        return params

    async def execute(self) -> Any:
        """Run the query.

        Returns:
            The list of rows for a select, or the number of rows sent for an insert
        """
        if self._operation == "insert":
            await self.client.request(
                "POST",
                self.table,
                "insert",
                payload=self._rows,
                extra_headers={"Prefer": "return=minimal"},
            )
            return len(self._rows)

        rows = await self.client.request("GET", self.table, "select", params=self.build_params())
        return rows if rows is not None else []


def _error_from_response(
    status: int, body: str, table: str, operation: str
) -> RemoteOperationError:
    """Build an error from the service's JSON error body, or the raw text."""
    try:
        data = json.loads(body) if body.strip() else {}
    except json.JSONDecodeError:
        data = {}

    if not isinstance(data, dict):
        data = {}

    message = data.get("message") or data.get("error") or body.strip() or f"HTTP {status}"
    return RemoteOperationError(
        str(message),
        table=table,
        operation=operation,
        status=status,
        code=data.get("code"),
        details=data.get("details"),
        hint=data.get("hint"),
    )


def _encode_payload(payload: Any, table: str, operation: str) -> str:
    """JSON-encode a request body. Dates and other scalars become strings."""
    try:
        return json.dumps(payload, default=str, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise RemoteOperationError(
            f"Cannot encode request body: {e}", table=table, operation=operation
        ) from e
