"""Read-path checks against the remote tables."""

from typing import Any

import structlog

from ..models.records import SALES_TABLE
from ..models.results import TableSnapshot

logger = structlog.get_logger()


class TableVerifier:
    """Smoke tests that the tables are reachable with the configured key."""

    def __init__(self, client):
        self.client = client
        self.logger = logger.bind(component="verifier")

    async def sample_sales(self, limit: int = 3) -> list[dict[str, Any]]:
        """Fetch a few sales rows.

        Raises:
            RemoteOperationError: If the select fails
        """
        self.logger.info(f'Fetching {limit} tickets from "{SALES_TABLE}"...')
        return await self.client.table(SALES_TABLE).select("*").limit(limit).execute()

    async def inspect_table(
        self,
        table: str,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> TableSnapshot:
        """Fetch a table, optionally ordered and limited, and summarize it.

        Raises:
            RemoteOperationError: If the select fails
        """
        self.logger.info(
            "Attempting to fetch table", table=table, order_by=order_by, ascending=ascending
        )
        query = self.client.table(table).select("*")
        if order_by:
            query = query.order(order_by, ascending=ascending)
        if limit is not None:
            query = query.limit(limit)

        rows = await query.execute()
        return TableSnapshot(
            table=table,
            row_count=len(rows),
            first_row=rows[0] if rows else None,
            order_by=order_by,
            ascending=ascending,
            limit=limit,
        )
