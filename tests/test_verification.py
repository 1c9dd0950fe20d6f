"""Tests for the read-path verification service."""

import pytest

from safeticket_sync.core.exceptions import RemoteOperationError
from safeticket_sync.services.verification import TableVerifier
from tests.fakes import FakeTableClient


@pytest.fixture
def populated_client() -> FakeTableClient:
    client = FakeTableClient()
    client.tables["ventas"] = [
        {"id": i, "dia": "Mon", "zona": "A", "precio": 10 * i, "tel": "555"} for i in range(1, 6)
    ]
    client.tables["cambios"] = [
        {"id": 1, "created_at": "2025-01-01T10:00:00Z", "tel": "1"},
        {"id": 2, "created_at": "2025-03-01T10:00:00Z", "tel": "2"},
        {"id": 3, "created_at": "2025-02-01T10:00:00Z", "tel": "3"},
    ]
    return client


@pytest.mark.asyncio
async def test_sample_sales_defaults_to_three(populated_client):
    rows = await TableVerifier(populated_client).sample_sales()

    assert [row["id"] for row in rows] == [1, 2, 3]
    assert populated_client.calls[0].limit_count == 3


@pytest.mark.asyncio
async def test_inspect_newest_first(populated_client):
    snapshot = await TableVerifier(populated_client).inspect_table(
        "cambios", order_by="created_at", ascending=False
    )

    assert snapshot.row_count == 3
    assert snapshot.first_row["id"] == 2
    assert populated_client.calls[0].order_by == [("created_at", False)]


@pytest.mark.asyncio
async def test_inspect_reports_first_row_keys(populated_client):
    snapshot = await TableVerifier(populated_client).inspect_table("ventas")

    assert snapshot.row_count == 5
    assert snapshot.first_row_keys == ["id", "dia", "zona", "precio", "tel"]
    assert populated_client.calls[0].order_by == []


@pytest.mark.asyncio
async def test_inspect_empty_table(fake_client):
    snapshot = await TableVerifier(fake_client).inspect_table("ventas", limit=10)

    assert snapshot.row_count == 0
    assert snapshot.first_row is None
    assert snapshot.first_row_keys == []


@pytest.mark.asyncio
async def test_errors_propagate_to_caller():
    client = FakeTableClient(failing_tables={"ventas"})

    with pytest.raises(RemoteOperationError) as exc_info:
        await TableVerifier(client).sample_sales()

    assert exc_info.value.operation == "select"
