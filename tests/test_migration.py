"""Tests for the legacy dataset migration."""

import pytest
import yaml

from safeticket_sync.core.source import parse_source_dataset
from safeticket_sync.models.records import SourceDataset
from safeticket_sync.services.migration import DataMigrator, export_pending_schedules
from tests.fakes import FakeTableClient


class TestDataMigrator:
    """Test suite for DataMigrator."""

    @pytest.mark.asyncio
    async def test_single_sale_becomes_single_row(self, fake_client):
        dataset = parse_source_dataset(
            {"ventas": [{"day": "Mon", "zone": "A", "price": 10, "phone": "555"}]}
        )

        await DataMigrator(fake_client, dataset).run()

        assert fake_client.tables["ventas"] == [
            {"dia": "Mon", "zona": "A", "precio": 10, "tel": "555"}
        ]

    @pytest.mark.asyncio
    async def test_each_collection_sent_as_one_batch(self, fake_client, dataset):
        await DataMigrator(fake_client, dataset).run()

        sales_inserts = fake_client.inserts_into("ventas")
        assert len(sales_inserts) == 1
        assert len(sales_inserts[0].rows) == 2

        exchange_inserts = fake_client.inserts_into("cambios")
        assert len(exchange_inserts) == 1
        assert exchange_inserts[0].rows == [
            {
                "busca": "Preferente",
                "dia_busca": "Sabado",
                "ofrece": "General",
                "dia_ofrece": "Viernes",
                "tel": "5587654321",
            }
        ]

    @pytest.mark.asyncio
    async def test_dynamic_info_inserted_as_one_element_batch(self, fake_client):
        dataset = parse_source_dataset(
            {"infoDinamica": {"titulo": "X", "admin": "Y", "mensaje": "Z", "reglas": "R"}}
        )

        await DataMigrator(fake_client, dataset).run()

        info_inserts = fake_client.inserts_into("info_dinamica")
        assert len(info_inserts) == 1
        assert info_inserts[0].rows == [
            {"titulo": "X", "admin_nombre": "Y", "mensaje": "Z", "reglas": "R"}
        ]

    @pytest.mark.asyncio
    async def test_steps_run_in_fixed_order(self, fake_client, dataset):
        await DataMigrator(fake_client, dataset).run()

        assert [q.table for q in fake_client.calls] == ["ventas", "cambios", "info_dinamica"]

    @pytest.mark.asyncio
    async def test_running_twice_duplicates_dynamic_info(self, fake_client, dataset):
        await DataMigrator(fake_client, dataset).run()
        await DataMigrator(fake_client, dataset).run()

        assert len(fake_client.tables["info_dinamica"]) == 2

    @pytest.mark.asyncio
    async def test_schedules_never_written(self, fake_client, dataset):
        report = await DataMigrator(fake_client, dataset).run()

        assert "horarios" not in fake_client.tables
        assert all(q.table != "horarios" for q in fake_client.calls)
        schedules = report.step("schedules")
        assert schedules.status == "skipped"
        assert [a.owner for a in schedules.pending_schedules] == ["Ana", "Luis"]

    @pytest.mark.asyncio
    async def test_exchange_failure_does_not_affect_other_steps(self, dataset):
        client = FakeTableClient(failing_tables={"cambios"})

        report = await DataMigrator(client, dataset).run()

        assert report.step("sales").status == "succeeded"
        assert report.step("sales").inserted == 2
        assert report.step("exchanges").status == "failed"
        assert report.step("exchanges").error["code"] == "XX000"
        assert report.step("dynamic_info").status == "succeeded"
        assert len(client.tables["ventas"]) == 2
        assert len(client.tables["info_dinamica"]) == 1
        assert "cambios" not in client.tables

    @pytest.mark.asyncio
    async def test_malformed_exchange_record_fails_only_exchanges(self, fake_client, legacy_data):
        legacy_data["boletos"]["cambios"].append({"busca": "VIP", "tel": ["555"]})
        dataset = parse_source_dataset(legacy_data)

        report = await DataMigrator(fake_client, dataset).run()

        assert report.step("exchanges").status == "failed"
        assert report.step("exchanges").error["operation"] == "read_source"
        assert fake_client.inserts_into("cambios") == []
        assert len(fake_client.tables["ventas"]) == 2
        assert len(fake_client.tables["info_dinamica"]) == 1
        assert report.step("schedules").status == "skipped"

    @pytest.mark.asyncio
    async def test_incomplete_exchange_record_is_sent_with_nulls(self, fake_client):
        dataset = parse_source_dataset({"cambios": [{"busca": "VIP", "dia_busca": "Sat"}]})

        report = await DataMigrator(fake_client, dataset).run()

        assert report.step("exchanges").status == "succeeded"
        assert fake_client.tables["cambios"][0]["tel"] is None

    @pytest.mark.asyncio
    async def test_unreadable_schedules_fail_schedules_step(self, fake_client, dataset):
        dataset = dataset.model_copy(update={"schedules": (), "invalid": {"schedules": "bad"}})

        report = await DataMigrator(fake_client, dataset).run()

        assert report.step("schedules").status == "failed"
        assert report.step("sales").status == "succeeded"

    @pytest.mark.asyncio
    async def test_all_steps_failing_still_completes(self, dataset):
        client = FakeTableClient(failing_tables={"ventas", "cambios", "info_dinamica"})

        report = await DataMigrator(client, dataset).run()

        assert [s.status for s in report.steps] == ["failed", "failed", "failed", "skipped"]
        assert report.summary()["failed"] == ["sales", "exchanges", "dynamic_info"]
        assert report.finished_at is not None

    @pytest.mark.asyncio
    async def test_missing_dynamic_info_skips_without_network_call(self, fake_client):
        dataset = SourceDataset()

        report = await DataMigrator(fake_client, dataset).run()

        assert report.step("dynamic_info").status == "skipped"
        assert fake_client.inserts_into("info_dinamica") == []

    @pytest.mark.asyncio
    async def test_dry_run_makes_no_calls(self, dataset):
        report = await DataMigrator(None, dataset, dry_run=True).run()

        assert report.dry_run is True
        assert report.total_inserted == 0
        assert report.step("sales").planned == 2
        assert report.step("sales").status == "skipped"


@pytest.mark.asyncio
async def test_export_pending_schedules(tmp_path, fake_client, dataset):
    report = await DataMigrator(fake_client, dataset).run()
    out_file = tmp_path / "pending" / "horarios.yml"

    count = export_pending_schedules(report, out_file)

    assert count == 2
    exported = yaml.safe_load(out_file.read_text(encoding="utf-8"))
    assert exported == {
        "horarios": [{"slot": "10:00", "owner": "Ana"}, {"slot": "12:00", "owner": "Luis"}]
    }
