"""One-shot migration of the legacy ticket dataset into the remote tables."""

from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import structlog
import yaml

from ..core.exceptions import RemoteOperationError
from ..models.records import (
    DYNAMIC_INFO_TABLE,
    EXCHANGES_TABLE,
    SALES_TABLE,
    SCHEDULES_TABLE,
    SourceDataset,
    SourceRecord,
)
from ..models.results import MigrationReport, StepResult

logger = structlog.get_logger()

SCHEDULES_SKIPPED_MESSAGE = (
    "Skipping schedules migration. Schedules need a user identity for each owner; "
    "create the users first, then assign schedules manually or from the exported list."
)


class TableWriter(Protocol):
    """The part of the table client the migration needs."""

    def table(self, name: str): ...


class DataMigrator:
    """Copies sales, exchange requests and the dynamic info record to the remote store.

    Steps run in a fixed order and are independent: a failed step is logged
    and the next one still runs. Nothing is rolled back and nothing is
    re-raised; the returned report only mirrors what was logged.
    """

    def __init__(
        self, client: TableWriter | None, dataset: SourceDataset, dry_run: bool = False
    ):
        self.client = client
        self.dataset = dataset
        self.dry_run = dry_run
        self.logger = logger.bind(component="migrator")

    async def run(self) -> MigrationReport:
        """Attempt all four steps and report their outcomes."""
        report = MigrationReport(dry_run=self.dry_run)
        self.logger.info("Starting migration", dry_run=self.dry_run)

        report.steps.append(await self.migrate_sales())
        report.steps.append(await self.migrate_exchanges())
        report.steps.append(await self.migrate_dynamic_info())
        report.steps.append(self.skip_schedules())

        report.finished_at = datetime.now(UTC)
        self.logger.info("Migration finished", **report.summary())
        return report

    async def migrate_sales(self) -> StepResult:
        self.logger.info("Migrating ventas...")
        return await self._insert_batch("sales", SALES_TABLE, self.dataset.sales)

    async def migrate_exchanges(self) -> StepResult:
        self.logger.info("Migrating cambios...")
        return await self._insert_batch("exchanges", EXCHANGES_TABLE, self.dataset.exchanges)

    async def migrate_dynamic_info(self) -> StepResult:
        self.logger.info("Migrating info...")
        if failed := self._unreadable_source("dynamic_info", DYNAMIC_INFO_TABLE):
            return failed
        info = self.dataset.dynamic_info
        if info is None:
            self.logger.warning("No dynamic info in source dataset, skipping")
            return StepResult(
                name="dynamic_info",
                table=DYNAMIC_INFO_TABLE,
                status="skipped",
                message="no dynamic info in source dataset",
            )
        # No existence check: running twice leaves two rows
        return await self._insert_batch("dynamic_info", DYNAMIC_INFO_TABLE, [info])

    def skip_schedules(self) -> StepResult:
        """Never writes; hands the assignments back for manual provisioning."""
        if failed := self._unreadable_source("schedules", SCHEDULES_TABLE):
            return failed
        pending = list(self.dataset.schedules)
        self.logger.info(SCHEDULES_SKIPPED_MESSAGE, pending_schedules=len(pending))
        return StepResult(
            name="schedules",
            table=SCHEDULES_TABLE,
            status="skipped",
            planned=len(pending),
            message=SCHEDULES_SKIPPED_MESSAGE,
            pending_schedules=pending,
        )

    def _unreadable_source(self, name: str, table: str) -> StepResult | None:
        """Failed result for a step whose source collection could not be read."""
        reason = self.dataset.invalid.get(name)
        if reason is None:
            return None
        self.logger.error(f"Error migrating {table}", table=table, error=reason)
        return StepResult(
            name=name,
            table=table,
            status="failed",
            message=reason,
            error={"message": reason, "table": table, "operation": "read_source"},
        )

    async def _insert_batch(
        self, name: str, table: str, records: Sequence[SourceRecord]
    ) -> StepResult:
        if failed := self._unreadable_source(name, table):
            return failed

        rows = [record.to_row() for record in records]

        if self.dry_run:
            self.logger.info("Dry run, not inserting", table=table, rows=len(rows))
            return StepResult(
                name=name, table=table, status="skipped", planned=len(rows), message="dry run"
            )

        try:
            inserted = await self.client.table(table).insert(rows).execute()
        except RemoteOperationError as e:
            self.logger.error(f"Error migrating {table}", **e.log_context())
            return StepResult(
                name=name,
                table=table,
                status="failed",
                planned=len(rows),
                message=str(e),
                error=e.to_dict(),
            )

        self.logger.info(f"Migrated {inserted} {table}.", table=table, inserted=inserted)
        return StepResult(
            name=name, table=table, status="succeeded", inserted=inserted, planned=len(rows)
        )


def export_pending_schedules(report: MigrationReport, path: str | Path) -> int:
    """Write the skipped schedule assignments to YAML for whoever provisions users.

    Returns:
        Number of assignments written
    """
    pending = report.step("schedules").pending_schedules
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"horarios": [assignment.to_row() for assignment in pending]}
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Schedules awaiting user identities. Map each owner to a user id.\n")
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    logger.info("Pending schedules exported", path=str(path), count=len(pending))
    return len(pending)
