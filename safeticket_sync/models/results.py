"""Result models reported by the migration and verification services."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .records import ScheduleAssignment

StepStatus = Literal["succeeded", "failed", "skipped"]


class StepResult(BaseModel):
    """Outcome of one migration step."""

    name: str
    table: str
    status: StepStatus
    inserted: int = 0
    planned: int = 0
    message: str = ""
    error: dict[str, Any] | None = None
    pending_schedules: list[ScheduleAssignment] = Field(default_factory=list)


class MigrationReport(BaseModel):
    """Per-step outcomes of one migration run. Informational only."""

    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    dry_run: bool = False
    steps: list[StepResult] = Field(default_factory=list)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [step for step in self.steps if step.status == "failed"]

    @property
    def total_inserted(self) -> int:
        return sum(step.inserted for step in self.steps)

    def step(self, name: str) -> StepResult:
        for result in self.steps:
            if result.name == name:
                return result
        raise KeyError(name)

    def summary(self) -> dict[str, Any]:
        return {
            "steps": {step.name: step.status for step in self.steps},
            "inserted": self.total_inserted,
            "failed": [step.name for step in self.failed_steps],
            "dry_run": self.dry_run,
        }


class TableSnapshot(BaseModel):
    """What an inspection saw in a remote table."""

    table: str
    row_count: int
    first_row: dict[str, Any] | None = None
    order_by: str | None = None
    ascending: bool = True
    limit: int | None = None

    @property
    def first_row_keys(self) -> list[str]:
        return list(self.first_row) if self.first_row else []
