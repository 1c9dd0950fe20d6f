"""Data models for safeTicket sync."""

from .records import (  # noqa: F401
    DYNAMIC_INFO_TABLE,
    EXCHANGES_TABLE,
    SALES_TABLE,
    SCHEDULES_TABLE,
    DynamicInfo,
    ExchangeRequest,
    SaleRecord,
    ScheduleAssignment,
    SourceDataset,
)
from .results import MigrationReport, StepResult, TableSnapshot  # noqa: F401

__all__ = [
    # Record models
    "DynamicInfo",
    "ExchangeRequest",
    "SaleRecord",
    "ScheduleAssignment",
    "SourceDataset",
    # Table names
    "DYNAMIC_INFO_TABLE",
    "EXCHANGES_TABLE",
    "SALES_TABLE",
    "SCHEDULES_TABLE",
    # Result models
    "MigrationReport",
    "StepResult",
    "TableSnapshot",
]
