"""
safeTicket Services

Service layer for the migration procedure and the read-path checks.
"""

from .migration import DataMigrator, export_pending_schedules  # noqa: F401
from .verification import TableVerifier  # noqa: F401

__all__ = [
    "DataMigrator",
    "TableVerifier",
    "export_pending_schedules",
]
