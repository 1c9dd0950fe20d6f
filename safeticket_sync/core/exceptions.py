"""Core exceptions for safeTicket sync operations."""

from typing import Any


class SafeTicketError(Exception):
    """Base exception for safeTicket sync operations."""


class ConfigurationError(SafeTicketError):
    """Configuration validation or loading failed."""


class SourceDataError(SafeTicketError):
    """Legacy source dataset could not be read or parsed."""


class RemoteOperationError(SafeTicketError):
    """A request against the remote table service failed."""

    def __init__(
        self,
        message: str,
        *,
        table: str,
        operation: str,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
        hint: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.table = table
        self.operation = operation
        self.status = status
        self.code = code
        self.details = details
        self.hint = hint

    def to_dict(self) -> dict[str, Any]:
        """Structured form used in log events and reports."""
        return {
            "message": self.message,
            "table": self.table,
            "operation": self.operation,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
        }

    def log_context(self) -> dict[str, Any]:
        """Keyword arguments for a structured log event about this failure."""
        context = self.to_dict()
        context["error"] = context.pop("message")
        return context

    def __str__(self) -> str:
        prefix = f"{self.operation} on {self.table} failed"
        if self.status is not None:
            prefix = f"{prefix} (HTTP {self.status})"
        return f"{prefix}: {self.message}"
