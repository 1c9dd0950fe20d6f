"""Legacy ticket-exchange records and their destination table rows."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Destination tables
SALES_TABLE = "ventas"
EXCHANGES_TABLE = "cambios"
DYNAMIC_INFO_TABLE = "info_dinamica"
SCHEDULES_TABLE = "horarios"


class SourceRecord(BaseModel, ABC):
    """Base for records read from the legacy static dataset.

    Fields accept both the legacy (Spanish) keys and the Python names.
    Unknown keys are dropped. A missing field maps to null and is left for
    the remote table to accept or reject.
    """

    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, frozen=True, coerce_numbers_to_str=True
    )

    @abstractmethod
    def to_row(self) -> dict[str, Any]:
        """Destination row keyed by the remote table's column names."""


class SaleRecord(SourceRecord):
    """A ticket offered for sale."""

    day: str | None = Field(default=None, validation_alias=AliasChoices("day", "dia"))
    zone: str | None = Field(default=None, validation_alias=AliasChoices("zone", "zona"))
    price: int | float | str | None = Field(
        default=None, validation_alias=AliasChoices("price", "precio")
    )
    phone: str | None = Field(default=None, validation_alias=AliasChoices("phone", "tel"))

    def to_row(self) -> dict[str, Any]:
        return {"dia": self.day, "zona": self.zone, "precio": self.price, "tel": self.phone}


class ExchangeRequest(SourceRecord):
    """A request to swap one slot/day for another."""

    wanted_slot: str | None = Field(
        default=None, validation_alias=AliasChoices("wanted_slot", "wantedSlot", "busca")
    )
    wanted_day: str | None = Field(
        default=None, validation_alias=AliasChoices("wanted_day", "wantedDay", "dia_busca")
    )
    offered_slot: str | None = Field(
        default=None, validation_alias=AliasChoices("offered_slot", "offeredSlot", "ofrece")
    )
    offered_day: str | None = Field(
        default=None, validation_alias=AliasChoices("offered_day", "offeredDay", "dia_ofrece")
    )
    phone: str | None = Field(default=None, validation_alias=AliasChoices("phone", "tel"))

    def to_row(self) -> dict[str, Any]:
        return {
            "busca": self.wanted_slot,
            "dia_busca": self.wanted_day,
            "ofrece": self.offered_slot,
            "dia_ofrece": self.offered_day,
            "tel": self.phone,
        }


class DynamicInfo(SourceRecord):
    """Site-wide display text. Expected to exist at most once remotely."""

    title: str | None = Field(default=None, validation_alias=AliasChoices("title", "titulo"))
    admin_name: str | None = Field(
        default=None, validation_alias=AliasChoices("admin_name", "adminName", "admin")
    )
    message: str | None = Field(
        default=None, validation_alias=AliasChoices("message", "mensaje")
    )
    rules: Any = Field(default=None, validation_alias=AliasChoices("rules", "reglas"))

    def to_row(self) -> dict[str, Any]:
        return {
            "titulo": self.title,
            "admin_nombre": self.admin_name,
            "mensaje": self.message,
            "reglas": self.rules,
        }


class ScheduleAssignment(SourceRecord):
    """A slot held by a legacy owner.

    The remote table needs the owner's user identity, which does not exist
    until accounts are provisioned, so these are exported instead of written.
    """

    slot: str = Field(validation_alias=AliasChoices("slot", "horario", "turno"))
    owner: str = Field(validation_alias=AliasChoices("owner", "ownerUserId", "nombre", "usuario"))

    def to_row(self) -> dict[str, Any]:
        return {"slot": self.slot, "owner": self.owner}


class SourceDataset(BaseModel):
    """The complete legacy dataset. Read-only input to the migration.

    ``invalid`` maps a step name (sales, exchanges, dynamic_info, schedules)
    to the reason its collection could not be read. Only that step fails.
    """

    model_config = ConfigDict(frozen=True)

    sales: tuple[SaleRecord, ...] = ()
    exchanges: tuple[ExchangeRequest, ...] = ()
    dynamic_info: DynamicInfo | None = None
    schedules: tuple[ScheduleAssignment, ...] = ()
    invalid: dict[str, str] = Field(default_factory=dict)
