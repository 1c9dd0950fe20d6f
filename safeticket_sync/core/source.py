"""Loading of the legacy static dataset that feeds the migration."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from ..models.records import (
    DynamicInfo,
    ExchangeRequest,
    SaleRecord,
    ScheduleAssignment,
    SourceDataset,
    SourceRecord,
)
from .exceptions import SourceDataError

logger = structlog.get_logger()


def load_source_dataset(path: str | Path) -> SourceDataset:
    """Read a YAML or JSON export of the legacy data module.

    Accepts the legacy layout (``boletos: {ventas, cambios}``, ``horarios``,
    ``infoDinamica``) as well as flat ``ventas``/``cambios``/``horarios``/
    ``info_dinamica`` keys.

    Raises:
        SourceDataError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
        # JSON is a subset of YAML, so one parser covers both exports
        raw = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise SourceDataError(f"Failed to read source dataset {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SourceDataError(f"Source dataset {path} must be a mapping at the top level")

    dataset = parse_source_dataset(raw)
    logger.info(
        "Source dataset loaded",
        path=str(path),
        sales=len(dataset.sales),
        exchanges=len(dataset.exchanges),
        dynamic_info=dataset.dynamic_info is not None,
        schedules=len(dataset.schedules),
        invalid=sorted(dataset.invalid),
    )
    return dataset


def parse_source_dataset(raw: dict[str, Any]) -> SourceDataset:
    """Build a SourceDataset from already-decoded data.

    Each collection is read on its own. A collection that cannot be read is
    recorded in ``SourceDataset.invalid`` so only its migration step fails.
    """
    tickets = raw.get("boletos") or {}
    if not isinstance(tickets, dict):
        raise SourceDataError("'boletos' must be a mapping with 'ventas' and 'cambios'")

    sales = _first_present(tickets, raw, "ventas", "sales")
    exchanges = _first_present(tickets, raw, "cambios", "exchanges")
    info = _first_present({}, raw, "infoDinamica", "info_dinamica", "dynamic_info")
    schedules = _first_present({}, raw, "horarios", "schedules")

    invalid: dict[str, str] = {}
    parsed = {
        "sales": _read_collection(
            invalid, "sales", lambda: _parse_records(SaleRecord, sales, "ventas"), ()
        ),
        "exchanges": _read_collection(
            invalid,
            "exchanges",
            lambda: _parse_records(ExchangeRequest, exchanges, "cambios"),
            (),
        ),
        "dynamic_info": _read_collection(
            invalid,
            "dynamic_info",
            lambda: DynamicInfo.model_validate(info) if info else None,
            None,
        ),
        "schedules": _read_collection(
            invalid, "schedules", lambda: tuple(_parse_schedules(schedules)), ()
        ),
    }
    return SourceDataset(**parsed, invalid=invalid)


def _read_collection(
    invalid: dict[str, str], step: str, read: Callable[[], Any], empty: Any
) -> Any:
    try:
        return read()
    except ValidationError as e:
        invalid[step] = f"Malformed source record: {e}"
    except SourceDataError as e:
        invalid[step] = str(e)
    logger.error("Unreadable source collection", step=step, error=invalid[step])
    return empty


def _parse_records(model: type[SourceRecord], value: Any, name: str) -> tuple[Any, ...]:
    return tuple(model.model_validate(item) for item in _as_list(value, name))


def _first_present(primary: dict[str, Any], fallback: dict[str, Any], *keys: str) -> Any:
    for source in (primary, fallback):
        for key in keys:
            if source.get(key) is not None:
                return source[key]
    return None


def _as_list(value: Any, name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SourceDataError(f"'{name}' must be a list of records")
    return value


def _parse_schedules(value: Any) -> list[ScheduleAssignment]:
    """Schedules come either as a list of records or as a slot -> owner mapping."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [
            ScheduleAssignment(slot=str(slot), owner=str(owner))
            for slot, owner in value.items()
            if owner
        ]
    return [ScheduleAssignment.model_validate(item) for item in _as_list(value, "horarios")]
