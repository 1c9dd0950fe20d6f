"""Shared pytest fixtures for safeTicket sync tests."""

from typing import Any

import pytest

from safeticket_sync.core.source import parse_source_dataset
from safeticket_sync.models.records import SourceDataset
from tests.fakes import FakeTableClient


@pytest.fixture
def legacy_data() -> dict[str, Any]:
    """Legacy data module export in its original layout."""
    return {
        "boletos": {
            "ventas": [
                {"dia": "Viernes", "zona": "General", "precio": 1200, "tel": "5512345678"},
                {"dia": "Sabado", "zona": "VIP", "precio": 3500, "tel": "5599990000"},
            ],
            "cambios": [
                {
                    "busca": "Preferente",
                    "dia_busca": "Sabado",
                    "ofrece": "General",
                    "dia_ofrece": "Viernes",
                    "tel": "5587654321",
                }
            ],
        },
        "infoDinamica": {
            "titulo": "Intercambio",
            "admin": "Admin",
            "mensaje": "Bienvenidos",
            "reglas": "Sin reventa",
        },
        "horarios": {"10:00": "Ana", "12:00": "Luis"},
    }


@pytest.fixture
def dataset(legacy_data: dict[str, Any]) -> SourceDataset:
    return parse_source_dataset(legacy_data)


@pytest.fixture
def fake_client() -> FakeTableClient:
    return FakeTableClient()
