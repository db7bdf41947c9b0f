"""Shared fixtures: a fresh in-memory ledger with a fixed clock."""

from datetime import datetime

import pytest

from kimbila.audit import AuditLogger
from kimbila.config import AppSettings, StorageSettings
from kimbila.ledger import LedgerService, LedgerState
from kimbila.queries import LedgerQueries
from kimbila.services.storage import InMemoryStorage


FIXED_NOW = datetime(2024, 5, 17, 10, 30)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def app_settings():
    return AppSettings(business_name="Banca da Ana", low_stock_threshold=5)


@pytest.fixture
def storage_settings():
    return StorageSettings()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def state():
    return LedgerState()


@pytest.fixture
def ledger(state, storage, audit_logger, app_settings, storage_settings):
    return LedgerService(
        state=state,
        storage=storage,
        audit_logger=audit_logger,
        settings=app_settings,
        storage_settings=storage_settings,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def queries(state, app_settings):
    return LedgerQueries(state, app_settings)


@pytest.fixture
def soap(ledger):
    """Soap: cost 300, price 500, 10 in stock."""
    return ledger.add_product({
        "name": "Soap",
        "category": "Hygiene",
        "cost": "300",
        "price": "500",
        "stock": "10",
    })
