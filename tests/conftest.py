"""Shared pytest fixtures for propcommand tests."""

import os
import tempfile
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from click.testing import CliRunner

from propcommand.database.factories import create_sqlite_store
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.cashflow import CashflowForecastService
from propcommand.domain.maintenance import MaintenanceService
from propcommand.domain.properties import PropertyService
from propcommand.domain.strategy import (
    CriticalNumberService,
    HuddleService,
    KPIService,
    RockService,
    StrategicPlanService,
)
from propcommand.domain.tenants import TenantService
from propcommand.domain.transactions import TransactionRecorder
from propcommand.domain.vendors import VendorService


class FakeClock:
    """Controllable clock; call it like utc_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_date(self, day: date) -> None:
        self.now = datetime(day.year, day.month, day.day, 9, 0, tzinfo=UTC)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def temp_db():
    """Create a temporary store for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    # Cleanup
    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock fixed at 2025-03-15 09:00 UTC."""
    return FakeClock(datetime(2025, 3, 15, 9, 0, tzinfo=UTC))


@pytest.fixture
def registry(temp_db, clock):
    """Create an AccountRegistry with a temporary store."""
    return AccountRegistry(temp_db, clock=clock)


@pytest.fixture
def ledger(registry):
    return registry.ledger


@pytest.fixture
def chart(registry):
    """Seed the default chart of accounts and return accounts by number."""
    registry.seed_chart_of_accounts()
    return {acc.number: acc for acc in registry.list_accounts()}


@pytest.fixture
def recorder(temp_db, registry, clock):
    """Create a TransactionRecorder sharing the registry."""
    return TransactionRecorder(temp_db, registry=registry, clock=clock)


@pytest.fixture
def cashflow_service(temp_db, registry, clock):
    return CashflowForecastService(temp_db, registry=registry, clock=clock)


@pytest.fixture
def property_service(temp_db, clock):
    return PropertyService(temp_db, clock=clock)


@pytest.fixture
def tenant_service(temp_db, recorder, clock):
    return TenantService(temp_db, recorder=recorder, clock=clock)


@pytest.fixture
def vendor_service(temp_db, clock):
    return VendorService(temp_db, clock=clock)


@pytest.fixture
def maintenance_service(temp_db, recorder, vendor_service, clock):
    return MaintenanceService(temp_db, recorder=recorder, vendors=vendor_service, clock=clock)


@pytest.fixture
def rock_service(temp_db, clock):
    return RockService(temp_db, clock=clock)


@pytest.fixture
def kpi_service(temp_db, clock):
    return KPIService(temp_db, clock=clock)


@pytest.fixture
def critical_number_service(temp_db, clock):
    return CriticalNumberService(temp_db, clock=clock)


@pytest.fixture
def huddle_service(temp_db, clock):
    return HuddleService(temp_db, clock=clock)


@pytest.fixture
def plan_service(temp_db, clock):
    return StrategicPlanService(temp_db, clock=clock)


@pytest.fixture
def sample_property(property_service):
    """A 12-unit block with 10 units let."""
    return property_service.create_property(
        name="Kololo Heights",
        address="Plot 12, Kololo, Kampala",
        total_units=12,
        occupied_units=10,
        current_value=Decimal("1200000000"),
        monthly_income=Decimal("18000000"),
        monthly_expenses=Decimal("6000000"),
    )


@pytest.fixture
def sample_tenant(chart, tenant_service, sample_property):
    """A tenant owing one month of rent."""
    return tenant_service.create_tenant(
        property_id=sample_property.id,
        name="Grace Namukasa",
        unit_number="A1",
        monthly_rent=Decimal("1500000"),
        lease_start_date=date(2025, 1, 1),
        outstanding_balance=Decimal("1500000"),
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner."""
    return CliRunner()
