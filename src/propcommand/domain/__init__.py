"""Domain layer for propcommand application."""

from propcommand.domain.ledger import LedgerEntryStore
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.transactions import TransactionRecorder
from propcommand.domain.cashflow import CashflowForecastService
from propcommand.domain.properties import PropertyService
from propcommand.domain.tenants import TenantService
from propcommand.domain.vendors import VendorService
from propcommand.domain.maintenance import MaintenanceService
from propcommand.domain.strategy import (
    CriticalNumberService,
    HuddleService,
    KPIService,
    RockService,
    StrategicPlanService,
)

__all__ = [
    "LedgerEntryStore",
    "AccountRegistry",
    "TransactionRecorder",
    "CashflowForecastService",
    "PropertyService",
    "TenantService",
    "VendorService",
    "MaintenanceService",
    "RockService",
    "KPIService",
    "CriticalNumberService",
    "HuddleService",
    "StrategicPlanService",
]
