"""Domain model entities for propcommand.

These are pure data classes representing business concepts, independent of
how the key-value store serialises them. Entities are immutable; services
produce updated copies with ``dataclasses.replace``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountCategory(str, Enum):
    """Top-level chart of accounts category."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"


class NormalBalance(str, Enum):
    """Side on which an account balance increases."""

    DEBIT = "debit"
    CREDIT = "credit"


def normal_balance_for(category: AccountCategory) -> NormalBalance:
    """Return the fixed normal balance for an account category."""
    if category in (AccountCategory.ASSET, AccountCategory.EXPENSE):
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


class SourceType(str, Enum):
    """Business origin of a ledger entry."""

    PAYMENT = "payment"
    MAINTENANCE = "maintenance"
    MANUAL = "manual"
    DEPRECIATION = "depreciation"
    ADJUSTMENT = "adjustment"


class RelatedEntityType(str, Enum):
    """Kind of record a ledger entry points back to."""

    TENANT = "tenant"
    VENDOR = "vendor"
    PROPERTY = "property"
    MAINTENANCE = "maintenance"


class Status(str, Enum):
    """Traffic-light status shared by KPIs, critical numbers and rocks."""

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class Trend(str, Enum):
    """Direction of the last movement in a value history."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class PaymentStatus(str, Enum):
    """Tenant rent payment standing."""

    PAID = "paid"
    DUE = "due"
    OVERDUE = "overdue"


class MaintenanceStatus(str, Enum):
    """Lifecycle of a maintenance request."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry.

    ``current_balance`` is a cache of the signed sum of the account's live
    ledger entries; the ledger is the source of truth.
    """

    id: str
    number: str
    name: str
    category: AccountCategory
    account_type: str
    normal_balance: NormalBalance
    current_balance: Decimal
    created_at: datetime
    updated_at: datetime
    description: str = ""
    is_active: bool = True

    @property
    def parent_number(self) -> Optional[str]:
        """Number of the parent account for dotted sub-accounts."""
        if "." not in self.number:
            return None
        return self.number.split(".", 1)[0]


@dataclass(frozen=True)
class EntryLine:
    """One unsaved leg of a balanced transaction."""

    account_id: str
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")


@dataclass(frozen=True)
class LedgerEntry:
    """General ledger row. Never edited after creation except reversal flags."""

    id: str
    transaction_id: str
    date: date
    account_id: str
    debit: Decimal
    credit: Decimal
    description: str
    reference: str
    source_type: SourceType
    created_at: datetime
    source_id: Optional[str] = None
    property_id: Optional[str] = None
    related_entity_type: Optional[RelatedEntityType] = None
    related_entity_id: Optional[str] = None
    created_by: str = "system"
    is_reversed: bool = False
    reversal_entry_id: Optional[str] = None

    @property
    def net(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class CashflowProjection:
    """Manually entered forecast for one month."""

    month: str
    rent_income: Decimal = Decimal("0")
    other_income: Decimal = Decimal("0")
    maintenance_expenses: Decimal = Decimal("0")
    operating_expenses: Decimal = Decimal("0")
    property_tax_insurance: Decimal = Decimal("0")
    management_fees: Decimal = Decimal("0")
    notes: str = ""
    updated_at: Optional[datetime] = None

    @property
    def projected_net(self) -> Decimal:
        """Projected income minus projected expenses."""
        return (self.rent_income + self.other_income) - (
            self.maintenance_expenses
            + self.operating_expenses
            + self.property_tax_insurance
            + self.management_fees
        )


@dataclass(frozen=True)
class CashflowLine:
    """Projection joined with actuals aggregated from the ledger."""

    projection: CashflowProjection
    actual_rent_income: Decimal
    actual_other_income: Decimal
    actual_maintenance_expenses: Decimal
    actual_operating_expenses: Decimal
    actual_property_tax_insurance: Decimal
    actual_management_fees: Decimal
    variance_percent: Decimal

    @property
    def month(self) -> str:
        return self.projection.month

    @property
    def projected_net(self) -> Decimal:
        return self.projection.projected_net

    @property
    def actual_net(self) -> Decimal:
        return (self.actual_rent_income + self.actual_other_income) - (
            self.actual_maintenance_expenses
            + self.actual_operating_expenses
            + self.actual_property_tax_insurance
            + self.actual_management_fees
        )

    @property
    def variance(self) -> Decimal:
        return self.actual_net - self.projected_net


@dataclass(frozen=True)
class HistoryPoint:
    """Dated snapshot of a tracked value."""

    date: date
    value: Decimal


@dataclass(frozen=True)
class Property:
    """Managed property."""

    id: str
    name: str
    address: str
    property_type: str
    total_units: int
    occupied_units: int
    created_at: datetime
    updated_at: datetime
    status: str = "active"
    purchase_price: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    monthly_income: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    owner: str = ""
    acquisition_date: Optional[date] = None
    notes: str = ""


@dataclass(frozen=True)
class PaymentRecord:
    """Rent payment received from a tenant."""

    id: str
    date: date
    amount: Decimal
    method: str
    recorded_at: datetime
    reference: str = ""
    notes: str = ""
    for_month: Optional[str] = None
    ledger_transaction_id: Optional[str] = None


@dataclass(frozen=True)
class Tenant:
    """Tenant occupying a unit."""

    id: str
    property_id: str
    unit_number: str
    name: str
    monthly_rent: Decimal
    created_at: datetime
    updated_at: datetime
    contact: str = ""
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    deposit: Decimal = Decimal("0")
    outstanding_balance: Decimal = Decimal("0")
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[Decimal] = None
    payment_history: tuple[PaymentRecord, ...] = ()
    notes: str = ""


@dataclass(frozen=True)
class MaintenanceRequest:
    """Repair or upkeep job against a property."""

    id: str
    property_id: str
    category: str
    priority: str
    status: MaintenanceStatus
    description: str
    reported_date: date
    created_at: datetime
    updated_at: datetime
    tenant_id: Optional[str] = None
    unit_number: Optional[str] = None
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None
    assigned_vendor_id: Optional[str] = None
    estimated_cost: Decimal = Decimal("0")
    actual_cost: Decimal = Decimal("0")
    response_time_hours: Optional[Decimal] = None
    ledger_transaction_id: Optional[str] = None
    notes: str = ""


@dataclass(frozen=True)
class Vendor:
    """Contractor used for maintenance work."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    specializations: tuple[str, ...] = ()
    rating: Decimal = Decimal("0")
    total_jobs_completed: int = 0
    is_preferred: bool = False
    status: str = "active"
    notes: str = ""


@dataclass(frozen=True)
class Rock:
    """Quarterly strategic priority."""

    id: str
    title: str
    owner: str
    due_date: date
    status: Status
    progress: int
    created_at: datetime
    description: str = ""
    quarter: str = ""
    category: str = ""
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class KPI:
    """Key performance indicator with derived status and trend."""

    id: str
    name: str
    current_value: Decimal
    target_value: Decimal
    unit: str
    status: Status
    trend: Trend
    last_updated: datetime
    description: str = ""
    frequency: str = "monthly"
    higher_is_better: bool = True
    history: tuple[HistoryPoint, ...] = ()


@dataclass(frozen=True)
class CriticalNumber:
    """Leading-indicator metric with an append-only history."""

    id: str
    name: str
    current_value: Decimal
    target_value: Decimal
    unit: str
    status: Status
    last_updated: datetime
    description: str = ""
    category: str = "Financial"
    higher_is_better: bool = True
    history: tuple[HistoryPoint, ...] = ()


@dataclass(frozen=True)
class Huddle:
    """Meeting rhythm record."""

    id: str
    date: date
    huddle_type: str
    created_at: datetime
    attendees: tuple[str, ...] = ()
    wins: tuple[str, ...] = ()
    stucks: tuple[str, ...] = ()
    priorities: tuple[str, ...] = ()
    notes: str = ""
    created_by: str = ""


@dataclass(frozen=True)
class StrategicPlan:
    """One Page Strategic Plan."""

    core_values: tuple[str, ...] = ()
    purpose: str = ""
    bhag: str = ""
    three_year_picture: str = ""
    annual_theme: str = ""
    annual_initiatives: tuple[str, ...] = ()
    quarterly_theme: str = ""
    quarterly_objectives: tuple[str, ...] = ()
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class TrialBalanceRow:
    """Per-account totals for a trial balance."""

    account: Account
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance across the whole chart of accounts."""

    rows: tuple[TrialBalanceRow, ...] = field(default_factory=tuple)

    @property
    def total_debit(self) -> Decimal:
        return sum((row.total_debit for row in self.rows), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((row.total_credit for row in self.rows), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


@dataclass(frozen=True)
class PropertyMetrics:
    """Derived performance figures for one property."""

    property_id: str
    property_name: str
    occupancy_rate: Decimal
    vacancy_rate: Decimal
    noi: Decimal
    oer: Decimal
    cap_rate: Decimal
    collection_rate: Decimal


@dataclass(frozen=True)
class PortfolioMetrics:
    """Totals across every managed property."""

    total_properties: int
    total_units: int
    occupied_units: int
    occupancy_rate: Decimal
    total_monthly_income: Decimal
    total_monthly_expenses: Decimal
    noi: Decimal
    portfolio_value: Decimal
