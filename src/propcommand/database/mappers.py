"""Mapper functions to convert between domain entities and stored JSON records.

This layer isolates the serialisation format, making it easy to change when
the stored shape changes. Money is stored as a decimal string, dates and
timestamps as ISO 8601 strings, enums by value.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from propcommand.domain import entities as domain


def encode(value: Any) -> Any:
    """Convert a domain value into a JSON-serialisable value."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: encode(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    # datetime is a subclass of date, so it must be checked first
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    return value


def _decimal(value: Any, default: str = "0") -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal(default)


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _strings(values: Optional[list]) -> tuple[str, ...]:
    return tuple(values or ())


def _history(points: Optional[list]) -> tuple[domain.HistoryPoint, ...]:
    return tuple(
        domain.HistoryPoint(date=_date(point["date"]), value=_decimal(point["value"]))
        for point in points or ()
    )


def account_from_record(record: dict) -> domain.Account:
    """Convert a stored record to a domain Account entity."""
    return domain.Account(
        id=record["id"],
        number=record["number"],
        name=record["name"],
        category=domain.AccountCategory(record["category"]),
        account_type=record.get("account_type", ""),
        normal_balance=domain.NormalBalance(record["normal_balance"]),
        current_balance=_decimal(record.get("current_balance")),
        created_at=_datetime(record["created_at"]),
        updated_at=_datetime(record["updated_at"]),
        description=record.get("description", ""),
        is_active=record.get("is_active", True),
    )


def ledger_entry_from_record(record: dict) -> domain.LedgerEntry:
    """Convert a stored record to a domain LedgerEntry entity."""
    related_type = record.get("related_entity_type")
    return domain.LedgerEntry(
        id=record["id"],
        transaction_id=record["transaction_id"],
        date=_date(record["date"]),
        account_id=record["account_id"],
        debit=_decimal(record["debit"]),
        credit=_decimal(record["credit"]),
        description=record.get("description", ""),
        reference=record.get("reference", ""),
        source_type=domain.SourceType(record["source_type"]),
        created_at=_datetime(record["created_at"]),
        source_id=record.get("source_id"),
        property_id=record.get("property_id"),
        related_entity_type=domain.RelatedEntityType(related_type) if related_type else None,
        related_entity_id=record.get("related_entity_id"),
        created_by=record.get("created_by", "system"),
        is_reversed=record.get("is_reversed", False),
        reversal_entry_id=record.get("reversal_entry_id"),
    )


def cashflow_projection_from_record(record: dict) -> domain.CashflowProjection:
    """Convert a stored record to a domain CashflowProjection entity."""
    return domain.CashflowProjection(
        month=record["month"],
        rent_income=_decimal(record.get("rent_income")),
        other_income=_decimal(record.get("other_income")),
        maintenance_expenses=_decimal(record.get("maintenance_expenses")),
        operating_expenses=_decimal(record.get("operating_expenses")),
        property_tax_insurance=_decimal(record.get("property_tax_insurance")),
        management_fees=_decimal(record.get("management_fees")),
        notes=record.get("notes", ""),
        updated_at=_datetime(record.get("updated_at")),
    )


def property_from_record(record: dict) -> domain.Property:
    """Convert a stored record to a domain Property entity."""
    return domain.Property(
        id=record["id"],
        name=record["name"],
        address=record.get("address", ""),
        property_type=record.get("property_type", ""),
        total_units=int(record.get("total_units", 0)),
        occupied_units=int(record.get("occupied_units", 0)),
        created_at=_datetime(record["created_at"]),
        updated_at=_datetime(record["updated_at"]),
        status=record.get("status", "active"),
        purchase_price=_decimal(record.get("purchase_price")),
        current_value=_decimal(record.get("current_value")),
        monthly_income=_decimal(record.get("monthly_income")),
        monthly_expenses=_decimal(record.get("monthly_expenses")),
        owner=record.get("owner", ""),
        acquisition_date=_date(record.get("acquisition_date")),
        notes=record.get("notes", ""),
    )


def payment_record_from_record(record: dict) -> domain.PaymentRecord:
    """Convert a stored record to a domain PaymentRecord entity."""
    return domain.PaymentRecord(
        id=record["id"],
        date=_date(record["date"]),
        amount=_decimal(record["amount"]),
        method=record.get("method", ""),
        recorded_at=_datetime(record["recorded_at"]),
        reference=record.get("reference", ""),
        notes=record.get("notes", ""),
        for_month=record.get("for_month"),
        ledger_transaction_id=record.get("ledger_transaction_id"),
    )


def tenant_from_record(record: dict) -> domain.Tenant:
    """Convert a stored record to a domain Tenant entity."""
    return domain.Tenant(
        id=record["id"],
        property_id=record["property_id"],
        unit_number=record.get("unit_number", ""),
        name=record["name"],
        monthly_rent=_decimal(record.get("monthly_rent")),
        created_at=_datetime(record["created_at"]),
        updated_at=_datetime(record["updated_at"]),
        contact=record.get("contact", ""),
        lease_start_date=_date(record.get("lease_start_date")),
        lease_end_date=_date(record.get("lease_end_date")),
        deposit=_decimal(record.get("deposit")),
        outstanding_balance=_decimal(record.get("outstanding_balance")),
        last_payment_date=_date(record.get("last_payment_date")),
        last_payment_amount=_optional_decimal(record.get("last_payment_amount")),
        payment_history=tuple(
            payment_record_from_record(item) for item in record.get("payment_history") or ()
        ),
        notes=record.get("notes", ""),
    )


def maintenance_request_from_record(record: dict) -> domain.MaintenanceRequest:
    """Convert a stored record to a domain MaintenanceRequest entity."""
    return domain.MaintenanceRequest(
        id=record["id"],
        property_id=record["property_id"],
        category=record.get("category", "other"),
        priority=record.get("priority", "routine"),
        status=domain.MaintenanceStatus(record["status"]),
        description=record.get("description", ""),
        reported_date=_date(record["reported_date"]),
        created_at=_datetime(record["created_at"]),
        updated_at=_datetime(record["updated_at"]),
        tenant_id=record.get("tenant_id"),
        unit_number=record.get("unit_number"),
        scheduled_date=_date(record.get("scheduled_date")),
        completed_date=_date(record.get("completed_date")),
        assigned_vendor_id=record.get("assigned_vendor_id"),
        estimated_cost=_decimal(record.get("estimated_cost")),
        actual_cost=_decimal(record.get("actual_cost")),
        response_time_hours=_optional_decimal(record.get("response_time_hours")),
        ledger_transaction_id=record.get("ledger_transaction_id"),
        notes=record.get("notes", ""),
    )


def vendor_from_record(record: dict) -> domain.Vendor:
    """Convert a stored record to a domain Vendor entity."""
    return domain.Vendor(
        id=record["id"],
        name=record["name"],
        created_at=_datetime(record["created_at"]),
        updated_at=_datetime(record["updated_at"]),
        contact_person=record.get("contact_person", ""),
        phone=record.get("phone", ""),
        email=record.get("email", ""),
        specializations=_strings(record.get("specializations")),
        rating=_decimal(record.get("rating")),
        total_jobs_completed=int(record.get("total_jobs_completed", 0)),
        is_preferred=record.get("is_preferred", False),
        status=record.get("status", "active"),
        notes=record.get("notes", ""),
    )


def rock_from_record(record: dict) -> domain.Rock:
    """Convert a stored record to a domain Rock entity."""
    return domain.Rock(
        id=record["id"],
        title=record["title"],
        owner=record.get("owner", ""),
        due_date=_date(record["due_date"]),
        status=domain.Status(record["status"]),
        progress=int(record.get("progress", 0)),
        created_at=_datetime(record["created_at"]),
        description=record.get("description", ""),
        quarter=record.get("quarter", ""),
        category=record.get("category", ""),
        completed_at=_datetime(record.get("completed_at")),
    )


def kpi_from_record(record: dict) -> domain.KPI:
    """Convert a stored record to a domain KPI entity."""
    return domain.KPI(
        id=record["id"],
        name=record["name"],
        current_value=_decimal(record["current_value"]),
        target_value=_decimal(record["target_value"]),
        unit=record.get("unit", ""),
        status=domain.Status(record["status"]),
        trend=domain.Trend(record.get("trend", "stable")),
        last_updated=_datetime(record["last_updated"]),
        description=record.get("description", ""),
        frequency=record.get("frequency", "monthly"),
        higher_is_better=record.get("higher_is_better", True),
        history=_history(record.get("history")),
    )


def critical_number_from_record(record: dict) -> domain.CriticalNumber:
    """Convert a stored record to a domain CriticalNumber entity."""
    return domain.CriticalNumber(
        id=record["id"],
        name=record["name"],
        current_value=_decimal(record["current_value"]),
        target_value=_decimal(record["target_value"]),
        unit=record.get("unit", ""),
        status=domain.Status(record["status"]),
        last_updated=_datetime(record["last_updated"]),
        description=record.get("description", ""),
        category=record.get("category", "Financial"),
        higher_is_better=record.get("higher_is_better", True),
        history=_history(record.get("history")),
    )


def huddle_from_record(record: dict) -> domain.Huddle:
    """Convert a stored record to a domain Huddle entity."""
    return domain.Huddle(
        id=record["id"],
        date=_date(record["date"]),
        huddle_type=record.get("huddle_type", "daily"),
        created_at=_datetime(record["created_at"]),
        attendees=_strings(record.get("attendees")),
        wins=_strings(record.get("wins")),
        stucks=_strings(record.get("stucks")),
        priorities=_strings(record.get("priorities")),
        notes=record.get("notes", ""),
        created_by=record.get("created_by", ""),
    )


def strategic_plan_from_record(record: dict) -> domain.StrategicPlan:
    """Convert a stored record to a domain StrategicPlan entity."""
    return domain.StrategicPlan(
        core_values=_strings(record.get("core_values")),
        purpose=record.get("purpose", ""),
        bhag=record.get("bhag", ""),
        three_year_picture=record.get("three_year_picture", ""),
        annual_theme=record.get("annual_theme", ""),
        annual_initiatives=_strings(record.get("annual_initiatives")),
        quarterly_theme=record.get("quarterly_theme", ""),
        quarterly_objectives=_strings(record.get("quarterly_objectives")),
        last_updated=_datetime(record.get("last_updated")),
    )
