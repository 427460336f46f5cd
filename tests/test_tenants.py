"""Tests for the tenant service and rent payments."""

from datetime import date
from decimal import Decimal

import pytest

from propcommand.domain.entities import PaymentStatus, RelatedEntityType, SourceType
from propcommand.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    UnbalancedTransactionError,
    ValidationError,
)


def test_create_tenant(tenant_service, sample_tenant, sample_property):
    assert sample_tenant.property_id == sample_property.id
    assert sample_tenant.monthly_rent == Decimal("1500000")
    assert sample_tenant.payment_history == ()
    assert tenant_service.get_tenant(sample_tenant.id) == sample_tenant


def test_create_tenant_requires_property(tenant_service):
    with pytest.raises(NotFoundError):
        tenant_service.create_tenant("prop-missing", "Nobody", "B2", Decimal("1000"))


def test_unit_can_only_be_let_once(tenant_service, sample_tenant):
    with pytest.raises(ConflictError, match="A1"):
        tenant_service.create_tenant(sample_tenant.property_id, "Second", "A1", Decimal("1000"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": " "},
        {"monthly_rent": Decimal("-1")},
        {"deposit": Decimal("-1")},
        {"lease_start_date": date(2025, 6, 1), "lease_end_date": date(2025, 5, 31)},
    ],
)
def test_create_tenant_validation(tenant_service, sample_property, kwargs):
    params = {"name": "Peter Okello", "unit_number": "B1", "monthly_rent": Decimal("900000")}
    params.update(kwargs)

    with pytest.raises(ValidationError):
        tenant_service.create_tenant(sample_property.id, **params)


def test_list_tenants_by_property(tenant_service, property_service, sample_tenant):
    other = property_service.create_property(name="Ntinda Court", total_units=2)
    tenant_service.create_tenant(other.id, "Moses Kato", "1", Decimal("700000"))
    tenant_service.create_tenant(sample_tenant.property_id, "Ruth Achieng", "A0", Decimal("700000"))

    units = [t.unit_number for t in tenant_service.list_tenants(sample_tenant.property_id)]

    assert units == ["A0", "A1"]
    assert len(tenant_service.list_tenants()) == 3


def test_update_tenant_protects_payment_history(tenant_service, sample_tenant):
    with pytest.raises(ValidationError):
        tenant_service.update_tenant(sample_tenant.id, payment_history=())
    with pytest.raises(ValidationError):
        tenant_service.update_tenant(sample_tenant.id, outstanding_balance=Decimal("-5"))

    updated = tenant_service.update_tenant(sample_tenant.id, contact="+256 700 000000")
    assert updated.contact == "+256 700 000000"


def test_record_payment_posts_to_ledger(tenant_service, sample_tenant, chart, registry, ledger):
    payment = tenant_service.record_payment(
        sample_tenant.id, Decimal("1000000"), payment_date=date(2025, 3, 5), method="mobile money"
    )

    entries = ledger.by_transaction(payment.ledger_transaction_id)
    assert {(e.account_id, e.debit, e.credit) for e in entries} == {
        (chart["1000"].id, Decimal("1000000"), Decimal("0")),
        (chart["4000"].id, Decimal("0"), Decimal("1000000")),
    }
    assert all(e.source_type == SourceType.PAYMENT and e.source_id == payment.id for e in entries)
    assert all(e.related_entity_type == RelatedEntityType.TENANT for e in entries)
    assert all(e.property_id == sample_tenant.property_id for e in entries)
    assert registry.get_account_by_number("4000").current_balance == Decimal("1000000")

    tenant = tenant_service.get_tenant(sample_tenant.id)
    assert tenant.outstanding_balance == Decimal("500000")
    assert tenant.last_payment_date == date(2025, 3, 5)
    assert tenant.last_payment_amount == Decimal("1000000")
    assert tenant.payment_history == (payment,)
    assert payment.for_month == "2025-03"


def test_overpayment_floors_balance_at_zero(tenant_service, sample_tenant):
    tenant_service.record_payment(sample_tenant.id, Decimal("2000000"))

    tenant = tenant_service.get_tenant(sample_tenant.id)
    assert tenant.outstanding_balance == Decimal("0")
    assert tenant_service.payment_status(sample_tenant.id) == PaymentStatus.PAID


def test_payment_defaults_to_today(tenant_service, sample_tenant, clock):
    payment = tenant_service.record_payment(sample_tenant.id, Decimal("100"))

    assert payment.date == clock().date()


def test_invalid_payment_changes_nothing(tenant_service, sample_tenant, ledger):
    with pytest.raises(UnbalancedTransactionError):
        tenant_service.record_payment(sample_tenant.id, Decimal("0"))

    assert ledger.list_entries() == []
    assert tenant_service.get_tenant(sample_tenant.id) == sample_tenant


def test_payment_for_unknown_tenant(tenant_service, chart, ledger):
    with pytest.raises(NotFoundError):
        tenant_service.record_payment("tenant-missing", Decimal("100"))
    assert ledger.list_entries() == []


@pytest.mark.parametrize("for_month", ["March", "2025-3", "2025-13"])
def test_payment_rejects_bad_rent_month(tenant_service, sample_tenant, ledger, for_month):
    with pytest.raises(ValidationError, match="YYYY-MM"):
        tenant_service.record_payment(sample_tenant.id, Decimal("100"), for_month=for_month)

    assert ledger.list_entries() == []
    assert tenant_service.get_tenant(sample_tenant.id) == sample_tenant


def test_payment_for_earlier_month(tenant_service, sample_tenant):
    payment = tenant_service.record_payment(sample_tenant.id, Decimal("100"), for_month=" 2025-02 ")

    assert payment.for_month == "2025-02"


def test_failed_tenant_write_reverses_posting(
    tenant_service, sample_tenant, registry, ledger, temp_db, monkeypatch
):
    original_set = temp_db.set

    def failing_set(key, value):
        if key == "vgk_tenants":
            raise StorageError("disk full")
        original_set(key, value)

    monkeypatch.setattr(temp_db, "set", failing_set)

    with pytest.raises(StorageError):
        tenant_service.record_payment(sample_tenant.id, Decimal("1000000"))

    assert registry.get_account_by_number("1000").current_balance == Decimal("0")
    assert registry.get_account_by_number("4000").current_balance == Decimal("0")
    assert ledger.by_source(SourceType.PAYMENT, ledger.list_entries()[0].source_id) == []
    assert tenant_service.get_tenant(sample_tenant.id) == sample_tenant


def test_payments_ordered_by_date(tenant_service, sample_tenant):
    tenant_service.record_payment(sample_tenant.id, Decimal("200"), payment_date=date(2025, 3, 10))
    tenant_service.record_payment(sample_tenant.id, Decimal("100"), payment_date=date(2025, 2, 10))

    assert [p.amount for p in tenant_service.payments(sample_tenant.id)] == [Decimal("100"), Decimal("200")]


def test_payment_status_and_overdue_list(tenant_service, sample_tenant, clock):
    assert tenant_service.payment_status(sample_tenant.id) == PaymentStatus.OVERDUE
    assert tenant_service.overdue_tenants() == [sample_tenant]

    tenant_service.record_payment(sample_tenant.id, Decimal("500000"))

    assert tenant_service.payment_status(sample_tenant.id) == PaymentStatus.DUE
    assert tenant_service.overdue_tenants() == []

    clock.advance(days=31)
    assert tenant_service.payment_status(sample_tenant.id) == PaymentStatus.OVERDUE


def test_recalculate_outstanding(tenant_service, sample_tenant):
    tenant_service.record_payment(sample_tenant.id, Decimal("1500000"), payment_date=date(2025, 1, 3))

    # January to March due, one month paid
    balance = tenant_service.recalculate_outstanding(sample_tenant.id)

    assert balance == Decimal("3000000")
    assert tenant_service.get_tenant(sample_tenant.id).outstanding_balance == Decimal("3000000")


def test_recalculate_without_lease_start_keeps_balance(tenant_service, sample_property):
    tenant = tenant_service.create_tenant(
        sample_property.id, "Walk-in", "C3", Decimal("500000"), outstanding_balance=Decimal("42")
    )

    assert tenant_service.recalculate_outstanding(tenant.id) == Decimal("42")


def test_delete_tenant_keeps_ledger(tenant_service, sample_tenant, ledger):
    tenant_service.record_payment(sample_tenant.id, Decimal("100"))

    tenant_service.delete_tenant(sample_tenant.id)

    assert tenant_service.get_tenant(sample_tenant.id) is None
    assert len(ledger.list_entries()) == 2
