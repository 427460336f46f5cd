"""Tests for the property service."""

from datetime import date
from decimal import Decimal

import pytest

from propcommand.domain.errors import DependencyError, NotFoundError, ValidationError


def test_create_property(property_service, clock):
    prop = property_service.create_property(name="  Ntinda Court ", total_units=6, occupied_units=6)

    assert prop.id.startswith("prop")
    assert prop.name == "Ntinda Court"
    assert prop.status == "active"
    assert prop.created_at == clock()
    assert property_service.get_property(prop.id) == prop


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": ""},
        {"name": "Block", "total_units": 4, "occupied_units": 5},
        {"name": "Block", "total_units": -1},
    ],
)
def test_create_property_validation(property_service, kwargs):
    with pytest.raises(ValidationError):
        property_service.create_property(**kwargs)


def test_list_properties_sorted_and_filtered(property_service):
    property_service.create_property(name="muyenga villas")
    sold = property_service.create_property(name="Bugolobi Flats")
    property_service.create_property(name="Kansanga Annex")
    property_service.update_property(sold.id, status="sold")

    assert [p.name for p in property_service.list_properties()] == [
        "Bugolobi Flats",
        "Kansanga Annex",
        "muyenga villas",
    ]
    assert [p.name for p in property_service.list_properties(status="sold")] == ["Bugolobi Flats"]


def test_update_property(property_service, sample_property, clock):
    clock.advance(days=1)

    updated = property_service.update_property(sample_property.id, occupied_units=12, notes="Fully let")

    assert updated.occupied_units == 12
    assert updated.notes == "Fully let"
    assert updated.created_at == sample_property.created_at
    assert updated.updated_at == clock()


def test_update_property_checks_units(property_service, sample_property):
    with pytest.raises(ValidationError):
        property_service.update_property(sample_property.id, occupied_units=13)
    with pytest.raises(ValidationError):
        property_service.update_property(sample_property.id, id="other")

    assert property_service.get_property(sample_property.id).occupied_units == 10


def test_update_unknown_property(property_service):
    with pytest.raises(NotFoundError):
        property_service.update_property("prop-missing", name="X")


def test_delete_property_with_tenants_is_blocked(property_service, sample_tenant):
    with pytest.raises(DependencyError, match="1 tenant"):
        property_service.delete_property(sample_tenant.property_id)


def test_delete_property(property_service, sample_property):
    property_service.delete_property(sample_property.id)

    assert property_service.get_property(sample_property.id) is None
    with pytest.raises(NotFoundError):
        property_service.delete_property(sample_property.id)


def test_property_metrics(property_service, tenant_service, sample_tenant):
    tenant_service.record_payment(sample_tenant.id, Decimal("750000"), payment_date=date(2025, 3, 10))
    tenant_service.record_payment(
        sample_tenant.id, Decimal("1500000"), payment_date=date(2025, 3, 1), for_month="2025-02"
    )

    result = property_service.metrics(sample_tenant.property_id)

    assert result.property_name == "Kololo Heights"
    assert result.noi == Decimal("12000000")
    assert result.cap_rate == Decimal("12")
    assert result.occupancy_rate + result.vacancy_rate == Decimal("100")
    assert result.collection_rate == Decimal("50")


def test_portfolio(property_service, sample_property):
    property_service.create_property(
        name="Ntinda Court",
        total_units=8,
        occupied_units=6,
        current_value=Decimal("800000000"),
        monthly_income=Decimal("9000000"),
        monthly_expenses=Decimal("3000000"),
    )

    totals = property_service.portfolio()

    assert totals.total_properties == 2
    assert totals.total_units == 20
    assert totals.occupancy_rate == Decimal("80")
    assert totals.noi == Decimal("18000000")
    assert totals.portfolio_value == Decimal("2000000000")
