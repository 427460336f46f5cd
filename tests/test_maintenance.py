"""Tests for maintenance requests and vendors."""

from datetime import date
from decimal import Decimal

import pytest

from propcommand.domain.entities import MaintenanceStatus, SourceType
from propcommand.domain.errors import NotFoundError, StorageError, ValidationError


@pytest.fixture
def request_(maintenance_service, sample_property, chart):
    return maintenance_service.create_request(
        sample_property.id,
        "Burst pipe in unit A1",
        category="plumbing",
        priority="urgent",
        unit_number="A1",
        reported_date=date(2025, 3, 13),
        estimated_cost=Decimal("300000"),
    )


@pytest.fixture
def plumber(vendor_service):
    return vendor_service.create_vendor(
        "Kampala Plumbing Ltd", specializations=["plumbing"], rating=Decimal("4.5"), is_preferred=True
    )


def test_create_request(request_, maintenance_service):
    assert request_.status == MaintenanceStatus.PENDING
    assert request_.ledger_transaction_id is None
    assert maintenance_service.get_request(request_.id) == request_


@pytest.mark.parametrize(
    "kwargs",
    [
        {"description": ""},
        {"description": "Leak", "priority": "whenever"},
        {"description": "Leak", "estimated_cost": Decimal("-1")},
    ],
)
def test_create_request_validation(maintenance_service, sample_property, kwargs):
    with pytest.raises(ValidationError):
        maintenance_service.create_request(sample_property.id, **kwargs)


def test_create_request_requires_property(maintenance_service):
    with pytest.raises(NotFoundError):
        maintenance_service.create_request("prop-missing", "Leak")


def test_complete_posts_cost_once(request_, maintenance_service, ledger, chart, registry):
    completed = maintenance_service.complete(request_.id, actual_cost=Decimal("250000"))

    assert completed.status == MaintenanceStatus.COMPLETED
    assert completed.completed_date == date(2025, 3, 15)
    assert completed.response_time_hours == Decimal("48")
    entries = ledger.by_transaction(completed.ledger_transaction_id)
    assert {e.account_id for e in entries} == {chart["5000"].id, chart["1000"].id}
    assert all(e.source_type == SourceType.MAINTENANCE and e.source_id == request_.id for e in entries)

    maintenance_service.update_request(request_.id, notes="Invoice filed", actual_cost=Decimal("250000"))

    assert len(ledger.list_entries()) == 2
    assert registry.get_account_by_number("5000").current_balance == Decimal("250000")


def test_cost_recorded_before_completion_posts_once(request_, maintenance_service, ledger):
    maintenance_service.update_request(request_.id, status="in-progress", actual_cost="80000")
    maintenance_service.complete(request_.id)

    assert len(ledger.list_entries()) == 2


def test_failed_request_write_does_not_post_twice(
    request_, maintenance_service, ledger, registry, temp_db, monkeypatch
):
    original_set = temp_db.set
    failures = []

    def flaky_set(key, value):
        if key == "vgk_maintenance_requests" and not failures:
            failures.append(key)
            raise StorageError("disk full")
        original_set(key, value)

    monkeypatch.setattr(temp_db, "set", flaky_set)

    with pytest.raises(StorageError):
        maintenance_service.complete(request_.id, actual_cost=Decimal("100"))
    completed = maintenance_service.complete(request_.id, actual_cost=Decimal("100"))

    assert registry.get_account_by_number("5000").current_balance == Decimal("100")
    assert len(ledger.list_entries()) == 2
    assert completed.ledger_transaction_id == ledger.list_entries()[0].transaction_id


def test_completion_without_cost_posts_nothing(request_, maintenance_service, ledger):
    completed = maintenance_service.complete(request_.id, completed_date=date(2025, 3, 14))

    assert completed.response_time_hours == Decimal("24")
    assert completed.ledger_transaction_id is None
    assert ledger.list_entries() == []


def test_update_request_rejects_protected_fields(request_, maintenance_service):
    with pytest.raises(ValidationError):
        maintenance_service.update_request(request_.id, ledger_transaction_id="txn-x")
    with pytest.raises(ValidationError):
        maintenance_service.update_request(request_.id, actual_cost=Decimal("-10"))


def test_assign_vendor_and_job_count(request_, maintenance_service, vendor_service, plumber):
    assigned = maintenance_service.assign_vendor(request_.id, plumber.id)

    assert assigned.status == MaintenanceStatus.ASSIGNED
    assert assigned.assigned_vendor_id == plumber.id

    maintenance_service.complete(request_.id)
    maintenance_service.update_request(request_.id, notes="Follow-up visit")

    assert vendor_service.get_vendor(plumber.id).total_jobs_completed == 1


def test_reopened_job_counts_once(request_, maintenance_service, vendor_service, plumber):
    maintenance_service.assign_vendor(request_.id, plumber.id)
    maintenance_service.complete(request_.id)

    maintenance_service.update_request(request_.id, status="in-progress", notes="Leak is back")
    maintenance_service.complete(request_.id)

    assert vendor_service.get_vendor(plumber.id).total_jobs_completed == 1


def test_assign_unknown_vendor(request_, maintenance_service):
    with pytest.raises(NotFoundError):
        maintenance_service.assign_vendor(request_.id, "vendor-missing")


def test_list_requests(request_, maintenance_service, sample_property):
    older = maintenance_service.create_request(
        sample_property.id, "Paint corridor", priority="preventive", reported_date=date(2025, 2, 1)
    )
    maintenance_service.complete(older.id)

    assert [r.id for r in maintenance_service.list_requests()] == [request_.id, older.id]
    assert maintenance_service.list_requests(status="completed") == [maintenance_service.get_request(older.id)]
    assert maintenance_service.list_requests(property_id="prop-other") == []


def test_average_response_time(request_, maintenance_service, sample_property):
    other = maintenance_service.create_request(sample_property.id, "Gate motor", reported_date=date(2025, 3, 11))
    maintenance_service.complete(request_.id)
    maintenance_service.complete(other.id)

    assert maintenance_service.average_response_time() == Decimal("72")


def test_response_time_spread(request_, maintenance_service, sample_property):
    assert maintenance_service.median_response_time() == Decimal("0")

    slow = maintenance_service.create_request(sample_property.id, "Gate motor", reported_date=date(2025, 3, 11))
    quick = maintenance_service.create_request(sample_property.id, "Bulb", reported_date=date(2025, 3, 14))
    for request in (request_, slow, quick):
        maintenance_service.complete(request.id)

    assert maintenance_service.median_response_time() == Decimal("48")
    assert maintenance_service.response_time_percentile() == Decimal("96")
    assert maintenance_service.response_time_percentile(Decimal("30")) == Decimal("24")


def test_delete_request_keeps_posted_cost(request_, maintenance_service, ledger):
    maintenance_service.complete(request_.id, actual_cost=Decimal("1000"))

    maintenance_service.delete_request(request_.id)

    assert maintenance_service.get_request(request_.id) is None
    assert len(ledger.list_entries()) == 2


class TestVendors:
    def test_list_vendors_preferred_first(self, vendor_service, plumber):
        vendor_service.create_vendor("Acme Electrical", specializations=["electrical"])
        vendor_service.create_vendor("Bwaise Builders", specializations=["plumbing", "masonry"])

        assert [v.name for v in vendor_service.list_vendors()] == [
            "Kampala Plumbing Ltd",
            "Acme Electrical",
            "Bwaise Builders",
        ]
        assert [v.name for v in vendor_service.list_vendors("plumbing")] == [
            "Kampala Plumbing Ltd",
            "Bwaise Builders",
        ]

    @pytest.mark.parametrize("rating", [Decimal("-0.5"), Decimal("5.1")])
    def test_rating_range(self, vendor_service, rating):
        with pytest.raises(ValidationError):
            vendor_service.create_vendor("Shaky Ltd", rating=rating)

    def test_update_vendor(self, vendor_service, plumber):
        updated = vendor_service.update_vendor(plumber.id, specializations=["plumbing", "drainage"], is_preferred=False)

        assert updated.specializations == ("plumbing", "drainage")
        assert vendor_service.get_vendor(plumber.id) == updated
        with pytest.raises(ValidationError):
            vendor_service.update_vendor(plumber.id, rating=Decimal("7"))

    def test_delete_vendor(self, vendor_service, plumber):
        vendor_service.delete_vendor(plumber.id)

        assert vendor_service.get_vendor(plumber.id) is None
        with pytest.raises(NotFoundError):
            vendor_service.delete_vendor(plumber.id)
