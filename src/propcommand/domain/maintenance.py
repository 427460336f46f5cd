"""Maintenance request domain service."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import maintenance_request_from_record, property_from_record
from propcommand.domain import metrics
from propcommand.domain.entities import MaintenanceRequest, MaintenanceStatus, SourceType
from propcommand.domain.errors import ValidationError
from propcommand.domain.records import apply_changes, require_record
from propcommand.domain.transactions import TransactionRecorder
from propcommand.domain.vendors import VendorService
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

PRIORITIES = ("emergency", "urgent", "routine", "preventive")


class MaintenanceService:
    """Service for maintenance requests and their cost postings.

    The first update that records an actual cost posts it to the ledger
    (maintenance expense / cash) and stores the transaction id on the
    request; later updates never post again.
    """

    def __init__(
        self,
        store: KeyValueStore,
        recorder: Optional[TransactionRecorder] = None,
        vendors: Optional[VendorService] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        """Initialize maintenance service.

        Args:
            store: Key-value store instance
            recorder: Transaction recorder for cost postings
            vendors: Vendor service, credited with completed jobs
            clock: Source of timestamps and today's date
            id_factory: Source of new request ids
        """
        self.store = store
        self.recorder = recorder or TransactionRecorder(store, clock=clock)
        self.vendors = vendors or VendorService(store, clock=clock)
        self.clock = clock
        self.id_factory = id_factory
        self.requests = RecordCollection(store, keys.MAINTENANCE_REQUESTS, maintenance_request_from_record)
        self.properties = RecordCollection(store, keys.PROPERTIES, property_from_record)

    def create_request(
        self,
        property_id: str,
        description: str,
        category: str = "other",
        priority: str = "routine",
        tenant_id: Optional[str] = None,
        unit_number: Optional[str] = None,
        reported_date: Optional[date] = None,
        estimated_cost: Decimal = ZERO,
        notes: str = "",
    ) -> MaintenanceRequest:
        """Open a maintenance request against a property.

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: On an empty description, unknown priority or negative cost
        """
        require_record(self.properties, "Property", property_id)
        if not description.strip():
            raise ValidationError("Maintenance description is required")
        if priority not in PRIORITIES:
            raise ValidationError(f"Unknown priority '{priority}'")
        estimated_cost = Decimal(str(estimated_cost))
        if estimated_cost < ZERO:
            raise ValidationError("Estimated cost cannot be negative")

        now = self.clock()
        request = MaintenanceRequest(
            id=self.id_factory("maint"),
            property_id=property_id,
            category=category,
            priority=priority,
            status=MaintenanceStatus.PENDING,
            description=description.strip(),
            reported_date=reported_date or now.date(),
            created_at=now,
            updated_at=now,
            tenant_id=tenant_id,
            unit_number=unit_number,
            estimated_cost=estimated_cost,
            notes=notes,
        )
        self.requests.add(request)
        logger.info("Opened maintenance request %s: %s", request.id, request.description)
        return request

    def get_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        return self.requests.get(request_id)

    def require_request(self, request_id: str) -> MaintenanceRequest:
        return require_record(self.requests, "Maintenance request", request_id)

    def list_requests(
        self,
        property_id: Optional[str] = None,
        status: Optional[MaintenanceStatus] = None,
    ) -> list[MaintenanceRequest]:
        """List requests, newest reported first."""
        requests = self.requests.load()
        if property_id is not None:
            requests = [r for r in requests if r.property_id == property_id]
        if status is not None:
            requests = [r for r in requests if r.status == MaintenanceStatus(status)]
        return sorted(requests, key=lambda r: r.reported_date, reverse=True)

    def update_request(self, request_id: str, **changes) -> MaintenanceRequest:
        """Update a request.

        Completing a request fills in the completion date and response time.
        Recording an actual cost posts it to the ledger once.

        Raises:
            NotFoundError: If the request does not exist
            ValidationError: On an unknown or protected field, or a negative cost
        """
        if changes.get("status") is not None:
            changes["status"] = MaintenanceStatus(changes["status"])
        if changes.get("actual_cost") is not None:
            changes["actual_cost"] = Decimal(str(changes["actual_cost"]))

        with self.store.write_lock:
            request = self.require_request(request_id)
            updated = apply_changes(
                request,
                {**changes, "updated_at": self.clock()},
                ("id", "created_at", "ledger_transaction_id", "response_time_hours"),
            )
            if updated.actual_cost < ZERO or updated.estimated_cost < ZERO:
                raise ValidationError("Costs cannot be negative")

            newly_completed = (
                updated.status == MaintenanceStatus.COMPLETED
                and request.status != MaintenanceStatus.COMPLETED
            )
            first_completion = newly_completed and request.completed_date is None
            if updated.status == MaintenanceStatus.COMPLETED:
                completed_date = updated.completed_date or self.clock().date()
                updated = replace(updated, completed_date=completed_date)
                if updated.response_time_hours is None:
                    updated = replace(
                        updated,
                        response_time_hours=metrics.response_time_hours(
                            updated.reported_date, completed_date
                        ),
                    )

            if updated.actual_cost > ZERO and updated.ledger_transaction_id is None:
                # A posting left behind by a failed request write is reused.
                posted = self.recorder.ledger.by_source(SourceType.MAINTENANCE, updated.id)
                if posted:
                    transaction_id = posted[0].transaction_id
                else:
                    debit_entry, _ = self.recorder.record_maintenance_cost(
                        request_id=updated.id,
                        amount=updated.actual_cost,
                        cost_date=updated.completed_date or self.clock().date(),
                        description=updated.description,
                        property_id=updated.property_id,
                    )
                    transaction_id = debit_entry.transaction_id
                updated = replace(updated, ledger_transaction_id=transaction_id)

            self.requests.replace(updated)

            if first_completion and updated.assigned_vendor_id:
                self.vendors.record_job_completed(updated.assigned_vendor_id)

        if newly_completed:
            logger.info("Completed maintenance request %s", request_id)
        return updated

    def assign_vendor(self, request_id: str, vendor_id: str) -> MaintenanceRequest:
        """Assign a vendor and move a pending request to assigned.

        Raises:
            NotFoundError: If the request or vendor does not exist
        """
        self.vendors.require_vendor(vendor_id)
        request = self.require_request(request_id)
        status = MaintenanceStatus.ASSIGNED if request.status == MaintenanceStatus.PENDING else None
        return self.update_request(request_id, assigned_vendor_id=vendor_id, status=status)

    def complete(
        self,
        request_id: str,
        actual_cost: Optional[Decimal] = None,
        completed_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> MaintenanceRequest:
        """Mark a request completed, optionally recording its actual cost."""
        return self.update_request(
            request_id,
            status=MaintenanceStatus.COMPLETED,
            actual_cost=actual_cost,
            completed_date=completed_date,
            notes=notes,
        )

    def delete_request(self, request_id: str) -> None:
        """Delete a request. A posted cost stays in the ledger."""
        self.require_request(request_id)
        self.requests.remove(request_id)
        logger.info("Deleted maintenance request %s", request_id)

    def _response_times(self) -> list[Decimal]:
        return [r.response_time_hours for r in self.requests.load() if r.response_time_hours is not None]

    def average_response_time(self) -> Decimal:
        """Mean response time in hours over completed requests."""
        return metrics.average(self._response_times())

    def median_response_time(self) -> Decimal:
        return metrics.median(self._response_times())

    def response_time_percentile(self, pct: Decimal = Decimal("90")) -> Decimal:
        """Nearest-rank percentile of response times, e.g. 90 for the slowest tenth."""
        return metrics.percentile(self._response_times(), pct)
