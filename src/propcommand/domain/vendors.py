"""Vendor domain service."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import vendor_from_record
from propcommand.domain.entities import Vendor
from propcommand.domain.errors import ValidationError
from propcommand.domain.records import apply_changes, require_record
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)

MAX_RATING = Decimal("5")


def _check_rating(rating: Decimal) -> None:
    if not Decimal("0") <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between 0 and {MAX_RATING}")


class VendorService:
    """Service for managing maintenance vendors."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.vendors = RecordCollection(store, keys.VENDORS, vendor_from_record)

    def create_vendor(
        self,
        name: str,
        contact_person: str = "",
        phone: str = "",
        email: str = "",
        specializations: Sequence[str] = (),
        rating: Decimal = Decimal("0"),
        is_preferred: bool = False,
        notes: str = "",
    ) -> Vendor:
        """Create a vendor.

        Raises:
            ValidationError: If the name is empty or the rating is out of range
        """
        if not name.strip():
            raise ValidationError("Vendor name is required")
        rating = Decimal(str(rating))
        _check_rating(rating)

        now = self.clock()
        vendor = Vendor(
            id=self.id_factory("vendor"),
            name=name.strip(),
            created_at=now,
            updated_at=now,
            contact_person=contact_person,
            phone=phone,
            email=email,
            specializations=tuple(specializations),
            rating=rating,
            is_preferred=is_preferred,
            notes=notes,
        )
        self.vendors.add(vendor)
        logger.info("Created vendor %s", vendor.name)
        return vendor

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        return self.vendors.get(vendor_id)

    def require_vendor(self, vendor_id: str) -> Vendor:
        return require_record(self.vendors, "Vendor", vendor_id)

    def list_vendors(self, specialization: Optional[str] = None) -> list[Vendor]:
        """List vendors, preferred first then by name."""
        vendors = self.vendors.load()
        if specialization is not None:
            vendors = [v for v in vendors if specialization in v.specializations]
        return sorted(vendors, key=lambda v: (not v.is_preferred, v.name.lower()))

    def update_vendor(self, vendor_id: str, **changes) -> Vendor:
        with self.store.write_lock:
            vendor = self.require_vendor(vendor_id)
            if changes.get("specializations") is not None:
                changes["specializations"] = tuple(changes["specializations"])
            updated = apply_changes(vendor, {**changes, "updated_at": self.clock()}, ("id", "created_at"))
            _check_rating(updated.rating)
            self.vendors.replace(updated)
        return updated

    def delete_vendor(self, vendor_id: str) -> None:
        vendor = self.require_vendor(vendor_id)
        self.vendors.remove(vendor_id)
        logger.info("Deleted vendor %s", vendor.name)

    def record_job_completed(self, vendor_id: str) -> Vendor:
        """Increment the vendor's completed job count."""
        with self.store.write_lock:
            vendor = self.require_vendor(vendor_id)
            updated = replace(
                vendor,
                total_jobs_completed=vendor.total_jobs_completed + 1,
                updated_at=self.clock(),
            )
            self.vendors.replace(updated)
        return updated
