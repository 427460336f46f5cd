"""Property domain service."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import property_from_record, tenant_from_record
from propcommand.domain import metrics
from propcommand.domain.entities import PortfolioMetrics, Property, PropertyMetrics
from propcommand.domain.errors import DependencyError, ValidationError
from propcommand.domain.records import apply_changes, require_record
from propcommand.utils.date_parser import month_of
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)


def _check_units(total_units: int, occupied_units: int) -> None:
    if total_units < 0 or occupied_units < 0:
        raise ValidationError("Unit counts cannot be negative")
    if occupied_units > total_units:
        raise ValidationError(
            f"Occupied units ({occupied_units}) exceed total units ({total_units})"
        )


class PropertyService:
    """Service for managing properties and their derived metrics."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        """Initialize property service.

        Args:
            store: Key-value store instance
            clock: Source of timestamps
            id_factory: Source of new property ids
        """
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.properties = RecordCollection(store, keys.PROPERTIES, property_from_record)
        self.tenants = RecordCollection(store, keys.TENANTS, tenant_from_record)

    def create_property(
        self,
        name: str,
        address: str = "",
        property_type: str = "residential",
        total_units: int = 0,
        occupied_units: int = 0,
        purchase_price: Decimal = Decimal("0"),
        current_value: Decimal = Decimal("0"),
        monthly_income: Decimal = Decimal("0"),
        monthly_expenses: Decimal = Decimal("0"),
        owner: str = "",
        acquisition_date: Optional[date] = None,
        notes: str = "",
    ) -> Property:
        """Create a property.

        Raises:
            ValidationError: If the name is empty or unit counts are inconsistent
        """
        if not name.strip():
            raise ValidationError("Property name is required")
        _check_units(total_units, occupied_units)

        now = self.clock()
        prop = Property(
            id=self.id_factory("prop"),
            name=name.strip(),
            address=address,
            property_type=property_type,
            total_units=total_units,
            occupied_units=occupied_units,
            created_at=now,
            updated_at=now,
            purchase_price=Decimal(str(purchase_price)),
            current_value=Decimal(str(current_value)),
            monthly_income=Decimal(str(monthly_income)),
            monthly_expenses=Decimal(str(monthly_expenses)),
            owner=owner,
            acquisition_date=acquisition_date,
            notes=notes,
        )
        self.properties.add(prop)
        logger.info("Created property %s (%s)", prop.name, prop.id)
        return prop

    def get_property(self, property_id: str) -> Optional[Property]:
        return self.properties.get(property_id)

    def require_property(self, property_id: str) -> Property:
        return require_record(self.properties, "Property", property_id)

    def list_properties(self, status: Optional[str] = None) -> list[Property]:
        """List properties ordered by name, optionally for one status."""
        props = self.properties.load()
        if status is not None:
            props = [p for p in props if p.status == status]
        return sorted(props, key=lambda p: p.name.lower())

    def update_property(self, property_id: str, **changes) -> Property:
        """Update property fields.

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: On an unknown field or inconsistent unit counts
        """
        with self.store.write_lock:
            prop = self.require_property(property_id)
            updated = apply_changes(prop, {**changes, "updated_at": self.clock()}, ("id", "created_at"))
            _check_units(updated.total_units, updated.occupied_units)
            self.properties.replace(updated)
        return updated

    def delete_property(self, property_id: str) -> None:
        """Delete a property.

        Raises:
            NotFoundError: If the property does not exist
            DependencyError: If tenants are still assigned to it
        """
        with self.store.write_lock:
            prop = self.require_property(property_id)
            tenant_count = sum(1 for t in self.tenants.load() if t.property_id == property_id)
            if tenant_count:
                logger.warning("Refused to delete property %s with %d tenants", prop.name, tenant_count)
                raise DependencyError(
                    f"Cannot delete property {property_id}: it has {tenant_count} tenant(s)"
                )
            self.properties.remove(property_id)
        logger.info("Deleted property %s", prop.name)

    def metrics(self, property_id: str, today: Optional[date] = None) -> PropertyMetrics:
        """Occupancy, NOI, OER, cap rate and this month's rent collection.

        Collection rate compares rent received this month from the property's
        tenants with their combined monthly rent.
        """
        prop = self.require_property(property_id)
        month = month_of(today or self.clock().date())
        tenants = [t for t in self.tenants.load() if t.property_id == property_id]
        rent_due = sum((t.monthly_rent for t in tenants), Decimal("0"))
        rent_collected = sum(
            (
                payment.amount
                for t in tenants
                for payment in t.payment_history
                if (payment.for_month or month_of(payment.date)) == month
            ),
            Decimal("0"),
        )
        return metrics.property_metrics(prop, rent_collected=rent_collected, rent_due=rent_due)

    def portfolio(self) -> PortfolioMetrics:
        """Totals across every property."""
        return metrics.portfolio_metrics(self.properties.load())
