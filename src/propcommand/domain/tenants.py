"""Tenant domain service."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import property_from_record, tenant_from_record
from propcommand.domain import metrics
from propcommand.domain.entities import PaymentRecord, PaymentStatus, Tenant
from propcommand.domain.errors import ConflictError, StorageError, ValidationError
from propcommand.domain.records import apply_changes, require_record
from propcommand.domain.transactions import TransactionRecorder
from propcommand.utils.date_parser import month_of, parse_month
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class TenantService:
    """Service for managing tenants and their rent payments."""

    def __init__(
        self,
        store: KeyValueStore,
        recorder: Optional[TransactionRecorder] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        """Initialize tenant service.

        Args:
            store: Key-value store instance
            recorder: Transaction recorder for rent postings
            clock: Source of timestamps and today's date
            id_factory: Source of new tenant and payment ids
        """
        self.store = store
        self.recorder = recorder or TransactionRecorder(store, clock=clock)
        self.clock = clock
        self.id_factory = id_factory
        self.tenants = RecordCollection(store, keys.TENANTS, tenant_from_record)
        self.properties = RecordCollection(store, keys.PROPERTIES, property_from_record)

    def create_tenant(
        self,
        property_id: str,
        name: str,
        unit_number: str,
        monthly_rent: Decimal,
        contact: str = "",
        lease_start_date: Optional[date] = None,
        lease_end_date: Optional[date] = None,
        deposit: Decimal = ZERO,
        outstanding_balance: Decimal = ZERO,
        notes: str = "",
    ) -> Tenant:
        """Create a tenant in a unit of an existing property.

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: On an empty name, negative money or bad lease dates
            ConflictError: If the unit is already let on that property
        """
        require_record(self.properties, "Property", property_id)
        if not name.strip():
            raise ValidationError("Tenant name is required")
        monthly_rent = Decimal(str(monthly_rent))
        deposit = Decimal(str(deposit))
        outstanding_balance = Decimal(str(outstanding_balance))
        if monthly_rent < ZERO or deposit < ZERO or outstanding_balance < ZERO:
            raise ValidationError("Rent, deposit and balance cannot be negative")
        if lease_start_date and lease_end_date and lease_end_date < lease_start_date:
            raise ValidationError("Lease end date is before lease start date")

        with self.store.write_lock:
            if any(
                t.property_id == property_id and t.unit_number == unit_number
                for t in self.tenants.load()
            ):
                raise ConflictError(f"Unit {unit_number} already has a tenant")

            now = self.clock()
            tenant = Tenant(
                id=self.id_factory("tenant"),
                property_id=property_id,
                unit_number=unit_number,
                name=name.strip(),
                monthly_rent=monthly_rent,
                created_at=now,
                updated_at=now,
                contact=contact,
                lease_start_date=lease_start_date,
                lease_end_date=lease_end_date,
                deposit=deposit,
                outstanding_balance=outstanding_balance,
                notes=notes,
            )
            self.tenants.add(tenant)

        logger.info("Created tenant %s in unit %s", tenant.name, unit_number)
        return tenant

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self.tenants.get(tenant_id)

    def require_tenant(self, tenant_id: str) -> Tenant:
        return require_record(self.tenants, "Tenant", tenant_id)

    def list_tenants(self, property_id: Optional[str] = None) -> list[Tenant]:
        """List tenants ordered by unit, optionally for one property."""
        tenants = self.tenants.load()
        if property_id is not None:
            tenants = [t for t in tenants if t.property_id == property_id]
        return sorted(tenants, key=lambda t: (t.property_id, t.unit_number))

    def update_tenant(self, tenant_id: str, **changes) -> Tenant:
        """Update tenant fields. Payment history is only changed by record_payment.

        Raises:
            NotFoundError: If the tenant does not exist
            ValidationError: On an unknown or protected field
        """
        with self.store.write_lock:
            tenant = self.require_tenant(tenant_id)
            updated = apply_changes(
                tenant,
                {**changes, "updated_at": self.clock()},
                ("id", "created_at", "payment_history"),
            )
            if updated.outstanding_balance < ZERO:
                raise ValidationError("Outstanding balance cannot be negative")
            self.tenants.replace(updated)
        return updated

    def delete_tenant(self, tenant_id: str) -> None:
        """Delete a tenant. Ledger postings for past payments are kept.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = self.require_tenant(tenant_id)
        self.tenants.remove(tenant_id)
        logger.info("Deleted tenant %s", tenant.name)

    def record_payment(
        self,
        tenant_id: str,
        amount: Decimal,
        payment_date: Optional[date] = None,
        method: str = "cash",
        reference: str = "",
        notes: str = "",
        for_month: Optional[str] = None,
    ) -> PaymentRecord:
        """Record a rent payment.

        Posts cash / rental income to the ledger, appends the payment to the
        tenant's history, and lowers the outstanding balance, never below zero.

        Args:
            tenant_id: Tenant ID
            amount: Amount received, strictly positive
            payment_date: Date received (defaults to today)
            method: Payment method, e.g. "cash", "mobile money"
            reference: External reference such as a receipt number
            notes: Optional notes
            for_month: Rent month being paid ("YYYY-MM"), defaults to the payment month

        Returns:
            The stored PaymentRecord

        Raises:
            NotFoundError: If the tenant or a designated account does not exist
            UnbalancedTransactionError: If amount is not greater than zero
            ValidationError: If for_month is not a YYYY-MM key
            StorageError: If the tenant cannot be saved; the posting is reversed
        """
        payment_date = payment_date or self.clock().date()
        if for_month is not None:
            try:
                for_month = parse_month(for_month)
            except ValueError as e:
                raise ValidationError(str(e)) from e

        with self.store.write_lock:
            tenant = self.require_tenant(tenant_id)
            payment_id = self.id_factory("pay")
            debit_entry, _ = self.recorder.record_rent_payment(
                tenant_id=tenant.id,
                amount=amount,
                payment_date=payment_date,
                property_id=tenant.property_id,
                payment_id=payment_id,
                reference=reference,
                description=f"Rent payment from {tenant.name} - Unit {tenant.unit_number}",
            )
            payment = PaymentRecord(
                id=payment_id,
                date=payment_date,
                amount=debit_entry.debit,
                method=method,
                recorded_at=self.clock(),
                reference=reference,
                notes=notes,
                for_month=for_month or month_of(payment_date),
                ledger_transaction_id=debit_entry.transaction_id,
            )
            updated = replace(
                tenant,
                outstanding_balance=max(ZERO, tenant.outstanding_balance - payment.amount),
                last_payment_date=payment_date,
                last_payment_amount=payment.amount,
                payment_history=tenant.payment_history + (payment,),
                updated_at=self.clock(),
            )
            try:
                self.tenants.replace(updated)
            except StorageError:
                logger.error("Could not save payment %s, reversing its posting", payment_id)
                self.recorder.reverse_transaction(
                    payment.ledger_transaction_id, reason="tenant record not saved"
                )
                raise

        logger.info("Recorded payment of %s from tenant %s", payment.amount, tenant.name)
        return payment

    def payments(self, tenant_id: str) -> list[PaymentRecord]:
        """Payment history ordered by date."""
        return sorted(self.require_tenant(tenant_id).payment_history, key=lambda p: p.date)

    def payment_status(self, tenant_id: str, today: Optional[date] = None) -> PaymentStatus:
        tenant = self.require_tenant(tenant_id)
        return metrics.payment_status(
            tenant.outstanding_balance,
            tenant.last_payment_date,
            today or self.clock().date(),
        )

    def recalculate_outstanding(self, tenant_id: str, today: Optional[date] = None) -> Decimal:
        """Reset the outstanding balance from lease start, rent and payments.

        Tenants without a lease start date keep their stored balance.

        Returns:
            The outstanding balance
        """
        with self.store.write_lock:
            tenant = self.require_tenant(tenant_id)
            if tenant.lease_start_date is None:
                return tenant.outstanding_balance
            total_paid = sum((p.amount for p in tenant.payment_history), ZERO)
            balance = metrics.outstanding_balance(
                tenant.monthly_rent,
                tenant.lease_start_date,
                total_paid,
                today or self.clock().date(),
            )
            self.tenants.replace(replace(tenant, outstanding_balance=balance, updated_at=self.clock()))
        logger.debug("Recalculated outstanding balance of %s: %s", tenant.name, balance)
        return balance

    def overdue_tenants(self, today: Optional[date] = None) -> list[Tenant]:
        """Tenants whose payment status is overdue."""
        today = today or self.clock().date()
        return [
            t
            for t in self.list_tenants()
            if metrics.payment_status(t.outstanding_balance, t.last_payment_date, today)
            == PaymentStatus.OVERDUE
        ]
