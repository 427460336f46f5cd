"""Double-entry transaction recorder.

The recorder is the only way business events reach the ledger. Every call
writes a balanced set of entries and then recomputes the balances of the
accounts it touched.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence, Union

from propcommand.config import LedgerSettings
from propcommand.database.base import KeyValueStore
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.entities import (
    EntryLine,
    LedgerEntry,
    RelatedEntityType,
    SourceType,
)
from propcommand.domain.errors import (
    ConflictError,
    NotFoundError,
    UnbalancedTransactionError,
    ValidationError,
    entry_not_found,
    non_positive_amount,
)
from propcommand.domain.ledger import LedgerEntryStore
from propcommand.utils.ids import utc_now

logger = logging.getLogger(__name__)

Amount = Union[int, Decimal, str]


def _amount(value: Amount) -> Decimal:
    """Convert to Decimal and reject anything not strictly positive."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(f"Invalid amount '{value}': {e}") from e
    if not amount.is_finite() or amount <= 0:
        raise UnbalancedTransactionError(non_positive_amount(value))
    return amount


class TransactionRecorder:
    """Service that records balanced ledger transactions."""

    def __init__(
        self,
        store: KeyValueStore,
        registry: Optional[AccountRegistry] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize transaction recorder.

        Args:
            store: Key-value store instance
            registry: Account registry (built on the same store if omitted)
            settings: Designated account numbers for business events
            clock: Source of timestamps and the default reversal date
        """
        self.store = store
        self.registry = registry or AccountRegistry(store, clock=clock)
        self.ledger: LedgerEntryStore = self.registry.ledger
        self.settings = settings or LedgerSettings()
        self.clock = clock

    def _post(
        self,
        lines: Sequence[EntryLine],
        *,
        date: date,
        description: str,
        source_type: SourceType,
        **fields,
    ) -> list[LedgerEntry]:
        """Validate accounts, append the set and recompute touched balances."""
        with self.store.write_lock:
            for line in lines:
                self.registry.require_account(line.account_id)
            entries = self.ledger.append(
                lines, date=date, description=description, source_type=source_type, **fields
            )
            for account_id in dict.fromkeys(line.account_id for line in lines):
                self.registry.recompute_balance(account_id)

        logger.info(
            "Recorded %s transaction %s on %s: %s",
            source_type.value,
            entries[0].transaction_id,
            date.isoformat(),
            description,
        )
        return entries

    def record_transaction(
        self,
        date: date,
        description: str,
        debit_account_id: str,
        credit_account_id: str,
        amount: Amount,
        property_id: Optional[str] = None,
        related_entity_type: Optional[RelatedEntityType] = None,
        related_entity_id: Optional[str] = None,
        source_type: SourceType = SourceType.MANUAL,
        source_id: Optional[str] = None,
        reference: str = "",
        created_by: str = "system",
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """Record a two-leg transaction.

        Args:
            date: Transaction date
            description: Shared description of both legs
            debit_account_id: Account receiving the debit
            credit_account_id: Account receiving the credit
            amount: Amount, strictly positive

        Returns:
            (debit entry, credit entry)

        Raises:
            UnbalancedTransactionError: If amount is not greater than zero
            ValidationError: If both legs name the same account
            NotFoundError: If either account is unknown
        """
        amount = _amount(amount)
        if debit_account_id == credit_account_id:
            raise ValidationError("Debit and credit accounts must differ")

        debit_entry, credit_entry = self._post(
            [
                EntryLine(account_id=debit_account_id, debit=amount),
                EntryLine(account_id=credit_account_id, credit=amount),
            ],
            date=date,
            description=description,
            source_type=source_type,
            reference=reference,
            source_id=source_id,
            property_id=property_id,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            created_by=created_by,
        )
        return debit_entry, credit_entry

    def record_compound(
        self,
        date: date,
        description: str,
        lines: Sequence[EntryLine],
        property_id: Optional[str] = None,
        source_type: SourceType = SourceType.MANUAL,
        source_id: Optional[str] = None,
        reference: str = "",
        created_by: str = "system",
    ) -> list[LedgerEntry]:
        """Record a balanced transaction with any number of legs.

        Raises:
            UnbalancedTransactionError: If the legs do not balance
            NotFoundError: If any account is unknown
        """
        normalised = [
            EntryLine(
                account_id=line.account_id,
                debit=Decimal(str(line.debit)),
                credit=Decimal(str(line.credit)),
            )
            for line in lines
        ]
        return self._post(
            normalised,
            date=date,
            description=description,
            source_type=source_type,
            reference=reference,
            source_id=source_id,
            property_id=property_id,
            created_by=created_by,
        )

    def record_rent_payment(
        self,
        tenant_id: str,
        amount: Amount,
        payment_date: date,
        property_id: Optional[str] = None,
        payment_id: Optional[str] = None,
        reference: str = "",
        description: Optional[str] = None,
        created_by: str = "system",
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """Debit cash, credit rental income for a tenant payment."""
        cash = self.registry.require_account_by_number(self.settings.cash_account)
        income = self.registry.require_account_by_number(self.settings.rental_income_account)
        return self.record_transaction(
            date=payment_date,
            description=description or f"Rent payment from tenant - {reference or tenant_id}",
            debit_account_id=cash.id,
            credit_account_id=income.id,
            amount=amount,
            property_id=property_id,
            related_entity_type=RelatedEntityType.TENANT,
            related_entity_id=tenant_id,
            source_type=SourceType.PAYMENT,
            source_id=payment_id,
            reference=reference or (payment_id or ""),
            created_by=created_by,
        )

    def record_maintenance_cost(
        self,
        request_id: str,
        amount: Amount,
        cost_date: date,
        description: str,
        property_id: Optional[str] = None,
        created_by: str = "system",
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """Debit maintenance expense, credit cash for a completed job."""
        expense = self.registry.require_account_by_number(self.settings.maintenance_expense_account)
        cash = self.registry.require_account_by_number(self.settings.cash_account)
        return self.record_transaction(
            date=cost_date,
            description=f"Maintenance: {description}",
            debit_account_id=expense.id,
            credit_account_id=cash.id,
            amount=amount,
            property_id=property_id,
            related_entity_type=RelatedEntityType.MAINTENANCE,
            related_entity_id=request_id,
            source_type=SourceType.MAINTENANCE,
            source_id=request_id,
            reference=request_id,
            created_by=created_by,
        )

    def reverse_transaction(
        self,
        entry_or_transaction_id: str,
        reason: str = "",
        reversal_date: Optional[date] = None,
        created_by: str = "system",
    ) -> list[LedgerEntry]:
        """Reverse every leg of a transaction with an offsetting transaction.

        The offsetting legs are dated at the reversal date, each original leg
        and its offset point at each other through ``reversal_entry_id``, and
        both sides are flagged reversed so balance reads net to zero while the
        rows stay in the ledger.

        Args:
            entry_or_transaction_id: Id of any leg, or the transaction id
            reason: Appended to the reversal description
            reversal_date: Defaults to today

        Returns:
            The offsetting entries

        Raises:
            NotFoundError: If nothing matches the id
            ConflictError: If the transaction is already reversed
        """
        with self.store.write_lock:
            entry = self.ledger.get_entry(entry_or_transaction_id)
            transaction_id = entry.transaction_id if entry else entry_or_transaction_id
            originals = self.ledger.by_transaction(transaction_id)
            if not originals:
                raise NotFoundError(entry_not_found(entry_or_transaction_id))
            if any(e.is_reversed for e in originals):
                raise ConflictError(f"Transaction {transaction_id} is already reversed")

            description = f"Reversal of: {originals[0].description}"
            if reason:
                description = f"{description} ({reason})"

            offsets = self.ledger.append(
                [
                    EntryLine(account_id=e.account_id, debit=e.credit, credit=e.debit)
                    for e in originals
                ],
                date=reversal_date or self.clock().date(),
                description=description,
                source_type=SourceType.ADJUSTMENT,
                reference=transaction_id,
                source_id=originals[0].source_id,
                property_id=originals[0].property_id,
                related_entity_type=originals[0].related_entity_type,
                related_entity_id=originals[0].related_entity_id,
                created_by=created_by,
            )
            # Originals and offsets are both live until this write, which
            # also nets to zero, so balances are correct at every step.
            links = {original.id: offset.id for original, offset in zip(originals, offsets)}
            links.update({offset.id: original.id for original, offset in zip(originals, offsets)})
            self.ledger.flag_reversed(links)

            for account_id in dict.fromkeys(e.account_id for e in originals):
                self.registry.recompute_balance(account_id)

        logger.info("Reversed transaction %s", transaction_id)
        return [self.ledger.get_entry(offset.id) for offset in offsets]
