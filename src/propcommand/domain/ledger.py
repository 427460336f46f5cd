"""General ledger entry store."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Mapping, Optional, Sequence

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import ledger_entry_from_record
from propcommand.domain.entities import (
    EntryLine,
    LedgerEntry,
    RelatedEntityType,
    SourceType,
)
from propcommand.domain.errors import (
    NotFoundError,
    UnbalancedTransactionError,
    entry_not_found,
    unbalanced_lines,
)
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def validate_lines(lines: Sequence[EntryLine]) -> None:
    """Check a candidate set of ledger rows against the double-entry rules.

    Each row must carry exactly one strictly positive side, the set must have
    at least two rows, and total debits must equal total credits.

    Raises:
        UnbalancedTransactionError: If any rule is broken
    """
    if len(lines) < 2:
        raise UnbalancedTransactionError(
            "A transaction needs at least two ledger entries"
        )

    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        if line.debit < ZERO or line.credit < ZERO:
            raise UnbalancedTransactionError(
                f"Negative amount on account {line.account_id}"
            )
        if (line.debit > ZERO) == (line.credit > ZERO):
            raise UnbalancedTransactionError(
                f"Entry for account {line.account_id} must have exactly one of "
                "debit or credit greater than zero"
            )
        total_debit += line.debit
        total_credit += line.credit

    if total_debit != total_credit:
        raise UnbalancedTransactionError(unbalanced_lines(total_debit, total_credit))


class LedgerEntryStore:
    """Append-mostly store of general ledger entries.

    Entries are only ever added as balanced sets. Filtered reads skip
    reversed entries unless asked otherwise; ``list_entries`` always returns
    everything for audit.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        """Initialize ledger entry store.

        Args:
            store: Key-value store instance
            clock: Source of record timestamps
            id_factory: Source of new entry ids
        """
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.entries = RecordCollection(store, keys.LEDGER_ENTRIES, ledger_entry_from_record)

    def append(
        self,
        lines: Sequence[EntryLine],
        *,
        date: date,
        description: str,
        source_type: SourceType,
        reference: str = "",
        source_id: Optional[str] = None,
        property_id: Optional[str] = None,
        related_entity_type: Optional[RelatedEntityType] = None,
        related_entity_id: Optional[str] = None,
        created_by: str = "system",
        transaction_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        """Persist a balanced set of rows as one transaction.

        All rows share the transaction id, date, descriptive fields and
        creation timestamp, and are written with a single store write.

        Returns:
            The stored entries, in the order of ``lines``

        Raises:
            UnbalancedTransactionError: If the rows break double-entry rules
        """
        validate_lines(lines)

        transaction_id = transaction_id or self.id_factory("txn")
        created_at = self.clock()
        new_entries = [
            LedgerEntry(
                id=self.id_factory("gl"),
                transaction_id=transaction_id,
                date=date,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                description=description,
                reference=reference,
                source_type=source_type,
                created_at=created_at,
                source_id=source_id,
                property_id=property_id,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                created_by=created_by,
                is_reversed=False,
            )
            for line in lines
        ]
        self.entries.extend(new_entries)
        logger.debug("Appended %d entries for transaction %s", len(new_entries), transaction_id)
        return new_entries

    def list_entries(self) -> list[LedgerEntry]:
        """Every entry, reversed ones included, in insertion order."""
        return self.entries.load()

    def get_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        return self.entries.get(entry_id)

    def by_transaction(self, transaction_id: str) -> list[LedgerEntry]:
        """All rows of one transaction, reversed or not."""
        return [e for e in self.list_entries() if e.transaction_id == transaction_id]

    def by_source(
        self, source_type: SourceType, source_id: str, include_reversed: bool = False
    ) -> list[LedgerEntry]:
        """Entries posted for one business record, e.g. a maintenance request."""
        return [
            e
            for e in self._live(include_reversed)
            if e.source_type == source_type and e.source_id == source_id
        ]

    def _live(self, include_reversed: bool) -> list[LedgerEntry]:
        entries = self.list_entries()
        if include_reversed:
            return entries
        return [e for e in entries if not e.is_reversed]

    def by_account(self, account_id: str, include_reversed: bool = False) -> list[LedgerEntry]:
        """Entries for an account in insertion order (not sorted by date)."""
        return [e for e in self._live(include_reversed) if e.account_id == account_id]

    def by_property(self, property_id: str, include_reversed: bool = False) -> list[LedgerEntry]:
        return [e for e in self._live(include_reversed) if e.property_id == property_id]

    def by_month(self, month: str, include_reversed: bool = False) -> list[LedgerEntry]:
        """Entries whose ISO date starts with ``month`` (e.g. "2025-01")."""
        return [e for e in self._live(include_reversed) if e.date.isoformat().startswith(month)]

    def by_date_range(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_reversed: bool = False,
    ) -> list[LedgerEntry]:
        """Entries dated within [start_date, end_date]; open ends are unbounded."""
        return [
            e
            for e in self._live(include_reversed)
            if (start_date is None or e.date >= start_date)
            and (end_date is None or e.date <= end_date)
        ]

    def count_for_account(self, account_id: str) -> int:
        """Number of live entries referencing an account."""
        return len(self.by_account(account_id))

    def flag_reversed(self, links: Mapping[str, Optional[str]]) -> None:
        """Mark entries reversed, recording the id of each entry's counterpart.

        Args:
            links: entry id -> reversal_entry_id (None keeps the current link)

        Raises:
            NotFoundError: If any entry id is unknown (nothing is written)
        """
        entries = self.list_entries()
        known = {e.id for e in entries}
        for entry_id in links:
            if entry_id not in known:
                raise NotFoundError(entry_not_found(entry_id))

        updated = [
            replace(
                e,
                is_reversed=True,
                reversal_entry_id=links[e.id] or e.reversal_entry_id,
            )
            if e.id in links
            else e
            for e in entries
        ]
        self.entries.save(updated)
