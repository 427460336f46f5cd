"""Chart of accounts registry."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import account_from_record
from propcommand.domain import metrics
from propcommand.domain.chart import DEFAULT_CHART_OF_ACCOUNTS
from propcommand.domain.entities import (
    Account,
    AccountCategory,
    TrialBalance,
    TrialBalanceRow,
    normal_balance_for,
)
from propcommand.domain.errors import (
    AccountInUseError,
    ConflictError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    account_number_not_found,
    duplicate_account_number,
)
from propcommand.domain.ledger import LedgerEntryStore
from propcommand.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)


class AccountRegistry:
    """Service for managing the chart of accounts and cached balances."""

    def __init__(
        self,
        store: KeyValueStore,
        ledger: Optional[LedgerEntryStore] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ):
        """Initialize account registry.

        Args:
            store: Key-value store instance
            ledger: Ledger entry store (built on the same store if omitted)
            clock: Source of timestamps
            id_factory: Source of new account ids
        """
        self.store = store
        self.ledger = ledger or LedgerEntryStore(store, clock=clock)
        self.clock = clock
        self.id_factory = id_factory
        self.accounts = RecordCollection(store, keys.ACCOUNTS, account_from_record)

    def create_account(
        self,
        number: str,
        name: str,
        category: AccountCategory,
        account_type: str = "",
        description: str = "",
    ) -> Account:
        """Create a new account.

        The normal balance is fixed by the category. A dotted number such as
        "5000.01" is a sub-account and requires its parent "5000" to exist.

        Args:
            number: Account number, e.g. "1000" or "1000.01"
            name: Account name
            category: Account category
            account_type: Free-form subtype, e.g. "Current Asset"
            description: Optional description

        Returns:
            The created Account

        Raises:
            ValidationError: If number or name is empty, or the parent is missing
            ConflictError: If the number already exists
        """
        number = number.strip()
        if not number:
            raise ValidationError("Account number is required")
        if not name.strip():
            raise ValidationError("Account name is required")

        category = AccountCategory(category)
        with self.store.write_lock:
            existing = self.accounts.load()
            if any(acc.number == number for acc in existing):
                raise ConflictError(duplicate_account_number(number))

            now = self.clock()
            account = Account(
                id=self.id_factory("acc"),
                number=number,
                name=name.strip(),
                category=category,
                account_type=account_type,
                normal_balance=normal_balance_for(category),
                current_balance=Decimal("0"),
                created_at=now,
                updated_at=now,
                description=description,
            )
            parent = account.parent_number
            if parent is not None and not any(acc.number == parent for acc in existing):
                raise ValidationError(f"Parent account '{parent}' not found for '{number}'")

            existing.append(account)
            self.accounts.save(existing)

        logger.info("Created account %s %s (%s)", number, account.name, category.value)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID, or None if not found."""
        return self.accounts.get(account_id)

    def require_account(self, account_id: str) -> Account:
        """Get account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def get_account_by_number(self, number: str) -> Optional[Account]:
        for account in self.accounts.load():
            if account.number == number:
                return account
        return None

    def require_account_by_number(self, number: str) -> Account:
        account = self.get_account_by_number(number)
        if account is None:
            raise NotFoundError(account_number_not_found(number))
        return account

    def resolve(self, account: str) -> Account:
        """Resolve an account id or number.

        Raises:
            NotFoundError: If neither matches
        """
        found = self.get_account(account) or self.get_account_by_number(account)
        if found is None:
            raise NotFoundError(f"Account '{account}' not found")
        return found

    def list_accounts(self, category: Optional[AccountCategory] = None) -> list[Account]:
        """List accounts ordered by number, optionally for one category."""
        accounts = self.accounts.load()
        if category is not None:
            accounts = [acc for acc in accounts if acc.category == AccountCategory(category)]
        return sorted(accounts, key=lambda acc: acc.number)

    def sub_accounts(self, number: str) -> list[Account]:
        """Direct sub-accounts of a parent number."""
        return [acc for acc in self.list_accounts() if acc.parent_number == number]

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        account_type: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Account:
        """Update descriptive fields. Number and category are immutable.

        Raises:
            NotFoundError: If the account does not exist
        """
        with self.store.write_lock:
            account = self.require_account(account_id)
            changes = {"updated_at": self.clock()}
            if name is not None:
                if not name.strip():
                    raise ValidationError("Account name is required")
                changes["name"] = name.strip()
            if account_type is not None:
                changes["account_type"] = account_type
            if description is not None:
                changes["description"] = description
            if is_active is not None:
                changes["is_active"] = is_active
            updated = replace(account, **changes)
            self.accounts.replace(updated)
        return updated

    def recompute_balance(self, account_id: str) -> Decimal:
        """Recompute an account's cached balance from its live ledger entries.

        Debit-normal balance is debits minus credits; credit-normal balance is
        credits minus debits. Always a full recompute.

        Returns:
            The new balance

        Raises:
            NotFoundError: If the account does not exist
        """
        with self.store.write_lock:
            account = self.require_account(account_id)
            entries = self.ledger.by_account(account_id)
            balance = metrics.account_balance(entries, account.normal_balance)
            self.accounts.replace(
                replace(account, current_balance=balance, updated_at=self.clock())
            )
        logger.debug("Recomputed balance of %s: %s", account.number, balance)
        return balance

    def recompute_all(self) -> dict[str, Decimal]:
        """Recompute every account balance. Returns id -> balance."""
        return {acc.id: self.recompute_balance(acc.id) for acc in self.list_accounts()}

    def delete_account(self, account_id: str) -> None:
        """Delete an account.

        Raises:
            NotFoundError: If the account does not exist
            AccountInUseError: If live ledger entries still reference it
        """
        with self.store.write_lock:
            account = self.require_account(account_id)
            entry_count = self.ledger.count_for_account(account_id)
            if entry_count > 0:
                logger.warning("Refused to delete account %s with %d entries", account.number, entry_count)
                raise AccountInUseError(account_delete_blocked(account_id, entry_count))
            if self.sub_accounts(account.number):
                raise AccountInUseError(
                    f"Cannot delete account {account_id}: it has sub-accounts"
                )
            self.accounts.remove(account_id)
        logger.info("Deleted account %s %s", account.number, account.name)

    def seed_chart_of_accounts(self) -> int:
        """Create any default accounts that are missing. Returns number created."""
        created = 0
        for number, name, category, account_type, description in DEFAULT_CHART_OF_ACCOUNTS:
            if self.get_account_by_number(number) is not None:
                continue
            self.create_account(
                number=number,
                name=name,
                category=category,
                account_type=account_type,
                description=description,
            )
            created += 1
        return created

    def trial_balance(self) -> TrialBalance:
        """Debit and credit totals per account over live entries."""
        rows = []
        for account in self.list_accounts():
            entries = self.ledger.by_account(account.id)
            rows.append(
                TrialBalanceRow(
                    account=account,
                    total_debit=sum((e.debit for e in entries), Decimal("0")),
                    total_credit=sum((e.credit for e in entries), Decimal("0")),
                )
            )
        return TrialBalance(rows=tuple(rows))

    def totals_by_category(self) -> dict[AccountCategory, Decimal]:
        """Live ledger totals per category, signed from each normal side."""
        accounts = {acc.id: acc for acc in self.list_accounts()}
        live = [e for e in self.ledger.list_entries() if not e.is_reversed]
        return metrics.totals_by_category(live, accounts)
