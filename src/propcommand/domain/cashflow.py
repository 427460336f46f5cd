"""Cashflow forecast: manual projections joined with ledger actuals."""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional, Sequence

from propcommand.config import EXPENSE_LINES, INCOME_LINES, LedgerSettings
from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.collections import RecordCollection
from propcommand.database.mappers import cashflow_projection_from_record
from propcommand.domain import metrics
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.entities import CashflowLine, CashflowProjection, LedgerEntry
from propcommand.domain.errors import NotFoundError, ValidationError, record_not_found
from propcommand.utils.date_parser import add_months, month_of, parse_month
from propcommand.utils.ids import utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

PROJECTION_FIELDS = INCOME_LINES + EXPENSE_LINES

# Twelve-month starting forecast, in UGX.
DEFAULT_PROJECTION_AMOUNTS: dict[str, Decimal] = {
    "rent_income": Decimal("65000000"),
    "other_income": Decimal("2000000"),
    "maintenance_expenses": Decimal("8000000"),
    "operating_expenses": Decimal("12000000"),
    "property_tax_insurance": Decimal("3500000"),
    "management_fees": Decimal("3250000"),
}


def _matches(number: str, prefixes: Iterable[str]) -> bool:
    return any(number.startswith(prefix) for prefix in prefixes)


def _month(month: str) -> str:
    try:
        return parse_month(month)
    except ValueError as e:
        raise ValidationError(str(e)) from e


class MonthlyRollup:
    """Per-(month, account number) nets built in one pass over the ledger.

    Answers the same question as a full scan of the ledger for each forecast
    line, but visits every entry once no matter how many months and lines
    are asked for. Reversed entries and entries whose account is unknown are
    skipped exactly as the scan skips them.
    """

    def __init__(self, entries: Iterable[LedgerEntry], account_numbers: Mapping[str, str]):
        self.nets: dict[tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            if entry.is_reversed:
                continue
            number = account_numbers.get(entry.account_id)
            if number is None:
                continue
            self.nets[(month_of(entry.date), number)] += entry.debit - entry.credit

    def total(self, month: str, prefixes: Sequence[str]) -> Decimal:
        """Net of debit minus credit for a month over matching account numbers."""
        return sum(
            (
                net
                for (entry_month, number), net in self.nets.items()
                if entry_month == month and _matches(number, prefixes)
            ),
            ZERO,
        )


class CashflowForecastService:
    """Service for cashflow projections and their ledger-derived actuals.

    Actuals are recomputed from the ledger on every read and never stored.
    """

    def __init__(
        self,
        store: KeyValueStore,
        registry: Optional[AccountRegistry] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize cashflow forecast service.

        Args:
            store: Key-value store instance
            registry: Account registry used to resolve account numbers
            settings: Supplies the forecast line -> account prefix map
            clock: Source of timestamps
        """
        self.store = store
        self.registry = registry or AccountRegistry(store, clock=clock)
        self.ledger = self.registry.ledger
        self.settings = settings or LedgerSettings()
        self.clock = clock
        self.projections = RecordCollection(
            store,
            keys.CASHFLOW_PROJECTIONS,
            cashflow_projection_from_record,
            key_attr="month",
        )

    # -- projections -------------------------------------------------------

    def set_projection(self, month: str, notes: Optional[str] = None, **amounts) -> CashflowProjection:
        """Create or update the projection for a month.

        Amounts not supplied keep their stored value (zero for a new month).

        Args:
            month: Month key "YYYY-MM"
            notes: Optional free-form notes
            **amounts: Any of rent_income, other_income, maintenance_expenses,
                operating_expenses, property_tax_insurance, management_fees

        Returns:
            The stored projection

        Raises:
            ValidationError: On a bad month key, unknown line or negative amount
        """
        month = _month(month)
        changes: dict = {"updated_at": self.clock()}
        for name, value in amounts.items():
            if name not in PROJECTION_FIELDS:
                raise ValidationError(f"Unknown cashflow line '{name}'")
            if value is None:
                continue
            try:
                value = Decimal(str(value))
            except ArithmeticError as e:
                raise ValidationError(f"Invalid amount for {name}: {value}") from e
            if value < ZERO:
                raise ValidationError(f"Projected {name} cannot be negative")
            changes[name] = value
        if notes is not None:
            changes["notes"] = notes

        with self.store.write_lock:
            existing = self.get_projection(month) or CashflowProjection(month=month)
            projection = replace(existing, **changes)
            if not self.projections.replace(projection):
                self.projections.add(projection)

        logger.info("Set cashflow projection for %s", month)
        return projection

    def get_projection(self, month: str) -> Optional[CashflowProjection]:
        return self.projections.get(month)

    def list_projections(self) -> list[CashflowProjection]:
        """All projections, ordered by month."""
        return sorted(self.projections.load(), key=lambda p: p.month)

    def delete_projection(self, month: str) -> None:
        """Delete a month's projection.

        Raises:
            NotFoundError: If the month has no projection
        """
        if not self.projections.remove(month):
            raise NotFoundError(record_not_found("Cashflow projection", month))
        logger.info("Deleted cashflow projection for %s", month)

    def seed_projections(
        self,
        start_month: Optional[str] = None,
        months: int = 12,
        amounts: Optional[Mapping[str, Decimal]] = None,
    ) -> int:
        """Create default projections for months that have none.

        Args:
            start_month: First month (defaults to the current month)
            months: Number of consecutive months
            amounts: Line amounts (defaults to DEFAULT_PROJECTION_AMOUNTS)

        Returns:
            Number of projections created
        """
        start_month = start_month or month_of(self.clock().date())
        amounts = dict(amounts or DEFAULT_PROJECTION_AMOUNTS)
        created = 0
        for offset in range(months):
            month = add_months(start_month, offset)
            if self.get_projection(month) is not None:
                continue
            self.set_projection(month, **amounts)
            created += 1
        return created

    # -- actuals -----------------------------------------------------------

    def _account_numbers(self) -> dict[str, str]:
        return {account.id: account.number for account in self.registry.list_accounts()}

    def aggregate_month(
        self,
        month: str,
        prefixes: Sequence[str],
        account_numbers: Optional[Mapping[str, str]] = None,
    ) -> Decimal:
        """Sum of debit minus credit for a month over matching accounts.

        Scans every live ledger entry dated in ``month`` whose account number
        starts with one of ``prefixes``.
        """
        if account_numbers is None:
            account_numbers = self._account_numbers()
        total = ZERO
        for entry in self.ledger.by_month(month):
            number = account_numbers.get(entry.account_id)
            if number is not None and _matches(number, prefixes):
                total += entry.debit - entry.credit
        return total

    def _line(self, projection: CashflowProjection, totals: Mapping[str, Decimal]) -> CashflowLine:
        # Income nets are credit-heavy and come out negative; report magnitudes.
        actuals = {name: abs(totals[name]) for name in PROJECTION_FIELDS}
        actual_net = sum((actuals[name] for name in INCOME_LINES), ZERO) - sum(
            (actuals[name] for name in EXPENSE_LINES), ZERO
        )
        _, variance_percent = metrics.cashflow_variance(projection.projected_net, actual_net)
        return CashflowLine(
            projection=projection,
            actual_rent_income=actuals["rent_income"],
            actual_other_income=actuals["other_income"],
            actual_maintenance_expenses=actuals["maintenance_expenses"],
            actual_operating_expenses=actuals["operating_expenses"],
            actual_property_tax_insurance=actuals["property_tax_insurance"],
            actual_management_fees=actuals["management_fees"],
            variance_percent=variance_percent,
        )

    def forecast_line(self, month: str) -> CashflowLine:
        """Projection and actuals for one month.

        A month with no stored projection is reported against zero projections.
        """
        month = _month(month)
        projection = self.get_projection(month) or CashflowProjection(month=month)
        account_numbers = self._account_numbers()
        prefixes = self.settings.cashflow_prefixes
        totals = {
            name: self.aggregate_month(month, prefixes[name], account_numbers)
            for name in PROJECTION_FIELDS
        }
        return self._line(projection, totals)

    def forecast(self, use_rollup: bool = False) -> list[CashflowLine]:
        """Forecast lines for every stored projection, ordered by month.

        Args:
            use_rollup: Aggregate with a single MonthlyRollup pass instead of
                scanning the ledger once per month and line. Both give the
                same result.
        """
        projections = self.list_projections()
        prefixes = self.settings.cashflow_prefixes
        account_numbers = self._account_numbers()

        if not use_rollup:
            lines = [
                self._line(
                    projection,
                    {
                        name: self.aggregate_month(projection.month, prefixes[name], account_numbers)
                        for name in PROJECTION_FIELDS
                    },
                )
                for projection in projections
            ]
        else:
            rollup = MonthlyRollup(self.ledger.list_entries(), account_numbers)
            lines = [
                self._line(
                    projection,
                    {name: rollup.total(projection.month, prefixes[name]) for name in PROJECTION_FIELDS},
                )
                for projection in projections
            ]

        logger.debug("Aggregated cashflow actuals for %d months", len(lines))
        return lines
