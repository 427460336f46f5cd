"""Status and financial metric calculators.

Pure functions: no storage access, no clock access. Callers pass in the
current values, targets, histories and reference dates.
"""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence, Union

from propcommand.domain.entities import (
    Account,
    AccountCategory,
    HistoryPoint,
    LedgerEntry,
    NormalBalance,
    PaymentStatus,
    PortfolioMetrics,
    Property,
    PropertyMetrics,
    Status,
    Trend,
)

Number = Union[int, float, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Achievement bands, in percent of target.
HIGHER_BETTER_GREEN = Decimal("100")
HIGHER_BETTER_YELLOW = Decimal("80")
LOWER_BETTER_GREEN = Decimal("100")
LOWER_BETTER_YELLOW = Decimal("120")

TREND_THRESHOLD_PERCENT = Decimal("2")
OVERDUE_AFTER_DAYS = 30


def _d(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ---------------------------------------------------------------------------
# KPI / critical number status
# ---------------------------------------------------------------------------


def percent_of_target(current: Number, target: Number) -> Decimal:
    """Current value as a percentage of target. A zero target counts as 1."""
    target = _d(target) or Decimal("1")
    return _d(current) / target * HUNDRED


def kpi_status(current: Number, target: Number, higher_is_better: bool = True) -> Status:
    """Traffic-light status from a current value and its target.

    Higher-is-better: GREEN at >=100% of target, YELLOW at >=80%, else RED.
    Lower-is-better: GREEN at <=100% of target, YELLOW at <=120%, else RED.
    """
    achievement = percent_of_target(current, target)
    if higher_is_better:
        if achievement >= HIGHER_BETTER_GREEN:
            return Status.GREEN
        if achievement >= HIGHER_BETTER_YELLOW:
            return Status.YELLOW
        return Status.RED

    if achievement <= LOWER_BETTER_GREEN:
        return Status.GREEN
    if achievement <= LOWER_BETTER_YELLOW:
        return Status.YELLOW
    return Status.RED


def trend(history: Sequence[Union[HistoryPoint, Number]]) -> Trend:
    """Direction of the last movement in history.

    Compares the last two points; moves under 2% are stable. Fewer than two
    points is stable.
    """
    if len(history) < 2:
        return Trend.STABLE

    values = [point.value if isinstance(point, HistoryPoint) else _d(point) for point in history[-2:]]
    previous, latest = _d(values[0]), _d(values[1])

    if previous == ZERO:
        if latest == ZERO:
            return Trend.STABLE
        return Trend.UP if latest > ZERO else Trend.DOWN

    percent_change = (latest - previous) / abs(previous) * HUNDRED
    if abs(percent_change) < TREND_THRESHOLD_PERCENT:
        return Trend.STABLE
    return Trend.UP if percent_change > ZERO else Trend.DOWN


# ---------------------------------------------------------------------------
# Property metrics
# ---------------------------------------------------------------------------


def occupancy_rate(total_units: int, occupied_units: int) -> Decimal:
    """Occupied units as a percentage of total units (0 with no units)."""
    if total_units == 0:
        return ZERO
    return _d(occupied_units) / _d(total_units) * HUNDRED


def vacancy_rate(total_units: int, occupied_units: int) -> Decimal:
    """100 minus occupancy rate."""
    return HUNDRED - occupancy_rate(total_units, occupied_units)


def net_operating_income(income: Number, expenses: Number) -> Decimal:
    """NOI: income minus operating expenses for whatever period is supplied."""
    return _d(income) - _d(expenses)


def operating_expense_ratio(expenses: Number, income: Number) -> Decimal:
    """OER: expenses as a percentage of income (0 with no income)."""
    if _d(income) == ZERO:
        return ZERO
    return _d(expenses) / _d(income) * HUNDRED


def cap_rate(monthly_noi: Number, property_value: Number) -> Decimal:
    """Capitalisation rate from monthly NOI, annualised (0 with no value)."""
    if _d(property_value) == ZERO:
        return ZERO
    return _d(monthly_noi) * 12 / _d(property_value) * HUNDRED


def collection_rate(collected: Number, due: Number) -> Decimal:
    """Collected as a percentage of due. Nothing due counts as 100."""
    if _d(due) == ZERO:
        return HUNDRED
    return _d(collected) / _d(due) * HUNDRED


# ---------------------------------------------------------------------------
# Tenant payments
# ---------------------------------------------------------------------------


def payment_status(
    outstanding_balance: Number,
    last_payment_date: Optional[date],
    today: date,
) -> PaymentStatus:
    """Tenant payment standing.

    No balance is paid. A balance with no payment on record, or more than
    30 days since the last payment, is overdue. Any other balance is due.
    """
    if _d(outstanding_balance) <= ZERO:
        return PaymentStatus.PAID
    if last_payment_date is None:
        return PaymentStatus.OVERDUE
    if (today - last_payment_date).days > OVERDUE_AFTER_DAYS:
        return PaymentStatus.OVERDUE
    return PaymentStatus.DUE


def outstanding_balance(
    monthly_rent: Number, lease_start: date, total_paid: Number, today: date
) -> Decimal:
    """Rent expected since lease start (inclusive of this month) minus payments."""
    months = (today.year - lease_start.year) * 12 + (today.month - lease_start.month)
    expected = max(0, months + 1) * _d(monthly_rent)
    return max(ZERO, expected - _d(total_paid))


# ---------------------------------------------------------------------------
# Ledger arithmetic
# ---------------------------------------------------------------------------


def account_balance(entries: Iterable[LedgerEntry], normal_balance: NormalBalance) -> Decimal:
    """Signed balance of entries from the account's normal side."""
    total_debit = ZERO
    total_credit = ZERO
    for entry in entries:
        total_debit += entry.debit
        total_credit += entry.credit
    if normal_balance == NormalBalance.DEBIT:
        return total_debit - total_credit
    return total_credit - total_debit


def is_balanced(lines: Iterable) -> bool:
    """True when debits equal credits across lines (anything with debit/credit)."""
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        total_debit += _d(line.debit)
        total_credit += _d(line.credit)
    return total_debit == total_credit


def totals_by_category(
    entries: Iterable[LedgerEntry], accounts: Mapping[str, Account]
) -> dict[AccountCategory, Decimal]:
    """Sum entries per account category, each signed from its normal side.

    Entries whose account is not in ``accounts`` are skipped.
    """
    totals = {category: ZERO for category in AccountCategory}
    for entry in entries:
        account = accounts.get(entry.account_id)
        if account is None:
            continue
        if account.normal_balance == NormalBalance.DEBIT:
            totals[account.category] += entry.debit - entry.credit
        else:
            totals[account.category] += entry.credit - entry.debit
    return totals


def cashflow_variance(projected: Number, actual: Number) -> tuple[Decimal, Decimal]:
    """Variance (actual - projected) and its percentage of projected."""
    variance = _d(actual) - _d(projected)
    if _d(projected) == ZERO:
        return variance, ZERO
    return variance, variance / _d(projected) * HUNDRED


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------


def property_metrics(prop: Property, rent_collected: Number = 0, rent_due: Number = 0) -> PropertyMetrics:
    """Derived metrics for one property."""
    noi = net_operating_income(prop.monthly_income, prop.monthly_expenses)
    return PropertyMetrics(
        property_id=prop.id,
        property_name=prop.name,
        occupancy_rate=occupancy_rate(prop.total_units, prop.occupied_units),
        vacancy_rate=vacancy_rate(prop.total_units, prop.occupied_units),
        noi=noi,
        oer=operating_expense_ratio(prop.monthly_expenses, prop.monthly_income),
        cap_rate=cap_rate(noi, prop.current_value),
        collection_rate=collection_rate(rent_collected, rent_due),
    )


def portfolio_metrics(properties: Sequence[Property]) -> PortfolioMetrics:
    """Totals and ratios across all properties."""
    total_units = sum(p.total_units for p in properties)
    occupied_units = sum(p.occupied_units for p in properties)
    income = sum((p.monthly_income for p in properties), ZERO)
    expenses = sum((p.monthly_expenses for p in properties), ZERO)
    return PortfolioMetrics(
        total_properties=len(properties),
        total_units=total_units,
        occupied_units=occupied_units,
        occupancy_rate=occupancy_rate(total_units, occupied_units),
        total_monthly_income=income,
        total_monthly_expenses=expenses,
        noi=net_operating_income(income, expenses),
        portfolio_value=sum((p.current_value for p in properties), ZERO),
    )


def response_time_hours(reported: Union[date, datetime], completed: Union[date, datetime]) -> Decimal:
    """Hours between a request being reported and completed."""
    if not isinstance(reported, datetime):
        reported = datetime(reported.year, reported.month, reported.day)
    if not isinstance(completed, datetime):
        completed = datetime(completed.year, completed.month, completed.day)
    if (reported.tzinfo is None) != (completed.tzinfo is None):
        reported = reported.replace(tzinfo=None)
        completed = completed.replace(tzinfo=None)
    return _d((completed - reported).total_seconds()) / Decimal("3600")


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def average(values: Sequence[Number]) -> Decimal:
    if not values:
        return ZERO
    return sum((_d(v) for v in values), ZERO) / len(values)


def median(values: Sequence[Number]) -> Decimal:
    if not values:
        return ZERO
    ordered = sorted(_d(v) for v in values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def percentile(values: Sequence[Number], pct: Number) -> Decimal:
    """Nearest-rank percentile."""
    if not values:
        return ZERO
    ordered = sorted(_d(v) for v in values)
    index = math.ceil(float(_d(pct)) / 100 * len(ordered)) - 1
    return ordered[max(0, index)]
