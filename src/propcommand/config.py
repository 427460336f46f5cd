"""Ledger configuration: designated accounts and cashflow prefix map."""

import os
from dataclasses import dataclass, field


# Forecast line -> account number prefixes whose entries feed its actual.
DEFAULT_CASHFLOW_PREFIXES: dict[str, tuple[str, ...]] = {
    "rent_income": ("4000",),
    "other_income": ("4100", "4200"),
    "maintenance_expenses": ("5000",),
    "operating_expenses": ("5100", "5500"),
    "property_tax_insurance": ("5200", "5300"),
    "management_fees": ("5400",),
}

INCOME_LINES = ("rent_income", "other_income")
EXPENSE_LINES = (
    "maintenance_expenses",
    "operating_expenses",
    "property_tax_insurance",
    "management_fees",
)


@dataclass(frozen=True)
class LedgerSettings:
    """Account numbers used by the business-event postings."""

    cash_account: str = "1000"
    rental_income_account: str = "4000"
    maintenance_expense_account: str = "5000"
    cashflow_prefixes: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_CASHFLOW_PREFIXES)
    )

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings, letting environment variables override account numbers."""
        defaults = cls()
        return cls(
            cash_account=os.environ.get("PROPCOMMAND_CASH_ACCOUNT", defaults.cash_account),
            rental_income_account=os.environ.get(
                "PROPCOMMAND_RENT_ACCOUNT", defaults.rental_income_account
            ),
            maintenance_expense_account=os.environ.get(
                "PROPCOMMAND_MAINTENANCE_ACCOUNT", defaults.maintenance_expense_account
            ),
        )
