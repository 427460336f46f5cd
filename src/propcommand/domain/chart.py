"""Default IFRS-style chart of accounts for a rental property business."""

from propcommand.domain.entities import AccountCategory

# (number, name, category, account_type, description)
DEFAULT_CHART_OF_ACCOUNTS: list[tuple[str, str, AccountCategory, str, str]] = [
    # Assets
    ("1000", "Cash at Bank", AccountCategory.ASSET, "Current Asset", "Main operating bank account"),
    ("1000.01", "Cash at Bank - Centenary", AccountCategory.ASSET, "Current Asset", "Centenary Bank operating account"),
    ("1100", "Accounts Receivable", AccountCategory.ASSET, "Current Asset", "Rent and other amounts due from tenants"),
    ("1200", "Security Deposits Held", AccountCategory.ASSET, "Current Asset", "Tenant security deposits in escrow"),
    ("1500", "Investment Property", AccountCategory.ASSET, "Fixed Asset", "Real estate held for rental income (IAS 40)"),
    # Liabilities
    ("2000", "Accounts Payable", AccountCategory.LIABILITY, "Current Liability", "Amounts owed to vendors and contractors"),
    ("2100", "Security Deposits Liability", AccountCategory.LIABILITY, "Current Liability", "Obligation to return tenant deposits"),
    ("2200", "Accrued Expenses", AccountCategory.LIABILITY, "Current Liability", "Expenses incurred but not yet paid"),
    # Equity
    ("3000", "Owner's Equity", AccountCategory.EQUITY, "Equity", "Capital contributed by owners"),
    ("3100", "Retained Earnings", AccountCategory.EQUITY, "Equity", "Accumulated profits reinvested"),
    # Income
    ("4000", "Rental Income - Residential", AccountCategory.INCOME, "Operating Revenue", "Monthly rent from residential tenants"),
    ("4100", "Late Fees", AccountCategory.INCOME, "Operating Revenue", "Late payment fees"),
    ("4200", "Other Income", AccountCategory.INCOME, "Operating Revenue", "Application fees, utility reimbursements"),
    # Expenses
    ("5000", "Maintenance & Repairs", AccountCategory.EXPENSE, "Operating Expense", "Routine and emergency repairs"),
    ("5000.01", "Maintenance - Plumbing", AccountCategory.EXPENSE, "Operating Expense", "Plumbing repairs and maintenance"),
    ("5000.02", "Maintenance - Electrical", AccountCategory.EXPENSE, "Operating Expense", "Electrical repairs and maintenance"),
    ("5100", "Utilities", AccountCategory.EXPENSE, "Operating Expense", "Water, electricity for common areas"),
    ("5200", "Property Tax", AccountCategory.EXPENSE, "Operating Expense", "Local council property taxes"),
    ("5300", "Insurance", AccountCategory.EXPENSE, "Operating Expense", "Property and liability insurance"),
    ("5400", "Management Fees", AccountCategory.EXPENSE, "Operating Expense", "Property management fees"),
    ("5500", "Administrative Expenses", AccountCategory.EXPENSE, "Operating Expense", "Office, software, communications"),
]
