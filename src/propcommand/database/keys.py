"""Logical storage keys, one JSON document per key."""

STORAGE_PREFIX = "vgk_"

ACCOUNTS = f"{STORAGE_PREFIX}accounts"
LEDGER_ENTRIES = f"{STORAGE_PREFIX}ledger_entries"
CASHFLOW_PROJECTIONS = f"{STORAGE_PREFIX}cashflow_projections"
PROPERTIES = f"{STORAGE_PREFIX}properties"
TENANTS = f"{STORAGE_PREFIX}tenants"
MAINTENANCE_REQUESTS = f"{STORAGE_PREFIX}maintenance_requests"
VENDORS = f"{STORAGE_PREFIX}vendors"
ROCKS = f"{STORAGE_PREFIX}rocks"
KPIS = f"{STORAGE_PREFIX}kpis"
CRITICAL_NUMBERS = f"{STORAGE_PREFIX}critical_numbers"
HUDDLES = f"{STORAGE_PREFIX}huddles"
OPSP = f"{STORAGE_PREFIX}opsp"
INITIALIZED = f"{STORAGE_PREFIX}initialized"

COLLECTION_KEYS = (
    ACCOUNTS,
    LEDGER_ENTRIES,
    CASHFLOW_PROJECTIONS,
    PROPERTIES,
    TENANTS,
    MAINTENANCE_REQUESTS,
    VENDORS,
    ROCKS,
    KPIS,
    CRITICAL_NUMBERS,
    HUDDLES,
)
