"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class UnbalancedTransactionError(ValidationError):
    """Ledger rows that would break the double-entry invariant."""


class AccountInUseError(DependencyError):
    """Account still referenced by live ledger entries."""


class StorageError(RuntimeError):
    """The key-value medium could not be read or written.

    Not a DomainError. A missing key reads as None; only a broken medium
    raises this.
    """


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_number_not_found(number: str) -> str:
    """Return message for missing account by number."""
    return f"Account with number '{number}' not found"


def duplicate_account_number(number: str) -> str:
    """Return message for duplicate account number."""
    return f"Account with number '{number}' already exists"


def entry_not_found(entry_id: str) -> str:
    """Return message for missing ledger entry or transaction."""
    return f"Ledger entry or transaction {entry_id} not found"


def record_not_found(kind: str, record_id: str) -> str:
    """Return message for a missing managed record."""
    return f"{kind} {record_id} not found"


def non_positive_amount(amount) -> str:
    """Return message for a rejected transaction amount."""
    return f"Transaction amount must be greater than zero, got {amount}"


def unbalanced_lines(total_debit, total_credit) -> str:
    """Return message for a debit/credit mismatch."""
    return (
        f"Transaction is unbalanced: debits {total_debit} do not equal "
        f"credits {total_credit}"
    )


def account_delete_blocked(account_id: str, entry_count: int) -> str:
    """Return message when account has live ledger entries."""
    return (
        f"Cannot delete account {account_id}: it has {entry_count} "
        f"ledger entr{'ies' if entry_count != 1 else 'y'}. "
        "Reverse them first."
    )
