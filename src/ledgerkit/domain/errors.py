"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ReferentialIntegrityError(DomainError):
    """A saved row references an entity that does not exist."""


class CurrencyMismatchError(DomainError):
    """Arithmetic attempted between amounts of different commodities."""


def account_not_found(account_uid: str) -> str:
    """Return message for missing account."""
    return f"Account {account_uid} not found"


def account_path_not_found(full_name: str) -> str:
    """Return message for missing account by full name."""
    return f"Account '{full_name}' not found"


def transaction_not_found(transaction_uid: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_uid} not found"


def split_not_found(split_uid: str) -> str:
    """Return message for missing split."""
    return f"Split {split_uid} not found"


def commodity_not_found(commodity: str) -> str:
    """Return message for a commodity uid or code that does not resolve."""
    return f"Commodity '{commodity}' not found"


def duplicate_transaction(transaction_uid: str) -> str:
    """Return message for inserting a transaction uid that already exists."""
    return f"Transaction with uid '{transaction_uid}' already exists"


def split_account_missing(split_uid: str, account_uid: str) -> str:
    """Return message for a split pointing at a missing account."""
    return f"Split {split_uid} references missing account {account_uid}"


def currency_mismatch(left: str, right: str) -> str:
    """Return message for mixing two commodities in one operation."""
    return f"Cannot combine amounts in {left} and {right}"


def no_exchange_rate(from_code: str, to_code: str) -> str:
    """Return message when no price links two commodities."""
    return f"No exchange rate from {from_code} to {to_code}"
