"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from fractions import Fraction
from typing import Callable, Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    AccountType,
    Commodity,
    Price,
    Split,
    Transaction,
    TransactionType,
)

InvalidationListener = Callable[[], None]


class Database(ABC):
    """Abstract database interface for ledgerkit.

    Every write joins the caller's unit of work when one is open and runs in
    its own unit otherwise. Reads outside a unit of work observe committed
    state only.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Transaction boundary and cache invalidation
    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Open a re-entrant unit of work.

        Only the outermost unit commits or rolls back. Committing clears
        cached balances and read caches and notifies invalidation listeners.
        """
        pass

    @property
    @abstractmethod
    def cache_generation(self) -> int:
        """Counter bumped on every commit, used to discard stale cache writes."""
        pass

    @abstractmethod
    def add_invalidation_listener(self, listener: InvalidationListener) -> None:
        """Register a callback run after every outermost unit of work."""
        pass

    @abstractmethod
    def remove_invalidation_listener(self, listener: InvalidationListener) -> None:
        """Unregister a callback added with add_invalidation_listener."""
        pass

    # Preference operations
    @abstractmethod
    def get_preference(self, key: str) -> Optional[str]:
        """Get a book-level preference value."""
        pass

    @abstractmethod
    def set_preference(self, key: str, value: Optional[str]) -> None:
        """Set a book-level preference value."""
        pass

    # Commodity operations
    @abstractmethod
    def save_commodity(self, commodity: Commodity) -> None:
        """Insert a commodity. Raises ConflictError on duplicate namespace/mnemonic."""
        pass

    @abstractmethod
    def get_commodity(self, commodity_uid: str) -> Optional[Commodity]:
        """Get commodity by UID."""
        pass

    @abstractmethod
    def get_commodity_by_mnemonic(self, mnemonic: str, namespace: str) -> Optional[Commodity]:
        """Get commodity by mnemonic within a namespace."""
        pass

    @abstractmethod
    def list_commodities(self, namespace: Optional[str] = None) -> list[Commodity]:
        """List commodities ordered by mnemonic."""
        pass

    # Price operations
    @abstractmethod
    def save_price(self, price: Price) -> None:
        """Insert or update a price."""
        pass

    @abstractmethod
    def get_latest_price(
        self, commodity_uid: str, currency_uid: str, as_of: Optional[datetime] = None
    ) -> Optional[Price]:
        """Get the most recent price stored for the pair in either direction.

        The row is returned as stored; callers invert it when its direction
        is reversed.
        """
        pass

    @abstractmethod
    def list_prices(self, commodity_uid: Optional[str] = None) -> list[Price]:
        """List prices, newest first, optionally for one commodity (either side)."""
        pass

    # Account operations
    @abstractmethod
    def save_account(self, account: Account) -> None:
        """Insert or update an account row."""
        pass

    @abstractmethod
    def get_account(self, account_uid: str) -> Optional[Account]:
        """Get account by UID."""
        pass

    @abstractmethod
    def get_account_by_full_name(self, full_name: str) -> Optional[Account]:
        """Get account by colon-separated full name."""
        pass

    @abstractmethod
    def get_root_account(self) -> Optional[Account]:
        """Get the ROOT account, if it exists."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        include_hidden: bool = True,
        account_types: Optional[Iterable[AccountType]] = None,
    ) -> list[Account]:
        """List non-root accounts ordered by full name."""
        pass

    @abstractmethod
    def list_child_accounts(self, parent_uids: Iterable[str]) -> list[Account]:
        """List direct children of any of the given accounts, ordered by full name."""
        pass

    @abstractmethod
    def list_favorite_accounts(self) -> list[Account]:
        """List accounts marked as favorite."""
        pass

    @abstractmethod
    def list_recent_accounts(self, limit: int) -> list[Account]:
        """List accounts ordered by their most recent transaction."""
        pass

    @abstractmethod
    def delete_accounts(self, account_uids: Iterable[str]) -> int:
        """Delete accounts by UID. Returns the number deleted."""
        pass

    @abstractmethod
    def clear_default_transfer_accounts(self, account_uids: Iterable[str]) -> int:
        """Null default-transfer pointers that target any of the given accounts."""
        pass

    @abstractmethod
    def get_cached_balance(self, account_uid: str) -> Optional[Fraction]:
        """Get the cached all-time balance of an account, if fresh."""
        pass

    @abstractmethod
    def store_cached_balance(self, account_uid: str, amount: Fraction, generation: int) -> bool:
        """Persist a cached balance without triggering invalidation.

        The write is skipped when a commit happened after ``generation``.
        """
        pass

    # Transaction operations
    @abstractmethod
    def transaction_exists(self, transaction_uid: str) -> bool:
        """Check whether a transaction row exists."""
        pass

    @abstractmethod
    def save_transaction_row(self, transaction: Transaction) -> None:
        """Insert or update the transaction row only (not its splits)."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_uid: str) -> Optional[Transaction]:
        """Get transaction with its splits."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_uid: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_templates: bool = False,
    ) -> list[Transaction]:
        """List transactions newest first, optionally touching one account."""
        pass

    @abstractmethod
    def list_transaction_uids_for_accounts(self, account_uids: Iterable[str]) -> list[str]:
        """UIDs of transactions with at least one split in the given accounts."""
        pass

    @abstractmethod
    def list_transactions_modified_since(self, since: datetime) -> list[Transaction]:
        """List transactions modified at or after a timestamp."""
        pass

    @abstractmethod
    def suggest_transactions(
        self, prefix: str, account_uid: Optional[str] = None, limit: int = 5
    ) -> list[Transaction]:
        """Most recent transaction per description starting with ``prefix``.

        Restricted to transactions touching ``account_uid`` when given.
        Template transactions are always candidates.
        """
        pass

    @abstractmethod
    def delete_transactions(self, transaction_uids: Iterable[str]) -> int:
        """Delete transactions and their splits."""
        pass

    @abstractmethod
    def delete_transactions_without_splits(self) -> int:
        """Delete transactions that have no splits left."""
        pass

    @abstractmethod
    def mark_transactions_exported(self, account_uid: Optional[str] = None) -> int:
        """Flag transactions as exported, optionally only those touching an account."""
        pass

    # Split operations
    @abstractmethod
    def save_split(self, split: Split) -> None:
        """Insert or update a split."""
        pass

    @abstractmethod
    def get_split(self, split_uid: str) -> Optional[Split]:
        """Get split by UID."""
        pass

    @abstractmethod
    def delete_split(self, split_uid: str) -> None:
        """Delete a single split."""
        pass

    @abstractmethod
    def delete_splits_not_in(self, transaction_uid: str, keep_uids: Iterable[str]) -> int:
        """Delete splits of a transaction whose UID is not in ``keep_uids``."""
        pass

    @abstractmethod
    def count_splits(self, transaction_uid: str) -> int:
        """Count splits of a transaction."""
        pass

    @abstractmethod
    def count_account_splits(self, account_uid: str) -> int:
        """Count splits posted to an account."""
        pass

    @abstractmethod
    def list_splits(self, transaction_uid: str, account_uid: Optional[str] = None) -> list[Split]:
        """List splits of a transaction, optionally only those in one account."""
        pass

    @abstractmethod
    def reassign_splits(
        self,
        old_account_uid: str,
        new_account_uid: str,
        transaction_uid: Optional[str] = None,
    ) -> int:
        """Move splits from one account to another."""
        pass

    @abstractmethod
    def split_quantity_sums(
        self,
        account_uids: Iterable[str],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[tuple[str, TransactionType, int, int]]:
        """Sum split quantity numerators per (account, split type, denominator).

        Template transactions are excluded. ``start`` and ``end`` are inclusive.
        Rows are ``(account_uid, type, denominator, numerator_sum)``.
        """
        pass
