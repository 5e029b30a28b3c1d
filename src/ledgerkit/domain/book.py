"""Explicit context wiring the bookkeeping services to one database."""

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.commodity import CommodityService
from ledgerkit.domain.price import PriceService
from ledgerkit.domain.transaction import TransactionService


class Book:
    """One set of books: the services of a ledger sharing a database.

    Services receive their collaborators here instead of reaching for
    module-level singletons, so several books can be open side by side.
    """

    def __init__(self, db: Database):
        """Initialize a book.

        Args:
            db: Database instance holding the ledger
        """
        self.db = db
        self.commodities = CommodityService(db)
        self.prices = PriceService(db, self.commodities)
        self.accounts = AccountService(db, self.commodities)
        self.transactions = TransactionService(db, self.accounts, self.prices)
        self.balances = BalanceService(db, self.accounts, self.prices)

    def close(self) -> None:
        """Detach caches from the database."""
        self.commodities.close()
