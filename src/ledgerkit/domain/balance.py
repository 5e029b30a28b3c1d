"""Balance aggregation domain service."""

import logging
from datetime import datetime
from fractions import Fraction
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    Account,
    AccountType,
    Commodity,
    Split,
    Transaction,
    TransactionType,
)
from ledgerkit.domain.money import Money
from ledgerkit.domain.price import PriceService
from ledgerkit.utils.date_parser import DateLike, period_bounds

logger = logging.getLogger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening Balance"


def _signed(account: Account, raw: Money) -> Money:
    """Flip a debit-positive amount into the account's normal-balance sign."""
    return raw if account.account_type.has_debit_normal_balance else -raw


class BalanceService:
    """Service for account balances.

    Balances are exact sums of split quantities, debits positive and
    credits negative, flipped for accounts whose normal balance is a
    credit. Subaccount balances are converted into the parent's commodity
    at the latest price; subaccounts without a price are left out and
    logged.

    All-time balances including subaccounts are cached on the account row.
    Any committed change clears the cache.
    """

    def __init__(self, db: Database, accounts: AccountService, prices: PriceService):
        """Initialize balance service.

        Args:
            db: Database instance
            accounts: Account service used to load accounts
            prices: Price service used to convert subaccount balances
        """
        self.db = db
        self.accounts = accounts
        self.prices = prices

    def balance(
        self,
        account_uid: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        include_subaccounts: bool = True,
    ) -> Money:
        """Balance of an account over an inclusive period.

        Args:
            account_uid: Account UID
            start: First day or instant to include (None for no lower bound)
            end: Last day or instant to include (None for no upper bound)
            include_subaccounts: Add converted balances of all descendants

        Returns:
            Balance in the account's commodity

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.accounts.get_account(account_uid)
        start_at, end_at = period_bounds(start, end)
        if include_subaccounts:
            raw = self._raw_inclusive(account, start_at, end_at)
        else:
            raw = self._raw_own([account], start_at, end_at)[account.uid]
        return _signed(account, raw)

    def balances_of(
        self,
        account_uids: Iterable[str],
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> dict[str, Money]:
        """Own balances (no subaccounts) of several accounts in one query.

        Returns:
            Mapping of every requested UID to its balance, zero when it has
            no splits in the period
        """
        accounts = [self.accounts.get_account(uid) for uid in dict.fromkeys(account_uids)]
        start_at, end_at = period_bounds(start, end)
        raw = self._raw_own(accounts, start_at, end_at)
        return {a.uid: _signed(a, raw[a.uid]) for a in accounts}

    def total_in(self, amounts: Iterable[Money], currency: Commodity) -> Money:
        """Add amounts after converting them to one currency.

        Amounts that cannot be converted are skipped and logged.
        """
        total = Money.zero(currency)
        for amount in amounts:
            if amount.is_zero():
                continue
            converted = self.prices.convert(amount, currency)
            if converted is None:
                logger.warning(
                    "Leaving %s out of total: no exchange rate to %s", amount, currency.mnemonic
                )
                continue
            total += converted
        return total

    def balance_by_type(
        self,
        account_types: Iterable[AccountType],
        currency: Optional[Commodity] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> Money:
        """Total of the own balances of all accounts of the given types.

        Each account contributes in its own normal-balance sign, converted
        to ``currency`` (the book's default currency when omitted).
        """
        currency = currency or self.accounts.commodities.default()
        accounts = self.db.list_accounts(include_hidden=True, account_types=list(account_types))
        start_at, end_at = period_bounds(start, end)
        raw = self._raw_own(accounts, start_at, end_at)
        return self.total_in((_signed(a, raw[a.uid]) for a in accounts), currency)

    def opening_balance_transactions(self) -> list[Transaction]:
        """Transactions that would carry every account's balance into a new book.

        Each account with a non-zero own balance gets one transaction against
        "Equity:Opening Balances". The transactions are not saved.
        """
        equity_uid = self.accounts.get_or_create_opening_balance_account()
        equity = self.accounts.get_account(equity_uid)
        accounts = [
            a for a in self.db.list_accounts(include_hidden=True)
            if a.uid != equity_uid and not a.placeholder
        ]
        raw = self._raw_own(accounts, None, None)
        transactions = []
        for account in accounts:
            amount = raw[account.uid]
            if amount.is_zero():
                continue
            split = Split(
                value=amount,
                quantity=amount,
                account_uid=account.uid,
                type=TransactionType.DEBIT if amount.amount > 0 else TransactionType.CREDIT,
            )
            pair = split.create_pair(equity_uid)
            if equity.commodity.uid != account.commodity.uid:
                pair = Split(value=pair.value, account_uid=pair.account_uid, type=pair.type)
            transactions.append(
                Transaction(
                    description=OPENING_BALANCE_DESCRIPTION,
                    commodity=account.commodity,
                    splits=(split, pair),
                    exported=True,
                )
            )
        return transactions

    def _raw_own(
        self,
        accounts: list[Account],
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> dict[str, Money]:
        """Debit-positive sums of each account's own split quantities."""
        by_uid = {a.uid: a for a in accounts}
        totals = {uid: Fraction(0) for uid in by_uid}
        for account_uid, split_type, denominator, numerator_sum in self.db.split_quantity_sums(
            by_uid, start, end
        ):
            amount = Fraction(numerator_sum, denominator)
            totals[account_uid] += amount if split_type is TransactionType.DEBIT else -amount
        return {uid: Money(totals[uid], by_uid[uid].commodity) for uid in by_uid}

    def _raw_inclusive(
        self,
        account: Account,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> Money:
        """Debit-positive balance of an account and all its descendants."""
        all_time = start is None and end is None
        if all_time:
            generation = self.db.cache_generation
            cached = self.db.get_cached_balance(account.uid)
            if cached is not None:
                return _signed(account, Money(cached, account.commodity))

        total = self._raw_own([account], start, end)[account.uid]
        for child in self.db.list_child_accounts([account.uid]):
            child_total = self._raw_inclusive(child, start, end)
            if child_total.is_zero():
                continue
            rate = self.prices.get_rate(child.commodity, account.commodity)
            if rate is None:
                logger.warning(
                    "Leaving '%s' out of the balance of '%s': no exchange rate from %s to %s",
                    child.full_name,
                    account.full_name,
                    child.commodity.mnemonic,
                    account.commodity.mnemonic,
                )
                continue
            total += child_total.convert(rate, account.commodity)

        if all_time:
            self.db.store_cached_balance(account.uid, _signed(account, total).amount, generation)
        return total
