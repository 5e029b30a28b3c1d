"""Transaction domain service."""

import logging
from dataclasses import replace
from datetime import datetime, UTC
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    Account,
    Split,
    Transaction,
    TransactionType,
    UpdateMethod,
)
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
    duplicate_transaction,
    no_exchange_rate,
    split_account_missing,
    split_not_found,
    transaction_not_found,
)
from ledgerkit.domain.money import AmountLike, Money
from ledgerkit.domain.price import PriceService
from ledgerkit.utils.date_parser import DateLike, period_bounds, to_datetime

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 5


class TransactionService:
    """Service for transactions and their splits.

    Saving a transaction is atomic: validation, the automatic imbalance
    split, the rows themselves and the removal of dropped splits all happen
    in one unit of work.
    """

    def __init__(self, db: Database, accounts: AccountService, prices: PriceService):
        """Initialize transaction service.

        Args:
            db: Database instance
            accounts: Account service used to validate and create accounts
            prices: Price service used to derive split quantities
        """
        self.db = db
        self.accounts = accounts
        self.prices = prices

    def save_transaction(
        self, transaction: Transaction, mode: UpdateMethod = UpdateMethod.REPLACE
    ) -> Transaction:
        """Save a transaction and its splits.

        Residuals are offset by an extra split in the commodity's imbalance
        account, so the stored transaction always nets to zero. Splits that
        were stored before but are no longer part of the transaction are
        deleted.

        Args:
            transaction: Transaction to save
            mode: INSERT (must be new), UPDATE (must exist) or REPLACE (either)

        Returns:
            The transaction as stored, including any imbalance split

        Raises:
            ConflictError: If inserting an existing uid or reusing another
                transaction's split
            NotFoundError: If updating a missing transaction
            ReferentialIntegrityError: If a split references a missing account
            ValidationError: If the splits are invalid
        """
        with self.db.unit_of_work():
            return self._save(transaction, mode)

    def bulk_save(
        self, transactions: Iterable[Transaction], mode: UpdateMethod = UpdateMethod.REPLACE
    ) -> int:
        """Save many transactions in one unit of work.

        Transactions left without any split are purged afterwards.

        Returns:
            Number of transactions saved
        """
        count = 0
        with self.db.unit_of_work():
            for transaction in transactions:
                self._save(transaction, mode)
                count += 1
            self.db.delete_transactions_without_splits()
        logger.info("Saved %d transaction(s)", count)
        return count

    def _save(self, transaction: Transaction, mode: UpdateMethod) -> Transaction:
        exists = self.db.transaction_exists(transaction.uid)
        if mode is UpdateMethod.INSERT and exists:
            raise ConflictError(duplicate_transaction(transaction.uid))
        if mode is UpdateMethod.UPDATE and not exists:
            raise NotFoundError(transaction_not_found(transaction.uid))
        if not transaction.splits:
            raise ValidationError("A transaction needs at least one split")

        prepared = transaction.with_splits(
            self._prepare_split(transaction, split) for split in transaction.splits
        )
        if not prepared.is_balanced():
            account_uid = self.accounts.get_or_create_imbalance_account(prepared.commodity)
            balancing = prepared.create_auto_balance_split(account_uid)
            balancing = replace(balancing, quantity=balancing.value)
            logger.info(
                "Transaction %s is off by %s, posting the difference to %s",
                prepared.uid,
                prepared.imbalance(),
                account_uid,
            )
            prepared = prepared.with_splits(prepared.splits + (balancing,))

        saved = replace(
            prepared,
            modified_at=datetime.now(UTC),
            exported=prepared.exported and not exists,
        )
        self.db.save_transaction_row(saved)
        for split in saved.splits:
            self.db.save_split(split)
        if exists:
            removed = self.db.delete_splits_not_in(saved.uid, [s.uid for s in saved.splits])
            if removed:
                logger.debug("Removed %d stale split(s) from transaction %s", removed, saved.uid)
        return saved

    def _prepare_split(self, transaction: Transaction, split: Split) -> Split:
        if split.value.commodity.uid != transaction.commodity.uid:
            raise ValidationError(
                f"Split {split.uid} value is in {split.value.commodity.mnemonic}, "
                f"but the transaction is in {transaction.commodity.mnemonic}"
            )
        account = self.db.get_account(split.account_uid)
        if account is None:
            raise ReferentialIntegrityError(split_account_missing(split.uid, split.account_uid))
        if account.placeholder:
            raise ValidationError(f"Cannot post to placeholder account '{account.full_name}'")
        stored = self.db.get_split(split.uid)
        if stored is not None and stored.transaction_uid != transaction.uid:
            raise ConflictError(
                f"Split {split.uid} already belongs to transaction {stored.transaction_uid}"
            )

        if split.quantity is None:
            return replace(split, quantity=self._derive_quantity(split.value, account))
        if split.quantity.commodity.uid != account.commodity.uid:
            raise ValidationError(
                f"Split {split.uid} quantity is in {split.quantity.commodity.mnemonic}, "
                f"but account '{account.full_name}' is in {account.commodity.mnemonic}"
            )
        return split

    def _derive_quantity(self, value: Money, account: Account) -> Money:
        if value.commodity.uid == account.commodity.uid:
            return value
        converted = self.prices.convert(value, account.commodity)
        if converted is None:
            raise ValidationError(
                no_exchange_rate(value.commodity.mnemonic, account.commodity.mnemonic)
            )
        return converted

    def record_transfer(
        self,
        from_account_uid: str,
        to_account_uid: str,
        amount: AmountLike,
        description: str = "",
        timestamp: Optional[DateLike] = None,
        memo: Optional[str] = None,
    ) -> Transaction:
        """Record a simple two-split transfer.

        The amount is in the source account's commodity; the destination
        quantity is converted at the current price when commodities differ.

        Raises:
            ValidationError: If the amount is not positive
        """
        source = self.accounts.get_account(from_account_uid)
        self.accounts.get_account(to_account_uid)
        value = Money(amount, source.commodity)
        if value.amount <= 0:
            raise ValidationError("Transfer amount must be positive")
        credit = Split(
            value=value,
            quantity=value,
            account_uid=source.uid,
            type=TransactionType.CREDIT,
            memo=memo,
        )
        debit = replace(credit.create_pair(to_account_uid), quantity=None)
        fields = {}
        if timestamp is not None:
            fields["timestamp"] = to_datetime(timestamp)
        transaction = Transaction(
            description=description,
            commodity=source.commodity,
            splits=(debit, credit),
            **fields,
        )
        return self.save_transaction(transaction, mode=UpdateMethod.INSERT)

    # Deletion
    def delete_transaction(self, transaction_uid: str) -> None:
        """Delete a transaction and its splits.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        with self.db.unit_of_work():
            if not self.db.transaction_exists(transaction_uid):
                raise NotFoundError(transaction_not_found(transaction_uid))
            self.db.delete_transactions([transaction_uid])

    def delete_split(self, split_uid: str) -> None:
        """Delete a split, and its transaction if no split is left.

        Raises:
            NotFoundError: If the split does not exist
        """
        with self.db.unit_of_work():
            split = self.db.get_split(split_uid)
            if split is None:
                raise NotFoundError(split_not_found(split_uid))
            self.db.delete_split(split_uid)
            if self.db.count_splits(split.transaction_uid) == 0:
                self.db.delete_transactions([split.transaction_uid])
                logger.debug("Deleted empty transaction %s", split.transaction_uid)

    def delete_empty_transactions(self) -> int:
        """Purge transactions that have no splits."""
        with self.db.unit_of_work():
            return self.db.delete_transactions_without_splits()

    # Split moves
    def move_splits(self, transaction_uid: str, from_account_uid: str, to_account_uid: str) -> int:
        """Move one transaction's splits from one account to another.

        Returns:
            Number of splits moved
        """
        with self.db.unit_of_work():
            if not self.db.transaction_exists(transaction_uid):
                raise NotFoundError(transaction_not_found(transaction_uid))
            self._check_move(from_account_uid, to_account_uid)
            return self.db.reassign_splits(from_account_uid, to_account_uid, transaction_uid)

    def reassign_splits(self, from_account_uid: str, to_account_uid: str) -> int:
        """Move every split of an account to another account.

        Returns:
            Number of splits moved
        """
        with self.db.unit_of_work():
            self._check_move(from_account_uid, to_account_uid)
            count = self.db.reassign_splits(from_account_uid, to_account_uid)
        logger.info("Moved %d split(s) from %s to %s", count, from_account_uid, to_account_uid)
        return count

    def _check_move(self, from_account_uid: str, to_account_uid: str) -> None:
        source = self.accounts.get_account(from_account_uid)
        target = self.accounts.get_account(to_account_uid)
        if target.placeholder:
            raise ValidationError(f"Cannot post to placeholder account '{target.full_name}'")
        if source.commodity.uid != target.commodity.uid:
            raise ValidationError(
                f"Cannot move splits from {source.commodity.mnemonic} account "
                f"'{source.full_name}' to {target.commodity.mnemonic} account '{target.full_name}'"
            )

    # Queries
    def get_transaction(self, transaction_uid: str) -> Transaction:
        """Get transaction by UID.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.db.get_transaction(transaction_uid)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_uid))
        return transaction

    def transactions_for_account(
        self,
        account_uid: Optional[str] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> list[Transaction]:
        """List transactions newest first, optionally only those touching an account."""
        start_at, end_at = period_bounds(start, end)
        return self.db.list_transactions(account_uid=account_uid, start=start_at, end=end_at)

    def suggest_by_description(
        self, prefix: str, account_uid: Optional[str] = None
    ) -> list[Transaction]:
        """Latest transaction for each description starting with ``prefix``."""
        return self.db.suggest_transactions(prefix, account_uid, SUGGESTION_LIMIT)

    def modified_since(self, since: DateLike) -> list[Transaction]:
        return self.db.list_transactions_modified_since(to_datetime(since))

    def split_count(self, transaction_uid: str) -> int:
        return self.db.count_splits(transaction_uid)

    def mark_exported(self, account_uid: Optional[str] = None) -> int:
        with self.db.unit_of_work():
            return self.db.mark_transactions_exported(account_uid)

    def balance_of(self, transaction_uid: str, account_uid: str) -> Money:
        """Net effect of one transaction on one account.

        Returns:
            Amount in the account's commodity, positive when it increases the
            account's balance
        """
        account = self.accounts.get_account(account_uid)
        total = Money.zero(account.commodity)
        for split in self.db.list_splits(transaction_uid, account_uid):
            total += split.signed_quantity
        if not account.account_type.has_debit_normal_balance:
            total = -total
        return total
