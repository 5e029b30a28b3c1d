"""Account hierarchy domain service."""

import logging
from dataclasses import replace
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.commodity import CommodityService
from ledgerkit.domain.entities import (
    ACCOUNT_NAME_SEPARATOR,
    IMBALANCE_ACCOUNT_PREFIX,
    OPENING_BALANCE_ACCOUNT_PATH,
    ROOT_ACCOUNT_FULL_NAME,
    ROOT_ACCOUNT_NAME,
    Account,
    AccountType,
    Commodity,
    UpdateMethod,
)
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    account_path_not_found,
)
from ledgerkit.domain.preferences import is_double_entry_enabled

logger = logging.getLogger(__name__)


class AccountService:
    """Service for the chart of accounts.

    Accounts form a tree under a single ROOT account. Every account stores
    its colon-separated full name, which is recomputed for the whole subtree
    whenever an account is renamed or moved.
    """

    def __init__(self, db: Database, commodities: CommodityService):
        """Initialize account service.

        Args:
            db: Database instance
            commodities: Commodity registry used for default currencies
        """
        self.db = db
        self.commodities = commodities

    # Lookups
    def get_account(self, account_uid: str) -> Account:
        """Get account by UID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.db.get_account(account_uid)
        if account is None:
            raise NotFoundError(account_not_found(account_uid))
        return account

    def find_by_full_name(self, full_name: str) -> Optional[Account]:
        """Get account by full name (e.g. "Expenses:Groceries"), or None."""
        return self.db.get_account_by_full_name(_normalize_path(full_name))

    def get_by_full_name(self, full_name: str) -> Account:
        """Get account by full name.

        Raises:
            NotFoundError: If no account has this full name
        """
        account = self.find_by_full_name(full_name)
        if account is None:
            raise NotFoundError(account_path_not_found(full_name))
        return account

    def list_accounts(self, include_hidden: bool = False) -> list[Account]:
        """List accounts ordered by full name, excluding ROOT."""
        return self.db.list_accounts(include_hidden=include_hidden)

    def children_of(self, account_uid: str) -> list[Account]:
        return self.db.list_child_accounts([account_uid])

    def top_level_accounts(self) -> list[Account]:
        """Direct children of ROOT."""
        return self.children_of(self.create_or_get_root().uid)

    def favorite_accounts(self) -> list[Account]:
        return self.db.list_favorite_accounts()

    def recent_accounts(self, limit: int = 5) -> list[Account]:
        """Accounts with the most recent activity first."""
        return self.db.list_recent_accounts(limit)

    # Hierarchy
    def create_or_get_root(self) -> Account:
        """Return the ROOT account, creating it if the book has none."""
        root = self.db.get_root_account()
        if root is not None:
            return root
        with self.db.unit_of_work():
            root = self.db.get_root_account()
            if root is None:
                root = Account(
                    name=ROOT_ACCOUNT_NAME,
                    account_type=AccountType.ROOT,
                    commodity=self.commodities.default(),
                    full_name=ROOT_ACCOUNT_FULL_NAME,
                    hidden=True,
                    placeholder=True,
                )
                self.db.save_account(root)
                logger.info("Created root account %s", root.uid)
        return root

    def resolve_full_name(self, account: Account) -> str:
        """Walk parent links up to ROOT and join the names.

        Raises:
            NotFoundError: If a parent in the chain does not exist
            ValidationError: If the chain loops
        """
        if account.is_root:
            return ROOT_ACCOUNT_FULL_NAME
        names = [account.name]
        seen = {account.uid}
        parent_uid = account.parent_uid
        while parent_uid is not None:
            if parent_uid in seen:
                raise ValidationError(f"Account {account.uid} is part of a parent cycle")
            parent = self.get_account(parent_uid)
            if parent.is_root:
                break
            names.append(parent.name)
            seen.add(parent.uid)
            parent_uid = parent.parent_uid
        return ACCOUNT_NAME_SEPARATOR.join(reversed(names))

    def descendants_of(self, account_uid: str) -> list[str]:
        """UIDs of all descendants, breadth-first, excluding the account itself."""
        result: list[str] = []
        seen = {account_uid}
        level = [account_uid]
        while level:
            children = [c.uid for c in self.db.list_child_accounts(level) if c.uid not in seen]
            seen.update(children)
            result.extend(children)
            level = children
        return result

    def save_account(self, account: Account, mode: UpdateMethod = UpdateMethod.REPLACE) -> Account:
        """Insert or update an account.

        Parentless accounts are attached to ROOT. The full name is derived
        from the parent and cascaded to all descendants when it changes.

        Args:
            account: Account to save
            mode: Whether the account must be new, must exist, or either

        Returns:
            The saved account with its parent and full name filled in

        Raises:
            NotFoundError: If the parent (or, in UPDATE mode, the account) is missing
            ConflictError: On a duplicate uid, full name or second ROOT
            ValidationError: On cycles, incompatible types or a commodity change
                for an account that already has splits
        """
        with self.db.unit_of_work():
            existing = self.db.get_account(account.uid)
            if mode is UpdateMethod.INSERT and existing is not None:
                raise ConflictError(f"Account with uid '{account.uid}' already exists")
            if mode is UpdateMethod.UPDATE and existing is None:
                raise NotFoundError(account_not_found(account.uid))

            if account.is_root:
                return self._save_root(account)

            parent = self.get_account(account.parent_uid or self.create_or_get_root().uid)
            if parent.uid == account.uid or (
                existing is not None and parent.uid in self.descendants_of(account.uid)
            ):
                raise ValidationError(
                    f"Cannot move account '{account.name}' under itself or one of its descendants"
                )
            if not account.account_type.can_be_child_of(parent.account_type):
                raise ValidationError(
                    f"A {account.account_type.value} account cannot be placed under "
                    f"a {parent.account_type.value} account"
                )
            if existing is not None and existing.account_type is not account.account_type:
                for child in self.db.list_child_accounts([account.uid]):
                    if not child.account_type.can_be_child_of(account.account_type):
                        raise ValidationError(
                            f"Account '{existing.full_name}' cannot become {account.account_type.value}: "
                            f"its child '{child.name}' is {child.account_type.value}"
                        )
            if (
                existing is not None
                and existing.commodity.uid != account.commodity.uid
                and self.db.count_account_splits(account.uid) > 0
            ):
                raise ValidationError(
                    f"Cannot change the commodity of account '{existing.full_name}' because it has splits"
                )

            saved = replace(
                account,
                parent_uid=parent.uid,
                full_name=_child_full_name(parent, account.name),
            )
            self._check_full_name_free(saved)
            self.db.save_account(saved)
            if existing is not None and existing.full_name != saved.full_name:
                self._cascade_full_names(saved)
                logger.info("Renamed account '%s' to '%s'", existing.full_name, saved.full_name)
            elif existing is None:
                logger.debug("Created account '%s' (%s)", saved.full_name, saved.uid)
        return saved

    def _save_root(self, account: Account) -> Account:
        root = self.db.get_root_account()
        if root is not None and root.uid != account.uid:
            raise ConflictError("The book already has a root account")
        saved = replace(account, parent_uid=None, full_name=ROOT_ACCOUNT_FULL_NAME)
        self.db.save_account(saved)
        return saved

    def _check_full_name_free(self, account: Account) -> None:
        clash = self.db.get_account_by_full_name(account.full_name)
        if clash is not None and clash.uid != account.uid:
            raise ConflictError(f"Account '{account.full_name}' already exists")

    def _cascade_full_names(self, account: Account) -> None:
        full_names = {account.uid: account.full_name}
        level = [account.uid]
        while level:
            children = self.db.list_child_accounts(level)
            for child in children:
                full_name = full_names[child.parent_uid] + ACCOUNT_NAME_SEPARATOR + child.name
                full_names[child.uid] = full_name
                if child.full_name != full_name:
                    self.db.save_account(replace(child, full_name=full_name))
            level = [c.uid for c in children]

    def create_hierarchy(
        self,
        path: str,
        account_type: AccountType,
        commodity: Optional[Commodity] = None,
    ) -> str:
        """Create every missing account along a colon-separated path.

        Existing prefixes are reused, so calling this twice is harmless.

        Args:
            path: Full name such as "Assets:Bank:Checking"
            account_type: Type for newly created accounts
            commodity: Commodity for new accounts (defaults to the book's default)

        Returns:
            UID of the last account in the path

        Raises:
            ValidationError: If the path is empty or has an empty segment
        """
        full_path = _normalize_path(path)
        existing = self.db.get_account_by_full_name(full_path)
        if existing is not None:
            return existing.uid

        commodity = commodity or self.commodities.default()
        with self.db.unit_of_work():
            parent_uid = self.create_or_get_root().uid
            full_name = ""
            for name in full_path.split(ACCOUNT_NAME_SEPARATOR):
                full_name = name if not full_name else full_name + ACCOUNT_NAME_SEPARATOR + name
                account = self.db.get_account_by_full_name(full_name)
                if account is None:
                    account = self.save_account(
                        Account(
                            name=name,
                            account_type=account_type,
                            commodity=commodity,
                            parent_uid=parent_uid,
                        ),
                        mode=UpdateMethod.INSERT,
                    )
                    logger.info("Created account '%s'", full_name)
                parent_uid = account.uid
        return parent_uid

    def reassign_descendants(self, old_parent_uid: str, new_parent_uid: str) -> int:
        """Move every child of one account under another.

        Full names of the whole moved subtree are recomputed breadth-first.
        A moved child may share its full name with an existing child of the new
        parent; lookups by full name then return the older account.

        Args:
            old_parent_uid: Account whose children move
            new_parent_uid: Account that becomes their parent

        Returns:
            Number of accounts whose record changed

        Raises:
            NotFoundError: If either account does not exist
            ValidationError: If the new parent lies inside the moved subtree or
                a child's type is incompatible with the new parent
        """
        with self.db.unit_of_work():
            old_parent = self.get_account(old_parent_uid)
            new_parent = self.get_account(new_parent_uid)
            if new_parent.uid == old_parent.uid or new_parent.uid in self.descendants_of(old_parent.uid):
                raise ValidationError(
                    f"Cannot move children of '{old_parent.full_name}' into its own subtree"
                )

            level = self.db.list_child_accounts([old_parent.uid])
            for child in level:
                if not child.account_type.can_be_child_of(new_parent.account_type):
                    raise ValidationError(
                        f"A {child.account_type.value} account cannot be placed under "
                        f"a {new_parent.account_type.value} account"
                    )

            full_names: dict[str, str] = {}
            count = 0
            while level:
                for child in level:
                    if child.parent_uid == old_parent.uid:
                        updated = replace(
                            child,
                            parent_uid=new_parent.uid,
                            full_name=_child_full_name(new_parent, child.name),
                        )
                    else:
                        updated = replace(
                            child,
                            full_name=full_names[child.parent_uid] + ACCOUNT_NAME_SEPARATOR + child.name,
                        )
                    full_names[child.uid] = updated.full_name
                    self.db.save_account(updated)
                    count += 1
                level = self.db.list_child_accounts([c.uid for c in level])
        logger.info(
            "Moved %d account(s) from '%s' to '%s'", count, old_parent.full_name, new_parent.full_name
        )
        return count

    def recursive_delete(self, account_uid: str) -> int:
        """Delete an account, its descendants and every transaction touching them.

        Default-transfer references to the deleted accounts are cleared.

        Returns:
            Number of accounts deleted

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account is ROOT
        """
        account = self.get_account(account_uid)
        if account.is_root:
            raise ValidationError("The root account cannot be deleted")
        with self.db.unit_of_work():
            account_uids = [account.uid] + self.descendants_of(account.uid)
            transaction_uids = self.db.list_transaction_uids_for_accounts(account_uids)
            self.db.delete_transactions(transaction_uids)
            self.db.clear_default_transfer_accounts(account_uids)
            deleted = self.db.delete_accounts(account_uids)
        logger.info(
            "Deleted account '%s': %d account(s), %d transaction(s)",
            account.full_name,
            deleted,
            len(transaction_uids),
        )
        return deleted

    # Special accounts
    def imbalance_account_uid(self, commodity: Commodity) -> Optional[str]:
        """UID of the imbalance account for a commodity, if it exists."""
        account = self.db.get_account_by_full_name(IMBALANCE_ACCOUNT_PREFIX + commodity.mnemonic)
        return account.uid if account is not None else None

    def get_or_create_imbalance_account(self, commodity: Commodity) -> str:
        """UID of the account that absorbs residuals of unbalanced transactions.

        The account lives directly under ROOT and is hidden unless the book
        uses double-entry mode.
        """
        uid = self.imbalance_account_uid(commodity)
        if uid is not None:
            return uid
        with self.db.unit_of_work():
            uid = self.imbalance_account_uid(commodity)
            if uid is None:
                account = self.save_account(
                    Account(
                        name=IMBALANCE_ACCOUNT_PREFIX + commodity.mnemonic,
                        account_type=AccountType.BANK,
                        commodity=commodity,
                        parent_uid=self.create_or_get_root().uid,
                        hidden=not is_double_entry_enabled(self.db),
                    ),
                    mode=UpdateMethod.INSERT,
                )
                uid = account.uid
                logger.info("Created imbalance account '%s'", account.full_name)
        return uid

    def get_or_create_opening_balance_account(self) -> str:
        """UID of "Equity:Opening Balances", created on demand."""
        return self.create_hierarchy(OPENING_BALANCE_ACCOUNT_PATH, AccountType.EQUITY)


def _child_full_name(parent: Account, name: str) -> str:
    if parent.is_root:
        return name
    return parent.full_name + ACCOUNT_NAME_SEPARATOR + name


def _normalize_path(path: str) -> str:
    segments = [segment.strip() for segment in (path or "").split(ACCOUNT_NAME_SEPARATOR)]
    if not any(segments) or not all(segments):
        raise ValidationError(f"Invalid account path '{path}'")
    return ACCOUNT_NAME_SEPARATOR.join(segments)
