"""Tests for the account hierarchy service."""

from dataclasses import replace

import pytest

from ledgerkit.domain.entities import (
    ROOT_ACCOUNT_FULL_NAME,
    ROOT_ACCOUNT_NAME,
    Account,
    AccountType,
    UpdateMethod,
)
from ledgerkit.domain.errors import ConflictError, NotFoundError, ValidationError
from ledgerkit.domain.money import Money


def test_root_is_created_once(book):
    """The book has exactly one ROOT account."""
    root = book.accounts.create_or_get_root()
    assert root.is_root
    assert root.name == ROOT_ACCOUNT_NAME
    assert root.full_name == ROOT_ACCOUNT_FULL_NAME
    assert root.parent_uid is None
    assert book.accounts.create_or_get_root().uid == root.uid


def test_second_root_is_rejected(book, usd):
    book.accounts.create_or_get_root()
    with pytest.raises(ConflictError):
        book.accounts.save_account(Account(name="Other Root", account_type=AccountType.ROOT, commodity=usd))


def test_create_hierarchy_builds_full_names(book):
    """Missing parents along the path are created."""
    uid = book.accounts.create_hierarchy("Assets:Bank:Checking", AccountType.BANK)
    checking = book.accounts.get_account(uid)
    assert checking.full_name == "Assets:Bank:Checking"
    assert checking.name == "Checking"

    bank = book.accounts.get_by_full_name("Assets:Bank")
    assert checking.parent_uid == bank.uid
    assert book.accounts.get_account(bank.parent_uid).full_name == "Assets"
    root = book.accounts.create_or_get_root()
    assert book.accounts.get_by_full_name("Assets").parent_uid == root.uid


def test_create_hierarchy_is_idempotent(book):
    first = book.accounts.create_hierarchy("Expenses:Groceries", AccountType.EXPENSE)
    second = book.accounts.create_hierarchy("Expenses:Groceries", AccountType.EXPENSE)
    assert first == second
    assert [a.full_name for a in book.accounts.list_accounts()] == ["Expenses", "Expenses:Groceries"]


def test_create_hierarchy_normalizes_whitespace(book):
    uid = book.accounts.create_hierarchy(" Expenses : Dining ", AccountType.EXPENSE)
    assert book.accounts.get_account(uid).full_name == "Expenses:Dining"


def test_create_hierarchy_rejects_empty_segment(book):
    with pytest.raises(ValidationError):
        book.accounts.create_hierarchy("Expenses::Food", AccountType.EXPENSE)
    with pytest.raises(ValidationError):
        book.accounts.create_hierarchy("", AccountType.EXPENSE)


def test_create_hierarchy_uses_given_commodity(book, eur):
    uid = book.accounts.create_hierarchy("Assets:Euro Savings", AccountType.BANK, eur)
    assert book.accounts.get_account(uid).commodity.mnemonic == "EUR"


def test_parentless_account_goes_under_root(book, usd):
    saved = book.accounts.save_account(Account(name="Equity", account_type=AccountType.EQUITY, commodity=usd))
    assert saved.parent_uid == book.accounts.create_or_get_root().uid
    assert saved.full_name == "Equity"


def test_get_missing_account_raises(book):
    with pytest.raises(NotFoundError):
        book.accounts.get_account("0" * 32)
    with pytest.raises(NotFoundError):
        book.accounts.get_by_full_name("Nope")
    assert book.accounts.find_by_full_name("Nope") is None


def test_save_modes(book, usd):
    account = Account(name="Cash", account_type=AccountType.CASH, commodity=usd)
    with pytest.raises(NotFoundError):
        book.accounts.save_account(account, mode=UpdateMethod.UPDATE)
    book.accounts.save_account(account, mode=UpdateMethod.INSERT)
    with pytest.raises(ConflictError):
        book.accounts.save_account(account, mode=UpdateMethod.INSERT)
    book.accounts.save_account(replace(account, description="Wallet"), mode=UpdateMethod.UPDATE)
    assert book.accounts.get_account(account.uid).description == "Wallet"


def test_duplicate_full_name_rejected(book, usd):
    book.accounts.create_hierarchy("Expenses:Food", AccountType.EXPENSE)
    parent = book.accounts.get_by_full_name("Expenses")
    with pytest.raises(ConflictError):
        book.accounts.save_account(
            Account(name="Food", account_type=AccountType.EXPENSE, commodity=usd, parent_uid=parent.uid)
        )


def test_rename_cascades_to_descendants(book):
    """Renaming an account recomputes its subtree's full names."""
    leaf_uid = book.accounts.create_hierarchy("Expenses:Food:Coffee", AccountType.EXPENSE)
    food = book.accounts.get_by_full_name("Expenses:Food")
    renamed = book.accounts.save_account(replace(food, name="Dining"))
    assert renamed.full_name == "Expenses:Dining"
    assert book.accounts.get_account(leaf_uid).full_name == "Expenses:Dining:Coffee"
    assert book.accounts.find_by_full_name("Expenses:Food:Coffee") is None


def test_move_account_under_new_parent(book):
    coffee_uid = book.accounts.create_hierarchy("Expenses:Coffee", AccountType.EXPENSE)
    food_uid = book.accounts.create_hierarchy("Expenses:Food", AccountType.EXPENSE)
    coffee = book.accounts.get_account(coffee_uid)
    moved = book.accounts.save_account(replace(coffee, parent_uid=food_uid))
    assert moved.full_name == "Expenses:Food:Coffee"


def test_move_under_own_descendant_rejected(book):
    """The hierarchy never contains a cycle."""
    leaf_uid = book.accounts.create_hierarchy("Expenses:Food:Coffee", AccountType.EXPENSE)
    expenses = book.accounts.get_by_full_name("Expenses")
    with pytest.raises(ValidationError):
        book.accounts.save_account(replace(expenses, parent_uid=leaf_uid))
    with pytest.raises(ValidationError):
        book.accounts.save_account(replace(expenses, parent_uid=expenses.uid))


def test_incompatible_parent_type_rejected(book, usd):
    bank_uid = book.accounts.create_hierarchy("Assets:Checking", AccountType.BANK)
    with pytest.raises(ValidationError):
        book.accounts.save_account(
            Account(name="Groceries", account_type=AccountType.EXPENSE, commodity=usd, parent_uid=bank_uid)
        )


def test_type_change_checked_against_children(book):
    book.accounts.create_hierarchy("Expenses:Groceries", AccountType.EXPENSE)
    expenses = book.accounts.get_by_full_name("Expenses")
    with pytest.raises(ValidationError):
        book.accounts.save_account(replace(expenses, account_type=AccountType.EQUITY))
    assert book.accounts.get_account(expenses.uid).account_type is AccountType.EXPENSE

    changed = book.accounts.save_account(replace(expenses, account_type=AccountType.INCOME))
    assert changed.account_type is AccountType.INCOME


def test_commodity_change_refused_once_account_has_splits(book, usd, eur, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 10)
    checking = book.accounts.get_account(checking_uid)
    with pytest.raises(ValidationError):
        book.accounts.save_account(replace(checking, commodity=eur))


def test_list_accounts_hides_hidden_by_default(book, usd):
    book.accounts.save_account(Account(name="Secret", account_type=AccountType.ASSET, commodity=usd, hidden=True))
    book.accounts.create_hierarchy("Assets", AccountType.ASSET)
    assert [a.full_name for a in book.accounts.list_accounts()] == ["Assets"]
    assert [a.full_name for a in book.accounts.list_accounts(include_hidden=True)] == ["Assets", "Secret"]


def test_descendants_breadth_first(book):
    book.accounts.create_hierarchy("Expenses:Food:Coffee", AccountType.EXPENSE)
    book.accounts.create_hierarchy("Expenses:Rent", AccountType.EXPENSE)
    expenses = book.accounts.get_by_full_name("Expenses")
    names = [book.accounts.get_account(uid).full_name for uid in book.accounts.descendants_of(expenses.uid)]
    assert names == ["Expenses:Food", "Expenses:Rent", "Expenses:Food:Coffee"]


def test_resolve_full_name_walks_parents(book):
    uid = book.accounts.create_hierarchy("Assets:Bank:Checking", AccountType.BANK)
    assert book.accounts.resolve_full_name(book.accounts.get_account(uid)) == "Assets:Bank:Checking"
    assert book.accounts.resolve_full_name(book.accounts.create_or_get_root()) == ROOT_ACCOUNT_FULL_NAME


class TestReassignDescendants:
    """Tests for moving all children of an account."""

    def test_moves_children_and_recomputes_full_names(self, book):
        book.accounts.create_hierarchy("Expenses:Old:Coffee:Beans", AccountType.EXPENSE)
        book.accounts.create_hierarchy("Expenses:Old:Tea", AccountType.EXPENSE)
        new_uid = book.accounts.create_hierarchy("Expenses:New", AccountType.EXPENSE)
        old = book.accounts.get_by_full_name("Expenses:Old")

        count = book.accounts.reassign_descendants(old.uid, new_uid)

        assert count == 3
        assert book.accounts.children_of(old.uid) == []
        assert book.accounts.find_by_full_name("Expenses:New:Coffee:Beans") is not None
        tea = book.accounts.get_by_full_name("Expenses:New:Tea")
        assert tea.parent_uid == new_uid

    def test_merges_into_parent_with_same_named_child(self, book):
        """Children move even when the new parent already has one with the same name."""
        old_food_uid = book.accounts.create_hierarchy("Expenses:Old:Food", AccountType.EXPENSE)
        new_food_uid = book.accounts.create_hierarchy("Expenses:New:Food", AccountType.EXPENSE)
        old = book.accounts.get_by_full_name("Expenses:Old")
        new = book.accounts.get_by_full_name("Expenses:New")

        assert book.accounts.reassign_descendants(old.uid, new.uid) == 1

        moved = book.accounts.get_account(old_food_uid)
        assert moved.parent_uid == new.uid
        assert moved.full_name == "Expenses:New:Food"
        assert {a.uid for a in book.accounts.children_of(new.uid)} == {old_food_uid, new_food_uid}
        assert book.accounts.children_of(old.uid) == []
        assert book.accounts.get_by_full_name("Expenses:New:Food").uid == old_food_uid

    def test_merge_then_delete_keeps_transactions(self, book, usd, sample_accounts):
        """Emptying an account before deleting it keeps every transaction."""
        food_uid = book.accounts.create_hierarchy("Expenses:Old:Food", AccountType.EXPENSE)
        new_uid = book.accounts.create_hierarchy("Expenses:New", AccountType.EXPENSE)
        old = book.accounts.get_by_full_name("Expenses:Old")
        checking_uid = sample_accounts["Assets:Checking"]
        book.transactions.record_transfer(checking_uid, food_uid, 15)
        book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 5)
        before = {t.uid for t in book.transactions.transactions_for_account()}

        book.accounts.reassign_descendants(old.uid, new_uid)
        assert book.accounts.recursive_delete(old.uid) == 1

        assert {t.uid for t in book.transactions.transactions_for_account()} == before
        assert book.accounts.get_account(food_uid).full_name == "Expenses:New:Food"
        assert book.balances.balance(new_uid) == Money(15, usd)
        assert book.balances.balance(checking_uid) == Money(-20, usd)

    def test_into_own_subtree_rejected(self, book):
        leaf_uid = book.accounts.create_hierarchy("Expenses:Old:Coffee", AccountType.EXPENSE)
        old = book.accounts.get_by_full_name("Expenses:Old")
        with pytest.raises(ValidationError):
            book.accounts.reassign_descendants(old.uid, leaf_uid)
        with pytest.raises(ValidationError):
            book.accounts.reassign_descendants(old.uid, old.uid)

    def test_type_mismatch_rejected(self, book):
        book.accounts.create_hierarchy("Expenses:Old:Coffee", AccountType.EXPENSE)
        bank_uid = book.accounts.create_hierarchy("Assets:Checking", AccountType.BANK)
        old = book.accounts.get_by_full_name("Expenses:Old")
        with pytest.raises(ValidationError):
            book.accounts.reassign_descendants(old.uid, bank_uid)
        assert book.accounts.find_by_full_name("Expenses:Old:Coffee") is not None


class TestRecursiveDelete:
    """Tests for deleting an account subtree."""

    def test_deletes_subtree_and_its_transactions(self, book, usd, sample_accounts):
        book.accounts.create_hierarchy("Expenses:Groceries:Organic", AccountType.EXPENSE)
        organic = book.accounts.get_by_full_name("Expenses:Groceries:Organic")
        checking_uid = sample_accounts["Assets:Checking"]
        txn = book.transactions.record_transfer(checking_uid, organic.uid, 20)
        salary = book.transactions.record_transfer(sample_accounts["Income:Salary"], checking_uid, 100)

        groceries_uid = sample_accounts["Expenses:Groceries"]
        deleted = book.accounts.recursive_delete(groceries_uid)

        assert deleted == 2
        assert book.accounts.find_by_full_name("Expenses:Groceries") is None
        assert book.accounts.find_by_full_name("Expenses:Groceries:Organic") is None
        with pytest.raises(NotFoundError):
            book.transactions.get_transaction(txn.uid)
        assert book.transactions.get_transaction(salary.uid).uid == salary.uid
        assert book.balances.balance(checking_uid) == Money(100, usd)

    def test_clears_default_transfer_references(self, book, sample_accounts):
        checking = book.accounts.get_account(sample_accounts["Assets:Checking"])
        book.accounts.save_account(
            replace(checking, default_transfer_account_uid=sample_accounts["Expenses:Groceries"])
        )
        book.accounts.recursive_delete(sample_accounts["Expenses:Groceries"])
        assert book.accounts.get_account(checking.uid).default_transfer_account_uid is None

    def test_root_cannot_be_deleted(self, book):
        root = book.accounts.create_or_get_root()
        with pytest.raises(ValidationError):
            book.accounts.recursive_delete(root.uid)

    def test_root_delete_leaves_store_unchanged(self, book, sample_accounts):
        book.transactions.record_transfer(
            sample_accounts["Assets:Checking"], sample_accounts["Expenses:Groceries"], 10
        )
        accounts_before = {a.uid for a in book.accounts.list_accounts(include_hidden=True)}
        transactions_before = {t.uid for t in book.transactions.transactions_for_account()}

        with pytest.raises(ValidationError):
            book.accounts.recursive_delete(book.accounts.create_or_get_root().uid)

        assert {a.uid for a in book.accounts.list_accounts(include_hidden=True)} == accounts_before
        assert {t.uid for t in book.transactions.transactions_for_account()} == transactions_before


def test_imbalance_account_created_under_root(book, usd):
    uid = book.accounts.get_or_create_imbalance_account(usd)
    account = book.accounts.get_account(uid)
    assert account.full_name == "Imbalance-USD"
    assert account.parent_uid == book.accounts.create_or_get_root().uid
    assert not account.hidden
    assert book.accounts.get_or_create_imbalance_account(usd) == uid


def test_imbalance_account_hidden_without_double_entry(book, usd):
    from ledgerkit.domain.preferences import set_double_entry_enabled

    set_double_entry_enabled(book.db, False)
    account = book.accounts.get_account(book.accounts.get_or_create_imbalance_account(usd))
    assert account.hidden


def test_recent_and_favorite_accounts(book, sample_accounts):
    checking = book.accounts.get_account(sample_accounts["Assets:Checking"])
    book.accounts.save_account(replace(checking, favorite=True))
    assert [a.uid for a in book.accounts.favorite_accounts()] == [checking.uid]

    book.transactions.record_transfer(checking.uid, sample_accounts["Expenses:Groceries"], 5)
    recent = {a.uid for a in book.accounts.recent_accounts()}
    assert recent == {checking.uid, sample_accounts["Expenses:Groceries"]}


def test_top_level_accounts(book, sample_accounts):
    names = [a.full_name for a in book.accounts.top_level_accounts()]
    assert names == ["Assets", "Expenses", "Income"]
