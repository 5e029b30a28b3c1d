"""Tests for balance aggregation."""

from datetime import date
from fractions import Fraction

import pytest

from ledgerkit.domain.entities import AccountType, Split, Transaction, TransactionType
from ledgerkit.domain.errors import NotFoundError
from ledgerkit.domain.money import Money


def test_groceries_paid_from_checking(book, usd, sample_accounts):
    """Debits raise an expense; credits lower a bank account."""
    checking_uid = sample_accounts["Assets:Checking"]
    groceries_uid = sample_accounts["Expenses:Groceries"]
    book.transactions.record_transfer(checking_uid, groceries_uid, "50.00")

    assert book.balances.balance(groceries_uid) == Money(50, usd)
    assert book.balances.balance(checking_uid) == Money(-50, usd)


def test_income_is_positive(book, usd, sample_accounts):
    salary_uid = sample_accounts["Income:Salary"]
    book.transactions.record_transfer(salary_uid, sample_accounts["Assets:Checking"], 2500)
    assert book.balances.balance(salary_uid) == Money(2500, usd)


def test_single_split_balances_against_imbalance(book, usd, sample_accounts):
    groceries_uid = sample_accounts["Expenses:Groceries"]
    debit = Split(value=Money(50, usd), account_uid=groceries_uid, type=TransactionType.DEBIT)
    book.transactions.save_transaction(Transaction(description="Lone split", commodity=usd, splits=(debit,)))

    imbalance_uid = book.accounts.imbalance_account_uid(usd)
    assert book.balances.balance(groceries_uid) == Money(50, usd)
    assert book.balances.balance(imbalance_uid) == Money(-50, usd)


def test_parent_includes_subaccounts(book, usd, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    dining_uid = book.accounts.create_hierarchy("Expenses:Dining", AccountType.EXPENSE)
    book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 30)
    book.transactions.record_transfer(checking_uid, dining_uid, 20)

    expenses = book.accounts.get_by_full_name("Expenses")
    assert book.balances.balance(expenses.uid) == Money(50, usd)
    assert book.balances.balance(expenses.uid, include_subaccounts=False) == Money(0, usd)


def test_foreign_child_converted_at_latest_rate(book, usd, eur):
    """A EUR subaccount counts toward a USD parent at the current price."""
    assets_uid = book.accounts.create_hierarchy("Assets", AccountType.ASSET, usd)
    savings_uid = book.accounts.create_hierarchy("Assets:Euro Savings", AccountType.BANK, eur)
    equity_uid = book.accounts.create_hierarchy("Equity:Opening Balances", AccountType.EQUITY, eur)
    book.transactions.record_transfer(equity_uid, savings_uid, 100)
    book.prices.add_rate(eur, usd, Fraction(11, 10))

    assert book.balances.balance(savings_uid) == Money(100, eur)
    assert book.balances.balance(assets_uid) == Money(110, usd)


def test_child_without_rate_is_left_out(book, usd, eur):
    assets_uid = book.accounts.create_hierarchy("Assets", AccountType.ASSET, usd)
    savings_uid = book.accounts.create_hierarchy("Assets:Euro Savings", AccountType.BANK, eur)
    equity_uid = book.accounts.create_hierarchy("Equity", AccountType.EQUITY, eur)
    book.transactions.record_transfer(equity_uid, savings_uid, 100)

    assert book.balances.balance(assets_uid) == Money(0, usd)


def test_mixed_sign_subtree(book, usd):
    """Child balances are combined before the parent's sign is applied."""
    assets_uid = book.accounts.create_hierarchy("Assets", AccountType.ASSET)
    checking_uid = book.accounts.create_hierarchy("Assets:Checking", AccountType.BANK)
    card_uid = book.accounts.create_hierarchy("Assets:Card", AccountType.CREDIT)
    groceries_uid = book.accounts.create_hierarchy("Expenses:Groceries", AccountType.EXPENSE)
    book.transactions.record_transfer(card_uid, checking_uid, 100)
    book.transactions.record_transfer(card_uid, groceries_uid, 40)

    assert book.balances.balance(card_uid) == Money(140, usd)
    assert book.balances.balance(checking_uid) == Money(100, usd)
    assert book.balances.balance(assets_uid) == Money(-40, usd)


def test_date_range_is_inclusive(book, usd, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    groceries_uid = sample_accounts["Expenses:Groceries"]
    book.transactions.record_transfer(checking_uid, groceries_uid, 10, timestamp=date(2024, 1, 1))
    book.transactions.record_transfer(checking_uid, groceries_uid, 20, timestamp=date(2024, 1, 31))
    book.transactions.record_transfer(checking_uid, groceries_uid, 40, timestamp=date(2024, 2, 1))

    january = book.balances.balance(groceries_uid, start=date(2024, 1, 1), end=date(2024, 1, 31))
    assert january == Money(30, usd)
    assert book.balances.balance(groceries_uid, start=date(2024, 2, 1)) == Money(40, usd)
    assert book.balances.balance(groceries_uid, end=date(2023, 12, 31)) == Money(0, usd)
    assert book.balances.balance(groceries_uid) == Money(70, usd)


def test_missing_account_raises(book):
    with pytest.raises(NotFoundError):
        book.balances.balance("0" * 32)


def test_balances_of_many_accounts(book, usd, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    groceries_uid = sample_accounts["Expenses:Groceries"]
    salary_uid = sample_accounts["Income:Salary"]
    book.transactions.record_transfer(salary_uid, checking_uid, 100)
    book.transactions.record_transfer(checking_uid, groceries_uid, 30)

    balances = book.balances.balances_of([checking_uid, groceries_uid, salary_uid])
    assert balances == {
        checking_uid: Money(70, usd),
        groceries_uid: Money(30, usd),
        salary_uid: Money(100, usd),
    }


def test_balance_by_type_converts_to_currency(book, usd, eur, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 30)
    travel_uid = book.accounts.create_hierarchy("Expenses:Travel", AccountType.EXPENSE, eur)
    euro_cash_uid = book.accounts.create_hierarchy("Assets:Euro Cash", AccountType.BANK, eur)
    book.transactions.record_transfer(euro_cash_uid, travel_uid, 10)
    book.prices.add_rate(eur, usd, "1.1")

    assert book.balances.balance_by_type([AccountType.EXPENSE]) == Money(41, usd)
    assert book.balances.balance_by_type([AccountType.EXPENSE], eur) == Money(Fraction(300, 11) + 10, eur)


def test_total_in_skips_unconvertible(book, usd, eur):
    total = book.balances.total_in([Money(5, usd), Money(3, eur)], usd)
    assert total == Money(5, usd)


class TestBalanceCache:
    """Tests for cached all-time balances."""

    def test_cached_balance_is_stored_and_reused(self, book, usd, sample_accounts):
        checking_uid = sample_accounts["Assets:Checking"]
        book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 25)

        assert book.db.get_cached_balance(checking_uid) is None
        assert book.balances.balance(checking_uid) == Money(-25, usd)
        assert book.db.get_cached_balance(checking_uid) == Fraction(-25)
        assert book.balances.balance(checking_uid) == Money(-25, usd)

    def test_any_commit_clears_cached_balances(self, book, usd, sample_accounts):
        checking_uid = sample_accounts["Assets:Checking"]
        groceries_uid = sample_accounts["Expenses:Groceries"]
        book.transactions.record_transfer(checking_uid, groceries_uid, 25)
        book.balances.balance(checking_uid)

        book.transactions.record_transfer(checking_uid, groceries_uid, 5)
        assert book.db.get_cached_balance(checking_uid) is None
        assert book.balances.balance(checking_uid) == Money(-30, usd)

    def test_new_price_changes_parent_balance(self, book, usd, eur):
        assets_uid = book.accounts.create_hierarchy("Assets", AccountType.ASSET, usd)
        savings_uid = book.accounts.create_hierarchy("Assets:Euro Savings", AccountType.BANK, eur)
        equity_uid = book.accounts.create_hierarchy("Equity", AccountType.EQUITY, eur)
        book.transactions.record_transfer(equity_uid, savings_uid, 100)
        book.prices.add_rate(eur, usd, "1.1", date=date(2024, 1, 1))
        assert book.balances.balance(assets_uid) == Money(110, usd)

        book.prices.add_rate(eur, usd, "1.2", date=date(2024, 2, 1))
        assert book.balances.balance(assets_uid) == Money(120, usd)

    def test_ranged_balances_are_not_cached(self, book, sample_accounts):
        checking_uid = sample_accounts["Assets:Checking"]
        book.transactions.record_transfer(checking_uid, sample_accounts["Expenses:Groceries"], 25)
        book.balances.balance(checking_uid, start=date(2000, 1, 1))
        assert book.db.get_cached_balance(checking_uid) is None


def test_opening_balance_transactions(book, usd, sample_accounts):
    checking_uid = sample_accounts["Assets:Checking"]
    book.transactions.record_transfer(sample_accounts["Income:Salary"], checking_uid, 100)

    transactions = book.balances.opening_balance_transactions()
    by_account = {t.splits[0].account_uid: t for t in transactions}
    equity_uid = book.accounts.get_by_full_name("Equity:Opening Balances").uid

    assert set(by_account) == {checking_uid, sample_accounts["Income:Salary"]}
    checking_txn = by_account[checking_uid]
    assert checking_txn.description == "Opening Balance"
    assert checking_txn.exported
    assert checking_txn.is_balanced()
    assert checking_txn.splits[0].type is TransactionType.DEBIT
    assert checking_txn.splits[1].account_uid == equity_uid
    assert checking_txn.splits[1].value == Money(100, usd)
