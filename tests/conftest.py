"""Shared pytest fixtures for ledgerkit tests."""

import tempfile
import os
import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.book import Book
from ledgerkit.domain.entities import AccountType


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    for path in (db_path, db_path + "-wal", db_path + "-shm"):
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def book(temp_db):
    """Create a Book with USD as its default currency."""
    book = Book(temp_db)
    book.commodities.set_default("USD")
    yield book
    book.close()


@pytest.fixture
def usd(book):
    return book.commodities.require("USD")


@pytest.fixture
def eur(book):
    return book.commodities.require("EUR")


@pytest.fixture
def sample_accounts(book):
    """Create a small chart of accounts and return their UIDs by full name."""
    paths = [
        ("Assets:Checking", AccountType.BANK),
        ("Expenses:Groceries", AccountType.EXPENSE),
        ("Income:Salary", AccountType.INCOME),
    ]
    return {path: book.accounts.create_hierarchy(path, account_type) for path, account_type in paths}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
