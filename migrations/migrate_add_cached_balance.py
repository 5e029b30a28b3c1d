#!/usr/bin/env python3
"""Migration script to add cached balance columns to the accounts table.

This migration adds two nullable columns to the accounts table:
- balance_num (INTEGER)
- balance_denom (INTEGER)

Together they hold the exact all-time balance of an account including its
subaccounts. NULL means the cache is stale, so existing rows need no
backfill: balances are computed and cached on the next read.

Usage:
    python migrations/migrate_add_cached_balance.py [--db-path PATH]
"""

import sys

from sqlalchemy import inspect, text
from ledgerkit.database.factories import create_sqlite_database

COLUMNS = ("balance_num", "balance_denom")


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table."""
    columns = [col["name"] for col in inspect(engine).get_columns(table_name)]
    return column_name in columns


def migrate_database(database_path: str | None = None) -> int:
    """Add the cached balance columns where missing.

    Args:
        database_path: Path to database file. If None, uses default location.

    Returns:
        Number of columns added

    Raises:
        RuntimeError: If the accounts table does not exist
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()
    try:
        engine = db.engine
        if "accounts" not in inspect(engine).get_table_names():
            raise RuntimeError("Table 'accounts' does not exist. Please initialize the database schema first.")

        missing = [column for column in COLUMNS if not column_exists(engine, "accounts", column)]
        if not missing:
            print("Migration already applied: cached balance columns exist in accounts table")
            return 0

        with engine.begin() as conn:
            for column in missing:
                conn.execute(text(f"ALTER TABLE accounts ADD COLUMN {column} INTEGER"))
                print(f"  Added column: {column}")
        print("Migration completed successfully!")
        return len(missing)
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(description="Add cached balance columns to accounts")
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
