"""Main CLI entry point."""

import logging

import click
from ledgerkit.database.factories import DB_PATH_ENV_VAR, create_sqlite_database
from ledgerkit.domain.book import Book
from ledgerkit.utils.logging_config import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    balance,
    currency,
    price,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV_VAR} environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option("-v", "--verbose", count=True, help="Log progress to stderr (repeat for debug output)")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: int):
    """Ledgerkit - double-entry bookkeeping.

    Keep a chart of accounts, record balanced multi-currency transactions
    and report exact balances.
    """
    ctx.ensure_object(dict)
    setup_logging(logging.DEBUG if verbose > 1 else logging.INFO if verbose else logging.WARNING)

    # Open the book only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        book = Book(db)
        ctx.obj["db"] = db
        ctx.obj["book"] = book
        ctx.call_on_close(book.close)
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
balance.register_commands(cli)
price.register_commands(cli)
currency.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
