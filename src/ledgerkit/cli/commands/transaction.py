"""Transaction management commands."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.date_filters import period_option, resolve_cli_date_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import Transaction
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


def _print_transaction(book, txn: Transaction, show_splits: bool = True) -> None:
    click.echo(f"{txn.timestamp.date().isoformat()}  {txn.description or '(no description)'}  [{txn.uid}]")
    if not show_splits:
        return
    for split in txn.splits:
        account = book.accounts.get_account(split.account_uid)
        memo = f"  ({split.memo})" if split.memo else ""
        click.echo(f"    {split.type.value:6s} {account.full_name:36s} {str(split.value):>18s}{memo}")


@transaction_group.command("add")
@click.option("--from", "from_account", required=True, help="Account the money leaves (name or UID)")
@click.option("--to", "to_account", required=True, help="Account the money goes to (name or UID)")
@click.option("--amount", required=True, help="Amount in the source account's currency (e.g., 12.50)")
@click.option("--description", default="", help="Transaction description")
@click.option("--date", "date_str", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--memo", help="Memo stored on both splits")
@click.pass_context
def add_transaction(
    ctx,
    from_account: str,
    to_account: str,
    amount: str,
    description: str,
    date_str: str | None,
    memo: str | None,
) -> None:
    """Record a transfer between two accounts.

    Examples:
        ledgerkit transaction add --from "Assets:Checking" --to "Expenses:Groceries" --amount 50
        ledgerkit transaction add --from Income:Salary --to Assets:Checking --amount 2500 --date 2024-01-31
    """
    book = ctx.obj["book"]
    from_uid = resolve_account_or_exit(ctx, book.accounts, from_account)
    to_uid = resolve_account_or_exit(ctx, book.accounts, to_account)

    try:
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    txn_date = None
    if date_str is not None:
        try:
            txn_date = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        txn = book.transactions.record_transfer(
            from_uid, to_uid, value, description=description, timestamp=txn_date, memo=memo
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created transaction {txn.uid}")


@transaction_group.command("list")
@click.option("--account", help="Only transactions touching this account (name or UID)")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@period_option
@click.option("--brief", is_flag=True, help="Do not show splits")
@click.pass_context
def list_transactions(
    ctx,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    brief: bool,
) -> None:
    """List transactions, newest first."""
    book = ctx.obj["book"]
    account_uid = resolve_account_or_exit(ctx, book.accounts, account) if account else None
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)

    transactions = book.transactions.transactions_for_account(account_uid, start, end)
    if not transactions:
        click.echo("No transactions found.")
        return
    for txn in transactions:
        _print_transaction(book, txn, show_splits=not brief)


@transaction_group.command("show")
@click.argument("transaction_uid")
@click.pass_context
def show_transaction(ctx, transaction_uid: str) -> None:
    """Show a transaction with its splits."""
    book = ctx.obj["book"]
    try:
        txn = book.transactions.get_transaction(transaction_uid)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _print_transaction(book, txn)
    if txn.note:
        click.echo(f"    Note: {txn.note}")


@transaction_group.command("suggest")
@click.argument("prefix")
@click.option("--account", help="Only transactions touching this account (name or UID)")
@click.pass_context
def suggest_transactions(ctx, prefix: str, account: str | None) -> None:
    """Suggest earlier transactions whose description starts with PREFIX."""
    book = ctx.obj["book"]
    account_uid = resolve_account_or_exit(ctx, book.accounts, account) if account else None

    suggestions = book.transactions.suggest_by_description(prefix, account_uid)
    if not suggestions:
        click.echo("No suggestions.")
        return
    for txn in suggestions:
        _print_transaction(book, txn, show_splits=False)


@transaction_group.command("delete")
@click.argument("transaction_uid")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_uid: str, yes: bool) -> None:
    """Delete a transaction and its splits."""
    book = ctx.obj["book"]
    try:
        txn = book.transactions.get_transaction(transaction_uid)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Delete transaction '{txn.description}' ({txn.uid})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        book.transactions.delete_transaction(transaction_uid)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_uid}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
