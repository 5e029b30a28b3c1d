"""Balance reporting command."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.date_filters import period_option, resolve_cli_date_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError


@click.command("balance")
@click.argument("account", required=False, metavar="[ACCOUNT]")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@period_option
@click.option("--no-subaccounts", is_flag=True, help="Only count the account's own splits")
@click.option(
    "--type",
    "account_types",
    multiple=True,
    type=click.Choice([t.value for t in AccountType if t is not AccountType.ROOT], case_sensitive=False),
    help="Total all accounts of this type instead (repeatable)",
)
@click.option("--currency", help="Currency for --type totals (defaults to the book's default)")
@click.pass_context
def balance(
    ctx,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    no_subaccounts: bool,
    account_types: tuple[str, ...],
    currency: str | None,
) -> None:
    """Show account balances.

    Without ACCOUNT, shows every top-level account.

    Examples:
        ledgerkit balance "Assets:Checking"
        ledgerkit balance Expenses --period last-month
        ledgerkit balance --type INCOME --type EXPENSE --currency USD
    """
    book = ctx.obj["book"]
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    include_subaccounts = not no_subaccounts

    try:
        if account_types:
            target = book.commodities.require(currency) if currency else None
            types = [AccountType(t.upper()) for t in account_types]
            total = book.balances.balance_by_type(types, target, start, end)
            click.echo(f"{', '.join(t.value for t in types)}: {total}")
            return

        if account:
            uids = [resolve_account_or_exit(ctx, book.accounts, account)]
        else:
            uids = [a.uid for a in book.accounts.top_level_accounts() if not a.hidden]
        if not uids:
            click.echo("No accounts found.")
            return

        for uid in uids:
            acc = book.accounts.get_account(uid)
            amount = book.balances.balance(uid, start, end, include_subaccounts=include_subaccounts)
            click.echo(f"{acc.full_name:40s} {str(amount):>20s}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register balance command with main CLI."""
    cli.add_command(balance)
