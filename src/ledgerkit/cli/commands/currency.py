"""Currency commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import NAMESPACE_CURRENCY
from ledgerkit.domain.errors import DomainError


@click.group()
def currency_group():
    """Manage currencies."""
    pass


@currency_group.command("default")
@click.argument("code", required=False)
@click.pass_context
def default_currency(ctx, code: str | None) -> None:
    """Show the default currency, or set it to CODE.

    Examples:
        ledgerkit currency default
        ledgerkit currency default EUR
    """
    book = ctx.obj["book"]
    if code is None:
        commodity = book.commodities.default()
        click.echo(f"Default currency: {commodity.mnemonic} ({commodity.fullname})")
        return

    try:
        commodity = book.commodities.set_default(code)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Default currency set to {commodity.mnemonic}")


@currency_group.command("list")
@click.pass_context
def list_currencies(ctx) -> None:
    """List known currencies."""
    book = ctx.obj["book"]
    for commodity in book.commodities.list(NAMESPACE_CURRENCY):
        click.echo(f"{commodity.mnemonic}  {commodity.symbol:4s} {commodity.fullname}")


def register_commands(cli):
    """Register currency commands with main CLI."""
    cli.add_command(currency_group, name="currency")
