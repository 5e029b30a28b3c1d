"""Price (exchange rate) commands."""

from decimal import Decimal

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


@click.group()
def price_group():
    """Manage exchange rates between currencies."""
    pass


@price_group.command("add")
@click.argument("from_code", metavar="FROM")
@click.argument("to_code", metavar="TO")
@click.argument("rate", metavar="RATE")
@click.option("--date", "date_str", help="Quote date (defaults to now)")
@click.pass_context
def add_price(ctx, from_code: str, to_code: str, rate: str, date_str: str | None) -> None:
    """Record that 1 FROM is worth RATE TO.

    RATE may be a decimal or an exact ratio.

    Examples:
        ledgerkit price add EUR USD 1.10
        ledgerkit price add USD JPY 150 --date 2024-03-01
        ledgerkit price add GBP EUR 117/100
    """
    book = ctx.obj["book"]
    try:
        value = parse_amount(rate)
    except ValueError as e:
        click.echo(f"Error: Invalid rate: {e}", err=True)
        ctx.exit(1)

    quote_date = None
    if date_str is not None:
        try:
            quote_date = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        commodity = book.commodities.require(from_code)
        currency = book.commodities.require(to_code)
        price = book.prices.add_rate(commodity, currency, value, date=quote_date)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Recorded 1 {commodity.mnemonic} = {price.value_num}/{price.value_denom} {currency.mnemonic}"
    )


@price_group.command("rate")
@click.argument("from_code", metavar="FROM")
@click.argument("to_code", metavar="TO")
@click.option("--date", "date_str", help="Use the latest quote on or before this date")
@click.pass_context
def show_rate(ctx, from_code: str, to_code: str, date_str: str | None) -> None:
    """Show the rate used to convert FROM into TO."""
    book = ctx.obj["book"]
    as_of = None
    if date_str is not None:
        try:
            as_of = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        commodity = book.commodities.require(from_code)
        currency = book.commodities.require(to_code)
    except DomainError as e:
        handle_domain_error(ctx, e)

    rate = book.prices.get_rate(commodity, currency, as_of)
    if rate is None:
        click.echo(f"No exchange rate from {commodity.mnemonic} to {currency.mnemonic}", err=True)
        ctx.exit(1)
    approx = Decimal(rate.numerator) / Decimal(rate.denominator)
    click.echo(f"1 {commodity.mnemonic} = {rate} {currency.mnemonic} (~{approx:.6g})")


@price_group.command("list")
@click.argument("code", required=False)
@click.pass_context
def list_prices(ctx, code: str | None) -> None:
    """List stored prices, newest first."""
    book = ctx.obj["book"]
    try:
        commodity = book.commodities.require(code) if code else None
    except DomainError as e:
        handle_domain_error(ctx, e)

    prices = book.prices.list_prices(commodity)
    if not prices:
        click.echo("No prices found.")
        return
    for price in prices:
        base = book.commodities.get(price.commodity_uid)
        quote = book.commodities.get(price.currency_uid)
        click.echo(
            f"{price.date.date().isoformat()}  1 {base.mnemonic} = "
            f"{price.value_num}/{price.value_denom} {quote.mnemonic}  ({price.source})"
        )


def register_commands(cli):
    """Register price commands with main CLI."""
    cli.add_command(price_group, name="price")
