"""CLI helpers for date range resolution."""

from datetime import date

import click

from ledgerkit.utils.date_parser import get_date_range, parse_date


def period_option(func):
    """Add a --period option accepting the named periods of get_date_range."""
    return click.option(
        "--period",
        type=click.Choice(["this-month", "this-year", "this-week", "last-month", "last-year", "last-week"]),
        help="Named period (cannot be combined with --start-date/--end-date)",
    )(func)


def resolve_cli_date_range(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a named period or explicit dates."""
    if period is not None:
        if start_date or end_date:
            click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
            ctx.exit(1)
        return get_date_range(period)

    bounds = []
    for label, value in (("start", start_date), ("end", end_date)):
        if not value:
            bounds.append(None)
            continue
        try:
            bounds.append(parse_date(value))
        except ValueError as e:
            click.echo(f"Error: Invalid {label} date: {e}", err=True)
            ctx.exit(1)
    start, end = bounds
    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must not be after end date.", err=True)
        ctx.exit(1)
    return start, end
