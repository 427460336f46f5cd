"""CLI helpers for parsing option values."""

from datetime import date
from decimal import Decimal

import click

from propcommand.utils.amount_parser import parse_amount
from propcommand.utils.date_parser import parse_date, parse_month


def parse_date_or_exit(ctx: click.Context, value: str | None, label: str = "date") -> date | None:
    """Parse a date option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str | None, label: str = "amount") -> Decimal | None:
    """Parse an amount option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_month_or_exit(ctx: click.Context, value: str) -> str:
    """Validate a YYYY-MM option, or exit with a CLI error."""
    try:
        return parse_month(value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def format_money(amount: Decimal) -> str:
    """Format an amount with thousands separators and no decimals for whole numbers."""
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"
