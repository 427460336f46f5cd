"""Cashflow forecast commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import format_money, parse_amount_or_exit, parse_month_or_exit
from propcommand.domain.cashflow import PROJECTION_FIELDS, CashflowForecastService
from propcommand.domain.errors import DomainError, StorageError


@click.group()
def cashflow_group():
    """Manage cashflow projections and compare them with actuals."""
    pass


@cashflow_group.command("set")
@click.argument("month")
@click.option("--rent-income", help="Projected rent income")
@click.option("--other-income", help="Projected other income")
@click.option("--maintenance-expenses", help="Projected maintenance expenses")
@click.option("--operating-expenses", help="Projected operating expenses")
@click.option("--property-tax-insurance", help="Projected property tax and insurance")
@click.option("--management-fees", help="Projected management fees")
@click.option("--notes", help="Notes")
@click.pass_context
def set_projection(ctx, month: str, notes: str | None, **amounts):
    """Set projected amounts for MONTH (YYYY-MM).

    Only the amounts given are changed.

    Examples:
        propcommand cashflow set 2025-03 --rent-income 65000000 --maintenance-expenses 8000000
    """
    service = CashflowForecastService(ctx.obj["store"], settings=ctx.obj["settings"])
    month = parse_month_or_exit(ctx, month)
    parsed = {name: parse_amount_or_exit(ctx, value, name.replace("_", " ")) for name, value in amounts.items()}
    try:
        projection = service.set_projection(month, notes=notes, **parsed)
        click.echo(f"Set projection for {projection.month}: net {format_money(projection.projected_net)}")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@cashflow_group.command("show")
@click.option("--month", help="Show one month in detail (YYYY-MM)")
@click.pass_context
def show_forecast(ctx, month: str | None):
    """Show projected versus actual cashflow."""
    service = CashflowForecastService(ctx.obj["store"], settings=ctx.obj["settings"])

    if month is not None:
        month = parse_month_or_exit(ctx, month)
    try:
        if month is not None:
            line = service.forecast_line(month)
        else:
            lines = service.forecast(use_rollup=True)
    except StorageError as e:
        handle_storage_error(ctx, e)

    if month is not None:
        click.echo(f"\nCashflow {line.month}")
        click.echo(f"{'Line':26s} {'Projected':>16s} {'Actual':>16s}")
        click.echo("-" * 60)
        for name in PROJECTION_FIELDS:
            projected = getattr(line.projection, name)
            actual = getattr(line, f"actual_{name}")
            click.echo(f"{name.replace('_', ' '):26s} {format_money(projected):>16s} {format_money(actual):>16s}")
        click.echo("-" * 60)
        click.echo(f"{'net':26s} {format_money(line.projected_net):>16s} {format_money(line.actual_net):>16s}")
        click.echo(f"Variance: {format_money(line.variance)} ({line.variance_percent:.1f}%)")
        return

    if not lines:
        click.echo("No cashflow projections found.")
        return

    click.echo(f"\n{'Month':8s} {'Projected':>16s} {'Actual':>16s} {'Variance':>16s} {'%':>7s}")
    click.echo("-" * 68)
    for line in lines:
        click.echo(
            f"{line.month:8s} {format_money(line.projected_net):>16s} "
            f"{format_money(line.actual_net):>16s} {format_money(line.variance):>16s} "
            f"{line.variance_percent:>6.1f}%"
        )


def register_commands(cli: click.Group) -> None:
    """Register cashflow commands with main CLI."""
    cli.add_command(cashflow_group, name="cashflow")
