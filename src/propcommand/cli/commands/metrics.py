"""Portfolio metrics commands."""

import click

from propcommand.cli.error_handling import handle_storage_error
from propcommand.cli.options import format_money
from propcommand.domain.errors import StorageError
from propcommand.domain.properties import PropertyService


@click.group()
def metrics_group():
    """Show derived property metrics."""
    pass


@metrics_group.command("portfolio")
@click.option("--detail", is_flag=True, help="Also show metrics per property")
@click.pass_context
def portfolio(ctx, detail: bool):
    """Show occupancy, NOI and value across all properties."""
    service = PropertyService(ctx.obj["store"])
    try:
        totals = service.portfolio()
        figures = [service.metrics(prop.id) for prop in service.list_properties()] if detail else []
    except StorageError as e:
        handle_storage_error(ctx, e)

    click.echo("\nPortfolio:")
    click.echo("-" * 40)
    click.echo(f"Properties:        {totals.total_properties}")
    click.echo(f"Units:             {totals.occupied_units}/{totals.total_units}")
    click.echo(f"Occupancy:         {totals.occupancy_rate:.1f}%")
    click.echo(f"Monthly income:    {format_money(totals.total_monthly_income)}")
    click.echo(f"Monthly expenses:  {format_money(totals.total_monthly_expenses)}")
    click.echo(f"NOI:               {format_money(totals.noi)}")
    click.echo(f"Portfolio value:   {format_money(totals.portfolio_value)}")

    for figure in figures:
        click.echo(
            f"\n{figure.property_name}: occupancy {figure.occupancy_rate:.1f}%, "
            f"NOI {format_money(figure.noi)}, OER {figure.oer:.1f}%, "
            f"cap rate {figure.cap_rate:.2f}%, collection {figure.collection_rate:.1f}%"
        )


def register_commands(cli: click.Group) -> None:
    """Register metrics commands with main CLI."""
    cli.add_command(metrics_group, name="metrics")
