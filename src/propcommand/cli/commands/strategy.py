"""KPI and critical number commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import parse_amount_or_exit
from propcommand.domain.errors import DomainError, StorageError
from propcommand.domain.strategy import CriticalNumberService, KPIService


@click.group()
def kpi_group():
    """Track key performance indicators."""
    pass


@kpi_group.command("update")
@click.argument("kpi_id")
@click.argument("value")
@click.pass_context
def update_kpi(ctx, kpi_id: str, value: str):
    """Record a new KPI value."""
    service = KPIService(ctx.obj["store"])
    new_value = parse_amount_or_exit(ctx, value, "value")
    try:
        kpi = service.update_value(kpi_id, new_value)
        click.echo(f"{kpi.name}: {kpi.current_value}{kpi.unit} [{kpi.status.value}, {kpi.trend.value}]")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@click.group()
def critical_group():
    """Track critical numbers."""
    pass


@critical_group.command("update")
@click.argument("number_id")
@click.argument("value")
@click.pass_context
def update_critical_number(ctx, number_id: str, value: str):
    """Record a new critical number value."""
    service = CriticalNumberService(ctx.obj["store"])
    new_value = parse_amount_or_exit(ctx, value, "value")
    try:
        number = service.update_value(number_id, new_value)
        click.echo(
            f"{number.name}: {number.current_value}{number.unit} "
            f"[{number.status.value}] ({len(number.history)} readings)"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register KPI and critical number commands with main CLI."""
    cli.add_command(kpi_group, name="kpi")
    cli.add_command(critical_group, name="critical")
