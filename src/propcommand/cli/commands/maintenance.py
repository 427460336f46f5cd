"""Maintenance request commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import format_money, parse_amount_or_exit, parse_date_or_exit
from propcommand.domain.errors import DomainError, StorageError
from propcommand.domain.maintenance import MaintenanceService
from propcommand.domain.transactions import TransactionRecorder


@click.group()
def maintenance_group():
    """Manage maintenance requests."""
    pass


@maintenance_group.command("complete")
@click.argument("request_id")
@click.option("--cost", help="Actual cost, posted to the ledger once")
@click.option("--date", "completed_date", help="Completion date (defaults to today)")
@click.option("--notes", help="Completion notes")
@click.pass_context
def complete_request(ctx, request_id: str, cost: str | None, completed_date: str | None, notes: str | None):
    """Mark a maintenance request completed."""
    store = ctx.obj["store"]
    service = MaintenanceService(store, recorder=TransactionRecorder(store, settings=ctx.obj["settings"]))
    actual_cost = parse_amount_or_exit(ctx, cost, "cost")
    when = parse_date_or_exit(ctx, completed_date, "completion date")
    try:
        request = service.complete(request_id, actual_cost=actual_cost, completed_date=when, notes=notes)
        click.echo(f"Completed maintenance request {request.id}")
        if request.response_time_hours is not None:
            click.echo(f"Response time: {request.response_time_hours:.1f} hours")
        if request.ledger_transaction_id:
            click.echo(
                f"Cost {format_money(request.actual_cost)} posted as transaction "
                f"{request.ledger_transaction_id}"
            )
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register maintenance commands with main CLI."""
    cli.add_command(maintenance_group, name="maintenance")
