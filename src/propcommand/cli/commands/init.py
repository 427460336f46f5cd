"""Store initialisation commands."""

import click

from propcommand.cli.error_handling import handle_storage_error
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.bootstrap import initialize, reset
from propcommand.domain.cashflow import CashflowForecastService
from propcommand.domain.errors import StorageError


@click.command("init")
@click.option("--with-projections", is_flag=True, help="Also seed a 12-month cashflow forecast")
@click.pass_context
def init_store(ctx, with_projections: bool):
    """Initialize the store with the default chart of accounts."""
    store = ctx.obj["store"]
    try:
        created = initialize(store)
        if not created:
            click.echo("Store already initialized.")
        else:
            count = len(AccountRegistry(store).list_accounts())
            click.echo(f"Initialized store with {count} accounts.")
        if with_projections:
            months = CashflowForecastService(store, settings=ctx.obj["settings"]).seed_projections()
            click.echo(f"Seeded {months} cashflow projections.")
    except StorageError as e:
        handle_storage_error(ctx, e)


@click.command("reset")
@click.confirmation_option(prompt="This deletes all data. Continue?")
@click.pass_context
def reset_store(ctx):
    """Delete all data and initialize again."""
    try:
        reset(ctx.obj["store"])
        click.echo("Store reset.")
    except StorageError as e:
        handle_storage_error(ctx, e)


def register_commands(cli):
    """Register init and reset commands with main CLI."""
    cli.add_command(init_store)
    cli.add_command(reset_store)
