"""Main CLI entry point."""

import logging

import click

from propcommand.cli.error_handling import handle_storage_error
from propcommand.config import LedgerSettings
from propcommand.database.factories import create_sqlite_store
from propcommand.domain.errors import StorageError

# Import and register all commands at module level
from propcommand.cli.commands import (
    account,
    cashflow,
    init,
    ledger,
    maintenance,
    metrics,
    strategy,
    tenant,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PROPCOMMAND_DB_PATH environment variable)",
    envvar="PROPCOMMAND_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log ledger activity to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Property Command - property management back office.

    Keep a double-entry general ledger for rent, maintenance and other
    property costs, compare cashflow against projections, and track the
    KPIs and critical numbers of the business.
    """
    ctx.ensure_object(dict)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # Open the store only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None and "store" not in ctx.obj:
        try:
            store = create_sqlite_store(database_path=db_path)
            store.connect()
            store.initialize_schema()
        except StorageError as e:
            handle_storage_error(ctx, e)
        ctx.obj["store"] = store
        ctx.call_on_close(store.disconnect)
    ctx.obj.setdefault("settings", LedgerSettings.from_env())


# Register all commands
init.register_commands(cli)
account.register_commands(cli)
ledger.register_commands(cli)
cashflow.register_commands(cli)
tenant.register_commands(cli)
maintenance.register_commands(cli)
strategy.register_commands(cli)
metrics.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
