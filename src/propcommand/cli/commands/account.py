"""Chart of accounts commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import format_money
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.entities import AccountCategory
from propcommand.domain.errors import DomainError, StorageError

CATEGORY_CHOICES = [category.value for category in AccountCategory]


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@click.option("--category", type=click.Choice(CATEGORY_CHOICES, case_sensitive=False))
@click.pass_context
def list_accounts(ctx, category: str | None):
    """List accounts with their balances."""
    registry = AccountRegistry(ctx.obj["store"])
    selected = None
    if category is not None:
        selected = next(c for c in AccountCategory if c.value.lower() == category.lower())

    try:
        accounts = registry.list_accounts(category=selected)
    except StorageError as e:
        handle_storage_error(ctx, e)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        click.echo(
            f"{acc.number:8s} | {acc.name:32s} | {acc.category.value:9s} | "
            f"{format_money(acc.current_balance):>18s}"
        )


@account_group.command("create")
@click.argument("number")
@click.argument("name")
@click.option(
    "--category",
    required=True,
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    help="Account category",
)
@click.option("--type", "account_type", default="", help="Account subtype, e.g. 'Current Asset'")
@click.option("--description", default="", help="Account description")
@click.pass_context
def create_account(ctx, number: str, name: str, category: str, account_type: str, description: str):
    """Create an account.

    Examples:
        propcommand account create 5600 "Security Services" --category Expense
        propcommand account create 1000.02 "Cash at Bank - Stanbic" --category Asset
    """
    registry = AccountRegistry(ctx.obj["store"])
    selected = next(c for c in AccountCategory if c.value.lower() == category.lower())
    try:
        account = registry.create_account(
            number=number,
            name=name,
            category=selected,
            account_type=account_type,
            description=description,
        )
        click.echo(f"Created account {account.number} '{account.name}' (ID: {account.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@account_group.command("delete")
@click.argument("account")
@click.pass_context
def delete_account(ctx, account: str):
    """Delete an account with no live ledger entries.

    ACCOUNT can be an account number or ID.
    """
    registry = AccountRegistry(ctx.obj["store"])
    try:
        acc = registry.resolve(account)
        registry.delete_account(acc.id)
        click.echo(f"Deleted account {acc.number} '{acc.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@account_group.command("recompute")
@click.argument("account", required=False)
@click.pass_context
def recompute_balances(ctx, account: str | None):
    """Recompute cached balances from the ledger.

    Recomputes every account unless ACCOUNT (number or ID) is given.
    """
    registry = AccountRegistry(ctx.obj["store"])
    try:
        if account is None:
            balances = registry.recompute_all()
            click.echo(f"Recomputed {len(balances)} account balances.")
            return
        acc = registry.resolve(account)
        balance = registry.recompute_balance(acc.id)
        click.echo(f"{acc.number} {acc.name}: {format_money(balance)}")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
