"""General ledger commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import (
    format_money,
    parse_amount_or_exit,
    parse_date_or_exit,
    parse_month_or_exit,
)
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.errors import DomainError, StorageError
from propcommand.domain.transactions import TransactionRecorder


@click.group()
def ledger_group():
    """Record and inspect general ledger entries."""
    pass


@ledger_group.command("list")
@click.option("--account", help="Account number or ID")
@click.option("--month", help="Month (YYYY-MM)")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--all", "include_reversed", is_flag=True, help="Include reversed entries")
@click.pass_context
def list_entries(
    ctx,
    account: str | None,
    month: str | None,
    start_date: str | None,
    end_date: str | None,
    include_reversed: bool,
):
    """List ledger entries with optional filters."""
    registry = AccountRegistry(ctx.obj["store"])
    ledger = registry.ledger

    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")
    if month is not None:
        month = parse_month_or_exit(ctx, month)

    try:
        entries = ledger.by_date_range(start, end, include_reversed=include_reversed)
        if account is not None:
            acc = registry.resolve(account)
            entries = [e for e in entries if e.account_id == acc.id]
        numbers = {acc.id: acc.number for acc in registry.list_accounts()}
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)

    if month is not None:
        entries = [e for e in entries if e.date.isoformat().startswith(month)]
    if not entries:
        click.echo("No ledger entries found.")
        return

    for entry in sorted(entries, key=lambda e: (e.date, e.created_at)):
        flag = " R" if entry.is_reversed else ""
        click.echo(
            f"{entry.date.isoformat()} | {numbers.get(entry.account_id, '?'):8s} | "
            f"Dr {format_money(entry.debit):>15s} | Cr {format_money(entry.credit):>15s} | "
            f"{entry.transaction_id} | {entry.description}{flag}"
        )


@ledger_group.command("record")
@click.argument("debit_account")
@click.argument("credit_account")
@click.argument("amount")
@click.option("--date", "entry_date", default="today", help="Transaction date (defaults to today)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--reference", default="", help="External reference")
@click.option("--property", "property_id", help="Property ID")
@click.pass_context
def record_transaction(
    ctx,
    debit_account: str,
    credit_account: str,
    amount: str,
    entry_date: str,
    description: str,
    reference: str,
    property_id: str | None,
):
    """Record a balanced transaction between two accounts.

    Accounts can be given by number or ID.

    Examples:
        propcommand ledger record 5100 1000 450000 --description "Water bill"
        propcommand ledger record 1000 3000 "UGX 10,000,000" --description "Capital injection"
    """
    store = ctx.obj["store"]
    recorder = TransactionRecorder(store, settings=ctx.obj["settings"])
    txn_amount = parse_amount_or_exit(ctx, amount)
    txn_date = parse_date_or_exit(ctx, entry_date)

    try:
        debit = recorder.registry.resolve(debit_account)
        credit = recorder.registry.resolve(credit_account)
        debit_entry, _ = recorder.record_transaction(
            date=txn_date,
            description=description,
            debit_account_id=debit.id,
            credit_account_id=credit.id,
            amount=txn_amount,
            property_id=property_id,
            reference=reference,
            created_by="cli",
        )
        click.echo(
            f"Recorded transaction {debit_entry.transaction_id}: "
            f"Dr {debit.number} / Cr {credit.number} {format_money(debit_entry.debit)}"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@ledger_group.command("reverse")
@click.argument("entry_id")
@click.option("--reason", default="", help="Reason for the reversal")
@click.option("--date", "reversal_date", help="Reversal date (defaults to today)")
@click.pass_context
def reverse_transaction(ctx, entry_id: str, reason: str, reversal_date: str | None):
    """Reverse a transaction.

    ENTRY_ID can be the transaction ID or the ID of any of its entries.
    """
    recorder = TransactionRecorder(ctx.obj["store"], settings=ctx.obj["settings"])
    when = parse_date_or_exit(ctx, reversal_date, "reversal date")
    try:
        offsets = recorder.reverse_transaction(entry_id, reason=reason, reversal_date=when, created_by="cli")
        click.echo(f"Reversed with transaction {offsets[0].transaction_id} ({len(offsets)} entries)")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@ledger_group.command("trial-balance")
@click.pass_context
def trial_balance(ctx):
    """Show debit and credit totals per account."""
    registry = AccountRegistry(ctx.obj["store"])
    try:
        report = registry.trial_balance()
    except StorageError as e:
        handle_storage_error(ctx, e)

    click.echo(f"\n{'Account':42s} {'Debit':>18s} {'Credit':>18s}")
    click.echo("-" * 80)
    for row in report.rows:
        if not row.total_debit and not row.total_credit:
            continue
        label = f"{row.account.number} {row.account.name}"
        click.echo(
            f"{label[:42]:42s} {format_money(row.total_debit):>18s} {format_money(row.total_credit):>18s}"
        )
    click.echo("-" * 80)
    click.echo(
        f"{'Total':42s} {format_money(report.total_debit):>18s} {format_money(report.total_credit):>18s}"
    )
    click.echo("Balanced" if report.is_balanced else "NOT BALANCED")


def register_commands(cli: click.Group) -> None:
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
