"""Tenant rent commands."""

import click

from propcommand.cli.error_handling import handle_domain_error, handle_storage_error
from propcommand.cli.options import (
    format_money,
    parse_amount_or_exit,
    parse_date_or_exit,
    parse_month_or_exit,
)
from propcommand.domain.errors import DomainError, StorageError
from propcommand.domain.tenants import TenantService
from propcommand.domain.transactions import TransactionRecorder


def _service(ctx) -> TenantService:
    store = ctx.obj["store"]
    return TenantService(store, recorder=TransactionRecorder(store, settings=ctx.obj["settings"]))


@click.group()
def tenant_group():
    """Record tenant rent payments."""
    pass


@tenant_group.command("pay")
@click.argument("tenant_id")
@click.argument("amount")
@click.option("--date", "payment_date", default="today", help="Payment date (defaults to today)")
@click.option("--method", default="cash", help="Payment method")
@click.option("--reference", default="", help="Receipt or transfer reference")
@click.option("--for-month", help="Rent month being paid (YYYY-MM)")
@click.pass_context
def record_payment(
    ctx,
    tenant_id: str,
    amount: str,
    payment_date: str,
    method: str,
    reference: str,
    for_month: str | None,
):
    """Record a rent payment and post it to the ledger."""
    service = _service(ctx)
    paid = parse_amount_or_exit(ctx, amount)
    when = parse_date_or_exit(ctx, payment_date, "payment date")
    if for_month is not None:
        for_month = parse_month_or_exit(ctx, for_month)
    try:
        payment = service.record_payment(
            tenant_id,
            amount=paid,
            payment_date=when,
            method=method,
            reference=reference,
            for_month=for_month,
        )
        tenant = service.require_tenant(tenant_id)
        click.echo(
            f"Recorded {format_money(payment.amount)} from {tenant.name} "
            f"(transaction {payment.ledger_transaction_id})"
        )
        click.echo(f"Outstanding balance: {format_money(tenant.outstanding_balance)}")
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)


@tenant_group.command("status")
@click.argument("tenant_id", required=False)
@click.pass_context
def payment_status(ctx, tenant_id: str | None):
    """Show payment status for one tenant or all tenants."""
    service = _service(ctx)
    try:
        tenants = [service.require_tenant(tenant_id)] if tenant_id else service.list_tenants()
        statuses = {tenant.id: service.payment_status(tenant.id) for tenant in tenants}
    except DomainError as e:
        handle_domain_error(ctx, e)
    except StorageError as e:
        handle_storage_error(ctx, e)

    if not tenants:
        click.echo("No tenants found.")
        return

    for tenant in tenants:
        status = statuses[tenant.id]
        last = tenant.last_payment_date.isoformat() if tenant.last_payment_date else "never"
        click.echo(
            f"{tenant.unit_number:6s} | {tenant.name:28s} | {status.value:8s} | "
            f"owes {format_money(tenant.outstanding_balance):>14s} | last paid {last}"
        )


def register_commands(cli: click.Group) -> None:
    """Register tenant commands with main CLI."""
    cli.add_command(tenant_group, name="tenant")
