"""Export, migration and store maintenance commands."""

import click

from invoicebook.cli.error_handling import handle_domain_error, parse_partition_or_exit
from invoicebook.domain.errors import DomainError


@click.command("export")
@click.option("--month", help="Month to export (YYYY-MM)")
@click.pass_context
def export_csv(ctx, month: str | None):
    """Regenerate the CSV export of a month from the store."""
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    try:
        path = ledger.export(partition)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Exported {partition} to {path}")


@click.command("migrate")
@click.pass_context
def migrate(ctx):
    """Import legacy invoices.csv files into the store (runs once)."""
    ledger = ctx.obj["ledger"]
    try:
        imported = ledger.migrate()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Migration complete: imported {imported} invoice(s)")


@click.command("wipe")
@click.option("--month", help="Month whose store is wiped (YYYY-MM)")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def wipe(ctx, month: str | None, yes: bool):
    """Delete every invoice record in a store.

    With --global-store this wipes all months. Documents on disk are kept.
    """
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    if not yes:
        click.confirm(f"Delete all invoice records in the store for {partition}?", abort=True)
    try:
        ledger.wipe(partition)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Wiped store for {partition}")


def register_commands(cli):
    """Register maintenance commands with main CLI."""
    cli.add_command(export_csv)
    cli.add_command(migrate)
    cli.add_command(wipe)
