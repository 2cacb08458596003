"""Invoice record commands."""

import dataclasses
from typing import Any, Callable

import click

from invoicebook.cli.error_handling import handle_domain_error, parse_partition_or_exit
from invoicebook.domain.company_accounts import CompanyAccountMap
from invoicebook.domain.entities import InvoiceRecord
from invoicebook.domain.errors import DomainError, DuplicateInvoiceError
from invoicebook.utils.amount_parser import format_amount, parse_amount
from invoicebook.utils.date_parser import normalize_date

_TEXT_FIELDS = {
    "company": "company",
    "description": "short_description",
    "number": "invoice_number",
    "tax_id": "tax_id",
    "currency": "currency",
    "bank_account": "bank_account",
    "comment": "comment",
}
_DATE_FIELDS = {"date": "invoice_date", "payment_date": "payment_date"}
_AMOUNT_FIELDS = {
    "net": "net_amount",
    "tax_percent": "tax_percent",
    "tax": "tax_amount",
    "gross": "gross_amount",
    "net_default": "net_amount_default_currency",
    "fee": "fee",
}
_FLAG_FIELDS = {"partial": "partial_payment", "attachments": "has_attachments"}


def invoice_field_options(func: Callable) -> Callable:
    """Attach the options describing an invoice record to a command."""
    options = [
        click.option("--company", help="Issuer name"),
        click.option("--description", help="Short description (max 80 characters)"),
        click.option("--number", help="Invoice number"),
        click.option("--tax-id", help="Tax ID of the issuer"),
        click.option("--date", help="Invoice date (DD.MM.YYYY, YYYY-MM-DD or 'today')"),
        click.option("--payment-date", help="Payment date"),
        click.option("--net", help="Net amount"),
        click.option("--tax-percent", help="Tax rate in percent"),
        click.option("--tax", help="Tax amount"),
        click.option("--gross", help="Gross amount"),
        click.option("--currency", help="Currency code (defaults to the configured currency)"),
        click.option("--account", type=int, help="Account code"),
        click.option("--bank-account", help="Bank account"),
        click.option("--partial/--no-partial", default=None, help="Partial payment"),
        click.option("--comment", help="Free-text comment"),
        click.option("--net-default", help="Net amount in the default currency"),
        click.option("--fee", help="Conversion fee"),
        click.option("--attachments/--no-attachments", default=None, help="Has attachments"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def collect_field_values(options: dict[str, Any]) -> dict[str, Any]:
    """Turn the given invoice options into InvoiceRecord field values.

    Options left unset are omitted.

    Raises:
        ValueError: If a date or amount cannot be parsed
    """
    values: dict[str, Any] = {}
    for option, field_name in _TEXT_FIELDS.items():
        if options.get(option) is not None:
            values[field_name] = options[option]
    for option, field_name in _DATE_FIELDS.items():
        if options.get(option) is not None:
            values[field_name] = normalize_date(options[option])
    for option, field_name in _AMOUNT_FIELDS.items():
        if options.get(option) is not None:
            values[field_name] = parse_amount(options[option])
    for option, field_name in _FLAG_FIELDS.items():
        if options.get(option) is not None:
            values[field_name] = options[option]
    if options.get("account") is not None:
        values["account"] = options["account"]
    return values


def _record_from_options(ctx: click.Context, options: dict[str, Any]) -> InvoiceRecord:
    try:
        return InvoiceRecord(**collect_field_values(options))
    except ValueError as e:
        handle_domain_error(ctx, e)


def _company_map(ctx: click.Context) -> CompanyAccountMap:
    company_map = CompanyAccountMap.in_directory(ctx.obj["settings"].config_dir)
    try:
        company_map.load()
    except DomainError as e:
        handle_domain_error(ctx, e)
    return company_map


@click.command("add")
@invoice_field_options
@click.option("--month", help="Working month to file the invoice under (YYYY-MM)")
@click.option(
    "--file",
    "source",
    type=click.Path(exists=True, dir_okay=False),
    help="Invoice document to move into the month folder",
)
@click.option("--force", is_flag=True, help="Store even if it duplicates an existing invoice")
@click.option("--remember", is_flag=True, help="Remember the account code for this company")
@click.pass_context
def add_invoice(ctx, month: str | None, source: str | None, force: bool, remember: bool, **options):
    """Store a new invoice.

    The invoice is filed under --month (default: current month) even when its
    invoice date falls in another month.

    Examples:
        invoicebook add --company "Acme GmbH" --number R-100 --date 15.03.2025 \\
            --net 100 --tax 19 --gross 119 --month 2025-03
        invoicebook add --company "Acme GmbH" --number R-101 --date today --gross 50 --file scan.pdf
    """
    ledger = ctx.obj["ledger"]
    settings = ctx.obj["settings"]
    partition = parse_partition_or_exit(ctx, month)
    record = _record_from_options(ctx, options)

    company_map = _company_map(ctx)
    if options.get("account") is None and record.company:
        code, remembered = company_map.suggest(record.company, settings.default_account)
        record = dataclasses.replace(record, account=code)
        if remembered:
            click.echo(f"Using remembered account {code} for '{record.company}'")

    try:
        saved = ledger.save(partition, record, source_path=source, allow_duplicate=force)
    except DuplicateInvoiceError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(f"  Would be stored as: {e.filename}", err=True)
        click.echo("  Use --force to store it anyway.", err=True)
        ctx.exit(1)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if remember and saved.company:
        company_map.set(saved.company, saved.account)
        try:
            company_map.save()
        except DomainError as e:
            handle_domain_error(ctx, e)

    click.echo(f"Saved invoice {saved.id} as '{saved.filename}' in {partition}")


@click.command("list")
@click.option("--month", help="Month to list (YYYY-MM)")
@click.pass_context
def list_invoices(ctx, month: str | None):
    """List the invoices of a month."""
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    try:
        records = ledger.list_invoices(partition)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not records:
        click.echo(f"No invoices found in {partition}.")
        return

    click.echo(f"\n{len(records)} invoice(s) in {partition}:")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<5} {'Date':<11} {'Company':<25} {'Number':<15} {'Gross':>12} {'Cur':<4} {'Filename'}"
    )
    click.echo("-" * 110)
    for record in records:
        click.echo(
            f"{record.id:<5} {record.invoice_date:<11} {record.company[:25]:<25} "
            f"{record.invoice_number[:15]:<15} {format_amount(record.gross_amount):>12} "
            f"{record.currency:<4} {record.filename}"
        )


@click.command("update")
@click.argument("filename")
@invoice_field_options
@click.option("--month", help="Month the invoice is filed under (YYYY-MM)")
@click.pass_context
def update_invoice(ctx, filename: str, month: str | None, **options):
    """Change fields of a stored invoice.

    FILENAME identifies the invoice within the month. Its document is renamed
    to match the updated fields.
    """
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    try:
        changes = collect_field_values(options)
        existing = next(
            (r for r in ledger.list_invoices(partition) if r.filename == filename), None
        )
        if existing is None:
            click.echo(f"Error: Invoice '{filename}' not found in {partition}", err=True)
            ctx.exit(1)
        updated = dataclasses.replace(existing, **changes)
        if not ledger.update(partition, filename, updated):
            click.echo(f"Warning: invoice '{filename}' was not updated", err=True)
            ctx.exit(1)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated invoice '{filename}' in {partition}")


@click.command("delete")
@click.argument("filename")
@click.option("--month", help="Month the invoice is filed under (YYYY-MM)")
@click.option("--remove-file", is_flag=True, help="Also delete the invoice document")
@click.pass_context
def delete_invoice(ctx, filename: str, month: str | None, remove_file: bool):
    """Delete a stored invoice."""
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    try:
        ledger.delete(partition, filename, remove_file=remove_file)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted invoice '{filename}' from {partition}")


@click.command("preview-name")
@invoice_field_options
@click.option("--original-name", default="", help="Value for the ${OriginalName} token")
@click.pass_context
def preview_name(ctx, original_name: str, **options):
    """Show the filename an invoice would be stored under."""
    ledger = ctx.obj["ledger"]
    record = _record_from_options(ctx, options)
    click.echo(ledger.preview_filename(record, original_name))


@click.command("check-duplicate")
@invoice_field_options
@click.option("--month", help="Working month to check against (YYYY-MM)")
@click.pass_context
def check_duplicate(ctx, month: str | None, **options):
    """Check whether an invoice already exists in a month.

    Exits with status 2 when it is a duplicate.
    """
    ledger = ctx.obj["ledger"]
    partition = parse_partition_or_exit(ctx, month)
    record = _record_from_options(ctx, options)
    try:
        result = ledger.check(partition, record)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Filename: {result.filename}")
    if not result.consistent:
        click.echo("Warning: net + tax does not match gross")
    if result.is_duplicate:
        click.echo(f"Duplicate: an identical invoice exists in {partition}")
        ctx.exit(2)
    click.echo("Not a duplicate")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(add_invoice)
    cli.add_command(list_invoices)
    cli.add_command(update_invoice)
    cli.add_command(delete_invoice)
    cli.add_command(preview_name)
    cli.add_command(check_duplicate)
