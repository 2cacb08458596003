"""Main CLI entry point."""

import logging

import click

from invoicebook.config import (
    ENV_COLUMNS,
    ENV_CONFIG_DIR,
    ENV_DECIMAL_SEPARATOR,
    ENV_STORAGE_ROOT,
    ENV_TEMPLATE,
    Settings,
    parse_column_list,
)
from invoicebook.domain.errors import DomainError
from invoicebook.domain.ledger import InvoiceLedger

# Import and register all commands at module level
from invoicebook.cli.commands import invoice, maintenance, company


@click.group()
@click.option(
    "--storage-root",
    type=click.Path(file_okay=False),
    envvar=ENV_STORAGE_ROOT,
    help="Folder holding the month partitions",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    envvar=ENV_CONFIG_DIR,
    help="Folder for the company account map and the global store",
)
@click.option("--template", envvar=ENV_TEMPLATE, help="Filename naming template")
@click.option(
    "--decimal-separator",
    type=click.Choice([",", "."]),
    envvar=ENV_DECIMAL_SEPARATOR,
    help="Decimal separator used in rendered filenames",
)
@click.option(
    "--columns",
    envvar=ENV_COLUMNS,
    help="Comma-separated CSV column order",
)
@click.option("--flat", is_flag=True, help="Keep all partitions directly in the storage root")
@click.option("--global-store", is_flag=True, help="Use one store for all partitions")
@click.option("--currency", default="EUR", show_default=True, help="Default currency")
@click.option("--verbose", "-v", is_flag=True, help="Log progress messages")
@click.option("--debug", is_flag=True, help="Log debug messages")
@click.pass_context
def cli(
    ctx,
    storage_root: str | None,
    config_dir: str | None,
    template: str | None,
    decimal_separator: str | None,
    columns: str | None,
    flat: bool,
    global_store: bool,
    currency: str,
    verbose: bool,
    debug: bool,
):
    """Invoicebook - month-partitioned invoice records.

    Stores invoice metadata per month, keeps a CSV export of every month in
    sync and names invoice documents after a configurable template.
    """
    ctx.ensure_object(dict)
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Build settings and the ledger only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = Settings.build(
                storage_root=storage_root,
                config_dir=config_dir,
                use_month_subfolders=not flat,
                global_store=global_store,
                naming_template=template,
                decimal_separator=decimal_separator,
                currency_default=currency,
                column_order=parse_column_list(columns) if columns else None,
            )
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        ledger = InvoiceLedger(settings)
        ctx.obj["settings"] = settings
        ctx.obj["ledger"] = ledger
        ctx.call_on_close(ledger.close)


# Register all commands
invoice.register_commands(cli)
maintenance.register_commands(cli)
company.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
