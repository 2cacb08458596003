"""CLI error handling helpers."""

from datetime import date

import click

from invoicebook.domain.entities import Partition
from invoicebook.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def parse_partition_or_exit(ctx: click.Context, value: str | None) -> Partition:
    """Parse a --month value (YYYY-MM), defaulting to the current month."""
    if not value:
        return Partition.from_date(date.today())
    try:
        return Partition.parse(value)
    except DomainError as e:
        handle_domain_error(ctx, e)
