"""Company account mapping commands."""

import click

from invoicebook.cli.error_handling import handle_domain_error
from invoicebook.domain.company_accounts import CompanyAccountMap
from invoicebook.domain.errors import DomainError


@click.group("company")
def company_group():
    """Manage remembered account codes per company."""
    pass


def _load_map(ctx) -> CompanyAccountMap:
    company_map = CompanyAccountMap.in_directory(ctx.obj["settings"].config_dir)
    try:
        company_map.load()
    except DomainError as e:
        handle_domain_error(ctx, e)
    return company_map


@company_group.command("get")
@click.argument("name", metavar="COMPANY")
@click.pass_context
def get_account(ctx, name: str):
    """Show the account code remembered for a company."""
    company_map = _load_map(ctx)
    code, remembered = company_map.suggest(name, ctx.obj["settings"].default_account)
    if not remembered:
        click.echo(f"No account remembered for '{name}' (default: {code})")
        return
    click.echo(f"{name}: {code}")


@company_group.command("set")
@click.argument("name", metavar="COMPANY")
@click.argument("code", type=int, metavar="ACCOUNT_CODE")
@click.pass_context
def set_account(ctx, name: str, code: int):
    """Remember an account code for a company.

    Examples:
        invoicebook company set "Acme GmbH" 4930
    """
    company_map = _load_map(ctx)
    company_map.set(name, code)
    try:
        company_map.save()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Remembered account {code} for '{name}'")


def register_commands(cli):
    """Register company commands with main CLI."""
    cli.add_command(company_group)
