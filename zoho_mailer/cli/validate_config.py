"""Validate configuration: resolve settings from the environment and print a summary table."""

import typer
from rich.markup import escape
from rich.table import Table

from zoho_mailer.config import config_from_env
from zoho_mailer.errors import ConfigurationError, ZohoMailerError

from .shared import console, get_client, logger


def validate_config() -> None:
    """Resolve ZOHO_* settings, validate them and print a summary (secrets masked)."""
    log = logger.bind(command="validate-config")
    log.info("validate_config.start")

    try:
        config = config_from_env()
    except ConfigurationError as e:
        console.print(f"[red]Config error: {escape(str(e))}[/red]")
        log.error("validate_config.fail", error=str(e), missing=e.missing_keys)
        raise typer.Exit(1) from e

    table = Table(title="Zoho mailer config")
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="green")
    for key, value in config.summary().items():
        table.add_row(key, value or "[dim](unset)[/dim]")

    console.print(table)
    console.print("[green]Config valid.[/green]")
    log.info("validate_config.ok", token_store=config.token_store.value)


def account() -> None:
    """Exchange the refresh token and print the Zoho account id."""
    log = logger.bind(command="account")
    try:
        with get_client() as client:
            account_id = client.fetch_account_id()
    except ZohoMailerError as e:
        console.print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
        log.error("account.fail", error=str(e))
        raise typer.Exit(1) from e
    console.print(account_id)
    log.info("account.ok", account_id=account_id)
