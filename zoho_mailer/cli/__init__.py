"""CLI commands: send, account, validate-config."""

from typer import Typer

from zoho_mailer.cli import send as send_module, validate_config as validate_config_module

app = Typer(help="Send email through the Zoho Mail API")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(send_module.send)
    app.command()(validate_config_module.account)
    app.command(name="validate-config")(validate_config_module.validate_config)


register_commands()
