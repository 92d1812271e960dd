"""Shared CLI helpers: console, logger, client construction from the environment."""

from rich.console import Console

from zoho_mailer.config import config_from_env
from zoho_mailer.mail_provider import ZohoMailClient
from zoho_mailer.utils.logger import get_logger

console = Console()
logger = get_logger("zoho_mailer.cli")


def get_client() -> ZohoMailClient:
    """Return a client configured from ZOHO_* environment variables (and .env)."""
    return ZohoMailClient(config_from_env())
