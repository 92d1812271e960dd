"""Error taxonomy for the Zoho mail client."""

from __future__ import annotations


class ZohoMailerError(Exception):
    """Base class for every error raised by zoho_mailer."""


class ConfigurationError(ZohoMailerError):
    """Missing or invalid setup, or missing call parameters. Caller must fix input."""

    def __init__(self, message: str, missing_keys: list[str] | None = None):
        super().__init__(message)
        self.missing_keys = list(missing_keys or [])


class APIError(ZohoMailerError):
    """Non-success HTTP response or malformed response body from Zoho."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DeliveryError(ZohoMailerError):
    """Raised by the delivery backend when a message could not be delivered."""
