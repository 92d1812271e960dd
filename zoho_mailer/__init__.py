"""Zoho Mail API client: OAuth refresh-token auth, attachment upload and message send."""

from zoho_mailer.auth import AccessToken, FileTokenStore, MemoryTokenStore, TokenManager
from zoho_mailer.config import MailerConfig, TokenStoreKind, config_from_env, resolve_config
from zoho_mailer.delivery import ZohoDeliveryBackend
from zoho_mailer.errors import APIError, ConfigurationError, DeliveryError, ZohoMailerError
from zoho_mailer.mail_provider import (
    EmailRequest,
    ErrorKind,
    PathReference,
    SendResult,
    UploadedReference,
    ZohoMailClient,
)

__all__ = [
    "AccessToken",
    "FileTokenStore",
    "MemoryTokenStore",
    "TokenManager",
    "MailerConfig",
    "TokenStoreKind",
    "config_from_env",
    "resolve_config",
    "ZohoDeliveryBackend",
    "APIError",
    "ConfigurationError",
    "DeliveryError",
    "ZohoMailerError",
    "EmailRequest",
    "ErrorKind",
    "PathReference",
    "SendResult",
    "UploadedReference",
    "ZohoMailClient",
]
