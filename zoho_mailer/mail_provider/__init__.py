"""Mail provider: Zoho Mail REST client and its payload models."""

from zoho_mailer.mail_provider.client import ZohoMailClient
from zoho_mailer.mail_provider.mime import detect_mime_type
from zoho_mailer.mail_provider.models import (
    EmailRequest,
    ErrorKind,
    PathReference,
    SendResult,
    UploadedReference,
    to_attachment,
)

__all__ = [
    "ZohoMailClient",
    "detect_mime_type",
    "EmailRequest",
    "ErrorKind",
    "PathReference",
    "SendResult",
    "UploadedReference",
    "to_attachment",
]
