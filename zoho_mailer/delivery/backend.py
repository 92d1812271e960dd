"""Delivery backend: hands ``email.message.EmailMessage`` objects to the Zoho client.

Recipients, sender, body and attachments are read off the message, attachments are
staged one at a time in a temporary file and uploaded, and the send result is
collapsed to success or ``DeliveryError`` for the caller.
"""

import os
import secrets
import shutil
import tempfile
from email.message import Message
from email.utils import getaddresses
from pathlib import Path
from typing import Any, Iterable, Mapping

from zoho_mailer.config import MailerConfig, resolve_config
from zoho_mailer.errors import DeliveryError, ZohoMailerError
from zoho_mailer.mail_provider.client import ZohoMailClient
from zoho_mailer.mail_provider.models import UploadedReference
from zoho_mailer.utils.logger import get_logger

logger = get_logger("zoho_mailer.delivery")


def _address_list(message: Message, header: str) -> str | None:
    values = message.get_all(header)
    if not values:
        return None
    addresses = [addr for _, addr in getaddresses([str(v) for v in values]) if addr]
    return ",".join(addresses) or None


def _decoded_text(part: Message) -> str | None:
    payload = part.get_payload(decode=True)
    if payload is None:
        return None
    charset = part.get_content_charset() or "utf-8"
    return payload.decode(charset, errors="replace")


def extract_body(message: Message) -> str:
    """HTML part, else plain-text part, else the raw payload, else an empty string."""
    get_body = getattr(message, "get_body", None)
    if get_body is not None:
        for preference in ("html", "plain"):
            part = get_body(preferencelist=(preference,))
            if part is not None:
                text = _decoded_text(part)
                if text is not None:
                    return text
    if not message.is_multipart():
        return _decoded_text(message) or ""
    return ""


def _iter_attachments(message: Message) -> Iterable[Message]:
    iter_attachments = getattr(message, "iter_attachments", None)
    if iter_attachments is not None:
        return iter_attachments()
    return (
        part for part in message.walk()
        if part.get_content_disposition() == "attachment"
    )


class ZohoDeliveryBackend:
    """Mail delivery backend that sends through Zoho Mail.

    ``settings`` keys mirror the configuration options (client_id, client_secret,
    refresh_token, from_email, token_url, mail_api_url, token_store,
    token_file_path, timeout); anything not given is taken from the environment.
    The client's configuration is re-resolved and validated on every construction.
    """

    def __init__(
        self,
        settings: Mapping[str, Any] | None = None,
        client: ZohoMailClient | None = None,
        environ: Mapping[str, str] | None = None,
        fail_silently: bool = False,
    ):
        self._settings = dict(settings or {})
        self.fail_silently = fail_silently
        overrides = resolve_config(self._settings, environ)
        if client is None:
            config = MailerConfig().setup(lambda c: c.update(**overrides))
            client = ZohoMailClient(config)
        else:
            client.config.setup(lambda c: c.update(**overrides))
            # cached access token may belong to the previous credentials
            client.token_manager.invalidate()
        self.client = client

    @property
    def default_from(self) -> str | None:
        return self.client.config.from_email

    def deliver(self, message: Message) -> bool:
        """Send one message. Raises DeliveryError when Zoho did not accept it."""
        params: dict[str, Any] = {
            "from": self._extract_from(message),
            "to": _address_list(message, "To"),
            "cc": _address_list(message, "Cc"),
            "bcc": _address_list(message, "Bcc"),
            "subject": message.get("Subject"),
            "body": extract_body(message),
            "attachments": self._upload_attachments(message) or None,
        }
        params = {k: v for k, v in params.items() if v is not None}
        if params.get("subject") is not None:
            params["subject"] = str(params["subject"])

        result = self.client.send_email(params)
        if not result:
            raise DeliveryError(f"Failed to send email via Zoho Mail: {result.error}")
        return True

    def send_messages(self, messages: Iterable[Message]) -> int:
        """Deliver each message; return how many were sent."""
        sent = 0
        for message in messages:
            try:
                self.deliver(message)
            except ZohoMailerError as e:
                if not self.fail_silently:
                    raise
                logger.error("delivery.failed", subject=message.get("Subject"), error=str(e))
                continue
            sent += 1
        return sent

    def _extract_from(self, message: Message) -> str | None:
        from_header = message.get("From")
        if from_header:
            addresses = [addr for _, addr in getaddresses([str(from_header)]) if addr]
            if addresses:
                return addresses[0]
            return str(from_header)
        return self.default_from

    def _upload_attachments(self, message: Message) -> list[UploadedReference]:
        uploaded = []
        for part in _iter_attachments(message):
            content = part.get_payload(decode=True) or b""
            filename = Path(part.get_filename() or f"attachment_{secrets.token_hex(8)}").name
            try:
                temp_dir = tempfile.mkdtemp(prefix="zoho_attachment_")
            except OSError as e:
                raise DeliveryError(f"Failed to stage attachment {filename}: {e}") from e
            temp_file = os.path.join(temp_dir, filename)
            try:
                with open(temp_file, "wb") as fh:
                    fh.write(content)
                uploaded.append(self.client.upload_attachment(temp_file))
            except Exception as e:
                raise DeliveryError(f"Failed to upload attachment {filename}: {e}") from e
            finally:
                self._cleanup(temp_dir)
        return uploaded

    @staticmethod
    def _cleanup(temp_dir: str) -> None:
        try:
            shutil.rmtree(temp_dir)
        except OSError as e:
            logger.error("delivery.temp_cleanup_failed", path=temp_dir, error=str(e))
