"""Zoho Mail REST client: account lookup, attachment upload and message send (sync)."""

from pathlib import Path
from typing import Any, Callable, Mapping

import httpx

from zoho_mailer.auth.token_manager import TokenManager
from zoho_mailer.config import MailerConfig
from zoho_mailer.errors import APIError, ConfigurationError
from zoho_mailer.mail_provider.mime import detect_mime_type
from zoho_mailer.mail_provider.models import (
    EmailRequest,
    ErrorKind,
    SendResult,
    UploadedReference,
)
from zoho_mailer.utils.logger import get_logger

logger = get_logger("zoho_mailer.mail_provider")


def _auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Zoho-oauthtoken {access_token}"}


def _json_body(response: httpx.Response, what: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise APIError(
            f"{what}: response is not valid JSON: {response.text}",
            status_code=response.status_code,
            body=response.text,
        ) from e


def _first_data_item(response: httpx.Response, what: str) -> dict[str, Any]:
    body = _json_body(response, what)
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise APIError(f"{what}: no data in response", status_code=response.status_code, body=response.text)
    return data[0]


class ZohoMailClient:
    """Sends mail through one Zoho account using OAuth refresh-token credentials.

    Each operation asks the TokenManager for a token on its own; nothing assumes a
    token fetched by an earlier call is still the current one.
    """

    def __init__(
        self,
        config: MailerConfig,
        token_manager: TokenManager | None = None,
        http_client: httpx.Client | None = None,
    ):
        self._config = config
        self._http = http_client or httpx.Client()
        self._owns_http = http_client is None
        self._tokens = token_manager or TokenManager(config, http_client=self._http)

    @property
    def config(self) -> MailerConfig:
        return self._config

    @property
    def token_manager(self) -> TokenManager:
        return self._tokens

    def fetch_account_id(self) -> str:
        """Return the id of the first account visible to these credentials."""
        access_token = self._tokens.get_access_token()
        response = self._http.get(
            self._config.mail_api_url,
            headers=_auth_headers(access_token),
            timeout=self._config.timeout,
        )
        if not response.is_success:
            raise APIError(
                f"Failed to fetch account ID: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        body = _json_body(response, "Failed to fetch account ID")
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or not data:
            raise APIError("No accounts data in response", status_code=response.status_code, body=response.text)
        account_id = data[0].get("accountId") if isinstance(data[0], dict) else None
        if not account_id:
            raise APIError("No accountId in response", status_code=response.status_code, body=response.text)
        logger.debug("mail_client.account_id", account_id=str(account_id))
        return str(account_id)

    def upload_attachment(self, file_path: str | Path) -> UploadedReference:
        """Upload a local file to the account's attachment store."""
        account_id = self.fetch_account_id()
        access_token = self._tokens.get_access_token()
        path = Path(file_path)
        mime_type = detect_mime_type(path)
        url = f"{self._config.mail_api_url}/{account_id}/messages/attachments"

        logger.info("mail_client.upload.start", filename=path.name, mime_type=mime_type)
        with path.open("rb") as fh:
            response = self._http.post(
                url,
                params={"uploadType": "multipart"},
                files={"attach": (path.name, fh, mime_type)},
                headers=_auth_headers(access_token),
                timeout=self._config.timeout,
            )
        if not response.is_success:
            raise APIError(
                f"Failed to upload attachment: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        item = _first_data_item(response, "Failed to upload attachment")
        try:
            reference = UploadedReference(
                storeName=item["storeName"],
                attachmentPath=item["attachmentPath"],
                attachmentName=item["attachmentName"],
            )
        except (KeyError, ValueError) as e:
            raise APIError(
                f"Failed to upload attachment: incomplete attachment data: {item}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        logger.info("mail_client.upload.ok", attachment_name=reference.attachmentName)
        return reference

    def build_email_request(self, params: Mapping[str, Any]) -> EmailRequest:
        return EmailRequest.from_params(params, default_from=self._config.from_email)

    def send_email(self, params: Mapping[str, Any]) -> SendResult:
        """Send one message. Failures are logged and returned, never raised."""
        return self._with_error_handling("send_email", self._send, params)

    def send_email_with_file(
        self,
        to: str,
        cc: str | None,
        subject: str,
        body: str,
        file_path: str | Path,
    ) -> SendResult:
        """Upload ``file_path`` and send it as the only attachment."""

        def upload_and_send() -> None:
            reference = self.upload_attachment(file_path)
            self._send({"to": to, "cc": cc, "subject": subject, "body": body, "attachments": [reference]})

        return self._with_error_handling("send_email_with_file", upload_and_send)

    def _send(self, params: Mapping[str, Any]) -> None:
        email_request = self.build_email_request(params)
        account_id = self.fetch_account_id()
        access_token = self._tokens.get_access_token()
        url = f"{self._config.mail_api_url}/{account_id}/messages"
        logger.info(
            "mail_client.send.start",
            to=email_request.toAddress,
            subject=email_request.subject,
            attachments=len(email_request.attachments or []),
        )
        response = self._http.post(
            url,
            json=email_request.to_payload(),
            headers=_auth_headers(access_token),
            timeout=self._config.timeout,
        )
        if not response.is_success:
            raise APIError(
                f"Failed to send email: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("mail_client.send.ok", to=email_request.toAddress)

    def _with_error_handling(self, operation: str, func: Callable[..., Any], *args: Any) -> SendResult:
        try:
            func(*args)
        except ConfigurationError as e:
            logger.error("mail_client.configuration_error", operation=operation, error=str(e))
            return SendResult.failure(ErrorKind.CONFIGURATION, str(e))
        except APIError as e:
            logger.error(
                "mail_client.api_error",
                operation=operation,
                error=str(e),
                status_code=e.status_code,
            )
            return SendResult.failure(ErrorKind.API, str(e))
        except Exception as e:
            logger.error(
                "mail_client.unexpected_error",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SendResult.failure(ErrorKind.UNEXPECTED, str(e))
        return SendResult.success()

    def close(self) -> None:
        self._tokens.close()
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ZohoMailClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
