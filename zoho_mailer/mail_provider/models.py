"""Pydantic models for the Zoho Mail send-message payload (subset we need)."""

import os
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from zoho_mailer.errors import ConfigurationError

REQUIRED_PARAMS = ("to", "subject", "body")


class PathReference(BaseModel):
    """Local file attached by path."""

    model_config = ConfigDict(frozen=True)

    path: str

    def to_payload(self) -> dict[str, str]:
        return {"filepath": self.path, "filename": os.path.basename(self.path)}


class UploadedReference(BaseModel):
    """Attachment already uploaded to Zoho's attachment store."""

    model_config = ConfigDict(frozen=True)

    storeName: str
    attachmentPath: str
    attachmentName: str

    def to_payload(self) -> dict[str, str]:
        return self.model_dump()


AttachmentEntry = Union[PathReference, UploadedReference, dict[str, Any]]


def to_attachment(entry: Any) -> AttachmentEntry:
    """Tag a raw attachment entry: paths become PathReference, anything else passes through."""
    if isinstance(entry, (PathReference, UploadedReference)):
        return entry
    if isinstance(entry, (str, os.PathLike)):
        return PathReference(path=os.fspath(entry))
    return entry


def _join_addresses(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return value


class EmailRequest(BaseModel):
    """Zoho send-message body. Optional fields left as None are omitted on the wire."""

    model_config = ConfigDict(frozen=True)

    fromAddress: Optional[str] = None
    toAddress: str
    ccAddress: Optional[str] = None
    bccAddress: Optional[str] = None
    subject: str
    content: str
    askReceipt: Literal["yes", "no"] = "no"
    attachments: Optional[list[Any]] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any], default_from: str | None = None) -> "EmailRequest":
        """Build a request from send parameters (to, subject, body, from, cc, bcc, receipt, attachments)."""
        missing = [k for k in REQUIRED_PARAMS if params.get(k) is None]
        if missing:
            raise ConfigurationError(
                f"Missing required parameters: {', '.join(missing)}",
                missing_keys=missing,
            )
        attachments = params.get("attachments")
        if isinstance(attachments, (list, tuple)):
            attachments = [to_attachment(a) for a in attachments if a is not None]
        else:
            attachments = None
        return cls(
            fromAddress=params.get("from") or default_from,
            toAddress=_join_addresses(params["to"]),
            ccAddress=_join_addresses(params.get("cc")),
            bccAddress=_join_addresses(params.get("bcc")),
            subject=params["subject"],
            content=params["body"],
            askReceipt="yes" if params.get("receipt") else "no",
            attachments=attachments,
        )

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude={"attachments"}, exclude_none=True)
        if self.attachments is not None:
            payload["attachments"] = [
                a.to_payload() if isinstance(a, (PathReference, UploadedReference)) else a
                for a in self.attachments
            ]
        return payload


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    API = "api"
    UNEXPECTED = "unexpected"


class SendResult(BaseModel):
    """Outcome of a send. Truthy only when the message was accepted."""

    ok: bool
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "SendResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: ErrorKind, error: str) -> "SendResult":
        return cls(ok=False, error_kind=kind, error=error)
