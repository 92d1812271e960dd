"""Configuration and settings."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from zoho_mailer.errors import ConfigurationError

DEFAULT_TOKEN_URL = "https://accounts.zoho.com/oauth/v2/token"
DEFAULT_MAIL_API_URL = "https://mail.zoho.com/api/accounts"
DEFAULT_TIMEOUT = 30
DEFAULT_TOKEN_FILE_PATH = Path.home() / ".zoho-mailer" / "token.json"

REQUIRED_KEYS = ("client_id", "client_secret", "refresh_token")
SECRET_KEYS = ("client_secret", "refresh_token")


class TokenStoreKind(str, Enum):
    """Where the refresh token is persisted between token exchanges."""

    FILE = "file"
    MEMORY = "memory"


class MailerConfig(BaseModel):
    """Provider endpoints, OAuth credentials and token storage for one mailbox."""

    model_config = ConfigDict(validate_assignment=True)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    from_email: Optional[str] = None
    token_url: str = DEFAULT_TOKEN_URL
    mail_api_url: str = DEFAULT_MAIL_API_URL
    token_store: TokenStoreKind = TokenStoreKind.FILE
    token_file_path: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT

    @field_validator("token_store", mode="before")
    @classmethod
    def _lowercase_store(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, TokenStoreKind):
            return value.strip().lower()
        return value

    def setup(self, mutator: Callable[["MailerConfig"], Any] | None = None) -> "MailerConfig":
        """Apply caller overrides, then validate. Returns self for chaining."""
        if mutator is not None:
            try:
                mutator(self)
            except ValidationError as e:
                fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
                raise ConfigurationError(f"Invalid configuration: {fields or e}") from e
        self.validate_required()
        return self

    def update(self, **overrides: Any) -> "MailerConfig":
        """Assign every non-None override. Unknown option names are rejected."""
        for key, value in overrides.items():
            if key not in type(self).model_fields:
                raise ConfigurationError(f"Unknown configuration option: {key}")
            if value is None:
                continue
            setattr(self, key, value)
        return self

    def validate_required(self) -> None:
        missing_keys = [k for k in REQUIRED_KEYS if not getattr(self, k)]
        if missing_keys:
            raise ConfigurationError(
                f"Missing configuration: {', '.join(missing_keys)}",
                missing_keys=missing_keys,
            )
        if self.token_store == TokenStoreKind.FILE and not self.token_file_path:
            raise ConfigurationError(
                "Token file path is required for the file token store",
                missing_keys=["token_file_path"],
            )

    def summary(self) -> dict[str, str]:
        """Printable view of the configuration with secrets masked."""
        out = {}
        for key, value in self.model_dump(mode="json").items():
            if key in SECRET_KEYS and value:
                value = value[:4] + "..." if len(value) > 8 else "***"
            out[key] = "" if value is None else str(value)
        return out


# Option name -> environment variables consulted in order
ENV_VARS: dict[str, tuple[str, ...]] = {
    "client_id": ("ZOHO_CLIENT_ID",),
    "client_secret": ("ZOHO_CLIENT_SECRET",),
    "refresh_token": ("ZOHO_REFRESH_TOKEN",),
    "from_email": ("ZOHO_FROM_EMAIL", "MAILER_SENDER_EMAIL"),
    "token_url": ("ZOHO_TOKEN_URL",),
    "mail_api_url": ("ZOHO_MAIL_API_URL",),
    "token_store": ("ZOHO_TOKEN_STORE",),
    "token_file_path": ("ZOHO_TOKEN_FILE_PATH",),
    "timeout": ("ZOHO_TIMEOUT",),
}

DEFAULTS: dict[str, Any] = {
    "token_url": DEFAULT_TOKEN_URL,
    "mail_api_url": DEFAULT_MAIL_API_URL,
    "token_store": TokenStoreKind.FILE.value,
    "token_file_path": str(DEFAULT_TOKEN_FILE_PATH),
    "timeout": DEFAULT_TIMEOUT,
}


def resolve_config(
    settings: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Resolve every configuration option: explicit settings, then environment, then defaults.

    When ``environ`` is omitted the process environment is used, after loading a
    ``.env`` file if one is present. Options that resolve to nothing are left out.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ
    settings = settings or {}

    resolved: dict[str, Any] = {}
    for key, env_names in ENV_VARS.items():
        value = settings.get(key)
        if value in (None, ""):
            value = next((environ[n] for n in env_names if environ.get(n)), None)
        if value in (None, ""):
            value = DEFAULTS.get(key)
        if value is not None:
            resolved[key] = value
    return resolved


def config_from_env(
    settings: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> MailerConfig:
    """Build and validate a MailerConfig from settings and the environment."""
    overrides = resolve_config(settings, environ)
    return MailerConfig().setup(lambda config: config.update(**overrides))
