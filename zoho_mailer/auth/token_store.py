"""Refresh-token persistence: a JSON file on disk, or the in-memory configuration."""

import json
from pathlib import Path
from typing import Protocol

from zoho_mailer.config import MailerConfig, TokenStoreKind
from zoho_mailer.errors import ConfigurationError
from zoho_mailer.utils.logger import get_logger

logger = get_logger("zoho_mailer.auth.token_store")


class RefreshTokenStore(Protocol):
    """Loads the refresh token to exchange and saves the one Zoho hands back."""

    def load(self) -> str | None:
        ...

    def save(self, refresh_token: str) -> None:
        ...


class FileTokenStore:
    """Persists ``{"refresh_token": ...}`` at a path so rotations survive restarts.

    Falls back to the configured refresh token when the file is missing, empty of
    a token, or unreadable as JSON. No locking: the last writer wins.
    """

    def __init__(self, path: str | Path, fallback: str | None = None):
        self._path = Path(path)
        self._fallback = fallback

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            logger.debug("token_store.file_missing", path=str(self._path))
            return self._fallback
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.error("token_store.parse_error", path=str(self._path), error=str(e))
            return self._fallback
        if not isinstance(data, dict):
            logger.error("token_store.parse_error", path=str(self._path), error="expected a JSON object")
            return self._fallback
        return data.get("refresh_token") or self._fallback

    def save(self, refresh_token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"refresh_token": refresh_token}), encoding="utf-8")
        logger.info("token_store.saved", path=str(self._path))


class MemoryTokenStore:
    """Keeps the refresh token on the configuration object for the life of the process."""

    def __init__(self, config: MailerConfig):
        self._config = config

    def load(self) -> str | None:
        return self._config.refresh_token

    def save(self, refresh_token: str) -> None:
        self._config.refresh_token = refresh_token
        logger.debug("token_store.memory_updated")


def build_token_store(config: MailerConfig) -> RefreshTokenStore:
    """Return the store selected by ``config.token_store``."""
    if config.token_store == TokenStoreKind.FILE:
        if not config.token_file_path:
            raise ConfigurationError(
                "Token file path is required for the file token store",
                missing_keys=["token_file_path"],
            )
        return FileTokenStore(config.token_file_path, fallback=config.refresh_token)
    if config.token_store == TokenStoreKind.MEMORY:
        return MemoryTokenStore(config)
    raise ConfigurationError(f"Invalid token store: {config.token_store}")
