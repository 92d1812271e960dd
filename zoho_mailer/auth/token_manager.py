"""OAuth2 access-token cache for the Zoho API, refreshed from a stored refresh token."""

import time
from typing import Callable, NamedTuple

import httpx

from zoho_mailer.auth.token_store import RefreshTokenStore, build_token_store
from zoho_mailer.config import MailerConfig
from zoho_mailer.errors import APIError, ConfigurationError
from zoho_mailer.utils.logger import get_logger

logger = get_logger("zoho_mailer.auth.token_manager")

# Fixed client-side lifetime; the server's expires_in is not consulted.
ACCESS_TOKEN_TTL_SECONDS = 30 * 60


class AccessToken(NamedTuple):
    """Bearer token and the epoch time after which it is no longer reused."""

    token: str
    expires_on: float


class TokenManager:
    """Owns the access-token cache and the refresh-token exchange for one configuration.

    The cache is a single ``AccessToken`` value, so a token and its expiry are
    always replaced together. Not synchronized: concurrent callers may each
    trigger a refresh.
    """

    def __init__(
        self,
        config: MailerConfig,
        http_client: httpx.Client | None = None,
        store: RefreshTokenStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = config
        self._http = http_client or httpx.Client()
        self._owns_http = http_client is None
        self._store = store
        self._clock = clock
        self._access_token: AccessToken | None = None

    @property
    def cached_token(self) -> AccessToken | None:
        return self._access_token

    def invalidate(self) -> None:
        """Forget the cached access token; the next call refreshes."""
        self._access_token = None

    def get_access_token(self) -> str:
        """Return a cached token while it is fresh, otherwise exchange the refresh token."""
        now = self._clock()
        cached = self._access_token
        if cached is not None and now < cached.expires_on:
            return cached.token

        store = self._store or build_token_store(self._config)
        refresh_token = store.load()
        if not refresh_token:
            raise ConfigurationError("No refresh token available", missing_keys=["refresh_token"])

        logger.info("token_manager.refresh", token_url=self._config.token_url, store=type(store).__name__)
        response = self._http.post(
            self._config.token_url,
            data={
                "refresh_token": refresh_token,
                "client_id": self._config.client_id,
                "client_secret": self._config.client_secret,
                "grant_type": "refresh_token",
            },
            timeout=self._config.timeout,
        )
        if not response.is_success:
            raise APIError(
                f"Failed to get access token: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise APIError(
                f"Token response is not valid JSON: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not isinstance(data, dict) or not data.get("access_token"):
            error = data.get("error") if isinstance(data, dict) else None
            raise APIError(
                f"No access token in response{f' ({error})' if error else ''}",
                status_code=response.status_code,
                body=response.text,
            )

        self._access_token = AccessToken(token=data["access_token"], expires_on=now + ACCESS_TOKEN_TTL_SECONDS)
        logger.info("token_manager.refreshed", expires_on=self._access_token.expires_on)

        if data.get("refresh_token"):
            store.save(data["refresh_token"])
        return self._access_token.token

    def close(self) -> None:
        if self._owns_http:
            self._http.close()
