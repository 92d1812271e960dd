"""OAuth token handling and refresh-token persistence for the Zoho API."""

from zoho_mailer.auth.token_manager import (
    ACCESS_TOKEN_TTL_SECONDS,
    AccessToken,
    TokenManager,
)
from zoho_mailer.auth.token_store import (
    FileTokenStore,
    MemoryTokenStore,
    RefreshTokenStore,
    build_token_store,
)

__all__ = [
    "ACCESS_TOKEN_TTL_SECONDS",
    "AccessToken",
    "TokenManager",
    "FileTokenStore",
    "MemoryTokenStore",
    "RefreshTokenStore",
    "build_token_store",
]
