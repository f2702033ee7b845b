"""Client-side bearer-token cache for a central coordination instance.

The local node presents its long-lived access key to the central instance's
token endpoint and caches the returned access token until it expires:

- ``client.url_guard``: SSRF checks on the central instance URL
- ``client.token_exchange``: the single POST that trades an access key for a token
- ``client.token_manager``: the process-wide, single-slot token cache
"""

from .client.token_exchange import exchange_token
from .client.token_manager import TokenManager, get_token_manager, reset_token_manager
from .client.url_guard import validate_central_instance_url
from .config import DEFAULT_TOKEN_PATH, TokenClientConfig
from .errors import (
    AuthenticationDeniedError,
    CentralAuthError,
    InvalidCentralInstanceURLError,
    TokenExchangeError,
)
from .models import AccessToken, LocalInstance

__all__ = [
    "DEFAULT_TOKEN_PATH",
    "AccessToken",
    "AuthenticationDeniedError",
    "CentralAuthError",
    "InvalidCentralInstanceURLError",
    "LocalInstance",
    "TokenClientConfig",
    "TokenExchangeError",
    "TokenManager",
    "exchange_token",
    "get_token_manager",
    "reset_token_manager",
    "validate_central_instance_url",
]
