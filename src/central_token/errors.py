"""Exceptions raised while obtaining access tokens from the central instance."""


class CentralAuthError(Exception):
    """Base class for every error raised by this package."""


class AuthenticationDeniedError(CentralAuthError):
    """The central instance refused the access key (HTTP 401).

    Retrying without changing the local instance configuration is pointless.
    """


class TokenExchangeError(CentralAuthError):
    """Generic failure while obtaining a token.

    Covers unsafe URLs, DNS failures, transport errors, unexpected HTTP status
    codes, malformed responses and cancelled refreshes.

    Attributes:
        url: The token endpoint URL, when the request got that far.
        status_code: The HTTP status code, when a response was received.

    """

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        """Initialize with a readable message and optional request details.

        Args:
            message: Human-readable description of the failure.
            url: The token endpoint URL, if known.
            status_code: The HTTP status code returned, if any.

        """
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class InvalidCentralInstanceURLError(TokenExchangeError):
    """The central instance URL is malformed or points at a disallowed host."""


__all__ = [
    "AuthenticationDeniedError",
    "CentralAuthError",
    "InvalidCentralInstanceURLError",
    "TokenExchangeError",
]
