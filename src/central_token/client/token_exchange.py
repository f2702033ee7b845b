"""Trade the local instance access key for an access token.

One POST per call to the central instance's members auth-token endpoint. The
access key travels both as the bearer credential and, raw, as the request
body; the central instance expects both.
"""

import logging

import httpx
from pydantic import ValidationError

from ..config import TokenClientConfig
from ..errors import AuthenticationDeniedError, TokenExchangeError
from ..models import AccessToken, LocalInstance
from .url_guard import validate_central_instance_url

logger = logging.getLogger("central_token.token_exchange")

# HTTP status codes
HTTP_OK = 200
HTTP_UNAUTHORIZED = 401


def build_token_url(central_instance_url: str, token_path: str) -> str:
    """Join the central instance URL and the token endpoint path."""
    return f"{central_instance_url.rstrip('/')}{token_path}"


def parse_token_response(response: httpx.Response) -> AccessToken:
    """Parse a 200 response body into an ``AccessToken``.

    Raises:
        TokenExchangeError: If the body is not a JSON object with a usable token.

    """
    try:
        return AccessToken.model_validate_json(response.content)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        msg = f"Malformed token response from central instance: {messages}"
        raise TokenExchangeError(msg, url=str(response.request.url), status_code=response.status_code) from exc


async def exchange_token(
    local_instance: LocalInstance,
    config: TokenClientConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AccessToken:
    """Request a new access token from the central instance.

    Args:
        local_instance: Supplies the central instance URL and the access key.
        config: Endpoint path and timeout; defaults apply when omitted.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        The access token issued by the central instance.

    Raises:
        AuthenticationDeniedError: If the central instance answers 401.
        TokenExchangeError: For an unsafe URL, transport failures, any other
            status code, or a malformed response.

    """
    config = config or TokenClientConfig()
    await validate_central_instance_url(local_instance.central_instance_url)

    url = build_token_url(local_instance.central_instance_url, config.token_path)
    headers = {
        "Authorization": f"Bearer {local_instance.access_key}",
        "Content-Type": "application/json",
    }
    timeout = httpx.Timeout(config.timeout_seconds)

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=False) as http_client:
            try:
                request = http_client.build_request(
                    "POST",
                    url,
                    headers=headers,
                    content=local_instance.access_key.encode("utf-8"),
                )
            except UnicodeError as exc:
                msg = "Access key contains characters that cannot be sent in an HTTP header"
                raise TokenExchangeError(msg, url=url) from exc
            response = await http_client.send(request)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        msg = f"Error sending POST request to {url}: {exc}"
        raise TokenExchangeError(msg, url=url) from exc

    if response.status_code == HTTP_OK:
        token = parse_token_response(response)
        logger.debug("Central instance issued a token valid for %d ms.", token.expires_in)
        return token
    if response.status_code == HTTP_UNAUTHORIZED:
        msg = "Cannot authenticate on central instance with current configuration"
        raise AuthenticationDeniedError(msg)

    msg = f"url: {url}, response code: {response.status_code}"
    raise TokenExchangeError(msg, url=url, status_code=response.status_code)


__all__ = ["build_token_url", "exchange_token", "parse_token_response"]
