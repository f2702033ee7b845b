"""Configuration for the central instance token client.

This module defines the ``TokenClientConfig`` model and a helper to load it
from environment variables. The central instance URL and access key belong to
the local instance record (see ``central_token.models``), not to this config.
"""

import os
from typing import Any, Self

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

# Load variables from a local .env file for development convenience
load_dotenv()

# Members auth-token endpoint, shared with the central instance
DEFAULT_TOKEN_PATH = "/api/v2/members/auth/token"


class TokenClientConfig(BaseModel):
    """Settings shared by every token exchange."""

    token_path: str = DEFAULT_TOKEN_PATH
    timeout_ms: int = Field(default=10000, ge=1000, le=600000)

    @field_validator("token_path")
    @classmethod
    def _validate_token_path(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("/"):
            msg = "Token path must start with '/'."
            raise ValueError(msg)
        return value

    @property
    def timeout_seconds(self) -> float:
        """Return the request timeout in seconds."""
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls) -> Self:
        """Build a configuration object from environment variables.

        Unset variables fall back to the model defaults.
        """
        raw_config: dict[str, Any] = {
            "token_path": os.getenv("CENTRAL_TOKEN_PATH"),
            "timeout_ms": os.getenv("CENTRAL_TIMEOUT_MS"),
        }
        try:
            return cls(**{key: value for key, value in raw_config.items() if value is not None})
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            msg = f"Invalid token client configuration: {messages}"
            raise RuntimeError(msg) from exc


__all__ = ["DEFAULT_TOKEN_PATH", "TokenClientConfig"]
