"""Pydantic models for the local instance record and the issued access token.

Both models accept the camelCase field names used on the wire
(``centralInstanceURL``, ``accessKey``, ``accessToken``, ``expiresIn``) as well
as their snake_case attribute names.
"""

import os
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Upper bound on a token lifetime (100 years in ms); larger values cannot be added to a datetime
MAX_EXPIRES_IN_MS = 100 * 365 * 24 * 60 * 60 * 1000


class LocalInstance(BaseModel):
    """Local side of the central instance relationship."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    central_instance_url: str = Field(alias="centralInstanceURL")
    access_key: str = Field(alias="accessKey", min_length=1, repr=False)

    @field_validator("access_key")
    @classmethod
    def _validate_access_key(cls, value: str) -> str:
        # The key travels in the Authorization header, which only carries ASCII
        if not value.isascii():
            msg = "Access key must contain only ASCII characters."
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> Self:
        """Build the local instance record from environment variables."""
        central_instance_url = os.getenv("CENTRAL_INSTANCE_URL")
        if not central_instance_url:
            msg = "CENTRAL_INSTANCE_URL is required to reach the central instance."
            raise RuntimeError(msg)
        raw: dict[str, Any] = {
            "id": os.getenv("CENTRAL_LOCAL_INSTANCE_ID"),
            "central_instance_url": central_instance_url,
            "access_key": os.getenv("CENTRAL_ACCESS_KEY"),
        }
        try:
            return cls(**raw)
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            msg = f"Invalid local instance configuration: {messages}"
            raise RuntimeError(msg) from exc


class AccessToken(BaseModel):
    """Access token issued by the central instance.

    ``expires_in`` is the token lifetime in milliseconds. Fields the central
    instance adds beyond ``accessToken`` and ``expiresIn`` are kept as extras.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    access_token: str = Field(alias="accessToken", min_length=1)
    expires_in: int = Field(alias="expiresIn", ge=0, le=MAX_EXPIRES_IN_MS)

    def to_json_dict(self) -> dict[str, Any]:
        """Return the token in its wire shape, including any extra fields."""
        return self.model_dump(by_alias=True)


__all__ = ["MAX_EXPIRES_IN_MS", "AccessToken", "LocalInstance"]
