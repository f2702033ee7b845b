"""Unit tests for configuration loading and the data models."""

import pytest
from pydantic import ValidationError

from central_token.config import DEFAULT_TOKEN_PATH, TokenClientConfig
from central_token.models import MAX_EXPIRES_IN_MS, AccessToken, LocalInstance


def test_config_defaults() -> None:
    """Defaults should target the members auth-token endpoint with a 10s timeout."""
    config = TokenClientConfig()
    assert config.token_path == DEFAULT_TOKEN_PATH == "/api/v2/members/auth/token"
    assert config.timeout_ms == 10000
    assert config.timeout_seconds == 10.0


def test_config_rejects_relative_token_path() -> None:
    """Token paths must be absolute."""
    with pytest.raises(ValidationError, match="must start with"):
        TokenClientConfig(token_path="api/token")


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables should override the defaults."""
    monkeypatch.setenv("CENTRAL_TOKEN_PATH", "/custom/token")
    monkeypatch.setenv("CENTRAL_TIMEOUT_MS", "2500")
    config = TokenClientConfig.from_env()
    assert config.token_path == "/custom/token"
    assert config.timeout_ms == 2500


def test_config_from_env_uses_defaults_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should leave the defaults in place."""
    monkeypatch.delenv("CENTRAL_TOKEN_PATH", raising=False)
    monkeypatch.delenv("CENTRAL_TIMEOUT_MS", raising=False)
    assert TokenClientConfig.from_env() == TokenClientConfig()


def test_config_from_env_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Out-of-range values should raise a readable RuntimeError."""
    monkeypatch.setenv("CENTRAL_TIMEOUT_MS", "5")
    with pytest.raises(RuntimeError, match="Invalid token client configuration"):
        TokenClientConfig.from_env()


def test_local_instance_accepts_wire_names() -> None:
    """Both camelCase wire names and attribute names should populate the model."""
    from_wire = LocalInstance.model_validate({"centralInstanceURL": "https://central.example.com", "accessKey": "K"})
    by_name = LocalInstance(central_instance_url="https://central.example.com", access_key="K")
    assert from_wire == by_name
    assert from_wire.id is None


def test_local_instance_repr_hides_access_key() -> None:
    """The access key must not leak through repr."""
    instance = LocalInstance(centralInstanceURL="https://central.example.com", accessKey="super-secret")
    assert "super-secret" not in repr(instance)


def test_local_instance_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """The local instance record should load from the environment."""
    monkeypatch.setenv("CENTRAL_INSTANCE_URL", "https://central.example.com")
    monkeypatch.setenv("CENTRAL_ACCESS_KEY", "K")
    monkeypatch.setenv("CENTRAL_LOCAL_INSTANCE_ID", "node-1")
    instance = LocalInstance.from_env()
    assert instance.central_instance_url == "https://central.example.com"
    assert instance.access_key == "K"
    assert instance.id == "node-1"


def test_local_instance_from_env_requires_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing central URL should raise a RuntimeError naming the variable."""
    monkeypatch.delenv("CENTRAL_INSTANCE_URL", raising=False)
    with pytest.raises(RuntimeError, match="CENTRAL_INSTANCE_URL"):
        LocalInstance.from_env()


def test_local_instance_from_env_requires_access_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing access key should raise a readable RuntimeError."""
    monkeypatch.setenv("CENTRAL_INSTANCE_URL", "https://central.example.com")
    monkeypatch.delenv("CENTRAL_ACCESS_KEY", raising=False)
    with pytest.raises(RuntimeError, match="Invalid local instance configuration"):
        LocalInstance.from_env()


def test_access_token_keeps_extra_fields() -> None:
    """Unknown response fields should round-trip under their original names."""
    token = AccessToken.model_validate({"accessToken": "T1", "expiresIn": 60000, "tokenType": "Bearer"})
    assert token.access_token == "T1"
    assert token.model_extra == {"tokenType": "Bearer"}
    assert token.to_json_dict() == {"accessToken": "T1", "expiresIn": 60000, "tokenType": "Bearer"}


def test_local_instance_rejects_non_ascii_access_key() -> None:
    """Access keys must be ASCII so they can travel in the Authorization header."""
    with pytest.raises(ValidationError, match="only ASCII"):
        LocalInstance(centralInstanceURL="https://central.example.com", accessKey="clé")


def test_access_token_rejects_lifetime_beyond_bound() -> None:
    """Lifetimes above the supported maximum should fail validation."""
    assert AccessToken(accessToken="T1", expiresIn=MAX_EXPIRES_IN_MS).expires_in == MAX_EXPIRES_IN_MS
    with pytest.raises(ValidationError):
        AccessToken(accessToken="T1", expiresIn=MAX_EXPIRES_IN_MS + 1)
