"""EngineConfig env loading and validation."""

import pytest
from pydantic import ValidationError

from modguard.config.settings import EngineConfig, load_config

ENV_VARS = [
    "DISCORD_TOKEN", "POLICY_FILE", "POLICY_CACHE_TTL_SECONDS", "MOD_EXEMPT_ROLE_NAMES",
    "SQLITE_PATH", "ACTION_WORKERS", "ACTION_QUEUE_SIZE", "LOG_LEVEL", "LOG_JSON",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.discord_token is None
    assert config.policy_file == "policies/moderation.yaml"
    assert config.policy_cache_ttl_seconds == 30
    assert config.action_workers == 4
    assert config.action_queue_size == 1000
    assert config.log_level == "INFO"
    assert config.exempt_role_names == {"mod", "admin"}


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("ACTION_WORKERS", "8")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_JSON", "true")
    monkeypatch.setenv("MOD_EXEMPT_ROLE_NAMES", " Moderator , Staff ,,")
    config = EngineConfig()
    assert config.require_token() == "abc"
    assert config.action_workers == 8
    assert config.log_level == "DEBUG"
    assert config.log_json is True
    assert config.exempt_role_names == {"moderator", "staff"}


def test_sizes_are_coerced():
    config = load_config(action_workers=0, action_queue_size="junk", policy_cache_ttl_seconds=-5)
    assert config.action_workers == 1
    assert config.action_queue_size == 1
    assert config.policy_cache_ttl_seconds == 0


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        load_config(log_level="LOUD")


def test_missing_token():
    with pytest.raises(ValueError, match="DISCORD_TOKEN"):
        load_config().require_token()
