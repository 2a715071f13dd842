import pytest

from api import config_manager
from api.config_manager import AppConfig, get_config, reset_config
from api.errors import ConfigurationError


def test_defaults():
    config = AppConfig({})

    assert config.google_client_id is None
    assert config.allowed_origin == "*"
    assert config.rate_limit_per_hour == 100
    assert config.rate_limit_window == 3600
    assert config.rate_limit_store == "memory"
    assert config.header_mismatch_policy == "reject"
    assert config.worksheet_title == "Sheet1"
    assert config.mock_mode is False
    assert config.is_production is False
    assert config.can_refresh is False


def test_values_from_environment():
    config = AppConfig({
        "GOOGLE_CLIENT_ID": "id",
        "GOOGLE_CLIENT_SECRET": "secret",
        "ALLOWED_ORIGIN": "https://app.example.com",
        "RATE_LIMIT_PER_HOUR": "250",
        "REDIS_URL": "redis://cache:6379/1",
        "HEADER_MISMATCH_POLICY": "Overwrite",
    })

    assert config.allowed_origin == "https://app.example.com"
    assert config.rate_limit_per_hour == 250
    assert config.rate_limit_store == "redis"
    assert config.header_mismatch_policy == "overwrite"
    assert config.can_refresh is True


@pytest.mark.parametrize("env_key", ["APP_ENV", "NODE_ENV"])
def test_mock_mode_is_refused_in_production(env_key):
    with pytest.raises(ConfigurationError):
        AppConfig({"MOCK_MODE": "true", env_key: "production"})


def test_mock_mode_allowed_outside_production():
    assert AppConfig({"MOCK_MODE": "true", "APP_ENV": "staging"}).mock_mode is True


def test_production_without_mock_mode_is_fine():
    config = AppConfig({"MOCK_MODE": "false", "APP_ENV": "production"})
    assert config.is_production is True
    assert config.mock_mode is False


@pytest.mark.parametrize(
    "env",
    [
        {"RATE_LIMIT_PER_HOUR": "lots"},
        {"RATE_LIMIT_PER_HOUR": "0"},
        {"HEADER_MISMATCH_POLICY": "merge"},
        {"RATE_LIMIT_STORE": "memcached"},
        {"GOOGLE_HTTP_TIMEOUT": "soon"},
    ],
)
def test_invalid_values_are_rejected(env):
    with pytest.raises(ConfigurationError):
        AppConfig(env)


def test_get_config_caches_until_reset(monkeypatch):
    monkeypatch.setattr(config_manager, "load_dotenv", lambda: None)
    monkeypatch.setenv("RATE_LIMIT_PER_HOUR", "42")
    reset_config()
    try:
        first = get_config()
        assert first.rate_limit_per_hour == 42
        assert get_config() is first

        explicit = get_config({"RATE_LIMIT_PER_HOUR": "7"})
        assert explicit.rate_limit_per_hour == 7
        assert get_config() is explicit
    finally:
        reset_config()
