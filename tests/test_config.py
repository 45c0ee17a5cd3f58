"""
Tests for Settings loading and ConfigValidator.
"""

import dataclasses
import logging

import pytest

from marketbot.config.config import DEFAULT_PAIRS, Settings, env_bool
from marketbot.config.config_validator import (
    ConfigValidator,
    ValidationIssue,
    ValidationSeverity,
    validate_and_log,
)

ENV_KEYS = [
    "EMAIL", "PASSWORD", "PAIRS", "SERVER", "WEX_URL", "BITFLIP_URL",
    "MM_HTTP_TIMEOUT", "MM_FUNDS_RESERVE", "MM_ORDERS_MIN", "MM_ORDERS_MAX",
    "MM_PRICE_K", "MM_LOG_LEVEL", "MM_LOG_FILE", "MM_PUSHGATEWAY_URL", "MM_DRY_RUN",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env):
    clean_env.setenv("EMAIL", "bot@example.com")
    clean_env.setenv("PASSWORD", "secret")
    return Settings.load()


class TestLoad:
    def test_defaults(self, clean_env):
        cfg = Settings.load()

        assert cfg.email is None
        assert cfg.pairs == DEFAULT_PAIRS
        assert cfg.server_url == "https://bitfex.trade"
        assert cfg.funds_usage == 0.99
        assert (cfg.orders_min, cfg.orders_max) == (2, 3)
        assert cfg.price_k == 1.0
        assert cfg.log_file == "marketbot.log"
        assert cfg.pushgateway_url is None
        assert cfg.dry_run is False

    def test_overrides(self, clean_env):
        clean_env.setenv("PAIRS", " BTC_RUR , ETH_BTC ,")
        clean_env.setenv("SERVER", "https://staging.bitfex.test")
        clean_env.setenv("MM_ORDERS_MAX", "5")
        clean_env.setenv("MM_LOG_LEVEL", "debug")
        clean_env.setenv("MM_LOG_FILE", "")
        clean_env.setenv("MM_DRY_RUN", "yes")

        cfg = Settings.load()

        assert cfg.pairs == ["BTC_RUR", "ETH_BTC"]
        assert [p.base for p in cfg.parsed_pairs()] == ["BTC", "ETH"]
        assert cfg.server_url == "https://staging.bitfex.test"
        assert cfg.orders_max == 5
        assert cfg.log_level == "DEBUG"
        assert cfg.log_file is None
        assert cfg.dry_run is True

    @pytest.mark.parametrize("key,value", [
        ("PAIRS", "BTCRUR"),
        ("PAIRS", "BTC_RUR_X"),
        ("MM_HTTP_TIMEOUT", "0"),
        ("MM_FUNDS_RESERVE", "1.5"),
        ("MM_ORDERS_MIN", "0"),
        ("MM_ORDERS_MAX", "1"),
        ("MM_PRICE_K", "-1"),
        ("MM_LOG_LEVEL", "LOUD"),
    ])
    def test_rejects_unusable_values(self, clean_env, key, value):
        clean_env.setenv(key, value)
        with pytest.raises(ValueError):
            Settings.load()

    def test_non_numeric_value(self, clean_env):
        clean_env.setenv("MM_ORDERS_MIN", "two")
        with pytest.raises(ValueError):
            Settings.load()

    def test_dump_masks_password(self, settings):
        dumped = settings.dump()
        assert dumped["password"] == "***"
        assert dumped["email"] == "bot@example.com"
        assert settings.password == "secret"

    def test_env_bool(self, clean_env):
        assert env_bool("MM_DRY_RUN", True) is True
        clean_env.setenv("MM_DRY_RUN", "0")
        assert env_bool("MM_DRY_RUN", True) is False


class TestConfigValidator:
    def test_valid_settings(self, settings):
        result = ConfigValidator().validate(settings)
        assert result.valid
        assert result.issues == []

    def test_missing_credentials(self, clean_env):
        result = ConfigValidator().validate(Settings.load())

        assert not result.valid
        assert {i.field for i in result.get_errors()} == {"email", "password"}

    def test_bad_and_plain_http_urls(self, settings):
        cfg = dataclasses.replace(settings, wex_url="wex.nz/api/3", bitflip_url="http://api.bitflip.cc/method")

        result = ConfigValidator().validate(cfg)

        assert [i.field for i in result.get_errors()] == ["wex_url"]
        assert [i.field for i in result.get_warnings()] == ["bitflip_url"]

    def test_out_of_range(self, settings):
        cfg = dataclasses.replace(settings, price_k=3.0, orders_min=0, orders_max=50)
        errors = ConfigValidator().validate(cfg).get_errors()
        assert {i.field for i in errors} == {"price_k", "orders_min", "orders_max"}

    def test_risky_but_allowed(self, settings):
        cfg = dataclasses.replace(settings, pairs=["BTC_RUR", "BTC_RUR"], funds_usage=0.6, dry_run=True)

        result = ConfigValidator().validate(cfg)

        assert result.valid
        assert {i.field for i in result.get_warnings()} == {"pairs", "funds_usage", "dry_run"}

    def test_custom_validator(self, settings):
        validator = ConfigValidator()
        validator.register_validator(lambda cfg: [
            ValidationIssue(field="pairs", message="no ETH", severity=ValidationSeverity.ERROR)
        ])
        assert not validator.validate(settings).valid

    def test_validate_and_log(self, clean_env, caplog):
        logger = logging.getLogger("marketbot-config-test")
        caplog.set_level(logging.INFO, logger="marketbot-config-test")

        assert validate_and_log(Settings.load(), logger) is False

        messages = [r.getMessage() for r in caplog.records if r.name == "marketbot-config-test"]
        assert sum(m.startswith("CONFIG ERROR") for m in messages) == 2
        assert messages[-1] == "Configuration validation failed with 2 error(s)"
