"""
Tests for ConnectorConfig precedence and validation
"""

import pytest

from mbed_connector.config import app_config
from mbed_connector.config.app_config import ConnectorConfig
from mbed_connector.core.exceptions import ConfigurationError


def test_defaults():
    cfg = ConnectorConfig()
    assert cfg.api_root == "https://api.connector.mbed.com/v2"
    assert cfg.base64_content_types == frozenset({42})
    assert cfg.max_retries == 5


def test_from_settings_reads_system_values(monkeypatch):
    monkeypatch.setattr(app_config.settings, "MBED_HOST", "https://connector.local/")
    monkeypatch.setattr(app_config.settings, "MBED_ACCESS_KEY", "env-key")
    monkeypatch.setattr(app_config.settings, "MBED_MAX_RETRIES", 9)

    cfg = ConnectorConfig.from_settings()

    assert cfg.api_root == "https://connector.local/v2"
    assert cfg.credential == "env-key"
    assert cfg.max_retries == 9


def test_precedence_call_over_instance_over_system(monkeypatch):
    monkeypatch.setattr(app_config.settings, "MBED_POLL_TIMEOUT", 60.0)

    instance = ConnectorConfig.from_settings(poll_timeout=20.0)
    call = instance.merged(poll_timeout=5.0)

    assert instance.poll_timeout == 20.0
    assert call.poll_timeout == 5.0
    assert call.credential == instance.credential


def test_merged_ignores_none_and_returns_same_instance():
    cfg = ConnectorConfig(credential="k")
    assert cfg.merged(credential=None) is cfg


def test_merged_rejects_unknown_options():
    with pytest.raises(ConfigurationError):
        ConnectorConfig().merged(pol_timeout=1)


@pytest.mark.parametrize("overrides", [
    {"host": ""},
    {"poll_timeout": 0},
    {"request_timeout": -1},
    {"async_response_timeout": 0},
    {"retry_backoff": -0.5},
    {"max_retries": -1},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ConfigurationError):
        ConnectorConfig(**overrides)


def test_base64_content_types_coerced_to_frozenset():
    cfg = ConnectorConfig(base64_content_types=[42, "application/octet-stream"])
    assert cfg.base64_content_types == frozenset({42, "application/octet-stream"})
