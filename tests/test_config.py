"""Tests for settings validation."""

import pytest

from conftest import make_settings
from portfolio_activity.errors import ConfigError


def test_valid_settings(tmp_path):
    settings = make_settings(tmp_path)
    settings.validate_credentials()
    assert settings.effective_sweep_interval == 300
    assert settings.proxy_sweep_interval == 175
    assert settings.coding_stats_handle == "octo"


def test_missing_github_username_is_config_error(tmp_path):
    settings = make_settings(tmp_path, github_username=None)
    with pytest.raises(ConfigError, match="GITHUB_USERNAME"):
        settings.validate_credentials()


def test_wakatime_requires_api_key(tmp_path):
    settings = make_settings(tmp_path, coding_stats_provider="wakatime", wakatime_username="octo")
    with pytest.raises(ConfigError, match="WAKATIME_API_KEY"):
        settings.validate_credentials()


def test_unknown_provider_rejected(tmp_path):
    with pytest.raises(ValueError):
        make_settings(tmp_path, coding_stats_provider="codestats")


def test_sweep_interval_must_be_shorter_than_ttl(tmp_path):
    with pytest.raises(ValueError):
        make_settings(tmp_path, sweep_interval=3600)


def test_negative_stale_grace_rejected(tmp_path):
    with pytest.raises(ValueError):
        make_settings(tmp_path, stale_grace=-1)
