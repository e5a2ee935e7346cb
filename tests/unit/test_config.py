"""Unit tests for uscf_lookup.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from uscf_lookup.config import (
    DEFAULT_BASE_URL,
    LookupSettings,
    SettingsValidationError,
    load_settings,
    validate_settings,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent


class TestLoadSettings:
    def test_none_returns_defaults(self):
        settings = load_settings(None)
        assert settings == LookupSettings()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.sentinel == "--"
        assert settings.error_policy == "absorb"
        assert settings.max_batch_size == 5

    def test_shipped_config_matches_defaults(self):
        assert load_settings(PROJECT_ROOT / "config" / "lookup.yml") == LookupSettings()

    def test_partial_file_fills_defaults(self, tmp_path):
        path = tmp_path / "lookup.yml"
        path.write_text("error_policy: raise\nmax_batch_size: 3\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.error_policy == "raise"
        assert settings.max_batch_size == 3
        assert settings.timeout_seconds == 30.0

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "lookup.yml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == LookupSettings()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yml")


class TestValidateSettings:
    def test_root_must_be_mapping(self):
        with pytest.raises(SettingsValidationError, match="mapping"):
            validate_settings(["a", "b"])  # type: ignore[arg-type]

    def test_unknown_key(self):
        with pytest.raises(SettingsValidationError, match="Unknown"):
            validate_settings({"browser_keep_alive": 60})

    def test_invalid_policy(self):
        with pytest.raises(SettingsValidationError, match="error_policy"):
            validate_settings({"error_policy": "ignore"})

    def test_non_http_base_url(self):
        with pytest.raises(SettingsValidationError, match="base_url"):
            validate_settings({"base_url": "ftp://example.org"})

    def test_empty_sentinel(self):
        with pytest.raises(SettingsValidationError, match="sentinel"):
            validate_settings({"sentinel": "  "})

    @pytest.mark.parametrize("value", [0, -1, "5", True])
    def test_bad_batch_size(self, value):
        with pytest.raises(SettingsValidationError, match="max_batch_size"):
            validate_settings({"max_batch_size": value})

    def test_zero_timeout(self):
        with pytest.raises(SettingsValidationError, match="timeout_seconds"):
            validate_settings({"timeout_seconds": 0})

    def test_zero_delay_allowed(self):
        validate_settings({"request_delay_seconds": 0, "request_jitter_seconds": 0.0})


class TestWithOverrides:
    def test_none_values_ignored(self):
        settings = LookupSettings()
        assert settings.with_overrides(error_policy=None, timeout_seconds=None) is settings

    def test_applies_override(self):
        settings = LookupSettings().with_overrides(error_policy="raise", timeout_seconds=5.0)
        assert settings.error_policy == "raise"
        assert settings.timeout_seconds == 5.0

    def test_invalid_override_rejected(self):
        with pytest.raises(SettingsValidationError):
            LookupSettings().with_overrides(request_delay_seconds=-1.0)
