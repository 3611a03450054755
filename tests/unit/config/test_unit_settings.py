# tests/unit/config/test_unit_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from snowgoose.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_generation_defaults(self):
        s = Settings(_env_file=None)
        assert s.default_max_tokens == 1024
        assert s.default_temperature == 1.0

    def test_image_defaults(self):
        s = Settings(_env_file=None)
        assert s.image_generation_models_list == ["dall-e-3"]
        assert s.image_store == "data_url"

    def test_openrouter_default_base_url(self):
        s = Settings(_env_file=None)
        assert s.openrouter_base_url == "https://openrouter.ai/api/v1"

    def test_collaborator_paths(self):
        s = Settings(_env_file=None)
        assert s.catalog_path == Path("catalog.json")
        assert s.mcp_servers_root == Path("mcp_servers")


class TestSettingsValidation:
    def test_temperature_out_of_range(self):
        with pytest.raises(ConfigurationError, match="DEFAULT_TEMPERATURE"):
            Settings(_env_file=None, default_temperature=2.5)

    def test_openrouter_key_without_base_url(self):
        with pytest.raises(ConfigurationError, match="OPENROUTER_BASE_URL"):
            Settings(_env_file=None, openrouter_api_key="or-key", openrouter_base_url="")

    def test_negative_retention(self):
        with pytest.raises(ConfigurationError, match="LOG_RETENTION"):
            Settings(_env_file=None, log_retention=-1)

    def test_non_positive_max_tokens(self):
        with pytest.raises(ValueError, match="default_max_tokens"):
            Settings(_env_file=None, default_max_tokens=0)

    def test_errors_are_joined(self):
        with pytest.raises(ConfigurationError, match="; "):
            Settings(_env_file=None, default_temperature=-1, log_retention=-1)


class TestHelpers:
    def test_image_models_list_strips_blanks(self):
        s = Settings(_env_file=None, image_generation_models=" dall-e-3, ,gpt-image-1 ")
        assert s.image_generation_models_list == ["dall-e-3", "gpt-image-1"]

    def test_load_settings_overrides(self):
        s = load_settings(_env_file=None, anthropic_api_key="sk-ant")
        assert s.anthropic_api_key == "sk-ant"

    def test_env_variables(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_MAX_TOKENS", "2048")
        monkeypatch.setenv("IMAGE_STORE", "local")
        s = Settings(_env_file=None)
        assert s.default_max_tokens == 2048
        assert s.image_store == "local"
