# tests/unit/llm/test_unit_llm_config.py — v2
"""Tests for llm/config.py — vendor credentials from Settings."""

from __future__ import annotations

from snowgoose.config.settings import Settings
from snowgoose.llm.config import resolve_vendor_configs


class TestResolveVendorConfigs:
    def test_no_keys(self, monkeypatch):
        for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY", "OPENROUTER_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        assert resolve_vendor_configs(Settings(_env_file=None)) == {}

    def test_openai_with_org(self):
        configs = resolve_vendor_configs(
            Settings(_env_file=None, openai_api_key="sk-o", openai_org_id="org-1")
        )
        assert configs["openai"].api_key == "sk-o"
        assert configs["openai"].organization_id == "org-1"

    def test_openai_without_org(self):
        configs = resolve_vendor_configs(Settings(_env_file=None, openai_api_key="sk-o"))
        assert configs["openai"].organization_id is None

    def test_openrouter_headers(self):
        configs = resolve_vendor_configs(
            Settings(
                _env_file=None,
                openrouter_api_key="or-key",
                site_url="https://snowgoose.app",
                app_title="SnowGoose",
            )
        )
        cfg = configs["openrouter"]
        assert cfg.base_url == "https://openrouter.ai/api/v1"
        assert cfg.default_headers == {"HTTP-Referer": "https://snowgoose.app", "X-Title": "SnowGoose"}

    def test_keys_are_lowercase(self):
        configs = resolve_vendor_configs(
            Settings(_env_file=None, anthropic_api_key="a", google_api_key="g")
        )
        assert {"anthropic", "google"} <= set(configs)
