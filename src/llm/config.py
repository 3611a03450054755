# src/llm/config.py — v2
"""Vendor credential resolution from Settings.

One VendorConfig per vendor whose API key is set. Vendors without a key are
left out, so models bound to them fail with a clear configuration error.
"""

from __future__ import annotations

from snowgoose.config.settings import Settings
from snowgoose.llm.models import VendorConfig


def resolve_vendor_configs(settings: Settings) -> dict[str, VendorConfig]:
    """Build vendor configurations keyed by lowercase vendor name."""
    configs: dict[str, VendorConfig] = {}

    if settings.openai_api_key:
        configs["openai"] = VendorConfig(
            api_key=settings.openai_api_key,
            organization_id=settings.openai_org_id or None,
        )

    if settings.anthropic_api_key:
        configs["anthropic"] = VendorConfig(api_key=settings.anthropic_api_key)

    if settings.google_api_key:
        configs["google"] = VendorConfig(api_key=settings.google_api_key)

    if settings.openrouter_api_key:
        configs["openrouter"] = VendorConfig(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            default_headers={
                "HTTP-Referer": settings.site_url,
                "X-Title": settings.app_title,
            },
        )

    return configs
