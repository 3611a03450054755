# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for vendor credentials, generation defaults,
tool-server location, collaborator paths and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === VENDOR CREDENTIALS ===
    openai_api_key: str = ""
    openai_org_id: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Sent to OpenRouter as HTTP-Referer / X-Title
    site_url: str = ""
    app_title: str = "SnowGoose AI Assistant"

    # === GENERATION DEFAULTS ===
    default_max_tokens: int = 1024
    default_temperature: float = 1.0

    # === IMAGE GENERATION ===
    image_generation_models: str = "dall-e-3"
    openai_image_model: str = "dall-e-3"
    openai_image_size: str = "1024x1024"
    openai_image_quality: str = "standard"
    google_image_model: str = "gemini-2.0-flash-exp-image-generation"

    # === MCP TOOL SERVERS ===
    mcp_servers_root: Path = Path("mcp_servers")
    mcp_client_name: str = "snowgoose-mcp-client"
    mcp_client_version: str = "1.0.0"

    # === COLLABORATORS ===
    catalog_path: Path = Path("catalog.json")
    user_db_path: Path = Path("~/.snowgoose/users.db")
    image_store: Literal["data_url", "local"] = "data_url"
    image_output_dir: Path = Path("~/.snowgoose/images")
    usage_log_path: Path = Path("~/.snowgoose/usage.jsonl")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("default_max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:  # noqa: N805
        """DEFAULT_MAX_TOKENS must be positive."""
        if v <= 0:
            raise ValueError("default_max_tokens must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not 0.0 <= self.default_temperature <= 2.0:
            errors.append("DEFAULT_TEMPERATURE must be between 0 and 2")

        if self.openrouter_api_key and not self.openrouter_base_url:
            errors.append("OPENROUTER_API_KEY requires OPENROUTER_BASE_URL")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def image_generation_models_list(self) -> list[str]:
        """Parse comma-separated image generation model identifiers."""
        return [
            m.strip() for m in self.image_generation_models.split(",") if m.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
