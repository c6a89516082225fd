"""
Configuration management for the freight ledger.

Handles loading and accessing:
- Business configuration (config.yaml)
- Environment variables
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAGE_SIZE = 20
DEFAULT_FALLBACK_CODE_LENGTH = 8

DEFAULT_CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "fuel": ["combust", "fuel", "diesel"],
    "maintenance": ["manutenc", "maint"],
    "toll": ["pedag", "toll"],
}


class CategoryKeywords(BaseModel):
    """Substrings that map free-text cost categories onto category keys."""

    fuel: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS["fuel"]))
    maintenance: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS["maintenance"])
    )
    toll: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS["toll"]))

    def as_dict(self) -> dict[str, list[str]]:
        """Keywords keyed by category value."""
        return {"fuel": self.fuel, "maintenance": self.maintenance, "toll": self.toll}


class EnvironmentSettings(BaseSettings):
    """Environment variables configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    config_dir: Optional[str] = Field(None, alias="LEDGER_CONFIG_DIR")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")


class ConfigManager:
    """
    Central configuration manager for the freight ledger.

    Loads and provides access to:
    - Business configuration from config/config.yaml
    - Environment variables from .env

    The YAML file is optional; every accessor falls back to built-in defaults.
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional path to config directory. Defaults to
                LEDGER_CONFIG_DIR, then project root/config.
        """
        self._env_settings: Optional[EnvironmentSettings] = None

        if config_dir is None:
            if self.env.config_dir:
                config_dir = Path(self.env.config_dir)
            else:
                # Default to config/ directory in project root
                project_root = Path(__file__).parent.parent.parent
                config_dir = project_root / "config"

        self.config_dir = config_dir
        self._business_config: Optional[dict[str, Any]] = None

    @property
    def business_config(self) -> dict[str, Any]:
        """Load and return business configuration from config.yaml."""
        if self._business_config is None:
            config_path = self.config_dir / "config.yaml"
            if config_path.exists():
                with open(config_path, "r", encoding="utf-8") as f:
                    self._business_config = yaml.safe_load(f) or {}
            else:
                self._business_config = {}
        return self._business_config

    @property
    def env(self) -> EnvironmentSettings:
        """Load and return environment settings."""
        if self._env_settings is None:
            self._env_settings = EnvironmentSettings()
        return self._env_settings

    def get_page_size(self) -> int:
        """Get the default client-side page size."""
        pagination = self.business_config.get("pagination", {})
        return int(pagination.get("page_size", DEFAULT_PAGE_SIZE))

    def get_fallback_code_length(self) -> int:
        """Get how many identifier characters form a fallback display code."""
        linking = self.business_config.get("linking", {})
        return int(linking.get("fallback_code_length", DEFAULT_FALLBACK_CODE_LENGTH))

    def get_category_keywords(self) -> CategoryKeywords:
        """Get cost category keyword lists, merged over the defaults."""
        configured = self.business_config.get("categories", {}) or {}
        return CategoryKeywords(**configured)


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        ConfigManager singleton instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
