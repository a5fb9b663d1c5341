"""Configuration management for the Russian Post integration.

Handles all application configuration including environment variables, the
YAML config file, and default settings. Provides structured configuration
classes for the tariff engine, the catalog, the cache and the application.

Environment variables use a per-section prefix (``RP_TARIFF_``,
``RP_CATALOG_``, ``RP_CACHE_``); values from ``russian_post.yml`` take
precedence over them.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .services.cache_service import CacheConfig


class TariffSettings(BaseSettings):
    """Tariff engine request parameters supplied by the operator.

    Attributes:
        base_url: Russian Post tariff API root.
        origin_index: Postal index the merchant ships from.
        default_pack: Carrier package code used when the shipment has none.
        timeout: Per-call timeout in seconds for a tariff request.
        currency: Currency the carrier prices in.
    """
    model_config = SettingsConfigDict(env_prefix="RP_TARIFF_")

    base_url: str = "https://tariff.pochta.ru"
    origin_index: str = "109012"
    default_pack: int = 10
    timeout: float = 10.0
    currency: str = "RUB"


class CatalogSettings(BaseSettings):
    """Service catalog retrieval settings.

    Attributes:
        base_url: Russian Post dictionary API root.
        excluded_categories: Top-level category codes hidden from merchants.
        cache_ttl: Seconds to keep a fetched catalog, None keeps it until evicted.
        timeout: Timeout in seconds for the dictionary request.
    """
    model_config = SettingsConfigDict(env_prefix="RP_CATALOG_")

    base_url: str = "https://tariff.pochta.ru"
    excluded_categories: list[int] = Field(default_factory=lambda: [400, 700, 800])
    cache_ttl: int | None = None
    timeout: float = 15.0


class AppSettings(BaseSettings):
    """Process-level settings.

    Attributes:
        log_level: Root logging level name.
        cache_backend: "redis" or "memory".
    """
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cache_backend: str = Field(default="redis", validation_alias="RP_CACHE_BACKEND")


class Config:
    """Application configuration manager.

    Centralizes loading of environment variables, the optional
    ``russian_post.yml`` file and default values.
    """

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory, defaults to rp_shipping/config.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent / "config"

        self.config_dir = Path(config_dir)
        self.app = AppSettings()

        data = self._load_yaml("russian_post.yml")
        if data:
            self.tariff = TariffSettings(**self._known(TariffSettings, data.get("tariff")))
            self.catalog = CatalogSettings(**self._known(CatalogSettings, data.get("catalog")))
            self.cache = CacheConfig(**self._known(CacheConfig, data.get("cache")))
        else:
            # Use defaults if config file not found
            self.tariff = TariffSettings()
            self.catalog = CatalogSettings()
            self.cache = CacheConfig()

    def _load_yaml(self, filename: str) -> dict[str, Any]:
        """Load a YAML file from the config directory.

        Returns:
            Parsed mapping, empty if the file is missing or empty.
        """
        path = self.config_dir / filename
        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        return data or {}

    @staticmethod
    def _known(model: type, data: dict[str, Any] | None) -> dict[str, Any]:
        """Keep only keys the settings model declares."""
        fields = getattr(model, "model_fields", {})
        return {key: value for key, value in (data or {}).items() if key in fields}

    def as_dict(self) -> dict[str, Any]:
        """Configuration sections as plain dicts for the DI container."""
        return {
            "app": self.app.model_dump(),
            "tariff": self.tariff.model_dump(),
            "catalog": self.catalog.model_dump(),
            "cache": self.cache.model_dump(),
        }


# Global configuration instance
config = Config()
