"""Dependency-injection container.

This module defines a dependency-injection (DI) container that wires together
the application's components. Every component receives its collaborators
through its constructor; the container is the only place that knows which
concrete cache store and carrier clients are used.
"""

from dependency_injector import containers, providers

from ..config import Config, TariffSettings
from ..services.cache_service import CacheConfig, CacheService, MemoryCache
from ..services.catalog import CatalogProvider
from ..services.catalog_source import PochtaCatalogClient
from ..services.gateway import ShippingGateway
from ..services.http import LazySession
from ..services.rates import RateCalculator
from ..services.tariff import PochtaTariffClient


class Container(containers.DeclarativeContainer):
    """DI container for the application.

    This container holds the wiring for all the application's components.
    """

    config = providers.Configuration()

    # Infrastructure
    http_session = providers.Singleton(LazySession, timeout=config.tariff.timeout)
    cache_config = providers.Singleton(
        CacheConfig,
        redis_url=config.cache.redis_url,
        key_prefix=config.cache.key_prefix,
        default_ttl=config.cache.default_ttl,
        socket_timeout=config.cache.socket_timeout,
        enabled=config.cache.enabled,
    )
    cache_store = providers.Selector(
        config.app.cache_backend,
        redis=providers.Singleton(CacheService, config=cache_config),
        memory=providers.Singleton(MemoryCache, default_ttl=config.cache.default_ttl),
    )
    tariff_settings = providers.Singleton(
        TariffSettings,
        base_url=config.tariff.base_url,
        origin_index=config.tariff.origin_index,
        default_pack=config.tariff.default_pack,
        timeout=config.tariff.timeout,
        currency=config.tariff.currency,
    )

    # Carrier clients
    catalog_source = providers.Singleton(
        PochtaCatalogClient,
        session=http_session,
        base_url=config.catalog.base_url,
        timeout=config.catalog.timeout,
    )
    tariff_engine = providers.Singleton(
        PochtaTariffClient,
        session=http_session,
        base_url=config.tariff.base_url,
        timeout=config.tariff.timeout,
        currency=config.tariff.currency,
    )

    # Services
    catalog_provider = providers.Singleton(
        CatalogProvider,
        source=catalog_source,
        cache=cache_store,
        cache_ttl=config.catalog.cache_ttl,
        default_exclude=config.catalog.excluded_categories,
    )
    rate_calculator = providers.Singleton(
        RateCalculator,
        catalog=catalog_provider,
        tariff_engine=tariff_engine,
        settings=tariff_settings,
    )
    gateway = providers.Singleton(
        ShippingGateway,
        catalog=catalog_provider,
        calculator=rate_calculator,
    )


def create_container(app_config: Config | None = None) -> Container:
    """Build a container configured from the application config.

    Args:
        app_config: Configuration to load, defaults to the global instance.

    Returns:
        Configured Container.
    """
    if app_config is None:
        from ..config import config as global_config
        app_config = global_config

    container = Container()
    container.config.from_dict(app_config.as_dict())
    return container
