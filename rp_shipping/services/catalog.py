"""Read-through cache for the Russian Post service catalog.

The catalog (categories, subcategories, services and their add-ons) changes
rarely, so it is fetched once per exclusion set and kept in the cache store
until the entry is evicted externally or expires. A failing catalog source
is not masked: the error reaches the caller and nothing is cached.
"""

import json
import logging
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from ..models import CatalogEntry, Category, ServiceDetails
from .cache_service import CacheStore
from .catalog_source import CatalogSource

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_CATEGORIES: tuple[int, ...] = (400, 700, 800)
CACHE_KEY_PREFIX = "russian_post_category"

_categories_adapter = TypeAdapter(list[Category])


def build_cache_key(exclude: Iterable[int]) -> str:
    """Deterministic cache key for an exclusion set.

    The set is sorted and de-duplicated so that equal sets share a key
    regardless of the order they were given in.

    Args:
        exclude: Excluded category codes.

    Returns:
        Key such as ``russian_post_category:[400,700,800]``.
    """
    normalized = sorted({int(code) for code in exclude})
    return f"{CACHE_KEY_PREFIX}:{json.dumps(normalized, separators=(',', ':'))}"


def flatten_catalog(categories: list[Category]) -> list[CatalogEntry]:
    """Flatten the catalog tree into (path, service) records in catalog order."""
    entries = []
    for category in categories:
        for subcategory in category.subcategories:
            for service in subcategory.services:
                entries.append(
                    CatalogEntry(
                        path=[category.name, subcategory.name, service.name],
                        category_id=category.id,
                        subcategory_id=subcategory.id,
                        service=service,
                    )
                )
    return entries


class CatalogProvider:
    """Catalog provider with a read-through cache.

    Args:
        source: External catalog source.
        cache: Cache store shared between requests.
        cache_ttl: Seconds to keep an entry, None to keep it until evicted.
        default_exclude: Exclusion set used when the caller passes none.
    """

    def __init__(
        self,
        source: CatalogSource,
        cache: CacheStore,
        cache_ttl: int | None = None,
        default_exclude: Iterable[int] = DEFAULT_EXCLUDED_CATEGORIES,
    ):
        self.source = source
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.default_exclude = tuple(default_exclude)

    async def get_category_list(self, exclude: Iterable[int] | None = None) -> list[Category]:
        """Return the catalog without the excluded top-level categories.

        Args:
            exclude: Category codes to leave out, defaults to ``default_exclude``.

        Returns:
            Ordered list of categories.

        Raises:
            CatalogUnavailableError: If the entry is not cached and the source fails.
        """
        exclude = self.default_exclude if exclude is None else tuple(exclude)
        key = build_cache_key(exclude)

        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return _categories_adapter.validate_python(cached)
            except ValidationError as e:
                logger.warning(f"Discarding unreadable catalog cache entry {key}: {e}")

        categories = await self.source.fetch_catalog(exclude)
        await self.cache.set(
            key, _categories_adapter.dump_python(categories, mode="json"), ttl=self.cache_ttl
        )
        logger.info(f"Catalog cached under {key}")
        return categories

    async def list_entries(self, exclude: Iterable[int] | None = None) -> list[CatalogEntry]:
        """Flat view of the catalog, one record per selectable service."""
        return flatten_catalog(await self.get_category_list(exclude))

    async def get_services_by_id(
        self, exclude: Iterable[int] | None = None
    ) -> dict[int, ServiceDetails]:
        """Index every selectable service by its carrier code.

        Resolves the catalog once, so a batch of lookups costs a single
        read of the cache store (and at most one source fetch).

        Args:
            exclude: Exclusion set of the catalog to index.

        Returns:
            Mapping of service id to ServiceDetails, in catalog order.
        """
        services = {}
        for category in await self.get_category_list(exclude):
            for subcategory in category.subcategories:
                for service in subcategory.services:
                    services.setdefault(
                        service.id,
                        ServiceDetails(
                            service=service,
                            category_id=category.id,
                            category_name=category.name,
                            subcategory_name=subcategory.name,
                            subcategory_description=subcategory.description,
                        ),
                    )
        return services

    async def get_service_by_id(
        self, service_id: int, exclude: Iterable[int] | None = None
    ) -> ServiceDetails | None:
        """Look a service up by its carrier code.

        Args:
            service_id: Carrier service code.
            exclude: Exclusion set of the catalog to search.

        Returns:
            ServiceDetails with the category path, None if the id is unknown.
        """
        services = await self.get_services_by_id(exclude)
        return services.get(service_id)

    async def invalidate(self, exclude: Iterable[int] | None = None) -> bool:
        """Drop the cached catalog for one exclusion set."""
        exclude = self.default_exclude if exclude is None else tuple(exclude)
        return await self.cache.delete(build_cache_key(exclude))
