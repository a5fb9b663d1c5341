"""Russian Post service catalog source.

Fetches the carrier's category dictionary and parses it into the catalog
tree. The dictionary endpoint answers with nested lists::

    {"category": [
        {"id": 1000, "name": "...", "subcategory": [
            {"id": 1010, "name": "...", "description": "...", "item": [
                {"id": 27030, "name": "...", "serv": [{"id": 2, "name": "..."}]}
            ]}
        ]}
    ]}

Each level may also be a mapping keyed by id; only the values are used.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol

import aiohttp

from ..exceptions import CatalogUnavailableError
from ..models import AddOnService, Category, Service, Subcategory
from .http import LazySession, get_json

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Protocol for anything that can produce the carrier catalog tree."""

    async def fetch_catalog(self, exclude: Iterable[int]) -> list[Category]:
        """Fetch the catalog without the excluded top-level categories.

        Args:
            exclude: Category codes to leave out.

        Returns:
            Ordered list of categories.

        Raises:
            CatalogUnavailableError: If the catalog cannot be retrieved.
        """
        ...


class PochtaCatalogClient:
    """Catalog source backed by the tariff dictionary endpoint."""

    def __init__(
        self,
        session: aiohttp.ClientSession | LazySession,
        base_url: str = "https://tariff.pochta.ru",
        timeout: float = 15.0,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def fetch_catalog(self, exclude: Iterable[int]) -> list[Category]:
        excluded = set(exclude)
        url = f"{self.base_url}/v2/dictionary"
        logger.info(f"Fetching Russian Post catalog (excluding {sorted(excluded)})")

        try:
            status, data = await get_json(
                self.session, url, {"json": "", "category": "all"}, self.timeout
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Catalog request failed: {e}")
            raise CatalogUnavailableError(f"Catalog request failed: {e}") from e

        if status != 200:
            raise CatalogUnavailableError(f"Catalog request returned HTTP {status}")

        try:
            categories = parse_catalog(data, excluded)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected catalog payload: {e}")
            raise CatalogUnavailableError(f"Unexpected catalog payload: {e}") from e

        logger.info(f"Catalog fetched: {len(categories)} categories")
        return categories


def _nodes(container: Any) -> list[dict[str, Any]]:
    """Normalize a list-or-mapping level of the payload into a list."""
    if container is None:
        return []
    if isinstance(container, dict):
        return list(container.values())
    if isinstance(container, list):
        return container
    raise TypeError(f"expected list or mapping, got {type(container).__name__}")


def parse_catalog(data: dict[str, Any], exclude: Iterable[int] = ()) -> list[Category]:
    """Parse a dictionary payload into categories.

    Args:
        data: Decoded JSON payload.
        exclude: Top-level category codes to drop.

    Returns:
        Ordered list of categories.

    Raises:
        KeyError, TypeError, ValueError: If the payload does not have the
            expected shape.
    """
    excluded = set(exclude)
    categories: list[Category] = []

    for raw_category in _nodes(data["category"]):
        category_id = int(raw_category["id"])
        if category_id in excluded:
            continue

        subcategories = []
        for raw_sub in _nodes(raw_category.get("subcategory")):
            services = [
                Service(
                    id=int(raw_item["id"]),
                    name=raw_item["name"],
                    add_ons=[
                        AddOnService(id=int(raw_serv["id"]), name=raw_serv["name"])
                        for raw_serv in _nodes(raw_item.get("serv"))
                    ],
                )
                for raw_item in _nodes(raw_sub.get("item"))
            ]
            subcategories.append(
                Subcategory(
                    id=int(raw_sub["id"]),
                    name=raw_sub["name"],
                    description=raw_sub.get("description") or "",
                    services=services,
                )
            )

        categories.append(
            Category(id=category_id, name=raw_category["name"], subcategories=subcategories)
        )

    return categories
