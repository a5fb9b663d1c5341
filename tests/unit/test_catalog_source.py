"""Tests for the Russian Post dictionary client and payload parser."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from rp_shipping.exceptions import CatalogUnavailableError
from rp_shipping.services.catalog_source import PochtaCatalogClient, parse_catalog


def make_session(status=200, payload=None, error=None):
    """Mock aiohttp session whose GET yields one JSON response."""
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
        return session

    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    session.get.return_value.__aenter__.return_value = response
    return session


class TestParseCatalog:
    def test_tree_structure(self, catalog_payload):
        categories = parse_catalog(catalog_payload)

        assert [category.id for category in categories] == [200, 400, 270]
        parcel = categories[2]
        assert [sub.name for sub in parcel.subcategories] == ["Посылка стандартная", "Посылка 1 класса"]
        service = parcel.subcategories[0].services[1]
        assert service.id == 27030
        assert [add_on.id for add_on in service.add_ons] == [2, 10, 20, 41]

    def test_exclusion(self, catalog_payload):
        categories = parse_catalog(catalog_payload, [400, 200])
        assert [category.id for category in categories] == [270]

    def test_mapping_levels(self):
        payload = {
            "category": {
                "270": {
                    "id": "270",
                    "name": "Посылка",
                    "subcategory": {
                        "271": {
                            "id": 271,
                            "name": "Посылка стандартная",
                            "item": {"27020": {"id": "27020", "name": "Посылка стандартная"}},
                        }
                    },
                }
            }
        }

        categories = parse_catalog(payload)

        assert categories[0].id == 270
        assert categories[0].subcategories[0].description == ""
        assert categories[0].subcategories[0].services[0].id == 27020
        assert categories[0].subcategories[0].services[0].add_ons == []

    def test_missing_root_raises(self):
        with pytest.raises(KeyError):
            parse_catalog({"object": []})


class TestPochtaCatalogClient:
    @pytest.mark.asyncio
    async def test_fetch_catalog(self, catalog_payload):
        session = make_session(payload=catalog_payload)
        client = PochtaCatalogClient(session, base_url="https://tariff.example/", timeout=3)

        categories = await client.fetch_catalog([400, 700, 800])

        assert [category.id for category in categories] == [200, 270]
        url = session.get.call_args.args[0]
        assert url == "https://tariff.example/v2/dictionary"
        assert session.get.call_args.kwargs["params"] == {"json": "", "category": "all"}

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = PochtaCatalogClient(make_session(status=503, payload={}))

        with pytest.raises(CatalogUnavailableError, match="503"):
            await client.fetch_catalog([])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()]
    )
    async def test_connection_problems(self, error):
        client = PochtaCatalogClient(make_session(error=error))

        with pytest.raises(CatalogUnavailableError):
            await client.fetch_catalog([])

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        client = PochtaCatalogClient(make_session(payload={"category": [{"name": "no id"}]}))

        with pytest.raises(CatalogUnavailableError, match="Unexpected catalog payload"):
            await client.fetch_catalog([])
