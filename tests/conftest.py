"""Global test configuration and fixtures.

Provides a carrier catalog payload, fake catalog source and tariff engine
that record their calls, and ready-made shipments. No test talks to the
network or to Redis.
"""

import os
from collections.abc import Iterable, Sequence
from decimal import Decimal

import pytest

from rp_shipping.config import TariffSettings
from rp_shipping.exceptions import CatalogUnavailableError, TariffError
from rp_shipping.models import Address, Category, Money, Shipment, TariffRequest, TariffResult
from rp_shipping.services.cache_service import MemoryCache
from rp_shipping.services.catalog import CatalogProvider
from rp_shipping.services.catalog_source import parse_catalog
from rp_shipping.services.rates import RateCalculator

CATALOG_PAYLOAD = {
    "category": [
        {
            "id": 200,
            "name": "Бандероль",
            "subcategory": [
                {
                    "id": 230,
                    "name": "Бандероль заказная",
                    "description": "Печатные издания до 5 кг",
                    "item": [
                        {
                            "id": 23030,
                            "name": "Бандероль заказная",
                            "serv": [{"id": 2, "name": "Простое уведомление о вручении"}],
                        },
                    ],
                },
            ],
        },
        {
            "id": 400,
            "name": "Мелкий пакет",
            "subcategory": [
                {
                    "id": 410,
                    "name": "Мелкий пакет",
                    "description": "Международные отправления до 2 кг",
                    "item": [{"id": 4010, "name": "Мелкий пакет простой"}],
                },
            ],
        },
        {
            "id": 270,
            "name": "Посылка",
            "subcategory": [
                {
                    "id": 271,
                    "name": "Посылка стандартная",
                    "description": "До 20 кг",
                    "item": [
                        {"id": 27020, "name": "Посылка стандартная", "serv": []},
                        {
                            "id": 27030,
                            "name": "Посылка нестандартная",
                            "serv": [
                                {"id": 2, "name": "Простое уведомление о вручении"},
                                {"id": 10, "name": "Хрупкое"},
                                {"id": 20, "name": "Опись вложения"},
                                {"id": 41, "name": "Осторожно"},
                            ],
                        },
                    ],
                },
                {
                    "id": 472,
                    "name": "Посылка 1 класса",
                    "description": "Ускоренная доставка до 2,5 кг",
                    "item": [{"id": 47030, "name": "Посылка 1 класса"}],
                },
            ],
        },
    ],
}


class FakeCatalogSource:
    """Catalog source serving CATALOG_PAYLOAD and recording calls."""

    def __init__(self, payload: dict | None = None):
        self.payload = payload or CATALOG_PAYLOAD
        self.calls: list[tuple[int, ...]] = []
        self.error: Exception | None = None

    async def fetch_catalog(self, exclude: Iterable[int]) -> list[Category]:
        self.calls.append(tuple(sorted(exclude)))
        if self.error is not None:
            raise self.error
        return parse_catalog(self.payload, exclude)


class FakeTariffEngine:
    """Tariff engine with fixed prices per service and configurable failures."""

    def __init__(self, prices: dict[int, Decimal] | None = None):
        self.prices = prices or {
            23030: Decimal("180.00"),
            27020: Decimal("356.40"),
            27030: Decimal("512.16"),
            47030: Decimal("620.00"),
        }
        self.failing: dict[int, str] = {}
        self.calls: list[tuple[int, TariffRequest, list[int]]] = []

    async def calculate(
        self, service_id: int, request: TariffRequest, add_on_ids: Sequence[int]
    ) -> TariffResult:
        self.calls.append((service_id, request, list(add_on_ids)))
        if service_id in self.failing:
            raise TariffError(self.failing[service_id], service_id=service_id)
        pay_nds = self.prices[service_id]
        return TariffResult(pay=(pay_nds / Decimal("1.2")).quantize(Decimal("0.01")), pay_nds=pay_nds)


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Keep tests independent from the developer's RP_* environment."""
    for key in list(os.environ):
        if key.startswith("RP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def catalog_payload():
    return CATALOG_PAYLOAD


@pytest.fixture
def catalog_source():
    return FakeCatalogSource()


@pytest.fixture
def tariff_engine():
    return FakeTariffEngine()


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest.fixture
def catalog_provider(catalog_source, memory_cache):
    return CatalogProvider(catalog_source, memory_cache)


@pytest.fixture
def tariff_settings():
    return TariffSettings(origin_index="109012", default_pack=10, timeout=2.0)


@pytest.fixture
def rate_calculator(catalog_provider, tariff_engine, tariff_settings):
    return RateCalculator(catalog_provider, tariff_engine, tariff_settings)


@pytest.fixture
def shipment():
    """Two-item parcel to Tomsk."""
    return Shipment(
        weight_grams=1250,
        declared_value=Money(amount=Decimal("3500.00"), currency="RUB"),
        destination=Address(postal_code="634050"),
        item_count=2,
    )


@pytest.fixture
def catalog_unavailable():
    return CatalogUnavailableError("Catalog request failed: connection refused")
