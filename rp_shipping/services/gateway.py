"""Consumer-facing operations for checkout and configuration code.

``ShippingGateway`` is the single object the surrounding shop code talks to:
it lists the catalog, looks services up, validates merchant selections and
computes checkout quotes.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..models import Category, RateCalculation, SelectedService, ServiceDetails, Shipment
from .catalog import CatalogProvider
from .rates import RateCalculator
from .selection import SelectionRow, apply_selection, build_selection_rows, describe_selection

logger = logging.getLogger(__name__)


class ShippingGateway:
    """Facade over the catalog provider and the rate calculator."""

    def __init__(self, catalog: CatalogProvider, calculator: RateCalculator):
        self.catalog = catalog
        self.calculator = calculator

    async def list_catalog(self, exclude: Iterable[int] | None = None) -> list[Category]:
        return await self.catalog.get_category_list(exclude)

    async def get_service_by_id(self, service_id: int) -> ServiceDetails | None:
        return await self.catalog.get_service_by_id(service_id)

    async def compute_quotes(
        self, shipment: Shipment, selections: Iterable[SelectedService]
    ) -> RateCalculation:
        return await self.calculator.calculate_rates(shipment, selections)

    async def selection_rows(self, selected: Iterable[SelectedService]) -> list[SelectionRow]:
        """Editor rows for the current catalog and selection."""
        return build_selection_rows(await self.catalog.get_category_list(), selected)

    async def save_selection(
        self, submitted: Iterable[SelectedService | Mapping[str, Any]]
    ) -> list[SelectedService]:
        """Validate a merchant submission against the current catalog.

        Raises:
            SelectionError: If the submission does not match the catalog.
        """
        return apply_selection(await self.catalog.get_category_list(), submitted)

    async def describe_services(
        self, selected: Iterable[SelectedService]
    ) -> list[tuple[ServiceDetails, str]]:
        """Configured services with their add-on summaries.

        Services missing from the catalog are skipped.
        """
        services = await self.catalog.get_services_by_id()
        described = []
        for item in selected:
            details = services.get(item.id)
            if details is None:
                logger.warning(f"Configured service {item.id} is not in the catalog")
                continue
            described.append((details, describe_selection(details, item)))
        return described
