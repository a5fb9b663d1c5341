"""Shipping rate calculation for Russian Post services.

For every service the merchant enabled, asks the tariff engine for a price
and turns the answer into a quote. Services are priced one after another in
configuration order; a failure for one service becomes a user-visible
warning and never aborts the rest of the batch.
"""

import asyncio
import logging
from collections.abc import Iterable

from ..config import TariffSettings
from ..exceptions import TariffError
from ..models import (
    Money,
    RateCalculation,
    RateQuote,
    SelectedService,
    ServiceDetails,
    Shipment,
    TariffRequest,
)
from .catalog import CatalogProvider
from .selection import add_on_names
from .tariff import TariffEngine

logger = logging.getLogger(__name__)

SERVICE_NOT_FOUND = "Not found {service_id}"


class RateCalculator:
    """Computes quotes for a shipment and a list of selected services."""

    def __init__(
        self,
        catalog: CatalogProvider,
        tariff_engine: TariffEngine,
        settings: TariffSettings,
    ):
        """Store collaborators.

        Args:
            catalog: Provider used to resolve selected service ids.
            tariff_engine: External pricing capability.
            settings: Operator-supplied origin index, default package and timeout.
        """
        self.catalog = catalog
        self.tariff_engine = tariff_engine
        self.settings = settings

    def build_request(self, shipment: Shipment) -> TariffRequest:
        """Derive tariff request parameters from the shipment and settings.

        Args:
            shipment: Shipment with a shippable destination.

        Returns:
            TariffRequest for the tariff engine.
        """
        destination = shipment.destination
        to_index = destination.postal_code if destination and destination.postal_code else ""
        pack = shipment.package_type if shipment.package_type is not None else self.settings.default_pack

        return TariffRequest(
            weight=shipment.weight_grams,
            sumoc=shipment.declared_value.to_minor_units(),
            from_index=self.settings.origin_index,
            to_index=to_index,
            pack=pack,
        )

    async def calculate_rates(
        self, shipment: Shipment, selected_services: Iterable[SelectedService]
    ) -> RateCalculation:
        """Price every selected service for a shipment.

        Args:
            shipment: Shipment being checked out.
            selected_services: Services configured by the merchant, in display order.

        Returns:
            RateCalculation with quotes in input order and one warning per
            skipped service. Empty when the shipment has no shippable address
            or no items.
        """
        result = RateCalculation()

        if not shipment.has_shippable_address:
            logger.debug("Shipment has no shippable address, no rates")
            return result
        if not shipment.has_items:
            logger.debug("Shipment has no items, no rates")
            return result

        request = self.build_request(shipment)
        currency = shipment.declared_value.currency
        services = await self.catalog.get_services_by_id()

        for selected in selected_services:
            details = services.get(selected.id)
            if details is None:
                logger.warning(f"Selected service {selected.id} is not in the catalog")
                result.warnings.append(SERVICE_NOT_FOUND.format(service_id=selected.id))
                continue

            add_on_ids = self._offered_add_ons(details, selected)

            try:
                tariff = await asyncio.wait_for(
                    self.tariff_engine.calculate(details.id, request, add_on_ids),
                    timeout=self.settings.timeout,
                )
            except TariffError as e:
                logger.warning(f"Tariff calculation failed for service {details.id}: {e}")
                result.warnings.append(str(e))
                continue
            except asyncio.TimeoutError:
                message = f"Tariff calculation for {details.name} timed out"
                logger.warning(message)
                result.warnings.append(message)
                continue

            if tariff.currency != currency:
                logger.warning(
                    f"Service {details.id} priced in {tariff.currency}, "
                    f"quoted as {currency} without conversion"
                )

            names = add_on_names(details, add_on_ids)
            result.quotes.append(
                RateQuote(
                    service_id=details.id,
                    service_name=details.name,
                    amount=Money(amount=tariff.pay_nds, currency=currency),
                    description=", ".join(names) if names else None,
                )
            )

        logger.info(
            f"Calculated {len(result.quotes)} rates, {len(result.warnings)} services skipped"
        )
        return result

    @staticmethod
    def _offered_add_ons(details: ServiceDetails, selected: SelectedService) -> list[int]:
        """Selected add-on ids still offered for the service, in selection order."""
        offered = set(details.service.add_on_ids())
        kept = [add_on_id for add_on_id in selected.add_on_ids if add_on_id in offered]
        dropped = [add_on_id for add_on_id in selected.add_on_ids if add_on_id not in offered]
        if dropped:
            logger.warning(
                f"Dropping add-ons {dropped} no longer offered for service {details.id}"
            )
        return kept
