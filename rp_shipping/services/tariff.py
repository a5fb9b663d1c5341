"""Russian Post tariff engine client.

Prices a (service, shipment, add-ons) tuple through the carrier's tariff
calculation endpoint. The carrier reports amounts in kopecks; results are
converted to rubles.
"""

import asyncio
import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Protocol

import aiohttp

from ..exceptions import TariffError
from ..models import TariffRequest, TariffResult
from .http import LazySession, get_json

logger = logging.getLogger(__name__)

KOPECKS = Decimal("100")


class TariffEngine(Protocol):
    """Protocol for anything that can price one carrier service."""

    async def calculate(
        self, service_id: int, request: TariffRequest, add_on_ids: Sequence[int]
    ) -> TariffResult:
        """Price one service.

        Args:
            service_id: Carrier service code.
            request: Shipment parameters.
            add_on_ids: Add-on service codes to include.

        Returns:
            TariffResult with VAT-exclusive and VAT-inclusive prices.

        Raises:
            TariffError: On invalid parameters, unknown service or connectivity loss.
        """
        ...


class PochtaTariffClient:
    """Tariff engine backed by the tariff.pochta.ru calculation endpoint."""

    def __init__(
        self,
        session: aiohttp.ClientSession | LazySession,
        base_url: str = "https://tariff.pochta.ru",
        timeout: float = 10.0,
        currency: str = "RUB",
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.currency = currency

    def build_params(
        self, service_id: int, request: TariffRequest, add_on_ids: Sequence[int]
    ) -> dict[str, str]:
        """Build the query string for one calculation."""
        params = {"json": "", "object": str(service_id), **request.to_params()}
        if add_on_ids:
            params["service"] = ",".join(str(add_on_id) for add_on_id in add_on_ids)
        return params

    async def calculate(
        self, service_id: int, request: TariffRequest, add_on_ids: Sequence[int]
    ) -> TariffResult:
        url = f"{self.base_url}/v2/calculate/tariff"
        params = self.build_params(service_id, request, add_on_ids)

        try:
            status, data = await get_json(self.session, url, params, self.timeout)
        except asyncio.TimeoutError as e:
            raise TariffError(
                f"Tariff request for service {service_id} timed out", service_id=service_id
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise TariffError(
                f"Tariff request for service {service_id} failed: {e}", service_id=service_id
            ) from e

        errors = self._extract_errors(data)
        if errors:
            raise TariffError("; ".join(errors), service_id=service_id, errors=errors)

        if status != 200:
            raise TariffError(
                f"Tariff request for service {service_id} returned HTTP {status}",
                service_id=service_id,
            )

        try:
            pay = Decimal(str(data["pay"])) / KOPECKS
            pay_nds = Decimal(str(data["paynds"])) / KOPECKS
        except (KeyError, TypeError, ArithmeticError) as e:
            raise TariffError(
                f"Unexpected tariff payload for service {service_id}", service_id=service_id
            ) from e

        logger.info(f"Tariff for service {service_id}: {pay_nds} {self.currency} (VAT incl.)")
        return TariffResult(pay=pay, pay_nds=pay_nds, currency=self.currency)

    @staticmethod
    def _extract_errors(data: Any) -> list[str]:
        """Collect carrier error messages from a response body."""
        if not isinstance(data, dict):
            return ["Unexpected tariff response"]

        raw = data.get("error") or data.get("errors") or []
        if isinstance(raw, (str, dict)):
            raw = [raw]

        messages = []
        for entry in raw:
            if isinstance(entry, dict):
                messages.append(str(entry.get("msg") or entry.get("message") or entry))
            else:
                messages.append(str(entry))
        return messages
