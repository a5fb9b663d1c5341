"""Exception hierarchy for carrier integration errors."""


class RussianPostError(Exception):
    """Base class for all carrier integration errors."""


class CatalogUnavailableError(RussianPostError):
    """Raised when the service catalog cannot be fetched or parsed."""


class TariffError(RussianPostError):
    """Raised by the tariff engine for a single service calculation.

    Attributes:
        service_id: Carrier service code the calculation was requested for.
        errors: Raw error messages returned by the carrier, if any.
    """

    def __init__(self, message: str, service_id: int | None = None, errors: list[str] | None = None):
        super().__init__(message)
        self.service_id = service_id
        self.errors = errors or []


class SelectionError(RussianPostError):
    """Raised when a merchant service selection does not match the catalog."""
