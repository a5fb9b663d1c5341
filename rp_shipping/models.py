"""Data models for the Russian Post shipping integration.

Defines Pydantic models for the carrier service catalog, merchant service
selection, shipments, tariff requests and the priced quotes handed back to
checkout. Catalog models are frozen: once fetched for a cache key they are
never mutated.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AddOnService(BaseModel):
    """Optional extra charged alongside a base service.

    Attributes:
        id: Carrier add-on code (e.g. 2 for a simple notice, 41 for careful handling).
        name: Display name.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class Service(BaseModel):
    """Carrier service level that can be priced.

    Attributes:
        id: Carrier-assigned service (object) code.
        name: Display name.
        add_ons: Add-on services offered for this service, in carrier order.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    add_ons: list[AddOnService] = Field(default_factory=list)

    def add_on_ids(self) -> list[int]:
        return [add_on.id for add_on in self.add_ons]


class Subcategory(BaseModel):
    """Carrier grouping of services inside a category."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    services: list[Service] = Field(default_factory=list)


class Category(BaseModel):
    """Top-level carrier grouping of mail service types."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    subcategories: list[Subcategory] = Field(default_factory=list)


class ServiceDetails(BaseModel):
    """Service found by id together with its position in the catalog.

    Attributes:
        service: The matching service.
        category_id: Owning category code.
        category_name: Owning category display name.
        subcategory_name: Owning subcategory display name.
        subcategory_description: Owning subcategory description.
    """

    service: Service
    category_id: int
    category_name: str
    subcategory_name: str
    subcategory_description: str = ""

    @property
    def id(self) -> int:
        return self.service.id

    @property
    def name(self) -> str:
        return self.service.name


class CatalogEntry(BaseModel):
    """Flat catalog record: one selectable service with its display path."""

    path: list[str]
    category_id: int
    subcategory_id: int
    service: Service


class SelectedService(BaseModel):
    """Merchant-selected service with its add-ons.

    Persisted with the shipping method configuration. The legacy key
    ``additional_services`` is accepted for ``add_on_ids``.

    Attributes:
        id: Carrier service code.
        add_on_ids: Selected add-on codes, duplicates removed, order kept.
    """

    id: int
    add_on_ids: list[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("add_on_ids", "additional_services"),
    )

    @field_validator("add_on_ids", mode="before")
    @classmethod
    def _dedupe_add_ons(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            seen: list[int] = []
            for item in value:
                item = int(item)
                if item not in seen:
                    seen.append(item)
            return seen
        return value


class Money(BaseModel):
    """Monetary amount with ISO currency code."""

    amount: Decimal
    currency: str = "RUB"

    def to_minor_units(self) -> int:
        """Amount in minor units (kopecks for RUB)."""
        return int((self.amount * 100).quantize(Decimal("1"), ROUND_HALF_UP))


class Address(BaseModel):
    """Shipping profile address, reduced to what the tariff API needs.

    Attributes:
        postal_code: Destination postal index, None if not filled in.
        country_code: ISO 3166 alpha-2 country code.
    """

    postal_code: str | None = None
    country_code: str = "RU"


class Shipment(BaseModel):
    """Shipment to be priced at checkout.

    Attributes:
        weight_grams: Total weight normalized to grams.
        declared_value: Merchant-stated value of the contents.
        destination: Shipping profile address, None if the profile has none.
        item_count: Number of items in the shipment.
        package_type: Carrier package code, overrides the configured default.
    """

    weight_grams: int = Field(ge=0)
    declared_value: Money
    destination: Address | None = None
    item_count: int = Field(default=0, ge=0)
    package_type: int | None = None

    @property
    def has_items(self) -> bool:
        return self.item_count > 0

    @property
    def has_shippable_address(self) -> bool:
        return self.destination is not None and bool(self.destination.postal_code)


class TariffRequest(BaseModel):
    """Parameters of one tariff calculation request.

    Attributes:
        weight: Weight in grams.
        sumoc: Declared value in kopecks.
        from_index: Origin postal index.
        to_index: Destination postal index.
        pack: Carrier package code.
    """

    weight: int
    sumoc: int
    from_index: str
    to_index: str
    pack: int

    def to_params(self) -> dict[str, str]:
        """Serialize to carrier query parameters."""
        return {
            "weight": str(self.weight),
            "sumoc": str(self.sumoc),
            "from": self.from_index,
            "to": self.to_index,
            "pack": str(self.pack),
        }


class TariffResult(BaseModel):
    """Tariff engine answer for one service.

    Attributes:
        pay: Price without VAT.
        pay_nds: Price including VAT.
        currency: Currency the carrier quotes in.
    """

    pay: Decimal
    pay_nds: Decimal
    currency: str = "RUB"


class RateQuote(BaseModel):
    """Priced shipping option for one selected service.

    Attributes:
        service_id: Carrier service code.
        service_name: Service display name.
        amount: VAT-inclusive price in the shipment currency.
        description: Applied add-on services, if any.
    """

    service_id: int
    service_name: str
    amount: Money
    description: str | None = None


class RateCalculation(BaseModel):
    """Result of one checkout rate calculation.

    Attributes:
        quotes: Quotes in configuration order, failed services omitted.
        warnings: User-visible warnings, one per skipped service.
    """

    quotes: list[RateQuote] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
