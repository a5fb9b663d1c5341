"""Merchant service selection as pure data transforms.

The shipping method configuration stores the enabled services as a JSON
list of ``{"id": ..., "add_on_ids": [...]}`` records. This module turns the
catalog tree into flat rows a UI can render, validates what the merchant
submits against the catalog, and handles the JSON round trip.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..exceptions import SelectionError
from ..models import Category, SelectedService, Service, ServiceDetails

logger = logging.getLogger(__name__)

NO_ADD_ONS_DESCRIPTION = "Additional services not selected."
ADD_ONS_DESCRIPTION = "Additional services: {services}"

_selection_adapter = TypeAdapter(list[SelectedService])


class SelectionRow(BaseModel):
    """One selectable service as shown in the editor.

    Attributes:
        path: Category, subcategory and service names.
        category_id: Owning category code.
        subcategory_description: Description shown under the subcategory.
        service: Service with its available add-ons.
        selected: Whether the merchant enabled the service.
        selected_add_on_ids: Enabled add-ons, empty when not selected.
    """

    path: list[str]
    category_id: int
    subcategory_description: str = ""
    service: Service
    selected: bool = False
    selected_add_on_ids: list[int] = Field(default_factory=list)


def build_selection_rows(
    categories: list[Category], selected: Iterable[SelectedService]
) -> list[SelectionRow]:
    """Flatten the catalog into editor rows reflecting the current selection."""
    by_id = {item.id: item for item in selected}
    rows = []
    for category in categories:
        for subcategory in category.subcategories:
            for service in subcategory.services:
                current = by_id.get(service.id)
                rows.append(
                    SelectionRow(
                        path=[category.name, subcategory.name, service.name],
                        category_id=category.id,
                        subcategory_description=subcategory.description,
                        service=service,
                        selected=current is not None,
                        selected_add_on_ids=list(current.add_on_ids) if current else [],
                    )
                )
    return rows


def apply_selection(
    categories: list[Category], submitted: Iterable[SelectedService | Mapping[str, Any]]
) -> list[SelectedService]:
    """Validate a merchant submission against the catalog.

    Args:
        categories: Current catalog tree.
        submitted: Selected services, as models or raw mappings.

    Returns:
        Validated selection in submission order.

    Raises:
        SelectionError: On malformed records, unknown or duplicate service
            ids, or add-ons not offered for their service.
    """
    services = {
        service.id: service
        for category in categories
        for subcategory in category.subcategories
        for service in subcategory.services
    }

    result: list[SelectedService] = []
    seen: set[int] = set()
    for raw in submitted:
        try:
            item = raw if isinstance(raw, SelectedService) else SelectedService.model_validate(raw)
        except ValidationError as e:
            raise SelectionError(f"Malformed service selection: {e}") from e

        service = services.get(item.id)
        if service is None:
            raise SelectionError(f"Service {item.id} is not offered by the carrier")
        if item.id in seen:
            raise SelectionError(f"Service {item.id} is selected more than once")

        unknown = [add_on_id for add_on_id in item.add_on_ids if add_on_id not in service.add_on_ids()]
        if unknown:
            raise SelectionError(
                f"Add-on services {unknown} are not available for service {item.id}"
            )

        seen.add(item.id)
        result.append(item)

    return result


def dump_selection(selected: Iterable[SelectedService]) -> str:
    """Serialize a selection for the shipping method configuration."""
    return _selection_adapter.dump_json(list(selected)).decode()


def load_selection(text: str | None) -> list[SelectedService]:
    """Parse a stored selection.

    Accepts the legacy ``additional_services`` key. Empty input yields an
    empty selection.

    Raises:
        SelectionError: If the stored value is not a valid selection list.
    """
    if not text:
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SelectionError(f"Stored selection is not valid JSON: {e}") from e

    if data is None:
        return []
    # Older configurations were keyed by service id
    if isinstance(data, dict):
        data = list(data.values())

    try:
        return _selection_adapter.validate_python(data)
    except ValidationError as e:
        raise SelectionError(f"Stored selection is malformed: {e}") from e


def add_on_names(details: ServiceDetails, add_on_ids: Iterable[int]) -> list[str]:
    """Display names of the given add-ons, in the service's own order."""
    wanted = set(add_on_ids)
    return [add_on.name for add_on in details.service.add_ons if add_on.id in wanted]


def describe_selection(details: ServiceDetails, selected: SelectedService) -> str:
    """Human-readable summary of the add-ons enabled for a service."""
    names = add_on_names(details, selected.add_on_ids)
    if not names:
        return NO_ADD_ONS_DESCRIPTION
    return ADD_ONS_DESCRIPTION.format(services=", ".join(names))
