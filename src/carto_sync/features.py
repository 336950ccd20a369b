from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .forms import Element
from .payloads import FeaturePayload, LocationPayload

if TYPE_CHECKING:
    from .form_values import FormValues


@dataclass(frozen=True)
class Link:
    """A linked entity known by its local row id and its resource id."""

    row_id: Optional[int] = None
    resource_id: Optional[str] = None

    def __bool__(self) -> bool:
        return self.row_id is not None or self.resource_id is not None


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    horizontal_accuracy: Optional[float] = None


EMPTY_LINK = Link()
EMPTY_LOCATION = Location()


@dataclass(frozen=True)
class Feature:
    """One row-producing unit: a record's root or one repeatable item.

    The root has no ``element``; a nested item carries the repeatable element
    that owns it and its position within that repeatable.
    """

    id: str
    form_values: "FormValues"
    element: Optional[Element] = None
    index: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client_created_at: Optional[datetime] = None
    client_updated_at: Optional[datetime] = None
    version: Optional[int] = None
    created_duration: Optional[int] = None
    updated_duration: Optional[int] = None
    edited_duration: Optional[int] = None
    created_location: Location = EMPTY_LOCATION
    updated_location: Location = EMPTY_LOCATION
    created_by: Link = EMPTY_LINK
    updated_by: Link = EMPTY_LINK
    changeset: Link = EMPTY_LINK
    title_field_keys: tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.element is None

    @property
    def has_coordinate(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def display_value(self) -> Optional[str]:
        parts = []
        for key in self.title_field_keys:
            form_value = self.form_values.get(key)
            if form_value is None or form_value.is_empty:
                continue
            text = form_value.display_value
            if text:
                parts.append(str(text))
        return ", ".join(parts) if parts else None

    @property
    def searchable_value(self) -> str:
        return " ".join(
            value.searchable_value
            for value in self.form_values
            if not value.is_empty and value.searchable_value
        )


def location_from_payload(payload: Optional[LocationPayload]) -> Location:
    if payload is None:
        return EMPTY_LOCATION
    return Location(
        latitude=payload.latitude,
        longitude=payload.longitude,
        altitude=payload.altitude,
        horizontal_accuracy=payload.horizontal_accuracy,
    )


def audit_fields(payload: FeaturePayload) -> dict:
    """Keyword arguments for :class:`Feature` shared by records and items."""
    return {
        "id": payload.id,
        "created_at": payload.created_at,
        "updated_at": payload.updated_at,
        "client_created_at": payload.client_created_at,
        "client_updated_at": payload.client_updated_at,
        "version": payload.version,
        "created_duration": payload.created_duration,
        "updated_duration": payload.updated_duration,
        "edited_duration": payload.edited_duration,
        "created_location": location_from_payload(payload.created_location),
        "updated_location": location_from_payload(payload.updated_location),
        "created_by": Link(payload.created_by_row_id, payload.created_by_id),
        "updated_by": Link(payload.updated_by_row_id, payload.updated_by_id),
        "changeset": Link(payload.changeset_row_id, payload.changeset_id),
    }
