"""Pydantic models validating Fulcrum-style form and record documents."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ElementPayload(BaseModel):
    key: Optional[str] = None
    type: str
    label: Optional[str] = None
    data_name: Optional[str] = None
    numeric: bool = False
    title_field_keys: list[str] = Field(default_factory=list)
    elements: list["ElementPayload"] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class FormPayload(BaseModel):
    id: str
    row_id: int
    account_id: Optional[str] = None
    account_row_id: int
    name: Optional[str] = None
    title_field_keys: list[str] = Field(default_factory=list)
    elements: list[ElementPayload] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class LocationPayload(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    horizontal_accuracy: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class GeometryPayload(BaseModel):
    type: str = "Point"
    coordinates: list[float] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class FeaturePayload(BaseModel):
    """Fields shared by records and repeatable items."""

    id: str
    form_values: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client_created_at: Optional[datetime] = None
    client_updated_at: Optional[datetime] = None
    version: Optional[int] = None
    created_duration: Optional[int] = None
    updated_duration: Optional[int] = None
    edited_duration: Optional[int] = None
    created_location: Optional[LocationPayload] = None
    updated_location: Optional[LocationPayload] = None
    created_by_id: Optional[str] = None
    created_by_row_id: Optional[int] = None
    updated_by_id: Optional[str] = None
    updated_by_row_id: Optional[int] = None
    changeset_id: Optional[str] = None
    changeset_row_id: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class RepeatableItemPayload(FeaturePayload):
    geometry: Optional[GeometryPayload] = None

    def coordinate(self) -> tuple[Optional[float], Optional[float]]:
        if self.geometry is None or len(self.geometry.coordinates) < 2:
            return None, None
        longitude, latitude = self.geometry.coordinates[:2]
        return latitude, longitude


class RecordPayload(FeaturePayload):
    row_id: Optional[int] = None
    form_id: Optional[str] = None
    status: Optional[str] = None
    project_id: Optional[str] = None
    project_row_id: Optional[int] = None
    assigned_to_id: Optional[str] = None
    assigned_to_row_id: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    course: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    horizontal_accuracy: Optional[float] = None
