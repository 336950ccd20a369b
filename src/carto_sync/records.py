"""Records: the top-level unit owning a root feature plus its own metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .features import EMPTY_LINK, Feature, Link, audit_fields
from .form_values import FormValues
from .forms import Form
from .payloads import RecordPayload


@dataclass(frozen=True)
class Record:
    id: str
    form: Form
    root: Feature
    row_id: Optional[int] = None
    status: Optional[str] = None
    project: Link = EMPTY_LINK
    assigned_to: Link = EMPTY_LINK
    created_by: Link = EMPTY_LINK
    updated_by: Link = EMPTY_LINK
    changeset: Link = EMPTY_LINK
    altitude: Optional[float] = None
    speed: Optional[float] = None
    course: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    horizontal_accuracy: Optional[float] = None

    @property
    def latitude(self) -> Optional[float]:
        return self.root.latitude

    @property
    def longitude(self) -> Optional[float]:
        return self.root.longitude


def record_from_json(form: Form, data: Mapping[str, Any]) -> Record:
    """Build a :class:`Record` of ``form`` from a record document."""
    if "record" in data and isinstance(data["record"], Mapping):
        data = data["record"]
    payload = RecordPayload.model_validate(data)
    root = Feature(
        form_values=FormValues.from_json(form.value_elements(), payload.form_values),
        latitude=payload.latitude,
        longitude=payload.longitude,
        title_field_keys=form.title_field_keys,
        **audit_fields(payload),
    )
    return Record(
        id=payload.id,
        form=form,
        root=root,
        row_id=payload.row_id,
        status=payload.status,
        project=Link(payload.project_row_id, payload.project_id),
        assigned_to=Link(payload.assigned_to_row_id, payload.assigned_to_id),
        created_by=root.created_by,
        updated_by=root.updated_by,
        changeset=root.changeset,
        altitude=payload.altitude,
        speed=payload.speed,
        course=payload.course,
        vertical_accuracy=payload.vertical_accuracy,
        horizontal_accuracy=payload.horizontal_accuracy,
    )
