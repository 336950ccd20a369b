"""Row columns for one feature: entered values plus system metadata."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional, Union

from .features import Feature
from .form_values import FormValue, OutOfRangeDate
from .geometry import point_expression
from .models import StatementOptions
from .records import Record
from .statements import RawExpression, quote_literal

UNKNOWN_USER_ID = -1

SYSTEM_COLUMNS = frozenset(
    {
        "record_id",
        "record_resource_id",
        "resource_id",
        "index",
        "parent_resource_id",
        "project_id",
        "project_resource_id",
        "assigned_to_id",
        "assigned_to_resource_id",
        "created_by_id",
        "created_by_resource_id",
        "updated_by_id",
        "updated_by_resource_id",
        "changeset_id",
        "changeset_resource_id",
        "status",
        "latitude",
        "longitude",
        "altitude",
        "speed",
        "course",
        "vertical_accuracy",
        "horizontal_accuracy",
        "record_status",
        "record_project_id",
        "record_project_resource_id",
        "record_assigned_to_id",
        "record_assigned_to_resource_id",
        "title",
        "form_values",
        "record_index_text",
        "record_index",
        "the_geom",
        "created_at",
        "updated_at",
        "version",
        "server_created_at",
        "server_updated_at",
        "created_duration",
        "updated_duration",
        "edited_duration",
        "created_latitude",
        "created_longitude",
        "created_altitude",
        "created_horizontal_accuracy",
        "updated_latitude",
        "updated_longitude",
        "updated_altitude",
        "updated_horizontal_accuracy",
    }
)


class ColumnCollisionError(ValueError):
    """Raised when an entered value would overwrite a system column."""


@dataclass(frozen=True)
class ScalarColumn:
    name: str
    value: Any


@dataclass(frozen=True)
class CompositeColumns:
    columns: Mapping[str, Any]


ColumnContribution = Union[ScalarColumn, CompositeColumns]


def _is_scalar(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float, list, tuple, date, OutOfRangeDate))


def column_contribution(form_value: FormValue) -> Optional[ColumnContribution]:
    """Describe what a non-empty form value adds to its row, if anything.

    Strings, numbers, arrays and dates fill the element's own ``f<key>``
    column; mappings spread over several columns named by their keys. Dates
    past year 9999 are stored as NULL. Anything else adds nothing.
    """
    value = form_value.column_value

    if _is_scalar(value):
        if isinstance(value, OutOfRangeDate):
            value = None
        elif isinstance(value, tuple):
            value = list(value)
        return ScalarColumn(form_value.column_name, value)

    if isinstance(value, Mapping):
        return CompositeColumns(dict(value))

    return None


def column_values_for_feature(feature: Feature) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    for form_value in feature.form_values:
        if form_value.is_empty:
            continue

        contribution = column_contribution(form_value)
        if isinstance(contribution, ScalarColumn):
            values[contribution.name] = contribution.value
        elif isinstance(contribution, CompositeColumns):
            values.update(contribution.columns)

    return values


def merge_row_values(user_values: Mapping[str, Any], system_values: Mapping[str, Any]) -> Dict[str, Any]:
    reserved = SYSTEM_COLUMNS.union(system_values)
    collisions = sorted(reserved.intersection(user_values))
    if collisions:
        raise ColumnCollisionError(
            f"Form values collide with system columns: {', '.join(collisions)}"
        )
    values = dict(user_values)
    values.update(system_values)
    return values


def _set_if_present(values: Dict[str, Any], column: str, value: Any) -> None:
    if value is not None:
        values[column] = value


def _root_columns(values: Dict[str, Any], feature: Feature, record: Record) -> None:
    _set_if_present(values, "project_id", record.project.row_id)
    _set_if_present(values, "project_resource_id", record.project.resource_id)
    _set_if_present(values, "assigned_to_id", record.assigned_to.row_id)
    _set_if_present(values, "assigned_to_resource_id", record.assigned_to.resource_id)
    _set_if_present(values, "created_by_id", record.created_by.row_id)
    _set_if_present(values, "created_by_resource_id", record.created_by.resource_id)
    _set_if_present(values, "updated_by_id", record.updated_by.row_id)
    _set_if_present(values, "updated_by_resource_id", record.updated_by.resource_id)
    _set_if_present(values, "changeset_id", record.changeset.row_id)
    _set_if_present(values, "changeset_resource_id", record.changeset.resource_id)

    if record.status:
        values["status"] = record.status

    _set_if_present(values, "latitude", feature.latitude)
    _set_if_present(values, "longitude", feature.longitude)

    values["altitude"] = record.altitude
    values["speed"] = record.speed
    values["course"] = record.course
    values["vertical_accuracy"] = record.vertical_accuracy
    values["horizontal_accuracy"] = record.horizontal_accuracy


def _nested_columns(
    values: Dict[str, Any], feature: Feature, parent: Optional[Feature], record: Record
) -> None:
    values["resource_id"] = feature.id
    values["index"] = feature.index
    values["parent_resource_id"] = parent.id if parent is not None else None

    if feature.has_coordinate:
        values["latitude"] = feature.latitude
        values["longitude"] = feature.longitude

    if record.status:
        values["record_status"] = record.status

    _set_if_present(values, "record_project_id", record.project.row_id)
    _set_if_present(values, "record_project_resource_id", record.project.resource_id)
    _set_if_present(values, "record_assigned_to_id", record.assigned_to.row_id)
    _set_if_present(values, "record_assigned_to_resource_id", record.assigned_to.resource_id)

    if feature.created_by:
        values["created_by_id"] = feature.created_by.row_id
    _set_if_present(values, "created_by_resource_id", feature.created_by.resource_id)

    if feature.updated_by:
        values["updated_by_id"] = feature.updated_by.row_id
    _set_if_present(values, "updated_by_resource_id", feature.updated_by.resource_id)

    if feature.changeset:
        values["changeset_id"] = feature.changeset.row_id
        values["changeset_resource_id"] = feature.changeset.resource_id
    elif record.changeset.row_id is not None:
        values["changeset_id"] = record.changeset.row_id
        values["changeset_resource_id"] = record.changeset.resource_id


def setup_search(values: Dict[str, Any], feature: Feature, options: StatementOptions) -> Dict[str, Any]:
    if not options.search_index:
        return values

    searchable = feature.searchable_value
    values["record_index_text"] = searchable
    values["record_index"] = RawExpression(f"to_tsvector({quote_literal(searchable)})")
    return values


def system_column_values_for_feature(
    feature: Feature,
    parent: Optional[Feature],
    record: Record,
    options: Optional[StatementOptions] = None,
) -> Dict[str, Any]:
    options = options or StatementOptions()
    values: Dict[str, Any] = {
        "record_id": record.row_id,
        "record_resource_id": record.id,
    }

    if feature.is_root:
        _root_columns(values, feature, record)
    else:
        _nested_columns(values, feature, parent, record)

    values["title"] = feature.display_value
    values["form_values"] = json.dumps(feature.form_values.to_json(), default=str)

    setup_search(values, feature, options)

    if feature.has_coordinate:
        values["the_geom"] = point_expression(feature.latitude, feature.longitude)
    else:
        values["the_geom"] = None

    values["created_at"] = feature.client_created_at or feature.created_at
    values["updated_at"] = feature.client_updated_at or feature.updated_at
    values["version"] = feature.version

    if values.get("created_by_id") is None:
        values["created_by_id"] = UNKNOWN_USER_ID

    if values.get("updated_by_id") is None:
        values["updated_by_id"] = UNKNOWN_USER_ID

    values["server_created_at"] = feature.created_at
    values["server_updated_at"] = feature.updated_at

    values["created_duration"] = feature.created_duration
    values["updated_duration"] = feature.updated_duration
    values["edited_duration"] = feature.edited_duration

    values["created_latitude"] = feature.created_location.latitude
    values["created_longitude"] = feature.created_location.longitude
    values["created_altitude"] = feature.created_location.altitude
    values["created_horizontal_accuracy"] = feature.created_location.horizontal_accuracy

    values["updated_latitude"] = feature.updated_location.latitude
    values["updated_longitude"] = feature.updated_location.longitude
    values["updated_altitude"] = feature.updated_location.altitude
    values["updated_horizontal_accuracy"] = feature.updated_location.horizontal_accuracy

    return values
