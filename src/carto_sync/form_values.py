"""Entered values for one feature, one class per family of element types."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from functools import cached_property
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Union

from dateutil import parser as dtparse

from .features import Feature, audit_fields
from .forms import Element
from .payloads import RepeatableItemPayload

MAX_YEAR = 9999

_YEAR_PATTERN = re.compile(r"^\s*(\d+)-")


@dataclass(frozen=True)
class OutOfRangeDate:
    """A date whose year cannot be stored (Python and PostgreSQL stop at 9999)."""

    text: str
    year: int


@dataclass(frozen=True)
class MultipleValue:
    element: Element
    value: Any


def parse_date(value: Any) -> Union[date, OutOfRangeDate, None]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    match = _YEAR_PATTERN.match(value)
    if match and int(match.group(1)) > MAX_YEAR:
        return OutOfRangeDate(value, int(match.group(1)))
    try:
        return dtparse.isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, dict)):
        return len(raw) == 0
    return False


class FormValue:
    """Default behaviour: the raw value is the column value."""

    def __init__(self, element: Element, raw: Any) -> None:
        self.element = element
        self.raw = raw

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.element.key!r}, {self.raw!r})"

    @property
    def key(self) -> str:
        return self.element.key

    @property
    def column_name(self) -> str:
        return "f" + self.element.key.lower()

    @property
    def is_empty(self) -> bool:
        return _is_blank(self.raw)

    @property
    def column_value(self) -> Any:
        return self.raw

    @property
    def display_value(self) -> Optional[str]:
        if self.is_empty:
            return None
        return str(self.raw)

    @property
    def searchable_value(self) -> Optional[str]:
        return self.display_value

    @property
    def multiple_values(self) -> list[MultipleValue]:
        return []

    def to_json(self) -> Any:
        return self.raw


class TextValue(FormValue):
    @property
    def column_value(self) -> Any:
        if not self.element.numeric or not isinstance(self.raw, str):
            return self.raw
        text = self.raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None


class ChoiceValue(FormValue):
    """Choice and classification values: ``{"choice_values": [...], "other_values": [...]}``."""

    @property
    def values(self) -> list[str]:
        if not isinstance(self.raw, Mapping):
            return []
        values = list(self.raw.get("choice_values") or [])
        values.extend(self.raw.get("other_values") or [])
        return [value for value in values if value is not None]

    @property
    def is_empty(self) -> bool:
        return not self.values

    @property
    def column_value(self) -> Any:
        return self.values or None

    @property
    def display_value(self) -> Optional[str]:
        return ", ".join(str(value) for value in self.values) or None

    @property
    def multiple_values(self) -> list[MultipleValue]:
        return [MultipleValue(self.element, value) for value in self.values]


class DateValue(FormValue):
    @property
    def column_value(self) -> Any:
        return parse_date(self.raw)

    def to_json(self) -> Any:
        if isinstance(self.raw, date):
            return self.raw.isoformat()
        return self.raw


class MediaValue(FormValue):
    """Photos, videos and audio: a list of ``{"<kind>_id": ..., "caption": ...}``."""

    ID_KEYS = ("photo_id", "video_id", "audio_id")

    @property
    def items(self) -> list[Mapping[str, Any]]:
        if not isinstance(self.raw, list):
            return []
        return [item for item in self.raw if isinstance(item, Mapping)]

    def _media_id(self, item: Mapping[str, Any]) -> Any:
        for key in self.ID_KEYS:
            if item.get(key) is not None:
                return item[key]
        return None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def column_value(self) -> Any:
        return {
            self.column_name: [self._media_id(item) for item in self.items],
            self.column_name + "_captions": [item.get("caption") for item in self.items],
        }

    @property
    def display_value(self) -> Optional[str]:
        ids = [str(self._media_id(item)) for item in self.items]
        return ", ".join(ids) or None

    @property
    def searchable_value(self) -> Optional[str]:
        captions = [item.get("caption") for item in self.items if item.get("caption")]
        return " ".join(captions) or None


class SignatureValue(FormValue):
    @property
    def is_empty(self) -> bool:
        return not isinstance(self.raw, Mapping) or not self.raw.get("signature_id")

    @property
    def column_value(self) -> Any:
        return {
            self.column_name: self.raw.get("signature_id"),
            self.column_name + "_timestamp": self.raw.get("timestamp"),
        }

    @property
    def display_value(self) -> Optional[str]:
        if self.is_empty:
            return None
        return str(self.raw["signature_id"])

    @property
    def searchable_value(self) -> Optional[str]:
        return None


class AddressValue(FormValue):
    PARTS = (
        "sub_thoroughfare",
        "thoroughfare",
        "suite",
        "locality",
        "sub_admin_area",
        "admin_area",
        "postal_code",
        "country",
    )

    def _part(self, name: str) -> Optional[str]:
        if not isinstance(self.raw, Mapping):
            return None
        return self.raw.get(name) or None

    def _join(self, *names: str) -> str:
        return " ".join(str(part) for part in map(self._part, names) if part)

    @property
    def is_empty(self) -> bool:
        return not any(self._part(name) for name in self.PARTS)

    @property
    def display_value(self) -> Optional[str]:
        street = self._join("sub_thoroughfare", "thoroughfare", "suite")
        city = self._join("locality", "admin_area", "postal_code")
        lines = [line for line in (street, city, self._part("country")) if line]
        return "\n".join(lines) or None

    @property
    def column_value(self) -> Any:
        columns: Dict[str, Any] = {self.column_name: self.display_value}
        for name in self.PARTS:
            columns[f"{self.column_name}_{name}"] = self._part(name)
        return columns


class RecordLinkValue(FormValue):
    @property
    def record_ids(self) -> list[str]:
        if not isinstance(self.raw, list):
            return []
        return [str(item["record_id"]) for item in self.raw if isinstance(item, Mapping) and item.get("record_id")]

    @property
    def is_empty(self) -> bool:
        return not self.record_ids

    @property
    def column_value(self) -> Any:
        return self.record_ids

    @property
    def display_value(self) -> Optional[str]:
        return ", ".join(self.record_ids) or None

    @property
    def multiple_values(self) -> list[MultipleValue]:
        return [MultipleValue(self.element, record_id) for record_id in self.record_ids]


class RepeatableValue(FormValue):
    """Nested items, expanded into :class:`Feature` objects on first access."""

    @property
    def raw_items(self) -> list[Mapping[str, Any]]:
        if not isinstance(self.raw, list):
            return []
        return [item for item in self.raw if isinstance(item, Mapping)]

    @property
    def is_empty(self) -> bool:
        return not self.raw_items

    @property
    def column_value(self) -> Any:
        return None

    @property
    def display_value(self) -> Optional[str]:
        count = len(self.raw_items)
        return f"{count} item" if count == 1 else f"{count} items"

    @property
    def searchable_value(self) -> Optional[str]:
        return None

    @cached_property
    def items(self) -> tuple[Feature, ...]:
        return tuple(
            repeatable_item_from_json(self.element, index, item)
            for index, item in enumerate(self.raw_items)
        )


VALUE_CLASSES: Dict[str, type] = {
    "TextField": TextValue,
    "ChoiceField": ChoiceValue,
    "ClassificationField": ChoiceValue,
    "DateField": DateValue,
    "DateTimeField": DateValue,
    "PhotoField": MediaValue,
    "VideoField": MediaValue,
    "AudioField": MediaValue,
    "SignatureField": SignatureValue,
    "AddressField": AddressValue,
    "RecordLinkField": RecordLinkValue,
    "Repeatable": RepeatableValue,
}


def form_value_for(element: Element, raw: Any) -> FormValue:
    value_class = VALUE_CLASSES.get(element.type, FormValue)
    return value_class(element, raw)


class FormValues:
    """Ordered form values of one feature, following element declaration order."""

    def __init__(self, values: Iterable[FormValue] = ()) -> None:
        self._values = list(values)
        self._by_key = {value.key: value for value in self._values}

    def __iter__(self) -> Iterator[FormValue]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str) -> Optional[FormValue]:
        return self._by_key.get(key)

    @property
    def repeatable_values(self) -> list[RepeatableValue]:
        return [value for value in self._values if isinstance(value, RepeatableValue)]

    def to_json(self) -> Dict[str, Any]:
        return {value.key: value.to_json() for value in self._values if not value.is_empty}

    @classmethod
    def from_json(cls, elements: Iterable[Element], data: Optional[Mapping[str, Any]]) -> "FormValues":
        data = data or {}
        return cls(form_value_for(element, data.get(element.key)) for element in elements)


def repeatable_item_from_json(element: Element, index: int, data: Mapping[str, Any]) -> Feature:
    payload = RepeatableItemPayload.model_validate(data)
    latitude, longitude = payload.coordinate()
    return Feature(
        form_values=FormValues.from_json(element.value_elements(), payload.form_values),
        element=element,
        index=index,
        latitude=latitude,
        longitude=longitude,
        title_field_keys=element.title_field_keys,
        **audit_fields(payload),
    )
