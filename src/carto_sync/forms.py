"""Form schema definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Tuple

from .payloads import ElementPayload, FormPayload

REPEATABLE = "Repeatable"
SECTION = "Section"

# Element types that never carry a value.
LAYOUT_TYPES = frozenset({SECTION, "Label"})


@dataclass(frozen=True)
class Element:
    key: str
    type: str
    label: Optional[str] = None
    data_name: Optional[str] = None
    numeric: bool = False
    title_field_keys: Tuple[str, ...] = ()
    elements: Tuple["Element", ...] = ()

    @property
    def is_repeatable(self) -> bool:
        return self.type == REPEATABLE

    @property
    def is_section(self) -> bool:
        return self.type == SECTION

    def value_elements(self) -> Iterator["Element"]:
        return iter_value_elements(self.elements)


@dataclass(frozen=True)
class Form:
    id: str
    row_id: int
    account_row_id: int
    account_id: Optional[str] = None
    name: Optional[str] = None
    title_field_keys: Tuple[str, ...] = ()
    elements: Tuple[Element, ...] = ()

    def all_elements(self) -> Iterator[Element]:
        return iter_all_elements(self.elements)

    def elements_of_type(self, element_type: str) -> list[Element]:
        return [element for element in self.all_elements() if element.type == element_type]

    def value_elements(self) -> Iterator[Element]:
        return iter_value_elements(self.elements)

    def find(self, key: str) -> Optional[Element]:
        for element in self.all_elements():
            if element.key == key:
                return element
        return None


def iter_all_elements(elements: Tuple[Element, ...]) -> Iterator[Element]:
    """Yield every element depth-first in declaration order."""
    for element in elements:
        yield element
        yield from iter_all_elements(element.elements)


def iter_value_elements(elements: Tuple[Element, ...]) -> Iterator[Element]:
    """Yield the elements whose values live on the same feature.

    Sections are transparent; repeatables are yielded but not descended into,
    since their children belong to the nested items.
    """
    for element in elements:
        if element.is_section:
            yield from iter_value_elements(element.elements)
        elif element.type not in LAYOUT_TYPES:
            yield element


def element_from_payload(payload: ElementPayload) -> Element:
    return Element(
        key=payload.key or "",
        type=payload.type,
        label=payload.label,
        data_name=payload.data_name,
        numeric=payload.numeric,
        title_field_keys=tuple(payload.title_field_keys),
        elements=tuple(element_from_payload(child) for child in payload.elements),
    )


def form_from_json(data: Mapping[str, Any]) -> Form:
    """Build a :class:`Form` from a form document (optionally wrapped in ``{"form": ...}``)."""
    if "form" in data and isinstance(data["form"], Mapping):
        data = data["form"]
    payload = FormPayload.model_validate(data)
    return Form(
        id=payload.id,
        row_id=payload.row_id,
        account_row_id=payload.account_row_id,
        account_id=payload.account_id,
        name=payload.name,
        title_field_keys=tuple(payload.title_field_keys),
        elements=tuple(element_from_payload(element) for element in payload.elements),
    )
