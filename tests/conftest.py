from __future__ import annotations

from typing import Any

import pytest

from carto_sync.forms import Form, form_from_json
from carto_sync.records import Record, record_from_json

FLAT_FORM = {
    "id": "form-flat",
    "row_id": 12,
    "account_row_id": 7,
    "name": "Trees",
    "title_field_keys": ["a1"],
    "elements": [
        {"key": "a1", "type": "TextField", "data_name": "name"},
        {"key": "N1", "type": "TextField", "data_name": "height", "numeric": True},
        {"key": "d1", "type": "DateField", "data_name": "planted"},
        {
            "key": "s0",
            "type": "Section",
            "elements": [{"key": "c1", "type": "ChoiceField", "data_name": "species"}],
        },
        {"key": "p1", "type": "PhotoField", "data_name": "photos"},
        {"key": "l0", "type": "Label", "label": "Notes"},
    ],
}

REPEATABLE_FORM = {
    "id": "form-rep",
    "row_id": 12,
    "account_row_id": 7,
    "name": "Inspections",
    "title_field_keys": ["a1"],
    "elements": [
        {"key": "a1", "type": "TextField"},
        {
            "key": "sect1",
            "type": "Repeatable",
            "data_name": "visits",
            "title_field_keys": ["r1"],
            "elements": [{"key": "r1", "type": "TextField"}],
        },
    ],
}

NESTED_FORM = {
    "id": "form-nested",
    "row_id": 3,
    "account_row_id": 1,
    "title_field_keys": ["a1"],
    "elements": [
        {"key": "a1", "type": "TextField"},
        {
            "key": "sect1",
            "type": "Repeatable",
            "title_field_keys": ["r1"],
            "elements": [
                {"key": "r1", "type": "TextField"},
                {
                    "key": "sect2",
                    "type": "Repeatable",
                    "elements": [{"key": "q1", "type": "ChoiceField"}],
                },
            ],
        },
        {"key": "sect3", "type": "Repeatable", "elements": [{"key": "z1", "type": "TextField"}]},
    ],
}


def record_document(form_values: dict[str, Any] | None = None, **overrides: Any) -> dict[str, Any]:
    document: dict[str, Any] = {
        "id": "rec-1",
        "row_id": 42,
        "status": "active",
        "version": 3,
        "created_at": "2024-05-01T10:00:00Z",
        "updated_at": "2024-05-02T10:00:00Z",
        "form_values": form_values or {},
    }
    document.update(overrides)
    return document


def repeatable_item(item_id: str, form_values: dict[str, Any] | None = None, **overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": item_id,
        "form_values": form_values or {},
        "created_at": "2024-05-01T11:00:00Z",
        "updated_at": "2024-05-01T12:00:00Z",
        "version": 1,
    }
    item.update(overrides)
    return item


@pytest.fixture
def flat_form() -> Form:
    return form_from_json(FLAT_FORM)


@pytest.fixture
def repeatable_form() -> Form:
    return form_from_json(REPEATABLE_FORM)


@pytest.fixture
def nested_form() -> Form:
    return form_from_json(NESTED_FORM)


@pytest.fixture
def make_record():
    def _make(form: Form, form_values: dict[str, Any] | None = None, **overrides: Any) -> Record:
        return record_from_json(form, record_document(form_values, **overrides))

    return _make


@pytest.fixture
def make_item():
    return repeatable_item
