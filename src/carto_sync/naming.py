"""Table names derived from a form's account and row identifiers."""

from __future__ import annotations

from typing import Optional

from .forms import Element, Form


def table_name_with_form(form: Form, repeatable: Optional[Element] = None) -> str:
    if repeatable is None:
        return f"account_{form.account_row_id}_form_{form.row_id}"
    return f"account_{form.account_row_id}_form_{form.row_id}_{repeatable.key}"


def multiple_value_table_name_with_form(form: Form) -> str:
    return f"account_{form.account_row_id}_form_{form.row_id}_values"
