"""Mirror form-structured field records into flat CARTO / PostGIS tables."""

from .forms import Element, Form, form_from_json
from .models import StatementOptions
from .record_values import (FeatureTraversalError, delete_for_form_statements,
                            update_for_record_statements)
from .records import Record, record_from_json
from .statements import RawExpression, Statement, StatementKind, render_statement

__all__ = [
    "Element",
    "FeatureTraversalError",
    "Form",
    "RawExpression",
    "Record",
    "Statement",
    "StatementKind",
    "StatementOptions",
    "delete_for_form_statements",
    "form_from_json",
    "record_from_json",
    "render_statement",
    "update_for_record_statements",
]
