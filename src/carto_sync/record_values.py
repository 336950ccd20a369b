"""Delete-then-insert statement lists mirroring a record into its form's tables.

Every update replaces the record's rows wholesale: one delete per table the
form owns (root, each repeatable, the ``_values`` table), then one insert per
feature. Callers must execute the statements in order; a parent's row always
precedes its children's rows.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from .columns import (column_values_for_feature, merge_row_values,
                      system_column_values_for_feature)
from .features import Feature
from .forms import REPEATABLE, Form
from .models import StatementOptions
from .naming import multiple_value_table_name_with_form, table_name_with_form
from .records import Record
from .statements import Statement, delete_statement, insert_statement

LOGGER = logging.getLogger("carto_sync.record_values")


class FeatureTraversalError(ValueError):
    """Raised when nested items form a cycle or exceed the configured depth."""


def update_for_record_statements(
    record: Record, options: Optional[StatementOptions] = None
) -> List[Statement]:
    statements: List[Statement] = []

    statements.extend(delete_for_record_statements(record, record.form))
    statements.extend(insert_for_record_statements(record, record.form, options))

    LOGGER.debug("Record %s produced %s statements", record.id, len(statements))
    return statements


def insert_for_record_statements(
    record: Record, form: Form, options: Optional[StatementOptions] = None
) -> List[Statement]:
    options = options or StatementOptions()
    statements: List[Statement] = []

    statements.append(insert_row_for_feature_statement(form, record.root, None, record, options))
    statements.extend(insert_child_features_for_feature_statements(form, record.root, record, options))

    if options.multiple_values:
        statements.extend(insert_multiple_values_for_feature_statements(form, record.root, record, options))
        statements.extend(insert_child_multiple_values_for_feature_statements(form, record.root, record, options))

    return statements


def insert_row_for_feature_statement(
    form: Form,
    feature: Feature,
    parent: Optional[Feature],
    record: Record,
    options: Optional[StatementOptions] = None,
) -> Statement:
    options = options or StatementOptions()
    values = merge_row_values(
        column_values_for_feature(feature),
        system_column_values_for_feature(feature, parent, record, options),
    )
    table_name = table_name_with_form(form, feature.element)
    return insert_statement(table_name, values, pk=options.primary_key)


def iter_child_features(
    feature: Feature, options: Optional[StatementOptions] = None
) -> Iterator[Tuple[Feature, Feature]]:
    """Yield ``(item, parent)`` for every nested item below ``feature``.

    Depth-first and pre-order: an item comes before its own children, elements
    keep their declaration order and items their position.
    """
    max_depth = options.max_depth if options else None
    stack: List[Tuple[Feature, Feature, Tuple[int, ...]]] = []

    def push_children(parent: Feature, path: Tuple[int, ...]) -> None:
        children = [
            item
            for form_value in parent.form_values.repeatable_values
            for item in form_value.items
        ]
        for item in reversed(children):
            stack.append((item, parent, path))

    push_children(feature, (id(feature),))

    while stack:
        item, parent, path = stack.pop()
        if id(item) in path:
            raise FeatureTraversalError(f"Repeatable item {item.id} is nested inside itself")
        if max_depth is not None and len(path) > max_depth:
            raise FeatureTraversalError(
                f"Repeatable item {item.id} is nested deeper than {max_depth} levels"
            )
        yield item, parent
        push_children(item, path + (id(item),))


def insert_child_features_for_feature_statements(
    form: Form,
    feature: Feature,
    record: Record,
    options: Optional[StatementOptions] = None,
) -> List[Statement]:
    return [
        insert_row_for_feature_statement(form, item, parent, record, options)
        for item, parent in iter_child_features(feature, options)
    ]


def insert_multiple_values_for_feature_statements(
    form: Form,
    feature: Feature,
    record: Record,
    options: Optional[StatementOptions] = None,
) -> List[Statement]:
    options = options or StatementOptions()
    table_name = multiple_value_table_name_with_form(form)
    parent_resource_id = None if feature.is_root else feature.id

    statements: List[Statement] = []
    for form_value in feature.form_values:
        if form_value.is_empty:
            continue
        for multiple_value in form_value.multiple_values:
            values = {
                "key": multiple_value.element.key,
                "text_value": multiple_value.value,
                "record_id": record.row_id,
                "record_resource_id": record.id,
                "parent_resource_id": parent_resource_id,
            }
            statements.append(insert_statement(table_name, values, pk=options.primary_key))
    return statements


def insert_child_multiple_values_for_feature_statements(
    form: Form,
    feature: Feature,
    record: Record,
    options: Optional[StatementOptions] = None,
) -> List[Statement]:
    statements: List[Statement] = []
    for item, _parent in iter_child_features(feature, options):
        statements.extend(insert_multiple_values_for_feature_statements(form, item, record, options))
    return statements


def _form_table_names(form: Form) -> List[str]:
    names = [table_name_with_form(form)]
    names.extend(table_name_with_form(form, element) for element in form.elements_of_type(REPEATABLE))
    names.append(multiple_value_table_name_with_form(form))
    return names


def delete_rows_for_record_statement(record: Record, table_name: str) -> Statement:
    return delete_statement(table_name, {"record_resource_id": record.id})


def delete_rows_statement(table_name: str) -> Statement:
    return delete_statement(table_name)


def delete_for_record_statements(record: Record, form: Form) -> List[Statement]:
    return [delete_rows_for_record_statement(record, name) for name in _form_table_names(form)]


def delete_for_form_statements(form: Form) -> List[Statement]:
    return [delete_rows_statement(name) for name in _form_table_names(form)]
