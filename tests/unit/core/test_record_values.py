import pytest

from carto_sync.features import Feature
from carto_sync.form_values import FormValues, RepeatableValue
from carto_sync.forms import Element, Form
from carto_sync.models import StatementOptions
from carto_sync.record_values import (FeatureTraversalError,
                                      delete_for_form_statements,
                                      insert_child_features_for_feature_statements,
                                      iter_child_features,
                                      update_for_record_statements)
from carto_sync.records import Record
from carto_sync.statements import StatementKind


def _kinds(statements):
    return [statement.kind for statement in statements]


class TestUpdateForRecordStatements:
    def test_flat_record_gives_two_deletes_and_one_insert(self, flat_form, make_record) -> None:
        statements = update_for_record_statements(make_record(flat_form, {"a1": "Oak"}))

        assert _kinds(statements) == [StatementKind.DELETE, StatementKind.DELETE, StatementKind.INSERT]
        assert [statement.table for statement in statements] == [
            "account_7_form_12",
            "account_7_form_12_values",
            "account_7_form_12",
        ]
        for statement in statements[:2]:
            assert statement.values == {"record_resource_id": "rec-1"}
        assert statements[2].pk == "cartodb_id"

    def test_repeatable_items_add_one_insert_each(self, repeatable_form, make_record, make_item) -> None:
        items = [make_item(f"i{n}", {"r1": f"visit {n}"}) for n in range(4)]
        record = make_record(repeatable_form, {"a1": "Site", "sect1": items})

        statements = update_for_record_statements(record)
        deletes = [s for s in statements if s.kind is StatementKind.DELETE]
        inserts = [s for s in statements if s.kind is StatementKind.INSERT]

        assert len(deletes) == 3
        assert len(inserts) == 1 + 4
        assert _kinds(statements) == [StatementKind.DELETE] * 3 + [StatementKind.INSERT] * 5
        assert [s.table for s in deletes] == [
            "account_7_form_12",
            "account_7_form_12_sect1",
            "account_7_form_12_values",
        ]
        assert inserts[0].table == "account_7_form_12"
        assert [s.values["resource_id"] for s in inserts[1:]] == ["i0", "i1", "i2", "i3"]
        assert [s.values["index"] for s in inserts[1:]] == [0, 1, 2, 3]
        assert {s.table for s in inserts[1:]} == {"account_7_form_12_sect1"}

    def test_empty_repeatable_table_is_still_cleared(self, repeatable_form, make_record) -> None:
        statements = update_for_record_statements(make_record(repeatable_form))

        assert "account_7_form_12_sect1" in [s.table for s in statements if s.kind is StatementKind.DELETE]
        assert len(statements) == 4

    def test_same_record_state_gives_same_statements(self, repeatable_form, make_record, make_item) -> None:
        record = make_record(repeatable_form, {"sect1": [make_item("i1")]})

        first = [s.sql for s in update_for_record_statements(record)]
        second = [s.sql for s in update_for_record_statements(record)]

        assert first == second

    def test_user_and_system_columns_share_the_row(self, flat_form, make_record) -> None:
        insert = update_for_record_statements(make_record(flat_form, {"a1": "Oak"}))[-1]

        assert insert.values["fa1"] == "Oak"
        assert insert.values["record_resource_id"] == "rec-1"
        assert insert.values["the_geom"] is None


class TestNestedTraversal:
    def _record(self, nested_form, make_record, make_item):
        return make_record(
            nested_form,
            {
                "sect1": [
                    make_item(
                        "a",
                        {"r1": "A", "sect2": [make_item("a.1"), make_item("a.2")]},
                    ),
                    make_item("b", {"sect2": [make_item("b.1")]}),
                ],
                "sect3": [make_item("c")],
            },
        )

    def test_depth_first_in_declaration_order(self, nested_form, make_record, make_item) -> None:
        record = self._record(nested_form, make_record, make_item)

        inserts = [s for s in update_for_record_statements(record) if s.kind is StatementKind.INSERT]

        assert [s.values.get("resource_id") for s in inserts] == [None, "a", "a.1", "a.2", "b", "b.1", "c"]
        assert [s.table for s in inserts] == [
            "account_1_form_3",
            "account_1_form_3_sect1",
            "account_1_form_3_sect2",
            "account_1_form_3_sect2",
            "account_1_form_3_sect1",
            "account_1_form_3_sect2",
            "account_1_form_3_sect3",
        ]

    def test_children_point_at_their_parent(self, nested_form, make_record, make_item) -> None:
        record = self._record(nested_form, make_record, make_item)

        inserts = insert_child_features_for_feature_statements(nested_form, record.root, record)
        parents = {s.values["resource_id"]: s.values["parent_resource_id"] for s in inserts}

        assert parents == {"a": "rec-1", "a.1": "a", "a.2": "a", "b": "rec-1", "b.1": "b", "c": "rec-1"}

    def test_every_form_table_is_cleared(self, nested_form, make_record, make_item) -> None:
        record = self._record(nested_form, make_record, make_item)

        deletes = [s.table for s in update_for_record_statements(record) if s.kind is StatementKind.DELETE]

        assert deletes == [
            "account_1_form_3",
            "account_1_form_3_sect1",
            "account_1_form_3_sect2",
            "account_1_form_3_sect3",
            "account_1_form_3_values",
        ]

    def test_max_depth_guard(self, nested_form, make_record, make_item) -> None:
        record = self._record(nested_form, make_record, make_item)

        with pytest.raises(FeatureTraversalError):
            update_for_record_statements(record, StatementOptions(max_depth=1))

        assert len(update_for_record_statements(record, StatementOptions(max_depth=2))) == 5 + 7

    def test_deep_nesting_does_not_hit_recursion_limit(self) -> None:
        depth = 1500
        element = Element(key="deep", type="Repeatable")
        item = None
        for level in reversed(range(depth)):
            children = [item] if item is not None else []
            values = FormValues([_prebuilt_repeatable(element, children)])
            item = Feature(id=f"n{level}", form_values=values, element=element, index=0)
        root = Feature(id="root", form_values=FormValues([_prebuilt_repeatable(element, [item])]))

        visited = list(iter_child_features(root))

        assert len(visited) == depth
        assert visited[-1][0].id == f"n{depth - 1}"

    def test_cycles_are_rejected(self) -> None:
        element = Element(key="loop", type="Repeatable")
        repeatable = _prebuilt_repeatable(element, [])
        item = Feature(id="x", form_values=FormValues([repeatable]), element=element, index=0)
        repeatable.__dict__["items"] = (item,)
        root = Feature(id="root", form_values=FormValues([_prebuilt_repeatable(element, [item])]))

        with pytest.raises(FeatureTraversalError):
            list(iter_child_features(root))


def _prebuilt_repeatable(element, items):
    value = RepeatableValue(element, [{"id": item.id} for item in items])
    value.__dict__["items"] = tuple(items)
    return value


class TestMultipleValues:
    def test_disabled_by_default(self, flat_form, make_record) -> None:
        record = make_record(flat_form, {"c1": {"choice_values": ["oak", "elm"]}})

        statements = update_for_record_statements(record)

        assert [s.table for s in statements if s.kind is StatementKind.INSERT] == ["account_7_form_12"]

    def test_rows_follow_feature_inserts(self, repeatable_form, make_record, make_item) -> None:
        form = repeatable_form
        form_with_choice = Form(
            id=form.id,
            row_id=form.row_id,
            account_row_id=form.account_row_id,
            title_field_keys=form.title_field_keys,
            elements=form.elements + (Element(key="c1", type="ChoiceField"),),
        )
        record = make_record(
            form_with_choice,
            {"c1": {"choice_values": ["oak"], "other_values": ["yew"]}, "sect1": [make_item("i1")]},
        )

        statements = update_for_record_statements(record, StatementOptions(multiple_values=True))
        value_rows = [s for s in statements if s.kind is StatementKind.INSERT and s.table.endswith("_values")]

        assert statements[-2:] == value_rows
        assert [row.values for row in value_rows] == [
            {
                "key": "c1",
                "text_value": "oak",
                "record_id": 42,
                "record_resource_id": "rec-1",
                "parent_resource_id": None,
            },
            {
                "key": "c1",
                "text_value": "yew",
                "record_id": 42,
                "record_resource_id": "rec-1",
                "parent_resource_id": None,
            },
        ]


def test_delete_for_form_is_unfiltered(nested_form) -> None:
    statements = delete_for_form_statements(nested_form)

    assert all(s.kind is StatementKind.DELETE and s.values == {} for s in statements)
    assert [s.sql for s in statements] == [
        'DELETE FROM "account_1_form_3";',
        'DELETE FROM "account_1_form_3_sect1";',
        'DELETE FROM "account_1_form_3_sect2";',
        'DELETE FROM "account_1_form_3_sect3";',
        'DELETE FROM "account_1_form_3_values";',
    ]


def test_record_type_exposes_root_coordinate(flat_form, make_record) -> None:
    record: Record = make_record(flat_form, latitude=1.5, longitude=2.5)

    assert (record.latitude, record.longitude) == (1.5, 2.5)
