from carto_sync.forms import Form
from carto_sync.naming import multiple_value_table_name_with_form, table_name_with_form


def test_root_table_name(repeatable_form: Form) -> None:
    assert table_name_with_form(repeatable_form) == "account_7_form_12"


def test_repeatable_table_name(repeatable_form: Form) -> None:
    repeatable = repeatable_form.find("sect1")

    assert table_name_with_form(repeatable_form, repeatable) == "account_7_form_12_sect1"


def test_values_table_name(repeatable_form: Form) -> None:
    assert multiple_value_table_name_with_form(repeatable_form) == "account_7_form_12_values"


def test_names_are_stable_across_calls(nested_form: Form) -> None:
    repeatable = nested_form.find("sect2")

    first = table_name_with_form(nested_form, repeatable)
    second = table_name_with_form(nested_form, repeatable)

    assert first == second == "account_1_form_3_sect2"
