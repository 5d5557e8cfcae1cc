from __future__ import annotations

import pytest
from pydantic import ValidationError

from backend.censusly.errors import DecodeError
from backend.censusly.records import (
    OverviewRecord,
    RECORD_TYPES,
    decode_record,
    expected_length,
    placeholder,
)
from backend.censusly.variables import Category, field_names, variable_codes


def _row(category: Category, fips: str = "06") -> list[str]:
    return [f"{index}.5" for index in range(len(field_names(category)))] + [fips]


def test_every_category_expects_one_cell_per_variable_plus_fips():
    for category in Category:
        assert expected_length(category) == len(variable_codes(category)) + 1
        assert RECORD_TYPES[category].value_fields() == field_names(category)


def test_overview_row_of_fifteen_cells_decodes():
    record = decode_record(Category.OVERVIEW, _row(Category.OVERVIEW))

    assert isinstance(record, OverviewRecord)
    assert record.state_fips == "06"
    for index, name in enumerate(field_names(Category.OVERVIEW)):
        assert record.value(name) == f"{index}.5"


def test_overview_row_of_fourteen_cells_is_a_decode_error():
    row = _row(Category.OVERVIEW)[:-1]

    with pytest.raises(DecodeError) as excinfo:
        decode_record(Category.OVERVIEW, row)

    assert excinfo.value.expected == 15
    assert excinfo.value.actual == 14
    assert excinfo.value.kind == "DecodeError"


def test_too_long_row_is_a_decode_error():
    with pytest.raises(DecodeError):
        decode_record(Category.HOUSING, _row(Category.HOUSING) + ["037"])


def test_null_and_empty_cells_become_none():
    row = _row(Category.ECONOMIC)
    row[0] = None
    row[1] = ""
    row[2] = "not a number"

    record = decode_record(Category.ECONOMIC, row)

    assert record.employed_pct is None
    assert record.unemployment_pct is None
    assert record.mean_travel_time == "not a number"
    assert record.walked_pct == "19.5"


def test_records_are_immutable():
    record = decode_record(Category.SOCIAL, _row(Category.SOCIAL))

    with pytest.raises(ValidationError):
        record.total_households = "1"  # type: ignore[misc]


def test_unknown_field_raises_key_error():
    record = decode_record(Category.OVERVIEW, _row(Category.OVERVIEW))

    with pytest.raises(KeyError):
        record.value("median_value")


def test_placeholder_has_every_field_unset():
    for category in Category:
        record = placeholder(category)
        assert record.is_empty()
        assert set(record.as_dict()) == set(field_names(category)) | {"state_fips"}
