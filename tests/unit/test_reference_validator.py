from __future__ import annotations

import pytest

from app.core.spreadsheet import SheetRow
from app.services.reference_validator import (
    ReferenceSet,
    RowIssue,
    coerce_identifier,
    collect_reference_ids,
    validate_rows,
)


def _snapshot() -> ReferenceSet:
    return ReferenceSet(ids={
        "constituency_id": {5},
        "block_id": {7},
        "booth_id": {9},
        "part_id": {11},
    })


def _row(row_index: int, **data) -> SheetRow:
    base = {"voter_id": f"V{row_index}", "name": "Asha"}
    base.update(data)
    return SheetRow(row_index=row_index, data=base)


@pytest.mark.parametrize("value, expected", [(5, 5), (5.0, 5), ("5", 5), (" 12 ", 12), ("7.0", 7)])
def test_coerce_identifier_accepts_integral_values(value, expected):
    assert coerce_identifier(value) == expected


@pytest.mark.parametrize("value", ["abc", 5.5, "5.5", True, ""])
def test_coerce_identifier_rejects_other_values(value):
    with pytest.raises(ValueError):
        coerce_identifier(value)


def test_collect_reference_ids_skips_blank_and_invalid():
    rows = [
        _row(2, constituency_id=5, block_id=None),
        _row(3, constituency_id="5", block_id="x"),
        _row(4, constituency_id=6.0, part_id=11),
    ]
    requested = collect_reference_ids(rows)
    assert requested["constituency_id"] == {5, 6}
    assert requested["block_id"] == set()
    assert requested["booth_id"] == set()
    assert requested["part_id"] == {11}


def test_missing_constituency_is_reported_with_sheet_row():
    rows = [
        _row(2, voter_id="V1", constituency_id=5),
        _row(3, voter_id="V2", constituency_id=999),
    ]
    outcome = validate_rows(rows, _snapshot())
    assert [r.get("voter_id") for r in outcome.valid] == ["V1"]
    assert outcome.invalid == [RowIssue(row_index=3, voter_id="V2", issues=["constituency_id 999 not found"])]
    assert outcome.invalid[0].to_dict() == {
        "rowIndex": 3,
        "voter_id": "V2",
        "issues": ["constituency_id 999 not found"],
    }


def test_first_data_row_reports_row_index_two():
    outcome = validate_rows([_row(2, part_id=404)], _snapshot())
    assert outcome.invalid[0].row_index == 2
    assert outcome.invalid[0].issues == ["part_id 404 not found"]


def test_every_failing_reference_is_listed_in_field_order():
    row = _row(5, constituency_id=1, block_id=2, booth_id=3, part_id=4)
    outcome = validate_rows([row], _snapshot())
    assert outcome.invalid[0].issues == [
        "constituency_id 1 not found",
        "block_id 2 not found",
        "booth_id 3 not found",
        "part_id 4 not found",
    ]


def test_null_references_are_not_checked():
    outcome = validate_rows([_row(2, constituency_id=None, block_id="")], ReferenceSet())
    assert outcome.invalid == []
    assert len(outcome.valid) == 1


def test_required_fields_and_bad_values():
    rows = [
        SheetRow(row_index=2, data={"voter_id": None, "name": None}),
        _row(3, booth_id="north"),
        _row(4, age="forty"),
    ]
    outcome = validate_rows(rows, _snapshot())
    assert [(i.row_index, i.issues) for i in outcome.invalid] == [
        (2, ["voter_id is required", "name is required"]),
        (3, ["booth_id north is not a valid identifier"]),
        (4, ["age forty is not a number"]),
    ]


def test_numeric_voter_id_is_reported_as_string():
    outcome = validate_rows([_row(2, voter_id=1001, block_id=70)], _snapshot())
    assert outcome.invalid[0].voter_id == "1001"


@pytest.mark.parametrize("value", [2**31, "99999999999999999999", 1e20, -2**31 - 1])
def test_coerce_identifier_rejects_values_outside_integer_column(value):
    with pytest.raises(ValueError):
        coerce_identifier(value)


def test_integer_column_bounds_are_accepted():
    assert coerce_identifier(2**31 - 1) == 2**31 - 1
    assert coerce_identifier(str(-2**31)) == -2**31


def test_oversized_reference_and_age_are_row_issues():
    rows = [
        _row(2, constituency_id="99999999999999999999"),
        _row(3, age="99999999999999999999"),
    ]
    assert collect_reference_ids(rows)["constituency_id"] == set()
    outcome = validate_rows(rows, _snapshot())
    assert outcome.valid == []
    assert [(i.row_index, i.issues) for i in outcome.invalid] == [
        (2, ["constituency_id 99999999999999999999 is not a valid identifier"]),
        (3, ["age 99999999999999999999 is not a number"]),
    ]
