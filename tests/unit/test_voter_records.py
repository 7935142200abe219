from __future__ import annotations

import pytest

from app.core.spreadsheet import SheetRow
from app.services.voter_dedup import normalize_voter_id
from app.services.voter_writer import build_voter_record, chunked


@pytest.mark.parametrize("value, expected", [
    ("V1", "V1"),
    ("  V1 ", "V1"),
    (1001, "1001"),
    (1001.0, "1001"),
    (None, None),
    ("   ", None),
])
def test_normalize_voter_id(value, expected):
    assert normalize_voter_id(value) == expected


def test_build_record_applies_defaults_and_coercions():
    row = SheetRow(row_index=2, data={
        "constituency_id": "5",
        "block_id": 7,
        "booth_id": None,
        "voter_id": 1001,
        "name": "Asha",
        "age": 42.0,
        "phone": 9876543210,
        "gender": None,
    })
    record = build_voter_record(row)
    assert record["constituency_id"] == 5
    assert record["block_id"] == 7
    assert record["booth_id"] is None
    assert record["part_id"] is None
    assert record["voter_id"] == "1001"
    assert record["age"] == 42
    assert record["phone"] == "9876543210"
    assert record["gender"] == "male"
    assert record["notes"] is None
    assert record["photo"] is None


def test_build_record_lowercases_gender():
    record = build_voter_record(SheetRow(row_index=2, data={"voter_id": "V1", "name": "A", "gender": "FEMALE"}))
    assert record["gender"] == "female"


def test_build_record_has_uniform_keys():
    sparse = build_voter_record(SheetRow(row_index=2, data={"voter_id": "V1", "name": "A"}))
    full = build_voter_record(SheetRow(row_index=3, data={"voter_id": "V2", "name": "B", "notes": "x"}))
    assert set(sparse) == set(full)


def test_chunked_splits_without_loss():
    items = list(range(2500))
    chunks = list(chunked(items, 1000))
    assert [len(c) for c in chunks] == [1000, 1000, 500]
    assert [i for c in chunks for i in c] == items


def test_chunked_rejects_zero_size():
    with pytest.raises(ValueError):
        list(chunked([1, 2], 0))
