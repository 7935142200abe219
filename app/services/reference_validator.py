"""
Foreign key validation of voter rows against the four reference tables.

The reference identifiers are fetched once per import (one IN query per
table) and every row is checked against that snapshot.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set
import logging
from app.core.spreadsheet import SheetRow
from app.models.reference import Constituency, Block, Booth, Part
from app.services.voter_dedup import LOOKUP_BATCH_SIZE, normalize_voter_id

logger = logging.getLogger(__name__)

# Voter column -> reference table it points at, in reporting order
REFERENCE_FIELDS = {
    "constituency_id": Constituency,
    "block_id": Block,
    "booth_id": Booth,
    "part_id": Part,
}

# Bounds of the 32-bit INTEGER columns the identifiers and age are stored in
INT_COLUMN_MIN = -2**31
INT_COLUMN_MAX = 2**31 - 1


@dataclass
class RowIssue:
    row_index: int
    voter_id: Optional[str]
    issues: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"rowIndex": self.row_index, "voter_id": self.voter_id, "issues": list(self.issues)}


@dataclass
class ReferenceSet:
    """Identifiers that existed in each reference table when the snapshot was taken"""
    ids: Dict[str, Set[int]] = field(default_factory=dict)

    def contains(self, field_name: str, identifier: int) -> bool:
        return identifier in self.ids.get(field_name, set())


@dataclass
class ValidationOutcome:
    valid: List[SheetRow] = field(default_factory=list)
    invalid: List[RowIssue] = field(default_factory=list)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an identifier: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"not an identifier: {value!r}")
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        number = float(text)
        if not number.is_integer():
            raise
        return int(number)


def coerce_identifier(value: Any) -> int:
    """Coerce a spreadsheet cell to an INTEGER column value; raises ValueError otherwise"""
    number = _as_int(value)
    if not INT_COLUMN_MIN <= number <= INT_COLUMN_MAX:
        raise ValueError(f"out of range for an integer column: {value!r}")
    return number


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def collect_reference_ids(rows: Sequence[SheetRow]) -> Dict[str, Set[int]]:
    """Distinct, coercible, non-null identifiers referenced per field"""
    requested: Dict[str, Set[int]] = {name: set() for name in REFERENCE_FIELDS}
    for row in rows:
        for field_name in REFERENCE_FIELDS:
            value = row.get(field_name)
            if _is_blank(value):
                continue
            try:
                requested[field_name].add(coerce_identifier(value))
            except ValueError:
                continue
    return requested


async def load_reference_set(session: AsyncSession, rows: Sequence[SheetRow]) -> ReferenceSet:
    """Fetch which referenced identifiers currently exist.

    A table is not queried when no row references it.
    """
    requested = collect_reference_ids(rows)
    snapshot = ReferenceSet()
    for field_name, model in REFERENCE_FIELDS.items():
        wanted = sorted(requested[field_name])
        found: Set[int] = set()
        for start in range(0, len(wanted), LOOKUP_BATCH_SIZE):
            result = await session.execute(
                select(model.id).where(model.id.in_(wanted[start:start + LOOKUP_BATCH_SIZE]))
            )
            found.update(int(i) for i in result.scalars().all())
        snapshot.ids[field_name] = found
        if wanted:
            logger.debug(f"{model.__tablename__}: {len(found)}/{len(wanted)} referenced ids exist")
    return snapshot


def row_issues(row: SheetRow, reference_set: ReferenceSet) -> List[str]:
    """Human-readable problems with one row, empty when the row is insertable"""
    issues: List[str] = []

    if normalize_voter_id(row.get("voter_id")) is None:
        issues.append("voter_id is required")
    if _is_blank(row.get("name")):
        issues.append("name is required")

    for field_name in REFERENCE_FIELDS:
        value = row.get(field_name)
        if _is_blank(value):
            continue
        try:
            identifier = coerce_identifier(value)
        except ValueError:
            issues.append(f"{field_name} {value} is not a valid identifier")
            continue
        if not reference_set.contains(field_name, identifier):
            issues.append(f"{field_name} {identifier} not found")

    age = row.get("age")
    if not _is_blank(age):
        try:
            coerce_identifier(age)
        except ValueError:
            issues.append(f"age {age} is not a number")

    return issues


def validate_rows(rows: Sequence[SheetRow], reference_set: ReferenceSet) -> ValidationOutcome:
    """Split rows into valid rows and RowIssue entries, keeping sheet order"""
    outcome = ValidationOutcome()
    for row in rows:
        issues = row_issues(row, reference_set)
        if issues:
            outcome.invalid.append(RowIssue(
                row_index=row.row_index,
                voter_id=normalize_voter_id(row.get("voter_id")),
                issues=issues,
            ))
        else:
            outcome.valid.append(row)
    return outcome
