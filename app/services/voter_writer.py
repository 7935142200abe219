"""
Chunked, all-or-nothing insertion of validated voter records.
"""
from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging
from app.core.errors import StorageError
from app.core.spreadsheet import SheetRow
from app.models.voter import Voter
from app.services.reference_validator import REFERENCE_FIELDS, coerce_identifier
from app.services.voter_dedup import normalize_voter_id, partition_new

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_GENDER = "male"

TEXT_FIELDS = (
    "name",
    "father_husband_name",
    "photo",
    "house_no",
    "address",
    "phone",
    "email",
    "polling_station",
    "notes",
)


@dataclass
class WriteResult:
    inserted: int = 0
    skipped_duplicates: int = 0


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _identifier(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_identifier(value)


def build_voter_record(row: SheetRow) -> Dict[str, Any]:
    """Turn a validated spreadsheet row into an insertable voters row"""
    record: Dict[str, Any] = {
        field_name: _identifier(row.get(field_name)) for field_name in REFERENCE_FIELDS
    }
    record["voter_id"] = normalize_voter_id(row.get("voter_id"))
    for field_name in TEXT_FIELDS:
        record[field_name] = _text(row.get(field_name))
    record["age"] = _identifier(row.get("age"))
    gender = _text(row.get("gender"))
    record["gender"] = gender.lower() if gender else DEFAULT_GENDER
    return record


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


async def insert_voter_chunk(session: AsyncSession, records: List[Dict[str, Any]]) -> int:
    """Insert one chunk with a single executemany INSERT"""
    await session.execute(insert(Voter), records)
    return len(records)


async def write_voters(
    session: AsyncSession,
    records: Sequence[Dict[str, Any]],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> WriteResult:
    """Insert records in chunks inside one transaction.

    Each chunk is re-checked against stored voter ids first, so voters
    committed by a concurrent import in the meantime are skipped rather than
    violating the unique index. Any database error rolls back every chunk of
    this call and raises StorageError.
    """
    result = WriteResult()

    # Close the read transaction opened by the dedup/validation queries
    if session.in_transaction():
        await session.commit()

    try:
        async with session.begin():
            for number, chunk in enumerate(chunked(records, chunk_size), start=1):
                partition = await partition_new(session, chunk, key=lambda r: r["voter_id"])
                result.skipped_duplicates += len(partition.existing)
                if not partition.new:
                    logger.debug(f"chunk {number}: nothing new")
                    continue
                result.inserted += await insert_voter_chunk(session, partition.new)
                logger.debug(f"chunk {number}: inserted {len(partition.new)}")
    except SQLAlchemyError as e:
        logger.error(f"Voter insert failed, transaction rolled back: {e}")
        raise StorageError(str(e)) from e

    return result
