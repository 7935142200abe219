"""
Voter bulk import orchestration.

decode -> dedup -> validate -> (abort | write) -> summary. A single invalid row
aborts the whole import before anything is written.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging
from app.core.errors import ImportValidationError
from app.core.spreadsheet import decode_spreadsheet
from app.services.reference_validator import load_reference_set, validate_rows
from app.services.voter_dedup import normalize_voter_id, partition_new
from app.services.voter_writer import DEFAULT_CHUNK_SIZE, build_voter_record, write_voters

logger = logging.getLogger(__name__)

NO_NEW_VOTERS_MESSAGE = "No new voters to insert"
SUCCESS_MESSAGE = "Voters processed successfully"


@dataclass
class ImportSummary:
    inserted: int
    skipped_duplicates: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": True,
            "message": self.message,
            "inserted": self.inserted,
            "skipped_duplicates": self.skipped_duplicates,
        }


async def import_voters(
    session: AsyncSession,
    content: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    actor: Optional[str] = None,
) -> ImportSummary:
    """Run a bulk import of an uploaded voter spreadsheet.

    Raises DecodeError, ImportValidationError or StorageError; each is terminal.
    """
    sheet = await run_in_threadpool(decode_spreadsheet, content)
    logger.info(f"Voter upload by {actor}: {len(sheet.rows)} row(s) in sheet '{sheet.sheet_name}'")

    partition = await partition_new(
        session, sheet.rows, key=lambda row: normalize_voter_id(row.get("voter_id"))
    )
    logger.info(
        f"Existing voter check: {len(partition.new)} new, {len(partition.existing)} already stored, "
        f"{len(partition.repeated)} repeated in upload"
    )

    if not partition.new:
        return ImportSummary(
            inserted=0,
            skipped_duplicates=len(partition.existing),
            message=NO_NEW_VOTERS_MESSAGE,
        )

    reference_set = await load_reference_set(session, partition.new)
    outcome = validate_rows(partition.new, reference_set)
    if outcome.invalid:
        logger.error(f"Voter upload by {actor}: {len(outcome.invalid)} row(s) failed validation")
        raise ImportValidationError(outcome.invalid)

    records = [build_voter_record(row) for row in outcome.valid]
    written = await write_voters(session, records, chunk_size=chunk_size)

    logger.info(
        f"Voter upload by {actor}: inserted {written.inserted}, "
        f"skipped {len(partition.existing) + written.skipped_duplicates} duplicate(s)"
    )
    return ImportSummary(
        inserted=written.inserted,
        skipped_duplicates=len(partition.existing) + written.skipped_duplicates,
        message=SUCCESS_MESSAGE,
    )
