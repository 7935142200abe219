from fastapi import APIRouter, Depends, HTTPException, status, File, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from typing import Any, Optional
from app.config import get_settings
from app.core.errors import VoterImportError
from app.core.spreadsheet import SheetRow
from app.middleware.auth import CurrentUser, get_current_user, get_tenant_db
from app.models.reference import Constituency, Block, Booth, Part
from app.models.voter import Voter, EDITABLE_VOTER_FIELDS
from app.schemas.voter import (
    VoterCreate, VoterEdit, VoterListItem, VoterListResponse,
    MessageResponse, VoterImportResponse, VoterImportFailure
)
from app.services.reference_validator import (
    REFERENCE_FIELDS, coerce_identifier, load_reference_set, row_issues
)
from app.services.voter_dedup import fetch_existing_voter_ids, normalize_voter_id
from app.services.voter_import import import_voters
from app.services.voter_writer import build_voter_record, DEFAULT_GENDER
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "status": False, **extra},
    )


@router.get("", response_model=VoterListResponse)
async def list_voters(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_tenant_db)
):
    """List active voters with their constituency/block/booth/part codes and names"""
    logger.info(f"Voters list request received from {current_user.user_name}")

    result = await db.execute(
        select(
            Voter,
            Constituency.code.label("constituency_code"),
            Constituency.name.label("constituency_name"),
            Block.code.label("block_code"),
            Block.name.label("block_name"),
            Booth.code.label("booth_code"),
            Booth.name.label("booth_name"),
            Part.code.label("part_code"),
            Part.name.label("part_name"),
        )
        .select_from(Voter)
        .outerjoin(Constituency, Voter.constituency_id == Constituency.id)
        .outerjoin(Block, Voter.block_id == Block.id)
        .outerjoin(Booth, Voter.booth_id == Booth.id)
        .outerjoin(Part, Voter.part_id == Part.id)
        .where(Voter.is_active == True)  # noqa: E712
        .order_by(Voter.id)
    )
    rows = result.all()

    if not rows:
        logger.warning(f"No voters found for {current_user.user_name}")
        return _failure("No Voters list found", data=[])

    data = []
    for row in rows:
        voter = row.Voter
        data.append(VoterListItem(
            id=voter.id,
            constituency_id=voter.constituency_id,
            block_id=voter.block_id,
            booth_id=voter.booth_id,
            part_id=voter.part_id,
            voter_id=voter.voter_id,
            name=voter.name,
            father_husband_name=voter.father_husband_name,
            photo=voter.photo,
            age=voter.age,
            gender=voter.gender,
            house_no=voter.house_no,
            address=voter.address,
            phone=voter.phone,
            email=voter.email,
            polling_station=voter.polling_station,
            notes=voter.notes,
            constituency_code=row.constituency_code,
            constituency_name=row.constituency_name,
            block_code=row.block_code,
            block_name=row.block_name,
            booth_code=row.booth_code,
            booth_name=row.booth_name,
            part_code=row.part_code,
            part_name=row.part_name,
        ))

    return VoterListResponse(status=True, message="Voters list retrieved successfully", data=data)


@router.post("", response_model=MessageResponse)
async def add_voter(
    voter_data: VoterCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_tenant_db)
):
    """Add a single voter"""
    logger.info(f"Add voter request received from {current_user.user_name}")

    voter_id = normalize_voter_id(voter_data.voter_id)
    mandatory = [voter_data.constituency_id, voter_data.block_id, voter_data.booth_id,
                 voter_data.part_id, voter_id, voter_data.name]
    if any(value is None or value == "" for value in mandatory):
        logger.error(f"Add voter: mandatory fields are missing ({current_user.user_name})")
        return _failure("Mandatory fields are missing")

    if await fetch_existing_voter_ids(db, [voter_id]):
        logger.warning(f"Add voter: duplicate voter_id {voter_id}")
        return _failure("Duplicate Entry detected")

    row = SheetRow(row_index=1, data=voter_data.model_dump())
    reference_set = await load_reference_set(db, [row])
    issues = row_issues(row, reference_set)
    if issues:
        logger.error(f"Add voter: validation failed for {voter_id}: {issues}")
        return _failure("Foreign key validation failed", issues=issues)

    db.add(Voter(**build_voter_record(row)))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Add voter: voter_id {voter_id} inserted concurrently")
        return _failure("Duplicate Entry detected")

    logger.info(f"Voter {voter_id} inserted successfully by {current_user.user_name}")
    return MessageResponse(status=True, message="Voter inserted successfully")


async def _coerce_edit_value(db: AsyncSession, voter: Voter, key: str, value: Any):
    """Validate and convert an edited value; returns (value, error message)"""
    if key in REFERENCE_FIELDS:
        try:
            identifier = coerce_identifier(value)
        except ValueError:
            return None, f"{key} {value} is not a valid identifier"
        model = REFERENCE_FIELDS[key]
        result = await db.execute(select(model.id).where(model.id == identifier))
        if result.scalar_one_or_none() is None:
            return None, f"{key} {identifier} not found"
        return identifier, None

    if key == "voter_id":
        voter_id = normalize_voter_id(value)
        if voter_id != voter.voter_id and await fetch_existing_voter_ids(db, [voter_id]):
            return None, "Duplicate Entry detected"
        return voter_id, None

    if key == "age":
        try:
            return coerce_identifier(value), None
        except ValueError:
            return None, f"age {value} is not a number"

    if key == "gender":
        return (str(value).strip().lower() or DEFAULT_GENDER), None

    return str(value), None


@router.patch("/{voter_pk}", response_model=MessageResponse)
async def edit_voter(
    voter_pk: int,
    edit_data: VoterEdit,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_tenant_db)
):
    """Update one field of an active voter"""
    logger.info(f"Edit voter request received from {current_user.user_name}")

    if not edit_data.key or edit_data.value is None or edit_data.value == "":
        logger.error(f"Edit voter: mandatory fields are missing ({current_user.user_name})")
        return _failure("Mandatory fields are missing")

    if edit_data.key not in EDITABLE_VOTER_FIELDS:
        return _failure(f"Field '{edit_data.key}' cannot be edited")

    result = await db.execute(
        select(Voter).where(Voter.id == voter_pk, Voter.is_active == True)  # noqa: E712
    )
    voter = result.scalar_one_or_none()
    if voter is None:
        logger.warning(f"Edit voter: no active voter with id {voter_pk}")
        return _failure("No Data Found!")

    value, error = await _coerce_edit_value(db, voter, edit_data.key, edit_data.value)
    if error:
        return _failure(error)

    await db.execute(update(Voter).where(Voter.id == voter_pk).values({edit_data.key: value}))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return _failure("Voter not found or update failed")

    logger.info(f"Voter {voter_pk} updated ({edit_data.key}) by {current_user.user_name}")
    return MessageResponse(status=True, message="Voter updated successfully")


@router.delete("/{voter_pk}", response_model=MessageResponse)
async def delete_voter(
    voter_pk: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_tenant_db)
):
    """Soft delete a voter"""
    logger.info(f"Delete voter request received from {current_user.user_name}")

    result = await db.execute(select(Voter.id).where(Voter.id == voter_pk))
    if result.scalar_one_or_none() is None:
        logger.error(f"Delete voter: record {voter_pk} not found")
        return _failure("Record not found")

    await db.execute(update(Voter).where(Voter.id == voter_pk).values(is_active=False))
    await db.commit()

    logger.info(f"Voter {voter_pk} deleted by {current_user.user_name}")
    return MessageResponse(status=True, message="Voter deleted successfully")


@router.post(
    "/bulk-upload",
    response_model=VoterImportResponse,
    responses={400: {"model": VoterImportFailure}},
)
async def bulk_upload_voters(
    voters: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_tenant_db)
):
    """
    Import voters from a spreadsheet (first sheet, header row first).
    If any row fails validation nothing is inserted.
    """
    if voters is None:
        logger.error(f"Bulk upload without a file from {current_user.user_name}")
        return PlainTextResponse("No file uploaded.", status_code=status.HTTP_400_BAD_REQUEST)

    settings = get_settings()
    # One byte past the limit is enough to tell an oversized upload apart
    content = await voters.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds {settings.MAX_UPLOAD_BYTES} bytes"
        )

    logger.info(f"Voter bulk upload received from {current_user.user_name}: {voters.filename}")
    try:
        summary = await import_voters(
            db,
            content,
            chunk_size=settings.VOTER_IMPORT_CHUNK_SIZE,
            actor=current_user.user_name,
        )
    except VoterImportError:
        raise
    except Exception as e:
        logger.error(f"Voter bulk upload by {current_user.user_name} failed unexpectedly: {e}", exc_info=True)
        await db.rollback()
        return _failure("Unexpected server error", error=str(e))
    return summary.to_dict()
