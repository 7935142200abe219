# Shared pytest fixtures: one throwaway SQLite tenant database per test
from __future__ import annotations

import asyncio
import io
import os
import tempfile
import uuid
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="voter-registry-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/{{dbname}}.db"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pandas as pd  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from app.core.security import create_access_token  # noqa: E402
from app.database import init_db, tenant_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.reference import Block, Booth, Constituency, Part  # noqa: E402
from app.models.voter import Voter  # noqa: E402

# Reference ids seeded into every tenant database
CONSTITUENCY_ID = 5
BLOCK_ID = 7
BOOTH_ID = 9
PART_ID = 11


def run(coro):
    return asyncio.run(coro)


def make_xlsx(rows: list[dict], columns: list[str] | None = None) -> bytes:
    """Build an .xlsx upload with a header row followed by the given rows."""
    df = pd.DataFrame(rows, columns=columns)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Voters", index=False)
    return buf.getvalue()


def voter_row(voter_id: str, **overrides) -> dict:
    row = {
        "constituency_id": CONSTITUENCY_ID,
        "block_id": BLOCK_ID,
        "booth_id": BOOTH_ID,
        "part_id": PART_ID,
        "voter_id": voter_id,
        "name": f"Voter {voter_id}",
        "father_husband_name": "Ramesh",
        "age": 40,
        "gender": "Female",
        "house_no": "12A",
        "address": "Main Road",
        "phone": "9999999999",
    }
    row.update(overrides)
    return row


async def seed_references(dbname: str) -> None:
    async with tenant_session(dbname) as session:
        session.add(Constituency(id=CONSTITUENCY_ID, code="C05", name="Central"))
        await session.flush()
        session.add(Block(id=BLOCK_ID, constituency_id=CONSTITUENCY_ID, code="B07", name="North Block"))
        await session.flush()
        session.add(Booth(id=BOOTH_ID, block_id=BLOCK_ID, code="BT09", name="School Booth"))
        await session.flush()
        session.add(Part(id=PART_ID, booth_id=BOOTH_ID, code="P11", name="Part 11"))
        await session.commit()


async def _stored_voter_ids(dbname: str) -> list[str]:
    async with tenant_session(dbname) as session:
        result = await session.execute(select(Voter.voter_id).order_by(Voter.id))
        return list(result.scalars().all())


async def _count_voters(dbname: str) -> int:
    async with tenant_session(dbname) as session:
        result = await session.execute(select(func.count(Voter.id)))
        return int(result.scalar() or 0)


def stored_voter_ids(dbname: str) -> list[str]:
    return run(_stored_voter_ids(dbname))


def count_voters(dbname: str) -> int:
    return run(_count_voters(dbname))


@pytest.fixture()
def tenant() -> str:
    """A fresh tenant database with schema and reference rows."""
    dbname = f"t_{uuid.uuid4().hex[:12]}"
    run(init_db(dbname))
    run(seed_references(dbname))
    return dbname


@pytest.fixture()
def auth_headers(tenant: str) -> dict[str, str]:
    token = create_access_token({
        "employee_id": "1",
        "email": "officer@example.com",
        "name": "Officer",
        "user_name": "officer",
        "dbname": tenant,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)
