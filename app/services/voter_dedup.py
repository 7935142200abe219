"""
Voter deduplication against stored voters and within one upload.

``partition_new`` is the single filter used both before validation (whole
upload) and inside the write transaction (per chunk).
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, Set, TypeVar
from app.models.voter import Voter

T = TypeVar("T")

# Upper bound on bound parameters per IN (...) lookup
LOOKUP_BATCH_SIZE = 1000


def normalize_voter_id(value: Any) -> Optional[str]:
    """Coerce a voter id cell to its stored string form (None when blank)"""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


@dataclass
class DedupPartition(Generic[T]):
    new: List[T] = field(default_factory=list)
    existing: List[T] = field(default_factory=list)  # key already stored
    repeated: List[T] = field(default_factory=list)  # key seen earlier in the same input


async def fetch_existing_voter_ids(session: AsyncSession, voter_ids: Iterable[str]) -> Set[str]:
    """Return the subset of voter_ids already present in the voters table"""
    ids = list(dict.fromkeys(voter_ids))
    found: Set[str] = set()
    for start in range(0, len(ids), LOOKUP_BATCH_SIZE):
        batch = ids[start:start + LOOKUP_BATCH_SIZE]
        result = await session.execute(
            select(Voter.voter_id).where(Voter.voter_id.in_(batch))
        )
        found.update(result.scalars().all())
    return found


async def partition_new(
    session: AsyncSession,
    items: Sequence[T],
    key: Callable[[T], Optional[str]],
) -> DedupPartition[T]:
    """Split items into new, already stored, and repeated-in-input.

    Input order is preserved and the first occurrence of a key wins. Items
    without a key are passed through as new so later validation can report
    them.
    """
    partition: DedupPartition[T] = DedupPartition()
    keys = [key(item) for item in items]
    stored = await fetch_existing_voter_ids(session, [k for k in keys if k is not None])

    seen: Set[str] = set()
    for item, item_key in zip(items, keys):
        if item_key is None:
            partition.new.append(item)
        elif item_key in stored:
            if item_key in seen:
                partition.repeated.append(item)
            else:
                seen.add(item_key)
                partition.existing.append(item)
        elif item_key in seen:
            partition.repeated.append(item)
        else:
            seen.add(item_key)
            partition.new.append(item)
    return partition
