"""Ownership-scoped sequence CRUD."""

import logging
import uuid
from typing import List, Optional, Tuple

from models.sequence import Sequence, SequencePose, SequenceVisibility
from services.errors import SequenceNameTakenError, SequenceNotFoundError
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = logging.getLogger(__name__)


async def get_owned_sequence(
    db: AsyncSession,
    user_id: uuid.UUID,
    sequence_id: uuid.UUID,
    *,
    lock: bool = False,
) -> Sequence:
    """
    Fetch a sequence owned by `user_id` or raise SequenceNotFoundError.

    With `lock=True` the row is selected FOR UPDATE, which serializes all
    writers of the same sequence until the transaction ends.
    """
    query = select(Sequence).where(
        and_(
            Sequence.id == sequence_id,
            Sequence.user_id == user_id,
        )
    )
    if lock:
        query = query.with_for_update()

    result = await db.execute(query)
    sequence = result.scalar_one_or_none()
    if sequence is None:
        raise SequenceNotFoundError()
    return sequence


async def _name_taken(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> bool:
    query = select(Sequence.id).where(
        and_(Sequence.user_id == user_id, Sequence.name == name)
    )
    if exclude_id is not None:
        query = query.where(Sequence.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def _commit_or_name_conflict(db: AsyncSession) -> None:
    # Two concurrent creates with the same name both pass the pre-check;
    # the unique constraint decides.
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise SequenceNameTakenError()


async def create_sequence(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    visibility: SequenceVisibility = SequenceVisibility.PRIVATE,
) -> Sequence:
    if await _name_taken(db, user_id, name):
        raise SequenceNameTakenError()

    sequence = Sequence(user_id=user_id, name=name, visibility=visibility)
    db.add(sequence)
    await db.flush()
    await db.refresh(sequence)
    await _commit_or_name_conflict(db)

    logger.info(f"Created sequence {sequence.id} for user {user_id}")
    return sequence


async def list_sequences(
    db: AsyncSession, user_id: uuid.UUID
) -> Tuple[List[Tuple[Sequence, int]], int]:
    """Return (sequence, pose_count) pairs, most recently updated first, and the total."""
    query = (
        select(Sequence, func.count(SequencePose.id).label("pose_count"))
        .outerjoin(SequencePose, Sequence.id == SequencePose.sequence_id)
        .where(Sequence.user_id == user_id)
        .group_by(Sequence.id)
        .order_by(Sequence.updated_at.desc(), Sequence.created_at.desc())
    )
    result = await db.execute(query)
    rows = [(row[0], row[1]) for row in result.all()]
    return rows, len(rows)


async def get_sequence_detail(
    db: AsyncSession, user_id: uuid.UUID, sequence_id: uuid.UUID
) -> Sequence:
    """Fetch an owned sequence with its entries, their poses and pinned versions."""
    query = (
        select(Sequence)
        .options(
            selectinload(Sequence.sequence_poses).selectinload(SequencePose.pose),
            selectinload(Sequence.sequence_poses).selectinload(SequencePose.pose_version),
        )
        .where(
            and_(
                Sequence.id == sequence_id,
                Sequence.user_id == user_id,
            )
        )
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    sequence = result.scalar_one_or_none()
    if sequence is None:
        raise SequenceNotFoundError()
    return sequence


async def update_sequence(
    db: AsyncSession,
    user_id: uuid.UUID,
    sequence_id: uuid.UUID,
    name: Optional[str] = None,
    visibility: Optional[SequenceVisibility] = None,
) -> Sequence:
    sequence = await get_owned_sequence(db, user_id, sequence_id, lock=True)

    if name is not None and name != sequence.name:
        if await _name_taken(db, user_id, name, exclude_id=sequence.id):
            await db.rollback()
            raise SequenceNameTakenError()
        sequence.name = name
    if visibility is not None:
        sequence.visibility = visibility

    await db.flush()
    await db.refresh(sequence)
    await _commit_or_name_conflict(db)
    return sequence


async def delete_sequence(
    db: AsyncSession, user_id: uuid.UUID, sequence_id: uuid.UUID
) -> None:
    """Delete an owned sequence; its entries go with it (ON DELETE CASCADE)."""
    sequence = await get_owned_sequence(db, user_id, sequence_id, lock=True)
    await db.delete(sequence)
    await db.commit()
    logger.info(f"Deleted sequence {sequence_id} for user {user_id}")
