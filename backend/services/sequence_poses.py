"""
Sequence Position Manager.

Owns every write to `sequence_poses.position`. Each public operation is one
transaction that:

1. proves ownership and locks the sequence row (SELECT ... FOR UPDATE),
2. locks and reads the sequence's entries,
3. validates the request; every rejection happens before the first write,
4. issues the single-row writes planned by services.positions, in order,
5. commits once, or rolls back everything and re-raises.

Nothing is retried here. A blind retry after a partial failure could shift
entries twice, so callers must re-read the sequence before trying again.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from models.pose import Pose
from models.pose_version import PoseVersion
from models.sequence import SequencePose
from services.errors import (
    FeatureNotSupportedError,
    PoseNotFoundError,
    PoseVersionNotFoundError,
    SequenceBuilderError,
    SequencePoseNotFoundError,
)
from services.positions import (
    EntryPosition,
    PositionShift,
    is_dense,
    plan_insert_shifts,
    plan_move_shifts,
    plan_remove_shifts,
    resolve_insert_position,
    validate_move_position,
)
from services.sequences import get_owned_sequence
from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = logging.getLogger(__name__)


class SequencePositionManager:
    """Insert, move and remove entries while keeping positions exactly 1..N."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Transaction and lookup helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _atomic(self, action: str, sequence_id: uuid.UUID):
        try:
            yield
            await self.db.commit()
        except SequenceBuilderError as e:
            await self.db.rollback()
            logger.debug(f"Rejected {action} in sequence {sequence_id}: {e.code}")
            raise
        except Exception:
            await self.db.rollback()
            logger.exception(f"Failed to {action} in sequence {sequence_id}; transaction rolled back")
            raise

    async def _lock_entries(self, sequence_id: uuid.UUID) -> List[EntryPosition]:
        result = await self.db.execute(
            select(SequencePose.id, SequencePose.position)
            .where(SequencePose.sequence_id == sequence_id)
            .order_by(SequencePose.position)
            .with_for_update()
        )
        entries = [EntryPosition(row.id, row.position) for row in result.all()]
        if not is_dense(e.position for e in entries):
            logger.error(
                f"Sequence {sequence_id} positions are not dense: "
                f"{[e.position for e in entries]}"
            )
        return entries

    @staticmethod
    def _find(entries: List[EntryPosition], entry_id: uuid.UUID) -> EntryPosition:
        for entry in entries:
            if entry.entry_id == entry_id:
                return entry
        raise SequencePoseNotFoundError()

    async def _apply(self, sequence_id: uuid.UUID, shifts: List[PositionShift]) -> None:
        # One statement per row, in plan order; see services.positions
        for shift in shifts:
            await self.db.execute(
                update(SequencePose)
                .where(
                    and_(
                        SequencePose.id == shift.entry_id,
                        SequencePose.sequence_id == sequence_id,
                    )
                )
                .values(position=shift.new)
            )

    async def _load_entry(self, sequence_id: uuid.UUID, entry_id: uuid.UUID) -> SequencePose:
        result = await self.db.execute(
            select(SequencePose)
            .options(
                selectinload(SequencePose.pose),
                selectinload(SequencePose.pose_version),
            )
            .where(
                and_(
                    SequencePose.id == entry_id,
                    SequencePose.sequence_id == sequence_id,
                )
            )
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise SequencePoseNotFoundError()
        return entry

    async def resolve_pose_version(
        self, pose_id: uuid.UUID, version: Optional[int] = None
    ) -> uuid.UUID:
        """
        Pick the PoseVersion a new entry will reference.

        An explicit version number must exist for this pose; otherwise the
        pose's current version is used.
        """
        if version is not None:
            result = await self.db.execute(
                select(PoseVersion.id).where(
                    and_(
                        PoseVersion.pose_id == pose_id,
                        PoseVersion.version == version,
                    )
                )
            )
            version_id = result.scalar_one_or_none()
            if version_id is None:
                raise PoseVersionNotFoundError()
            return version_id

        result = await self.db.execute(
            select(Pose.current_version_id).where(Pose.id == pose_id)
        )
        current_version_id = result.scalar_one_or_none()
        if current_version_id is None:
            raise PoseNotFoundError()
        return current_version_id

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def insert(
        self,
        user_id: uuid.UUID,
        sequence_id: uuid.UUID,
        pose_id: uuid.UUID,
        pose_version: Optional[int] = None,
        position: Optional[int] = None,
    ) -> SequencePose:
        """
        Add a pose to a sequence at `position` (1..N+1), appending when omitted.

        Entries at or after the target move up by one before the new row is
        written.
        """
        async with self._atomic("insert entry", sequence_id):
            await get_owned_sequence(self.db, user_id, sequence_id, lock=True)
            pose_version_id = await self.resolve_pose_version(pose_id, pose_version)
            entries = await self._lock_entries(sequence_id)
            target = resolve_insert_position(len(entries), position)

            await self._apply(sequence_id, plan_insert_shifts(entries, target))

            new_entry = SequencePose(
                sequence_id=sequence_id,
                pose_id=pose_id,
                pose_version_id=pose_version_id,
                position=target,
            )
            self.db.add(new_entry)
            await self.db.flush()

            entry = await self._load_entry(sequence_id, new_entry.id)
            logger.info(
                f"Inserted entry {entry.id} (pose {pose_id}) at position {target} "
                f"of sequence {sequence_id}"
            )
        return entry

    async def move(
        self,
        user_id: uuid.UUID,
        sequence_id: uuid.UUID,
        entry_id: uuid.UUID,
        new_position: int,
    ) -> SequencePose:
        """
        Move an entry to `new_position` (1..N).

        Moving to the current position is a no-op that still returns the entry.
        """
        async with self._atomic("move entry", sequence_id):
            await get_owned_sequence(self.db, user_id, sequence_id, lock=True)
            entries = await self._lock_entries(sequence_id)
            current = self._find(entries, entry_id)

            if new_position != current.position:
                validate_move_position(len(entries), new_position)
                await self._apply(
                    sequence_id,
                    plan_move_shifts(entries, entry_id, current.position, new_position),
                )
                logger.info(
                    f"Moved entry {entry_id} of sequence {sequence_id} "
                    f"from {current.position} to {new_position}"
                )

            entry = await self._load_entry(sequence_id, entry_id)
        return entry

    async def update(
        self,
        user_id: uuid.UUID,
        sequence_id: uuid.UUID,
        entry_id: uuid.UUID,
        position: Optional[int] = None,
        duration: Optional[int] = None,
        instructions: Optional[str] = None,
    ) -> SequencePose:
        """
        Apply a partial update to an entry.

        Only position is stored today; duration and instructions are refused
        with FEATURE_NOT_SUPPORTED rather than silently dropped.
        """
        if duration is None and instructions is None and position is not None:
            return await self.move(user_id, sequence_id, entry_id, position)

        async with self._atomic("update entry", sequence_id):
            await get_owned_sequence(self.db, user_id, sequence_id, lock=True)
            entry = await self._load_entry(sequence_id, entry_id)
            if duration is not None or instructions is not None:
                raise FeatureNotSupportedError()
        return entry

    async def remove(
        self,
        user_id: uuid.UUID,
        sequence_id: uuid.UUID,
        entry_id: uuid.UUID,
    ) -> None:
        """Delete an entry and close the gap it leaves."""
        async with self._atomic("remove entry", sequence_id):
            await get_owned_sequence(self.db, user_id, sequence_id, lock=True)
            entries = await self._lock_entries(sequence_id)
            removed = self._find(entries, entry_id)

            await self.db.execute(
                delete(SequencePose).where(
                    and_(
                        SequencePose.id == entry_id,
                        SequencePose.sequence_id == sequence_id,
                    )
                )
            )
            remaining = [e for e in entries if e.entry_id != entry_id]
            await self._apply(sequence_id, plan_remove_shifts(remaining, removed.position))

            logger.info(
                f"Removed entry {entry_id} at position {removed.position} "
                f"of sequence {sequence_id}"
            )
