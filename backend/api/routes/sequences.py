"""
Sequences API routes.

Provides endpoints for:
- Creating, listing, viewing, renaming and deleting the caller's sequences
- Adding, repositioning and removing poses within a sequence

Every route is scoped to the authenticated user; another user's sequence is
reported exactly like a missing one (SEQUENCE_NOT_FOUND).
"""

import logging
import uuid

from db.database import get_db
from fastapi import APIRouter, Depends, Response, status
from models.user import User
from schemas.common import ErrorResponse
from schemas.sequence import (
    SequenceCreate,
    SequenceDetailResponse,
    SequenceListResponse,
    SequencePoseCreate,
    SequencePoseResponse,
    SequencePoseUpdate,
    SequenceSummaryResponse,
    SequenceUpdate,
)
from services import sequences as sequence_service
from services.auth import get_current_user
from services.sequence_poses import SequencePositionManager
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sequences",
    tags=["sequences"],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


# ============== Sequence CRUD ==============


@router.get("", response_model=SequenceListResponse)
async def list_sequences(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's sequences, most recently updated first."""
    rows, total = await sequence_service.list_sequences(db, current_user.id)
    items = [
        SequenceSummaryResponse(
            id=sequence.id,
            name=sequence.name,
            visibility=sequence.visibility,
            pose_count=pose_count,
            created_at=sequence.created_at,
            updated_at=sequence.updated_at,
        )
        for sequence, pose_count in rows
    ]
    return SequenceListResponse(data=items, total=total)


@router.post(
    "",
    response_model=SequenceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_sequence(
    sequence_data: SequenceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sequence = await sequence_service.create_sequence(
        db, current_user.id, sequence_data.name, sequence_data.visibility
    )
    return SequenceDetailResponse(
        id=sequence.id,
        name=sequence.name,
        visibility=sequence.visibility,
        pose_count=0,
        created_at=sequence.created_at,
        updated_at=sequence.updated_at,
        poses=[],
    )


@router.get("/{sequence_id}", response_model=SequenceDetailResponse)
async def get_sequence(
    sequence_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a sequence with its poses ordered by position."""
    sequence = await sequence_service.get_sequence_detail(db, current_user.id, sequence_id)
    return SequenceDetailResponse.from_sequence(sequence)


@router.patch(
    "/{sequence_id}",
    response_model=SequenceDetailResponse,
    responses={409: {"model": ErrorResponse}},
)
async def update_sequence(
    sequence_id: uuid.UUID,
    sequence_data: SequenceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a sequence or change its visibility."""
    await sequence_service.update_sequence(
        db,
        current_user.id,
        sequence_id,
        name=sequence_data.name,
        visibility=sequence_data.visibility,
    )
    sequence = await sequence_service.get_sequence_detail(db, current_user.id, sequence_id)
    return SequenceDetailResponse.from_sequence(sequence)


@router.delete("/{sequence_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sequence(
    sequence_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await sequence_service.delete_sequence(db, current_user.id, sequence_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== Sequence Poses ==============


@router.post(
    "/{sequence_id}/poses",
    response_model=SequencePoseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def add_pose_to_sequence(
    sequence_id: uuid.UUID,
    pose_data: SequencePoseCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a pose to a sequence.

    Without `position` the pose is appended; with it, entries from that
    position onward move down by one. Without `poseVersion` the pose's
    current version is pinned.
    """
    manager = SequencePositionManager(db)
    entry = await manager.insert(
        current_user.id,
        sequence_id,
        pose_data.pose_id,
        pose_version=pose_data.pose_version,
        position=pose_data.position,
    )
    return SequencePoseResponse.from_entry(entry)


@router.patch(
    "/{sequence_id}/poses/{sequence_pose_id}",
    response_model=SequencePoseResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_sequence_pose(
    sequence_id: uuid.UUID,
    sequence_pose_id: uuid.UUID,
    pose_data: SequencePoseUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move a pose within its sequence. Duration and instructions are not supported yet."""
    manager = SequencePositionManager(db)
    entry = await manager.update(
        current_user.id,
        sequence_id,
        sequence_pose_id,
        position=pose_data.position,
        duration=pose_data.duration,
        instructions=pose_data.instructions,
    )
    return SequencePoseResponse.from_entry(entry)


@router.delete(
    "/{sequence_id}/poses/{sequence_pose_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_pose_from_sequence(
    sequence_id: uuid.UUID,
    sequence_pose_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove a pose; the poses after it close the gap."""
    manager = SequencePositionManager(db)
    await manager.remove(current_user.id, sequence_id, sequence_pose_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
