"""Public, read-only pose catalog routes."""

import logging
import uuid
from typing import Optional

from db.database import get_db
from fastapi import APIRouter, Depends, Path, Query
from schemas.common import ErrorResponse
from schemas.pose import (
    DifficultyFilter,
    PaginatedPoseResponse,
    PoseResponse,
    PoseSort,
    PoseVersionListResponse,
    PoseVersionResponse,
)
from services import poses as pose_service
from services.errors import PoseVersionNotFoundError
from services.versioning import versioning_service
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/poses",
    tags=["poses"],
    responses={404: {"model": ErrorResponse}},
)


@router.get("", response_model=PaginatedPoseResponse)
async def get_poses(
    difficulty: Optional[DifficultyFilter] = None,
    pose_type: Optional[str] = Query(None, alias="type", min_length=1, max_length=50),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: PoseSort = PoseSort.NAME,
    db: AsyncSession = Depends(get_db),
):
    """
    List catalog poses.

    Filters by difficulty and type name, full-text search over name, Sanskrit
    name and description. An unknown type yields an empty page.
    """
    pose_page = await pose_service.list_poses(
        db,
        difficulty=difficulty.value if difficulty else None,
        pose_type=pose_type.strip() if pose_type else None,
        search=search.strip() if search else None,
        page=page,
        limit=limit,
        sort=sort.value,
    )
    return PaginatedPoseResponse(
        data=[PoseResponse.from_pose(p) for p in pose_page.items],
        page=pose_page.page,
        limit=pose_page.limit,
        total=pose_page.total,
    )


@router.get("/{pose_id}", response_model=PoseResponse)
async def get_pose(
    pose_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    pose = await pose_service.get_pose(db, pose_id)
    return PoseResponse.from_pose(pose)


@router.get("/{pose_id}/versions", response_model=PoseVersionListResponse)
async def get_pose_versions(
    pose_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Version history of a pose, newest first."""
    await pose_service.get_pose(db, pose_id)
    versions = await versioning_service.get_versions(db, pose_id)
    return PoseVersionListResponse(
        data=[PoseVersionResponse.model_validate(v) for v in versions],
        total=len(versions),
    )


@router.get("/{pose_id}/versions/{version}", response_model=PoseVersionResponse)
async def get_pose_version(
    pose_id: uuid.UUID,
    version: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    await pose_service.get_pose(db, pose_id)
    pose_version = await versioning_service.get_version_by_number(db, pose_id, version)
    if pose_version is None:
        raise PoseVersionNotFoundError(status_code=404)
    return PoseVersionResponse.model_validate(pose_version)
