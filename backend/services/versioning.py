"""
Pose version snapshots.

A PoseVersion freezes the displayable content of a pose. Sequence entries
point at a version, so later catalog edits never change what a saved
sequence shows. Versions are append-only: this module creates and reads
them, nothing updates or deletes one.
"""

import logging
import uuid
from typing import Dict, List, Optional

from models.pose import Pose
from models.pose_version import PoseVersion
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class VersioningService:
    """Create and read pose version snapshots."""

    # Pose columns frozen into a snapshot
    SNAPSHOT_FIELDS = ("name", "sanskrit_name", "description", "image_url")

    @classmethod
    def snapshot_of(cls, obj) -> Dict[str, Optional[str]]:
        return {name: getattr(obj, name) for name in cls.SNAPSHOT_FIELDS}

    async def get_versions(self, db: AsyncSession, pose_id: uuid.UUID) -> List[PoseVersion]:
        """All versions of a pose, newest first."""
        result = await db.execute(
            select(PoseVersion)
            .where(PoseVersion.pose_id == pose_id)
            .order_by(PoseVersion.version.desc())
        )
        return list(result.scalars().all())

    async def get_version_by_number(
        self, db: AsyncSession, pose_id: uuid.UUID, version_number: int
    ) -> Optional[PoseVersion]:
        result = await db.execute(
            select(PoseVersion).where(
                PoseVersion.pose_id == pose_id,
                PoseVersion.version == version_number,
            )
        )
        return result.scalar_one_or_none()

    async def create_version(
        self,
        db: AsyncSession,
        pose: Pose,
        check_for_changes: bool = True,
    ) -> Optional[PoseVersion]:
        """
        Snapshot `pose` as its next version and make that the current one.

        The pose must already be flushed. With `check_for_changes` nothing is
        written when the newest snapshot already matches the pose, and None
        is returned. Callers hold the pose row, so `max(version) + 1` cannot
        race; the (pose_id, version) constraint backs that up.
        """
        snapshot = self.snapshot_of(pose)

        if check_for_changes:
            versions = await self.get_versions(db, pose.id)
            if versions and self.snapshot_of(versions[0]) == snapshot:
                logger.debug(f"Pose {pose.id} unchanged since version {versions[0].version}")
                return None

        highest = await db.execute(
            select(func.max(PoseVersion.version)).where(PoseVersion.pose_id == pose.id)
        )
        number = (highest.scalar() or 0) + 1

        version = PoseVersion(pose_id=pose.id, version=number, **snapshot)
        db.add(version)
        await db.flush()

        # Separate flush: poses.current_version_id and pose_versions.pose_id point at each other
        pose.current_version_id = version.id
        await db.flush()

        logger.info(f"Pose {pose.id} is now at version {number}")
        return version


versioning_service = VersioningService()
