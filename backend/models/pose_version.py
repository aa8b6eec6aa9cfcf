"""
PoseVersion model: immutable snapshots of pose content.

Sequence entries reference a version rather than the pose itself, so editing
a pose's canonical content never changes what an existing sequence shows.
"""

import uuid

from db.database import Base
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class PoseVersion(Base):
    """
    Snapshot of a Pose's content at one point in time.

    `version` increases monotonically per pose. Rows are written once and
    never updated; they are only removed together with their pose.
    """
    __tablename__ = "pose_versions"

    # Prevent duplicate version numbers per pose at the database level
    __table_args__ = (
        UniqueConstraint("pose_id", "version", name="uq_pose_version"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pose_id = Column(
        Uuid,
        ForeignKey("poses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)

    # Snapshot of pose content at this version
    name = Column(String(200), nullable=False)
    sanskrit_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    pose = relationship("Pose", back_populates="versions", foreign_keys=[pose_id])

    def __repr__(self):
        return f"<PoseVersion(id={self.id}, pose_id={self.pose_id}, version={self.version})>"
