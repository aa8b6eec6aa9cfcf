import uuid

from db.database import Base
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


DIFFICULTY_NAMES = ("beginner", "intermediate", "advanced")

POSE_TYPE_NAMES = (
    "standing",
    "seated",
    "balancing",
    "backbend",
    "forward_bend",
    "twist",
    "inversion",
    "resting",
)


class Difficulty(Base):
    """Lookup table for pose difficulty levels."""
    __tablename__ = "difficulties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<Difficulty(id={self.id}, name='{self.name}')>"


class PoseType(Base):
    """Lookup table for pose categories (standing, seated, ...)."""
    __tablename__ = "pose_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<PoseType(id={self.id}, name='{self.name}')>"


class Pose(Base):
    """
    Canonical, editable pose record.

    Sequences never point at this content directly: each entry references a
    PoseVersion snapshot, and `current_version_id` names the snapshot new
    entries get by default.
    """
    __tablename__ = "poses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False, index=True)
    sanskrit_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    difficulty_id = Column(
        Integer, ForeignKey("difficulties.id"), nullable=True, index=True
    )
    type_id = Column(
        Integer, ForeignKey("pose_types.id"), nullable=True, index=True
    )
    image_url = Column(Text, nullable=True)
    # Accessibility: alt text is required for every pose image
    image_alt = Column(Text, nullable=False)
    image_license = Column(Text, nullable=True)
    # Circular reference with pose_versions, added after both tables exist
    current_version_id = Column(
        Uuid,
        ForeignKey(
            "pose_versions.id",
            use_alter=True,
            name="fk_poses_current_version",
        ),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    difficulty = relationship("Difficulty", lazy="joined")
    pose_type = relationship("PoseType", lazy="joined")
    current_version = relationship(
        "PoseVersion",
        foreign_keys=[current_version_id],
        post_update=True,
    )
    versions = relationship(
        "PoseVersion",
        back_populates="pose",
        foreign_keys="PoseVersion.pose_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PoseVersion.version",
    )

    def __repr__(self):
        return f"<Pose(id={self.id}, name='{self.name}')>"
