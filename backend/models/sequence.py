"""Sequence models: user-owned ordered lists of pose versions."""

import enum
import uuid

from db.database import Base
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class SequenceVisibility(enum.Enum):
    """Visibility of a sequence. Only PRIVATE is used for now."""
    PRIVATE = "private"
    UNLISTED = "unlisted"
    PUBLIC = "public"


class Sequence(Base):
    """A named practice sequence owned by one user."""
    __tablename__ = "sequences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    visibility = Column(
        Enum(
            SequenceVisibility,
            name="sequence_visibility",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=SequenceVisibility.PRIVATE,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_sequence_name"),
    )

    # Relationships
    user = relationship("User", back_populates="sequences")
    sequence_poses = relationship(
        "SequencePose",
        back_populates="sequence",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SequencePose.position",
    )

    def __repr__(self):
        return f"<Sequence(id={self.id}, name='{self.name}')>"


class SequencePose(Base):
    """
    One entry of a sequence: a pinned pose version at a 1-based position.

    For a given sequence the positions are always exactly 1..N. The same
    pose may appear several times; position is what tells entries apart.
    """
    __tablename__ = "sequence_poses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sequence_id = Column(
        Uuid, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # No ondelete: a pose or version still referenced by an entry cannot be removed
    pose_id = Column(Uuid, ForeignKey("poses.id"), nullable=False, index=True)
    pose_version_id = Column(
        Uuid, ForeignKey("pose_versions.id"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "position >= 1",
            name="check_position_positive",
        ),
        UniqueConstraint(
            "sequence_id",
            "position",
            name="uq_sequence_position",
        ),
    )

    # Relationships
    sequence = relationship("Sequence", back_populates="sequence_poses")
    pose = relationship("Pose")
    pose_version = relationship("PoseVersion")

    def __repr__(self):
        return (
            f"<SequencePose(id={self.id}, sequence_id={self.sequence_id}, "
            f"pose_id={self.pose_id}, position={self.position})>"
        )
