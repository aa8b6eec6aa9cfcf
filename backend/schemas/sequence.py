"""Pydantic schemas for sequences and their entries."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from models.sequence import SequenceVisibility
from .common import CamelModel
from .validators import clean_text


# ============== SequencePose Schemas ==============

class SequencePoseCreate(CamelModel):
    """Body of POST /sequences/{sequenceId}/poses."""
    pose_id: UUID
    pose_version: Optional[int] = Field(None, gt=0)
    # Range is checked against the sequence length (INVALID_POSITION)
    position: Optional[int] = None


class SequencePoseUpdate(CamelModel):
    """Body of PATCH /sequences/{sequenceId}/poses/{entryId}."""
    position: Optional[int] = None
    duration: Optional[int] = Field(None, ge=0)
    # Kept as sent: any value, even blank, is refused as not supported
    instructions: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_one_field(self) -> "SequencePoseUpdate":
        if self.position is None and self.duration is None and self.instructions is None:
            raise ValueError(
                "At least one field (position, duration, or instructions) must be provided"
            )
        return self


class SequencePoseResponse(CamelModel):
    """
    One entry of a sequence.

    Display fields come from the pinned pose version, so later catalog edits
    do not change what a saved sequence shows.
    """
    id: UUID
    pose_id: UUID
    pose_version_id: UUID
    pose_version: int
    pose_name: str
    sanskrit_name: Optional[str] = None
    image_url: Optional[str] = None
    image_alt: str
    position: int
    added_at: Optional[datetime] = None

    @classmethod
    def from_entry(cls, entry) -> "SequencePoseResponse":
        version = entry.pose_version
        return cls(
            id=entry.id,
            pose_id=entry.pose_id,
            pose_version_id=entry.pose_version_id,
            pose_version=version.version,
            pose_name=version.name,
            sanskrit_name=version.sanskrit_name,
            image_url=version.image_url,
            image_alt=entry.pose.image_alt,
            position=entry.position,
            added_at=entry.added_at,
        )


# ============== Sequence Schemas ==============

class SequenceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    visibility: SequenceVisibility = SequenceVisibility.PRIVATE

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_text(value, required=True, label="Name", invisible=True)


class SequenceUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    visibility: Optional[SequenceVisibility] = None

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value, required=True, label="Name", invisible=True)


class SequenceSummaryResponse(CamelModel):
    """List item for a sequence (without entries)."""
    id: UUID
    name: str
    visibility: SequenceVisibility
    pose_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SequenceDetailResponse(SequenceSummaryResponse):
    poses: List[SequencePoseResponse] = []

    @classmethod
    def from_sequence(cls, sequence) -> "SequenceDetailResponse":
        poses = [SequencePoseResponse.from_entry(e) for e in sequence.sequence_poses]
        return cls(
            id=sequence.id,
            name=sequence.name,
            visibility=sequence.visibility,
            pose_count=len(poses),
            created_at=sequence.created_at,
            updated_at=sequence.updated_at,
            poses=poses,
        )


class SequenceListResponse(CamelModel):
    data: List[SequenceSummaryResponse]
    total: int
