from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .common import CamelModel
from .validators import clean_text


class DifficultyFilter(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PoseSort(str, Enum):
    NAME = "name"
    NAME_DESC = "-name"
    DIFFICULTY = "difficulty"
    DIFFICULTY_DESC = "-difficulty"


class PoseResponse(CamelModel):
    id: UUID
    name: str
    sanskrit_name: Optional[str] = None
    description: Optional[str] = None
    difficulty: str
    type: str
    image_url: Optional[str] = None
    image_alt: str
    image_license: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_pose(cls, pose) -> "PoseResponse":
        # Lookup rows are optional on the pose; fall back to neutral labels
        return cls(
            id=pose.id,
            name=pose.name,
            sanskrit_name=pose.sanskrit_name,
            description=pose.description,
            difficulty=pose.difficulty.name if pose.difficulty else "beginner",
            type=pose.pose_type.name if pose.pose_type else "unknown",
            image_url=pose.image_url,
            image_alt=pose.image_alt,
            image_license=pose.image_license,
            created_at=pose.created_at,
            updated_at=pose.updated_at,
        )


class PaginatedPoseResponse(CamelModel):
    data: List[PoseResponse]
    page: int
    limit: int
    total: int


class PoseVersionResponse(CamelModel):
    id: UUID
    pose_id: UUID
    version: int
    name: str
    sanskrit_name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class PoseVersionListResponse(CamelModel):
    data: List[PoseVersionResponse]
    total: int


class PoseImport(CamelModel):
    """One pose record of a catalog import file."""
    name: str = Field(..., min_length=1, max_length=200)
    sanskrit_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    difficulty: Optional[DifficultyFilter] = None
    type: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    image_alt: str = Field(..., min_length=1)
    image_license: Optional[str] = None

    @field_validator("name", "image_alt", mode="before")
    @classmethod
    def normalize_required(cls, value: str) -> str:
        return clean_text(value, required=True)

    @field_validator("sanskrit_name", "description", "image_url", "image_license", mode="before")
    @classmethod
    def normalize_optional(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value, required=False)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Optional[str]) -> Optional[str]:
        value = clean_text(value, required=False)
        return value.lower() if isinstance(value, str) else value
