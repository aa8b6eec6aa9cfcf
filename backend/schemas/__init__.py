from .common import CamelModel, ErrorResponse, HealthResponse
from .pose import (
    DifficultyFilter,
    PaginatedPoseResponse,
    PoseImport,
    PoseResponse,
    PoseSort,
    PoseVersionListResponse,
    PoseVersionResponse,
)
from .sequence import (
    SequenceCreate,
    SequenceDetailResponse,
    SequenceListResponse,
    SequencePoseCreate,
    SequencePoseResponse,
    SequencePoseUpdate,
    SequenceSummaryResponse,
    SequenceUpdate,
)

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
    # Pose
    "DifficultyFilter",
    "PaginatedPoseResponse",
    "PoseImport",
    "PoseResponse",
    "PoseSort",
    "PoseVersionListResponse",
    "PoseVersionResponse",
    # Sequence
    "SequenceCreate",
    "SequenceDetailResponse",
    "SequenceListResponse",
    "SequencePoseCreate",
    "SequencePoseResponse",
    "SequencePoseUpdate",
    "SequenceSummaryResponse",
    "SequenceUpdate",
]
