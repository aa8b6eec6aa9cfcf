"""
Domain errors raised by the services.

Each error carries a machine-readable `code` and the HTTP status it maps to.
A single handler in main.py turns them into

    {"error": {"code": ..., "message": ..., "details": {...}}}

so routes never build error responses by hand. Missing and not-owned
resources raise the same error on purpose: callers must not be able to tell
them apart.
"""

from typing import Any, Dict, Optional


class SequenceBuilderError(Exception):
    """Base class for all errors that are safe to show to API clients."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class UnauthorizedError(SequenceBuilderError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class SequenceNotFoundError(SequenceBuilderError):
    code = "SEQUENCE_NOT_FOUND"
    status_code = 404
    default_message = "Sequence not found or access denied"


class SequencePoseNotFoundError(SequenceBuilderError):
    code = "SEQUENCE_POSE_NOT_FOUND"
    status_code = 404
    default_message = "Sequence pose not found"


class PoseNotFoundError(SequenceBuilderError):
    # 400 when referenced from a request body; catalog reads pass 404
    code = "POSE_NOT_FOUND"
    status_code = 400
    default_message = "Pose not found"


class PoseVersionNotFoundError(SequenceBuilderError):
    code = "POSE_VERSION_NOT_FOUND"
    status_code = 400
    default_message = "Specified pose version not found"


class InvalidPositionError(SequenceBuilderError):
    code = "INVALID_POSITION"
    status_code = 400
    default_message = "Invalid position specified"

    def __init__(self, position: Optional[int], min_position: int, max_position: int):
        super().__init__(
            message=f"Position must be between {min_position} and {max_position}",
            details={
                "position": position,
                "min": min_position,
                "max": max_position,
            },
        )


class FeatureNotSupportedError(SequenceBuilderError):
    code = "FEATURE_NOT_SUPPORTED"
    status_code = 400
    default_message = (
        "Duration and instructions fields are not yet supported. "
        "Only position updates are available."
    )


class SequenceNameTakenError(SequenceBuilderError):
    code = "SEQUENCE_NAME_TAKEN"
    status_code = 409
    default_message = "A sequence with this name already exists"
