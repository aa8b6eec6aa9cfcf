from .pose import Difficulty, Pose, PoseType
from .pose_version import PoseVersion
from .sequence import Sequence, SequencePose, SequenceVisibility
from .user import User

__all__ = [
    "Difficulty",
    "Pose",
    "PoseType",
    "PoseVersion",
    "Sequence",
    "SequencePose",
    "SequenceVisibility",
    "User",
]
