# Services are imported by module where needed, e.g.:
# from services import sequences as sequence_service
# from services.sequence_poses import SequencePositionManager

__all__ = []
