"""Selection and rotation of service-account keys."""

from .executor import RotationExecutor, RotationResult
from .manager import RotationManager, RunReport, key_provider_scopes, validate_flags
from .selector import CandidateSelector, RotationCandidate, filter_keys, rotation_candidates

__all__ = [
    "CandidateSelector",
    "RotationCandidate",
    "RotationExecutor",
    "RotationManager",
    "RotationResult",
    "RunReport",
    "filter_keys",
    "key_provider_scopes",
    "rotation_candidates",
    "validate_flags",
]
