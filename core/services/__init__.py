from .capacity import (
    AllocationService,
    ConflictDetector,
    Deadline,
    SuggestionRanker,
    UserLockRegistry,
)

__all__ = [
    "AllocationService",
    "ConflictDetector",
    "SuggestionRanker",
    "Deadline",
    "UserLockRegistry",
]
