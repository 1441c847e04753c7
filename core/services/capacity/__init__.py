from core.services.capacity.concurrency import Deadline, UserLockRegistry
from core.services.capacity.conflicts import ConflictDetector
from core.services.capacity.service import AllocationService
from core.services.capacity.suggestions import DEFAULT_SUGGESTION_LIMIT, SuggestionRanker

__all__ = [
    "AllocationService",
    "ConflictDetector",
    "SuggestionRanker",
    "DEFAULT_SUGGESTION_LIMIT",
    "Deadline",
    "UserLockRegistry",
]
