from secretsanta.services.matching import (
    AssignmentExhausted,
    InvalidExclusions,
    MatchingError,
    MatchingService,
    MatchPair,
    validate_exclusions,
)
from secretsanta.services.rate_limit import RateLimiter
from secretsanta.services.store import RedemptionStore

__all__ = [
    "AssignmentExhausted",
    "InvalidExclusions",
    "MatchingError",
    "MatchingService",
    "MatchPair",
    "RateLimiter",
    "RedemptionStore",
    "validate_exclusions",
]
