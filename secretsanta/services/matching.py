from __future__ import annotations

import random
import secrets
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from loguru import logger

from secretsanta.services.store import RedemptionStore

DEFAULT_MAX_ATTEMPTS = 10


class MatchingError(RuntimeError):
    pass


class InvalidExclusions(MatchingError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"exclude list for {name} contains all names")


class AssignmentExhausted(MatchingError):
    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__("could not generate correct matches from input given")


@dataclass(frozen=True)
class MatchPair:
    name: str
    token: str


@dataclass
class AttemptResult:
    pairs: List[MatchPair] = field(default_factory=list)
    entries: List[Tuple[str, str]] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.gaps


def new_token() -> str:
    return secrets.token_urlsafe(16)


def _normalize(participants: Mapping[str, Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    normalized = {}
    for name, excludes in participants.items():
        if isinstance(excludes, str):
            raise TypeError(f"Exclusions for {name} must be a collection of names, not a string.")
        normalized[name] = frozenset(excludes or ())
    return normalized


def validate_exclusions(participants: Mapping[str, Iterable[str]]) -> None:
    """Reject a participant whose exclusions, plus themselves, cover everyone.

    Exclusion names that are not participants do not count towards the cover.
    """
    exclusions = _normalize(participants)
    all_names = frozenset(exclusions)
    for name in sorted(exclusions):
        if (exclusions[name] & all_names) | {name} == all_names:
            raise InvalidExclusions(name)


def _attempt(
    exclusions: Dict[str, FrozenSet[str]],
    rng: random.Random,
    token_factory: Callable[[], str],
) -> AttemptResult:
    result = AttemptResult()
    candidates = sorted(exclusions)
    order = list(candidates)
    rng.shuffle(order)
    taken: set = set()

    for name in order:
        blocked = exclusions[name]
        pool = [n for n in candidates if n != name and n not in blocked and n not in taken]
        if not pool:
            logger.bind(name=name).debug("No options left to draw from")
            result.gaps.append(name)
            continue

        target = rng.choice(pool)
        taken.add(target)
        token = token_factory()
        result.entries.append((token, target))
        result.pairs.append(MatchPair(name=name, token=token))

    return result


class MatchingService:
    """Generates secret matches and redeems their one-time tokens."""

    def __init__(
        self,
        store: Optional[RedemptionStore] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
        token_factory: Callable[[], str] = new_token,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.store = store if store is not None else RedemptionStore()
        self.max_attempts = max_attempts
        self._rng = rng if rng is not None else random.SystemRandom()
        self._token_factory = token_factory

    def generate_matches(self, participants: Mapping[str, Iterable[str]]) -> List[MatchPair]:
        validate_exclusions(participants)
        exclusions = _normalize(participants)

        for attempt in range(1, self.max_attempts + 1):
            result = _attempt(exclusions, self._rng, self._token_factory)
            if result.complete:
                # Only a complete attempt reaches the store.
                self.store.put_many(result.entries)
                logger.bind(participants=len(exclusions), attempt=attempt).info("Matches generated")
                return result.pairs
            logger.bind(attempt=attempt, gaps=len(result.gaps)).debug("Attempt left participants unassigned")

        logger.bind(participants=len(exclusions), attempts=self.max_attempts).warning(
            "Failed to generate matches"
        )
        raise AssignmentExhausted(self.max_attempts)

    def find_target(self, token: str) -> Tuple[str, bool]:
        return self.store.take_once(token)

    def clear_matches(self) -> None:
        self.store.clear()
        logger.info("Matches cleared")
