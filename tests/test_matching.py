import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from secretsanta.services.matching import (
    AssignmentExhausted,
    InvalidExclusions,
    MatchingService,
    validate_exclusions,
)
from secretsanta.services.store import RedemptionStore


class ScriptedRandom(random.Random):
    """Keeps the participant order and picks targets from a fixed script."""

    def __init__(self, picks):
        super().__init__(0)
        self.picks = list(picks)

    def shuffle(self, x):
        pass

    def choice(self, seq):
        pick = self.picks.pop(0)
        assert pick in seq
        return pick


def resolve_all(service, matches):
    resolved = {}
    for pair in matches:
        target, found = service.find_target(pair.token)
        assert found
        resolved[pair.name] = target
    return resolved


def test_three_people_form_derangement():
    service = MatchingService(rng=random.Random(42))
    matches = service.generate_matches({"A": [], "B": [], "C": []})

    assert len(matches) == 3
    resolved = resolve_all(service, matches)
    assert set(resolved) == {"A", "B", "C"}
    assert set(resolved.values()) == {"A", "B", "C"}
    assert all(name != target for name, target in resolved.items())


@pytest.mark.parametrize("seed", range(20))
def test_two_people_always_swap(seed):
    service = MatchingService(rng=random.Random(seed))
    resolved = resolve_all(service, service.generate_matches({"A": [], "B": []}))
    assert resolved == {"A": "B", "B": "A"}


@pytest.mark.parametrize("seed", range(25))
def test_assignment_respects_exclusions(seed):
    participants = {
        "Ann": ["Bob"],
        "Bob": ["Ann"],
        "Cid": ["Dee"],
        "Dee": ["Cid"],
        "Eve": [],
        "Fay": ["Eve"],
    }
    service = MatchingService(rng=random.Random(seed), max_attempts=200)
    resolved = resolve_all(service, service.generate_matches(participants))

    assert set(resolved) == set(participants)
    assert len(set(resolved.values())) == len(participants)
    for name, target in resolved.items():
        assert target != name
        assert target not in participants[name]


def test_tokens_are_unique_and_hide_target():
    service = MatchingService(rng=random.Random(7))
    names = [f"person-{index}" for index in range(30)]
    matches = service.generate_matches({name: [] for name in names})

    tokens = [pair.token for pair in matches]
    assert len(set(tokens)) == len(tokens)
    assert not any(token in names for token in tokens)


def test_stray_exclusion_names_are_ignored():
    service = MatchingService(rng=random.Random(3))
    resolved = resolve_all(service, service.generate_matches({"A": ["Zed"], "B": ["Yan"]}))
    assert resolved == {"A": "B", "B": "A"}


def test_single_participant_excluding_strangers_is_invalid():
    with pytest.raises(InvalidExclusions) as exc_info:
        validate_exclusions({"A": ["B", "C"]})
    assert exc_info.value.name == "A"


def test_exclusions_covering_everyone_are_invalid():
    with pytest.raises(InvalidExclusions, match="exclude list for B contains all names"):
        validate_exclusions({"A": [], "B": ["C", "A"], "C": []})


def test_invalid_exclusions_write_nothing():
    store = RedemptionStore()
    service = MatchingService(store=store)
    with pytest.raises(InvalidExclusions):
        service.generate_matches({"A": ["B"], "B": []})
    assert len(store) == 0


def test_unsatisfiable_constraints_exhaust_attempts():
    store = RedemptionStore()
    issued = []

    def token_factory():
        issued.append(f"t{len(issued)}")
        return issued[-1]

    service = MatchingService(store=store, rng=random.Random(1), token_factory=token_factory)
    # A and B can only give to C.
    with pytest.raises(AssignmentExhausted) as exc_info:
        service.generate_matches({"A": ["B"], "B": ["A"], "C": []})

    assert exc_info.value.attempts == 10
    assert issued
    assert len(store) == 0


def test_failed_attempt_is_retried_without_leaving_tokens():
    store = RedemptionStore()
    # First pass: A->B, B->A, C is stuck. Second pass: A->B, B->C, C->A.
    rng = ScriptedRandom(["B", "A", "B", "C", "A"])
    service = MatchingService(store=store, rng=rng)

    matches = service.generate_matches({"A": [], "B": [], "C": []})

    assert len(matches) == 3
    assert len(store) == 3
    assert resolve_all(service, matches) == {"A": "B", "B": "C", "C": "A"}


def test_empty_participant_set_yields_no_matches():
    service = MatchingService()
    assert service.generate_matches({}) == []


def test_find_target_is_one_time():
    service = MatchingService(rng=random.Random(5))
    matches = service.generate_matches({"A": [], "B": []})
    token = matches[0].token

    assert service.find_target(token)[1] is True
    assert service.find_target(token) == ("", False)


def test_find_target_unknown_token():
    assert MatchingService().find_target("nope") == ("", False)


def test_clear_matches_invalidates_tokens():
    service = MatchingService(rng=random.Random(11))
    matches = service.generate_matches({"A": [], "B": [], "C": []})
    service.clear_matches()
    assert all(service.find_target(pair.token) == ("", False) for pair in matches)


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        MatchingService(max_attempts=0)


def test_bare_string_exclusions_are_rejected():
    with pytest.raises(TypeError, match="Exclusions for A"):
        MatchingService().generate_matches({"A": "Bob", "Bob": [], "Cid": []})


def test_large_group_is_assigned():
    names = [f"person-{index}" for index in range(300)]
    participants = {name: [names[(index + 1) % len(names)]] for index, name in enumerate(names)}
    service = MatchingService(rng=random.Random(17))

    resolved = resolve_all(service, service.generate_matches(participants))

    assert len(set(resolved.values())) == len(names)
    assert all(target != name and target not in participants[name] for name, target in resolved.items())


def test_generation_runs_alongside_redemption():
    service = MatchingService(rng=random.SystemRandom())
    names = {f"person-{index}": [] for index in range(40)}
    previous = [pair.token for _ in range(5) for pair in service.generate_matches(names)]

    def redeem(token):
        return service.find_target(token)[1]

    def generate(_):
        return service.generate_matches(names)

    with ThreadPoolExecutor(max_workers=8) as pool:
        redemptions = [pool.submit(redeem, token) for token in previous]
        retries = [pool.submit(redeem, token) for token in previous]
        runs = [pool.submit(generate, index) for index in range(10)]
        redeemed = [future.result() for future in redemptions]
        redeemed_again = [future.result() for future in retries]
        new_runs = [future.result() for future in runs]

    found_counts = [int(first) + int(second) for first, second in zip(redeemed, redeemed_again)]
    assert found_counts == [1] * len(previous)

    for matches in new_runs:
        assert len(matches) == len(names)
        resolved = resolve_all(service, matches)
        assert sorted(resolved.values()) == sorted(names)
        assert all(name != target for name, target in resolved.items())
    assert len(service.store) == 0
