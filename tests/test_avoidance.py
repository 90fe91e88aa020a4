"""
Banker's Algorithm Tests

Tests the safety check and the request processor on the classic example,
boundary rejections, rollback and invariant preservation.
"""

import random
import sys
import threading
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import algorithms.avoidance as avoidance
from algorithms.avoidance import check_safety, request
from analysis.events import EventKind, Rejection
from models.system_state import SystemState
from utils.scenario_loader import sample_state


def _unsafe_state() -> SystemState:
    """Five processes where only P2 and P3 can finish."""
    return SystemState.from_matrices(
        total=[3, 3, 3],
        maximum=[[3, 3, 1], [1, 3, 3], [1, 1, 1], [2, 0, 0], [0, 2, 0]],
        allocation=[[1, 1, 0], [0, 1, 1], [1, 0, 1], [0, 0, 0], [0, 0, 0]]
    )


def test_classic_example_is_safe():
    """Scenario A: safe with the pass-order sequence P1, P3, P4, P0, P2."""
    state = sample_state()

    is_safe, order, trace = check_safety(state)

    assert is_safe
    assert order == [1, 3, 4, 0, 2]
    assert trace[0].kind == EventKind.SAFETY_START
    assert trace[0].work_before == [3, 3, 2]
    assert trace[-1].kind == EventKind.SAFE
    assert trace[-1].order == [1, 3, 4, 0, 2]


def test_safety_trace_records_work_updates():
    """Each completion records Work before and after releasing its allocation."""
    state = sample_state()

    _, _, trace = check_safety(state)
    finished = [e for e in trace if e.kind == EventKind.PROCESS_FINISHED]

    assert [e.process_id for e in finished] == [1, 3, 4, 0, 2]
    assert finished[0].work_before == [3, 3, 2]
    assert finished[0].need == [1, 2, 2]
    assert finished[0].allocation == [2, 0, 0]
    assert finished[0].work_after == [5, 3, 2]
    # P3 finishes in the same pass thanks to P1's release
    assert finished[1].work_before == [5, 3, 2]
    assert finished[-1].work_after == [10, 5, 7]


def test_same_pass_release_is_used_immediately():
    """A later index finishes in the same pass using an earlier release."""
    state = SystemState.from_matrices(
        total=[2],
        maximum=[[2], [1], [2]],
        allocation=[[1], [1], [0]]
    )
    # Available = [0]: pass one finishes P1 (work=1), pass two finishes P0 then P2
    is_safe, order, _ = check_safety(state)

    assert is_safe
    assert order == [1, 0, 2]

    chained = SystemState.from_matrices(
        total=[3],
        maximum=[[3], [1], [2]],
        allocation=[[1], [1], [0]]
    )
    # Available = [1]: P1 releases in pass one, so P2 also finishes in pass one before P0
    is_safe, order, _ = check_safety(chained)

    assert is_safe
    assert order == [1, 2, 0]


def test_unsafe_state_reports_remaining():
    """Unsafe: order lists only finished processes, the rest are remaining."""
    state = _unsafe_state()

    is_safe, order, trace = check_safety(state)

    assert not is_safe
    assert order == [2, 3]
    assert trace[-1].kind == EventKind.UNSAFE
    assert trace[-1].remaining == [0, 1, 4]
    assert trace[-1].order == [2, 3]


def test_safety_check_is_deterministic_and_read_only():
    """Two checks give identical results and leave the state untouched."""
    state = sample_state()
    before = state.copy()

    first = check_safety(state)
    second = check_safety(state)

    assert first[0] == second[0]
    assert first[1] == second[1]
    assert first[2] == second[2]
    assert state.equals(before)


def test_request_granted_when_safe():
    """Scenario B: P1 requests [1, 0, 2] and is granted."""
    state = sample_state()

    outcome = request(state, 1, [1, 0, 2])

    assert outcome.granted
    assert outcome.reason is None
    assert state.available.tolist() == [2, 3, 0]
    assert state.allocation[1].tolist() == [3, 0, 2]
    assert state.need[1].tolist() == [0, 2, 0]
    state.assert_invariants("after scenario B")

    kinds = [e.kind for e in outcome.trace]
    assert kinds[0] == EventKind.REQUEST_RECEIVED
    assert kinds[1] == EventKind.TENTATIVE_ALLOCATION
    assert EventKind.SAFE in kinds
    assert kinds[-1] == EventKind.REQUEST_GRANTED
    assert outcome.trace[-1].order == [1, 3, 4, 0, 2]


def test_request_beyond_available_after_grant_is_rejected_without_change():
    """P4 asks for [3, 3, 0] after scenario B: rejected, state unchanged."""
    state = sample_state()
    assert request(state, 1, [1, 0, 2]).granted
    after_b = state.copy()

    outcome = request(state, 4, [3, 3, 0])

    assert not outcome.granted
    assert outcome.reason == Rejection.EXCEEDS_AVAILABLE
    assert outcome.trace[-1].limit == [2, 3, 0]
    assert state.equals(after_b)


def test_unsafe_request_is_rolled_back():
    """P0 asks for [0, 2, 0] after scenario B: unsafe, rolled back exactly."""
    state = sample_state()
    assert request(state, 1, [1, 0, 2]).granted
    after_b = state.copy()

    outcome = request(state, 0, [0, 2, 0])

    assert not outcome.granted
    assert outcome.reason == Rejection.UNSAFE_AFTER_ALLOCATION
    assert state.equals(after_b)

    kinds = [e.kind for e in outcome.trace]
    assert EventKind.TENTATIVE_ALLOCATION in kinds
    assert EventKind.UNSAFE in kinds
    assert kinds[-1] == EventKind.ROLLED_BACK
    assert outcome.trace[-1].allocation == [0, 1, 0]


def test_boundary_rejections():
    """Invalid pid, wrong length and negative amounts are rejected in that order."""
    state = sample_state()
    before = state.copy()

    cases = [
        (5, [1, 1, 1], Rejection.INVALID_PROCESS_ID),
        (-1, [0, 0, 0], Rejection.INVALID_PROCESS_ID),
        (5, [1, 1], Rejection.INVALID_PROCESS_ID),
        (0, [1, 1], Rejection.DIMENSION_MISMATCH),
        (0, [1, 1, 1, 1], Rejection.DIMENSION_MISMATCH),
        (0, [-1, 0, 0], Rejection.NEGATIVE_REQUEST),
        (1, [2, 0, 0], Rejection.EXCEEDS_NEED),
        (0, [4, 0, 0], Rejection.EXCEEDS_AVAILABLE),
    ]

    for pid, req, expected in cases:
        outcome = request(state, pid, req)
        assert not outcome.granted, f"P{pid} {req} should be rejected"
        assert outcome.reason == expected, f"P{pid} {req}: {outcome.reason}"
        assert outcome.trace[-1].kind == EventKind.REQUEST_REJECTED
        assert outcome.trace[-1].reason == expected
        assert not outcome.events_of(EventKind.SAFETY_START), "No safety check on early rejection"
        assert state.equals(before)


def test_exceeds_need_reports_need():
    """The rejection event carries the Need vector it was checked against."""
    state = sample_state()

    outcome = request(state, 1, [2, 0, 0])

    assert outcome.trace[-1].limit == [1, 2, 2]


def test_zero_request_is_granted():
    """An all-zero request is valid and leaves a safe state as it was."""
    state = sample_state()
    before = state.copy()

    outcome = request(state, 2, [0, 0, 0])

    assert outcome.granted
    assert state.equals(before)


def test_invariants_hold_over_random_requests():
    """Any sequence of requests keeps the invariants and never commits an unsafe state."""
    rng = random.Random(42)
    state = sample_state()

    for _ in range(300):
        pid = rng.randint(-1, state.num_processes)
        length = rng.choice([2, 3, 3, 3, 3, 4])
        req = [rng.randint(-1, 3) for _ in range(length)]
        before = state.copy()

        outcome = request(state, pid, req)

        state.assert_invariants(f"after P{pid} {req}")
        if outcome.granted:
            assert check_safety(state)[0], "Granted request left the system unsafe"
        else:
            assert state.equals(before), f"Rejected {outcome.reason} mutated state"


def test_concurrent_requests_keep_invariants():
    """Requests from several threads are serialized by the state lock."""
    state = sample_state()
    errors = []

    def worker(seed):
        rng = random.Random(seed)
        for _ in range(50):
            pid = rng.randrange(state.num_processes)
            req = [rng.randint(0, 2) for _ in range(state.num_resources)]
            request(state, pid, req)
            with state.lock:
                errors.extend(state.violations())

    threads = [threading.Thread(target=worker, args=(seed,)) for seed in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert check_safety(state)[0]


def test_tentative_allocation_event_carries_available():
    """The tentative allocation event records the reduced Available vector."""
    state = sample_state()

    outcome = request(state, 1, [1, 0, 2])
    tentative = outcome.events_of(EventKind.TENTATIVE_ALLOCATION)[0]

    assert tentative.available == [2, 3, 0]
    assert tentative.allocation == [3, 0, 2]
    assert tentative.need == [0, 2, 0]


def test_oversized_request_exceeds_need():
    """Amounts beyond any integer array are rejected without touching state."""
    state = sample_state()
    before = state.copy()

    outcome = request(state, 1, [10**23, 0, 0])

    assert outcome.reason == Rejection.EXCEEDS_NEED
    assert state.equals(before)


def test_failure_during_safety_check_restores_state(monkeypatch):
    """An exception after the tentative allocation leaves the state as it was."""
    state = sample_state()
    before = state.copy()

    def failing_check(system_state):
        raise RuntimeError("safety check failed")

    monkeypatch.setattr(avoidance, "check_safety", failing_check)

    with pytest.raises(RuntimeError):
        request(state, 1, [1, 0, 2])

    assert state.equals(before)


def test_failed_invariant_check_restores_state(monkeypatch):
    """A commit that fails its invariant check is undone before the error propagates."""
    state = sample_state()
    before = state.copy()

    def failing_assert(context=""):
        raise AssertionError(f"invariants violated {context}")

    monkeypatch.setattr(state, "assert_invariants", failing_assert)

    with pytest.raises(AssertionError):
        request(state, 1, [1, 0, 2])

    assert state.equals(before)
