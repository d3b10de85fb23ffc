"""
Round transition tests.

These tests drive advance_round directly over an explicit TallyState and
check the invariants that must hold between rounds.
"""

import random

import pytest

from tally import (
    NO_PREFERENCE,
    Ballot,
    InvariantViolation,
    QuotaRule,
    TallyPhase,
    advance_round,
)
from tally.engine import initial_state


def _random_ballots(rng, num_candidates, count):
    ballots = []
    for i in range(count):
        ranked = rng.sample(range(num_candidates), rng.randint(1, num_candidates))
        ranks = [NO_PREFERENCE] * num_candidates
        for position, candidate_id in enumerate(ranked, 1):
            ranks[candidate_id] = position
        ballots.append(Ballot.from_ranks(ranks, ballot_id=str(i)))
    return ballots


def _elections():
    rng = random.Random(20150511)
    cases = []
    for num_candidates in (1, 2, 3, 5, 8):
        for num_seats in range(1, num_candidates + 1):
            for rule in QuotaRule:
                count = rng.randint(0, 40)
                cases.append((num_candidates, num_seats, rule, count, rng.random()))
    return cases


@pytest.mark.unit
def test_initial_state_assigns_first_preferences():
    ballots = [Ballot.from_ranks([2, 1, 3]), Ballot.from_ranks([1, NO_PREFERENCE, 2])]
    state = initial_state(["A", "B", "C"], ballots, 1, QuotaRule.DROOP)

    assert state.phase is TallyPhase.RUNNING
    assert [b.assigned_to for b in state.ballots] == [1, 0]
    assert [c.total for c in state.pool] == [1.0, 1.0, 0.0]
    assert state.config.total_ballots == 2
    assert state.config.quota == 2


@pytest.mark.unit
def test_advance_round_after_done_raises():
    state = initial_state(["A"], [Ballot.from_ranks([1])], 1, QuotaRule.HARE)

    record = advance_round(state)
    assert record.shortcut
    assert state.phase is TallyPhase.DONE

    with pytest.raises(InvariantViolation):
        advance_round(state)


@pytest.mark.unit
def test_seats_filled_finishes_without_round():
    state = initial_state(
        ["A", "B", "C"], [Ballot.from_ranks([1, 2, 3])] * 1, 1, QuotaRule.HARE
    )

    first = advance_round(state)
    assert first.winners_this_round == [0]
    assert state.phase is TallyPhase.RUNNING

    assert advance_round(state) is None
    assert state.phase is TallyPhase.DONE
    assert state.round_number == 1


@pytest.mark.invariant
@pytest.mark.parametrize("num_candidates,num_seats,rule,count,seed", _elections())
def test_count_invariants(num_candidates, num_seats, rule, count, seed):
    """Termination, weight monotonicity and shortcut conservation."""
    ballots = _random_ballots(random.Random(seed), num_candidates, count)
    names = [f"C{i}" for i in range(num_candidates)]
    state = initial_state(names, ballots, num_seats, rule)
    pool = state.pool

    while state.phase is TallyPhase.RUNNING:
        weights_before = [b.weight for b in state.ballots]
        resolved_before = pool.count_elected() + pool.count_active()

        record = advance_round(state)

        for before, ballot in zip(weights_before, state.ballots):
            assert ballot.weight <= before
            assert 0.0 <= ballot.weight <= 1.0
        assert pool.count_elected() <= num_seats

        if record is not None and record.shortcut:
            assert resolved_before == num_seats
            assert pool.count_elected() == num_seats

        for candidate in pool.active():
            held = sum(b.weight for b in state.ballots_held_by(candidate.id))
            assert candidate.total == pytest.approx(held)

        for ballot in state.ballots:
            assert ballot.is_active == (ballot.assigned_to is not None)

    assert state.round_number <= num_candidates
    assert len(state.history) <= num_candidates
    assert pool.count_elected() == num_seats


@pytest.mark.invariant
def test_tie_break_is_reproducible():
    """Identical input eliminates the same candidates in the same order."""
    ballots = [[1, 2, NO_PREFERENCE, NO_PREFERENCE]] * 2 + [
        [NO_PREFERENCE, NO_PREFERENCE, 1, 2]
    ] * 2

    def elimination_order():
        state = initial_state(
            ["A", "B", "C", "D"],
            [Ballot.from_ranks(r) for r in ballots],
            1,
            QuotaRule.DROOP,
        )
        order = []
        while state.phase is TallyPhase.RUNNING:
            record = advance_round(state)
            if record is not None:
                order.extend(record.eliminated_this_round)
        return order

    first = elimination_order()
    assert first[0] == 1  # B and D tie on zero; B is earlier
    for _ in range(5):
        assert elimination_order() == first
