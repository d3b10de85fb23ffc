import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from .ballot import Ballot
from .candidates import Candidate, CandidatePool, CandidateStatus
from .config import ElectionConfig
from .errors import InvariantViolation
from .quota import QuotaRule

logger = logging.getLogger(__name__)


class TallyPhase(str, Enum):
    RUNNING = "running"
    DONE = "done"


@dataclass
class STVRound:
    """Represents one round of STV tabulation."""

    round_number: int
    continuing_candidates: List[int]
    vote_totals: Dict[int, float]
    quota: float
    winners_this_round: List[int]
    eliminated_this_round: List[int]
    transfers: Dict[int, Dict[int, float]]  # from_candidate -> {to_candidate: weight}
    exhausted_votes: float
    total_continuing_votes: float
    shortcut: bool = False


@dataclass
class TallyState:
    """
    Everything a count mutates, owned by one engine run.

    Ballot assignment lives on the ballots themselves; a candidate's
    holding is the set of active ballots whose ``assigned_to`` is its id.
    """

    config: ElectionConfig
    pool: CandidatePool
    ballots: List[Ballot]
    phase: TallyPhase = TallyPhase.RUNNING
    round_number: int = 0
    exhausted_votes: float = 0.0
    history: List[STVRound] = field(default_factory=list)

    @property
    def open_seats(self) -> int:
        return self.config.num_seats - self.pool.count_elected()

    def ballots_held_by(self, candidate_id: int) -> List[Ballot]:
        return [
            b for b in self.ballots if b.is_active and b.assigned_to == candidate_id
        ]

    def continuing_weight(self) -> float:
        return sum(b.weight for b in self.ballots if b.is_active)


def initial_state(
    candidate_names: Sequence[str],
    ballots: Iterable[Ballot],
    num_seats: int,
    quota_rule: QuotaRule,
) -> TallyState:
    """
    Build the starting state: every ballot sits with its first preference.

    The count works on fresh copies; the given ballots are left untouched.

    Args:
        candidate_names: Roster in order
        ballots: Validated ballots, one rank per candidate
        num_seats: Number of seats to fill
        quota_rule: Hare or Droop

    Returns:
        A RUNNING state with totals computed
    """
    pool = CandidatePool(candidate_names)
    ballots = [Ballot.from_ranks(b.ranks, ballot_id=b.ballot_id) for b in ballots]

    for ballot in ballots:
        if len(ballot.ranks) != len(pool):
            raise InvariantViolation(
                f"Ballot {ballot.ballot_id} has {len(ballot.ranks)} ranks "
                f"for {len(pool)} candidates"
            )
        top_choice = ballot.first_preference()
        if top_choice is None:
            raise InvariantViolation(f"Ballot {ballot.ballot_id} has no first choice")
        ballot.assign(top_choice)

    config = ElectionConfig(
        num_candidates=len(pool),
        num_seats=num_seats,
        quota_rule=quota_rule,
        total_ballots=len(ballots),
    )
    pool.recompute_totals(ballots)
    return TallyState(config=config, pool=pool, ballots=ballots)


def _transfer_ballots(
    state: TallyState, source: Candidate, quota: int
) -> Dict[int, float]:
    """
    Move every ballot held by ``source`` to its next continuing preference.

    Ballots leaving an elected candidate are all scaled by the same factor,
    ``(held - quota) // held``. The integer division reproduces the
    historical count: the factor is 0 whenever the quota is positive.

    Returns:
        Dictionary mapping destination candidate id to weight received
    """
    held = state.ballots_held_by(source.id)
    elected = source.status is CandidateStatus.ELECTED

    factor = 1
    if elected and held:
        factor = (len(held) - quota) // len(held)
        logger.info(
            f"Transferring {len(held)} ballots from {source.name} at factor {factor}"
        )

    moved: Dict[int, float] = {}
    for ballot in held:
        if elected:
            ballot.attenuate(factor)

        destination = ballot.next_destination(state.pool)
        if destination is None:
            ballot.mark_exhausted()
            state.exhausted_votes += ballot.weight
            logger.debug(f"Ballot {ballot.ballot_id} exhausted leaving {source.name}")
            continue

        ballot.assign(destination)
        moved[destination] = moved.get(destination, 0.0) + ballot.weight
        logger.debug(
            f"Ballot {ballot.ballot_id} moved {source.name} -> "
            f"{state.pool[destination].name} at weight {ballot.weight}"
        )

    for to_candidate, amount in moved.items():
        logger.info(f"  -> {amount:.1f} votes to {state.pool[to_candidate].name}")
    return moved


def _record_round(
    state: TallyState,
    winners: List[Candidate],
    eliminated: List[Candidate],
    transfers: Dict[int, Dict[int, float]],
    shortcut: bool = False,
) -> STVRound:
    pool = state.pool
    round_record = STVRound(
        round_number=state.round_number,
        continuing_candidates=[c.id for c in pool.active()],
        vote_totals={c.id: c.total for c in pool},
        quota=state.config.quota,
        winners_this_round=[c.id for c in winners],
        eliminated_this_round=[c.id for c in eliminated],
        transfers=transfers,
        exhausted_votes=state.exhausted_votes,
        total_continuing_votes=state.continuing_weight(),
        shortcut=shortcut,
    )
    state.history.append(round_record)
    return round_record


def advance_round(state: TallyState) -> Optional[STVRound]:
    """
    Run one round of the count against ``state``.

    Args:
        state: State of a RUNNING count, changed in place

    Returns:
        The round record, or None when the seats were already filled and the
        count simply finished
    """
    if state.phase is TallyPhase.DONE:
        raise InvariantViolation("Count has already finished")

    pool = state.pool
    config = state.config

    if state.open_seats == 0:
        state.phase = TallyPhase.DONE
        return None

    state.round_number += 1
    if state.round_number > config.num_candidates:
        logger.error(
            f"Round {state.round_number} exceeds the bound of "
            f"{config.num_candidates} rounds"
        )
        raise InvariantViolation("Count did not terminate within candidate bound")

    logger.info(f"=== Round {state.round_number} ===")

    # Remaining candidates exactly fill the open seats
    if pool.count_active() == state.open_seats:
        winners = pool.elect_all_remaining()
        state.phase = TallyPhase.DONE
        for candidate in winners:
            logger.info(f"Candidate {candidate.name} elected to a remaining seat")
        return _record_round(state, winners, [], {}, shortcut=True)

    quota = config.quota
    reaching = sorted(
        (c for c in pool.active() if c.total >= quota),
        key=lambda c: (-c.total, c.id),
    )
    if len(reaching) > state.open_seats:
        logger.warning(
            f"{len(reaching)} candidates reached quota {quota} for "
            f"{state.open_seats} open seats; electing the highest totals"
        )
    winners = sorted(reaching[: state.open_seats], key=lambda c: c.id)
    for candidate in winners:
        candidate.elect()
        logger.info(f"Candidate {candidate.name} elected with {candidate.total:.1f} votes")

    eliminated: List[Candidate] = []
    if not winners:
        lowest = pool.eliminate_lowest()
        eliminated.append(lowest)
        logger.info(f"Eliminating candidate {lowest.name} with {lowest.total:.1f} votes")

    transfers = {}
    for candidate in sorted(winners + eliminated, key=lambda c: c.id):
        transfers[candidate.id] = _transfer_ballots(state, candidate, quota)

    pool.recompute_totals(state.ballots)
    return _record_round(state, winners, eliminated, transfers)


class TallyEngine:
    """
    Single Transferable Vote tabulation engine.

    Reproduces one historical transfer policy: every ballot held by an
    elected candidate moves on, uniformly attenuated.
    """

    def __init__(
        self,
        candidate_names: Sequence[str],
        ballots: Iterable[Union[Ballot, Sequence[int]]],
        num_seats: int,
        quota_rule: QuotaRule = QuotaRule.DROOP,
    ):
        """
        Initialize the engine.

        Args:
            candidate_names: Roster in order; position is the candidate id
            ballots: Ballot objects or raw rank lists in roster order
            num_seats: Number of seats to fill
            quota_rule: Hare or Droop
        """
        prepared = [
            b if isinstance(b, Ballot) else Ballot.from_ranks(b, ballot_id=str(i))
            for i, b in enumerate(ballots, 1)
        ]
        self.state = initial_state(candidate_names, prepared, num_seats, quota_rule)

    @property
    def config(self) -> ElectionConfig:
        return self.state.config

    @property
    def pool(self) -> CandidatePool:
        return self.state.pool

    @property
    def rounds(self) -> List[STVRound]:
        return self.state.history

    @property
    def winners(self) -> List[int]:
        return [c.id for c in self.pool.elected()]

    @property
    def eliminated(self) -> List[int]:
        return [cid for r in self.rounds for cid in r.eliminated_this_round]

    def run(self) -> List[STVRound]:
        """
        Run the count to completion.

        Returns:
            List of STVRound objects representing each round
        """
        if self.state.phase is TallyPhase.RUNNING:
            logger.info("Starting STV tabulation")
            logger.info(f"Total ballots: {self.config.total_ballots}")
            logger.info(f"{self.config.quota_rule.value.title()} quota: {self.config.quota}")
            logger.info(f"Seats to fill: {self.config.num_seats}")

        while self.state.phase is TallyPhase.RUNNING:
            advance_round(self.state)

        logger.info(f"Winners: {self.elected_names()}")
        logger.info(f"Total rounds: {len(self.rounds)}")
        return self.rounds

    def elected_names(self) -> List[str]:
        """Names of the elected candidates in roster order."""
        return self.pool.elected_names()

    def get_round_summary(self) -> pd.DataFrame:
        """
        Get summary of all rounds as a DataFrame.

        Returns:
            DataFrame with one row per round and candidate
        """
        if not self.rounds:
            return pd.DataFrame()

        summary_data = []
        for round_obj in self.rounds:
            for candidate_id, votes in round_obj.vote_totals.items():
                summary_data.append(
                    {
                        "round": round_obj.round_number,
                        "candidate_id": candidate_id,
                        "candidate_name": self.pool[candidate_id].name,
                        "votes": votes,
                        "quota": round_obj.quota,
                        "status": self._get_candidate_status(candidate_id, round_obj),
                        "exhausted_votes": round_obj.exhausted_votes,
                    }
                )

        return pd.DataFrame(summary_data)

    def _get_candidate_status(self, candidate_id: int, round_obj: STVRound) -> str:
        """Get the status of a candidate in a given round."""
        if candidate_id in round_obj.winners_this_round:
            return "elected"
        elif candidate_id in round_obj.eliminated_this_round:
            return "eliminated"
        elif candidate_id not in round_obj.continuing_candidates:
            decided = self._round_decided(candidate_id)
            if decided is not None and decided < round_obj.round_number:
                if self.pool[candidate_id].status is CandidateStatus.ELECTED:
                    return "already_elected"
                return "already_eliminated"
        return "continuing"

    def _round_decided(self, candidate_id: int) -> Optional[int]:
        return next(
            (
                r.round_number
                for r in self.rounds
                if candidate_id in r.winners_this_round
                or candidate_id in r.eliminated_this_round
            ),
            None,
        )

    def get_final_results(self) -> pd.DataFrame:
        """
        Get final election results.

        Returns:
            DataFrame with final results for all candidates, in roster order
        """
        if not self.rounds:
            return pd.DataFrame()

        results_data = []
        for candidate in self.pool:
            results_data.append(
                {
                    "candidate_id": candidate.id,
                    "candidate_name": candidate.name,
                    "final_votes": candidate.total,
                    "status": (
                        "elected"
                        if candidate.status is CandidateStatus.ELECTED
                        else "not_elected"
                    ),
                    "decided_round": self._round_decided(candidate.id),
                }
            )

        return pd.DataFrame(results_data)
