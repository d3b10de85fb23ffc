import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .errors import InvariantViolation

if TYPE_CHECKING:
    from .candidates import CandidatePool

logger = logging.getLogger(__name__)

# Rank value for a candidate the voter did not rank
NO_PREFERENCE = -1
FIRST_RANK = 1


class BallotStatus(str, Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


@dataclass
class Ballot:
    """
    One voter's ranked preferences plus the state the count moves along.

    ``ranks`` is indexed by candidate id in roster order; each entry is the
    rank given to that candidate or NO_PREFERENCE.
    """

    ranks: Tuple[int, ...]
    current_rank: int = FIRST_RANK
    weight: float = 1.0
    assigned_to: Optional[int] = None
    status: BallotStatus = BallotStatus.ACTIVE
    ballot_id: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_ranks(
        cls, ranks: Sequence[int], ballot_id: Optional[str] = None
    ) -> "Ballot":
        return cls(ranks=tuple(int(r) for r in ranks), ballot_id=ballot_id)

    @property
    def is_active(self) -> bool:
        return self.status is BallotStatus.ACTIVE

    def candidate_at_rank(self, rank: int) -> Optional[int]:
        """
        Find the candidate this ballot ranks at ``rank``.

        Args:
            rank: Rank position to look up

        Returns:
            Candidate id, or None if no candidate holds that rank. When the
            voter gave the same rank twice the earlier candidate is used.
        """
        matches = [cid for cid, r in enumerate(self.ranks) if r == rank]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                f"Ballot {self.ballot_id or '?'} ranks candidates {matches} "
                f"equally at {rank}; using {matches[0]}"
            )
        return matches[0]

    def first_preference(self) -> Optional[int]:
        return self.candidate_at_rank(FIRST_RANK)

    def next_destination(self, pool: "CandidatePool") -> Optional[int]:
        """
        Advance the rank pointer to the next continuing candidate.

        Ranks whose candidate is already elected or eliminated are skipped,
        as are ranks nobody holds.

        Args:
            pool: Candidate pool giving each candidate's status

        Returns:
            Candidate id of the new destination, or None once the pointer
            runs past the end of the ranking
        """
        while self.current_rank < len(self.ranks):
            self.current_rank += 1
            candidate_id = self.candidate_at_rank(self.current_rank)
            if candidate_id is not None and pool[candidate_id].is_active:
                return candidate_id
        return None

    def attenuate(self, factor: float):
        """Scale the weight by ``factor``; weights may only go down."""
        if not 0 <= factor <= 1:
            logger.error(
                f"Refusing attenuation factor {factor} on ballot {self.ballot_id}"
            )
            raise InvariantViolation(f"Attenuation factor {factor} outside [0, 1]")
        self.weight *= factor

    def assign(self, candidate_id: int):
        if not self.is_active:
            raise InvariantViolation("Exhausted ballots cannot be reassigned")
        self.assigned_to = candidate_id

    def mark_exhausted(self):
        self.status = BallotStatus.EXHAUSTED
        self.assigned_to = None
