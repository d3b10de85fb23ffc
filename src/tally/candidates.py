import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List

from .ballot import Ballot
from .errors import InvariantViolation

logger = logging.getLogger(__name__)


class CandidateStatus(str, Enum):
    ACTIVE = "active"
    ELECTED = "elected"
    ELIMINATED = "eliminated"


@dataclass
class Candidate:
    """A roster entry and its running vote total."""

    id: int
    name: str
    total: float = 0.0
    status: CandidateStatus = CandidateStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is CandidateStatus.ACTIVE

    def _leave_count(self, status: CandidateStatus):
        if not self.is_active:
            raise InvariantViolation(
                f"Candidate {self.name} is already {self.status.value}"
            )
        self.status = status

    def elect(self):
        self._leave_count(CandidateStatus.ELECTED)

    def eliminate(self):
        self._leave_count(CandidateStatus.ELIMINATED)


def tie_break_key(candidate: Candidate):
    """Lowest total first; equal totals fall back to roster order."""
    return (candidate.total, candidate.id)


class CandidatePool:
    """
    Ordered roster of candidates.

    Roster order is fixed at creation and decides every tie.
    """

    def __init__(self, names: Iterable[str]):
        self.candidates: List[Candidate] = [
            Candidate(id=i, name=name) for i, name in enumerate(names)
        ]

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    def __getitem__(self, candidate_id: int) -> Candidate:
        return self.candidates[candidate_id]

    def active(self) -> List[Candidate]:
        return [c for c in self.candidates if c.is_active]

    def elected(self) -> List[Candidate]:
        return [c for c in self.candidates if c.status is CandidateStatus.ELECTED]

    def count_active(self) -> int:
        return len(self.active())

    def count_elected(self) -> int:
        return len(self.elected())

    def elected_names(self) -> List[str]:
        return [c.name for c in self.elected()]

    def recompute_totals(self, ballots: Iterable[Ballot]):
        """
        Replace each active candidate's total with the summed weight of the
        active ballots assigned to it.

        Args:
            ballots: Every ballot in the election
        """
        totals = {c.id: 0.0 for c in self.active()}
        for ballot in ballots:
            if ballot.is_active and ballot.assigned_to in totals:
                totals[ballot.assigned_to] += ballot.weight

        for candidate_id, total in totals.items():
            self.candidates[candidate_id].total = total

    def elect_all_remaining(self) -> List[Candidate]:
        remaining = self.active()
        for candidate in remaining:
            candidate.elect()
        return remaining

    def eliminate_lowest(self) -> Candidate:
        """
        Eliminate the active candidate with the lowest total.

        Ties go to the candidate earliest in the roster.

        Returns:
            The eliminated candidate
        """
        active = self.active()
        if not active:
            logger.error("Elimination requested with no active candidates")
            raise InvariantViolation("No active candidate left to eliminate")

        lowest = min(active, key=tie_break_key)
        lowest.eliminate()
        return lowest
