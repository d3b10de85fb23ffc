from dataclasses import dataclass

from .errors import InvariantViolation
from .quota import QuotaRule, calculate_quota


@dataclass(frozen=True)
class ElectionConfig:
    """Fixed parameters of one count."""

    num_candidates: int
    num_seats: int
    quota_rule: QuotaRule
    total_ballots: int

    def __post_init__(self):
        if self.num_candidates < 1:
            raise InvariantViolation("Election needs at least one candidate")
        if self.num_seats < 1:
            raise InvariantViolation("Election needs at least one seat")
        if self.num_seats > self.num_candidates:
            raise InvariantViolation(
                f"Cannot fill {self.num_seats} seats from "
                f"{self.num_candidates} candidates"
            )

    @property
    def quota(self) -> int:
        return calculate_quota(self.total_ballots, self.num_seats, self.quota_rule)
