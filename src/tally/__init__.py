"""
Tally module for Single Transferable Vote counts.

This module provides the STV counting core:
- TallyEngine: Runs a count to completion and reports its rounds
- advance_round: One round transition over an explicit TallyState
- calculate_quota: Hare and Droop thresholds

Transfers follow the historical policy of moving every ballot held by an
elected candidate, uniformly attenuated.
"""

from .ballot import NO_PREFERENCE, Ballot, BallotStatus
from .candidates import Candidate, CandidatePool, CandidateStatus
from .config import ElectionConfig
from .engine import STVRound, TallyEngine, TallyPhase, TallyState, advance_round
from .errors import InvariantViolation
from .quota import QuotaRule, calculate_quota

__all__ = [
    "TallyEngine",
    "TallyState",
    "TallyPhase",
    "STVRound",
    "advance_round",
    "Ballot",
    "BallotStatus",
    "NO_PREFERENCE",
    "Candidate",
    "CandidatePool",
    "CandidateStatus",
    "ElectionConfig",
    "InvariantViolation",
    "QuotaRule",
    "calculate_quota",
]
