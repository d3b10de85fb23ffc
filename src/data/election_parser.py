import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Type, Union

import pandas as pd

from tally import Ballot, QuotaRule, TallyEngine
from tally.ballot import FIRST_RANK, NO_PREFERENCE

from .errors import (
    BallotLengthMismatch,
    ElectionInputError,
    MalformedBallot,
    MalformedHeader,
    NoTopChoice,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class Roster:
    """Parsed roster descriptor."""

    names: Tuple[str, ...]
    num_seats: int
    quota_rule: QuotaRule

    @property
    def num_candidates(self) -> int:
        return len(self.names)


def _parse_int(
    text: str,
    what: str,
    error_cls: Type[ElectionInputError],
    source: Optional[PathLike] = None,
    line: Optional[int] = None,
) -> int:
    try:
        return int(text.strip())
    except (TypeError, ValueError):
        raise error_cls(f"{what} must be an integer, got {text!r}", source, line)


class ElectionParser:
    """
    Reads the roster and ballot descriptors and builds a TallyEngine.

    All validation happens here; the engine assumes well-formed input.
    """

    def __init__(self):
        self.roster: Optional[Roster] = None
        self.ballots: List[Ballot] = []

    def load_roster_file(self, roster_path: PathLike) -> Roster:
        """
        Load the roster descriptor from a file.

        Args:
            roster_path: Path to the roster file

        Returns:
            Parsed roster
        """
        logger.info(f"Loading roster from: {roster_path}")
        with open(roster_path, "r") as f:
            return self.parse_roster(f.read().splitlines(), source=roster_path)

    def parse_roster(
        self, lines: Iterable[str], source: Optional[PathLike] = None
    ) -> Roster:
        """
        Parse roster lines: candidate count, seat count, one name per
        candidate, then the quota selector (0 for Hare, otherwise Droop).
        Blank lines before and after the roster are ignored.

        Args:
            lines: Roster text split into lines
            source: Where the lines came from, for error messages

        Returns:
            Parsed roster
        """
        entries = [(number, text.strip()) for number, text in enumerate(lines, 1)]
        while entries and not entries[0][1]:
            entries.pop(0)
        while entries and not entries[-1][1]:
            entries.pop()

        def entry(index: int, what: str) -> Tuple[int, str]:
            if index >= len(entries):
                raise MalformedHeader(f"Missing {what}", source)
            line, text = entries[index]
            if not text:
                raise MalformedHeader(
                    f"Blank line where {what} expected", source, line
                )
            return line, text

        line, text = entry(0, "candidate count")
        num_candidates = _parse_int(
            text, "Candidate count", MalformedHeader, source, line
        )
        if num_candidates < 1:
            raise MalformedHeader("Candidate count must be positive", source, line)

        line, text = entry(1, "seat count")
        num_seats = _parse_int(text, "Seat count", MalformedHeader, source, line)
        if num_seats < 1:
            raise MalformedHeader("Seat count must be positive", source, line)
        if num_seats > num_candidates:
            raise MalformedHeader(
                f"{num_seats} seats exceed {num_candidates} candidates", source, line
            )

        names = tuple(
            entry(2 + i, f"name of candidate {i + 1}")[1] for i in range(num_candidates)
        )

        line, text = entry(2 + num_candidates, "quota selector")
        selector = _parse_int(text, "Quota selector", MalformedHeader, source, line)

        if len(entries) > 3 + num_candidates:
            logger.warning(
                f"Ignoring {len(entries) - 3 - num_candidates} trailing roster lines"
            )

        self.roster = Roster(
            names=names,
            num_seats=num_seats,
            quota_rule=QuotaRule.from_selector(selector),
        )
        self.ballots = []

        logger.info(
            f"Found {num_candidates} candidates for {num_seats} seats "
            f"({self.roster.quota_rule.value} quota)"
        )
        return self.roster

    def _require_roster(self) -> Roster:
        if self.roster is None:
            raise RuntimeError("Must load roster first")
        return self.roster

    def add_ballot(
        self,
        ranks: Sequence[Union[int, str]],
        ballot_id: Optional[str] = None,
        source: Optional[PathLike] = None,
        line: Optional[int] = None,
    ) -> Ballot:
        """
        Validate one voter's ranks and add the ballot to the election.

        Args:
            ranks: One rank per candidate in roster order, -1 for unranked
            ballot_id: Identifier used in log and error messages
            source: Where the ballot came from, for error messages
            line: Line of ``source`` holding the ballot, when it has one

        Returns:
            The new ballot
        """
        roster = self._require_roster()
        if ballot_id is None:
            ballot_id = str(len(self.ballots) + 1)

        if len(ranks) != roster.num_candidates:
            raise BallotLengthMismatch(
                f"Ballot {ballot_id} has {len(ranks)} entries, expected "
                f"{roster.num_candidates}",
                source,
                line,
            )

        values = []
        for position, rank in enumerate(ranks, 1):
            if isinstance(rank, int):
                values.append(rank)
                continue
            values.append(
                _parse_int(
                    rank, "Ballot entry", MalformedBallot, source, line or position
                )
            )

        if FIRST_RANK not in values:
            raise NoTopChoice(
                f"Ballot {ballot_id} ranks no candidate first", source, line
            )

        unusable = [
            v for v in values if v != NO_PREFERENCE and not 1 <= v <= len(values)
        ]
        if unusable:
            logger.warning(
                f"Ballot {ballot_id} has ranks {unusable} that are never reached"
            )

        ballot = Ballot.from_ranks(values, ballot_id=ballot_id)
        self.ballots.append(ballot)
        return ballot

    def parse_ballot(
        self,
        lines: Iterable[str],
        ballot_id: Optional[str] = None,
        source: Optional[PathLike] = None,
    ) -> Ballot:
        """Parse a voting slip: one rank per line, in roster order."""
        self._require_roster()
        entries = [text.strip() for text in lines if text.strip()]
        return self.add_ballot(entries, ballot_id=ballot_id, source=source)

    def load_ballot_file(self, ballot_path: PathLike) -> Ballot:
        """
        Load a single voter's slip from a file.

        Args:
            ballot_path: Path to the ballot file

        Returns:
            The new ballot
        """
        ballot_path = Path(ballot_path)
        with open(ballot_path, "r") as f:
            return self.parse_ballot(
                f.read().splitlines(), ballot_id=ballot_path.name, source=ballot_path
            )

    def load_ballot_directory(self, directory: PathLike) -> int:
        """
        Load every file in a directory as one ballot, in name order.

        Returns:
            Number of ballots loaded
        """
        self._require_roster()
        paths = sorted(p for p in Path(directory).iterdir() if p.is_file())
        for path in paths:
            self.load_ballot_file(path)

        logger.info(f"Loaded {len(paths)} ballots from {directory}")
        return len(paths)

    def load_ballot_csv(self, csv_path: PathLike) -> int:
        """
        Load ballots from a CSV table, one row per voter and one column per
        candidate in roster order. A header row of candidate names is
        skipped.

        Args:
            csv_path: Path to the CSV file

        Returns:
            Number of ballots loaded
        """
        roster = self._require_roster()
        logger.info(f"Loading ballots from: {csv_path}")

        try:
            table = pd.read_csv(
                csv_path, header=None, dtype=str, keep_default_na=False
            )
        except pd.errors.EmptyDataError:
            logger.warning(f"No ballots found in {csv_path}")
            return 0
        except pd.errors.ParserError as e:
            raise BallotLengthMismatch(f"Ragged ballot table: {e}", csv_path)

        first_line = 1
        if not table.empty:
            header = [str(v).strip() for v in table.iloc[0]]
            if header == list(roster.names):
                table = table.iloc[1:]
                first_line = 2

        loaded = 0
        for offset, row in enumerate(table.itertuples(index=False)):
            line = first_line + offset
            entries = [str(v).strip() for v in row if str(v).strip()]
            if len(entries) != roster.num_candidates:
                raise BallotLengthMismatch(
                    f"Row has {len(entries)} entries, expected {roster.num_candidates}",
                    csv_path,
                    line,
                )
            self.add_ballot(
                entries, ballot_id=f"row_{line}", source=csv_path, line=line
            )
            loaded += 1

        logger.info(f"Loaded {loaded} ballots")
        return loaded

    def build_engine(self) -> TallyEngine:
        """Create a TallyEngine over the loaded roster and ballots."""
        roster = self._require_roster()
        if not self.ballots:
            logger.warning("No ballots loaded; every candidate starts at zero")

        return TallyEngine(
            candidate_names=roster.names,
            ballots=self.ballots,
            num_seats=roster.num_seats,
            quota_rule=roster.quota_rule,
        )
