from pathlib import Path
from typing import Optional, Union


class ElectionInputError(ValueError):
    """Base class for roster and ballot input that cannot be counted."""

    def __init__(
        self,
        message: str,
        source: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
    ):
        self.source = str(source) if source is not None else None
        self.line = line
        location = ""
        if self.source:
            location = f"{self.source}:{line}: " if line else f"{self.source}: "
        super().__init__(f"{location}{message}")


class MalformedHeader(ElectionInputError):
    """Roster counts, names or quota selector missing or not numeric."""


class BallotLengthMismatch(ElectionInputError):
    """Ballot does not give exactly one entry per candidate."""


class NoTopChoice(ElectionInputError):
    """Ballot ranks no candidate first."""


class MalformedBallot(ElectionInputError):
    """Ballot entry is not an integer."""
