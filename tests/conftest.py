"""
Shared pytest configuration and fixtures for stv-tally.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from data.election_parser import ElectionParser  # noqa: E402


@pytest.fixture
def abc_names():
    """Three-candidate roster used by the worked scenarios."""
    return ["A", "B", "C"]


@pytest.fixture
def scenario_b_ballots():
    """Two ballots A>B>C and one B>A>C."""
    return [
        [1, 2, 3],
        [1, 2, 3],
        [2, 1, 3],
    ]


@pytest.fixture
def roster_file(tmp_path):
    """Write a roster file and return its path."""

    def _write(names, seats, selector, name="roster.txt"):
        lines = [str(len(names)), str(seats), *names, str(selector)]
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def ballot_dir(tmp_path):
    """Write one file per ballot into a directory and return it."""

    def _write(ballots, name="ballots"):
        directory = tmp_path / name
        directory.mkdir()
        for i, ranks in enumerate(ballots, 1):
            (directory / f"vote_{i:03d}.txt").write_text(
                "\n".join(str(r) for r in ranks) + "\n"
            )
        return directory

    return _write


@pytest.fixture
def abc_parser():
    """Parser with the A, B, C roster loaded (2 seats, Droop)."""
    parser = ElectionParser()
    parser.parse_roster(["3", "2", "A", "B", "C", "1"])
    return parser


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (files on disk, full pipeline)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed counts)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
