"""
Golden dataset validation tests.

These tests run the tally engine against hand-computed micro datasets
to ensure algorithmic correctness on known scenarios.
"""

import json
from pathlib import Path

import pytest

from data.results import format_winners
from tally import NO_PREFERENCE, QuotaRule, TallyEngine, calculate_quota

DATASETS = ["scenario_a", "scenario_b", "transfer_chain", "heavy_truncation"]


def load_golden_dataset(name):
    """Load a golden dataset from JSON file."""
    golden_dir = Path(__file__).parent / "micro"
    with open(golden_dir / f"{name}.json") as f:
        return json.load(f)


def build_golden_engine(dataset):
    """
    Build an engine from a golden dataset.

    Dataset ballots list candidate ids in preference order; the engine wants
    one rank per candidate in roster order.
    """
    candidate_ids = [c["id"] for c in dataset["candidates"]]
    names = [c["name"] for c in dataset["candidates"]]

    ballots = []
    for ballot in dataset["ballots"]:
        ranks = [NO_PREFERENCE] * len(candidate_ids)
        for rank_pos, candidate_id in enumerate(ballot["ranks"], 1):
            ranks[candidate_ids.index(candidate_id)] = rank_pos
        ballots.append(ranks)

    engine = TallyEngine(
        names,
        ballots,
        num_seats=dataset["seats"],
        quota_rule=QuotaRule(dataset["quota_rule"]),
    )
    return engine, candidate_ids


@pytest.mark.golden
@pytest.mark.parametrize("dataset_name", DATASETS)
def test_golden_count(dataset_name):
    """Run each golden dataset and compare with the hand count."""
    dataset = load_golden_dataset(dataset_name)
    expected = dataset["hand_computed_results"]
    engine, candidate_ids = build_golden_engine(dataset)

    rounds = engine.run()

    assert rounds[0].quota == expected["quota"]
    assert len(rounds) == expected["rounds"]

    actual_winners = [candidate_ids[i] for i in engine.winners]
    assert actual_winners == expected["final_winners"], (
        f"Winners mismatch: expected {expected['final_winners']}, "
        f"got {actual_winners}"
    )

    actual_eliminated = [candidate_ids[i] for i in engine.eliminated]
    assert actual_eliminated == expected["elimination_order"]

    assert format_winners(engine.elected_names()) == expected["winner_text"]
    assert rounds[-1].exhausted_votes == pytest.approx(expected["final_exhausted"])


@pytest.mark.golden
@pytest.mark.parametrize("dataset_name", ["scenario_b", "transfer_chain"])
def test_first_choice_counts(dataset_name):
    """Initial totals equal the first-choice counts."""
    dataset = load_golden_dataset(dataset_name)
    engine, candidate_ids = build_golden_engine(dataset)

    expected = dataset["hand_computed_results"]["round_1"]["first_choice_counts"]
    for candidate in engine.pool:
        assert candidate.total == expected[str(candidate_ids[candidate.id])]


@pytest.mark.golden
@pytest.mark.parametrize("dataset_name", DATASETS)
def test_quota_calculation_invariant(dataset_name):
    """Test that the recorded quota follows the dataset's formula."""
    dataset = load_golden_dataset(dataset_name)

    expected_quota = calculate_quota(
        dataset["total_ballots"], dataset["seats"], QuotaRule(dataset["quota_rule"])
    )
    actual_quota = dataset["hand_computed_results"]["quota"]
    assert actual_quota == expected_quota, f"Quota calculation error in {dataset_name}"
    assert len(dataset["ballots"]) == dataset["total_ballots"]


@pytest.mark.golden
@pytest.mark.parametrize("dataset_name", DATASETS)
def test_winner_count_invariant(dataset_name):
    """Test that exactly the right number of winners are selected."""
    dataset = load_golden_dataset(dataset_name)

    expected_seats = dataset["seats"]
    actual_winners = len(dataset["hand_computed_results"]["final_winners"])

    assert actual_winners == expected_seats, (
        f"Wrong number of winners in {dataset_name}: expected {expected_seats}, "
        f"got {actual_winners}"
    )
