#!/usr/bin/env python3
"""
Run an STV count from roster and ballot files.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from data.election_parser import ElectionParser  # noqa: E402
from data.results import export_results, format_winners  # noqa: E402

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run STV count")
    parser.add_argument("roster", help="Path to roster file")
    parser.add_argument(
        "ballots",
        nargs="*",
        help="Ballot files, or directories holding one ballot file per voter",
    )
    parser.add_argument("--ballots-csv", help="CSV file with one ballot per row")
    parser.add_argument("--export", help="Export results to CSV file")
    parser.add_argument(
        "--verbose", action="store_true", help="Log individual ballot transfers"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    roster_path = Path(args.roster)
    if not roster_path.exists():
        logger.error(f"Roster file not found: {roster_path}")
        sys.exit(1)

    try:
        election = ElectionParser()
        roster = election.load_roster_file(roster_path)

        for ballot_arg in args.ballots:
            ballot_path = Path(ballot_arg)
            if ballot_path.is_dir():
                election.load_ballot_directory(ballot_path)
            else:
                election.load_ballot_file(ballot_path)

        if args.ballots_csv:
            election.load_ballot_csv(args.ballots_csv)

        logger.info(f"=== STV Count ({roster.num_seats} seats) ===")
        engine = election.build_engine()
        engine.run()

        print("\n=== Round-by-Round Results ===")
        round_summary = engine.get_round_summary()

        for round_obj in engine.rounds:
            round_data = round_summary[round_summary["round"] == round_obj.round_number]
            print(f"\nRound {round_obj.round_number}:")
            print(f"Quota: {round_obj.quota}")
            if round_obj.shortcut:
                print("Remaining candidates fill the remaining seats")

            for _, row in round_data.sort_values("votes", ascending=False).iterrows():
                status_symbol = {
                    "elected": "🏆",
                    "eliminated": "❌",
                    "continuing": "  ",
                    "already_elected": "✓ ",
                    "already_eliminated": "- ",
                }.get(row["status"], "  ")

                print(
                    f"  {status_symbol} {row['candidate_name']:25s}: {row['votes']:8.1f} votes"
                )

            if round_obj.exhausted_votes > 0:
                print(f"     {'Exhausted':25s}: {round_obj.exhausted_votes:8.1f} votes")

        print("\n=== Final Results ===")
        print(f"Elected ({len(engine.winners)} of {roster.num_seats} seats):")
        print(format_winners(engine.elected_names()))

        if args.export:
            results_path, rounds_path = export_results(engine, args.export)
            print(f"\n✓ Final results exported to: {results_path}")
            print(f"✓ Round summary exported to: {rounds_path}")

    except Exception as e:
        logger.error(f"Error running STV count: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
