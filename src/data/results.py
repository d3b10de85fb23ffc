import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

from tally import TallyEngine

logger = logging.getLogger(__name__)

WINNER_SEPARATOR = ", "


def format_winners(names: Sequence[str]) -> str:
    """
    Join elected candidate names for display.

    Args:
        names: Elected names in roster order

    Returns:
        Names separated by ", " (e.g. "A, B")
    """
    return WINNER_SEPARATOR.join(names)


def export_results(
    engine: TallyEngine, export_path: Union[str, Path]
) -> Tuple[Path, Path]:
    """
    Write final results and the round summary as CSV files.

    Final results go to ``<stem>.csv`` and the round summary to
    ``<stem>_rounds.csv`` next to it.

    Args:
        engine: Engine that has finished its count
        export_path: Base path for the exported files

    Returns:
        Paths of the final results file and the round summary file
    """
    export_path = Path(export_path)
    results_path = export_path.with_suffix(".csv")
    rounds_path = export_path.with_stem(export_path.stem + "_rounds").with_suffix(
        ".csv"
    )

    engine.get_final_results().to_csv(results_path, index=False)
    engine.get_round_summary().to_csv(rounds_path, index=False)

    logger.info(f"Final results exported to: {results_path}")
    logger.info(f"Round summary exported to: {rounds_path}")
    return results_path, rounds_path
