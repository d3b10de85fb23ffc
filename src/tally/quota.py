from enum import Enum

HARE_SELECTOR = 0


class QuotaRule(str, Enum):
    """Quota formula used to decide automatic election."""

    HARE = "hare"
    DROOP = "droop"

    @classmethod
    def from_selector(cls, selector: int) -> "QuotaRule":
        """
        Map the roster file's quota selector to a rule.

        Args:
            selector: Integer read from the roster descriptor

        Returns:
            HARE for the literal 0, DROOP for anything else
        """
        return cls.HARE if selector == HARE_SELECTOR else cls.DROOP


def calculate_quota(total_ballots: int, num_seats: int, rule: QuotaRule) -> int:
    """
    Calculate the election threshold.

    Hare:  floor(total_ballots / num_seats)
    Droop: floor(total_ballots / (num_seats + 1)) + 1

    Args:
        total_ballots: Number of ballots assigned to a first preference
        num_seats: Number of seats to fill
        rule: Quota formula

    Returns:
        Integer quota
    """
    if rule is QuotaRule.HARE:
        return total_ballots // num_seats
    return (total_ballots // (num_seats + 1)) + 1
