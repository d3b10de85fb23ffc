class InvariantViolation(RuntimeError):
    """Raised when the count reaches a state the tally rules forbid."""
