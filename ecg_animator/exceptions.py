from typing import Optional


class NonAdvancingCycleError(ValueError):
    """Raised when a beat's parameters reduce the cycle length to zero.

    Synthesizing such a cycle would never move time forward, so the
    configuration is rejected instead.
    """

    def __init__(self, message: str, beat_number: Optional[int] = None):
        super().__init__(message)
        self.beat_number = beat_number
