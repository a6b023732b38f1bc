# insurdash/performance/exceptions.py
"""Errors raised by the insurance performance engine."""


class InvalidComparisonSelectionError(ValueError):
    """The comparison period is the current period; the caller must reset it."""

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(
            f"Comparison period '{period_id}' cannot be the same as the current period"
        )


class DataValidationError(ValueError):
    """The data source delivered records that do not fit the period shape."""
