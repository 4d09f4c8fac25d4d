class ScheduleError(ValueError):
    """Base class for invalid scheduling input."""


class InvalidDateError(ScheduleError):
    """Raised when a value cannot be turned into a calendar date."""


class InvalidRangeError(ScheduleError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start, end) -> None:
        super().__init__(f"end date {end} is before start date {start}")
        self.start = start
        self.end = end
