"""Shared exceptions for revision storage operations."""


class RevisionLogNotFoundError(Exception):
    """Raised when appending to a revision log that has not been created yet."""

    def __init__(self, log_path: str) -> None:
        self.log_path = log_path
        super().__init__(f"Revision log doesn't exist: {log_path}")


class RevisionLogParseError(Exception):
    """
    Raised when a line of a revision log can't be decoded into a record.

    Loading a log is all-or-nothing, so a single bad line fails the whole load.
    """

    def __init__(self, log_path: str, line_number: int, reason: str) -> None:
        self.log_path = log_path
        self.line_number = line_number
        super().__init__(f"Malformed revision record in {log_path} at line {line_number}: {reason}")


class EmptyHistoryError(Exception):
    """Raised when reconstructing content from a history with no records."""

    def __init__(self) -> None:
        super().__init__("No revisions to reconstruct content from")


class SaveQueueClosedError(Exception):
    """Raised when a save is submitted to a queue that is not running."""

    def __init__(self, message: str = "Save queue is not running") -> None:
        super().__init__(message)


class RevisionOrderError(Exception):
    """Raised when a record's ts isn't greater than the last ts already in its log."""

    def __init__(self, log_path: str, ts: int, last_ts: int) -> None:
        self.log_path = log_path
        self.ts = ts
        self.last_ts = last_ts
        super().__init__(
            f"Revision ts {ts} in {log_path} must be greater than the last ts {last_ts}",
        )
