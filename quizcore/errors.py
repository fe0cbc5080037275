"""Error types raised by the quiz core."""


class QuizError(Exception):
    """Base class for quiz core errors."""


class LoadFailure(QuizError):
    """The question bank is missing, empty or malformed."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Failed to load question bank from {source}: {reason}")
        self.source = source
        self.reason = reason


class PersistenceFailure(QuizError):
    """A key/value store could not read, write or remove a value."""

    def __init__(self, operation: str, key: str, reason: object):
        super().__init__(f"Storage {operation} failed for {key!r}: {reason}")
        self.operation = operation
        self.key = key
