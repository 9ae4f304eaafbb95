"""
Domain errors.

Lookup misses are not errors: repositories return None for a task or
entry that does not exist.
"""


class MariError(Exception):
    """Base class for all application errors"""


class NotInitializedError(MariError):
    """The store was used before init_db() opened it"""


class ValidationError(MariError, ValueError):
    """Invalid input, e.g. an empty task name"""


class StorageIOError(MariError):
    """The underlying database failed; the original error is chained as __cause__"""
