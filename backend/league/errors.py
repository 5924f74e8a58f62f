class LeagueError(Exception):
    """Base class for conditions surfaced to API callers."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(LeagueError):
    status_code = 404


class InvalidInput(LeagueError):
    status_code = 400


class ReconciliationRequired(LeagueError):
    """A finished fixture was resubmitted with a different scoreline.

    Aggregates already include the first result; fixing them is a manual
    job (see ``flask league recompute``).
    """

    status_code = 409


class StorageUnavailable(LeagueError):
    status_code = 503
