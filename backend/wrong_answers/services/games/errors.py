"""Error taxonomy for game operations.

Every error carries the HTTP status the games blueprint renders it with and
a message that is safe to show to players.
"""


class GameError(Exception):
    """Base class for rejected game operations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    """Malformed input, e.g. an empty or oversized answer."""


class PhaseError(GameError):
    """Operation attempted outside the phase that allows it."""


class AuthError(GameError):
    """No resolvable player identity."""

    status_code = 401


class DuplicateError(GameError):
    """Player already has a submission in this game."""


class DuplicateVoteError(GameError):
    """Player already voted for this submission."""


class SelfVoteError(GameError):
    """Player tried to vote for their own submission."""


class QuotaExceededError(GameError):
    """Player has used all of their votes for this game."""


class NotFoundError(GameError):
    status_code = 404


class NoQuestionsAvailableError(GameError):
    """The question pool has no candidate for today."""

    status_code = 503


class ConcurrencyError(GameError):
    """A game write kept losing the optimistic transaction race."""

    status_code = 409
