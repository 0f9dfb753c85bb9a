"""
Domain errors raised by the matching services.

Routes translate these into JSON error responses using ``status_code``.
"""


class MatchingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    retryable = False

    def __init__(self, message: str, user_id: int = None, stage: str = None):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.stage = stage

    def to_dict(self) -> dict:
        data = {"message": self.message}
        if self.user_id is not None:
            data["user_id"] = self.user_id
        if self.stage:
            data["stage"] = self.stage
        return data


class ProfileNotFoundError(MatchingError):
    """User or matching preferences do not exist."""

    status_code = 404


class PreferencesConflictError(MatchingError):
    """Matching preferences already exist for the user."""

    status_code = 409


class EmbeddingMissingError(MatchingError):
    """Profile exists but has no embedding yet, so it cannot be matched."""

    status_code = 400


class EmbeddingProviderError(MatchingError):
    """The embedding provider call failed. Callers may retry."""

    status_code = 502
    retryable = True


class VectorIndexError(MatchingError):
    """Nearest-neighbour search failed."""

    status_code = 503
    retryable = True
