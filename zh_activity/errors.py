"""Error types and exit codes for zh-activity."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
AUTH_FAILURE = 3
NOT_FOUND = 4


class ActivityError(Exception):
    """Base error carrying a process exit code."""

    exit_code = GENERAL_ERROR

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class InvalidTimeFormat(ActivityError):
    """A --from/--to expression matched none of the supported formats."""

    exit_code = USAGE_ERROR


class AmbiguousMatch(ActivityError):
    """An identifier matched more than one pipeline or repository."""

    exit_code = USAGE_ERROR


class InvalidIssueRef(ActivityError):
    """An issue reference could not be parsed."""

    exit_code = USAGE_ERROR


class TransportError(ActivityError):
    """A backend call failed or returned something we could not parse."""


class AuthError(TransportError):
    """The backend rejected our credentials."""

    exit_code = AUTH_FAILURE


class NotFound(ActivityError):
    """A referenced item, pipeline or repository does not exist."""

    exit_code = NOT_FOUND


class PartialEnrichmentFailure(ActivityError):
    """A single item's backfill or detail fetch failed.

    Never surfaced as a command failure: the item keeps whatever data it
    already had.
    """


def exit_code_for(error: BaseException | None) -> int:
    """Map an exception to the process exit code."""
    if error is None:
        return SUCCESS
    if isinstance(error, ActivityError):
        return error.exit_code
    return GENERAL_ERROR
