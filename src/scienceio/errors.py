"""Exception hierarchy for the ScienceIO client.

Every error raised by this package derives from ScienceIOError, so callers
can catch a single type around ``ScienceIO.annotate``.
"""

from __future__ import annotations

DEFAULT_ERROR_MESSAGE = "Error in request to ScienceIO API"
HELP_EMAIL = "api_support@science.io"


class ScienceIOError(Exception):
    """Base exception for all ScienceIO client errors."""

    default_message = DEFAULT_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ScienceIOError, ValueError):
    """Raised when the caller passes input the API cannot accept."""

    default_message = "Must pass at least one character to the API"


class HTTPError(ScienceIOError):
    """Raised when the ScienceIO API answers with a non-2xx status."""

    default_message = "HTTP Error in request to ScienceIO API"

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class AnnotationError(ScienceIOError):
    """Raised when a remote job finishes in the ERRORED state."""

    default_message = "Annotation job failed"


class ScienceIOTimeoutError(ScienceIOError, TimeoutError):
    """Raised when a request or a job's poll budget times out."""

    default_message = "Timeout in request to ScienceIO API"


class UnknownStatusError(ScienceIOError):
    """Raised when the API reports an inference status this client does not know."""

    def __init__(self, status: object = None) -> None:
        self.status = status
        super().__init__(
            f"Unknown inference status {status!r}; "
            f"please upgrade the client or contact {HELP_EMAIL}"
        )


class ScienceIOConnectionError(ScienceIOError):
    """Raised when the ScienceIO API cannot be reached."""

    default_message = "Unable to connect to ScienceIO API"


class InvalidStateTransitionError(ScienceIOError):
    """Raised when a job is observed moving backwards out of a terminal state."""

    pass
