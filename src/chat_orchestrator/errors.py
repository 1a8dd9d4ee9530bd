"""Error taxonomy for the chat backend.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Internal detail goes into the exception's ``str()`` and
the server log only.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base class for errors surfaced to the HTTP layer."""

    status_code: int = 500
    public_message: str = "An unexpected disturbance occurred along the path. An internal error prevented communication."

    def __init__(self, detail: str = "", *, public_message: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class InvalidInput(ChatError):
    """Missing or empty user input. No remote call is attempted."""

    status_code = 400
    public_message = "No valid message was provided."


class RecordNotFound(ChatError):
    """A persisted record (history, user preferences) does not exist."""

    status_code = 404
    public_message = "Record not found."


class HistoryDBError(ChatError):
    """Raised when a MongoDB operation fails (connection, timeout, or write error)."""

    public_message = "Internal error while accessing chat history."


class ProviderError(ChatError):
    """Failure of the remote generation service."""


class ProviderUnavailable(ProviderError):
    """Network failure or any provider status without a dedicated mapping."""


class ProviderOverloaded(ProviderError):
    """The provider signalled overload (HTTP 503)."""

    status_code = 503
    public_message = (
        "I beg your pardon. My digital spirit (the Google API) is overloaded at the moment. "
        "Please wait an instant and try again."
    )


class ProviderRateLimited(ProviderError):
    """The provider signalled rate limiting (HTTP 429)."""

    status_code = 429
    public_message = "Too many moves in too little time. Discipline demands a pause. Please wait a moment."
