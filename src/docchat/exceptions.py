"""Exception hierarchy for docchat."""

from __future__ import annotations


class DocChatError(Exception):
    """Base exception for all docchat errors."""


class ValidationError(DocChatError):
    """Rejected input (empty query, non-positive budget, bad options).

    Raised before any I/O is attempted.
    """


class UpstreamError(DocChatError):
    """Raised when an embedding, vector index or completion call fails."""


class UpstreamTimeout(UpstreamError):
    """An upstream service did not answer within its timeout."""

    def __init__(self, service: str, timeout: float) -> None:
        super().__init__(f"{service} did not respond within {timeout:.2f}s")
        self.service = service
        self.timeout = timeout


class CacheUnavailable(DocChatError):
    """A cache backend could not serve the request."""

    def __init__(self, message: str, operation: str = "", key: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key


class AuthorizationError(DocChatError):
    """The caller does not own the conversation it addressed."""


class ConversationNotFound(DocChatError):
    """The conversation is unknown to both the state store and the durable store."""


class InternalInvariantViolation(DocChatError):
    """A budgeting or ordering invariant was broken. Always a bug."""


class TokenizerError(DocChatError):
    """Raised when token counting encounters an error."""
