"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (vector store, embeddings, LLM)
is misconfigured or unreachable so the API can return 503 with a user-facing message.
Expected dead ends of a turn (missing order id, empty retrieval, failed tool call)
are not errors; the pipeline returns them as a TurnResult outcome instead.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. vector store, embeddings API) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ModelCallError(ServiceUnavailableError):
    """Raised when the planner or answer model call fails. Fatal for the turn; never retried."""


class PlanParseError(ValueError):
    """Raised when planner output is not a valid plan. Keeps the raw text for logs and API errors."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.message = message
        self.raw = raw
        super().__init__(f"Invalid planner JSON: {message} (raw={raw!r})")


class ToolExecutionError(Exception):
    """Raised by a tool when it cannot produce a result for the given argument."""


class UnknownToolError(ToolExecutionError):
    """Raised when a tool name is not in the registry."""
