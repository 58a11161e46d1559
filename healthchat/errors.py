"""Error taxonomy shared by the codec, tools, transport and engine."""

from __future__ import annotations


class ErrorCode:
    """Short codes embedded in error tool results sent back to the model."""

    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION_ERROR = "validation_error"
    TOOL_FAILED = "tool_failed"
    TIMEOUT = "timeout"
    TOOL_EXCEPTION = "tool_exception"


class HealthChatError(Exception):
    """Base class for every error raised by healthchat."""


class MalformedContent(HealthChatError):
    """A wire content block could not be decoded."""


class ToolNotSupported(HealthChatError):
    """Dispatch to a tool name no registered provider advertises."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionFailed(HealthChatError):
    """A tool ran but could not produce a result."""

    def __init__(self, tool_name: str, reason: str, code: str = ErrorCode.TOOL_FAILED) -> None:
        super().__init__(f"Tool {tool_name} failed: {reason}")
        self.tool_name = tool_name
        self.reason = reason
        self.code = code


class TransportError(HealthChatError):
    """
    The model request failed at the HTTP level.

    Attributes
    ----------
    status:
        HTTP status code, or ``None`` when no response was received.
    cause:
        Underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.cause = cause

    @property
    def retryable(self) -> bool:
        if self.status is None:
            return self.cause is not None
        return self.status in (408, 429) or self.status >= 500

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (HTTP {self.status})"
        return base


class TurnLimitExceeded(HealthChatError):
    """The model kept requesting tools past the configured turn ceiling."""

    def __init__(self, max_turns: int) -> None:
        super().__init__(f"Reached maximum of {max_turns} model turns without a final answer")
        self.max_turns = max_turns


class TurnInProgress(HealthChatError):
    """A turn was requested while another is still running on the same conversation."""
