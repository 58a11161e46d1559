"""LLM subsystem -- content types, wire codec and providers."""

from healthchat.llm.types import (
    ContentBlock,
    Message,
    ModelResponse,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from healthchat.llm.codec import decode, encode

__all__ = [
    "ContentBlock",
    "Message",
    "ModelResponse",
    "Role",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "decode",
    "encode",
]
