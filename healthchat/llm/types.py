"""Core types for the conversation protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class TextBlock:
    """Plain text produced by the user or the model."""

    type: ClassVar[str] = "text"

    value: str


@dataclass(frozen=True)
class ToolUseBlock:
    """A request from the model to invoke a local tool."""

    type: ClassVar[str] = "tool_use"

    id: str
    name: str
    input: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    """The outcome of a tool invocation, correlated by ``tool_use_id``."""

    type: ClassVar[str] = "tool_result"

    tool_use_id: str
    content: str


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class Message:
    """A single message in a conversation. Content is stored as a tuple."""

    role: Role
    content: tuple[ContentBlock, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "content", tuple(self.content))

    @classmethod
    def user_text(cls, text: str) -> Message:
        return cls(Role.USER, (TextBlock(text),))

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(b.value for b in self.content if b.type == TextBlock.type)

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content if b.type == ToolUseBlock.type]


@dataclass(frozen=True)
class ModelResponse:
    """
    The model's reply to one request.

    *content* is the decoded block sequence.  *stop_reason*, *model* and
    *usage* are carried through from the response body when present.
    """

    content: tuple[ContentBlock, ...] = ()
    stop_reason: str | None = None
    model: str | None = None
    usage: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", tuple(self.content))

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content if b.type == ToolUseBlock.type]

    def to_message(self) -> Message:
        return Message(Role.ASSISTANT, self.content)
