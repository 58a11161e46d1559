"""Append-only conversation log."""

from __future__ import annotations

from typing import Iterator

from healthchat.llm.types import Message


class Conversation:
    """
    Ordered dialogue history sent verbatim to the model on every turn.

    Messages are immutable and can only be appended.  Only the
    ``ConversationEngine`` that owns a conversation appends to it.
    """

    def __init__(self, messages: list[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or [])

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.append(message)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
