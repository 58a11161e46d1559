"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from healthchat.llm.types import Message, ModelResponse


class Provider(ABC):
    """
    A provider encapsulates access to a single LLM endpoint.

    Implementations send the full ordered conversation plus the tool
    catalog and return the decoded reply.  Any failure to obtain a
    well-formed reply is raised as ``TransportError``; a reply block that
    cannot be decoded is raised as ``MalformedContent``.
    """

    @abstractmethod
    async def send(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None = None,
        system: str = "",
    ) -> ModelResponse:
        """Send the conversation and return the model's reply."""
        ...

    @property
    def max_output_tokens(self) -> int:
        """Maximum number of tokens the model can generate."""
        return 1024

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. ``"anthropic"``)."""
        ...
