from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping


def normalize_schema(schema: dict) -> dict:
    s = dict(schema or {})
    s.setdefault("type", "object")
    s.setdefault("properties", {})
    s.setdefault("additionalProperties", False)
    return s


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: dict = field(default_factory=dict)

    def to_wire(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": normalize_schema(self.input_schema),
        }


class CapabilityProvider(ABC):
    """
    Owns the mechanism behind one or more named tools.

    ``tools()`` must return the same descriptors for the provider's whole
    lifetime.  ``call`` raises ``ToolNotSupported`` for a name it does not
    advertise and ``ToolExecutionFailed`` when the capability cannot
    produce a result.  It is invoked at most once per dispatch and never
    retried.
    """

    @abstractmethod
    def tools(self) -> list[ToolDescriptor]: ...

    @abstractmethod
    async def call(self, tool_name: str, tool_input: Mapping[str, str]) -> str: ...

    def supports(self, tool_name: str) -> bool:
        return any(t.name == tool_name for t in self.tools())
