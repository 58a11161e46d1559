"""Tool descriptors, capability providers and the dispatch registry."""

from healthchat.tools.base import CapabilityProvider, ToolDescriptor, normalize_schema
from healthchat.tools.registry import ToolRegistry

__all__ = ["CapabilityProvider", "ToolDescriptor", "ToolRegistry", "normalize_schema"]
