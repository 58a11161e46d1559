from __future__ import annotations

import inspect
import logging
from importlib.metadata import entry_points
from typing import Mapping

from healthchat.errors import ErrorCode, ToolExecutionFailed, ToolNotSupported
from healthchat.tools.base import CapabilityProvider, ToolDescriptor
from healthchat.tools.validation import ToolValidator

logger = logging.getLogger(__name__)


class ToolRegistry(CapabilityProvider):
    """
    Lookup table from tool name to the provider that owns it.

    Built once at startup.  Name collisions are rejected when a provider is
    registered, so dispatch never has to choose between providers.
    """

    def __init__(self, disabled: set[str] | None = None):
        self._entries: dict[str, tuple[CapabilityProvider, ToolDescriptor]] = {}
        self._providers: list[CapabilityProvider] = []
        self._disabled = set(disabled or ())

    def register(self, provider: CapabilityProvider) -> None:
        descriptors = list(provider.tools())
        seen: set[str] = set()
        for d in descriptors:
            if d.name in self._entries or d.name in seen:
                raise ValueError(f"Tool already registered: {d.name}")
            seen.add(d.name)
        for d in descriptors:
            self._entries[d.name] = (provider, d)
        self._providers.append(provider)
        logger.debug(
            "Registered %s with tools: %s",
            type(provider).__name__,
            ", ".join(sorted(seen)) or "(none)",
        )

    @property
    def providers(self) -> list[CapabilityProvider]:
        return list(self._providers)

    def get(self, name: str) -> ToolDescriptor | None:
        if name in self._disabled:
            return None
        entry = self._entries.get(name)
        return entry[1] if entry else None

    def require(self, name: str) -> ToolDescriptor:
        d = self.get(name)
        if d is None:
            raise ToolNotSupported(name)
        return d

    def list(self) -> list[ToolDescriptor]:
        return sorted(
            (d for name, (_, d) in self._entries.items() if name not in self._disabled),
            key=lambda d: d.name,
        )

    def tools(self) -> list[ToolDescriptor]:
        return self.list()

    def to_wire(self) -> list[dict]:
        return [d.to_wire() for d in self.list()]

    async def call(self, tool_name: str, tool_input: Mapping[str, str]) -> str:
        descriptor = self.require(tool_name)
        valid, error_msg = ToolValidator.validate(descriptor, tool_input)
        if not valid:
            raise ToolExecutionFailed(
                tool_name,
                f"invalid input: {error_msg}",
                code=ErrorCode.VALIDATION_ERROR,
            )
        provider, _ = self._entries[tool_name]
        logger.debug("Dispatching %s to %s", tool_name, type(provider).__name__)
        return await provider.call(tool_name, tool_input)

    def load_plugins(
        self,
        *,
        enabled: bool,
        group: str = "healthchat.providers",
        allow_distributions: set[str] | None = None,
        allow_providers: set[str] | None = None,
        store: object | None = None,
    ) -> int:
        """Load capability providers from entry points.

        If a provider class's __init__ accepts a ``store`` parameter and one
        is provided here, it will be injected automatically.  Providers that
        don't declare the parameter are constructed with no arguments.
        """
        if not enabled:
            return 0
        loaded = 0
        for ep in entry_points(group=group):
            dist = getattr(ep, "dist", None)
            dist_name = getattr(dist, "name", None)
            if allow_distributions and dist_name and dist_name not in allow_distributions:
                continue
            if allow_providers and ep.name not in allow_providers:
                continue
            provider_cls = ep.load()
            kwargs: dict = {}
            if store is not None:
                sig = inspect.signature(provider_cls)
                if "store" in sig.parameters:
                    kwargs["store"] = store
            self.register(provider_cls(**kwargs))
            loaded += 1
        return loaded
