"""Tests for ToolRegistry."""

import pytest

from healthchat.errors import ToolExecutionFailed, ToolNotSupported
from healthchat.tools.base import ToolDescriptor
from healthchat.tools.registry import ToolRegistry
from tests.mock_tools import EchoProvider, FailingProvider, StaticProvider


class TestToolRegistry:
    """Test suite for ToolRegistry."""

    def test_register_and_get(self):
        reg = ToolRegistry()
        reg.register(EchoProvider())
        assert reg.get("echo").name == "echo"

    def test_get_returns_none_for_unknown(self):
        reg = ToolRegistry()
        assert reg.get("nonexistent") is None

    def test_require_raises_tool_not_supported(self):
        reg = ToolRegistry()
        with pytest.raises(ToolNotSupported, match="nonexistent"):
            reg.require("nonexistent")

    def test_duplicate_across_providers_rejected(self):
        reg = ToolRegistry()
        reg.register(StaticProvider({"blood_pressure": "120/80"}))
        with pytest.raises(ValueError, match="already registered"):
            reg.register(StaticProvider({"blood_pressure": "130/85"}))

    def test_duplicate_rejection_is_atomic(self):
        reg = ToolRegistry()
        reg.register(StaticProvider({"blood_pressure": "120/80"}))
        with pytest.raises(ValueError):
            reg.register(StaticProvider({"weight": "70", "blood_pressure": "130/85"}))
        assert reg.get("weight") is None
        assert len(reg.providers) == 1

    def test_duplicate_within_provider_rejected(self):
        class Twice(StaticProvider):
            def tools(self):
                return [ToolDescriptor("a", "x"), ToolDescriptor("a", "y")]

        reg = ToolRegistry()
        with pytest.raises(ValueError, match="already registered"):
            reg.register(Twice({}))

    def test_list_returns_all_sorted_by_name(self):
        reg = ToolRegistry()
        reg.register(StaticProvider({"weight": "70", "blood_pressure": "120/80"}))
        reg.register(EchoProvider())
        names = [t.name for t in reg.list()]
        assert names == ["blood_pressure", "echo", "weight"]

    def test_disabled_tools_hidden(self):
        reg = ToolRegistry(disabled={"weight"})
        reg.register(StaticProvider({"weight": "70", "blood_pressure": "120/80"}))
        assert [t.name for t in reg.list()] == ["blood_pressure"]
        assert reg.get("weight") is None

    def test_to_wire(self):
        reg = ToolRegistry()
        reg.register(EchoProvider())
        wire = reg.to_wire()
        assert len(wire) == 1
        assert set(wire[0]) == {"name", "description", "input_schema"}
        assert wire[0]["input_schema"]["type"] == "object"
        assert wire[0]["input_schema"]["required"] == ["message"]

    def test_empty_registry(self):
        reg = ToolRegistry()
        assert reg.list() == []
        assert reg.to_wire() == []

    def test_load_plugins_disabled_returns_zero(self):
        reg = ToolRegistry()
        assert reg.load_plugins(enabled=False) == 0
        assert reg.list() == []


class TestDispatch:
    async def test_call_routes_to_owning_provider(self):
        reg = ToolRegistry()
        echo = EchoProvider()
        static = StaticProvider({"blood_pressure": "120/80"})
        reg.register(echo)
        reg.register(static)

        assert await reg.call("blood_pressure", {}) == "120/80"
        assert await reg.call("echo", {"message": "hi"}) == "hi"
        assert static.calls == ["blood_pressure"]
        assert echo.calls == [("echo", {"message": "hi"})]

    @pytest.mark.parametrize(
        "providers",
        [[], [EchoProvider], [EchoProvider, FailingProvider]],
    )
    async def test_unknown_name_always_not_supported(self, providers):
        reg = ToolRegistry()
        for cls in providers:
            reg.register(cls())
        with pytest.raises(ToolNotSupported):
            await reg.call("unknown_tool", {})

    async def test_disabled_tool_not_supported(self):
        reg = ToolRegistry(disabled={"echo"})
        reg.register(EchoProvider())
        with pytest.raises(ToolNotSupported):
            await reg.call("echo", {"message": "hi"})

    async def test_invalid_input_fails_before_dispatch(self):
        reg = ToolRegistry()
        echo = EchoProvider()
        reg.register(echo)
        with pytest.raises(ToolExecutionFailed) as exc_info:
            await reg.call("echo", {"rogue": "value"})
        assert exc_info.value.code == "validation_error"
        assert echo.calls == []

    async def test_execution_failure_propagates(self):
        reg = ToolRegistry()
        reg.register(FailingProvider(reason="permission not granted"))
        with pytest.raises(ToolExecutionFailed, match="permission not granted"):
            await reg.call("heart_rate", {})
