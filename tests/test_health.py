"""Tests for the blood pressure capability provider."""

from datetime import datetime, timedelta, timezone

import pytest

from healthchat.errors import ToolExecutionFailed, ToolNotSupported
from healthchat.tools.health import (
    BloodPressureProvider,
    BloodPressureReading,
    InMemoryBloodPressureStore,
)
from healthchat.tools.registry import ToolRegistry


def _reading(sys_, dia, minutes_ago=0):
    return BloodPressureReading(
        sys_, dia, datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago)
    )


class TestReadTool:
    async def test_returns_latest_reading(self):
        store = InMemoryBloodPressureStore([_reading(130, 85, minutes_ago=60), _reading(120, 80)])
        provider = BloodPressureProvider(store)
        result = await provider.call("blood_pressure", {})
        assert result.startswith("120/80 mmHg measured 2026-01-01T08:00:00")

    async def test_no_data_fails(self):
        provider = BloodPressureProvider(InMemoryBloodPressureStore())
        with pytest.raises(ToolExecutionFailed, match="no blood pressure"):
            await provider.call("blood_pressure", {})

    async def test_permission_denied_fails(self):
        store = InMemoryBloodPressureStore([_reading(120, 80)], authorized=False, grant_on_request=False)
        provider = BloodPressureProvider(store)
        with pytest.raises(ToolExecutionFailed, match="permission not granted"):
            await provider.call("blood_pressure", {})

    async def test_authorization_requested_when_missing(self):
        store = InMemoryBloodPressureStore([_reading(120, 80)], authorized=False)
        provider = BloodPressureProvider(store)
        assert (await provider.call("blood_pressure", {})).startswith("120/80")
        assert await store.is_authorized()


class TestSaveTool:
    async def test_saves_reading(self):
        store = InMemoryBloodPressureStore()
        provider = BloodPressureProvider(store)
        result = await provider.call("save_blood_pressure", {"systolic": "118", "diastolic": "76.5"})
        assert "118/76.5 mmHg" in result
        assert len(store.readings) == 1
        assert store.readings[0].systolic == 118.0

    @pytest.mark.parametrize(
        "tool_input, message",
        [
            ({"systolic": "abc", "diastolic": "80"}, "not a number"),
            ({"systolic": "400", "diastolic": "80"}, "outside"),
            ({"systolic": "80", "diastolic": "120"}, "higher than diastolic"),
            ({"systolic": "120"}, "missing diastolic"),
        ],
    )
    async def test_rejects_bad_values(self, tool_input, message):
        store = InMemoryBloodPressureStore()
        provider = BloodPressureProvider(store)
        with pytest.raises(ToolExecutionFailed, match=message):
            await provider.call("save_blood_pressure", tool_input)
        assert store.readings == []

    async def test_save_without_permission_fails(self):
        store = InMemoryBloodPressureStore(authorized=False, grant_on_request=False)
        provider = BloodPressureProvider(store)
        with pytest.raises(ToolExecutionFailed, match="permission"):
            await provider.call("save_blood_pressure", {"systolic": "120", "diastolic": "80"})
        assert store.readings == []


class TestProviderContract:
    def test_advertises_both_tools(self):
        provider = BloodPressureProvider(InMemoryBloodPressureStore())
        assert [t.name for t in provider.tools()] == ["blood_pressure", "save_blood_pressure"]
        assert provider.tools() == provider.tools()

    async def test_unknown_tool(self):
        provider = BloodPressureProvider(InMemoryBloodPressureStore())
        with pytest.raises(ToolNotSupported):
            await provider.call("heart_rate", {})

    async def test_save_then_read_through_registry(self):
        reg = ToolRegistry()
        reg.register(BloodPressureProvider(InMemoryBloodPressureStore()))
        await reg.call("save_blood_pressure", {"systolic": "121", "diastolic": "79"})
        assert (await reg.call("blood_pressure", {})).startswith("121/79 mmHg")
