"""
Blood pressure capability provider.

The provider exposes two tools to the model and delegates the actual
measurement storage to a ``BloodPressureStore``.  A platform health store
(HealthKit, Health Connect, a device SDK) is an external collaborator that
implements that contract; ``InMemoryBloodPressureStore`` backs the CLI demo
and the test suite.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping

from healthchat.errors import ToolExecutionFailed, ToolNotSupported
from healthchat.tools.base import CapabilityProvider, ToolDescriptor

logger = logging.getLogger(__name__)

SYSTOLIC_RANGE = (50.0, 300.0)
DIASTOLIC_RANGE = (30.0, 200.0)


@dataclass(frozen=True)
class BloodPressureReading:
    systolic: float
    diastolic: float
    measured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def format(self) -> str:
        return f"{_fmt(self.systolic)}/{_fmt(self.diastolic)} mmHg"


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


class BloodPressureStore(ABC):
    """Access to persisted blood pressure samples."""

    @abstractmethod
    async def is_authorized(self) -> bool: ...

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Ask for read/write access. Returns whether access is now granted."""
        ...

    @abstractmethod
    async def latest(self) -> BloodPressureReading | None: ...

    @abstractmethod
    async def save(self, reading: BloodPressureReading) -> None: ...


class InMemoryBloodPressureStore(BloodPressureStore):
    def __init__(
        self,
        readings: list[BloodPressureReading] | None = None,
        authorized: bool = True,
        grant_on_request: bool = True,
    ) -> None:
        self.readings: list[BloodPressureReading] = list(readings or [])
        self._authorized = authorized
        self._grant_on_request = grant_on_request

    async def is_authorized(self) -> bool:
        return self._authorized

    async def request_authorization(self) -> bool:
        if self._grant_on_request:
            self._authorized = True
        return self._authorized

    async def latest(self) -> BloodPressureReading | None:
        if not self.readings:
            return None
        return max(self.readings, key=lambda r: r.measured_at)

    async def save(self, reading: BloodPressureReading) -> None:
        self.readings.append(reading)


READ_TOOL = ToolDescriptor(
    name="blood_pressure",
    description=(
        "Returns the user's most recent blood pressure measurement "
        "(systolic/diastolic in mmHg) with the time it was taken."
    ),
    input_schema={"type": "object", "properties": {}},
)

SAVE_TOOL = ToolDescriptor(
    name="save_blood_pressure",
    description=(
        "Saves a blood pressure measurement to the user's health records. "
        "Values are in mmHg and passed as decimal strings."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "systolic": {
                "type": "string",
                "description": "Systolic pressure in mmHg, e.g. \"120\"",
            },
            "diastolic": {
                "type": "string",
                "description": "Diastolic pressure in mmHg, e.g. \"80\"",
            },
        },
        "required": ["systolic", "diastolic"],
    },
)


class BloodPressureProvider(CapabilityProvider):
    def __init__(self, store: BloodPressureStore) -> None:
        self.store = store

    def tools(self) -> list[ToolDescriptor]:
        return [READ_TOOL, SAVE_TOOL]

    async def call(self, tool_name: str, tool_input: Mapping[str, str]) -> str:
        if tool_name == READ_TOOL.name:
            return await self._read()
        if tool_name == SAVE_TOOL.name:
            return await self._save(tool_input)
        raise ToolNotSupported(tool_name)

    async def _ensure_authorized(self, tool_name: str) -> None:
        if await self.store.is_authorized():
            return
        logger.info("Requesting health data authorization for %s", tool_name)
        if not await self.store.request_authorization():
            raise ToolExecutionFailed(tool_name, "health data permission not granted")

    async def _read(self) -> str:
        await self._ensure_authorized(READ_TOOL.name)
        reading = await self.store.latest()
        if reading is None:
            raise ToolExecutionFailed(READ_TOOL.name, "no blood pressure measurements found")
        return f"{reading.format()} measured {reading.measured_at.isoformat()}"

    async def _save(self, tool_input: Mapping[str, str]) -> str:
        systolic = _parse_pressure(tool_input, "systolic", SYSTOLIC_RANGE)
        diastolic = _parse_pressure(tool_input, "diastolic", DIASTOLIC_RANGE)
        if systolic <= diastolic:
            raise ToolExecutionFailed(
                SAVE_TOOL.name, "systolic pressure must be higher than diastolic"
            )
        await self._ensure_authorized(SAVE_TOOL.name)
        reading = BloodPressureReading(systolic, diastolic)
        await self.store.save(reading)
        return f"Blood pressure {reading.format()} has been saved to health records"


def _parse_pressure(tool_input: Mapping[str, str], key: str, bounds: tuple[float, float]) -> float:
    raw = tool_input.get(key)
    if raw is None:
        raise ToolExecutionFailed(SAVE_TOOL.name, f"missing {key} value")
    try:
        value = float(raw)
    except ValueError:
        raise ToolExecutionFailed(SAVE_TOOL.name, f"{key} is not a number: {raw!r}") from None
    low, high = bounds
    if not low <= value <= high:
        raise ToolExecutionFailed(
            SAVE_TOOL.name, f"{key} {_fmt(value)} is outside {_fmt(low)}-{_fmt(high)} mmHg"
        )
    return value
