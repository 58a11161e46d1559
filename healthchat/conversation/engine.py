"""
Conversation engine -- the loop that ties the model and the tools together.

The engine:
1. Appends the user's text to the conversation
2. Sends the whole conversation plus the tool catalog to the model
3. If the reply requests tools, runs them concurrently and feeds the
   results back as a user message
4. Loops until the model replies with no tool requests (final answer)
5. Fails with ``TurnLimitExceeded`` when the model keeps asking for tools

State machine::

    Idle -> AwaitingModel -> (ExecutingTools -> AwaitingModel)* -> Idle
    any state -> Failed
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from healthchat.conversation.conversation import Conversation
from healthchat.errors import (
    ErrorCode,
    HealthChatError,
    ToolExecutionFailed,
    ToolNotSupported,
    TurnInProgress,
    TurnLimitExceeded,
)
from healthchat.llm.providers.base import Provider
from healthchat.llm.types import Message, Role, ToolResultBlock, ToolUseBlock
from healthchat.tools.base import CapabilityProvider

logger = logging.getLogger(__name__)

ToolResultHook = Callable[[ToolUseBlock, ToolResultBlock], Awaitable[None]]


class EngineState(str, Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    FAILED = "failed"


_BUSY = (EngineState.AWAITING_MODEL, EngineState.EXECUTING_TOOLS)


class ConversationEngine:
    """
    Drives one conversation against a model provider.

    Parameters
    ----------
    provider : Provider
        Transport used to reach the model.
    tools : CapabilityProvider
        Dispatch target for tool requests, normally a ``ToolRegistry``.
    conversation : Conversation
        Message log owned by this engine.  A fresh one is created if omitted.
    system_prompt : str
        Sent with every request when non-empty.
    tool_timeout : float
        Max seconds for a single tool execution.
    max_turns : int
        Max model sends per user turn before failing.
    on_tool_result : callable
        Async hook awaited with each (ToolUseBlock, ToolResultBlock) pair, in
        request order, after a round of tools completes.
    """

    def __init__(
        self,
        provider: Provider,
        tools: CapabilityProvider,
        conversation: Conversation | None = None,
        system_prompt: str = "",
        tool_timeout: float = 30.0,
        max_turns: int = 10,
        on_tool_result: ToolResultHook | None = None,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.provider = provider
        self.tools = tools
        self.conversation = conversation if conversation is not None else Conversation()
        self.system_prompt = system_prompt
        self.tool_timeout = tool_timeout
        self.max_turns = max_turns
        self.on_tool_result = on_tool_result
        self.state = EngineState.IDLE
        self.last_error: BaseException | None = None
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.state in _BUSY

    async def run(self, user_text: str) -> Message:
        """
        Process a user message through the full loop.

        Returns the final assistant message.  On failure the engine is left
        in ``FAILED``, ``last_error`` is set, the error is re-raised and the
        messages already committed stay in the conversation.
        """
        self._begin()
        self.conversation.append(Message.user_text(user_text))
        return await self._drive()

    async def retry(self) -> Message:
        """Resend the unchanged conversation, typically after a failure."""
        last = self.conversation.last
        if last is None or last.role is not Role.USER:
            raise HealthChatError("Nothing to retry: conversation does not end with a user message")
        self._begin()
        return await self._drive()

    def cancel(self) -> bool:
        """Cancel the in-flight turn. Returns False when nothing is running."""
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        if self.busy:
            raise TurnInProgress("A turn is already running for this conversation")
        self.last_error = None
        self._set_state(EngineState.AWAITING_MODEL)

    def _set_state(self, state: EngineState) -> None:
        if state is not self.state:
            logger.debug("Engine state: %s -> %s", self.state.value, state.value)
        self.state = state

    async def _drive(self) -> Message:
        self._task = asyncio.current_task()
        try:
            return await self._loop()
        except asyncio.CancelledError:
            logger.info("Turn cancelled; conversation left at %d messages", len(self.conversation))
            self._set_state(EngineState.IDLE)
            raise
        except Exception as e:
            logger.warning("Turn failed: %s", e)
            self.last_error = e
            self._set_state(EngineState.FAILED)
            raise
        finally:
            self._task = None

    async def _loop(self) -> Message:
        catalog = [d.to_wire() for d in self.tools.tools()]

        for turn in range(self.max_turns):
            self._set_state(EngineState.AWAITING_MODEL)
            response = await self.provider.send(
                self.conversation.messages,
                tools=catalog or None,
                system=self.system_prompt,
            )
            assistant = response.to_message()
            tool_uses = assistant.tool_uses

            # No tool calls -> final response
            if not tool_uses:
                self.conversation.append(assistant)
                self._set_state(EngineState.IDLE)
                return assistant

            self._set_state(EngineState.EXECUTING_TOOLS)
            logger.debug(
                "Turn %d: model requested %s",
                turn + 1,
                ", ".join(tu.name for tu in tool_uses),
            )
            results = await asyncio.gather(*(self._execute_tool(tu) for tu in tool_uses))

            # Both messages are committed together once every tool finished.
            self.conversation.append(assistant)
            self.conversation.append(Message(Role.USER, tuple(results)))

            if self.on_tool_result is not None:
                for tu, result in zip(tool_uses, results):
                    await self.on_tool_result(tu, result)

        raise TurnLimitExceeded(self.max_turns)

    async def _execute_tool(self, tool_use: ToolUseBlock) -> ToolResultBlock:
        """
        Run one tool request and wrap the outcome as a result block.

        Tool failures become error results for the model to react to; they
        never abort the turn or sibling tool calls.
        """
        error: str | None = None
        try:
            output = await asyncio.wait_for(
                self.tools.call(tool_use.name, tool_use.input),
                timeout=self.tool_timeout,
            )
        except ToolNotSupported as e:
            error = _error_content(ErrorCode.UNKNOWN_TOOL, str(e))
        except ToolExecutionFailed as e:
            error = _error_content(e.code, e.reason)
        except asyncio.TimeoutError:
            error = _error_content(
                ErrorCode.TIMEOUT, f"Tool timed out after {self.tool_timeout}s"
            )
        except Exception as e:
            logger.exception("Tool %s raised", tool_use.name)
            error = _error_content(ErrorCode.TOOL_EXCEPTION, f"Tool exception: {e}")

        if error is not None:
            logger.warning("Tool %s (%s) failed: %s", tool_use.name, tool_use.id, error)
            return ToolResultBlock(tool_use_id=tool_use.id, content=error)
        return ToolResultBlock(
            tool_use_id=tool_use.id,
            content=output if isinstance(output, str) else str(output),
        )


def _error_content(code: str, description: str) -> str:
    return f"[Error: {code}] {description}"
