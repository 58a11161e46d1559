"""Interactive chat session handler."""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from healthchat.cli.output import OutputFormatter
from healthchat.conversation.engine import ConversationEngine
from healthchat.errors import HealthChatError, TransportError
from healthchat.llm.types import Message, ToolResultBlock, ToolUseBlock


class ChatHandler:
    """
    Manages the interactive chat loop.

    Handles rendering of replies and tool activity, and inline commands.
    """

    def __init__(
        self,
        engine: ConversationEngine,
        console: Console | None = None,
    ) -> None:
        self.engine = engine
        self.console = console or Console()
        self.formatter = OutputFormatter(self.console)
        self._running = True
        engine.on_tool_result = self.show_tool_result

    async def show_tool_result(self, tool_use: ToolUseBlock, result: ToolResultBlock) -> None:
        self.formatter.format_tool_result(tool_use, result)

    async def handle_command(self, command: str) -> bool:
        """
        Handle inline commands. Returns True if the command was handled.
        """
        parts = command.strip().split(None, 1)
        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "/quit":
            self._running = False
            self.console.print("[dim]Goodbye.[/dim]")
            return True

        if cmd == "/history":
            self.formatter.format_conversation(self.engine.conversation)
            return True

        if cmd == "/tools":
            self.formatter.format_tool_list(self.engine.tools.tools())
            return True

        if cmd == "/retry":
            try:
                reply = await self.engine.retry()
            except HealthChatError as e:
                self._print_error(e)
                return True
            self._print_reply(reply)
            return True

        if cmd == "/export":
            fmt = "json" if arg.endswith(".json") else "markdown"
            text = self.formatter.export_conversation(self.engine.conversation, fmt)
            if arg:
                Path(arg).expanduser().write_text(text, encoding="utf-8")
                self.console.print(f"  Exported {len(self.engine.conversation)} messages to {arg}")
            else:
                self.console.print(text, markup=False)
            return True

        if cmd == "/help":
            self.console.print(
                "  [bold]Commands:[/bold]\n"
                "  /quit           - Exit the chat\n"
                "  /history        - Show the conversation log\n"
                "  /tools          - List available tools\n"
                "  /retry          - Resend the conversation after a failure\n"
                "  /export [PATH]  - Export as markdown, or JSON for *.json paths\n"
                "  /help           - Show this help\n"
            )
            return True

        return False

    async def handle_input(self, user_input: str) -> None:
        """Process user input: run it through the engine and print the reply."""
        try:
            reply = await self.engine.run(user_input)
        except HealthChatError as e:
            self._print_error(e)
            return
        self._print_reply(reply)

    def _print_reply(self, reply: Message) -> None:
        self.console.print(Markdown(reply.text or "_(empty reply)_"))

    def _print_error(self, error: HealthChatError) -> None:
        self.console.print(f"\n[red]Error ({type(error).__name__}):[/red] {error}")
        if isinstance(error, TransportError) and error.retryable:
            self.console.print("[dim]This looks transient. Use /retry to resend.[/dim]")

    async def run_loop(self) -> None:
        """Main interactive loop."""
        self.console.print(
            "[bold]HealthChat[/bold] - Personal Health Assistant\n"
            "[dim]Type /help for commands, /quit to exit.[/dim]\n"
        )

        while self._running:
            try:
                user_input = await asyncio.get_running_loop().run_in_executor(
                    None, lambda: input("you> ").strip()
                )
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[dim]Goodbye.[/dim]")
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                handled = await self.handle_command(user_input)
                if handled:
                    continue

            self.console.print("[dim]assistant>[/dim]")
            await self.handle_input(user_input)
