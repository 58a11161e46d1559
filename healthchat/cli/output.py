"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from healthchat.conversation.conversation import Conversation
from healthchat.llm import codec
from healthchat.llm.types import (
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from healthchat.tools.base import ToolDescriptor

BLOCK_COLORS = {
    TextBlock.type: "white",
    ToolUseBlock.type: "yellow",
    ToolResultBlock.type: "cyan",
}


class OutputFormatter:
    """Rich-based output formatting for the healthchat CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_tool_list(self, tools: list[ToolDescriptor]) -> None:
        table = Table(title="Registered Tools", show_lines=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Inputs", no_wrap=True)
        table.add_column("Description")

        for t in tools:
            props = (t.input_schema or {}).get("properties", {})
            table.add_row(t.name, ", ".join(props) or "-", t.description)

        self.console.print(table)

    def format_tool_info(self, tool: ToolDescriptor) -> None:
        self.console.print(Panel(
            f"[bold]{tool.name}[/bold]\n\n{tool.description}",
            title=f"Tool: {tool.name}",
        ))
        schema_json = json.dumps(tool.to_wire()["input_schema"], indent=2)
        self.console.print(Syntax(schema_json, "json", theme="monokai"))

    def format_tool_result(self, tool_use: ToolUseBlock, result: ToolResultBlock) -> None:
        failed = result.content.startswith("[Error:")
        status = "[red]FAILED[/red]" if failed else "[green]OK[/green]"
        self.console.print(
            f"  [dim]\\[{tool_use.name}][/dim] {status}: {result.content[:200]}",
            highlight=False,
        )

    def format_conversation(self, conversation: Conversation) -> None:
        if not len(conversation):
            self.console.print("[dim]No messages.[/dim]")
            return

        for i, msg in enumerate(conversation):
            role_color = "blue" if msg.role.value == "user" else "green"
            for block in msg.content:
                color = BLOCK_COLORS.get(block.type, "white")
                self.console.print(
                    f"  [dim]{i:>3}[/dim] [{role_color}]{msg.role.value:>9s}[/{role_color}] "
                    f"[{color}]{block.type:<11s}[/{color}] {_summarize(block)}",
                    highlight=False,
                )

    def format_config(self, config: dict) -> None:
        json_str = json.dumps(config, indent=2, default=str)
        self.console.print(Syntax(json_str, "json", theme="monokai"))

    def export_conversation(self, conversation: Conversation, fmt: str = "markdown") -> str:
        if fmt == "json":
            return json.dumps([codec.encode_message(m) for m in conversation], indent=2)

        lines: list[str] = ["# Conversation\n"]
        for msg in conversation:
            lines.append(f"## {msg.role.value.capitalize()}\n")
            lines.extend(_markdown_blocks(msg))
        return "\n".join(lines)


def _summarize(block) -> str:
    if block.type == TextBlock.type:
        return block.value[:100]
    if block.type == ToolUseBlock.type:
        return f"{block.name}({json.dumps(block.input)[:80]}) id={block.id}"
    return f"{block.tool_use_id} -> {block.content[:80]}"


def _markdown_blocks(msg: Message) -> list[str]:
    out: list[str] = []
    for block in msg.content:
        if block.type == TextBlock.type:
            out.append(f"{block.value}\n")
        elif block.type == ToolUseBlock.type:
            out.append(f"### Tool request: {block.name}\n")
            out.append(f"```json\n{json.dumps(block.input, indent=2)}\n```\n")
        else:
            out.append(f"**Result for {block.tool_use_id}:**\n")
            out.append(f"```\n{block.content[:500]}\n```\n")
    return out
