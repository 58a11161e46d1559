"""System prompt builder."""

from __future__ import annotations

from healthchat.tools.base import ToolDescriptor


def build_system_prompt(
    tools: list[ToolDescriptor] | None = None,
    extra_sections: list[str] | None = None,
) -> str:
    """
    Build the system prompt sent with every model request.

    Assembles the assistant's role, tool usage rules and the tool list into a
    single prompt string.
    """
    sections: list[str] = []

    sections.append(
        "You are a personal health assistant with access to the user's health "
        "records through tools. When the user asks about their measurements or "
        "wants to record one, use your tools instead of guessing."
    )

    sections.append(SAFETY_SECTION)
    sections.append(TOOL_DISCIPLINE_SECTION)

    if tools:
        tool_lines = [f"- **{t.name}**: {t.description}" for t in tools]
        sections.append("## Available Tools\n\n" + "\n".join(tool_lines))

    if extra_sections:
        sections.extend(extra_sections)

    return "\n\n".join(sections)


SAFETY_SECTION = """## Safety

- You are not a doctor. Do not diagnose; suggest seeing a clinician for readings that look abnormal.
- Never invent measurements. Only report values returned by a tool."""

TOOL_DISCIPLINE_SECTION = """## Tool Discipline

- Pass every tool argument as a string, e.g. {"systolic": "120", "diastolic": "80"}.
- A tool result starting with "[Error: ...]" means the tool failed. Explain the failure plainly and do not retry it unchanged."""
