"""
Content codec -- maps content blocks to and from their wire JSON shape.

Every wire block carries a ``type`` discriminator:

    text         {"type": "text", "text": str}
    tool_use     {"type": "tool_use", "id": str, "name": str, "input": {str: str}}
    tool_result  {"type": "tool_result", "tool_use_id": str, "content": str}

Decoding is strict: an absent or unknown discriminator, a missing or
mistyped field, or a field not defined for the variant raises
``MalformedContent``.  Accepting only exact field sets keeps
``encode(decode(w)) == w`` for every accepted wire object.
"""

from __future__ import annotations

from typing import Any, Callable

from healthchat.errors import MalformedContent
from healthchat.llm.types import (
    ContentBlock,
    Message,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _encode_text(block: TextBlock) -> dict:
    return {"type": TextBlock.type, "text": block.value}


def _encode_tool_use(block: ToolUseBlock) -> dict:
    return {
        "type": ToolUseBlock.type,
        "id": block.id,
        "name": block.name,
        "input": dict(block.input),
    }


def _encode_tool_result(block: ToolResultBlock) -> dict:
    return {
        "type": ToolResultBlock.type,
        "tool_use_id": block.tool_use_id,
        "content": block.content,
    }


_ENCODERS: dict[str, Callable[[Any], dict]] = {
    TextBlock.type: _encode_text,
    ToolUseBlock.type: _encode_tool_use,
    ToolResultBlock.type: _encode_tool_result,
}


def encode(block: ContentBlock) -> dict:
    """Encode a content block into its wire object."""
    encoder = _ENCODERS.get(getattr(block, "type", None))
    if encoder is None:
        raise MalformedContent(f"Cannot encode content block: {block!r}")
    return encoder(block)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _require_fields(obj: dict, tag: str, expected: tuple[str, ...]) -> None:
    keys = set(obj) - {"type"}
    missing = [k for k in expected if k not in keys]
    if missing:
        raise MalformedContent(f"{tag} block missing field(s): {', '.join(missing)}")
    extra = sorted(keys - set(expected))
    if extra:
        raise MalformedContent(f"{tag} block has unexpected field(s): {', '.join(extra)}")


def _require_str(obj: dict, tag: str, key: str) -> str:
    value = obj[key]
    if not isinstance(value, str):
        raise MalformedContent(
            f"{tag}.{key} must be a string, got {type(value).__name__}"
        )
    return value


def _decode_text(obj: dict) -> TextBlock:
    _require_fields(obj, TextBlock.type, ("text",))
    return TextBlock(_require_str(obj, TextBlock.type, "text"))


def _decode_tool_use(obj: dict) -> ToolUseBlock:
    _require_fields(obj, ToolUseBlock.type, ("id", "name", "input"))
    raw_input = obj["input"]
    if not isinstance(raw_input, dict):
        raise MalformedContent("tool_use.input must be an object")
    for key, value in raw_input.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise MalformedContent(
                f"tool_use.input[{key!r}] must map a string to a string"
            )
    return ToolUseBlock(
        id=_require_str(obj, ToolUseBlock.type, "id"),
        name=_require_str(obj, ToolUseBlock.type, "name"),
        input=dict(raw_input),
    )


def _decode_tool_result(obj: dict) -> ToolResultBlock:
    _require_fields(obj, ToolResultBlock.type, ("tool_use_id", "content"))
    return ToolResultBlock(
        tool_use_id=_require_str(obj, ToolResultBlock.type, "tool_use_id"),
        content=_require_str(obj, ToolResultBlock.type, "content"),
    )


_DECODERS: dict[str, Callable[[dict], ContentBlock]] = {
    TextBlock.type: _decode_text,
    ToolUseBlock.type: _decode_tool_use,
    ToolResultBlock.type: _decode_tool_result,
}


def decode(obj: Any) -> ContentBlock:
    """Decode a wire object into a content block."""
    if not isinstance(obj, dict):
        raise MalformedContent(f"Content block must be an object, got {type(obj).__name__}")
    if "type" not in obj:
        raise MalformedContent("Content block has no 'type' discriminator")
    tag = obj["type"]
    decoder = _DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        raise MalformedContent(f"Unknown content block type: {tag!r}")
    return decoder(obj)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def encode_message(message: Message) -> dict:
    return {
        "role": message.role.value,
        "content": [encode(b) for b in message.content],
    }


def decode_message(obj: Any) -> Message:
    if not isinstance(obj, dict):
        raise MalformedContent("Message must be an object")
    try:
        role = Role(obj.get("role"))
    except ValueError:
        raise MalformedContent(f"Unknown message role: {obj.get('role')!r}") from None
    content = obj.get("content")
    if not isinstance(content, list):
        raise MalformedContent("Message content must be a list")
    return Message(role, tuple(decode(b) for b in content))


def decode_content(blocks: list) -> tuple[ContentBlock, ...]:
    return tuple(decode(b) for b in blocks)
