"""
Main CLI application for healthchat.

Usage:
    hc chat [--profile NAME] [--model NAME] [--log-level LEVEL]
    hc tools list|info
    hc config show|validate
    hc version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from healthchat import __version__
from healthchat.config import HealthChatConfig, load_config
from healthchat.tools.health import BloodPressureProvider, BloodPressureStore, InMemoryBloodPressureStore
from healthchat.tools.registry import ToolRegistry

app = typer.Typer(name="hc", help="HealthChat - tool-using health assistant")
tools_app = typer.Typer(help="Tool management")
config_app = typer.Typer(help="Configuration management")

app.add_typer(tools_app, name="tools")
app.add_typer(config_app, name="config")

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_config_path() -> Path | None:
    """Find config file in standard locations."""
    candidates = [
        Path.cwd() / "healthchat.yaml",
        Path.cwd() / "healthchat.yml",
        Path.home() / ".config" / "healthchat" / "config.yaml",
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def build_registry(cfg: HealthChatConfig, store: BloodPressureStore | None = None) -> ToolRegistry:
    """Register built-in providers and any allowed plugins."""
    store = store or InMemoryBloodPressureStore()
    registry = ToolRegistry(disabled=set(cfg.tools.disabled))
    registry.register(BloodPressureProvider(store))
    registry.load_plugins(
        enabled=cfg.plugins.enabled,
        allow_distributions=set(cfg.plugins.allow_distributions) if cfg.plugins.allow_distributions else None,
        allow_providers=set(cfg.plugins.allow_providers) if cfg.plugins.allow_providers else None,
        store=store,
    )
    return registry


def _setup_stack(cfg: HealthChatConfig):
    """Wire up the full stack for chat."""
    from healthchat.cli.chat import ChatHandler
    from healthchat.conversation.engine import ConversationEngine
    from healthchat.llm.providers.anthropic import AnthropicProvider
    from healthchat.prompts.system import build_system_prompt

    api_key = cfg.llm.api_key()
    if not api_key:
        console.print(
            f"[red]No API key:[/red] set the {cfg.llm.api_key_env} environment variable."
        )
        raise typer.Exit(1)

    registry = build_registry(cfg)

    provider = AnthropicProvider(
        api_key=api_key,
        url=cfg.llm.api_base,
        model=cfg.llm.model,
        version=cfg.llm.anthropic_version,
        max_output=cfg.llm.max_output_tokens,
        timeout=float(cfg.llm.timeout_seconds),
        max_retries=cfg.llm.max_retries,
    )

    system_prompt = cfg.session.system_prompt or build_system_prompt(tools=registry.list())

    engine = ConversationEngine(
        provider=provider,
        tools=registry,
        system_prompt=system_prompt,
        tool_timeout=cfg.session.tool_timeout_seconds,
        max_turns=cfg.session.max_turns,
    )
    return ChatHandler(engine=engine, console=console)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def chat(
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
    model: Optional[str] = typer.Option(None, help="Model identifier"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Start an interactive chat session."""
    overrides = {}
    if model:
        overrides["llm.model"] = model
    if log_level:
        overrides["logging.level"] = log_level
    cfg = load_config(_get_config_path(), profile=profile, cli_overrides=overrides)
    _configure_logging(cfg.logging.level)

    handler = _setup_stack(cfg)
    asyncio.run(handler.run_loop())


@tools_app.command("list")
def tools_list():
    """List registered tools."""
    from healthchat.cli.output import OutputFormatter

    registry = build_registry(load_config(_get_config_path()))
    OutputFormatter(console).format_tool_list(registry.list())


@tools_app.command("info")
def tools_info(tool_name: str = typer.Argument(..., help="Tool name")):
    """Show tool details and schema."""
    from healthchat.cli.output import OutputFormatter

    registry = build_registry(load_config(_get_config_path()))
    tool = registry.get(tool_name)
    if not tool:
        console.print(f"[red]Tool not found:[/red] {tool_name}")
        raise typer.Exit(1)

    OutputFormatter(console).format_tool_info(tool)


@config_app.command("show")
def config_show():
    """Show effective config."""
    from healthchat.cli.output import OutputFormatter

    cfg = load_config(_get_config_path())
    OutputFormatter(console).format_config(cfg.to_dict())


@config_app.command("validate")
def config_validate():
    """Validate config and show the key settings."""
    config_path = _get_config_path()
    try:
        cfg = load_config(config_path)
        console.print("[green]Config is valid.[/green]")
        if config_path:
            console.print(f"  Loaded from: {config_path}")
        else:
            console.print("  [dim]No config file found, using defaults.[/dim]")
        console.print(f"  LLM: {cfg.llm.name} ({cfg.llm.model})")
        key_state = "set" if cfg.llm.api_key() else "missing"
        console.print(f"  API key ({cfg.llm.api_key_env}): {key_state}")
        console.print(f"  Max turns: {cfg.session.max_turns}")
        console.print(f"  Plugins enabled: {cfg.plugins.enabled}")
    except Exception as e:
        console.print(f"[red]Config validation failed:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version."""
    console.print(f"healthchat v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
