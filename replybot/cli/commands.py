"""CLI commands for replybot."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from replybot import __logo__, __version__

app = typer.Typer(
    name="replybot",
    help=f"{__logo__} replybot - Auto-replies and AI responses for chat bots",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} replybot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    """replybot - Auto-replies and AI responses for chat bots."""
    from replybot.config.loader import load_config
    from replybot.utils.logging import setup_logging

    setup_logging(load_config().logging, verbose=verbose)


def _rule_store():
    from replybot.config.loader import load_config
    from replybot.rules import RuleStore
    from replybot.storage import JsonFileStore

    config = load_config()
    return RuleStore(JsonFileStore(config.storage_path), key=config.storage.rules_key)


def _context(chat: str, sender: str, group: str | None):
    from replybot.rules import MessageContext

    if group:
        return MessageContext(chat_id=group, sender=sender, is_group=True, group_id=group)
    return MessageContext(chat_id=chat, sender=sender)


# ============================================================================
# Status / Ask
# ============================================================================


@app.command()
def status():
    """Show replybot configuration and rule counts."""
    from replybot.config.loader import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()
    rules = _rule_store().list()

    console.print(f"{__logo__} replybot status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Storage: {config.storage_path} {'[green]✓[/green]' if config.storage_path.exists() else '[dim]not created[/dim]'}")
    console.print(f"Model: {config.provider.model}")
    console.print(f"API key: {'[green]✓[/green]' if config.provider.api_key else '[dim]not set[/dim]'}")
    console.print(f"Min interval: {config.dispatch.min_interval_seconds}s, attempts: {config.dispatch.max_attempts}")
    console.print(f"Rules: {len(rules)} ({sum(1 for r in rules if r.enabled)} enabled)")


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message text"),
    sender: str = typer.Option("cli@local", "--sender", "-s", help="Sender id"),
    chat: str = typer.Option("cli", "--chat", "-c", help="Chat id"),
    group: str = typer.Option(None, "--group", "-g", help="Treat as a message in this group"),
):
    """Run a message through rules and the AI pipeline."""
    from replybot.app import create_app
    from replybot.config.loader import load_config

    bot = create_app(load_config())
    ctx = _context(chat, sender, group)

    async def run():
        try:
            return await bot.dispatcher.handle(message, ctx)
        finally:
            await bot.close()

    reply = asyncio.run(run())
    if reply is None:
        console.print("[dim]Nothing to reply to.[/dim]")
    else:
        console.print(f"\n{__logo__} {reply}")


# ============================================================================
# Rule Commands
# ============================================================================


rules_app = typer.Typer(help="Manage auto-reply rules")
app.add_typer(rules_app, name="rules")


@rules_app.command("list")
def rules_list(
    scope: str = typer.Option(None, "--scope", help="Filter by scope (global, group, private)"),
    group: str = typer.Option(None, "--group", "-g", help="Filter by group id"),
):
    """List auto-reply rules."""
    rules = _rule_store().list(scope=scope, group_id=group)

    if not rules:
        console.print("No auto-reply rules.")
        return

    table = Table(title="Auto-Reply Rules")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Pattern")
    table.add_column("Response")
    table.add_column("Scope")
    table.add_column("Mode")
    table.add_column("Hits", justify="right")
    table.add_column("Status")

    for rule in rules:
        scope_label = rule.scope.value
        if rule.group_id:
            scope_label = f"{scope_label} ({rule.group_id})"
        status = "[green]enabled[/green]" if rule.enabled else "[dim]disabled[/dim]"
        mode = rule.match_mode.value + (" [dim]Aa[/dim]" if rule.case_sensitive else "")
        table.add_row(rule.id, rule.pattern, rule.response, scope_label, mode, str(rule.hits), status)

    console.print(table)


@rules_app.command("add")
def rules_add(
    pattern: str = typer.Argument(..., help="Pattern to match"),
    response: str = typer.Argument(..., help="Response template ({sender}, {message}, {time}, {date})"),
    scope: str = typer.Option("global", "--scope", help="global, group or private"),
    group: str = typer.Option(None, "--group", "-g", help="Group id for group rules"),
    mode: str = typer.Option("wildcard", "--mode", "-m", help="wildcard, regex or exact"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Match case exactly"),
):
    """Add an auto-reply rule."""
    from replybot.result import Err

    result = _rule_store().create(
        pattern=pattern,
        response=response,
        scope=scope,
        group_id=group,
        match_mode=mode,
        case_sensitive=case_sensitive,
        created_by="cli",
    )
    if isinstance(result, Err):
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Added rule {result.value.id}")


@rules_app.command("remove")
def rules_remove(
    rule_id: str = typer.Argument(..., help="Rule ID to remove"),
):
    """Remove an auto-reply rule."""
    from replybot.result import Err

    result = _rule_store().delete(rule_id)
    if isinstance(result, Err):
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed rule {rule_id}")


def _set_enabled(rule_id: str, enabled: bool) -> None:
    from replybot.result import Err

    result = _rule_store().toggle(rule_id, enabled)
    if isinstance(result, Err):
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Rule {rule_id} {'enabled' if enabled else 'disabled'}")


@rules_app.command("enable")
def rules_enable(rule_id: str = typer.Argument(..., help="Rule ID")):
    """Enable a rule."""
    _set_enabled(rule_id, True)


@rules_app.command("disable")
def rules_disable(rule_id: str = typer.Argument(..., help="Rule ID")):
    """Disable a rule."""
    _set_enabled(rule_id, False)


@rules_app.command("test")
def rules_test(
    message: str = typer.Argument(..., help="Message text"),
    sender: str = typer.Option("cli@local", "--sender", "-s", help="Sender id"),
    chat: str = typer.Option("cli", "--chat", "-c", help="Chat id"),
    group: str = typer.Option(None, "--group", "-g", help="Treat as a message in this group"),
):
    """Show which rule would answer a message, without counting a hit."""
    from replybot.rules import AutoReplyEngine

    engine = AutoReplyEngine(_rule_store())
    result = engine.match(message, _context(chat, sender, group), record_hit=False)

    if result.matched:
        console.print(f"[green]✓[/green] Rule {result.rule_id}: {result.response}")
    else:
        console.print("[dim]No rule matches.[/dim]")


@rules_app.command("generate")
def rules_generate(
    example: list[str] = typer.Option(
        ..., "--example", "-e", help="Example as 'message=>response' (repeatable)"
    ),
    scope: str = typer.Option("global", "--scope", help="global, group or private"),
    group: str = typer.Option(None, "--group", "-g", help="Group id for group rules"),
):
    """Ask the AI backend to derive a rule from examples."""
    from replybot.app import create_app
    from replybot.config.loader import load_config
    from replybot.result import Err
    from replybot.rules import RuleExample

    examples = []
    for raw in example:
        message, sep, response = raw.partition("=>")
        if not sep:
            console.print(f"[red]Error: example must look like 'message=>response': {raw}[/red]")
            raise typer.Exit(1)
        examples.append(RuleExample(message=message.strip(), response=response.strip()))

    bot = create_app(load_config())

    async def run():
        try:
            return await bot.rule_generator.generate(examples, scope, group, created_by="cli")
        finally:
            await bot.close()

    result = asyncio.run(run())
    if isinstance(result, Err):
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    rule = result.value
    console.print(f"[green]✓[/green] Generated rule {rule.id}")
    console.print(f"Pattern: {rule.pattern}")
    console.print(f"Response: {rule.response}")
    console.print(f"Mode: {rule.match_mode.value}, case-sensitive: {'yes' if rule.case_sensitive else 'no'}")
