"""
Command-line interface for Text Diff Reviewer.

Provides commands to compare two texts, export highlighted comparisons,
review changes with an AI persona, and manage keys, personas and history.
"""

import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.columns import Columns
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .config import AVAILABLE_MODELS, ReviewConfig
from .diff_engine import get_changes_summary
from .docx_writer import write_review_docx
from .highlighter import DiffTooLargeError, bounded_diff, render_html, render_rich
from .llm_client import LLMClientError, MissingAPIKeyError
from .models import ChatMessage, Provider, StoredKey
from .personas import PersonaRegistry
from .session import ReviewSession
from .store import StoreError, open_stores

console = Console()


def _read_input(value: str, literal: bool) -> str:
    if literal:
        return value
    if value == "-":
        return sys.stdin.read()
    path = Path(value)
    if not path.is_file():
        raise click.BadParameter(f"File not found: {value}")
    return path.read_text(encoding="utf-8")


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _print_message(message: ChatMessage) -> None:
    if message.is_error:
        console.print(f"[red]{message.text}[/red]")
    elif message.role == "user":
        console.print(f"[bold cyan]You:[/bold cyan] {message.text}")
    else:
        console.print(Panel(Markdown(message.text), title="Reviewer", border_style="magenta"))


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="DIFF_REVIEW_HOME",
    help="Directory for keys, history and personas (default: ~/.diff_reviewer).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], verbose: bool) -> None:
    """
    Text Diff Reviewer - compare two texts and review the changes with AI.

    Examples:

        diff-review diff old.txt new.txt

        diff-review review old.txt new.txt --persona academic
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    config = ReviewConfig.from_env()
    if data_dir is not None:
        config.data_dir = data_dir
    ctx.obj = config


@main.command()
@click.argument("old")
@click.argument("new")
@click.option(
    "--text",
    "literal",
    is_flag=True,
    default=False,
    help="Treat OLD and NEW as literal text instead of file paths.",
)
@click.option(
    "--view",
    type=click.Choice(["unified", "split", "original", "modified"]),
    default="unified",
    help="How to display the comparison (default: unified).",
)
@click.option(
    "--html",
    "html_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the comparison as an HTML fragment.",
)
@click.option(
    "--docx",
    "docx_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write a track-changes style Word document.",
)
@click.option(
    "--summary",
    is_flag=True,
    default=False,
    help="Print change counts after the comparison.",
)
@click.pass_obj
def diff(
    config: ReviewConfig,
    old: str,
    new: str,
    literal: bool,
    view: str,
    html_path: Optional[Path],
    docx_path: Optional[Path],
    summary: bool,
) -> None:
    """Show the differences between OLD and NEW."""
    original = _read_input(old, literal)
    modified = _read_input(new, literal)

    try:
        spans = bounded_diff(original, modified, config.max_diff_tokens)
    except DiffTooLargeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not spans:
        console.print("[dim]Both texts are empty.[/dim]")
    elif view == "split":
        console.print(Columns([
            Panel(render_rich(spans, "original"), title="Original", border_style="red"),
            Panel(render_rich(spans, "modified"), title="Modified", border_style="green"),
        ], equal=True, expand=True))
    else:
        console.print(render_rich(spans, view))

    if html_path:
        html_path.write_text(render_html(spans, view), encoding="utf-8")
        console.print(f"[green]HTML written to:[/green] {html_path}")

    if docx_path:
        written = write_review_docx(spans, docx_path)
        console.print(f"[green]Word document written to:[/green] {written}")

    if summary:
        stats = get_changes_summary(spans)
        table = Table(title="Change Summary", show_header=True)
        table.add_column("Type", style="cyan")
        table.add_column("Spans", justify="right")
        table.add_column("Characters", justify="right")
        table.add_row("Added", str(stats["additions"]), str(stats["added_chars"]))
        table.add_row("Removed", str(stats["removals"]), str(stats["removed_chars"]))
        table.add_row("Unchanged", str(stats["unchanged"]), str(stats["unchanged_chars"]))
        console.print(table)


@main.command()
@click.argument("old")
@click.argument("new")
@click.option("--text", "literal", is_flag=True, default=False, help="Treat OLD and NEW as literal text.")
@click.option("--persona", "persona_id", default="general", help="Persona id (default: general).")
@click.option("--question", "-q", default="", help="Specific question the reviewer should answer.")
@click.option("--model", "-m", default=None, help="Model to use (default: from config).")
@click.option("--no-chat", is_flag=True, default=False, help="Exit after the first analysis.")
@click.option(
    "--docx",
    "docx_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the comparison and conversation to a Word document.",
)
@click.pass_obj
def review(
    config: ReviewConfig,
    old: str,
    new: str,
    literal: bool,
    persona_id: str,
    question: str,
    model: Optional[str],
    no_chat: bool,
    docx_path: Optional[Path],
) -> None:
    """Ask an AI persona to review the changes from OLD to NEW."""
    session = ReviewSession(config)
    session.set_texts(_read_input(old, literal), _read_input(new, literal))
    session.question = question
    if model:
        session.model = model

    persona = session.select_persona(persona_id)
    if persona.id != persona_id:
        console.print(f"[yellow]Unknown persona '{persona_id}', using {persona.name}.[/yellow]")

    try:
        spans = session.diff()
    except DiffTooLargeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(render_rich(spans))
    console.print()

    try:
        with console.status(f"[bold green]{persona.name} is analyzing..."):
            message = session.start_analysis()
    except MissingAPIKeyError as e:
        console.print(f"[red]LLM error:[/red] {e}")
        sys.exit(1)

    if message is None:
        console.print("[yellow]Both texts need content before they can be reviewed.[/yellow]")
        sys.exit(1)

    _print_message(message)
    if message.is_error:
        sys.exit(1)

    if not no_chat:
        console.print("[dim]Ask a follow-up question, or press Enter to finish.[/dim]")
        while True:
            try:
                text = click.prompt("You", default="", show_default=False)
            except click.Abort:
                break
            if not text.strip():
                break
            with console.status("[bold green]Thinking..."):
                reply = session.send_message(text)
            if reply is not None:
                _print_message(reply)

    if docx_path:
        written = write_review_docx(
            spans,
            docx_path,
            messages=session.messages,
            persona_name=session.persona.name,
        )
        console.print(f"[green]Word document written to:[/green] {written}")


@main.group()
def keys() -> None:
    """Manage stored API keys."""


@keys.command("add")
@click.option(
    "--provider",
    type=click.Choice([p.value for p in Provider]),
    default=Provider.GOOGLE.value,
    help="Provider the key belongs to (default: google).",
)
@click.option("--label", default="", help="Display name for the key.")
@click.option("--base-url", default=None, help="Custom endpoint for OpenAI-compatible providers.")
@click.option("--activate", is_flag=True, default=False, help="Make this the active key.")
@click.option("--value", prompt="API key", hide_input=True, help="The API key itself.")
@click.pass_obj
def keys_add(
    config: ReviewConfig,
    provider: str,
    label: str,
    base_url: Optional[str],
    activate: bool,
    value: str,
) -> None:
    """Save a new API key."""
    if not value.strip():
        console.print("[red]Error:[/red] API key must not be empty")
        sys.exit(1)

    key_store, _, _ = open_stores(config)
    key = StoredKey(
        id=str(uuid.uuid4()),
        label=label or provider,
        provider=Provider(provider),
        value=value.strip(),
        base_url=base_url,
        is_active=activate,
    )
    try:
        key = key_store.add(key)
    except StoreError as e:
        console.print(f"[red]Storage error:[/red] {e}")
        sys.exit(1)

    state = " (active)" if key.is_active else ""
    console.print(f"[green]Saved key[/green] {key.label} {key.masked}{state}")


@keys.command("list")
@click.pass_obj
def keys_list(config: ReviewConfig) -> None:
    """List stored API keys."""
    key_store, _, _ = open_stores(config)
    stored = key_store.list()
    if not stored:
        console.print("[dim]No keys stored.[/dim]")
        return

    table = Table(title="API Keys", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Label", style="cyan")
    table.add_column("Provider")
    table.add_column("Key")
    table.add_column("Active", style="green")
    for key in stored:
        table.add_row(key.id, key.label, key.provider.value, key.masked, "yes" if key.is_active else "")
    console.print(table)


@keys.command("activate")
@click.argument("key_id")
@click.pass_obj
def keys_activate(config: ReviewConfig, key_id: str) -> None:
    """Make KEY_ID the active key."""
    key_store, _, _ = open_stores(config)
    try:
        key = key_store.activate(key_id)
    except KeyError:
        console.print(f"[red]Error:[/red] No key with id {key_id}")
        sys.exit(1)
    console.print(f"[green]Active key:[/green] {key.label}")


@keys.command("remove")
@click.argument("key_id")
@click.pass_obj
def keys_remove(config: ReviewConfig, key_id: str) -> None:
    """Delete a stored key."""
    key_store, _, _ = open_stores(config)
    if not key_store.remove(key_id):
        console.print(f"[red]Error:[/red] No key with id {key_id}")
        sys.exit(1)
    console.print("[green]Key removed.[/green]")


@main.group()
def personas() -> None:
    """Manage reviewer personas."""


@personas.command("list")
@click.pass_obj
def personas_list(config: ReviewConfig) -> None:
    """List available personas."""
    _, _, persona_store = open_stores(config)
    registry = PersonaRegistry(persona_store)

    table = Table(title="Personas", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Instruction", overflow="fold")
    for persona in registry.all():
        table.add_row(persona.id, persona.name, "custom" if persona.is_custom else "standard", persona.description)
    console.print(table)


@personas.command("create")
@click.argument("name")
@click.option("--description", "-d", default=None, help="Instruction for the persona.")
@click.option("--generate", is_flag=True, default=False, help="Let the AI draft the instruction.")
@click.option("--model", "-m", default=None, help="Model used with --generate.")
@click.pass_obj
def personas_create(
    config: ReviewConfig,
    name: str,
    description: Optional[str],
    generate: bool,
    model: Optional[str],
) -> None:
    """Create a custom persona called NAME."""
    key_store, _, persona_store = open_stores(config)
    registry = PersonaRegistry(persona_store)

    try:
        if generate:
            with console.status("[bold green]Drafting persona instruction..."):
                persona = registry.create_generated(name, key_store.active(), model or config.model, config=config)
        else:
            if description is None:
                description = click.prompt("Instruction")
            persona = registry.create(name, description)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except LLMClientError as e:
        console.print(f"[red]LLM error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Created persona[/green] {persona.name} ({persona.id})")
    console.print(f"[dim]{persona.description}[/dim]")


@main.group()
def history() -> None:
    """Browse saved reviews."""


@history.command("list")
@click.pass_obj
def history_list(config: ReviewConfig) -> None:
    """List saved reviews, newest first."""
    _, history_store, _ = open_stores(config)
    items = history_store.list()
    if not items:
        console.print("[dim]No saved reviews.[/dim]")
        return

    table = Table(title="Review History", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Persona", style="cyan")
    table.add_column("Original", overflow="fold")
    table.add_column("Messages", justify="right")
    for item in items:
        table.add_row(
            item.id,
            _format_timestamp(item.timestamp),
            item.persona.name,
            item.preview,
            str(len(item.messages)),
        )
    console.print(table)


@history.command("show")
@click.argument("item_id")
@click.pass_obj
def history_show(config: ReviewConfig, item_id: str) -> None:
    """Show a saved review with its diff and conversation."""
    _, history_store, _ = open_stores(config)
    item = history_store.get(item_id)
    if item is None:
        console.print(f"[red]Error:[/red] No history entry with id {item_id}")
        sys.exit(1)

    console.print(f"[bold]{item.persona.name}[/bold] - {_format_timestamp(item.timestamp)}")
    if item.question:
        console.print(f"[cyan]Question:[/cyan] {item.question}")

    try:
        spans = bounded_diff(item.original_text, item.modified_text, config.max_diff_tokens)
        console.print(render_rich(spans))
    except DiffTooLargeError as e:
        console.print(f"[yellow]{e}[/yellow]")

    for message in item.messages:
        _print_message(message)


@history.command("delete")
@click.argument("item_id")
@click.pass_obj
def history_delete(config: ReviewConfig, item_id: str) -> None:
    """Delete one saved review."""
    _, history_store, _ = open_stores(config)
    if not history_store.delete(item_id):
        console.print(f"[red]Error:[/red] No history entry with id {item_id}")
        sys.exit(1)
    console.print("[green]History entry deleted.[/green]")


@history.command("clear")
@click.confirmation_option(prompt="Delete all saved reviews?")
@click.pass_obj
def history_clear(config: ReviewConfig) -> None:
    """Delete all saved reviews."""
    _, history_store, _ = open_stores(config)
    history_store.clear()
    console.print("[green]History cleared.[/green]")


@main.command("models")
def models_list() -> None:
    """List selectable models per provider."""
    table = Table(title="Models", show_header=True)
    table.add_column("Provider", style="cyan")
    table.add_column("Models")
    for provider, model_ids in AVAILABLE_MODELS.items():
        table.add_row(provider, ", ".join(model_ids))
    console.print(table)


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
