"""
Command-line interface for the Reveri memory journal.
"""
import click
import logging
import sys
from datetime import date
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box
from rich.markup import escape
from pathlib import Path

from reveri import __version__, config
from reveri.emotions import EMOTIONS, describe, emoji_for
from reveri.errors import ConfigurationError, PersistenceWriteFailed, Rejected
from reveri.memory import MemoryRecord
from reveri.storage import open_storage
from reveri.store import MemoryStore


# Setup logging
logging.basicConfig(
    level=getattr(logging, config.log_level(), logging.WARNING),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()

EMOTION_CHOICE = click.Choice(EMOTIONS, case_sensitive=False)


def open_store(backend: Optional[str] = None, data_dir: Optional[str] = None) -> MemoryStore:
    """Build and initialize the store for the configured backend."""
    db_path = json_path = None
    if data_dir:
        db_path = str(Path(data_dir) / "reveri.db")
        json_path = str(Path(data_dir) / "memories.json")

    store = MemoryStore(open_storage(backend=backend, db_path=db_path, json_path=json_path))
    store.initialize()
    return store


def _store(ctx: click.Context) -> MemoryStore:
    try:
        return open_store(ctx.obj.get("backend"), ctx.obj.get("data_dir"))
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}", style="red")
        sys.exit(1)


def _format_date(value: date) -> str:
    return value.strftime("%b %d, %Y")


def _resolve(store: MemoryStore, memory_id: str) -> Optional[MemoryRecord]:
    """Find exactly one memory by full id or unique prefix."""
    memory = store.get(memory_id)
    if memory:
        return memory

    matches = store.find_by_prefix(memory_id)
    if len(matches) > 1:
        console.print(f"[yellow]⚠[/yellow] '{memory_id}' matches {len(matches)} memories, use a longer id")
        return None
    if not matches:
        console.print(f"[red]✗[/red] Memory not found: {memory_id}", style="red")
        return None
    return matches[0]


def _print_memories(memories: List[MemoryRecord], title: str) -> None:
    if not memories:
        console.print("[yellow]No memories found.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date", style="dim", no_wrap=True)
    table.add_column("Memory", style="white", overflow="fold")
    table.add_column("Emotion", style="yellow", no_wrap=True)
    table.add_column("Tags", style="magenta", overflow="fold")

    for memory in memories:
        description = memory.description[:80] + "..." if len(memory.description) > 80 else memory.description
        tags_str = escape(" ".join(f"#{t}" for t in memory.tags))
        emotion = f"{emoji_for(memory.emotion)} {memory.emotion}"
        table.add_row(
            memory.id[:8],
            _format_date(memory.date),
            f"[bold]{escape(memory.title)}[/bold]\n{escape(description)}",
            escape(emotion),
            tags_str
        )

    console.print(table)


@click.group()
@click.version_option(version=__version__)
@click.option("--backend", type=click.Choice(["sqlite", "json"]), default=None,
              help="Storage backend (default: $REVERI_BACKEND or sqlite)")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              help="Directory holding the journal data (default: $REVERI_ROOT/.reveri)")
@click.pass_context
def cli(ctx, backend: Optional[str], data_dir: Optional[str]):
    """
    Reveri - Personal Memory Journal

    Record memories with an emotion, tags and a date, and browse them later.
    """
    ctx.ensure_object(dict)
    ctx.obj["backend"] = backend
    ctx.obj["data_dir"] = data_dir


@cli.command()
@click.argument("title")
@click.argument("description")
@click.option("--emotion", "-e", type=EMOTION_CHOICE, default="happy", show_default=True,
              help="How the memory felt")
@click.option("--tags", "-t", multiple=True, help="Tags, comma-separated or repeated")
@click.option("--date", "-d", "when", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Date of the memory, YYYY-MM-DD (default: today)")
@click.pass_context
def add(ctx, title: str, description: str, emotion: str, tags: tuple, when):
    """Record a new memory."""
    try:
        store = _store(ctx)
        result = store.add(
            title=title,
            description=description,
            emotion=emotion.lower(),
            tags=",".join(tags),
            date=when.date() if when else date.today()
        )
    except PersistenceWriteFailed as e:
        if e.record is not None:
            console.print(f"[green]✓[/green] Memory recorded: {e.record.id[:8]}...")
        console.print(f"[yellow]⚠[/yellow] Could not save your journal, this change may not survive a restart: {escape(str(e))}")
        logger.error(f"Error in add command: {e}", exc_info=True)
        sys.exit(1)

    if isinstance(result, Rejected):
        console.print(f"[red]✗[/red] Memory not recorded. {result.reason}", style="red")
        sys.exit(1)

    console.print(f"[green]✓[/green] Memory recorded: {result.id[:8]}...")
    if result.tags:
        console.print(f"  Tags: {', '.join(result.tags)}")


@cli.command(name="list")
@click.option("--emotion", "-e", type=EMOTION_CHOICE, default=None, help="Only this emotion")
@click.pass_context
def list_memories(ctx, emotion: Optional[str]):
    """List all memories, most recent first."""
    try:
        store = _store(ctx)
        memories = store.query(emotion=emotion.lower() if emotion else None)
        _print_memories(memories, f"🧠 Memories ({len(memories)})")
    except Exception as e:
        console.print(f"[red]✗[/red] Error listing memories: {e}", style="red")
        logger.error(f"Error in list command: {e}", exc_info=True)
        sys.exit(1)


@cli.command()
@click.argument("text")
@click.option("--emotion", "-e", type=EMOTION_CHOICE, default=None, help="Only this emotion")
@click.pass_context
def search(ctx, text: str, emotion: Optional[str]):
    """Search memory titles and descriptions."""
    try:
        store = _store(ctx)
        memories = store.query(text=text, emotion=emotion.lower() if emotion else None)
        _print_memories(memories, f"🔍 Search Results for: '{escape(text)}'")
    except Exception as e:
        console.print(f"[red]✗[/red] Error searching memories: {e}", style="red")
        logger.error(f"Error in search command: {e}", exc_info=True)
        sys.exit(1)


@cli.command()
@click.argument("memory_id")
@click.pass_context
def get(ctx, memory_id: str):
    """Show a memory by ID (or unique ID prefix)."""
    try:
        store = _store(ctx)
        memory = _resolve(store, memory_id)
    except Exception as e:
        console.print(f"[red]✗[/red] Error getting memory: {e}", style="red")
        logger.error(f"Error in get command: {e}", exc_info=True)
        sys.exit(1)

    if not memory:
        sys.exit(1)

    glyph, _ = describe(memory.emotion)
    content = f"""
[cyan]ID:[/cyan] {memory.id}
[cyan]Title:[/cyan] {escape(memory.title)}
[cyan]Description:[/cyan] {escape(memory.description)}
[cyan]Emotion:[/cyan] {glyph} {escape(memory.emotion)}
[cyan]Tags:[/cyan] {escape(' '.join(f'#{t}' for t in memory.tags)) or 'None'}
[cyan]Date:[/cyan] {_format_date(memory.date)}
    """

    panel = Panel(
        content.strip(),
        title="📝 Memory Details",
        border_style="cyan",
        box=box.ROUNDED
    )
    console.print(panel)


@cli.command()
@click.argument("memory_id")
@click.confirmation_option(prompt="Are you sure you want to delete this memory?")
@click.pass_context
def delete(ctx, memory_id: str):
    """Delete a memory by ID (or unique ID prefix)."""
    try:
        store = _store(ctx)
        memory = _resolve(store, memory_id)
        if not memory:
            sys.exit(1)

        if store.delete(memory.id):
            console.print(f"[green]✓[/green] Memory deleted: {escape(memory.title)}")
        else:
            console.print(f"[red]✗[/red] Memory not found: {memory_id}", style="red")
            sys.exit(1)
    except PersistenceWriteFailed as e:
        console.print(f"[yellow]⚠[/yellow] Could not save your journal, this change may not survive a restart: {escape(str(e))}")
        logger.error(f"Error in delete command: {e}", exc_info=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def mood(ctx):
    """Show the mood of your latest memory."""
    try:
        store = _store(ctx)
        glyph, label = describe(store.current_emotion())
    except Exception as e:
        console.print(f"[red]✗[/red] Error reading mood: {e}", style="red")
        logger.error(f"Error in mood command: {e}", exc_info=True)
        sys.exit(1)

    panel = Panel(
        f"[bold]{glyph}[/bold]\n[dim]{label}[/dim]",
        title="🧠 Reveri Memory Companion",
        border_style="magenta",
        box=box.ROUNDED
    )
    console.print(panel)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show journal statistics."""
    try:
        store = _store(ctx)
        stats = store.get_stats()
    except Exception as e:
        console.print(f"[red]✗[/red] Error getting stats: {e}", style="red")
        logger.error(f"Error in stats command: {e}", exc_info=True)
        sys.exit(1)

    emotions = ", ".join(
        f"{emoji_for(name)} {name}: {count}"
        for name, count in sorted(stats["emotions"].items(), key=lambda kv: (-kv[1], kv[0]))
    ) or "None"

    stats_text = f"""
[cyan]Total Memories:[/cyan] {stats['total_memories']}
[cyan]Unique Tags:[/cyan] {stats['unique_tags']}
[cyan]Emotions:[/cyan] {escape(emotions)}
[cyan]Current Mood:[/cyan] {escape(stats['current_emotion'])}
[cyan]Storage:[/cyan] {escape(stats['storage'])}
    """

    panel = Panel(
        stats_text.strip(),
        title="📊 Reveri Statistics",
        border_style="cyan",
        box=box.DOUBLE
    )
    console.print(panel)


if __name__ == "__main__":
    cli()
