"""
Diagnostics CLI for the progress engine.

Commands:
    progress-engine init-db                         - Create the local tables
    progress-engine queue USER [--kind] [--limit]   - Show the review queue
    progress-engine strategy USER                   - Show the recommended strategy
    progress-engine snapshot USER [--json]          - Assemble the knowledge snapshot
    progress-engine level USER                      - Recompute the CEFR level
    progress-engine review USER KIND SUBJECT Q      - Record a review, then flush sync
"""

from __future__ import annotations

import sys

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from progress_engine.app import ProgressEngine, build_progress_engine
from progress_engine.errors import ProgressEngineError
from progress_engine.knowledge.models import ItemKind

app = typer.Typer(help="Learning-progress engine diagnostics", no_args_is_help=True)
console = Console()

PRIORITY_STYLES = {
    "CRITICAL": "bold red",
    "IMPORTANT": "yellow",
    "SUPPORTING": "cyan",
    "MASTERY": "green",
}


def _engine() -> ProgressEngine:
    return build_progress_engine()


def _kind(value: str) -> ItemKind:
    try:
        return ItemKind(value.lower())
    except ValueError:
        rprint(f"[red]Unknown kind '{value}'[/red] (expected word, rule or phrase)")
        raise typer.Exit(code=2)


@app.command("init-db")
def init_db_command() -> None:
    """Create the knowledge store tables (idempotent)."""
    _engine()
    rprint("[green]✓[/green] Database initialized!")


@app.command("queue")
def queue_command(
    user: str = typer.Argument(..., help="Learner id"),
    kind: str = typer.Option("word", "--kind", "-k", help="word, rule or phrase"),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Max items (default: per-kind limit)"),
) -> None:
    """Show the prioritized review queue."""
    engine = _engine()
    items = engine.queue_builder.build_queue(user, limit=limit, kind=_kind(kind))
    if not items:
        rprint("[dim]Nothing due for review.[/dim]")
        return

    table = Table(title=f"Review queue: {user} ({kind})")
    table.add_column("Subject")
    table.add_column("Priority")
    table.add_column("Level", justify="right")
    table.add_column("Overdue (d)", justify="right")
    for entry in items:
        style = PRIORITY_STYLES.get(entry.priority.name, "")
        table.add_row(
            entry.item.subject_id,
            f"[{style}]{entry.priority.name}[/{style}]",
            str(entry.item.knowledge_level),
            str(entry.overdue_days),
        )
    console.print(table)


@app.command("strategy")
def strategy_command(user: str = typer.Argument(..., help="Learner id")) -> None:
    """Show the recommended teaching strategy."""
    recommendation = _engine().selector.select(user)
    rprint(f"[bold]{recommendation.primary.value}[/bold] / {recommendation.secondary.value}")
    rprint(f"[dim]{recommendation.reason}[/dim]")


@app.command("snapshot")
def snapshot_command(
    user: str = typer.Argument(..., help="Learner id"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON snapshot"),
) -> None:
    """Assemble and display the knowledge snapshot."""
    snapshot = _engine().assembler.assemble(user)
    if as_json:
        typer.echo(snapshot.model_dump_json(indent=2))
        return

    table = Table(title=f"Knowledge snapshot: {user}")
    table.add_column("Dimension")
    table.add_column("Summary")
    table.add_row("Level", f"{snapshot.level.cefr_level} ({snapshot.level.sub_level}/10)")
    table.add_row(
        "Vocabulary",
        f"{snapshot.vocabulary.total_words} words, {snapshot.vocabulary.words_for_review_today} due",
    )
    table.add_row(
        "Grammar",
        f"{snapshot.grammar.known_count}/{snapshot.grammar.total_rules} known, "
        f"{snapshot.grammar.rules_for_review_today} due",
    )
    table.add_row(
        "Pronunciation",
        f"{snapshot.pronunciation.overall_score:.0%} ({snapshot.pronunciation.trend})",
    )
    table.add_row("Sessions", f"{snapshot.session_history.total_sessions}, streak {snapshot.session_history.streak_days}d")
    table.add_row("Weak points", str(len(snapshot.weak_points)))
    table.add_row(
        "Strategy",
        f"{snapshot.recommendations.primary_strategy} / {snapshot.recommendations.secondary_strategy}",
    )
    console.print(table)


@app.command("level")
def level_command(user: str = typer.Argument(..., help="Learner id")) -> None:
    """Recompute and persist the learner's CEFR level."""
    try:
        result = _engine().levels.recompute(user)
    except ProgressEngineError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    rprint(
        f"{result.previous_level.value}.{result.previous_sub_level} -> "
        f"[bold]{result.new_level.value}.{result.new_sub_level}[/bold]"
    )
    rprint(f"[dim]{result.reason}[/dim]")


@app.command("review")
def review_command(
    user: str = typer.Argument(..., help="Learner id"),
    kind: str = typer.Argument(..., help="word, rule or phrase"),
    subject: str = typer.Argument(..., help="Catalog subject id"),
    quality: int = typer.Argument(..., help="Recall quality 0-5"),
) -> None:
    """Record one graded review, then flush it to the remote store."""
    engine = _engine()
    engine.identity.sign_in(user)
    try:
        item = engine.updater.record_review(user, _kind(kind), subject, quality)
    except ProgressEngineError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    rprint(
        f"[green]✓[/green] {subject}: level {item.knowledge_level}, "
        f"next review in {item.interval_days:.1f}d (EF {item.ease_factor:.2f})"
    )
    status = engine.sync_queue.flush()
    rprint(f"Sync: {status.value}")


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")

    app()


if __name__ == "__main__":
    main()
