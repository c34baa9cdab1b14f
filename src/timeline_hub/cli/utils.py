"""
CLI utility helpers — service assembly and output formatting.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from timeline_hub.core.errors import TimelineError
from timeline_hub.core.settings import get_settings
from timeline_hub.providers import InMemoryTimelineProvider, load_provider
from timeline_hub.timeline import TimelineItem, TimelineService, TimelineSource, TimelineView

console = Console()
err_console = Console(stderr=True)


# ── Service helper ───────────────────────────────────────────────────────


def build_service(
    provider_refs: list[str] | None,
    item_files: list[Path] | None,
    *,
    page_size: int | None = None,
) -> TimelineService:
    """Create a service and register every provider named on the command line."""
    settings = get_settings()
    service = TimelineService(
        page_size=page_size or settings.page_size,
        deduplicate=settings.deduplicate,
    )
    try:
        for ref in provider_refs or []:
            service.register_provider(load_provider(ref))
        for path in item_files or []:
            service.register_provider(InMemoryTimelineProvider.from_json(path))
    except (TimelineError, OSError) as e:
        service.close()
        fail(str(e))
    if not service.list_sources():
        service.close()
        fail("No providers given. Use --provider module:attr or --items FILE.")
    return service


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=code)


# ── Output helpers ───────────────────────────────────────────────────────


def format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def output_sources(sources: list[TimelineSource], *, as_json: bool = False) -> None:
    rows = sorted(sources, key=lambda s: s.id)
    if as_json:
        console.print_json(json.dumps([{"id": s.id, "label": s.label} for s in rows]))
        return
    table = Table(title="Timeline Sources", show_lines=False, pad_edge=False)
    table.add_column("id", style="cyan")
    table.add_column("label")
    for source in rows:
        table.add_row(source.id, source.label)
    console.print(table)


def output_view(view: TimelineView, *, as_json: bool = False, title: str = "") -> None:
    """Render a merged timeline view to the terminal."""
    if as_json:
        payload: dict[str, Any] = {
            "uri": view.uri,
            "items": [item.to_dict() for item in view.items],
            "has_more": dict(view.has_more),
        }
        console.print_json(json.dumps(payload, default=str))
        return

    if not view.items:
        console.print("[dim]No items.[/dim]")
    else:
        _print_items(list(view.items), title=title or view.uri)

    for source, more in view.has_more.items():
        state = "[yellow]more available[/yellow]" if more else "[dim]complete[/dim]"
        console.print(f"  [cyan]{source}[/cyan]: {state}")


def _print_items(items: list[TimelineItem], *, title: str = "") -> None:
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("when (UTC)", no_wrap=True)
    table.add_column("source", style="cyan")
    table.add_column("label", overflow="fold")
    table.add_column("description", overflow="fold", style="dim")
    for item in items:
        table.add_row(
            format_timestamp(item.timestamp),
            item.source or "",
            escape(item.label),
            escape(item.description or ""),
        )
    console.print(table)
