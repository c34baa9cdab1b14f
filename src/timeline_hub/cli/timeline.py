"""
CLI: ``timeline-hub sources`` / ``timeline-hub show`` — inspect providers
and load merged timelines.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer

from rich.markup import escape

from timeline_hub.cli.utils import build_service, err_console, output_sources, output_view
from timeline_hub.timeline import LoadStatus, TimelineService, TimelineView


def _provider_option() -> Any:
    return typer.Option(
        None, "--provider", "-p", help="Provider reference 'module:attr' (repeatable)"
    )


def _items_option() -> Any:
    return typer.Option(
        None, "--items", "-i", help="JSON file served by an in-memory provider (repeatable)",
        exists=True, dir_okay=False, readable=True,
    )


def sources(
    provider: list[str] | None = _provider_option(),
    items: list[Path] | None = _items_option(),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List registered timeline sources."""
    service = build_service(provider, items)
    try:
        output_sources(service.list_sources(), as_json=json_out)
    finally:
        service.close()


def show(
    uri: str = typer.Argument(..., help="Resource URI, e.g. file:///repo/src/app.py"),
    provider: list[str] | None = _provider_option(),
    items: list[Path] | None = _items_option(),
    pages: int = typer.Option(1, "--pages", "-n", min=1, help="Pages to load per provider"),
    page_size: int | None = typer.Option(None, "--page-size", min=1),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Load the merged timeline for URI from every applicable provider."""
    service = build_service(provider, items, page_size=page_size)
    try:
        view, failures = asyncio.run(_collect(service, uri, pages))
    finally:
        service.close()

    for source, message in failures.items():
        err_console.print(f"[bold red]{source}[/bold red]: {escape(message)}")
    output_view(view, as_json=json_out)
    if failures and not view.items:
        raise typer.Exit(code=1)


async def _collect(
    service: TimelineService,
    uri: str,
    pages: int,
) -> tuple[TimelineView, dict[str, str]]:
    failures: dict[str, str] = {}
    outcomes = await service.load_timeline(uri, reset=True)
    for source, outcome in outcomes.items():
        if outcome.status is LoadStatus.FAILED:
            failures[source] = str(outcome.error)

    for _ in range(pages - 1):
        pending = [s for s, more in service.view(uri).has_more.items() if more]
        if not pending:
            break
        for source in pending:
            try:
                await service.load_page(source, uri)
            except Exception as e:
                failures[source] = str(e)

    return service.view(uri), failures
