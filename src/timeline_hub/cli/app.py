"""
Root Typer application for the timeline-hub CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from timeline_hub.cli.utils import fail
from timeline_hub.core.errors import ConfigError
from timeline_hub.core.logging import configure_logging
from timeline_hub.core.settings import get_settings

app = Typer(
    name="timeline-hub",
    help="timeline-hub — merged, paginated timelines from pluggable providers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from timeline_hub import __version__

        try:
            v = pkg_version("timeline-hub")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"timeline-hub {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override TIMELINE_LOG_LEVEL."),
) -> None:
    """timeline-hub CLI — list providers and load merged timelines."""
    try:
        settings = get_settings()
    except ConfigError as e:
        fail(str(e))
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
        service=settings.service_name,
    )


# ── Commands ─────────────────────────────────────────────────────────────

from timeline_hub.cli.timeline import show, sources  # noqa: E402

app.command("sources")(sources)
app.command("show")(show)
