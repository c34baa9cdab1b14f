"""
CLI layer for timeline-hub.

Terminal transport only: argument parsing, provider loading and coloured
output. All aggregation lives in :mod:`timeline_hub.timeline`.

Entry point::

    timeline-hub --help
"""

from timeline_hub.cli.app import app

__all__ = ["app"]
