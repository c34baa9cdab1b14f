"""
timeline-hub — merged, incrementally paginated timelines for a resource,
aggregated from any number of pluggable providers.

Quick start::

    from timeline_hub import TimelineService
    from timeline_hub.providers import InMemoryTimelineProvider

    service = TimelineService()
    service.register_provider(InMemoryTimelineProvider("notes", items=[...]))
    await service.load_timeline("file:///repo/a.py", reset=True)
    service.view("file:///repo/a.py").items
"""

__version__ = "0.1.0"

from timeline_hub.timeline import (  # noqa: E402
    NOT_APPLICABLE,
    BaseTimelineProvider,
    TimelineItem,
    TimelineOptions,
    TimelinePage,
    TimelineProvider,
    TimelineRefresher,
    TimelineService,
)

__all__ = [
    "__version__",
    "NOT_APPLICABLE",
    "BaseTimelineProvider",
    "TimelineItem",
    "TimelineOptions",
    "TimelinePage",
    "TimelineProvider",
    "TimelineRefresher",
    "TimelineService",
]
