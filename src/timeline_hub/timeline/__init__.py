"""
Timeline aggregation.

Collects timeline items about one resource from any number of providers and
serves a single newest-first view with per-provider incremental paging.

Modules
-------
models      TimelineItem, TimelinePage, TimelineOptions, event payloads
provider    TimelineProvider protocol, BaseTimelineProvider, scheme matching
bus         ChangeNotificationBus (providers / timeline / pages channels)
registry    ProviderRegistry and revocable ProviderRegistration handles
router      RequestRouter and the NOT_APPLICABLE sentinel
aggregate   TimelineAggregate and AggregateStore (merge, sort, paging)
service     TimelineService, the consumer-facing API
refresher   TimelineRefresher, reloads on change events
"""

from timeline_hub.timeline.aggregate import (
    AggregateSnapshot,
    AggregateStore,
    LoadOutcome,
    LoadStatus,
    TimelineAggregate,
    TimelineView,
)
from timeline_hub.timeline.bus import ChangeNotificationBus
from timeline_hub.timeline.models import (
    Command,
    ProvidersChangeEvent,
    TimelineChangeEvent,
    TimelineItem,
    TimelineOptions,
    TimelinePage,
    TimelinePageLoadedEvent,
    TimelineSource,
    Watermark,
)
from timeline_hub.timeline.provider import (
    WILDCARD_SCHEME,
    BaseTimelineProvider,
    TimelineProvider,
    applies_to,
)
from timeline_hub.timeline.refresher import TimelineRefresher
from timeline_hub.timeline.registry import ProviderRegistration, ProviderRegistry
from timeline_hub.timeline.router import NOT_APPLICABLE, NotApplicable, RequestRouter
from timeline_hub.timeline.service import TimelineService

__all__ = [
    # Models
    "Command",
    "TimelineItem",
    "TimelinePage",
    "TimelineOptions",
    "Watermark",
    "TimelineSource",
    # Events
    "ProvidersChangeEvent",
    "TimelineChangeEvent",
    "TimelinePageLoadedEvent",
    "ChangeNotificationBus",
    # Providers
    "TimelineProvider",
    "BaseTimelineProvider",
    "WILDCARD_SCHEME",
    "applies_to",
    "ProviderRegistry",
    "ProviderRegistration",
    # Routing / aggregation
    "RequestRouter",
    "NotApplicable",
    "NOT_APPLICABLE",
    "TimelineAggregate",
    "AggregateStore",
    "AggregateSnapshot",
    "TimelineView",
    "LoadOutcome",
    "LoadStatus",
    # Consumers
    "TimelineService",
    "TimelineRefresher",
]
