"""
Bundled provider helpers.

Modules
-------
memory      InMemoryTimelineProvider -- list-backed, offset cursors, JSON loading
loader      load_provider('module:attr') -- import a provider by reference
"""

from timeline_hub.providers.loader import load_provider
from timeline_hub.providers.memory import InMemoryTimelineProvider

__all__ = ["InMemoryTimelineProvider", "load_provider"]
