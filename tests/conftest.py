"""
Shared pytest fixtures for timeline-hub tests.

This module provides:
- Settings cache isolation (autouse)
- Bus / registry / router wiring for component tests
- A ready ``TimelineService`` closed after each test
"""

from __future__ import annotations

import pytest

from timeline_hub.core.settings import clear_settings_cache
from timeline_hub.timeline import (
    ChangeNotificationBus,
    ProviderRegistry,
    RequestRouter,
    TimelineService,
)


@pytest.fixture(autouse=True)
def _clean_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def bus():
    return ChangeNotificationBus()


@pytest.fixture
def registry(bus):
    return ProviderRegistry(bus)


@pytest.fixture
def router(registry):
    return RequestRouter(registry)


@pytest.fixture
def service():
    svc = TimelineService(page_size=20)
    yield svc
    svc.close()


@pytest.fixture
def uri():
    return "file:///repo/src/app.py"
