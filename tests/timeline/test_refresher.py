"""Tests for timeline_hub.timeline.refresher.TimelineRefresher."""

import pytest

from timeline_hub.timeline import LoadStatus, TimelineRefresher

from tests._support.timeline import ScriptedProvider, page

A = "file:///repo/a.py"
B = "file:///repo/b.py"


def timestamps(items):
    return [i.timestamp for i in items]


@pytest.fixture
def git(service):
    provider = ScriptedProvider(
        "git", {None: page("git", [300, 100], "c1"), "c1": page("git", [250])}
    )
    service.register_provider(provider)
    return provider


@pytest.fixture
def refresher(service):
    r = TimelineRefresher(service)
    yield r
    r.close()


class TestFocus:
    @pytest.mark.asyncio
    async def test_focus_loads_resource(self, service, git, refresher):
        outcomes = await refresher.focus(A)
        assert outcomes["git"].status is LoadStatus.LOADED
        assert refresher.focused == A
        assert timestamps(service.view(A).items) == [300, 100]

    @pytest.mark.asyncio
    async def test_focus_change_forgets_previous(self, service, git, refresher):
        await refresher.focus(A)
        await refresher.focus(B)
        assert service.view(A).items == ()
        assert len(service.view(B).items) == 2


class TestCommands:
    @pytest.mark.asyncio
    async def test_load_more(self, service, git, refresher):
        await refresher.focus(A)
        outcomes = await refresher.load_more()
        assert list(outcomes) == ["git"]
        assert timestamps(service.view(A).items) == [300, 250, 100]
        assert await refresher.load_more() == {}

    @pytest.mark.asyncio
    async def test_load_more_skips_failures(self, service, git, refresher):
        await refresher.focus(A)
        git.error = ConnectionError("down")
        assert await refresher.load_more() == {}
        assert timestamps(service.view(A).items) == [300, 100]

    @pytest.mark.asyncio
    async def test_refresh_resets(self, service, git, refresher):
        await refresher.focus(A)
        await refresher.load_more()
        await refresher.refresh()
        assert timestamps(service.view(A).items) == [300, 100]
        assert git.calls[-1][1].cursor is None

    @pytest.mark.asyncio
    async def test_commands_without_resource(self, git, refresher):
        assert await refresher.refresh() == {}
        assert await refresher.load_more() == {}

    @pytest.mark.asyncio
    async def test_current_uri_callable_wins(self, service, git):
        refresher = TimelineRefresher(service, current_uri=lambda: B)
        await refresher.refresh()
        assert len(service.view(B).items) == 2
        refresher.close()


class TestChangeEvents:
    @pytest.mark.asyncio
    async def test_provider_change_loads_page_for_source(self, service, git, refresher):
        await refresher.focus(A)
        git.fire_change(A)
        await refresher.wait_idle()
        assert timestamps(service.view(A).items) == [300, 250, 100]

    @pytest.mark.asyncio
    async def test_change_without_uri_uses_focused(self, service, git, refresher):
        await refresher.focus(A)
        git.pages[None] = page("git", [400])
        git.fire_change(reset=True)
        await refresher.wait_idle()
        assert timestamps(service.view(A).items) == [400]

    @pytest.mark.asyncio
    async def test_synthesized_change_reloads_all(self, service, git, refresher):
        local = ScriptedProvider("local", {None: page("local", [200])})
        service.register_provider(local)
        await refresher.focus(A)
        service.notify_changed(A, reset=True)
        await refresher.wait_idle()
        assert len(local.calls) == 2
        assert timestamps(service.view(A).items) == [300, 200, 100]

    @pytest.mark.asyncio
    async def test_change_ignored_without_resource(self, git, refresher):
        git.fire_change()
        await refresher.wait_idle()
        assert git.calls == []

    @pytest.mark.asyncio
    async def test_failed_reload_is_logged_not_raised(self, service, git, refresher):
        await refresher.focus(A)
        git.error = ConnectionError("down")
        git.fire_change(A)
        await refresher.wait_idle()
        assert timestamps(service.view(A).items) == [300, 100]

    def test_change_without_loop_is_ignored(self, service, git):
        refresher = TimelineRefresher(service, current_uri=lambda: A)
        git.fire_change(A)
        assert git.calls == []
        refresher.close()

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, service, git, refresher):
        refresher.close()
        git.fire_change(A)
        await refresher.wait_idle()
        assert git.calls == []
