"""Tests for timeline_hub.providers.memory.InMemoryTimelineProvider."""

import json

import pytest

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.errors import ProviderError, TimelineValidationError
from timeline_hub.providers import InMemoryTimelineProvider
from timeline_hub.timeline import TimelineChangeEvent, TimelineOptions, Watermark

from tests._support.timeline import make_item

URI = "file:///repo/a.py"


def timestamps(items):
    return [i.timestamp for i in items]


async def fetch(provider, cursor=None, limit=None, token=None, uri=URI):
    return await provider.provide_timeline(
        uri, TimelineOptions(cursor=cursor, limit=limit), token or CancellationToken.none()
    )


@pytest.fixture
def notes():
    return InMemoryTimelineProvider("notes", items=[make_item(ts) for ts in (100, 500, 300, 200, 400)])


class TestPaging:
    @pytest.mark.asyncio
    async def test_items_served_newest_first(self, notes):
        result = await fetch(notes)
        assert timestamps(result.items) == [500, 400, 300, 200, 100]
        assert result.next_cursor is None
        assert result.source == "notes"

    @pytest.mark.asyncio
    async def test_limit_and_cursor_chain(self, notes):
        first = await fetch(notes, limit=2)
        assert timestamps(first.items) == [500, 400]
        assert first.next_cursor == "2"
        second = await fetch(notes, cursor=first.next_cursor, limit=2)
        assert timestamps(second.items) == [300, 200]
        last = await fetch(notes, cursor=second.next_cursor, limit=2)
        assert timestamps(last.items) == [100]
        assert last.next_cursor is None

    @pytest.mark.asyncio
    async def test_default_page_size(self):
        provider = InMemoryTimelineProvider("n", items=[make_item(t) for t in (1, 2, 3)], page_size=2)
        result = await fetch(provider)
        assert len(result.items) == 2
        assert result.next_cursor == "2"

    @pytest.mark.asyncio
    async def test_watermark(self, notes):
        result = await fetch(notes, limit=Watermark(timestamp=300))
        assert timestamps(result.items) == [300, 200, 100]
        assert result.next_cursor is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cursor", ["abc", "-1"])
    async def test_invalid_cursor(self, notes, cursor):
        with pytest.raises(ProviderError) as exc:
            await fetch(notes, cursor=cursor)
        assert exc.value.context.provider_id == "notes"
        assert exc.value.context.cursor == cursor

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -3])
    async def test_non_positive_limit_rejected(self, notes, limit):
        with pytest.raises(ProviderError, match="Invalid page size") as exc:
            await fetch(notes, limit=limit)
        assert exc.value.context.provider_id == "notes"

    @pytest.mark.asyncio
    async def test_zero_default_page_size_rejected(self):
        provider = InMemoryTimelineProvider("n", items=[make_item(1)], page_size=0)
        with pytest.raises(ProviderError, match="Invalid page size"):
            await fetch(provider)

    @pytest.mark.asyncio
    async def test_cancelled_token_yields_no_result(self, notes):
        token = CancellationToken()
        token.cancel()
        assert await fetch(notes, token=token) is None

    @pytest.mark.asyncio
    async def test_requests_recorded(self, notes):
        await fetch(notes, cursor="1", limit=1)
        assert notes.requests == [(URI, TimelineOptions(cursor="1", limit=1))]


class TestPerResourceItems:
    @pytest.mark.asyncio
    async def test_mapping_serves_per_uri(self):
        provider = InMemoryTimelineProvider(
            "n", items={URI: [make_item(1)], "file:///repo/b.py": [make_item(2), make_item(3)]}
        )
        assert timestamps((await fetch(provider)).items) == [1]
        assert timestamps((await fetch(provider, uri="file:///repo/b.py")).items) == [3, 2]
        assert (await fetch(provider, uri="file:///repo/c.py")).items == []


class TestMutation:
    def test_add_items_fires_change(self, notes):
        events = []
        notes.on_did_change.subscribe(events.append)
        notes.add_items([make_item(600)], uri=URI)
        assert events == [TimelineChangeEvent(source="notes", uri=URI, reset=False)]
        assert timestamps(notes.items_for(URI)) == [600]

    def test_add_shared_items(self, notes):
        notes.add_items([make_item(50)])
        assert timestamps(notes.items_for(URI))[-1] == 50

    def test_set_items_fires_reset(self, notes):
        events = []
        notes.on_did_change.subscribe(events.append)
        notes.set_items([make_item(1)])
        assert events == [TimelineChangeEvent(source="notes", uri=None, reset=True)]
        assert timestamps(notes.items_for(URI)) == [1]


class TestFromJson:
    def test_from_json(self, tmp_path):
        path = tmp_path / "notes.json"
        path.write_text(
            json.dumps(
                {
                    "id": "notes",
                    "label": "Notes",
                    "scheme": ["file"],
                    "page_size": 10,
                    "items": [{"handle": "n1", "timestamp": 1700000000000, "label": "Draft"}],
                }
            )
        )
        provider = InMemoryTimelineProvider.from_json(path)
        assert provider.id == "notes"
        assert provider.label == "Notes"
        assert provider.scheme == ["file"]
        assert provider.page_size == 10
        assert provider.items_for(URI)[0].handle == "n1"

    def test_id_defaults_to_file_stem(self, tmp_path):
        path = tmp_path / "journal.json"
        path.write_text(json.dumps({"items": []}))
        provider = InMemoryTimelineProvider.from_json(path)
        assert provider.id == "journal"
        assert provider.scheme == "*"

    def test_items_keyed_by_uri(self, tmp_path):
        path = tmp_path / "n.json"
        path.write_text(json.dumps({"items": {URI: [{"handle": "h", "timestamp": 1, "label": "x"}]}}))
        provider = InMemoryTimelineProvider.from_json(path)
        assert len(provider.items_for(URI)) == 1
        assert provider.items_for("file:///other.py") == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(TimelineValidationError, match="invalid JSON"):
            InMemoryTimelineProvider.from_json(path)

    def test_non_object_document(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(TimelineValidationError, match="expected a JSON object"):
            InMemoryTimelineProvider.from_json(path)

    def test_bad_items_type(self):
        with pytest.raises(TimelineValidationError) as exc:
            InMemoryTimelineProvider.from_dict({"items": "nope"})
        assert exc.value.field == "items"

    def test_bad_item(self):
        with pytest.raises(TimelineValidationError):
            InMemoryTimelineProvider.from_dict({"items": [{"handle": "h", "label": "x"}]})

    def test_non_object_item(self):
        with pytest.raises(TimelineValidationError, match="must be an object"):
            InMemoryTimelineProvider.from_dict({"items": [1]})

    def test_per_uri_entries_must_be_lists(self):
        with pytest.raises(TimelineValidationError) as exc:
            InMemoryTimelineProvider.from_dict({"items": {URI: 5}})
        assert exc.value.field == f"items[{URI!r}]"

    @pytest.mark.parametrize("size", [0, -1, "10", True])
    def test_bad_page_size(self, size):
        with pytest.raises(TimelineValidationError) as exc:
            InMemoryTimelineProvider.from_dict({"items": [], "page_size": size})
        assert exc.value.field == "page_size"

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin.json"
        path.write_bytes(b'{"label": "\xff"}')
        with pytest.raises(TimelineValidationError, match="not valid UTF-8"):
            InMemoryTimelineProvider.from_json(path)
