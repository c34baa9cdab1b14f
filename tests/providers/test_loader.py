"""Tests for timeline_hub.providers.loader.load_provider."""

import sys
import types

import pytest

from timeline_hub.core.errors import ProviderLoadError
from timeline_hub.providers import InMemoryTimelineProvider, load_provider

MODULE = "timeline_hub_test_providers"


class _Holder:
    notes = InMemoryTimelineProvider("nested")


class _JournalProvider(InMemoryTimelineProvider):
    def __init__(self):
        super().__init__("journal", "Journal")


@pytest.fixture(autouse=True)
def provider_module(monkeypatch):
    module = types.ModuleType(MODULE)
    module.instance = InMemoryTimelineProvider("instance")
    module.factory = lambda: InMemoryTimelineProvider("from-factory")
    module.Holder = _Holder
    module.JournalProvider = _JournalProvider
    module.NotAProvider = dict
    module.number = 42

    def broken():
        raise RuntimeError("factory exploded")

    module.broken = broken
    monkeypatch.setitem(sys.modules, MODULE, module)
    return module


class TestLoadProvider:
    def test_instance(self, provider_module):
        assert load_provider(f"{MODULE}:instance") is provider_module.instance

    def test_factory(self):
        assert load_provider(f"{MODULE}:factory").id == "from-factory"

    def test_class(self):
        provider = load_provider(f"{MODULE}:JournalProvider")
        assert isinstance(provider, _JournalProvider)
        assert provider.id == "journal"

    def test_dotted_attribute(self):
        assert load_provider(f"{MODULE}:Holder.notes").id == "nested"


class TestLoadProviderErrors:
    @pytest.mark.parametrize("ref", ["no_colon", ":attr", "module:"])
    def test_malformed_ref(self, ref):
        with pytest.raises(ProviderLoadError, match="expected 'module:attr'"):
            load_provider(ref)

    def test_missing_module(self):
        with pytest.raises(ProviderLoadError) as exc:
            load_provider("definitely_not_a_module_xyz:thing")
        assert isinstance(exc.value.cause, ImportError)

    def test_missing_attribute(self):
        with pytest.raises(ProviderLoadError) as exc:
            load_provider(f"{MODULE}:missing")
        assert exc.value.ref == f"{MODULE}:missing"

    def test_factory_failure(self):
        with pytest.raises(ProviderLoadError, match="factory exploded"):
            load_provider(f"{MODULE}:broken")

    @pytest.mark.parametrize("attr", ["NotAProvider", "number"])
    def test_not_a_provider(self, attr):
        with pytest.raises(ProviderLoadError, match="is not a timeline provider"):
            load_provider(f"{MODULE}:{attr}")
