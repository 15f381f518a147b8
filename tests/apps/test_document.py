# tests/apps/test_document.py
"""Tests for the in-memory document."""

from __future__ import annotations

import pytest

from mcp_app_bridge.apps.document import Document, VirtualDocument


class TestVirtualDocument:
    def test_satisfies_protocol(self):
        assert isinstance(VirtualDocument(), Document)

    def test_resize_updates_size_and_fires(self):
        doc = VirtualDocument(1, 1)
        fired = []
        doc.observe_resize(lambda: fired.append("observer"))
        doc.add_resize_listener(lambda: fired.append("listener"))
        doc.resize(width=5)
        assert (doc.scroll_width, doc.scroll_height) == (5, 1)
        assert fired == ["observer", "listener"]

    def test_disconnect(self):
        doc = VirtualDocument()
        fired = []
        handle = doc.observe_resize(lambda: fired.append(1))
        handle.disconnect()
        handle.disconnect()
        doc.resize(2, 2)
        assert fired == []
        assert doc.observer_count == 0

    def test_attribute_filter(self):
        doc = VirtualDocument()
        fired = []
        doc.observe_mutations(lambda: fired.append(1), attribute_filter=["class"])
        doc.mutate("attributes", attribute="style")
        doc.mutate("attributes", attribute="class")
        doc.mutate("childList")
        assert fired == [1, 1]

    def test_missing_observers_raise(self):
        doc = VirtualDocument(resize_observer=False, mutation_observer=False)
        with pytest.raises(NotImplementedError):
            doc.observe_resize(lambda: None)
        with pytest.raises(NotImplementedError):
            doc.observe_mutations(lambda: None)

    @pytest.mark.parametrize("dark", [True, False, None])
    def test_prefers_dark_scheme(self, dark):
        assert VirtualDocument(dark_scheme=dark).prefers_dark_scheme() is dark
