"""Tests for pending selection state and selection reply parsing."""

import pytest

from mediabot.models.media import MediaType
from mediabot.models.selection import SelectionChoice, SelectionMode
from mediabot.services.selection_store import SelectionStore, parse_selection_choice
from tests.helpers import make_playlist, make_video


class TestSelectionStore:

    @pytest.fixture
    def store(self, fake_clock) -> SelectionStore:
        return SelectionStore(timeout_seconds=120, clock=fake_clock)

    def test_set_and_get(self, store):
        options = [make_video("One"), make_playlist()]
        store.set_pending("chat", SelectionMode.SEARCH_RESULTS, options, MediaType.AUDIO)

        pending = store.get_pending("chat")

        assert pending is not None
        assert pending.mode == SelectionMode.SEARCH_RESULTS
        assert pending.options == tuple(options)
        assert pending.option_at(1).title == "One"
        assert pending.option_at(0) is None
        assert pending.option_at(3) is None

    def test_reads_are_idempotent(self, store):
        store.set_pending("chat", SelectionMode.SEARCH_RESULTS, [make_video()], MediaType.VIDEO)

        assert store.get_pending("chat") is store.get_pending("chat")

    def test_conversations_are_isolated(self, store):
        store.set_pending("a", SelectionMode.SEARCH_RESULTS, [make_video()], MediaType.AUDIO)

        assert store.get_pending("b") is None
        store.clear_pending("b")
        assert store.get_pending("a") is not None

    def test_replacing_selection(self, store):
        store.set_pending("chat", SelectionMode.SEARCH_RESULTS, [make_video("old")], MediaType.AUDIO)
        store.set_pending("chat", SelectionMode.PLAYLIST_TRACKS, [make_video("new")], MediaType.VIDEO)

        pending = store.get_pending("chat")
        assert pending.mode == SelectionMode.PLAYLIST_TRACKS
        assert pending.option_at(1).title == "new"
        assert len(store) == 1

    def test_expiry_is_lazy_and_inclusive_of_deadline(self, store, fake_clock):
        store.set_pending("chat", SelectionMode.SEARCH_RESULTS, [make_video()], MediaType.AUDIO)

        fake_clock.advance(120)
        assert store.get_pending("chat") is not None
        assert len(store) == 1

        fake_clock.advance(0.001)
        assert store.get_pending("chat") is None
        assert len(store) == 0

    def test_clear(self, store):
        store.set_pending("chat", SelectionMode.SEARCH_RESULTS, [make_video()], MediaType.AUDIO)
        store.clear_pending("chat")

        assert store.get_pending("chat") is None


class TestParseSelectionChoice:

    @pytest.mark.parametrize("text,expected", [
        ("3", SelectionChoice(3, MediaType.AUDIO)),
        (" 12 ", SelectionChoice(12, MediaType.AUDIO)),
        ("a1", SelectionChoice(1, MediaType.AUDIO)),
        ("V2", SelectionChoice(2, MediaType.VIDEO)),
        ("audio 4", SelectionChoice(4, MediaType.AUDIO)),
        ("video5", SelectionChoice(5, MediaType.VIDEO)),
        ("3v", SelectionChoice(3, MediaType.VIDEO)),
        ("2 audio", SelectionChoice(2, MediaType.AUDIO)),
    ])
    def test_accepted_shapes(self, text, expected):
        assert parse_selection_choice(text, MediaType.AUDIO) == expected

    def test_bare_number_uses_default(self):
        assert parse_selection_choice("1", MediaType.VIDEO) == SelectionChoice(1, MediaType.VIDEO)

    @pytest.mark.parametrize("text", ["", None, "x1", "hello", "1.5", "a", "/play x", "١"])
    def test_rejected_shapes(self, text):
        assert parse_selection_choice(text, MediaType.AUDIO) is None
