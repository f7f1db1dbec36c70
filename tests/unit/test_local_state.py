"""
Unit tests for the JSON-backed local state store.
"""

import json
from datetime import datetime, timezone

import pytest

from newsfeed.content import LocalStateStore


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "state" / "local_state.json"


@pytest.fixture
def store(state_file):
    return LocalStateStore(str(state_file))


class TestLikedSaved:
    """Test liked/saved bookkeeping."""

    def test_mark_liked_once(self, store):
        assert store.mark_liked("a1") is True
        assert store.mark_liked("a1") is False
        assert store.is_liked("a1")
        assert not store.is_liked("a2")

    def test_mark_saved_once(self, store):
        assert store.mark_saved("a1") is True
        assert store.mark_saved("a1") is False
        assert store.is_saved("a1")

    def test_persists_across_instances(self, store, state_file):
        store.mark_liked("a1")
        store.mark_saved("a2")

        reopened = LocalStateStore(str(state_file))
        assert reopened.is_liked("a1")
        assert reopened.is_saved("a2")

        with open(state_file) as f:
            data = json.load(f)
        assert data["liked"] == ["a1"]
        assert data["saved"] == ["a2"]


class TestPreview:
    """Test the staged preview record."""

    def test_stage_and_clear(self, store):
        store.stage_preview({"title": "Draft", "createdAt": datetime(2025, 9, 18, tzinfo=timezone.utc)})
        preview = store.get_preview()
        assert preview["title"] == "Draft"
        assert preview["createdAt"] == "2025-09-18T00:00:00+00:00"

        store.clear_preview()
        assert store.get_preview() is None

    def test_stage_replaces_previous(self, store):
        store.stage_preview({"title": "One"})
        store.stage_preview({"title": "Two"})
        assert store.get_preview() == {"title": "Two"}

    def test_clear_without_preview_writes_nothing(self, store, state_file):
        store.clear_preview()
        assert not state_file.exists()


class TestRecovery:
    """Test unreadable state files."""

    def test_missing_file_is_empty(self, store):
        state = store.load()
        assert state.liked == [] and state.saved == [] and state.preview is None

    def test_corrupt_file_is_empty(self, store, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{broken")
        assert not store.is_liked("a1")
        assert store.mark_liked("a1") is True
        assert store.is_liked("a1")

    def test_wrong_shape_is_empty(self, store, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("[1, 2, 3]")
        assert store.load().liked == []
