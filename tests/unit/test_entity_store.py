"""Tests for EntityStore draft handling."""

from __future__ import annotations

import pytest

from judging.entity_store import EntityStore
from judging.models import RoomInspection


def _room(room_id: int, comment: str = "") -> RoomInspection:
    return RoomInspection(room_id=room_id, room_name=f"Raum {room_id}", comment=comment)


@pytest.fixture
def store() -> EntityStore[RoomInspection, str]:
    store: EntityStore[RoomInspection, str] = EntityStore(seed=lambda r: r.comment, key=lambda r: r.room_id)
    store.replace([_room(1, "alt"), _room(2), _room(3, "staubig")])
    return store


class TestSnapshot:
    def test_drafts_seeded_from_entities(self, store):
        assert store.drafts == {1: "alt", 2: "", 3: "staubig"}
        assert len(store) == 3
        assert 2 in store
        assert [r.room_id for r in store] == [1, 2, 3]

    def test_default_key_is_id(self):
        from judging.models import Criterion

        store: EntityStore[Criterion, str] = EntityStore(seed=lambda c: "")
        store.replace([Criterion(id=4, name="Design", max_score=5)])

        assert store.get(4).name == "Design"
        assert store.draft(4) == ""

    def test_refetch_reseeds_untouched_drafts(self, store):
        store.replace([_room(1, "neu"), _room(2, "sauber"), _room(3, "staubig")])

        assert store.drafts == {1: "neu", 2: "sauber", 3: "staubig"}

    def test_removed_entities_lose_their_drafts(self, store):
        store.set_draft(3, "wird entfernt")
        store.replace([_room(1), _room(2)])

        assert 3 not in store
        assert store.draft(3) is None
        assert not store.is_dirty(3)

    def test_clear(self, store):
        store.set_draft(1, "x")
        store.clear()

        assert len(store) == 0
        assert store.drafts == {}


class TestEditing:
    def test_edited_draft_survives_refetch(self, store):
        store.set_draft(2, "Müll im Eck")
        store.replace([_room(1, "neu"), _room(2, "vom Server"), _room(3)])

        assert store.draft(2) == "Müll im Eck"
        assert store.draft(1) == "neu"
        assert store.draft(3) == ""

    def test_set_draft_for_unknown_entity(self, store):
        with pytest.raises(KeyError):
            store.set_draft(42, "x")

    def test_reset_drafts(self, store):
        store.set_draft(1, "a")
        store.set_draft(2, "b")
        store.reset_drafts([1])

        assert store.draft(1) == "alt"
        assert not store.is_dirty(1)
        assert store.draft(2) == "b"
        assert store.is_dirty(2)

    def test_reseed_replaces_every_draft(self, store):
        store.set_draft(1, "a")
        store.reseed(lambda r: f"#{r.room_id}")

        assert store.drafts == {1: "#1", 2: "#2", 3: "#3"}
        assert not store.is_dirty(1)

    def test_discard_drafts(self, store):
        store.set_draft(1, "a")
        store.discard_drafts()

        assert store.drafts == {}
        assert len(store) == 3


class TestSubmissions:
    def test_confirmed_submission_is_reseeded_by_next_refetch(self, store):
        store.set_draft(1, "erledigt")
        with store.submitting([1]) as ticket:
            assert store.is_in_flight(1)
            ticket.succeeded()

        assert not store.is_in_flight(1)
        assert not store.is_dirty(1)
        store.replace([_room(1, "erledigt (Server)"), _room(2), _room(3)])
        assert store.draft(1) == "erledigt (Server)"

    def test_failed_submission_keeps_draft(self, store):
        store.set_draft(1, "mein Text")
        with pytest.raises(RuntimeError):
            with store.submitting([1]):
                raise RuntimeError("boom")

        assert not store.is_in_flight(1)
        assert store.is_dirty(1)
        store.replace([_room(1, "Server"), _room(2), _room(3)])
        assert store.draft(1) == "mein Text"

    def test_in_flight_draft_not_clobbered_by_refetch(self, store):
        """A refetch landing mid-submission leaves the submitted draft alone."""
        with store.submitting([3]):
            store.replace([_room(1), _room(2), _room(3, "anders")])
            assert store.draft(3) == "staubig"
