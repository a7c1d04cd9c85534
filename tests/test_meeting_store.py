import pytest

from app.core.config import Settings
from app.services.meeting_store import (
    InMemoryMeetingStore,
    PersistenceFailed,
    clear_meeting_store_cache,
    create_meeting_store,
)


def test_create_meeting_assigns_sequential_ids_around_explicit_ones() -> None:
    store = InMemoryMeetingStore()
    store.create_meeting(space_id="space-1", title="Explicit", meeting_id="1")

    created = store.create_meeting(space_id="space-1", title="  Planning  ")

    assert created["meeting_id"] == "2"
    assert created["title"] == "Planning"
    assert created["transcript"] is None


def test_update_summary_keeps_absent_half() -> None:
    store = InMemoryMeetingStore()
    store.create_meeting(space_id="space-1", title="Sync", meeting_id="42")
    store.update_summary_and_action_items("42", summary="First summary", action_items="- Task")

    store.update_summary_and_action_items("42", summary=None, action_items="- New task")

    meeting = store.get_meeting("42")
    assert meeting["summary"] == "First summary"
    assert meeting["follow_ups"] == "- New task"


def test_updates_on_missing_meeting_raise_persistence_failed() -> None:
    store = InMemoryMeetingStore()

    with pytest.raises(PersistenceFailed):
        store.update_transcript("404", "text")


def test_get_meeting_returns_a_copy() -> None:
    store = InMemoryMeetingStore()
    store.create_meeting(space_id="space-1", title="Sync", meeting_id="42")

    store.get_meeting("42")["summary"] = "mutated"

    assert store.get_meeting("42")["summary"] is None


def test_space_membership() -> None:
    store = InMemoryMeetingStore()
    store.add_space_member("space-1", "user-1")

    assert store.is_user_member_of_space("space-1", "user-1") is True
    assert store.is_user_member_of_space("space-1", "user-2") is False
    assert store.is_user_member_of_space("space-2", "user-1") is False


def test_create_meeting_store_is_cached_per_configuration() -> None:
    clear_meeting_store_cache()
    settings = Settings(meetings_store=" Memory ")

    first = create_meeting_store(settings)
    second = create_meeting_store(settings)

    assert isinstance(first, InMemoryMeetingStore)
    assert first is second
    clear_meeting_store_cache()
    assert create_meeting_store(settings) is not first
    clear_meeting_store_cache()
