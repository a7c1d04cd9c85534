from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from app.core.config import Settings


class PersistenceFailed(Exception):
    pass


class MeetingStore(ABC):
    @abstractmethod
    def get_meeting(self, meeting_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def create_meeting(
        self,
        *,
        space_id: str,
        title: str,
        meeting_id: str | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update_transcript(self, meeting_id: str, transcript: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_summary_and_action_items(
        self,
        meeting_id: str,
        *,
        summary: str | None,
        action_items: str | None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_space_member(self, space_id: str, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def is_user_member_of_space(self, space_id: str, user_id: str) -> bool:
        raise NotImplementedError


class InMemoryMeetingStore(MeetingStore):
    def __init__(self) -> None:
        self._next_id = 1
        self._meetings: dict[str, dict[str, Any]] = {}
        self._members_by_space: dict[str, set[str]] = {}

    def get_meeting(self, meeting_id: str) -> dict[str, Any] | None:
        meeting = self._meetings.get(str(meeting_id))
        if not meeting:
            return None
        return dict(meeting)

    def create_meeting(
        self,
        *,
        space_id: str,
        title: str,
        meeting_id: str | None = None,
    ) -> dict[str, Any]:
        if meeting_id is None:
            while str(self._next_id) in self._meetings:
                self._next_id += 1
            meeting_id = str(self._next_id)
            self._next_id += 1

        now = datetime.now(UTC)
        meeting = {
            "meeting_id": str(meeting_id),
            "space_id": str(space_id),
            "title": title.strip(),
            "transcript": None,
            "summary": None,
            "follow_ups": None,
            "created_at": now,
            "updated_at": now,
        }
        self._meetings[str(meeting_id)] = meeting
        return dict(meeting)

    def update_transcript(self, meeting_id: str, transcript: str) -> None:
        self._update(meeting_id, {"transcript": transcript})

    def update_summary_and_action_items(
        self,
        meeting_id: str,
        *,
        summary: str | None,
        action_items: str | None,
    ) -> None:
        self._update(meeting_id, _summary_updates(summary, action_items))

    def add_space_member(self, space_id: str, user_id: str) -> None:
        self._members_by_space.setdefault(str(space_id), set()).add(str(user_id))

    def is_user_member_of_space(self, space_id: str, user_id: str) -> bool:
        return str(user_id) in self._members_by_space.get(str(space_id), set())

    def _update(self, meeting_id: str, updates: Mapping[str, Any]) -> None:
        meeting = self._meetings.get(str(meeting_id))
        if meeting is None:
            raise PersistenceFailed(f"Meeting {meeting_id} not found.")
        meeting.update(dict(updates))
        meeting["updated_at"] = datetime.now(UTC)


class MongoMeetingStore(MeetingStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        meetings_collection_name: str,
        space_members_collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        database = self._client[db_name]
        self._meetings = database[meetings_collection_name]
        self._space_members = database[space_members_collection_name]

        self._meetings.create_index("meeting_id", unique=True)
        self._meetings.create_index("space_id")
        self._space_members.create_index([("space_id", 1), ("user_id", 1)], unique=True)

    def get_meeting(self, meeting_id: str) -> dict[str, Any] | None:
        record = self._meetings.find_one({"meeting_id": str(meeting_id)})
        return _serialize_meeting_record(record)

    def create_meeting(
        self,
        *,
        space_id: str,
        title: str,
        meeting_id: str | None = None,
    ) -> dict[str, Any]:
        from bson import ObjectId

        now = datetime.now(UTC)
        payload = {
            "meeting_id": str(meeting_id) if meeting_id is not None else str(ObjectId()),
            "space_id": str(space_id),
            "title": title.strip(),
            "transcript": None,
            "summary": None,
            "follow_ups": None,
            "created_at": now,
            "updated_at": now,
        }
        self._meetings.insert_one(payload)
        serialized = _serialize_meeting_record(payload)
        if not serialized:
            raise RuntimeError("Unable to read created meeting.")
        return serialized

    def update_transcript(self, meeting_id: str, transcript: str) -> None:
        self._update(meeting_id, {"transcript": transcript})

    def update_summary_and_action_items(
        self,
        meeting_id: str,
        *,
        summary: str | None,
        action_items: str | None,
    ) -> None:
        self._update(meeting_id, _summary_updates(summary, action_items))

    def add_space_member(self, space_id: str, user_id: str) -> None:
        self._space_members.update_one(
            {"space_id": str(space_id), "user_id": str(user_id)},
            {"$setOnInsert": {"joined_at": datetime.now(UTC)}},
            upsert=True,
        )

    def is_user_member_of_space(self, space_id: str, user_id: str) -> bool:
        record = self._space_members.find_one(
            {"space_id": str(space_id), "user_id": str(user_id)},
            {"_id": 1},
        )
        return record is not None

    def _update(self, meeting_id: str, updates: Mapping[str, Any]) -> None:
        from pymongo.errors import PyMongoError

        payload = dict(updates)
        payload["updated_at"] = datetime.now(UTC)
        try:
            result = self._meetings.update_one(
                {"meeting_id": str(meeting_id)},
                {"$set": payload},
            )
        except PyMongoError as exc:
            raise PersistenceFailed(f"Meeting {meeting_id} update failed: {exc}") from exc
        if result.matched_count == 0:
            raise PersistenceFailed(f"Meeting {meeting_id} not found.")


def _summary_updates(summary: str | None, action_items: str | None) -> dict[str, Any]:
    # Absent halves keep whatever value is already stored.
    updates: dict[str, Any] = {}
    if summary is not None:
        updates["summary"] = summary
    if action_items is not None:
        updates["follow_ups"] = action_items
    return updates


def _serialize_meeting_record(record: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not record:
        return None
    serialized = dict(record)
    serialized.pop("_id", None)
    return serialized


def create_meeting_store(settings: Settings) -> MeetingStore:
    return _create_meeting_store_cached(
        meetings_store=settings.meetings_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_meetings_collection=settings.mongodb_meetings_collection,
        mongodb_space_members_collection=settings.mongodb_space_members_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_meeting_store_cached(
    *,
    meetings_store: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_meetings_collection: str,
    mongodb_space_members_collection: str,
    mongodb_connect_timeout_ms: int,
) -> MeetingStore:
    if meetings_store == "memory":
        return InMemoryMeetingStore()

    if meetings_store == "mongodb":
        return MongoMeetingStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            meetings_collection_name=mongodb_meetings_collection,
            space_members_collection_name=mongodb_space_members_collection,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryMeetingStore()


def clear_meeting_store_cache() -> None:
    _create_meeting_store_cached.cache_clear()
