"""
Storage service: the single persistence API used by the HTTP layer.

The service holds no state of its own. It delegates to whichever
``BackingStore`` it was built with and applies the same read/write policy
regardless of the variant.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from backend.db import BackingStore
from backend.errors import QueryError
from shared.types import Feedback, Note, RecordKind, User
from shared.utils import get_unique_id, parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)


def _newest_first(records: list) -> list:
    def sort_key(record):
        if not record.created_at:
            return 0.0
        return parse_timestamp(record.created_at).timestamp()

    return sorted(records, key=sort_key, reverse=True)


def new_feedback_id() -> str:
    return get_unique_id()


class StorageService:
    def __init__(self, store: BackingStore):
        self.store = store

    def init(self) -> None:
        self.store.init()

    def get_users(self) -> list[User]:
        return self.store.read_all(RecordKind.USERS)

    def get_notes(self) -> list[Note]:
        try:
            return _newest_first(self.store.read_all(RecordKind.NOTES))
        except QueryError:
            logger.warning("Could not load notes; returning an empty list")
            return []

    def get_feedback(self) -> list[Feedback]:
        try:
            return _newest_first(self.store.read_all(RecordKind.FEEDBACK))
        except QueryError:
            logger.warning("Could not load feedback; returning an empty list")
            return []

    def get_note(self, note_id: str) -> Optional[Note]:
        """Looks up one note. Unlike get_notes, storage errors propagate."""
        for note in self.store.read_all(RecordKind.NOTES):
            if note.id == note_id:
                return note
        return None

    def find_user_by_username(self, username: str) -> Optional[User]:
        wanted = (username or "").strip().lower()
        if not wanted:
            return None
        for user in self.get_users():
            if user.username.lower() == wanted:
                return user
        return None

    def save_user(self, user: User) -> None:
        self.store.write_one(user)

    def save_note(self, note: Note) -> Note:
        """Upserts the note and returns it as stored, with its original created_at on edits."""
        if not note.created_at:
            note = replace(note, created_at=utc_now_iso())
        self.store.write_one(note)
        return self.get_note(note.id) or note

    def save_feedback(self, feedback: Feedback) -> Feedback:
        """Creates a feedback entry; existing entries are never overwritten."""
        feedback = replace(
            feedback,
            id=feedback.id or new_feedback_id(),
            created_at=feedback.created_at or utc_now_iso(),
            is_read=False,
        )
        self.store.write_one(feedback)
        return feedback

    def delete_user(self, user_id: str) -> None:
        self.store.delete_one(RecordKind.USERS, user_id)

    def delete_note(self, note_id: str) -> None:
        # Feedback on the note goes with it in both store variants.
        self.store.delete_one(RecordKind.NOTES, note_id)

    def mark_feedback_read(self, feedback_id: str) -> bool:
        """Sets is_read on the entry. Unknown ids are a no-op and return False."""
        return self.store.mark_feedback_read(feedback_id)
