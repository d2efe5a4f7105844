"""
Backing stores for users, notes and feedback.

Two interchangeable implementations share the ``BackingStore`` interface:
``LocalBackingStore`` keeps each collection as a JSON array in a key/value
store, and ``PostgresDbClient`` talks to a relational database through
SQLAlchemy, opening a fresh connection for every statement.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Protocol

from sqlalchemy import (
    ARRAY,
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Text,
    create_engine,
    delete,
    event,
    false,
    func,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from backend.errors import ConfigurationError, QueryError
from backend.kv import KeyValueStore
from shared import fixtures
from shared.types import (
    Feedback,
    Note,
    Record,
    RecordKind,
    User,
    kind_of,
    record_from_json,
    record_to_json,
)
from shared.utils import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

MISSING_DATABASE_URL_MESSAGE = (
    "Database configuration missing: set DATABASE_URL to your Postgres "
    "connection string and retry."
)


class BackingStore(Protocol):
    """Interface for record persistence."""

    def init(self) -> None:
        ...

    def read_all(self, kind: RecordKind) -> list[Record]:
        ...

    def write_one(self, record: Record) -> None:
        ...

    def delete_one(self, kind: RecordKind, record_id: str) -> None:
        ...

    def mark_feedback_read(self, feedback_id: str) -> bool:
        ...


class LocalBackingStore:
    """
    Stores every collection as a single JSON document in a key/value store.

    Each write is a read-modify-write of the whole collection with no locking,
    so concurrent writers race and the last one wins.
    """

    def __init__(self, kv: KeyValueStore, key_prefix: str = "teacherconnect"):
        self.kv = kv
        self.key_prefix = key_prefix

    def _key(self, kind: RecordKind) -> str:
        return f"{self.key_prefix}_{RecordKind(kind).value}"

    def _load(self, kind: RecordKind) -> list[dict]:
        key = self._key(kind)
        try:
            stored = self.kv.get(key)
        except ConnectionError as e:
            logger.exception("Could not read %s", key)
            raise QueryError(str(e)) from e
        if stored is None:
            seed = [record_to_json(record) for record in fixtures.seed_records(kind)]
            self._persist(kind, seed)
            logger.info("Seeded %s with %d records", key, len(seed))
            return seed
        try:
            return json.loads(stored)
        except json.JSONDecodeError as e:
            logger.exception("Stored value under %s is not valid JSON", key)
            raise QueryError(str(e)) from e

    def _persist(self, kind: RecordKind, items: list[dict]) -> None:
        key = self._key(kind)
        try:
            self.kv.set(key, json.dumps(items))
        except ConnectionError as e:
            logger.exception("Could not write %s", key)
            raise QueryError(str(e)) from e

    def init(self) -> None:
        for kind in RecordKind:
            self._load(kind)

    def read_all(self, kind: RecordKind) -> list[Record]:
        return [record_from_json(kind, item) for item in self._load(kind)]

    def write_one(self, record: Record) -> None:
        kind = kind_of(record)
        items = self._load(kind)
        payload = record_to_json(record)
        if kind == RecordKind.FEEDBACK:
            items.append(payload)
        else:
            for index, item in enumerate(items):
                if item.get("id") != record.id:
                    continue
                if kind == RecordKind.NOTES and item.get("createdAt"):
                    payload["createdAt"] = item["createdAt"]
                items[index] = payload
                break
            else:
                items.append(payload)
        self._persist(kind, items)

    def delete_one(self, kind: RecordKind, record_id: str) -> None:
        items = self._load(kind)
        self._persist(kind, [item for item in items if item.get("id") != record_id])

        # Mirrors the ON DELETE CASCADE of the relational schema.
        if kind == RecordKind.NOTES:
            feedback = self._load(RecordKind.FEEDBACK)
            remaining = [item for item in feedback if item.get("noteId") != record_id]
            if len(remaining) != len(feedback):
                self._persist(RecordKind.FEEDBACK, remaining)

    def mark_feedback_read(self, feedback_id: str) -> bool:
        items = self._load(RecordKind.FEEDBACK)
        for item in items:
            if item.get("id") != feedback_id:
                continue
            if not item.get("isRead"):
                item["isRead"] = True
                self._persist(RecordKind.FEEDBACK, items)
            return True
        return False


def normalize_database_url(database_url: str) -> str:
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    The engine does not pool: every statement acquires its own connection,
    and the connection is released when the statement finishes or fails.
    """

    def __init__(self, database_url: Optional[str]):
        self.database_url = normalize_database_url(database_url) if database_url else None
        self.engine = None
        self.Session: Optional[sessionmaker] = None

    def _session_factory(self) -> sessionmaker:
        if not self.database_url:
            logger.error("DATABASE_URL is not configured.")
            raise ConfigurationError(MISSING_DATABASE_URL_MESSAGE)
        if self.Session is None:
            self.engine = create_engine(self.database_url, future=True, poolclass=NullPool)
            if self.engine.dialect.name == "sqlite":
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            self.Session = sessionmaker(
                bind=self.engine, class_=Session, expire_on_commit=False, future=True
            )
        return self.Session

    @contextmanager
    def _session(self) -> Iterator[Session]:
        factory = self._session_factory()
        try:
            with factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.exception("Database query error")
            raise QueryError(str(e)) from e

    def _insert(self, row_type):
        self._session_factory()
        if self.engine.dialect.name == "sqlite":
            return sqlite_insert(row_type)
        return pg_insert(row_type)

    def init(self) -> None:
        """Creates missing tables and inserts the seed rows; safe to repeat."""
        self._session_factory()
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.exception("Schema initialization failed")
            raise QueryError(str(e)) from e

        now = datetime.now(timezone.utc)
        seeds = (
            (UserRow, [_user_values(user) for user in fixtures.initial_users()]),
            (NoteRow, [_note_values(note) for note in fixtures.initial_notes(now)]),
            (FeedbackRow, [_feedback_values(item) for item in fixtures.initial_feedback(now)]),
        )
        for row_type, values in seeds:
            stmt = self._insert(row_type).values(values).on_conflict_do_nothing()
            with self._session() as session:
                session.execute(stmt)
                session.commit()
        logger.info("Database schema ready")

    def read_all(self, kind: RecordKind) -> list[Record]:
        kind = RecordKind(kind)
        if kind == RecordKind.USERS:
            stmt = select(UserRow)
            to_record = _user_from_row
        elif kind == RecordKind.NOTES:
            stmt = select(NoteRow).order_by(NoteRow.created_at.desc())
            to_record = _note_from_row
        else:
            stmt = select(FeedbackRow).order_by(FeedbackRow.created_at.desc())
            to_record = _feedback_from_row
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [to_record(row) for row in rows]

    def write_one(self, record: Record) -> None:
        kind = kind_of(record)
        if kind == RecordKind.FEEDBACK:
            stmt = self._insert(FeedbackRow).values(**_feedback_values(record))
        else:
            row_type, values = (
                (UserRow, _user_values(record))
                if kind == RecordKind.USERS
                else (NoteRow, _note_values(record))
            )
            stmt = self._insert(row_type).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["id"],
                set_={
                    key: stmt.excluded[key]
                    for key in values
                    if key not in ("id", "created_at")
                },
            )
        with self._session() as session:
            session.execute(stmt)
            session.commit()

    def delete_one(self, kind: RecordKind, record_id: str) -> None:
        row_type = ROW_TYPES[RecordKind(kind)]
        with self._session() as session:
            session.execute(delete(row_type).where(row_type.id == record_id))
            session.commit()

    def mark_feedback_read(self, feedback_id: str) -> bool:
        stmt = (
            update(FeedbackRow)
            .where(FeedbackRow.id == feedback_id)
            .values(is_read=True)
        )
        with self._session() as session:
            result = session.execute(stmt)
            session.commit()
            matched = result.rowcount or 0
        if not matched:
            logger.info("Feedback %s not found; nothing marked as read", feedback_id)
        return bool(matched)


def _user_values(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "username": user.username,
        "role": user.role.value,
        "level": user.level,
    }


def _note_values(note: Note) -> dict:
    values = {
        "id": note.id,
        "teacher_id": note.teacher_id,
        "student_id": note.student_id,
        "title": note.title,
        "content": note.content,
        "tags": list(note.tags),
    }
    # Omitted so the column default applies.
    if note.created_at:
        values["created_at"] = parse_timestamp(note.created_at)
    return values


def _feedback_values(feedback: Feedback) -> dict:
    values = {
        "id": feedback.id,
        "note_id": feedback.note_id,
        "student_id": feedback.student_id,
        "content": feedback.content,
        "is_read": feedback.is_read,
    }
    if feedback.created_at:
        values["created_at"] = parse_timestamp(feedback.created_at)
    return values


def _user_from_row(row: "UserRow") -> User:
    return User(
        id=row.id,
        name=row.name,
        username=row.username,
        role=row.role,
        level=row.level,
    )


def _note_from_row(row: "NoteRow") -> Note:
    return Note(
        id=row.id,
        teacher_id=row.teacher_id,
        student_id=row.student_id,
        title=row.title,
        content=row.content,
        created_at=format_timestamp(row.created_at) if row.created_at else "",
        tags=list(row.tags or []),
    )


def _feedback_from_row(row: "FeedbackRow") -> Feedback:
    return Feedback(
        id=row.id,
        note_id=row.note_id,
        student_id=row.student_id,
        content=row.content,
        created_at=format_timestamp(row.created_at) if row.created_at else "",
        is_read=bool(row.is_read),
    )


Base = declarative_base()

# TEXT[] on Postgres; SQLite has no arrays, so tests store the list as JSON.
TagList = ARRAY(Text).with_variant(JSON(), "sqlite")


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    username = Column(Text, unique=True, nullable=False)
    role = Column(Text, nullable=False)
    level = Column(Text, nullable=True)


class NoteRow(Base):
    __tablename__ = "notes"

    id = Column(Text, primary_key=True)
    teacher_id = Column(Text, ForeignKey("users.id"))
    student_id = Column(Text, ForeignKey("users.id"))
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    tags = Column(TagList)


class FeedbackRow(Base):
    __tablename__ = "feedback"

    id = Column(Text, primary_key=True)
    note_id = Column(Text, ForeignKey("notes.id", ondelete="CASCADE"))
    student_id = Column(Text, ForeignKey("users.id"))
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_read = Column(Boolean, server_default=false())


ROW_TYPES = {
    RecordKind.USERS: UserRow,
    RecordKind.NOTES: NoteRow,
    RecordKind.FEEDBACK: FeedbackRow,
}
