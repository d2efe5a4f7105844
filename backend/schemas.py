"""
Pydantic schemas for the FastAPI backend.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.types import Feedback, Note, User, UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusResponse(CamelModel):
    ready: bool
    error: Optional[str] = None


class OkResponse(CamelModel):
    status: Literal["ok"] = "ok"


class UserResponse(CamelModel):
    id: str
    name: str
    username: str
    role: UserRole
    level: Optional[str] = None

    @classmethod
    def from_record(cls, user: User) -> "UserResponse":
        return cls(**asdict(user))


class NoteResponse(CamelModel):
    id: str
    teacher_id: str
    student_id: str
    title: str
    content: str
    created_at: str
    tags: list[str]

    @classmethod
    def from_record(cls, note: Note) -> "NoteResponse":
        return cls(**asdict(note))


class FeedbackResponse(CamelModel):
    id: str
    note_id: str
    student_id: str
    content: str
    created_at: str
    is_read: bool

    @classmethod
    def from_record(cls, feedback: Feedback) -> "FeedbackResponse":
        return cls(**asdict(feedback))


class LoginRequest(CamelModel):
    username: str = Field(..., max_length=128)


class LoginResponse(CamelModel):
    session_id: str
    user: UserResponse


class UserPayload(CamelModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    level: Optional[str] = None


class NotePayload(CamelModel):
    id: Optional[str] = None
    student_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    created_at: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class FeedbackPayload(CamelModel):
    note_id: str
    content: str = Field(..., max_length=4096)


class EnhanceNoteRequest(CamelModel):
    content: str = Field(..., min_length=1)
    student_id: Optional[str] = None


class EnhanceNoteResponse(CamelModel):
    content: str


class PracticeQuestionsRequest(CamelModel):
    content: str = Field(..., min_length=1)


class PracticeQuestionsResponse(CamelModel):
    questions: str
    content: str


class TeacherDashboardResponse(CamelModel):
    role: Literal[UserRole.TEACHER] = UserRole.TEACHER
    students: list[UserResponse]
    notes: list[NoteResponse]
    feedback: list[FeedbackResponse]
    unread_count: int


class StudentDashboardResponse(CamelModel):
    role: Literal[UserRole.STUDENT] = UserRole.STUDENT
    level: Optional[str] = None
    notes: list[NoteResponse]
    feedback: list[FeedbackResponse]
    question_counts: dict[str, int]


DashboardResponse = Union[TeacherDashboardResponse, StudentDashboardResponse]
