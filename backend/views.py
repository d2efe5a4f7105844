"""
Role-specific views over the storage service.

Storage reads return whole collections; filtering by ownership happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from backend.service import StorageService
from shared.types import Feedback, Note, User, UserRole


@dataclass
class TeacherView:
    students: list[User]
    notes: list[Note]
    feedback: list[Feedback]

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self.feedback if not item.is_read)


@dataclass
class StudentView:
    notes: list[Note]
    feedback: list[Feedback]
    question_counts: dict[str, int] = field(default_factory=dict)


def teacher_view(service: StorageService, teacher: User) -> TeacherView:
    students = [user for user in service.get_users() if user.role == UserRole.STUDENT]
    notes = [note for note in service.get_notes() if note.teacher_id == teacher.id]
    note_ids = {note.id for note in notes}
    feedback = [item for item in service.get_feedback() if item.note_id in note_ids]
    return TeacherView(students=students, notes=notes, feedback=feedback)


def student_view(service: StorageService, student: User) -> StudentView:
    notes = [note for note in service.get_notes() if note.student_id == student.id]
    feedback = [item for item in service.get_feedback() if item.student_id == student.id]
    counts: dict[str, int] = {}
    for item in feedback:
        counts[item.note_id] = counts.get(item.note_id, 0) + 1
    return StudentView(notes=notes, feedback=feedback, question_counts=counts)
