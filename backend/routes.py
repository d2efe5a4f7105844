"""
HTTP routes for the backend API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from backend.dependencies import (
    ReadinessState,
    get_readiness,
    get_session_registry,
    get_storage_service,
)
from backend.errors import StorageError
from backend.schemas import (
    DashboardResponse,
    EnhanceNoteRequest,
    EnhanceNoteResponse,
    FeedbackPayload,
    FeedbackResponse,
    LoginRequest,
    LoginResponse,
    NotePayload,
    NoteResponse,
    OkResponse,
    PracticeQuestionsRequest,
    PracticeQuestionsResponse,
    StatusResponse,
    StudentDashboardResponse,
    TeacherDashboardResponse,
    UserPayload,
    UserResponse,
)
from backend.service import StorageService, new_feedback_id
from backend.session import SessionContext, SessionRegistry
from backend.views import student_view, teacher_view
from models import note_assistant
from shared.types import Feedback, Note, User, UserRole
from shared.utils import get_unique_id

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_STUDENT_LEVEL = "A1"


def require_ready(readiness: ReadinessState = Depends(get_readiness)) -> None:
    if not readiness.ready:
        raise HTTPException(
            status_code=503,
            detail=readiness.error or "Storage is not initialized yet",
        )


def get_current_session(
    x_session_id: Optional[str] = Header(None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionContext:
    context = registry.get(x_session_id)
    if context is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return context


def require_teacher(
    session: SessionContext = Depends(get_current_session),
) -> SessionContext:
    if session.role != UserRole.TEACHER:
        raise HTTPException(status_code=403, detail="Teacher access required")
    return session


def require_student(
    session: SessionContext = Depends(get_current_session),
) -> SessionContext:
    if session.role != UserRole.STUDENT:
        raise HTTPException(status_code=403, detail="Student access required")
    return session


@router.get("/status", response_model=StatusResponse)
def status(readiness: ReadinessState = Depends(get_readiness)):
    return StatusResponse(ready=readiness.ready, error=readiness.error)


@router.post("/init", response_model=StatusResponse)
def init_storage(
    readiness: ReadinessState = Depends(get_readiness),
    service: StorageService = Depends(get_storage_service),
):
    """
    Retry store initialization after a failed startup.
    """
    if not readiness.ensure_ready(service):
        raise HTTPException(status_code=503, detail=readiness.error)
    return StatusResponse(ready=True)


@router.post(
    "/login", response_model=LoginResponse, dependencies=[Depends(require_ready)]
)
def login(
    payload: LoginRequest,
    service: StorageService = Depends(get_storage_service),
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        user = service.find_user_by_username(payload.username)
    except StorageError:
        logger.exception("User lookup failed during login")
        raise HTTPException(
            status_code=503, detail="Failed to connect to login service."
        )
    if user is None:
        raise HTTPException(
            status_code=404, detail="User not found. Please check your username."
        )
    context = registry.open(user)
    return LoginResponse(
        session_id=context.session_id, user=UserResponse.from_record(user)
    )


@router.post("/logout", response_model=OkResponse)
def logout(
    session: SessionContext = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    registry.close(session.session_id)
    return OkResponse()


@router.get("/me", response_model=UserResponse)
def me(session: SessionContext = Depends(get_current_session)):
    return UserResponse.from_record(session.current_user)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    dependencies=[Depends(require_ready)],
)
def dashboard(
    session: SessionContext = Depends(get_current_session),
    service: StorageService = Depends(get_storage_service),
):
    user = session.current_user
    if user.role == UserRole.TEACHER:
        view = teacher_view(service, user)
        return TeacherDashboardResponse(
            students=[UserResponse.from_record(s) for s in view.students],
            notes=[NoteResponse.from_record(n) for n in view.notes],
            feedback=[FeedbackResponse.from_record(f) for f in view.feedback],
            unread_count=view.unread_count,
        )
    view = student_view(service, user)
    return StudentDashboardResponse(
        level=user.level,
        notes=[NoteResponse.from_record(n) for n in view.notes],
        feedback=[FeedbackResponse.from_record(f) for f in view.feedback],
        question_counts=view.question_counts,
    )


@router.get(
    "/users",
    response_model=list[UserResponse],
    dependencies=[Depends(require_ready), Depends(get_current_session)],
)
def list_users(service: StorageService = Depends(get_storage_service)):
    return [UserResponse.from_record(user) for user in service.get_users()]


@router.put(
    "/users", response_model=UserResponse, dependencies=[Depends(require_ready)]
)
def save_user(
    payload: UserPayload,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    """
    Create a student, or replace an existing user by id. Roles never change.
    """
    users = service.get_users()
    existing = next((u for u in users if payload.id and u.id == payload.id), None)
    username = payload.username.strip()
    for other in users:
        if other.username.lower() == username.lower() and other.id != payload.id:
            raise HTTPException(status_code=409, detail="Username already taken")

    role = existing.role if existing else UserRole.STUDENT
    level = payload.level or (existing.level if existing else None)
    if role == UserRole.STUDENT and not level:
        level = DEFAULT_STUDENT_LEVEL
    user = User(
        id=payload.id or get_unique_id(),
        name=payload.name.strip(),
        username=username,
        role=role,
        level=level,
    )
    service.save_user(user)
    return UserResponse.from_record(user)


@router.delete(
    "/users/{user_id}", response_model=OkResponse, dependencies=[Depends(require_ready)]
)
def delete_user(
    user_id: str,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    service.delete_user(user_id)
    return OkResponse()


@router.get(
    "/notes", response_model=list[NoteResponse], dependencies=[Depends(require_ready)]
)
def list_notes(
    session: SessionContext = Depends(get_current_session),
    service: StorageService = Depends(get_storage_service),
):
    user = session.current_user
    if user.role == UserRole.TEACHER:
        notes = teacher_view(service, user).notes
    else:
        notes = student_view(service, user).notes
    return [NoteResponse.from_record(note) for note in notes]


@router.put(
    "/notes", response_model=NoteResponse, dependencies=[Depends(require_ready)]
)
def save_note(
    payload: NotePayload,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    note = Note(
        id=payload.id or get_unique_id(),
        teacher_id=session.current_user.id,
        student_id=payload.student_id,
        title=payload.title,
        content=payload.content,
        created_at=payload.created_at or "",
        tags=payload.tags,
    )
    saved = service.save_note(note)
    return NoteResponse.from_record(saved)


@router.delete(
    "/notes/{note_id}", response_model=OkResponse, dependencies=[Depends(require_ready)]
)
def delete_note(
    note_id: str,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    service.delete_note(note_id)
    return OkResponse()


@router.post(
    "/notes/enhance",
    response_model=EnhanceNoteResponse,
    dependencies=[Depends(require_ready)],
)
def enhance_note(
    payload: EnhanceNoteRequest,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    """
    Return an AI-refined draft. Nothing is persisted; the caller saves it.
    """
    level = None
    if payload.student_id:
        student = next(
            (u for u in service.get_users() if u.id == payload.student_id), None
        )
        level = student.level if student else None
    return EnhanceNoteResponse(
        content=note_assistant.enhance_note(payload.content, level)
    )


@router.post(
    "/notes/practice-questions",
    response_model=PracticeQuestionsResponse,
)
def practice_questions(
    payload: PracticeQuestionsRequest,
    session: SessionContext = Depends(require_teacher),
):
    questions = note_assistant.generate_practice_questions(payload.content)
    return PracticeQuestionsResponse(
        questions=questions,
        content=note_assistant.append_practice_questions(payload.content, questions),
    )


@router.get(
    "/feedback",
    response_model=list[FeedbackResponse],
    dependencies=[Depends(require_ready)],
)
def list_feedback(
    session: SessionContext = Depends(get_current_session),
    service: StorageService = Depends(get_storage_service),
):
    user = session.current_user
    if user.role == UserRole.TEACHER:
        feedback = teacher_view(service, user).feedback
    else:
        feedback = student_view(service, user).feedback
    return [FeedbackResponse.from_record(item) for item in feedback]


@router.post(
    "/feedback",
    response_model=FeedbackResponse,
    status_code=201,
    dependencies=[Depends(require_ready)],
)
def submit_feedback(
    payload: FeedbackPayload,
    session: SessionContext = Depends(require_student),
    service: StorageService = Depends(get_storage_service),
):
    if not payload.content.strip():
        raise HTTPException(status_code=422, detail="Question must not be empty")
    student = session.current_user
    note = service.get_note(payload.note_id)
    if note is None or note.student_id != student.id:
        raise HTTPException(status_code=404, detail="Note not found")

    feedback = service.save_feedback(
        Feedback(
            id=new_feedback_id(),
            note_id=note.id,
            student_id=student.id,
            content=payload.content,
        )
    )
    return FeedbackResponse.from_record(feedback)


@router.post(
    "/feedback/{feedback_id}/read",
    response_model=OkResponse,
    dependencies=[Depends(require_ready)],
)
def mark_feedback_read(
    feedback_id: str,
    session: SessionContext = Depends(require_teacher),
    service: StorageService = Depends(get_storage_service),
):
    service.mark_feedback_read(feedback_id)
    return OkResponse()
