# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Fixed seed dataset shared by both backing stores."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from shared.types import Feedback, Note, Record, RecordKind, User, UserRole

SEED_TEACHER_ID = "t1"


def initial_users() -> List[User]:
    return [
        User(id=SEED_TEACHER_ID, name="Teacher", username="master", role=UserRole.TEACHER),
        User(id="s1", name="Maria Garcia", username="maria", role=UserRole.STUDENT, level="B2"),
        User(id="s2", name="Kenji Tanaka", username="kenji", role=UserRole.STUDENT, level="A2"),
        User(id="s3", name="Sophie Martin", username="sophie", role=UserRole.STUDENT, level="C1"),
    ]


def initial_notes(now: Optional[datetime] = None) -> List[Note]:
    now = now or datetime.now(timezone.utc)
    return [
        Note(
            id="n1",
            teacher_id=SEED_TEACHER_ID,
            student_id="s1",
            title="Advanced Phrasal Verbs",
            content=(
                'Great job today! Remember: "Run into" means to meet by chance. '
                '"Run out of" means to have none left. '
                "Homework: Write 3 sentences using these."
            ),
            created_at=(now - timedelta(days=1)).isoformat(),
            tags=["Vocabulary", "B2"],
        ),
        Note(
            id="n2",
            teacher_id=SEED_TEACHER_ID,
            student_id="s2",
            title="Present Simple vs Continuous",
            content=(
                "Focus on routine (Simple) vs right now (Continuous). "
                "I eat breakfast every day. I am eating breakfast now."
            ),
            created_at=(now - timedelta(days=2)).isoformat(),
            tags=["Grammar", "A2"],
        ),
    ]


def initial_feedback(now: Optional[datetime] = None) -> List[Feedback]:
    now = now or datetime.now(timezone.utc)
    return [
        Feedback(
            id="f1",
            note_id="n1",
            student_id="s1",
            content='Could "Run into" also mean crashing a car?',
            created_at=now.isoformat(),
            is_read=False,
        )
    ]


def seed_records(kind: RecordKind, now: Optional[datetime] = None) -> List[Record]:
    if kind == RecordKind.USERS:
        return list(initial_users())
    if kind == RecordKind.NOTES:
        return list(initial_notes(now))
    return list(initial_feedback(now))
