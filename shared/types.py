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

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import List, Optional, Type, Union

from dacite import Config, from_dict

from shared.json_utils import convert_keys


class UserRole(StrEnum):
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class RecordKind(StrEnum):
    """Names one of the persisted collections."""

    USERS = "users"
    NOTES = "notes"
    FEEDBACK = "feedback"


@dataclass
class User:
    id: str
    name: str
    username: str
    role: UserRole
    # Proficiency tag (e.g. A1, B2); only meaningful for students.
    level: Optional[str] = None

    def __post_init__(self):
        # Raises ValueError for anything other than TEACHER/STUDENT.
        self.role = UserRole(self.role)


@dataclass
class Note:
    id: str
    teacher_id: str
    student_id: str
    title: str
    content: str
    # ISO-8601 timestamp, fixed at first save.
    created_at: str = ""
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.tags = list(self.tags or [])


@dataclass
class Feedback:
    id: str
    note_id: str
    student_id: str
    content: str
    created_at: str = ""
    is_read: bool = False


Record = Union[User, Note, Feedback]

RECORD_TYPES: dict[RecordKind, Type[Record]] = {
    RecordKind.USERS: User,
    RecordKind.NOTES: Note,
    RecordKind.FEEDBACK: Feedback,
}


def kind_of(record: Record) -> RecordKind:
    for kind, record_type in RECORD_TYPES.items():
        if isinstance(record, record_type):
            return kind
    raise TypeError(f"Not a storable record: {type(record).__name__}")


def record_to_json(record: Record) -> dict:
    """Returns the camelCase dict used on the wire and in the local store."""
    return convert_keys(asdict(record), "snake_to_camel")


def record_from_json(kind: RecordKind, data: dict) -> Record:
    return from_dict(
        data_class=RECORD_TYPES[RecordKind(kind)],
        data=convert_keys(data, "camel_to_snake"),
        config=Config(cast=[UserRole]),
    )
