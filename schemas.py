import html
from datetime import date, datetime
from typing import Optional

import bleach
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from task_models import TaskPriority, TaskStatus


class CamelModel(BaseModel):
    # JSON in camelCase (dueDate, assignedTo), snake_case wird ebenfalls akzeptiert
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


MAX_SANITIZE_PASSES = 5


def sanitize(v: Optional[str]) -> Optional[str]:
    """
    Strip HTML tags but keep the plain text as typed ("Tom & Jerry", "a < b").

    bleach escapes &, < and > in text; those entities are decoded again. Decoding can
    turn "&lt;b&gt;" into markup, so cleaning repeats until the text is stable.
    """
    if not v:
        return v
    text = v
    for _ in range(MAX_SANITIZE_PASSES):
        # Bleach entfernt alle HTML-Tags (tags=[]) und Attribute
        cleaned = html.unescape(bleach.clean(text, tags=[], attributes={}, strip=True))
        if cleaned == text:
            return cleaned
        text = cleaned
    # Noch nicht stabil: escaped zurückgeben statt Markup durchzulassen
    return bleach.clean(text, tags=[], attributes={}, strip=True)


# --- Auth Models ---
class SignupRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def sanitize_name(cls, v: Optional[str]) -> Optional[str]:
        return sanitize(v)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str


class AuthResponse(CamelModel):
    token: str
    user: UserOut


class MessageResponse(CamelModel):
    message: str


# --- Task Models ---
class TaskCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[int] = None

    @field_validator("title", "description")
    @classmethod
    def sanitize_input(cls, v: Optional[str]) -> Optional[str]:
        return sanitize(v)


class TaskUpdate(TaskCreate):
    """Partial update: only fields present in the request body are applied."""


class Task(CamelModel):
    id: int
    title: str
    description: str
    due_date: Optional[date] = None
    priority: TaskPriority
    status: TaskStatus
    owner_id: int
    assigned_to: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    owner: Optional[UserOut] = None
    assignee: Optional[UserOut] = None


def user_to_schema(user) -> Optional[UserOut]:
    if user is None:
        return None
    return UserOut(id=user.id, name=user.name, email=user.email)


def task_to_schema(db_task) -> Task:
    return Task(
        id=db_task.id,
        title=db_task.title,
        description=db_task.description or "",
        due_date=db_task.due_date,
        priority=db_task.priority,
        status=db_task.status,
        owner_id=db_task.owner_id,
        assigned_to=db_task.assigned_to_id,
        created_at=db_task.created_at,
        updated_at=db_task.updated_at,
        owner=user_to_schema(db_task.owner),
        assignee=user_to_schema(db_task.assignee),
    )
