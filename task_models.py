import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models import User


class TaskStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in-progress"
    done = "done"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    # Ersteller, nach dem Anlegen unveränderlich
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    due_date = Column(Date, nullable=True)
    priority = Column(
        Enum(TaskPriority, values_callable=_enum_values, native_enum=False),
        nullable=False,
        default=TaskPriority.medium,
    )
    status = Column(
        Enum(TaskStatus, values_callable=_enum_values, native_enum=False),
        nullable=False,
        default=TaskStatus.todo,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Read-only display join on users (name/email only)
    owner = relationship(User, foreign_keys=[owner_id], lazy="joined", viewonly=True)
    assignee = relationship(User, foreign_keys=[assigned_to_id], lazy="joined", viewonly=True)
