"""
Authorization-scoped filters for task reads and the authorization check for task writes.

Filters are plain predicate values built by pure functions. A predicate can be compiled to
a SQLAlchemy expression (``to_sql``) so the database does the filtering, or evaluated against
a single record (``matches``) which is what the unit tests use.

Visibility rule: a caller sees a task only if they own it or it is assigned to them.
Every other clause (status, assignment refinement, search) is ANDed onto that rule and can
only narrow the result, never widen it.
"""
import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from sqlalchemy import and_, false, or_, true

from errors import NotFound
from task_models import TaskStatus

logger = logging.getLogger(__name__)

ASSIGNED_TO_ME = "me"
ASSIGNED_TO_NOBODY = "unassigned"

# created_at absteigend, bei Gleichstand Einfügereihenfolge
ORDER_BY: Tuple[Tuple[str, bool], ...] = (("created_at", True), ("id", False))


class Predicate:
    def matches(self, record: Any) -> bool:
        raise NotImplementedError

    def to_sql(self, model):
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return AllOf((self, other))

    def __or__(self, other: "Predicate") -> "Predicate":
        return AnyOf((self, other))


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def matches(self, record):
        return getattr(record, self.field) == self.value

    def to_sql(self, model):
        return getattr(model, self.field) == self.value


@dataclass(frozen=True)
class Ne(Predicate):
    field: str
    value: Any

    def matches(self, record):
        return getattr(record, self.field) != self.value

    def to_sql(self, model):
        return getattr(model, self.field) != self.value


@dataclass(frozen=True)
class IsNull(Predicate):
    field: str

    def matches(self, record):
        return getattr(record, self.field) is None

    def to_sql(self, model):
        return getattr(model, self.field).is_(None)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Contains(Predicate):
    """Case-insensitive substring match. The text is literal, not a pattern."""
    field: str
    text: str

    def matches(self, record):
        value = getattr(record, self.field)
        return value is not None and self.text.lower() in value.lower()

    def to_sql(self, model):
        return getattr(model, self.field).ilike(f"%{_escape_like(self.text)}%", escape="\\")


@dataclass(frozen=True)
class AllOf(Predicate):
    clauses: Tuple[Predicate, ...]

    def matches(self, record):
        return all(clause.matches(record) for clause in self.clauses)

    def to_sql(self, model):
        if not self.clauses:
            return true()
        return and_(*(clause.to_sql(model) for clause in self.clauses))


@dataclass(frozen=True)
class AnyOf(Predicate):
    clauses: Tuple[Predicate, ...]

    def matches(self, record):
        return any(clause.matches(record) for clause in self.clauses)

    def to_sql(self, model):
        if not self.clauses:
            return false()
        return or_(*(clause.to_sql(model) for clause in self.clauses))


@dataclass(frozen=True)
class Nothing(Predicate):
    def matches(self, record):
        return False

    def to_sql(self, model):
        return false()


class WriteOperation(str, enum.Enum):
    update = "update"
    delete = "delete"


def visible_to(caller_id: int) -> Predicate:
    return AnyOf((Eq("owner_id", caller_id), Eq("assigned_to_id", caller_id)))


def owned_by(caller_id: int) -> Predicate:
    return Eq("owner_id", caller_id)


USER_ID_PATTERN = re.compile(r"[0-9]+")


def _parse_user_id(value: str) -> Optional[int]:
    # Nur reine Ziffern; int() akzeptiert auch " +2" oder "1_0"
    if value is None or not USER_ID_PATTERN.fullmatch(value):
        return None
    return int(value)


def status_clause(status: Optional[str]) -> Predicate:
    """Explicitly requested status, otherwise everything that is not done."""
    if status in {member.value for member in TaskStatus}:
        return Eq("status", TaskStatus(status))
    return Ne("status", TaskStatus.done)


def assignment_clause(caller_id: int, assigned_to: str) -> Predicate:
    if assigned_to == ASSIGNED_TO_ME:
        return Eq("assigned_to_id", caller_id)
    if assigned_to == ASSIGNED_TO_NOBODY:
        return IsNull("assigned_to_id")
    user_id = _parse_user_id(assigned_to)
    if user_id is None:
        return Nothing()
    return Eq("assigned_to_id", user_id)


def search_clause(search: str) -> Predicate:
    return AnyOf((Contains("title", search), Contains("description", search)))


def scoped_read_filter(
    caller_id: int,
    status: Optional[str] = None,
    search: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> Predicate:
    """
    Build the filter for listing tasks on behalf of ``caller_id``.

    Args:
        caller_id: Verified user id from the access token.
        status: "todo", "in-progress" or "done". Anything else (or nothing) hides done tasks.
        search: Case-insensitive substring matched against title or description.
        assigned_to: "me", "unassigned" or a user id.

    Returns:
        Predicate: visibility AND status [AND assignment] [AND search].
    """
    clauses = [visible_to(caller_id), status_clause(status)]

    if assigned_to:
        clauses.append(assignment_clause(caller_id, assigned_to))

    if search and search.strip():
        clauses.append(search_clause(search.strip()))

    return AllOf(tuple(clauses))


def is_owner(caller_id: int, task) -> bool:
    return task.owner_id == caller_id


def is_assignee(caller_id: int, task) -> bool:
    return task.assigned_to_id is not None and task.assigned_to_id == caller_id


def authorize_write(caller_id: int, task, operation: WriteOperation) -> None:
    """
    Raise NotFound unless ``caller_id`` may perform ``operation`` on ``task``.

    A missing task and a forbidden one are reported the same way so that other users'
    task ids cannot be guessed.
    """
    if task is None:
        raise NotFound()

    if operation == WriteOperation.delete:
        allowed = is_owner(caller_id, task)
    else:
        allowed = is_owner(caller_id, task) or is_assignee(caller_id, task)

    if not allowed:
        logger.debug("Denied %s on task %s for user %s", operation.value, task.id, caller_id)
        raise NotFound()


def write_scope(caller_id: int, operation: WriteOperation) -> Predicate:
    """Predicate form of authorize_write, used to guard the persistence call itself."""
    if operation == WriteOperation.delete:
        return owned_by(caller_id)
    return visible_to(caller_id)
