import logging
from typing import List, Optional

from errors import NotFound, ValidationError
from schemas import TaskCreate, TaskUpdate
from task_models import TaskDB, TaskPriority, TaskStatus
from task_store import TaskStore
from visibility import (
    Eq,
    WriteOperation,
    authorize_write,
    owned_by,
    scoped_read_filter,
    visible_to,
    write_scope,
)

logger = logging.getLogger(__name__)

# Request field -> column
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "due_date": "due_date",
    "priority": "priority",
    "status": "status",
    "assigned_to": "assigned_to_id",
}


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    return title


class TaskService:
    def __init__(self, store: TaskStore):
        self.store = store

    def list_tasks(
        self,
        caller_id: int,
        status: Optional[str] = None,
        search: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> List[TaskDB]:
        where = scoped_read_filter(caller_id, status=status, search=search, assigned_to=assigned_to)
        return self.store.find_many(where)

    def get_task(self, caller_id: int, task_id: int) -> TaskDB:
        task = self.store.find_one(Eq("id", task_id) & visible_to(caller_id))
        if task is None:
            raise NotFound()
        return task

    def create(self, caller_id: int, fields: TaskCreate) -> TaskDB:
        # owner_id kommt immer aus dem Token, nie aus dem Request
        task = TaskDB(
            owner_id=caller_id,
            assigned_to_id=fields.assigned_to,
            title=_clean_title(fields.title),
            description=fields.description or "",
            due_date=fields.due_date,
            priority=fields.priority or TaskPriority.medium,
            status=fields.status or TaskStatus.todo,
        )
        task = self.store.insert(task)
        logger.info("Task %s created by user %s", task.id, caller_id)
        return task

    def update(self, caller_id: int, task_id: int, patch: TaskUpdate) -> TaskDB:
        """Apply only the fields present in ``patch``; absent fields keep their values."""
        task = self.store.find_one(Eq("id", task_id))
        authorize_write(caller_id, task, WriteOperation.update)

        changes = {}
        for name in patch.model_fields_set:
            if name not in UPDATABLE_FIELDS:
                continue
            value = getattr(patch, name)
            if name == "title":
                value = _clean_title(value)
            elif name == "description":
                value = value or ""
            elif name in ("priority", "status") and value is None:
                raise ValidationError(f"{name} must not be null.")
            changes[UPDATABLE_FIELDS[name]] = value

        if not changes:
            return task

        updated = self.store.update_one(task_id, changes, where=write_scope(caller_id, WriteOperation.update))
        if updated is None:
            # Zwischenzeitlich gelöscht oder Rechte entzogen
            raise NotFound()
        return updated

    def delete(self, caller_id: int, task_id: int) -> None:
        task = self.store.find_one(Eq("id", task_id))
        authorize_write(caller_id, task, WriteOperation.delete)

        if not self.store.delete_one(Eq("id", task_id) & owned_by(caller_id)):
            raise NotFound()
        logger.info("Task %s deleted by user %s", task_id, caller_id)
