from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from dependencies import get_current_user_id, get_task_store
from schemas import MessageResponse, Task, TaskCreate, TaskUpdate, task_to_schema
from task_service import TaskService
from task_store import TaskStore

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"]
)


def get_task_service(store: TaskStore = Depends(get_task_store)) -> TaskService:
    return TaskService(store)


@router.get("", response_model=List[Task])
def read_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    user_id: int = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
):
    """
    Aufgaben des Benutzers (eigene und zugewiesene), neueste zuerst.

    Ohne `status` werden erledigte Aufgaben ausgeblendet.
    """
    tasks = service.list_tasks(user_id, status=status_filter, search=search, assigned_to=assigned_to)
    return [task_to_schema(t) for t in tasks]


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    user_id: int = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
):
    return task_to_schema(service.create(user_id, task))


@router.get("/{task_id}", response_model=Task)
def read_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
):
    return task_to_schema(service.get_task(user_id, task_id))


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: int,
    task: TaskUpdate,
    user_id: int = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
):
    return task_to_schema(service.update(user_id, task_id, task))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
):
    service.delete(user_id, task_id)
    return MessageResponse(message="Task deleted.")
