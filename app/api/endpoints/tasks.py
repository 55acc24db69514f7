from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_current_user, get_repositories
from app.core.exceptions import TaskNotFoundException
from app.repositories.base import Repositories
from app.schemas.task_schema import TaskCreate, TaskOut, TaskUpdate
from app.schemas.user_schema import UserRecord

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskOut])
async def list_tasks(
    current_user: UserRecord = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.tasks.list_by_user(current_user.id)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    current_user: UserRecord = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.tasks.create(current_user.id, task_in)


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: int,
    changes: TaskUpdate,
    current_user: UserRecord = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    # only due_date may be cleared with an explicit null
    data = {
        key: value for key, value in changes.model_dump(exclude_unset=True).items()
        if value is not None or key == "due_date"
    }
    task = await repos.tasks.update(current_user.id, task_id, data)
    if task is None:
        raise TaskNotFoundException()
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    current_user: UserRecord = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    if not await repos.tasks.delete(current_user.id, task_id):
        raise TaskNotFoundException()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
