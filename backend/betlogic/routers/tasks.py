"""Task endpoints; users manage their own tasks, admins manage everyone's."""
from typing import Sequence

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import is_admin
from ..dependencies import ensure_owner_or_admin, get_current_principal, get_db_session
from ..errors import NotFoundError, ValidationError
from ..models import Task, User
from ..schemas import TaskCreate, TaskEnvelope, TaskPatch, TaskRead
from ..security import Principal

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def select_tasks(session: AsyncSession, user_id: int | None = None) -> Sequence[Task]:
    stmt = select(Task).order_by(Task.id.desc())
    if user_id is not None:
        stmt = stmt.where(Task.user_id == user_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def insert_task(
    session: AsyncSession, assignee_id: int, created_by: int, payload: TaskCreate
) -> Task:
    if not payload.title:
        raise ValidationError("Missing title")
    if assignee_id != created_by and await session.get(User, assignee_id) is None:
        raise NotFoundError("User not found")

    task = Task(
        user_id=assignee_id,
        title=payload.title,
        description=payload.description,
        status=payload.status or "todo",
        created_by=created_by,
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Task]:
    """Admins see every task; users see the tasks assigned to them."""

    if is_admin(principal.role):
        return await select_tasks(session)
    return await select_tasks(session, principal.user_id)


@router.post("", response_model=TaskEnvelope)
async def create_task(
    payload: TaskCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> TaskEnvelope:
    """Create a task for yourself, or for `user_id` when you are an admin."""

    assignee_id = principal.user_id
    if is_admin(principal.role) and payload.user_id:
        assignee_id = payload.user_id
    task = await insert_task(session, assignee_id, principal.user_id, payload)
    return TaskEnvelope(message="Task created", task=TaskRead.model_validate(task))


@router.patch("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: int,
    patch: TaskPatch,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> TaskEnvelope:
    task = await session.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    ensure_owner_or_admin(principal, task.user_id, "task")

    changes = patch.changes()
    if not changes:
        return TaskEnvelope(message="No changes", task=TaskRead.model_validate(task))
    for field in ("title", "status"):
        if field in changes and not changes[field]:
            raise ValidationError(f"{field} may not be empty")

    for field, value in changes.items():
        setattr(task, field, value)
    await session.commit()
    await session.refresh(task)
    return TaskEnvelope(message="Task updated", task=TaskRead.model_validate(task))
