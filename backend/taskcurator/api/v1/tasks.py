"""Task ordering endpoints."""

from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.db.session import get_db_session
from taskcurator.models.project import Task
from taskcurator.services.exceptions import InvalidPositionError, TaskNotFoundError
from taskcurator.services.task_ordering import TaskOrderingService

router = APIRouter()
logger = structlog.get_logger()


class TaskReorderRequest(BaseModel):
    """Move one task to a 1-based position among its siblings."""

    new_position: int = Field(..., ge=1)
    confirmed: bool = False


class TaskReorderResponse(BaseModel):
    success: bool
    requires_confirmation: bool = False
    confirmation_data: dict[str, Any] | None = None
    reorder_data: dict[str, Any] | None = None
    message: str


@router.post(
    "/{project_id}/tasks/{task_id}/reorder",
    response_model=TaskReorderResponse,
)
async def reorder_task(
    project_id: UUID,
    task_id: UUID,
    body: TaskReorderRequest,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Reorder a task.

    A move next to tasks of a different priority answers with
    ``requires_confirmation`` until repeated with ``confirmed=true``.
    """
    result = await db.execute(
        select(Task.id).where(Task.id == task_id, Task.project_id == project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )

    service = TaskOrderingService(db)
    try:
        outcome = await service.move_to(task_id, body.new_position, confirmed=body.confirmed)
    except TaskNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    except InvalidPositionError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return outcome.to_dict()
