"""Daily curation endpoints."""

from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.db.session import get_db_session
from taskcurator.models.curation import CuratableKind
from taskcurator.services.curated_assignments import CuratedAssignmentStore
from taskcurator.services.exceptions import ProjectNotFoundError, UserNotFoundError
from taskcurator.services.user_curation import UserCurationJob
from taskcurator.tasks import run_user_curation

router = APIRouter()
logger = structlog.get_logger()


class CurationRunRequest(BaseModel):
    user_id: UUID
    project_id: UUID | None = None
    run_inline: bool = False


class CuratedAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_type: CuratableKind
    item_id: UUID
    work_date: date
    assigned_to: UUID
    initial_index: int
    current_index: int
    moved_count: int
    completed_at: datetime | None = None


class DailyCurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    curation_date: date
    suggestions: list[dict[str, Any]]
    summary: str | None = None
    focus_areas: list[str]
    ai_provider: str | None = None
    ai_generated: bool
    viewed_at: datetime | None = None
    dismissed_at: datetime | None = None


class TodayResponse(BaseModel):
    work_date: date
    assignments: list[CuratedAssignmentResponse]
    curations: list[DailyCurationResponse]


class AssignmentMoveRequest(BaseModel):
    current_index: int = Field(..., ge=1)


@router.post("/run", status_code=status.HTTP_202_ACCEPTED)
async def run_curation(
    body: CurationRunRequest,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Trigger curation for one user, queued by default."""
    if not body.run_inline:
        result = run_user_curation.delay(
            str(body.user_id),
            str(body.project_id) if body.project_id else None,
        )
        logger.info("user_curation_queued", user_id=str(body.user_id), celery_task_id=result.id)
        return {"status": "queued", "task_id": result.id}

    job = UserCurationJob(db)
    try:
        user = await job.load_user(body.user_id)
        summary = await job.run(user, project_id=body.project_id)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    except ProjectNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not visible to user",
        )

    return {"status": "completed", "summary": summary.to_dict()}


@router.get("/users/{user_id}/today", response_model=TodayResponse)
async def get_today(
    user_id: UUID,
    work_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db_session),
) -> TodayResponse:
    """Today's curated list in display order plus the curation records."""
    work_date = work_date or datetime.now(timezone.utc).date()
    store = CuratedAssignmentStore(db)
    assignments = await store.today_for_user(user_id, work_date)
    curations = await store.records_for_day(user_id, work_date)

    return TodayResponse(
        work_date=work_date,
        assignments=[CuratedAssignmentResponse.model_validate(a) for a in assignments],
        curations=[DailyCurationResponse.model_validate(c) for c in curations],
    )


@router.patch("/assignments/{assignment_id}", response_model=CuratedAssignmentResponse)
async def move_assignment(
    assignment_id: UUID,
    body: AssignmentMoveRequest,
    db: AsyncSession = Depends(get_db_session),
) -> CuratedAssignmentResponse:
    """Move an entry within the user's daily list."""
    store = CuratedAssignmentStore(db)
    assignment = await store.get_assignment(assignment_id)
    if assignment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assignment not found",
        )

    assignment = await store.move_assignment(assignment, body.current_index)
    return CuratedAssignmentResponse.model_validate(assignment)
