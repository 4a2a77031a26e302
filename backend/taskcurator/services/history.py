"""Summaries of a user's recent task completions."""

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskcurator.models.curation import CuratableKind, CuratedAssignment
from taskcurator.models.project import Task
from taskcurator.models.user import User

logger = structlog.get_logger()

TOP_TASK_TYPES = 5


@dataclass
class UserPerformanceStats:
    total_tasks_completed: int = 0
    total_story_points: int = 0
    average_completion_time_hours: float = 0
    average_story_points: float = 0
    task_types: dict[str, int] = field(default_factory=dict)
    top_task_types: list[str] = field(default_factory=list)
    completion_times: list[int] = field(default_factory=list)
    story_points: list[int] = field(default_factory=list)

    def as_context(self) -> dict[str, Any]:
        return asdict(self)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def categorize_task_type(task: Task, project_type: Optional[str]) -> str:
    """Synthetic label such as ``iterative_project_subtask_m_medium``."""
    if project_type == "finite":
        label = "finite_project"
    elif project_type == "iterative":
        label = "iterative_project"
    else:
        label = "general"

    label += "_subtask" if task.parent_id else "_toplevel"

    if task.size:
        label += f"_{task.size}"

    points = task.current_story_points
    if points:
        if points <= 2:
            label += "_small"
        elif points <= 5:
            label += "_medium"
        else:
            label += "_large"

    return label


class HistoryAnalyzer:
    """Aggregates the tasks a user completed over the trailing window.

    Read-only. Any failure yields empty statistics so curation can continue.
    """

    def __init__(self, db: AsyncSession, window_days: int = 30):
        self.db = db
        self.window_days = window_days

    async def analyze(self, user: User, now: Optional[datetime] = None) -> UserPerformanceStats:
        try:
            return await self._analyze(user.id, now or datetime.now(timezone.utc))
        except Exception as e:
            logger.warning(
                "user_history_analysis_failed",
                user_id=str(user.id),
                error=str(e),
            )
            return UserPerformanceStats()

    async def _analyze(self, user_id: UUID, now: datetime) -> UserPerformanceStats:
        since = now - timedelta(days=self.window_days)

        curated_for_user = select(CuratedAssignment.item_id).where(
            CuratedAssignment.item_type == CuratableKind.TASK,
            CuratedAssignment.assigned_to == user_id,
        )
        result = await self.db.execute(
            select(Task)
            .where(
                Task.id.in_(curated_for_user),
                Task.status == "completed",
                Task.updated_at >= since,
            )
            .options(selectinload(Task.project))
        )
        tasks = list(result.scalars().all())

        if not tasks:
            return UserPerformanceStats()

        # Earliest completed assignment of each task for this user
        assignment_rows = await self.db.execute(
            select(CuratedAssignment)
            .where(
                CuratedAssignment.item_type == CuratableKind.TASK,
                CuratedAssignment.assigned_to == user_id,
                CuratedAssignment.item_id.in_([t.id for t in tasks]),
                CuratedAssignment.completed_at.is_not(None),
            )
            .order_by(CuratedAssignment.completed_at.asc())
        )
        first_completion: dict[UUID, CuratedAssignment] = {}
        for assignment in assignment_rows.scalars().all():
            first_completion.setdefault(assignment.item_id, assignment)

        task_types: Counter[str] = Counter()
        story_points: list[int] = []
        completion_times: list[int] = []

        for task in tasks:
            task_types[categorize_task_type(task, task.project.project_type)] += 1

            if task.current_story_points and task.current_story_points > 0:
                story_points.append(task.current_story_points)

            assignment = first_completion.get(task.id)
            if assignment is not None:
                elapsed = _as_utc(assignment.completed_at) - _as_utc(assignment.created_at)
                completion_times.append(int(abs(elapsed.total_seconds()) // 3600))

        avg_completion = (
            round(sum(completion_times) / len(completion_times), 2) if completion_times else 0
        )
        avg_points = round(sum(story_points) / len(story_points), 2) if story_points else 0

        return UserPerformanceStats(
            total_tasks_completed=len(tasks),
            total_story_points=sum(story_points),
            average_completion_time_hours=avg_completion,
            average_story_points=avg_points,
            task_types=dict(task_types.most_common()),
            top_task_types=[label for label, _ in task_types.most_common(TOP_TASK_TYPES)],
            completion_times=completion_times,
            story_points=story_points,
        )
