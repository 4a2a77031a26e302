"""Daily workload metrics per user."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Sequence
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.models.curation import (
    SIZE_BUCKETS,
    CuratableKind,
    CuratedAssignment,
    DailyWeightMetric,
)
from taskcurator.models.project import Task
from taskcurator.models.user import User
from taskcurator.services.visibility import VisibleProject

logger = structlog.get_logger()


def summarize_workload(projects: list[VisibleProject]) -> dict[str, Any]:
    """Story-point totals over the open tasks of the given projects.

    A task is "signed" when it carries a positive story-point estimate.
    """
    total_points = 0
    total_tasks = 0
    signed = 0
    unsigned = 0
    project_breakdown: list[dict[str, Any]] = []
    size_breakdown = {size: 0 for size in SIZE_BUCKETS}

    for visible in projects:
        project_points = 0
        project_tasks = 0
        project_signed = 0
        project_unsigned = 0

        for task in visible.tasks:
            if task.status == "completed":
                continue

            project_tasks += 1
            points = task.current_story_points or 0
            if points > 0:
                project_points += points
                project_signed += 1
                if task.size in size_breakdown:
                    size_breakdown[task.size] += points
            else:
                project_unsigned += 1

        total_points += project_points
        total_tasks += project_tasks
        signed += project_signed
        unsigned += project_unsigned

        if project_tasks > 0:
            project_breakdown.append({
                "project_id": str(visible.project.id),
                "project_title": visible.project.title,
                "total_points": project_points,
                "total_tasks": project_tasks,
                "signed_tasks": project_signed,
                "unsigned_tasks": project_unsigned,
                "average_points": (
                    round(project_points / project_signed, 2) if project_signed else 0
                ),
            })

    return {
        "total_story_points": total_points,
        "total_tasks_count": total_tasks,
        "signed_tasks_count": signed,
        "unsigned_tasks_count": unsigned,
        "average_points_per_task": round(total_points / signed, 2) if signed else 0.0,
        "project_breakdown": project_breakdown,
        "size_breakdown": size_breakdown,
    }


class WeightMetricsCalculator:
    """Computes and upserts one DailyWeightMetric row per (user, day).

    Runs regardless of the curation outcome, including for users with no
    visible projects (all counts zero).
    """

    def __init__(self, db: AsyncSession, velocity_window_days: int = 7):
        self.db = db
        self.velocity_window_days = velocity_window_days

    async def calculate(
        self,
        user: User,
        projects: list[VisibleProject],
        today: date,
    ) -> DailyWeightMetric:
        values = summarize_workload(projects)
        completed_points = await self._completed_points(user.id, today)
        values["completed_story_points"] = completed_points
        values["daily_velocity"] = await self._trailing_velocity(user.id, today, completed_points)

        metric = await self._upsert(user.id, today, values)
        await self.db.commit()

        logger.info(
            "daily_weight_metrics_stored",
            user_id=str(user.id),
            total_story_points=values["total_story_points"],
            total_tasks=values["total_tasks_count"],
            signed_tasks=values["signed_tasks_count"],
            unsigned_tasks=values["unsigned_tasks_count"],
            average_points_per_task=values["average_points_per_task"],
            daily_velocity=values["daily_velocity"],
        )
        return metric

    async def get_metric(self, user_id: UUID, metric_date: date) -> DailyWeightMetric | None:
        result = await self.db.execute(
            select(DailyWeightMetric).where(
                DailyWeightMetric.user_id == user_id,
                DailyWeightMetric.metric_date == metric_date,
            )
        )
        return result.scalar_one_or_none()

    async def _upsert(self, user_id: UUID, metric_date: date, values: dict[str, Any]) -> DailyWeightMetric:
        metric = await self.get_metric(user_id, metric_date)
        if metric is None:
            try:
                async with self.db.begin_nested():
                    metric = DailyWeightMetric(user_id=user_id, metric_date=metric_date, **values)
                    self.db.add(metric)
                return metric
            except IntegrityError:
                logger.warning(
                    "daily_weight_metric_insert_race",
                    user_id=str(user_id),
                    metric_date=metric_date.isoformat(),
                )
                metric = await self.get_metric(user_id, metric_date)
                if metric is None:
                    raise

        for key, value in values.items():
            setattr(metric, key, value)
        await self.db.flush()
        return metric

    async def _completed_points(self, user_id: UUID, day: date) -> int:
        """Story points of the user's curated tasks completed on ``day``."""
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        end = start + timedelta(days=1)
        result = await self.db.execute(
            select(func.coalesce(func.sum(Task.current_story_points), 0))
            .select_from(CuratedAssignment)
            .join(Task, Task.id == CuratedAssignment.item_id)
            .where(
                CuratedAssignment.item_type == CuratableKind.TASK,
                CuratedAssignment.assigned_to == user_id,
                CuratedAssignment.completed_at >= start,
                CuratedAssignment.completed_at < end,
            )
        )
        return int(result.scalar_one() or 0)

    async def _trailing_velocity(self, user_id: UUID, today: date, completed_today: int) -> float:
        since = today - timedelta(days=self.velocity_window_days - 1)
        result = await self.db.execute(
            select(DailyWeightMetric.completed_story_points).where(
                DailyWeightMetric.user_id == user_id,
                DailyWeightMetric.metric_date >= since,
                DailyWeightMetric.metric_date < today,
            )
        )
        samples = [int(v or 0) for v in result.scalars().all()]
        samples.append(completed_today)
        return round(sum(samples) / len(samples), 2)

    async def average_velocity(self, user_id: UUID, days: int = 7, today: date | None = None) -> float:
        """Mean daily velocity over the last ``days`` stored metrics."""
        today = today or date.today()
        result = await self.db.execute(
            select(func.avg(DailyWeightMetric.daily_velocity)).where(
                DailyWeightMetric.user_id == user_id,
                DailyWeightMetric.metric_date > today - timedelta(days=days),
                DailyWeightMetric.metric_date <= today,
            )
        )
        value = result.scalar_one_or_none()
        return round(float(value), 2) if value is not None else 0.0

    async def velocity_trend(
        self, user_id: UUID, days: int = 30, today: date | None = None
    ) -> Sequence[tuple[date, float]]:
        today = today or date.today()
        result = await self.db.execute(
            select(DailyWeightMetric.metric_date, DailyWeightMetric.daily_velocity)
            .where(
                DailyWeightMetric.user_id == user_id,
                DailyWeightMetric.metric_date > today - timedelta(days=days),
                DailyWeightMetric.metric_date <= today,
            )
            .order_by(DailyWeightMetric.metric_date)
        )
        return [(row.metric_date, row.daily_velocity) for row in result.all()]
