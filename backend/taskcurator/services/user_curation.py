"""One user's daily curation run.

Visibility and history feed the curation engine project by project; each
project is isolated so a failure only skips that project. Weight metrics
are recorded for every run, even when the user sees no projects.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.ai.service import CurationAIConfig, get_ai_service
from taskcurator.config import get_settings
from taskcurator.models.curation import CurationPromptLog
from taskcurator.models.project import Project
from taskcurator.models.user import User
from taskcurator.services.curated_assignments import CuratedAssignmentStore
from taskcurator.services.curation import (
    CurationEngine,
    CurationOutcome,
    leaf_candidates,
    next_iteration_due_date,
)
from taskcurator.services.exceptions import ProjectNotFoundError, UserNotFoundError
from taskcurator.services.history import HistoryAnalyzer
from taskcurator.services.visibility import VisibilityResolver, VisibleProject
from taskcurator.services.weight_metrics import WeightMetricsCalculator

logger = structlog.get_logger()

AIConfigResolver = Callable[[Project], CurationAIConfig]


@dataclass
class CurationRunSummary:
    user_id: str
    run_date: str
    projects_seen: int = 0
    projects_curated: int = 0
    projects_skipped: int = 0
    projects_failed: int = 0
    ai_generated: int = 0
    assignments_created: int = 0
    failed_project_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def list_eligible_users(db: AsyncSession, user_id: Optional[UUID] = None) -> Sequence[User]:
    """Approved, verified users that are not waiting for approval."""
    query = select(User).where(
        User.pending_approval.is_(False),
        User.approved_at.is_not(None),
        User.email_verified_at.is_not(None),
    )
    if user_id is not None:
        query = query.where(User.id == user_id)
    result = await db.execute(query.order_by(User.created_at))
    return result.unique().scalars().all()


class UserCurationJob:
    """Curates every visible project of one user for one day."""

    def __init__(
        self,
        db: AsyncSession,
        ai_config_for: Optional[AIConfigResolver] = None,
        engine: Optional[CurationEngine] = None,
    ):
        settings = get_settings()
        self.db = db
        self.ai_config_for = ai_config_for or get_ai_service().curation_config_for
        self.engine = engine or CurationEngine(due_soon_days=settings.due_soon_days)
        self.visibility = VisibilityResolver(db)
        self.history = HistoryAnalyzer(db, window_days=settings.curation_history_days)
        self.weights = WeightMetricsCalculator(db, velocity_window_days=settings.velocity_window_days)
        self.store = CuratedAssignmentStore(db)

    async def load_user(self, user_id: UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.unique().scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def run(
        self,
        user: User,
        project_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> CurationRunSummary:
        now = datetime.now(timezone.utc)
        today = today or now.date()
        summary = CurationRunSummary(user_id=str(user.id), run_date=today.isoformat())

        with structlog.contextvars.bound_contextvars(user_id=str(user.id)):
            logger.info("user_curation_started", project_id=str(project_id) if project_id else None)

            await self._clear_prompt_logs(user)

            try:
                visible = await self.visibility.resolve(user, today)
            except Exception:
                logger.exception("visible_projects_resolution_failed")
                raise

            try:
                await self.weights.calculate(user, visible, today)
            except Exception:
                logger.exception("daily_weight_metrics_failed")
                raise

            if project_id is not None:
                visible = [vp for vp in visible if vp.project.id == project_id]
                if not visible:
                    raise ProjectNotFoundError(project_id)

            summary.projects_seen = len(visible)
            if not visible:
                logger.info("no_visible_projects")
                return summary

            stats = await self.history.analyze(user, now)

            for vp in visible:
                await self._curate_project(user, vp, stats, today, now, summary)

            logger.info("user_curation_completed", **summary.to_dict())
        return summary

    async def _curate_project(self, user, vp: VisibleProject, stats, today, now, summary) -> None:
        project = vp.project
        project_id = str(project.id)
        try:
            candidates = leaf_candidates(vp.tasks)
            if not candidates:
                logger.info("no_leaf_tasks_for_curation", project_id=project_id)
                summary.projects_skipped += 1
                return

            context = self.engine.build_context(
                project,
                candidates,
                user,
                stats,
                today,
                next_iteration_due=await next_iteration_due_date(self.db, project, now),
            )
            outcome = await self.engine.curate(context, self.ai_config_for(project), project.id)

            if outcome.prompt is not None:
                await self._store_prompt_log(user, project, outcome, len(candidates))

            _, assignments = await self.store.store(user, project, outcome, today)
        except Exception as e:
            # Writes are savepointed, so loaded objects stay valid for the next project
            logger.error("project_curation_failed", project_id=project_id, error=str(e))
            summary.projects_failed += 1
            summary.failed_project_ids.append(project_id)
            return

        summary.projects_curated += 1
        summary.assignments_created += len(assignments)
        if outcome.ai_generated:
            summary.ai_generated += 1

    async def _clear_prompt_logs(self, user: User) -> None:
        user_id = user.id
        try:
            async with self.db.begin_nested():
                await self.db.execute(
                    delete(CurationPromptLog).where(CurationPromptLog.user_id == user_id)
                )
            await self.db.commit()
        except Exception as e:
            logger.warning("curation_prompt_cleanup_failed", error=str(e))

    async def _store_prompt_log(
        self, user: User, project: Project, outcome: CurationOutcome, task_count: int
    ) -> None:
        try:
            async with self.db.begin_nested():
                self.db.add(CurationPromptLog(
                    user_id=user.id,
                    project_id=project.id,
                    prompt_text=outcome.prompt,
                    ai_provider=outcome.ai_provider,
                    ai_model=outcome.ai_model,
                    is_organization_user=user.is_organization_member,
                    task_count=task_count,
                ))
            await self.db.commit()
        except Exception as e:
            logger.warning(
                "curation_prompt_store_failed",
                project_id=str(project.id),
                error=str(e),
            )
