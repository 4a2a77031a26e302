"""Celery background tasks.

The daily fan-out enqueues one independent run per eligible user. A failed
run is raised to Celery so the worker's own retry policy decides what to do;
AI calls inside a run are never retried.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from taskcurator.worker import celery_app

logger = structlog.get_logger()


async def _run_user_curation(user_id: UUID, project_id: Optional[UUID]) -> dict:
    from taskcurator.db.session import async_session_factory, engine
    from taskcurator.services.user_curation import UserCurationJob

    try:
        async with async_session_factory() as db:
            job = UserCurationJob(db)
            user = await job.load_user(user_id)
            summary = await job.run(user, project_id=project_id)
            return summary.to_dict()
    finally:
        # Pooled connections are bound to this event loop
        await engine.dispose()


async def _eligible_user_ids(user_id: Optional[UUID] = None) -> list[str]:
    from taskcurator.db.session import async_session_factory, engine
    from taskcurator.services.user_curation import list_eligible_users

    try:
        async with async_session_factory() as db:
            users = await list_eligible_users(db, user_id)
            return [str(u.id) for u in users]
    finally:
        await engine.dispose()


@celery_app.task(bind=True, name="taskcurator.tasks.run_user_curation")
def run_user_curation(self, user_id: str, project_id: Optional[str] = None) -> dict:
    """Curate today's tasks for one user (optionally one project)."""
    try:
        summary = asyncio.run(
            _run_user_curation(UUID(user_id), UUID(project_id) if project_id else None)
        )
    except Exception as e:
        logger.error(
            "user_curation_task_failed",
            user_id=user_id,
            project_id=project_id,
            error=str(e),
        )
        raise

    logger.info("user_curation_task_completed", **summary)
    return {"status": "success", **summary}


@celery_app.task(bind=True, name="taskcurator.tasks.schedule_daily_curation")
def schedule_daily_curation(self, user_id: Optional[str] = None) -> dict:
    """Enqueue one curation run per eligible user.

    Scheduled once a day by Celery beat. Passing ``user_id`` limits the
    fan-out to that user.
    """
    user_ids = asyncio.run(_eligible_user_ids(UUID(user_id) if user_id else None))

    for uid in user_ids:
        run_user_curation.delay(uid)

    logger.info("daily_curation_scheduled", users=len(user_ids))
    return {"status": "scheduled", "users": len(user_ids)}
