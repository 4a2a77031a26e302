"""Materialized hierarchy columns on Task.

``depth`` and ``path`` are derived from ``parent_id``. They are refreshed by
an explicit call after a task is created or re-parented, never on save.
"""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.models.project import Task

logger = structlog.get_logger()

PATH_SEPARATOR = "/"


class HierarchyCycleError(ValueError):
    def __init__(self, task_id: UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is its own ancestor")


async def _ancestor_ids(db: AsyncSession, task: Task) -> list[UUID]:
    """Ids from the root down to the task's parent."""
    chain: list[UUID] = []
    seen = {task.id}
    parent_id = task.parent_id
    while parent_id is not None:
        if parent_id in seen:
            raise HierarchyCycleError(task.id)
        seen.add(parent_id)
        chain.append(parent_id)
        result = await db.execute(select(Task.parent_id).where(Task.id == parent_id))
        parent_id = result.scalar_one_or_none()
    chain.reverse()
    return chain


async def refresh_hierarchy(db: AsyncSession, task: Task) -> int:
    """Recompute ``depth``/``path`` for ``task`` and all of its descendants.

    Flushes but does not commit. Returns the number of tasks touched.
    """
    if task.id is None:
        await db.flush()
    ancestors = await _ancestor_ids(db, task)
    task.depth = len(ancestors)
    task.path = PATH_SEPARATOR.join(str(i) for i in [*ancestors, task.id])
    touched = 1

    frontier = [task]
    while frontier:
        by_id = {t.id: t for t in frontier}
        result = await db.execute(select(Task).where(Task.parent_id.in_(list(by_id))))
        children = list(result.scalars().all())
        for child in children:
            parent = by_id[child.parent_id]
            child.depth = parent.depth + 1
            child.path = f"{parent.path}{PATH_SEPARATOR}{child.id}"
        touched += len(children)
        frontier = children

    await db.flush()
    logger.debug("task_hierarchy_refreshed", task_id=str(task.id), touched=touched)
    return touched
