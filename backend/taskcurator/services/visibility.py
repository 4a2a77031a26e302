"""Resolve which projects and open tasks a user may be curated into."""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import and_, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskcurator.models.curation import CuratableKind, CuratedAssignment
from taskcurator.models.organization import GroupMember
from taskcurator.models.project import Project, Task
from taskcurator.models.user import User

logger = structlog.get_logger()


@dataclass
class VisibleProject:
    """A project together with the open tasks this user may be curated."""

    project: Project
    tasks: list[Task] = field(default_factory=list)

    @property
    def id(self) -> UUID:
        return self.project.id


class VisibilityResolver:
    """Owned projects plus group projects, with organization exclusivity.

    Members of a non-default organization compete for one pool of tasks: any
    task already on anybody's list for today is hidden from them. Individual
    users always see all of their open tasks.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, user: User, today: date) -> list[VisibleProject]:
        is_org_member = user.is_organization_member

        logger.info(
            "resolving_visible_projects",
            user_id=str(user.id),
            organization_id=str(user.organization_id) if user.organization_id else None,
            is_organization_member=is_org_member,
        )

        group_ids = select(GroupMember.group_id).where(GroupMember.user_id == user.id)
        result = await self.db.execute(
            select(Project)
            .where(
                or_(
                    Project.user_id == user.id,
                    Project.group_id.in_(group_ids),
                )
            )
            .order_by(Project.created_at, Project.id)
        )
        # A single OR query yields each project once even if owned and shared
        projects = list(result.scalars().unique().all())

        if not projects:
            return []

        tasks_by_project = await self._open_tasks(
            [p.id for p in projects], today, exclude_claimed=is_org_member
        )

        return [
            VisibleProject(project=p, tasks=tasks_by_project.get(p.id, []))
            for p in projects
        ]

    async def _open_tasks(
        self,
        project_ids: list[UUID],
        today: date,
        exclude_claimed: bool,
    ) -> dict[UUID, list[Task]]:
        query = (
            select(Task)
            .where(
                Task.project_id.in_(project_ids),
                Task.status != "completed",
            )
            .options(selectinload(Task.children), selectinload(Task.parent))
            .order_by(Task.due_date.asc().nulls_last(), Task.created_at.desc())
        )

        if exclude_claimed:
            claimed = exists().where(
                and_(
                    CuratedAssignment.item_type == CuratableKind.TASK,
                    CuratedAssignment.item_id == Task.id,
                    CuratedAssignment.work_date == today,
                )
            )
            query = query.where(~claimed)

        result = await self.db.execute(query)

        grouped: dict[UUID, list[Task]] = {pid: [] for pid in project_ids}
        for task in result.scalars().all():
            grouped[task.project_id].append(task)
        return grouped
