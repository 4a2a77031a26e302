"""Async factory helpers.

Each helper adds the object to the session and flushes so ids and server
defaults are available immediately.
"""

from datetime import date, datetime, timezone
from itertools import count
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.models.curation import CuratableKind, CuratedAssignment
from taskcurator.models.organization import Group, GroupMember, Organization
from taskcurator.models.project import Iteration, Project, Task
from taskcurator.models.user import User
from taskcurator.services.task_ordering import TaskOrderingService, initialize_order_tracking

_seq = count(1)


async def _save(db: AsyncSession, obj):
    db.add(obj)
    await db.flush()
    return obj


async def create_organization(
    db: AsyncSession, name: Optional[str] = None, is_default: bool = False
) -> Organization:
    n = next(_seq)
    return await _save(db, Organization(
        name=name or f"Organization {n}",
        domain=None if is_default else f"org{n}.example.com",
        is_default=is_default,
    ))


async def create_user(
    db: AsyncSession,
    organization: Optional[Organization] = None,
    eligible: bool = True,
    **overrides: Any,
) -> User:
    n = next(_seq)
    now = datetime.now(timezone.utc)
    values = {
        "name": f"User {n}",
        "email": f"user{n}@example.com",
        "organization_id": organization.id if organization else None,
        "pending_approval": not eligible,
        "approved_at": now if eligible else None,
        "email_verified_at": now if eligible else None,
    }
    values.update(overrides)
    user = await _save(db, User(**values))
    # Joined relationship is needed for the organization-membership check
    await db.refresh(user, ["organization"])
    return user


async def create_group(
    db: AsyncSession, organization: Organization, members: list[User] = ()
) -> Group:
    group = await _save(db, Group(organization_id=organization.id, name=f"Group {next(_seq)}"))
    for member in members:
        db.add(GroupMember(group_id=group.id, user_id=member.id))
    await db.flush()
    return group


async def create_project(
    db: AsyncSession,
    owner: User,
    group: Optional[Group] = None,
    **overrides: Any,
) -> Project:
    values = {
        "title": f"Project {next(_seq)}",
        "description": "A test project",
        "project_type": "finite",
        "user_id": owner.id,
        "group_id": group.id if group else None,
    }
    values.update(overrides)
    return await _save(db, Project(**values))


async def create_iteration(
    db: AsyncSession, project: Project, start_date: date, end_date: date, **overrides: Any
) -> Iteration:
    values = {
        "project_id": project.id,
        "name": f"Sprint {next(_seq)}",
        "start_date": start_date,
        "end_date": end_date,
    }
    values.update(overrides)
    return await _save(db, Iteration(**values))


async def create_task(
    db: AsyncSession,
    project: Project,
    parent: Optional[Task] = None,
    sort_order: Optional[int] = None,
    **overrides: Any,
) -> Task:
    """Create a task appended to the end of its sibling group."""
    parent_id = parent.id if parent else None
    if sort_order is None:
        sort_order = await TaskOrderingService(db).next_sort_order(project.id, parent_id)
    values = {
        "title": f"Task {next(_seq)}",
        "project_id": project.id,
        "parent_id": parent_id,
        "status": "pending",
        "priority": "medium",
        "sort_order": sort_order,
    }
    values.update(overrides)
    task = Task(**values)
    initialize_order_tracking(task)
    return await _save(db, task)


async def create_assignment(
    db: AsyncSession,
    task: Task,
    user: User,
    work_date: date,
    index: int = 1,
    claim_organization_id=None,
    **overrides: Any,
) -> CuratedAssignment:
    values = {
        "item_type": CuratableKind.TASK,
        "item_id": task.id,
        "work_date": work_date,
        "assigned_to": user.id,
        "claim_organization_id": claim_organization_id,
        "initial_index": index,
        "current_index": index,
        "moved_count": 0,
    }
    values.update(overrides)
    return await _save(db, CuratedAssignment(**values))
