"""Persistence of daily curation output and the per-user work list."""

from datetime import date
from typing import Iterable, Sequence
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.models.curation import (
    CuratableKind,
    CuratedAssignment,
    DailyCurationRecord,
)
from taskcurator.models.project import Project, Task
from taskcurator.models.user import User
from taskcurator.services.curation import CurationOutcome

logger = structlog.get_logger()


def _parse_ids(raw_ids: Iterable[str]) -> list[UUID]:
    parsed: list[UUID] = []
    for raw in raw_ids:
        try:
            parsed.append(raw if isinstance(raw, UUID) else UUID(str(raw)))
        except ValueError:
            logger.warning("curated_assignment_invalid_task_id", task_id=str(raw))
    return parsed


class CuratedAssignmentStore:
    """Writes DailyCurationRecords and today's CuratedAssignments.

    Re-running for the same day overwrites instead of duplicating. For
    organization members the org-claim unique constraint decides who gets
    a contested task; the loser skips it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Curation output
    # =========================================================================

    async def store(
        self,
        user: User,
        project: Project,
        outcome: CurationOutcome,
        today: date,
    ) -> tuple[DailyCurationRecord, list[CuratedAssignment]]:
        """Persist one project's curation atomically.

        The writes run inside a savepoint so a failure discards only this
        project's changes and leaves the session usable for the next one.
        """
        task_ids = outcome.result.task_ids_to_assign()
        async with self.db.begin_nested():
            record = await self._upsert_record(user, project, outcome, today)
            assignments = await self._replace_assignments(user, project, task_ids, today)
        await self.db.commit()

        logger.info(
            "daily_curation_stored",
            user_id=str(user.id),
            project_id=str(project.id),
            curation_id=str(record.id),
            suggestions_count=len(record.suggestions),
            recommended_tasks_count=len(task_ids),
            assigned_count=len(assignments),
            ai_generated=record.ai_generated,
        )
        return record, assignments

    async def get_record(
        self, user_id: UUID, project_id: UUID, curation_date: date
    ) -> DailyCurationRecord | None:
        result = await self.db.execute(
            select(DailyCurationRecord).where(
                DailyCurationRecord.user_id == user_id,
                DailyCurationRecord.project_id == project_id,
                DailyCurationRecord.curation_date == curation_date,
            )
        )
        return result.scalar_one_or_none()

    async def records_for_day(self, user_id: UUID, curation_date: date) -> Sequence[DailyCurationRecord]:
        result = await self.db.execute(
            select(DailyCurationRecord)
            .where(
                DailyCurationRecord.user_id == user_id,
                DailyCurationRecord.curation_date == curation_date,
            )
            .order_by(DailyCurationRecord.created_at)
        )
        return result.scalars().all()

    async def _upsert_record(
        self,
        user: User,
        project: Project,
        outcome: CurationOutcome,
        today: date,
    ) -> DailyCurationRecord:
        values = {
            "suggestions": [s.model_dump() for s in outcome.result.suggestions],
            "summary": outcome.result.summary or None,
            "focus_areas": list(outcome.result.focus_areas),
            "recommended_task_ids": list(outcome.result.recommended_tasks),
            "ai_provider": outcome.ai_provider if outcome.ai_generated else None,
            "ai_generated": outcome.ai_generated,
        }

        record = await self.get_record(user.id, project.id, today)
        if record is None:
            try:
                async with self.db.begin_nested():
                    record = DailyCurationRecord(
                        user_id=user.id,
                        project_id=project.id,
                        curation_date=today,
                        **values,
                    )
                    self.db.add(record)
                return record
            except IntegrityError:
                # Another run created it first
                record = await self.get_record(user.id, project.id, today)
                if record is None:
                    raise

        for key, value in values.items():
            setattr(record, key, value)
        # A fresh curation is unread again
        record.viewed_at = None
        record.dismissed_at = None
        await self.db.flush()
        return record

    # =========================================================================
    # Work list
    # =========================================================================

    async def _replace_assignments(
        self,
        user: User,
        project: Project,
        raw_task_ids: list[str],
        today: date,
    ) -> list[CuratedAssignment]:
        task_ids = await self._project_task_ids(project.id, _parse_ids(raw_task_ids))
        is_org_member = user.is_organization_member

        if is_org_member:
            # Refresh only what is being re-curated; other claims stay
            if not task_ids:
                return []
            await self.db.execute(
                delete(CuratedAssignment).where(
                    CuratedAssignment.assigned_to == user.id,
                    CuratedAssignment.work_date == today,
                    CuratedAssignment.item_type == CuratableKind.TASK,
                    CuratedAssignment.item_id.in_(task_ids),
                )
            )
        else:
            project_tasks = select(Task.id).where(Task.project_id == project.id)
            await self.db.execute(
                delete(CuratedAssignment).where(
                    CuratedAssignment.assigned_to == user.id,
                    CuratedAssignment.work_date == today,
                    CuratedAssignment.item_type == CuratableKind.TASK,
                    CuratedAssignment.item_id.in_(project_tasks),
                )
            )

        if not task_ids:
            logger.info(
                "no_recommended_tasks",
                user_id=str(user.id),
                project_id=str(project.id),
            )
            return []

        claim_org = user.organization_id if is_org_member else None
        created: list[CuratedAssignment] = []
        for index, task_id in enumerate(task_ids, start=1):
            assignment = CuratedAssignment(
                item_type=CuratableKind.TASK,
                item_id=task_id,
                work_date=today,
                assigned_to=user.id,
                claim_organization_id=claim_org,
                initial_index=index,
                current_index=index,
                moved_count=0,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(assignment)
            except IntegrityError:
                logger.info(
                    "curated_task_already_claimed",
                    user_id=str(user.id),
                    task_id=str(task_id),
                )
                continue
            created.append(assignment)

        return created

    async def _project_task_ids(self, project_id: UUID, task_ids: list[UUID]) -> list[UUID]:
        """Keep ids that belong to the project, in the given order."""
        if not task_ids:
            return []
        result = await self.db.execute(
            select(Task.id).where(Task.project_id == project_id, Task.id.in_(task_ids))
        )
        valid = set(result.scalars().all())
        return [tid for tid in dict.fromkeys(task_ids) if tid in valid]

    async def today_for_user(self, user_id: UUID, work_date: date) -> Sequence[CuratedAssignment]:
        """A user's list for the day, in display order."""
        result = await self.db.execute(
            select(CuratedAssignment)
            .where(
                CuratedAssignment.assigned_to == user_id,
                CuratedAssignment.work_date == work_date,
            )
            .order_by(CuratedAssignment.current_index, CuratedAssignment.created_at)
        )
        return result.scalars().all()

    async def get_assignment(self, assignment_id: UUID) -> CuratedAssignment | None:
        result = await self.db.execute(
            select(CuratedAssignment).where(CuratedAssignment.id == assignment_id)
        )
        return result.scalar_one_or_none()

    async def move_assignment(self, assignment: CuratedAssignment, new_index: int) -> CuratedAssignment:
        assignment.update_index(new_index)
        await self.db.commit()
        logger.info(
            "curated_assignment_moved",
            assignment_id=str(assignment.id),
            current_index=new_index,
            moved_count=assignment.moved_count,
        )
        return assignment

    async def complete_assignment(self, assignment: CuratedAssignment) -> CuratedAssignment:
        assignment.complete()
        await self.db.commit()
        return assignment
