"""Ordering of tasks within a sibling group.

Within a sibling group (same ``project_id`` and ``parent_id``) ``sort_order``
is a dense 1..N permutation. ``TaskOrderingService.move_to`` is the only
writer of ``sort_order`` and of the ordering audit columns.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from taskcurator.models.project import PRIORITY_LEVELS, Task
from taskcurator.services.exceptions import InvalidPositionError, TaskNotFoundError

logger = structlog.get_logger()

MOVING_TO_HIGHER_PRIORITY = "moving_to_higher_priority"
MOVING_TO_LOWER_PRIORITY = "moving_to_lower_priority"

_PRIORITY_BY_LEVEL = {level: name for name, level in PRIORITY_LEVELS.items()}


@dataclass
class MoveResult:
    """Outcome of a ``move_to`` call, serialised as-is by the API."""

    success: bool
    message: str
    requires_confirmation: bool = False
    confirmation_data: Optional[dict[str, Any]] = None
    reorder_data: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _sibling_filter(project_id: UUID, parent_id: Optional[UUID]):
    clauses = [Task.project_id == project_id]
    if parent_id is None:
        clauses.append(Task.parent_id.is_(None))
    else:
        clauses.append(Task.parent_id == parent_id)
    return clauses


def neighbors_at(others: list[Task], new_position: int) -> list[Task]:
    """Tasks that will sit directly above and below a task placed at ``new_position``.

    ``others`` is the sibling group in order without the moving task.
    """
    neighbors = []
    if new_position - 2 >= 0 and new_position - 2 < len(others):
        neighbors.append(others[new_position - 2])
    if new_position - 1 < len(others):
        neighbors.append(others[new_position - 1])
    return neighbors


def initialize_order_tracking(task: Task) -> None:
    """Seed the audit columns of a newly placed task from its ``sort_order``."""
    task.initial_order_index = task.sort_order
    task.current_order_index = task.sort_order
    task.move_count = 0


class TaskOrderingService:
    """Moves tasks within their sibling group under a row lock."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _lock_siblings(self, project_id: UUID, parent_id: Optional[UUID]) -> list[Task]:
        # Row locks serialize concurrent moves on the same group
        result = await self.db.execute(
            select(Task)
            .where(*_sibling_filter(project_id, parent_id))
            .order_by(Task.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        siblings = list(result.scalars().all())
        siblings.sort(key=lambda t: (t.sort_order, str(t.id)))
        return siblings

    async def next_sort_order(self, project_id: UUID, parent_id: Optional[UUID]) -> int:
        """Position for a task appended to the end of its group."""
        result = await self.db.execute(
            select(Task.sort_order).where(*_sibling_filter(project_id, parent_id))
        )
        orders = result.scalars().all()
        return (max(orders) if orders else 0) + 1

    async def normalize_sibling_order(
        self, project_id: UUID, parent_id: Optional[UUID], commit: bool = True
    ) -> int:
        """Rewrite a group to 1..N keeping relative order. Returns rows changed."""
        siblings = await self._lock_siblings(project_id, parent_id)
        changed = self._renumber(siblings)
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        if changed:
            logger.info(
                "sibling_order_normalized",
                project_id=str(project_id),
                parent_id=str(parent_id) if parent_id else None,
                changed=changed,
            )
        return changed

    @staticmethod
    def _renumber(siblings: list[Task]) -> int:
        changed = 0
        for position, sibling in enumerate(siblings, start=1):
            if sibling.sort_order != position:
                sibling.sort_order = position
                changed += 1
        return changed

    async def move_to(
        self,
        task_id: UUID,
        new_position: int,
        confirmed: bool = False,
    ) -> MoveResult:
        """Move a task to ``new_position`` (1-based) within its sibling group.

        Without ``confirmed`` a move next to tasks of a different priority
        returns a confirmation request and changes nothing. With it, the
        task adopts the highest (moving up in priority) or lowest (moving
        down) neighbouring priority.

        Raises:
            TaskNotFoundError: If the task does not exist
            InvalidPositionError: If ``new_position`` is outside 1..N
        """
        head = await self.db.execute(
            select(Task.project_id, Task.parent_id).where(Task.id == task_id)
        )
        row = head.first()
        if row is None:
            raise TaskNotFoundError(task_id)

        try:
            siblings = await self._lock_siblings(row.project_id, row.parent_id)
            task = next((t for t in siblings if t.id == task_id), None)
            if task is None:
                raise TaskNotFoundError(task_id)

            if new_position < 1 or new_position > len(siblings):
                raise InvalidPositionError(new_position, len(siblings))

            # Legacy groups may start at 0 or contain gaps
            if self._renumber(siblings):
                await self.db.flush()

            old_position = task.sort_order

            if new_position == old_position:
                await self.db.commit()
                return MoveResult(
                    success=True,
                    message="Task is already at this position.",
                    reorder_data=self._reorder_data(task, old_position, old_position, None),
                )

            others = [t for t in siblings if t.id != task.id]
            neighbors = neighbors_at(others, new_position)
            conflict, target_priority = self._priority_conflict(task, neighbors)

            if conflict and not confirmed:
                await self.db.commit()
                prompt = self._confirmation_message(task, conflict, target_priority)
                return MoveResult(
                    success=False,
                    requires_confirmation=True,
                    message=prompt,
                    confirmation_data={
                        "type": conflict,
                        "message": prompt,
                        "task_priority": task.priority,
                        "neighbor_priorities": [n.priority for n in neighbors],
                        "new_priority": target_priority,
                    },
                )

            old_priority = task.priority
            await self._shift_siblings(task, others, old_position, new_position)

            task.sort_order = new_position
            if target_priority is not None:
                task.priority = target_priority
            await self.db.flush()

            await self._record_move(task, old_position, new_position)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(task)
        priority_change = (
            (old_priority, task.priority) if task.priority != old_priority else None
        )

        if task.sort_order != new_position:
            logger.error(
                "task_reorder_verification_failed",
                task_id=str(task.id),
                expected=new_position,
                actual=task.sort_order,
            )
            return MoveResult(
                success=False,
                message="Task reorder could not be verified.",
                reorder_data=self._reorder_data(task, old_position, task.sort_order, priority_change),
            )

        message = "Task reordered successfully."
        if priority_change:
            message += f" Priority changed from {priority_change[0]} to {priority_change[1]}."

        logger.info(
            "task_reordered",
            task_id=str(task.id),
            old_position=old_position,
            new_position=new_position,
            priority_changed=priority_change is not None,
        )
        return MoveResult(
            success=True,
            message=message,
            reorder_data=self._reorder_data(task, old_position, new_position, priority_change),
        )

    @staticmethod
    def _priority_conflict(task: Task, neighbors: list[Task]) -> tuple[Optional[str], Optional[str]]:
        if not neighbors:
            return None, None

        own = task.priority_level
        levels = [n.priority_level for n in neighbors]
        if max(levels) > own:
            return MOVING_TO_HIGHER_PRIORITY, _PRIORITY_BY_LEVEL[max(levels)]
        if min(levels) < own:
            return MOVING_TO_LOWER_PRIORITY, _PRIORITY_BY_LEVEL[min(levels)]
        return None, None

    @staticmethod
    def _confirmation_message(task: Task, conflict: str, target_priority: Optional[str]) -> str:
        direction = "higher" if conflict == MOVING_TO_HIGHER_PRIORITY else "lower"
        return (
            f"You are moving a {task.priority} priority task next to {direction} priority tasks. "
            f"Its priority will change to {target_priority}."
        )

    async def _shift_siblings(
        self, task: Task, others: list[Task], old_position: int, new_position: int
    ) -> None:
        scope = _sibling_filter(task.project_id, task.parent_id)
        if new_position < old_position:
            low, high, delta = new_position, old_position - 1, 1
            stmt = (
                update(Task)
                .where(
                    *scope,
                    Task.id != task.id,
                    Task.sort_order >= new_position,
                    Task.sort_order <= old_position - 1,
                )
                .values(sort_order=Task.sort_order + 1)
            )
        else:
            low, high, delta = old_position + 1, new_position, -1
            stmt = (
                update(Task)
                .where(
                    *scope,
                    Task.id != task.id,
                    Task.sort_order >= old_position + 1,
                    Task.sort_order <= new_position,
                )
                .values(sort_order=Task.sort_order - 1)
            )
        await self.db.execute(stmt.execution_options(synchronize_session=False))

        # Mirror the bulk update on loaded siblings without marking them dirty
        for sibling in others:
            if low <= sibling.sort_order <= high:
                set_committed_value(sibling, "sort_order", sibling.sort_order + delta)

    async def _record_move(self, task: Task, old_position: int, new_position: int) -> None:
        """Update the audit columns; failures never undo the move itself."""
        # A failed savepoint expires the task, so nothing lazy may be read after it
        task_id = str(task.id)
        try:
            async with self.db.begin_nested():
                if task.initial_order_index is None:
                    task.initial_order_index = old_position
                task.current_order_index = new_position
                task.move_count = (task.move_count or 0) + 1
                task.last_moved_at = datetime.now(timezone.utc)
        except Exception as e:
            logger.warning(
                "task_order_tracking_failed",
                task_id=task_id,
                error=str(e),
            )

    @staticmethod
    def _reorder_data(
        task: Task,
        old_position: int,
        new_position: int,
        priority_change: Optional[tuple[str, str]],
    ) -> dict[str, Any]:
        return {
            "task_id": str(task.id),
            "old_position": old_position,
            "new_position": new_position,
            "move_count": task.move_count,
            "priority_changed": priority_change is not None,
            "old_priority": priority_change[0] if priority_change else None,
            "new_priority": priority_change[1] if priority_change else None,
        }
