"""Project, iteration and task models."""

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskcurator.db.base import BaseModel

if TYPE_CHECKING:
    from taskcurator.models.organization import Group
    from taskcurator.models.user import User


# Numeric level used when comparing neighbour priorities during reordering
PRIORITY_LEVELS: dict[str, int] = {"low": 1, "medium": 2, "high": 3}

TASK_STATUSES = ("pending", "in_progress", "completed")
TASK_SIZES = ("xs", "s", "m", "l", "xl")
PROJECT_TYPES = ("finite", "iterative")


class Project(BaseModel):
    """A project owned by a user, optionally shared through a group."""

    __tablename__ = "projects"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="active"
    )  # active, completed, archived
    project_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="iterative"
    )  # finite, iterative
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Ownership
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Per-project AI override; NULL provider means no AI for this project
    ai_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ai_model: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="projects")
    group: Mapped["Group | None"] = relationship("Group", back_populates="projects")
    tasks: Mapped[list["Task"]] = relationship(
        "Task", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    iterations: Mapped[list["Iteration"]] = relationship(
        "Iteration", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        try:
            return f"<Project {self.title}>"
        except Exception:
            return f"<Project id={self.id}>"


class Iteration(BaseModel):
    """Time-boxed iteration of an iterative project."""

    __tablename__ = "iterations"

    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="planned"
    )  # planned, active, completed, cancelled

    project: Mapped["Project"] = relationship("Project", back_populates="iterations")

    def __repr__(self) -> str:
        return f"<Iteration {self.name} project={self.project_id}>"


class Task(BaseModel):
    """Task within a project.

    Tasks form a tree through ``parent_id``. Within a sibling group (same
    ``project_id`` and ``parent_id``) ``sort_order`` is a dense 1..N sequence
    maintained by ``TaskOrderingService``.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_sibling_order", "project_id", "parent_id", "sort_order"),
    )

    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, in_progress, completed
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default="medium"
    )  # low, medium, high
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Weight: size for top-level tasks, story points for leaves
    size: Mapped[str | None] = mapped_column(String(5), nullable=True)  # xs, s, m, l, xl
    initial_story_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_story_points: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Materialized hierarchy, refreshed by services.task_hierarchy.refresh_hierarchy
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    path: Mapped[str | None] = mapped_column(String(1000), nullable=True, index=True)

    # Ordering and ordering audit
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    initial_order_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_order_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    move_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_moved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="tasks")
    parent: Mapped["Task | None"] = relationship(
        "Task", remote_side="Task.id", back_populates="children"
    )
    children: Mapped[list["Task"]] = relationship(
        "Task",
        back_populates="parent",
        lazy="selectin",
        order_by="Task.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def priority_level(self) -> int:
        """Numeric priority (high=3, medium=2, low=1)."""
        return PRIORITY_LEVELS.get(self.priority, PRIORITY_LEVELS["medium"])

    @property
    def is_leaf(self) -> bool:
        """True when the task has no children.

        Note: requires the children relationship to be loaded.
        """
        return len(self.children) == 0

    def __repr__(self) -> str:
        try:
            return f"<Task {self.title}>"
        except Exception:
            try:
                return f"<Task id={self.id}>"
            except Exception:
                return "<Task detached>"
