"""Models owned by the daily curation pipeline."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskcurator.db.base import BaseModel, JSONType

if TYPE_CHECKING:
    from taskcurator.models.project import Project
    from taskcurator.models.user import User


class CuratableKind(str, Enum):
    """Kinds of work items that can be placed on a daily list."""

    TASK = "task"


@dataclass(frozen=True)
class CuratableRef:
    """Typed reference to a curatable work item."""

    kind: CuratableKind
    id: UUID


SIZE_BUCKETS = ("xs", "s", "m", "l", "xl")


class CuratedAssignment(BaseModel):
    """One entry of a user's work list for a given day."""

    __tablename__ = "curated_assignments"
    __table_args__ = (
        UniqueConstraint(
            "assigned_to", "work_date", "item_type", "item_id",
            name="uq_curated_assignment_user_item",
        ),
        # NULL claim organization (individual users) never conflicts
        UniqueConstraint(
            "claim_organization_id", "work_date", "item_type", "item_id",
            name="uq_curated_assignment_org_claim",
        ),
        Index("ix_curated_assignments_user_date", "assigned_to", "work_date"),
        Index("ix_curated_assignments_item", "item_type", "item_id"),
    )

    item_type: Mapped[CuratableKind] = mapped_column(
        SAEnum(
            CuratableKind,
            native_enum=False,
            length=20,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )
    item_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    assigned_to: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Set for members of a non-default organization; makes the claim exclusive
    claim_organization_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
    )

    initial_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    moved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    assignee: Mapped["User"] = relationship("User")

    @property
    def ref(self) -> CuratableRef:
        return CuratableRef(kind=self.item_type, id=self.item_id)

    def update_index(self, new_index: int) -> None:
        """Move the entry within the day's list."""
        self.current_index = new_index
        self.moved_count = (self.moved_count or 0) + 1

    def reset_index(self) -> None:
        self.current_index = self.initial_index

    def complete(self, when: datetime | None = None) -> None:
        self.completed_at = when or datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<CuratedAssignment {self.item_type.value}:{self.item_id} "
            f"user={self.assigned_to} date={self.work_date}>"
        )


class DailyCurationRecord(BaseModel):
    """Curation output for one (user, project, day)."""

    __tablename__ = "daily_curation_records"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "project_id", "curation_date",
            name="uq_daily_curation_user_project_date",
        ),
        Index("ix_daily_curation_records_user_date", "user_id", "curation_date"),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    curation_date: Mapped[date] = mapped_column(Date, nullable=False)

    suggestions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    focus_areas: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    recommended_task_ids: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )

    # Provenance
    ai_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dismissed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship("User")
    project: Mapped["Project"] = relationship("Project")

    def suggestions_by_type(self, suggestion_type: str) -> list[dict[str, Any]]:
        return [s for s in self.suggestions or [] if s.get("type") == suggestion_type]

    @property
    def priority_suggestions(self) -> list[dict[str, Any]]:
        return self.suggestions_by_type("priority")

    @property
    def risk_suggestions(self) -> list[dict[str, Any]]:
        return self.suggestions_by_type("risk")

    @property
    def optimization_suggestions(self) -> list[dict[str, Any]]:
        return self.suggestions_by_type("optimization")

    @property
    def task_suggestions(self) -> list[dict[str, Any]]:
        """Suggestions that reference a specific task."""
        return [s for s in self.suggestions or [] if s.get("task_id") is not None]

    @property
    def general_suggestions(self) -> list[dict[str, Any]]:
        return [s for s in self.suggestions or [] if s.get("task_id") is None]

    @property
    def is_new(self) -> bool:
        return self.viewed_at is None

    @property
    def is_dismissed(self) -> bool:
        return self.dismissed_at is not None

    def mark_viewed(self) -> None:
        self.viewed_at = datetime.now(timezone.utc)

    def dismiss(self) -> None:
        self.dismissed_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<DailyCurationRecord user={self.user_id} project={self.project_id} "
            f"date={self.curation_date}>"
        )


class DailyWeightMetric(BaseModel):
    """Workload snapshot for one (user, day)."""

    __tablename__ = "daily_weight_metrics"
    __table_args__ = (
        UniqueConstraint("user_id", "metric_date", name="uq_daily_weight_metric_user_date"),
        Index("ix_daily_weight_metrics_metric_date", "metric_date"),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    metric_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_story_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tasks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    signed_tasks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unsigned_tasks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_points_per_task: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed_story_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_velocity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    project_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    size_breakdown: Mapped[dict[str, int]] = mapped_column(
        JSONType, nullable=False, default=lambda: {size: 0 for size in SIZE_BUCKETS}
    )

    user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<DailyWeightMetric user={self.user_id} date={self.metric_date}>"


class CurationPromptLog(BaseModel):
    """The exact prompt sent to an AI provider, kept until the user's next run."""

    __tablename__ = "curation_prompt_logs"
    __table_args__ = (
        Index("ix_curation_prompt_logs_user_created", "user_id", "created_at"),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)
    ai_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ai_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_organization_user: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    task_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CurationPromptLog user={self.user_id} project={self.project_id}>"
