"""User model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskcurator.db.base import BaseModel

if TYPE_CHECKING:
    from taskcurator.models.organization import GroupMember, Organization
    from taskcurator.models.project import Project


class User(BaseModel):
    """A person who owns projects and receives a daily curated task list."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Tenant membership (at most one organization)
    organization_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Approval gate, cleared outside this service
    pending_approval: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    organization: Mapped["Organization | None"] = relationship(
        "Organization", back_populates="users", lazy="joined"
    )
    group_memberships: Mapped[list["GroupMember"]] = relationship(
        "GroupMember", back_populates="user", lazy="selectin"
    )
    projects: Mapped[list["Project"]] = relationship("Project", back_populates="owner")

    @property
    def is_organization_member(self) -> bool:
        """True when the user belongs to a non-default organization.

        Requires the organization relationship to be loaded (it is joined eagerly).
        """
        return self.organization is not None and not self.organization.is_default

    def __repr__(self) -> str:
        try:
            return f"<User {self.email}>"
        except Exception:
            return f"<User id={self.id}>"
