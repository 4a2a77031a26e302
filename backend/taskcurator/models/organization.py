"""Organization and group models."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskcurator.db.base import BaseModel

if TYPE_CHECKING:
    from taskcurator.models.project import Project
    from taskcurator.models.user import User


class Organization(BaseModel):
    """Tenant boundary.

    Exactly one organization is flagged ``is_default``; it stands for "no
    organization" and users in it are curated as individuals.
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )

    # Relationships
    users: Mapped[list["User"]] = relationship("User", back_populates="organization")
    groups: Mapped[list["Group"]] = relationship(
        "Group", back_populates="organization", lazy="selectin"
    )

    def __repr__(self) -> str:
        try:
            return f"<Organization {self.name}>"
        except Exception:
            return f"<Organization id={self.id}>"


class Group(BaseModel):
    """Group of users within an organization that can share projects."""

    __tablename__ = "groups"

    organization_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="groups"
    )
    members: Mapped[list["GroupMember"]] = relationship(
        "GroupMember", back_populates="group", lazy="selectin"
    )
    projects: Mapped[list["Project"]] = relationship("Project", back_populates="group")

    def __repr__(self) -> str:
        try:
            return f"<Group {self.name}>"
        except Exception:
            return f"<Group id={self.id}>"


class GroupMember(BaseModel):
    """Group membership."""

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member"),
    )

    group_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    group: Mapped["Group"] = relationship("Group", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="group_memberships")

    def __repr__(self) -> str:
        return f"<GroupMember group={self.group_id} user={self.user_id}>"
