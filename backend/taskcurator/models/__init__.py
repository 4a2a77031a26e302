"""SQLAlchemy models package."""

from taskcurator.models.organization import Group, GroupMember, Organization
from taskcurator.models.user import User
from taskcurator.models.project import (
    PRIORITY_LEVELS,
    Iteration,
    Project,
    Task,
)
from taskcurator.models.curation import (
    CuratableKind,
    CuratableRef,
    CuratedAssignment,
    CurationPromptLog,
    DailyCurationRecord,
    DailyWeightMetric,
)

__all__ = [
    "Organization",
    "Group",
    "GroupMember",
    "User",
    "Project",
    "Iteration",
    "Task",
    "PRIORITY_LEVELS",
    "CuratableKind",
    "CuratableRef",
    "CuratedAssignment",
    "CurationPromptLog",
    "DailyCurationRecord",
    "DailyWeightMetric",
]
