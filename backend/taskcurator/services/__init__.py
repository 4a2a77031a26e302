"""Services package."""

from taskcurator.services.curated_assignments import CuratedAssignmentStore
from taskcurator.services.curation import CurationEngine, CurationOutcome
from taskcurator.services.history import HistoryAnalyzer, UserPerformanceStats
from taskcurator.services.task_hierarchy import refresh_hierarchy
from taskcurator.services.task_ordering import MoveResult, TaskOrderingService
from taskcurator.services.user_curation import CurationRunSummary, UserCurationJob
from taskcurator.services.visibility import VisibilityResolver, VisibleProject
from taskcurator.services.weight_metrics import WeightMetricsCalculator

__all__ = [
    "CuratedAssignmentStore",
    "CurationEngine",
    "CurationOutcome",
    "HistoryAnalyzer",
    "UserPerformanceStats",
    "refresh_hierarchy",
    "MoveResult",
    "TaskOrderingService",
    "CurationRunSummary",
    "UserCurationJob",
    "VisibilityResolver",
    "VisibleProject",
    "WeightMetricsCalculator",
]
