"""Daily curation of a single project for a single user.

The engine builds a context bundle from the visible tasks and the user's
history, asks the configured AI provider for suggestions, and falls back to
a deterministic scorer when there is no provider or its answer is unusable.
"""

import asyncio
import json
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskcurator.ai.exceptions import AIResponseParseError
from taskcurator.ai.providers.base import AIMessage
from taskcurator.ai.schemas import CurationResult, CurationSuggestion
from taskcurator.ai.service import CurationAIConfig
from taskcurator.ai.templates import CURATION_SYSTEM_PROMPT, render_curation_prompt
from taskcurator.models.project import Iteration, Project, Task
from taskcurator.models.user import User
from taskcurator.services.history import UserPerformanceStats

logger = structlog.get_logger()

CANDIDATE_STATUSES = ("pending", "in_progress")

# Fallback weights. Hand-tuned values kept for behavioural compatibility.
OVERDUE_SCORE = 100
DUE_SOON_SCORE = 80
IN_PROGRESS_SCORE = 60
PREFERENCE_MATCH_SCORE = 40
RECOMMENDATION_THRESHOLD = 40

FALLBACK_SUMMARY = (
    "Basic task analysis completed considering user's historical performance. "
    "Recommended focusing on tasks that match their completion patterns."
)
FALLBACK_FOCUS_AREAS = ["overdue_tasks", "in_progress_tasks", "user_preferred_tasks"]
GENERIC_SUGGESTION = (
    "Review your project tasks and consider setting priorities or due dates "
    "to better organize your work."
)

_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```")


@dataclass
class CurationOutcome:
    """Result of curating one project plus how it was produced."""

    result: CurationResult
    ai_generated: bool
    ai_provider: Optional[str] = None
    ai_model: Optional[str] = None
    prompt: Optional[str] = None


def leaf_candidates(tasks: list[Task]) -> list[Task]:
    """Open leaf tasks eligible for curation.

    ``tasks`` must have ``children`` loaded.
    """
    return [t for t in tasks if t.status in CANDIDATE_STATUSES and t.is_leaf]


async def next_iteration_due_date(
    db: AsyncSession, project: Project, now: Optional[datetime] = None
) -> Optional[date]:
    """End date of the earliest upcoming iteration of an iterative project."""
    if project.project_type != "iterative":
        return None

    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Iteration.end_date)
        .where(Iteration.project_id == project.id, Iteration.end_date > now.date())
        .order_by(Iteration.start_date.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences wrapped around a JSON answer."""
    if "```" not in content:
        return content.strip()
    content = _FENCE_OPEN.sub("", content)
    content = _FENCE_CLOSE.sub("", content)
    return content.strip()


def parse_ai_content(content: str) -> CurationResult:
    """Decode provider content into a ``CurationResult``.

    Raises:
        AIResponseParseError: If the content is not a usable JSON object
    """
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"invalid JSON: {e.msg}", content) from e

    if not isinstance(data, dict):
        raise AIResponseParseError("top-level value is not an object", content)
    if "suggestions" not in data and "tasks" not in data:
        raise AIResponseParseError("missing suggestions", content)

    try:
        return CurationResult.model_validate(data)
    except ValidationError as e:
        raise AIResponseParseError(f"unexpected shape: {e.error_count()} errors", content) from e


class CurationEngine:
    """Produces suggestions and a recommended task list for one project.

    AI configuration is passed per call; the engine holds only scoring
    parameters and never reads application settings.
    """

    def __init__(self, due_soon_days: int = 2):
        self.due_soon_days = due_soon_days

    def build_context(
        self,
        project: Project,
        tasks: list[Task],
        user: User,
        stats: UserPerformanceStats,
        today: date,
        next_iteration_due: Optional[date] = None,
    ) -> dict[str, Any]:
        return {
            "project": {
                "title": project.title,
                "description": project.description,
                "type": project.project_type,
                "due_date": project.due_date.isoformat() if project.due_date else None,
                "next_iteration_due_date": (
                    next_iteration_due.isoformat() if next_iteration_due else None
                ),
            },
            "user": {"name": user.name, "timezone": "UTC"},
            "user_task_history": stats.as_context(),
            "current_date": today.isoformat(),
            "is_organization_user": user.is_organization_member,
            "tasks": [
                {
                    "id": str(task.id),
                    "title": task.title,
                    "description": task.description,
                    "status": task.status,
                    "due_date": task.due_date.isoformat() if task.due_date else None,
                    "size": task.size,
                    "story_points": task.current_story_points,
                    "is_parent": not task.is_leaf,
                    "parent_title": task.parent.title if task.parent else None,
                    "project_title": project.title,
                }
                for task in tasks
            ],
        }

    async def curate(
        self,
        context: dict[str, Any],
        ai_config: CurationAIConfig,
        project_id: Any = None,
    ) -> CurationOutcome:
        """Curate one project, degrading to the fallback scorer on any AI failure."""
        log = logger.bind(project_id=str(project_id) if project_id else None)

        if not ai_config.enabled:
            log.info("curation_ai_not_configured")
            return CurationOutcome(result=self.fallback(context), ai_generated=False)

        prompt = render_curation_prompt(context)
        messages = [
            AIMessage(role="system", content=CURATION_SYSTEM_PROMPT),
            AIMessage(role="user", content=prompt),
        ]

        try:
            response = await asyncio.wait_for(
                ai_config.provider.complete(
                    messages,
                    model=ai_config.model,
                    temperature=ai_config.temperature,
                    max_tokens=ai_config.max_tokens,
                ),
                timeout=ai_config.timeout,
            )
            result = parse_ai_content(response.content)
        except AIResponseParseError as e:
            log.warning(
                "curation_ai_response_invalid",
                provider=ai_config.provider_name,
                error=e.reason,
                response=e.content[:500],
            )
            return self._fallback_outcome(context, ai_config, prompt)
        except Exception as e:
            log.error(
                "curation_ai_call_failed",
                provider=ai_config.provider_name,
                error=str(e) or type(e).__name__,
            )
            return self._fallback_outcome(context, ai_config, prompt)

        result = self._restrict_to_candidates(result, context, log)
        if not result.suggestions:
            result.suggestions.append(
                CurationSuggestion(type="optimization", message=GENERIC_SUGGESTION)
            )

        log.info(
            "curation_ai_succeeded",
            provider=ai_config.provider_name,
            suggestions=len(result.suggestions),
            recommended=len(result.recommended_tasks),
            latency_ms=response.latency_ms,
        )
        return CurationOutcome(
            result=result,
            ai_generated=True,
            ai_provider=ai_config.provider_name,
            ai_model=ai_config.model,
            prompt=prompt,
        )

    def _fallback_outcome(
        self, context: dict[str, Any], ai_config: CurationAIConfig, prompt: str
    ) -> CurationOutcome:
        return CurationOutcome(
            result=self.fallback(context),
            ai_generated=False,
            ai_provider=ai_config.provider_name,
            ai_model=ai_config.model,
            prompt=prompt,
        )

    @staticmethod
    def _restrict_to_candidates(result: CurationResult, context: dict[str, Any], log) -> CurationResult:
        known = {task["id"] for task in context["tasks"]}
        unknown = [tid for tid in result.recommended_tasks if tid not in known]
        if unknown:
            log.warning("curation_ai_unknown_task_ids", task_ids=unknown)
            result.recommended_tasks = [tid for tid in result.recommended_tasks if tid in known]
        for suggestion in result.suggestions:
            if suggestion.task_id is not None and suggestion.task_id not in known:
                suggestion.task_id = None
        return result

    def fallback(self, context: dict[str, Any]) -> CurationResult:
        """Deterministic heuristic scoring of the context's tasks.

        Scores are additive. Overdue and due-soon are mutually exclusive.
        """
        today = date.fromisoformat(context["current_date"])
        average_points = context["user_task_history"].get("average_story_points") or 0

        suggestions: list[CurationSuggestion] = []
        recommended: list[str] = []

        for task in context["tasks"]:
            score = 0
            task_id = task["id"]
            due = date.fromisoformat(task["due_date"]) if task["due_date"] else None

            if due is not None and due < today:
                score += OVERDUE_SCORE
                suggestions.append(CurationSuggestion(
                    type="risk",
                    task_id=task_id,
                    message="This task is overdue and needs immediate attention.",
                ))
            elif due is not None and (due - today).days <= self.due_soon_days:
                score += DUE_SOON_SCORE
                suggestions.append(CurationSuggestion(
                    type="priority",
                    task_id=task_id,
                    message="This task is due soon and should be prioritized.",
                ))

            if task["status"] == "in_progress":
                score += IN_PROGRESS_SCORE
                suggestions.append(CurationSuggestion(
                    type="priority",
                    task_id=task_id,
                    message="Continue working on this in-progress task.",
                ))

            points = task["story_points"]
            if points and average_points > 0 and abs(points - average_points) <= 1:
                score += PREFERENCE_MATCH_SCORE

            if not points:
                suggestions.append(CurationSuggestion(
                    type="optimization",
                    task_id=task_id,
                    message=(
                        "This task needs to be sized (assigned story points) "
                        "to better track progress."
                    ),
                ))

            if score >= RECOMMENDATION_THRESHOLD:
                recommended.append(task_id)

        if not suggestions:
            suggestions.append(CurationSuggestion(type="optimization", message=GENERIC_SUGGESTION))

        return CurationResult(
            suggestions=suggestions,
            summary=FALLBACK_SUMMARY,
            focus_areas=list(FALLBACK_FOCUS_AREAS),
            recommended_tasks=recommended,
        )
