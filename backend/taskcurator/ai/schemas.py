"""Pydantic schemas for AI curation payloads."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

SuggestionType = Literal["priority", "risk", "optimization"]


class CurationSuggestion(BaseModel):
    """A single curation hint, optionally about one task."""

    type: SuggestionType = "optimization"
    task_id: Optional[str] = None
    message: str = ""

    @field_validator("task_id", mode="before")
    @classmethod
    def _coerce_task_id(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class CurationResult(BaseModel):
    """Structured output of one project's curation.

    Every list is always present (possibly empty) so consumers never branch
    on a missing key.
    """

    suggestions: list[CurationSuggestion] = Field(default_factory=list)
    summary: str = ""
    focus_areas: list[str] = Field(default_factory=list)
    recommended_tasks: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_tasks_alias(cls, data: Any) -> Any:
        # Some models answer with "tasks" instead of "suggestions"
        if isinstance(data, dict) and "suggestions" not in data and "tasks" in data:
            data = {**data, "suggestions": data["tasks"]}
        return data

    @field_validator("recommended_tasks", mode="before")
    @classmethod
    def _coerce_recommended(cls, value: Any) -> list[str]:
        if value is None:
            return []
        return [str(item) for item in value if item is not None and item != ""]

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("focus_areas", mode="before")
    @classmethod
    def _coerce_focus_areas(cls, value: Any) -> list[str]:
        if value is None:
            return []
        return [str(item) for item in value]

    def task_ids_to_assign(self) -> list[str]:
        """Recommended ids merged with priority/risk suggestion ids, deduplicated in order."""
        ordered: list[str] = []
        seen: set[str] = set()
        candidates = list(self.recommended_tasks) + [
            s.task_id
            for s in self.suggestions
            if s.type in ("priority", "risk") and s.task_id is not None
        ]
        for task_id in candidates:
            if task_id not in seen:
                seen.add(task_id)
                ordered.append(task_id)
        return ordered
