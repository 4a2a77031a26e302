"""Tests for the curation engine: AI path, response parsing and fallback scoring."""

import json
from datetime import date, timedelta

import pytest

from taskcurator.ai.exceptions import AIResponseParseError
from taskcurator.ai.service import CurationAIConfig
from taskcurator.services.curation import (
    FALLBACK_FOCUS_AREAS,
    FALLBACK_SUMMARY,
    GENERIC_SUGGESTION,
    CurationEngine,
    parse_ai_content,
    strip_code_fences,
)
from taskcurator.testing.fakes import FailingProvider, SlowProvider, StaticResponseProvider

TODAY = date(2026, 3, 10)


def _task(task_id, *, due=None, status="pending", points=None, title=None):
    return {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "description": None,
        "status": status,
        "due_date": due.isoformat() if due else None,
        "size": None,
        "story_points": points,
        "is_parent": False,
        "parent_title": None,
        "project_title": "Roadmap",
    }


def _context(tasks, average_points=0, is_org=False):
    return {
        "project": {
            "title": "Roadmap",
            "description": "Quarterly roadmap",
            "type": "finite",
            "due_date": None,
            "next_iteration_due_date": None,
        },
        "user": {"name": "Ada", "timezone": "UTC"},
        "user_task_history": {
            "total_tasks_completed": 4,
            "total_story_points": 12,
            "average_completion_time_hours": 6,
            "average_story_points": average_points,
            "task_types": {},
            "top_task_types": [],
            "completion_times": [],
            "story_points": [],
        },
        "current_date": TODAY.isoformat(),
        "is_organization_user": is_org,
        "tasks": tasks,
    }


def _config(provider, timeout=1.0):
    return CurationAIConfig(
        provider=provider,
        provider_name=provider.provider_name,
        model="fake-model",
        timeout=timeout,
    )


class TestFallbackScoring:
    def setup_method(self):
        self.engine = CurationEngine(due_soon_days=2)

    def test_overdue_task_is_a_recommended_risk(self):
        result = self.engine.fallback(_context([_task("a", due=TODAY - timedelta(days=1), points=3)]))

        assert result.recommended_tasks == ["a"]
        assert [(s.type, s.task_id) for s in result.suggestions] == [("risk", "a")]

    @pytest.mark.parametrize("days", [0, 1, 2])
    def test_due_within_window_is_a_recommended_priority(self, days):
        result = self.engine.fallback(_context([_task("a", due=TODAY + timedelta(days=days), points=3)]))

        assert result.recommended_tasks == ["a"]
        assert result.suggestions[0].type == "priority"
        assert result.suggestions[0].message == "This task is due soon and should be prioritized."

    def test_due_after_window_scores_nothing(self):
        result = self.engine.fallback(_context([_task("a", due=TODAY + timedelta(days=3), points=3)]))

        assert result.recommended_tasks == []
        assert [s.message for s in result.suggestions] == [GENERIC_SUGGESTION]
        assert result.suggestions[0].task_id is None

    def test_in_progress_task_is_recommended(self):
        result = self.engine.fallback(_context([_task("a", status="in_progress", points=5)]))

        assert result.recommended_tasks == ["a"]
        assert result.suggestions[0].message == "Continue working on this in-progress task."

    def test_points_near_user_average_reach_the_threshold(self):
        context = _context(
            [_task("near", points=4), _task("far", points=8)],
            average_points=3,
        )

        result = self.engine.fallback(context)

        assert result.recommended_tasks == ["near"]

    def test_unsized_task_gets_an_optimization_hint_only(self):
        result = self.engine.fallback(_context([_task("a")]))

        assert result.recommended_tasks == []
        assert [(s.type, s.task_id) for s in result.suggestions] == [("optimization", "a")]

    def test_scores_add_up_across_rules(self):
        task = _task("a", due=TODAY - timedelta(days=5), status="in_progress")

        result = self.engine.fallback(_context([task]))

        assert [s.type for s in result.suggestions] == ["risk", "priority", "optimization"]
        assert result.recommended_tasks == ["a"]

    def test_summary_and_focus_areas_are_fixed(self):
        result = self.engine.fallback(_context([]))

        assert result.summary == FALLBACK_SUMMARY
        assert result.focus_areas == FALLBACK_FOCUS_AREAS
        assert [s.message for s in result.suggestions] == [GENERIC_SUGGESTION]

    def test_same_input_gives_same_recommendations(self):
        tasks = [
            _task("a", due=TODAY, points=2),
            _task("b", status="in_progress", points=5),
            _task("c", points=3),
            _task("d", due=TODAY - timedelta(days=2)),
        ]

        first = self.engine.fallback(_context(tasks, average_points=3))
        second = self.engine.fallback(_context(tasks, average_points=3))

        assert first.model_dump() == second.model_dump()
        assert first.recommended_tasks == ["a", "b", "c", "d"]


class TestParsing:
    def test_code_fences_are_stripped(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_tasks_key_is_accepted_for_suggestions(self):
        result = parse_ai_content(json.dumps({
            "tasks": [{"type": "priority", "task_id": 7, "message": "Do it"}],
            "recommended_tasks": ["7"],
        }))

        assert result.suggestions[0].task_id == "7"
        assert result.summary == ""
        assert result.focus_areas == []

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            "[1, 2]",
            '{"summary": "hi"}',
            '{"suggestions": [{"type": "celebration"}]}',
        ],
    )
    def test_unusable_content_is_rejected(self, content):
        with pytest.raises(AIResponseParseError):
            parse_ai_content(content)

    def test_ids_to_assign_merge_recommended_and_priority_risk(self):
        result = parse_ai_content(json.dumps({
            "suggestions": [
                {"type": "risk", "task_id": "b", "message": "late"},
                {"type": "optimization", "task_id": "c", "message": "split"},
                {"type": "priority", "task_id": "a", "message": "now"},
            ],
            "recommended_tasks": ["a"],
        }))

        assert result.task_ids_to_assign() == ["a", "b"]


class TestAICuration:
    async def test_successful_answer_is_used(self):
        provider = StaticResponseProvider(json.dumps({
            "suggestions": [{"type": "priority", "task_id": "a", "message": "Start here"}],
            "summary": "Focus on a",
            "focus_areas": ["delivery"],
            "recommended_tasks": ["a"],
        }))
        context = _context([_task("a", title="Write the release notes")])

        outcome = await CurationEngine().curate(context, _config(provider))

        assert outcome.ai_generated is True
        assert outcome.ai_provider == "fake"
        assert outcome.ai_model == "fake-model"
        assert outcome.result.summary == "Focus on a"
        assert outcome.result.recommended_tasks == ["a"]
        assert "Write the release notes" in outcome.prompt

        system, user = provider.calls[0]
        assert system.role == "system"
        assert user.role == "user"
        assert user.content == outcome.prompt

    async def test_fenced_answer_is_parsed(self):
        provider = StaticResponseProvider(
            '```json\n{"tasks": [{"type": "risk", "task_id": "a", "message": "late"}]}\n```'
        )

        outcome = await CurationEngine().curate(_context([_task("a")]), _config(provider))

        assert outcome.ai_generated is True
        assert outcome.result.suggestions[0].type == "risk"

    async def test_unknown_task_ids_are_dropped(self):
        provider = StaticResponseProvider(json.dumps({
            "suggestions": [{"type": "priority", "task_id": "ghost", "message": "?"}],
            "recommended_tasks": ["a", "ghost"],
        }))

        outcome = await CurationEngine().curate(_context([_task("a")]), _config(provider))

        assert outcome.result.recommended_tasks == ["a"]
        assert outcome.result.suggestions[0].task_id is None

    async def test_empty_suggestions_get_the_generic_hint(self):
        provider = StaticResponseProvider('{"suggestions": [], "recommended_tasks": []}')

        outcome = await CurationEngine().curate(_context([_task("a")]), _config(provider))

        assert outcome.ai_generated is True
        assert [s.message for s in outcome.result.suggestions] == [GENERIC_SUGGESTION]

    async def test_organization_members_are_told_to_skip_assigned_tasks(self):
        provider = StaticResponseProvider('{"suggestions": []}')

        outcome = await CurationEngine().curate(_context([_task("a")], is_org=True), _config(provider))

        assert "only suggest unassigned tasks" in outcome.prompt

    async def test_provider_error_falls_back(self):
        provider = FailingProvider()
        context = _context([_task("a", due=TODAY - timedelta(days=1))])

        outcome = await CurationEngine().curate(context, _config(provider))

        assert outcome.ai_generated is False
        assert outcome.ai_provider == "failing"
        assert outcome.prompt is not None
        assert outcome.result.recommended_tasks == ["a"]
        assert outcome.result.suggestions

    async def test_timeout_falls_back(self):
        provider = SlowProvider(delay=5.0)

        outcome = await CurationEngine().curate(_context([_task("a")]), _config(provider, timeout=0.05))

        assert outcome.ai_generated is False
        assert outcome.result.summary == FALLBACK_SUMMARY
        assert len(provider.calls) == 1

    async def test_unparsable_answer_falls_back(self):
        provider = StaticResponseProvider("Sure! Here are my thoughts...")

        outcome = await CurationEngine().curate(_context([_task("a")]), _config(provider))

        assert outcome.ai_generated is False
        assert outcome.result.focus_areas == FALLBACK_FOCUS_AREAS

    async def test_unknown_suggestion_type_falls_back(self):
        provider = StaticResponseProvider(json.dumps({
            "suggestions": [{"type": "celebration", "task_id": "a", "message": "Nice work"}],
            "recommended_tasks": ["a"],
        }))
        context = _context([_task("a", status="in_progress")])

        outcome = await CurationEngine().curate(context, _config(provider))

        assert outcome.ai_generated is False
        assert {s.type for s in outcome.result.suggestions} <= {"priority", "risk", "optimization"}

    async def test_disabled_config_skips_the_provider(self):
        outcome = await CurationEngine().curate(
            _context([_task("a", status="in_progress")]), CurationAIConfig.disabled()
        )

        assert outcome.ai_generated is False
        assert outcome.prompt is None
        assert outcome.ai_provider is None
        assert outcome.result.recommended_tasks == ["a"]
