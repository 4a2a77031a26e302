"""Tests for the user history summary fed into curation prompts."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from taskcurator.services.history import HistoryAnalyzer, UserPerformanceStats, categorize_task_type
from taskcurator.testing.factories import (
    create_assignment,
    create_project,
    create_task,
    create_user,
)


class TestCategorize:
    def test_iterative_subtask_with_size_and_points(self):
        task = SimpleNamespace(parent_id="p", size="m", current_story_points=5)

        assert categorize_task_type(task, "iterative") == "iterative_project_subtask_m_medium"

    def test_finite_top_level_small(self):
        task = SimpleNamespace(parent_id=None, size=None, current_story_points=1)

        assert categorize_task_type(task, "finite") == "finite_project_toplevel_small"

    def test_unknown_project_type_without_points(self):
        task = SimpleNamespace(parent_id=None, size="xl", current_story_points=None)

        assert categorize_task_type(task, None) == "general_toplevel_xl"

    def test_large_estimate(self):
        task = SimpleNamespace(parent_id=None, size=None, current_story_points=13)

        assert categorize_task_type(task, "finite").endswith("_large")


async def test_no_history_gives_zero_stats(db):
    user = await create_user(db)

    stats = await HistoryAnalyzer(db).analyze(user)

    assert stats == UserPerformanceStats()
    assert stats.as_context()["average_story_points"] == 0


async def test_completed_curated_tasks_are_summarized(db):
    now = datetime.now(timezone.utc)
    user = await create_user(db)
    project = await create_project(db, user, project_type="iterative")
    quick = await create_task(db, project, status="completed", current_story_points=2, size="s")
    slow = await create_task(db, project, status="completed", current_story_points=6, size="l")
    unsized = await create_task(db, project, status="completed")
    await create_task(db, project, status="in_progress", current_story_points=3)

    await create_assignment(
        db, quick, user, now.date(),
        created_at=now - timedelta(hours=5), completed_at=now - timedelta(hours=2),
    )
    await create_assignment(
        db, slow, user, now.date() - timedelta(days=1), index=2,
        created_at=now - timedelta(hours=30), completed_at=now - timedelta(hours=1),
    )
    await create_assignment(db, unsized, user, now.date(), index=3)
    await db.commit()

    stats = await HistoryAnalyzer(db).analyze(user, now)

    assert stats.total_tasks_completed == 3
    assert stats.total_story_points == 8
    assert stats.average_story_points == 4
    assert sorted(stats.completion_times) == [3, 29]
    assert stats.average_completion_time_hours == 16
    assert stats.task_types == {
        "iterative_project_toplevel_s_small": 1,
        "iterative_project_toplevel_l_large": 1,
        "iterative_project_toplevel": 1,
    }
    assert sorted(stats.top_task_types) == sorted(stats.task_types)


async def test_other_users_completions_are_ignored(db):
    now = datetime.now(timezone.utc)
    user = await create_user(db)
    someone_else = await create_user(db)
    project = await create_project(db, someone_else)
    task = await create_task(db, project, status="completed", current_story_points=3)
    await create_assignment(db, task, someone_else, now.date(), completed_at=now)
    await db.commit()

    stats = await HistoryAnalyzer(db).analyze(user, now)

    assert stats.total_tasks_completed == 0


async def test_completions_outside_the_window_are_ignored(db):
    user = await create_user(db)
    project = await create_project(db, user)
    task = await create_task(db, project, status="completed", current_story_points=3)
    await create_assignment(db, task, user, datetime.now(timezone.utc).date())
    await db.commit()

    later = datetime.now(timezone.utc) + timedelta(days=45)
    stats = await HistoryAnalyzer(db, window_days=30).analyze(user, later)

    assert stats.total_tasks_completed == 0


async def test_top_task_types_are_the_five_most_common_labels(db):
    now = datetime.now(timezone.utc)
    user = await create_user(db)
    project = await create_project(db, user, project_type="finite")
    # Three xl tasks, then one task each of five other sizes and estimates
    shapes = [("xl", 1)] * 3 + [("xs", 1), ("s", 1), ("m", 3), ("l", 8), (None, 1)]
    for index, (size, points) in enumerate(shapes, start=1):
        task = await create_task(
            db, project, status="completed", size=size, current_story_points=points
        )
        await create_assignment(db, task, user, now.date(), index=index, completed_at=now)
    await db.commit()

    stats = await HistoryAnalyzer(db).analyze(user, now)

    assert len(stats.task_types) == 6
    assert stats.top_task_types[0] == "finite_project_toplevel_xl_small"
    assert len(stats.top_task_types) == 5
    assert all(label in stats.task_types for label in stats.top_task_types)
