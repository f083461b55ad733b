"""Tests for learning plan scheduling."""
from datetime import date

from learnai.models import LearningPlanBreakdown, PlanDay
from learnai.plans import (
    DAY_MS, DEFAULT_PLAN_DAYS, build_learning_plan, current_plan_day, find_task,
    refresh_status, reschedule_date, todays_tasks,
)


def breakdown(days=3):
    return LearningPlanBreakdown(
        title="Kubernetes in 3 days",
        duration=days,
        days=[PlanDay(day=d, title=f"K8s day {d}", objective=f"Goal {d}") for d in range(1, days + 1)],
    )


def test_build_learning_plan_links_tasks_and_courses():
    plan, courses = build_learning_plan("Kubernetes", breakdown(), start=date(2024, 1, 1))
    assert plan.title == "Kubernetes in 3 days"
    assert plan.duration == 3
    assert plan.status == "active"
    assert [c.id for c in courses] == [t.course_id for t in plan.daily_tasks]
    first = courses[0]
    assert first.id == f"course-{plan.id}-day-1"
    assert first.title == "K8s day 1"
    assert first.description == "Goal 1"
    assert first.category == "Learning Plan"
    assert first.learning_plan_id == plan.id
    assert plan.daily_tasks[0].id == f"task-{first.id}"


def test_task_dates_are_consecutive_days():
    plan, _ = build_learning_plan("Kubernetes", breakdown(), start=date(2024, 1, 1))
    dates = [t.date for t in plan.daily_tasks]
    assert dates[1] - dates[0] == DAY_MS
    assert date.fromtimestamp(dates[0] / 1000) == date(2024, 1, 1)


def test_missing_days_get_placeholder_titles():
    partial = LearningPlanBreakdown(title="", duration=0, days=[PlanDay(day=1, title="Intro", objective="")])
    plan, courses = build_learning_plan("Go", partial)
    assert plan.duration == DEFAULT_PLAN_DAYS
    assert plan.title == "Learn Go"
    assert courses[0].description == "Day 1 of your Go learning journey"
    assert courses[1].title == "Go - Day 2"


def test_refresh_status():
    plan, _ = build_learning_plan("Go", breakdown(2))
    for task in plan.daily_tasks:
        task.is_completed = True
    refresh_status(plan)
    assert plan.status == "completed"
    plan.daily_tasks[0].is_completed = False
    refresh_status(plan)
    assert plan.status == "active"


def test_archived_plan_stays_archived():
    plan, _ = build_learning_plan("Go", breakdown(1))
    plan.status = "archived"
    plan.daily_tasks[0].is_completed = True
    refresh_status(plan)
    assert plan.status == "archived"


def test_current_plan_day_is_clamped():
    plan, _ = build_learning_plan("Go", breakdown(3), start=date(2024, 1, 1))
    assert current_plan_day(plan, date(2023, 12, 25)) == 1
    assert current_plan_day(plan, date(2024, 1, 2)) == 2
    assert current_plan_day(plan, date(2024, 2, 1)) == 3


def test_todays_tasks_and_reschedule():
    plan, _ = build_learning_plan("Go", breakdown(3), start=date(2024, 1, 1))
    task = find_task(plan, plan.daily_tasks[2].id)
    assert todays_tasks(plan, date(2024, 1, 3)) == [task]
    task.date = reschedule_date(date(2024, 1, 1))
    assert len(todays_tasks(plan, date(2024, 1, 1))) == 2
    assert find_task(plan, "missing") is None
