"""Day-by-day learning plans: building the schedule and tracking where the learner is."""
from datetime import date, datetime, time
from typing import Optional

from learnai.models import Course, DailyTask, LearningPlan, LearningPlanBreakdown, new_id

DEFAULT_PLAN_DAYS = 7
DAY_MS = 24 * 60 * 60 * 1000


def _midnight_ms(day: date) -> int:
    return int(datetime.combine(day, time.min).timestamp() * 1000)


def _ms_to_date(ms: int) -> date:
    return datetime.fromtimestamp(ms / 1000).date()


def build_learning_plan(
    topic: str,
    breakdown: LearningPlanBreakdown,
    folder_id: str = "",
    start: Optional[date] = None,
    duration: Optional[int] = None,
) -> tuple[LearningPlan, list[Course]]:
    """Create the plan and one placeholder course per day, each linked by a daily task."""
    start_ms = _midnight_ms(start or date.today())
    plan_id = new_id("plan")
    days = breakdown.duration or duration or DEFAULT_PLAN_DAYS
    titles = {d.day: d for d in breakdown.days}

    courses, tasks = [], []
    for day in range(1, days + 1):
        planned = titles.get(day)
        course = Course(
            id=f"course-{plan_id}-day-{day}",
            title=planned.title if planned else f"{topic} - Day {day}",
            description=(planned.objective if planned and planned.objective
                         else f"Day {day} of your {topic} learning journey"),
            category="Learning Plan",
            learning_plan_id=plan_id,
            day_in_plan=day,
        )
        courses.append(course)
        tasks.append(DailyTask(
            id=f"task-{course.id}",
            day=day,
            date=start_ms + (day - 1) * DAY_MS,
            course_id=course.id,
        ))

    plan = LearningPlan(
        id=plan_id,
        title=breakdown.title or f"Learn {topic}",
        start_date=start_ms,
        duration=days,
        daily_tasks=tasks,
        folder_id=folder_id,
    )
    return plan, courses


def find_task(plan: LearningPlan, task_id: str) -> Optional[DailyTask]:
    return next((t for t in plan.daily_tasks if t.id == task_id), None)


def refresh_status(plan: LearningPlan) -> None:
    """An active plan whose tasks are all done is completed, and reopens if one is unchecked."""
    if plan.status == "archived":
        return
    all_done = bool(plan.daily_tasks) and all(t.is_completed for t in plan.daily_tasks)
    plan.status = "completed" if all_done else "active"


def current_plan_day(plan: LearningPlan, today: Optional[date] = None) -> int:
    """1-based day of the plan for today, clamped to the plan's length."""
    elapsed = ((today or date.today()) - _ms_to_date(plan.start_date)).days + 1
    return max(1, min(elapsed, plan.duration or 1))


def todays_tasks(plan: LearningPlan, today: Optional[date] = None) -> list[DailyTask]:
    today = today or date.today()
    return [t for t in plan.daily_tasks if _ms_to_date(t.date) == today]


def reschedule_date(day: date) -> int:
    return _midnight_ms(day)
