"""Gamification rules and derived profile statistics."""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from learnai.models import Course, LocalUser, Project, TestResult

XP_PER_LESSON = 100
DEDICATED_LEARNER_LEVEL = 5

ACHIEVEMENTS = {
    "curiousMind": ("Curious Mind", "Generate your first learning path."),
    "topicExplorer": ("Topic Explorer", "Have 5 or more learning paths in your library."),
    "firstSteps": ("First Steps", "Complete your first lesson."),
    "dedicatedLearner": ("Dedicated Learner", f"Reach level {DEDICATED_LEARNER_LEVEL}."),
    "projectStarter": ("Project Starter", "Generate your first guided project."),
    "quizMaster": ("Quiz Master", "Score 100% on a practice quiz."),
}


def required_xp(level: int) -> int:
    return level * 500


def apply_xp(xp: int, level: int, amount: int) -> tuple[int, int]:
    """Add XP and level up as many times as the total allows."""
    xp += amount
    while xp >= required_xp(level):
        xp -= required_xp(level)
        level += 1
    return xp, level


def calculate_streak(history: dict[str, bool], today: Optional[date] = None) -> int:
    """Consecutive completed days ending today, or ending yesterday if today isn't done yet."""
    day = today or date.today()
    if not history.get(day.isoformat()):
        day -= timedelta(days=1)
    streak = 0
    while history.get(day.isoformat()):
        streak += 1
        day -= timedelta(days=1)
    return streak


def course_unit_ids(course: Course) -> list[str]:
    return course.subtopic_ids()


def course_completion(course: Course) -> dict:
    total = len(course_unit_ids(course))
    completed = len(course.progress)
    percent = round(completed / total * 100) if total else 0
    return {"completed": completed, "total": total, "percent": percent}


def is_course_complete(course: Course) -> bool:
    stats = course_completion(course)
    return stats["total"] > 0 and stats["completed"] == stats["total"]


@dataclass
class UpNextItem:
    type: str  # continue_course | start_course | skill_assessment
    title: str
    description: str
    cta: str
    course_id: Optional[str] = None


def get_up_next(courses: list[Course], last_active_course_id: Optional[str]) -> UpNextItem:
    last = next((c for c in courses if c.id == last_active_course_id), None)
    if last and not is_course_complete(last):
        return UpNextItem(
            type="continue_course",
            title="Pick Up Where You Left Off",
            description=f'You\'re making great progress in "{last.title}".',
            cta="Continue Learning",
            course_id=last.id,
        )
    unstarted = next((c for c in courses if not c.progress), None)
    if unstarted:
        return UpNextItem(
            type="start_course",
            title="Start a New Adventure",
            description=f'Dive into "{unstarted.title}" and expand your skills.',
            cta="Start Topic",
            course_id=unstarted.id,
        )
    return UpNextItem(
        type="skill_assessment",
        title="Discover Your Strengths",
        description="Take a quick skill assessment to find out what you should learn next.",
        cta="Take Assessment",
    )


def get_profile_stats(
    user: LocalUser,
    courses: list[Course],
    projects: list[Project],
    test_results: list[TestResult],
    today: Optional[date] = None,
) -> dict:
    completed_lessons = sum(len(c.progress) for c in courses)
    streaks = [calculate_streak(h.history, today) for h in user.habits]
    avg_score = (
        round(sum(r.score for r in test_results) / len(test_results) * 100, 1) if test_results else 0.0
    )
    return {
        "level": user.level,
        "xp": user.xp,
        "required_xp": required_xp(user.level),
        "completed_lessons": completed_lessons,
        "courses": len(courses),
        "completed_courses": sum(1 for c in courses if is_course_complete(c)),
        "projects": len(projects),
        "best_streak": max(streaks, default=0),
        "avg_quiz_score": avg_score,
        "achievements": len(user.achievements),
    }
