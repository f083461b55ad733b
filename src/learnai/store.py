"""The content store: in-memory application state plus every command that changes it.

Each mutating command updates the state, writes the durable collections back to
the key-value store and then notifies subscribers. Generation failures never
escape a command; they land on the task, the feature session or ``state.error``.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from learnai import dashboard, plans, quiz, storage
from learnai.errors import GenerationError
from learnai.generation import GenerationClient
from learnai.models import (
    Article, ChatMessage, Course, CourseRef, CourseSource, DailyQuest, Folder,
    Habit, InterviewQuestionSet, LearningPlan, LocalUser, Project, TestResult,
    new_id, now_ms,
)
from learnai.sessions import SessionBoard
from learnai.tasks import BackgroundTask, TaskTracker

logger = logging.getLogger(__name__)

CHAT_ERROR_REPLY = "Sorry, I encountered an error."
TUTOR_ERROR_REPLY = "Sorry, I had an issue."


@dataclass
class AppState:
    courses: list[Course] = field(default_factory=list)
    folders: list[Folder] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    articles: list[Article] = field(default_factory=list)
    learning_plans: list[LearningPlan] = field(default_factory=list)
    user: LocalUser = field(default_factory=LocalUser)
    chat_history: list[ChatMessage] = field(default_factory=list)
    error: Optional[str] = None
    active_course_id: Optional[str] = None
    active_article_id: Optional[str] = None
    active_project_id: Optional[str] = None
    active_plan_id: Optional[str] = None
    last_active_course_id: Optional[str] = None
    daily_quest: Optional[DailyQuest] = None
    last_unlocked: Optional[str] = None
    sessions: SessionBoard = field(default_factory=SessionBoard)
    tracker: TaskTracker = field(default_factory=TaskTracker)


class ContentStore:
    def __init__(self, db_path: str, client: Optional[GenerationClient] = None):
        self.db_path = db_path
        self.client = client or GenerationClient()
        self.state = AppState()
        self._subscribers: list[Callable[[AppState], None]] = []
        self.reload()

    # --- Plumbing ---

    def subscribe(self, callback: Callable[[AppState], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self.state)

    def _commit(self) -> None:
        storage.save_snapshot(self.db_path, storage.Snapshot(
            courses=self.state.courses,
            folders=self.state.folders,
            projects=self.state.projects,
            articles=self.state.articles,
            user=self.state.user,
            learning_plans=self.state.learning_plans,
            chat_history=self.state.chat_history,
        ))
        self._notify()

    def reload(self) -> None:
        """Replace the durable part of the state with what storage holds."""
        snapshot = storage.load_snapshot(self.db_path)
        self.state.courses = snapshot.courses
        self.state.folders = snapshot.folders
        self.state.projects = snapshot.projects
        self.state.articles = snapshot.articles
        self.state.learning_plans = snapshot.learning_plans
        self.state.user = snapshot.user
        self.state.chat_history = snapshot.chat_history
        self.state.last_active_course_id = storage.get_last_active_course_id(self.db_path)
        self.state.active_course_id = None
        self.state.active_article_id = None
        self.state.active_project_id = None
        self.state.active_plan_id = None
        self._notify()

    # --- Lookups ---

    def get_course(self, course_id: Optional[str]) -> Optional[Course]:
        return next((c for c in self.state.courses if c.id == course_id), None)

    def get_article(self, article_id: Optional[str]) -> Optional[Article]:
        return next((a for a in self.state.articles if a.id == article_id), None)

    def get_project(self, project_id: Optional[str]) -> Optional[Project]:
        return next((p for p in self.state.projects if p.id == project_id), None)

    def get_folder(self, folder_id: Optional[str]) -> Optional[Folder]:
        return next((f for f in self.state.folders if f.id == folder_id), None)

    def get_plan(self, plan_id: Optional[str]) -> Optional[LearningPlan]:
        return next((p for p in self.state.learning_plans if p.id == plan_id), None)

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return next((h for h in self.state.user.habits if h.id == habit_id), None)

    @property
    def active_course(self) -> Optional[Course]:
        return self.get_course(self.state.active_course_id)

    def _require(self, item, kind: str, item_id):
        if item is None:
            logger.warning("No %s with id %s", kind, item_id)
        return item

    # --- Gamification ---

    def unlock_achievement(self, achievement_id: str) -> bool:
        """Add an achievement once. Returns True when it was newly unlocked."""
        if achievement_id not in dashboard.ACHIEVEMENTS:
            raise ValueError(f"Unknown achievement: {achievement_id}")
        if achievement_id in self.state.user.achievements:
            return False
        self.state.user.achievements.append(achievement_id)
        self.state.last_unlocked = achievement_id
        logger.info("Achievement unlocked: %s", achievement_id)
        return True

    def award_xp(self, amount: int) -> None:
        user = self.state.user
        user.xp, user.level = dashboard.apply_xp(user.xp, user.level, amount)
        if user.level >= dashboard.DEDICATED_LEARNER_LEVEL:
            self.unlock_achievement("dedicatedLearner")
        self._commit()

    def load_daily_quest(self, today: Optional[date] = None) -> Optional[DailyQuest]:
        """Today's quest from the cache, generating a new one on the first call of the day."""
        quest = storage.get_daily_quest(self.db_path, today)
        if quest is None:
            try:
                quest = self.client.generate_daily_quest()
            except GenerationError as e:
                logger.error("Failed to fetch daily quest: %s", e)
                return None
            storage.set_daily_quest(self.db_path, quest, today)
        self.state.daily_quest = quest
        self._notify()
        return quest

    def complete_daily_quest(self, today: Optional[date] = None) -> None:
        quest = self.state.daily_quest
        if quest is None or quest.completed:
            return
        quest.completed = True
        storage.set_daily_quest(self.db_path, quest, today)
        self.award_xp(quest.xp)

    def up_next(self) -> dashboard.UpNextItem:
        return dashboard.get_up_next(self.state.courses, self.state.last_active_course_id)

    def profile_stats(self, today: Optional[date] = None) -> dict:
        return dashboard.get_profile_stats(
            self.state.user, self.state.courses, self.state.projects,
            storage.get_test_results(self.db_path), today,
        )

    # --- Courses ---

    def _finish_task(self, task: BackgroundTask, message: str = "Success!", **result_ids) -> bool:
        """Mark a task done; False means it was cancelled and its result must be dropped."""
        if self.state.tracker.get(task.id) is None:
            logger.info("Task %s was cancelled; discarding its result", task.id)
            return False
        self.state.tracker.complete(task.id, message, **result_ids)
        return True

    def _fail_task(self, task: BackgroundTask, error: GenerationError) -> None:
        logger.error("Task %s failed: %s", task.id, error)
        self.state.tracker.fail(task.id, str(error))

    def _add_to_folder(self, folder_id: Optional[str], course_id: str = None, article_id: str = None) -> None:
        folder = self.get_folder(folder_id) if folder_id else None
        if folder_id and folder is None:
            logger.warning("No folder with id %s; item stays uncategorized", folder_id)
        if folder is None:
            return
        if course_id and course_id not in folder.course_ids:
            folder.course_ids.append(course_id)
        if article_id and article_id not in folder.article_ids:
            folder.article_ids.append(article_id)

    def generate_course(
        self,
        topic: str,
        level: str = "beginner",
        folder_id: Optional[str] = None,
        goal: str = "curiosity",
        style: str = "balanced",
        source: Optional[CourseSource] = None,
        specific_tech: Optional[str] = None,
        include_theory: bool = False,
    ) -> Optional[Course]:
        self.state.error = None
        task = self.state.tracker.start("course_generation", topic, "Generating Learning Path...")
        self._notify()
        try:
            course = self.client.generate_course(topic, level, goal, style, source, specific_tech, include_theory)
        except GenerationError as e:
            self.state.error = str(e)
            self._fail_task(task, e)
            self._notify()
            return None
        if not self._finish_task(task, course_id=course.id):
            self._notify()
            return None

        course.progress = {}
        course.knowledge_level = level
        self.state.courses.append(course)
        self._add_to_folder(folder_id, course_id=course.id)
        self.unlock_achievement("curiousMind")
        if len(self.state.courses) >= 5:
            self.unlock_achievement("topicExplorer")
        self._commit()
        return course

    def bulk_generate_courses(self, topics: list[str], folder_id: Optional[str] = None) -> list[Course]:
        """Generate one beginner course per topic, in order, into the same folder."""
        created = []
        for topic in topics:
            course = self.generate_course(topic, "beginner", folder_id, goal="theory", style="balanced")
            if course:
                created.append(course)
        return created

    def select_course(self, course_id: Optional[str]) -> Optional[Course]:
        if course_id is None:
            self.state.active_course_id = None
            self._notify()
            return None
        course = self._require(self.get_course(course_id), "course", course_id)
        if course:
            self.state.active_course_id = course.id
            self.state.active_article_id = None
            self.state.active_project_id = None
            self.state.last_active_course_id = course.id
            storage.set_last_active_course_id(self.db_path, course.id)
        self._notify()
        return course

    def delete_course(self, course_id: str) -> None:
        if not self._require(self.get_course(course_id), "course", course_id):
            return
        self.state.courses = [c for c in self.state.courses if c.id != course_id]
        for folder in self.state.folders:
            folder.course_ids = [cid for cid in folder.course_ids if cid != course_id]
        for plan in self.state.learning_plans:
            plan.daily_tasks = [t for t in plan.daily_tasks if t.course_id != course_id]
        if self.state.active_course_id == course_id:
            self.state.active_course_id = None
        self._commit()

    def toggle_subtopic_complete(self, course_id: str, subtopic_id: str) -> None:
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return
        if subtopic_id not in course.subtopic_ids():
            logger.warning("Course %s has no unit %s", course_id, subtopic_id)
            return
        if subtopic_id in course.progress:
            # Uncompleting keeps any XP already earned.
            del course.progress[subtopic_id]
            self._commit()
            return
        course.progress[subtopic_id] = now_ms()
        self.unlock_achievement("firstSteps")
        self.award_xp(dashboard.XP_PER_LESSON)

    def save_subtopic_note(self, course_id: str, subtopic_id: str, note: str) -> None:
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return
        _, subtopic = course.find_subtopic(subtopic_id)
        if self._require(subtopic, "subtopic", subtopic_id):
            subtopic.notes = note
            self._commit()

    def update_content_block(self, course_id: str, subtopic_id: str, block_id: str, diagram: str) -> None:
        """Replace the diagram syntax of one content block."""
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return
        _, subtopic = course.find_subtopic(subtopic_id)
        if subtopic is None or subtopic.type != "article":
            logger.warning("No article %s in course %s", subtopic_id, course_id)
            return
        block = next((b for b in subtopic.data.content_blocks if b.id == block_id), None)
        if self._require(block, "content block", block_id):
            block.diagram = diagram
            self._commit()

    def expand_topic(self, course_id: str, topic_id: str, subtopic_id: str, instruction: str) -> bool:
        """Splice generated follow-up subtopics right after the anchor subtopic."""
        course = self._require(self.get_course(course_id), "course", course_id)
        topic = course.find_topic(topic_id) if course else None
        anchor = next((s for s in topic.subtopics if s.id == subtopic_id), None) if topic else None
        if course is None or topic is None or anchor is None:
            logger.warning("Cannot expand %s/%s/%s: not found", course_id, topic_id, subtopic_id)
            return False

        task = self.state.tracker.start("topic_expansion", anchor.title, "Expanding topic...")
        self._notify()
        try:
            new_subtopics = self.client.generate_follow_up_subtopics(course, topic, anchor, instruction)
        except GenerationError as e:
            self._fail_task(task, e)
            self._notify()
            return False
        if not self._finish_task(task, course_id=course.id):
            self._notify()
            return False

        for subtopic in new_subtopics:
            subtopic.is_adaptive = True
        index = topic.subtopics.index(anchor)
        topic.subtopics[index + 1:index + 1] = new_subtopics
        self._commit()
        return True

    def insert_remedial_subtopic(self, course_id: str, subtopic_id: str) -> bool:
        """Add a simpler take on a subtopic right after it."""
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return False
        topic, subtopic = course.find_subtopic(subtopic_id)
        if self._require(subtopic, "subtopic", subtopic_id) is None:
            return False
        try:
            remedial = self.client.generate_remedial_subtopic(subtopic)
        except GenerationError as e:
            logger.error("Remedial subtopic failed: %s", e)
            self.state.error = str(e)
            self._notify()
            return False
        remedial.is_adaptive = True
        index = topic.subtopics.index(subtopic)
        topic.subtopics.insert(index + 1, remedial)
        self._commit()
        return True

    def move_course_to_folder(self, course_id: str, folder_id: Optional[str]) -> None:
        if not self._require(self.get_course(course_id), "course", course_id):
            return
        for folder in self.state.folders:
            folder.course_ids = [cid for cid in folder.course_ids if cid != course_id]
        self._add_to_folder(folder_id, course_id=course_id)
        self._commit()

    # --- Folders ---

    def create_folder(self, name: str) -> Folder:
        folder = Folder(id=new_id("folder"), name=name)
        self.state.folders.append(folder)
        self._commit()
        return folder

    def delete_folder(self, folder_id: str) -> None:
        """Remove the folder; its courses and articles become uncategorized."""
        if not self._require(self.get_folder(folder_id), "folder", folder_id):
            return
        self.state.folders = [f for f in self.state.folders if f.id != folder_id]
        self._commit()

    def rename_folder(self, folder_id: str, name: str) -> None:
        folder = self._require(self.get_folder(folder_id), "folder", folder_id)
        if folder:
            folder.name = name
            self._commit()

    def folder_courses(self, folder_id: str) -> list[Course]:
        folder = self.get_folder(folder_id)
        if folder is None:
            return []
        by_id = {c.id: c for c in self.state.courses}
        return [by_id[cid] for cid in folder.course_ids if cid in by_id]

    def folder_articles(self, folder_id: str) -> list[Article]:
        folder = self.get_folder(folder_id)
        if folder is None:
            return []
        by_id = {a.id: a for a in self.state.articles}
        return [by_id[aid] for aid in folder.article_ids if aid in by_id]

    def uncategorized_courses(self) -> list[Course]:
        filed = {cid for f in self.state.folders for cid in f.course_ids}
        return [c for c in self.state.courses if c.id not in filed]

    def uncategorized_articles(self) -> list[Article]:
        filed = {aid for f in self.state.folders for aid in f.article_ids}
        return [a for a in self.state.articles if a.id not in filed]

    # --- Articles ---

    def _store_article(self, data, folder_id: Optional[str], course: Optional[Course] = None,
                       article_id: Optional[str] = None) -> Article:
        article = Article(
            id=article_id or new_id("article"),
            title=data.title,
            subtitle=data.subtitle,
            blog_post=data.blog_post,
            course=CourseRef(course.id, course.title) if course else None,
        )
        self.state.articles.append(article)
        self._add_to_folder(folder_id, article_id=article.id)
        return article

    def generate_article(self, topic: str, folder_id: Optional[str] = None, course_id: Optional[str] = None) -> Optional[Article]:
        """Write one blog post; the follow-up ideas go to the article_ideas session."""
        self.state.error = None
        task = self.state.tracker.start("article_generation", topic, "Writing article...")
        self._notify()
        try:
            data = self.client.generate_blog_post_and_ideas(topic)
        except GenerationError as e:
            self.state.error = str(e)
            self._fail_task(task, e)
            self._notify()
            return None
        article_id = new_id("article")
        if not self._finish_task(task, article_ids=[article_id]):
            self._notify()
            return None
        article = self._store_article(data, folder_id, self.get_course(course_id), article_id)
        session = self.state.sessions.open("article_ideas", article.title, article_id=article.id)
        session.result = list(data.related_topics)
        self._commit()
        return article

    def bulk_generate_articles(self, syllabus: str, folder_id: Optional[str] = None) -> list[Article]:
        """Derive topics from a syllabus, then write one article per topic.

        Articles finished before a failure are kept.
        """
        self.state.error = None
        task = self.state.tracker.start("article_generation", "Syllabus articles", "Generating article ideas...")
        self._notify()
        created: list[Article] = []
        try:
            topics = self.client.generate_article_topics_from_syllabus(syllabus)
            for i, topic in enumerate(topics, start=1):
                if self.state.tracker.get(task.id) is None:
                    break
                self.state.tracker.update_message(task.id, f'Generating article {i}/{len(topics)}: "{topic}"')
                self._notify()
                data = self.client.generate_blog_post_and_ideas(topic)
                if self.state.tracker.get(task.id) is None:
                    break
                created.append(self._store_article(data, folder_id))
                self._commit()
        except GenerationError as e:
            self.state.error = str(e)
            self._fail_task(task, e)
            self._notify()
            return created
        self._finish_task(task, "All articles generated successfully!", article_ids=[a.id for a in created])
        self._notify()
        return created

    def select_article(self, article_id: Optional[str]) -> Optional[Article]:
        article = self.get_article(article_id) if article_id else None
        self.state.active_article_id = article.id if article else None
        if article:
            self.state.active_course_id = None
            self.state.active_project_id = None
        self._notify()
        return article

    def delete_article(self, article_id: str) -> None:
        if not self._require(self.get_article(article_id), "article", article_id):
            return
        self.state.articles = [a for a in self.state.articles if a.id != article_id]
        for folder in self.state.folders:
            folder.article_ids = [aid for aid in folder.article_ids if aid != article_id]
        if self.state.active_article_id == article_id:
            self.state.active_article_id = None
        self._commit()

    def move_article_to_folder(self, article_id: str, folder_id: Optional[str]) -> None:
        if not self._require(self.get_article(article_id), "article", article_id):
            return
        for folder in self.state.folders:
            folder.article_ids = [aid for aid in folder.article_ids if aid != article_id]
        self._add_to_folder(folder_id, article_id=article_id)
        self._commit()

    # --- Projects ---

    def generate_project(self, course_id: str, subtopic_id: str) -> Optional[Project]:
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        _, subtopic = course.find_subtopic(subtopic_id)
        if self._require(subtopic, "subtopic", subtopic_id) is None:
            return None

        task = self.state.tracker.start("project_generation", subtopic.title, "Generating Project...")
        self._notify()
        try:
            project = self.client.generate_project(course, subtopic)
        except GenerationError as e:
            self._fail_task(task, e)
            self._notify()
            return None
        if not self._finish_task(task, project_id=project.id):
            self._notify()
            return None
        project.course = CourseRef(course.id, course.title)
        project.progress = {}
        self.state.projects.append(project)
        self.unlock_achievement("projectStarter")
        self._commit()
        return project

    def select_project(self, project_id: Optional[str]) -> Optional[Project]:
        project = self.get_project(project_id) if project_id else None
        self.state.active_project_id = project.id if project else None
        if project:
            self.state.active_course_id = None
            self.state.active_article_id = None
        self._notify()
        return project

    def delete_project(self, project_id: str) -> None:
        if not self._require(self.get_project(project_id), "project", project_id):
            return
        self.state.projects = [p for p in self.state.projects if p.id != project_id]
        if self.state.active_project_id == project_id:
            self.state.active_project_id = None
        self._commit()

    def toggle_project_step_complete(self, project_id: str, step_id: str) -> None:
        project = self._require(self.get_project(project_id), "project", project_id)
        if project is None or self._require(project.find_step(step_id), "project step", step_id) is None:
            return
        if step_id in project.progress:
            del project.progress[step_id]
        else:
            project.progress[step_id] = now_ms()
        self._commit()

    # --- Learning plans ---

    def create_learning_plan(self, topic: str, duration: Optional[int] = None) -> Optional[LearningPlan]:
        """Generate a day-by-day plan, with a placeholder course per day filed in a new folder."""
        task = self.state.tracker.start("plan_generation", topic, "Generating Learning Plan...")
        self._notify()
        try:
            breakdown = self.client.generate_learning_plan(topic, duration)
        except GenerationError as e:
            self.state.error = str(e)
            self._fail_task(task, e)
            self._notify()
            return None
        plan, courses = plans.build_learning_plan(topic, breakdown, duration=duration)
        if not self._finish_task(task, "Learning plan created successfully!", plan_id=plan.id):
            self._notify()
            return None

        folder = Folder(id=new_id("folder"), name=plan.title, course_ids=[c.id for c in courses])
        plan.folder_id = folder.id
        self.state.folders.append(folder)
        self.state.courses.extend(courses)
        self.state.learning_plans.append(plan)
        self.state.active_plan_id = plan.id
        self._commit()
        return plan

    def select_plan(self, plan_id: Optional[str]) -> Optional[LearningPlan]:
        plan = self.get_plan(plan_id) if plan_id else None
        self.state.active_plan_id = plan.id if plan else None
        self._notify()
        return plan

    def delete_plan(self, plan_id: str) -> None:
        """Remove the plan together with the courses it generated."""
        plan = self._require(self.get_plan(plan_id), "learning plan", plan_id)
        if plan is None:
            return
        removed = {c.id for c in self.state.courses if c.learning_plan_id == plan_id}
        self.state.courses = [c for c in self.state.courses if c.id not in removed]
        for folder in self.state.folders:
            folder.course_ids = [cid for cid in folder.course_ids if cid not in removed]
        self.state.learning_plans = [p for p in self.state.learning_plans if p.id != plan_id]
        if self.state.active_plan_id == plan_id:
            self.state.active_plan_id = None
        self._commit()

    def reschedule_plan_task(self, plan_id: str, task_id: str, new_date: date) -> None:
        plan = self._require(self.get_plan(plan_id), "learning plan", plan_id)
        task = plans.find_task(plan, task_id) if plan else None
        if self._require(task, "plan task", task_id):
            task.date = plans.reschedule_date(new_date)
            self._commit()

    def delete_plan_task(self, plan_id: str, task_id: str) -> None:
        """Drop a day from the plan along with its course."""
        plan = self._require(self.get_plan(plan_id), "learning plan", plan_id)
        task = plans.find_task(plan, task_id) if plan else None
        if self._require(task, "plan task", task_id) is None:
            return
        plan.daily_tasks = [t for t in plan.daily_tasks if t.id != task_id]
        self.state.courses = [c for c in self.state.courses if c.id != task.course_id]
        for folder in self.state.folders:
            folder.course_ids = [cid for cid in folder.course_ids if cid != task.course_id]
        plans.refresh_status(plan)
        self._commit()

    def toggle_plan_task_complete(self, plan_id: str, task_id: str) -> None:
        plan = self._require(self.get_plan(plan_id), "learning plan", plan_id)
        task = plans.find_task(plan, task_id) if plan else None
        if self._require(task, "plan task", task_id):
            task.is_completed = not task.is_completed
            plans.refresh_status(plan)
            self._commit()

    def current_plan_day(self, plan_id: str, today: Optional[date] = None) -> Optional[int]:
        plan = self.get_plan(plan_id)
        return plans.current_plan_day(plan, today) if plan else None

    # --- Habits ---

    def add_habit(self, title: str, goal: str = "daily") -> Habit:
        habit = Habit(id=new_id("habit"), title=title, goal=goal, created_at=now_ms())
        self.state.user.habits.append(habit)
        self._commit()
        return habit

    def toggle_habit(self, habit_id: str, iso_date: Optional[str] = None) -> None:
        habit = self._require(self.get_habit(habit_id), "habit", habit_id)
        if habit is None:
            return
        key = iso_date or date.today().isoformat()
        if habit.history.get(key):
            del habit.history[key]
        else:
            habit.history[key] = True
        self._commit()

    def delete_habit(self, habit_id: str) -> None:
        if not self._require(self.get_habit(habit_id), "habit", habit_id):
            return
        self.state.user.habits = [h for h in self.state.user.habits if h.id != habit_id]
        self._commit()

    # --- Chat ---

    def send_chat_message(self, message: str) -> str:
        history = list(self.state.chat_history)
        self.state.chat_history.append(ChatMessage("user", message))
        self._notify()
        try:
            reply = self.client.generate_chat_response(history, message)
        except GenerationError as e:
            logger.error("Chat reply failed: %s", e)
            reply = CHAT_ERROR_REPLY
        self.state.chat_history.append(ChatMessage("model", reply))
        self._commit()
        return reply

    def clear_chat_history(self) -> None:
        self.state.chat_history = []
        self._commit()

    # --- Feature sessions ---

    def _subtopic_or_warn(self, course_id: str, subtopic_id: str):
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None, None, None
        topic, subtopic = course.find_subtopic(subtopic_id)
        self._require(subtopic, "subtopic", subtopic_id)
        return course, topic, subtopic

    def _run_session(self, kind: str, title: str, fn, **context):
        session = self.state.sessions.run(kind, title, fn, **context)
        self._notify()
        return session

    def show_story(self, title: str):
        return self._run_session("story", title, lambda: self.client.generate_story(title))

    def show_analogy(self, title: str):
        return self._run_session("analogy", title, lambda: self.client.generate_analogy(title))

    def show_flashcards(self, title: str):
        return self._run_session("flashcards", title, lambda: self.client.generate_flashcards(title))

    def show_socratic_quiz(self, course_id: str, subtopic_id: str):
        _, _, subtopic = self._subtopic_or_warn(course_id, subtopic_id)
        if subtopic is None:
            return None
        return self._run_session(
            "socratic", subtopic.title,
            lambda: self.client.generate_socratic_quiz(subtopic.text_content()),
            course_id=course_id, subtopic_id=subtopic_id,
        )

    def show_related_topics(self, course_id: str):
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        return self._run_session(
            "explore", course.title, lambda: self.client.generate_related_topics(course.title), course_id=course_id
        )

    def show_article_ideas(self, course_id: str):
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        return self._run_session(
            "article_ideas", course.title, lambda: self.client.generate_article_ideas(course.title), course_id=course_id
        )

    def check_understanding(self, course_id: str, subtopic_id: str):
        _, _, subtopic = self._subtopic_or_warn(course_id, subtopic_id)
        if subtopic is None:
            return None
        return self._run_session(
            "understanding_check", subtopic.title,
            lambda: self.client.generate_understanding_check(subtopic.text_content()),
            course_id=course_id, subtopic_id=subtopic_id,
        )

    def submit_understanding_check(self, answers: list[Optional[int]]) -> Optional[tuple[int, int]]:
        """Score the check, close it and toggle the subtopic's completion."""
        session = self.state.sessions["understanding_check"]
        if not session.is_open or not session.result:
            logger.warning("No understanding check to submit")
            return None
        score = quiz.score_answers(session.result, answers)
        course_id, subtopic_id = session.context["course_id"], session.context["subtopic_id"]
        self.state.sessions.close("understanding_check")
        self.toggle_subtopic_complete(course_id, subtopic_id)
        return score

    def review_project_step(self, project_id: str, step_id: str, code: str):
        project = self._require(self.get_project(project_id), "project", project_id)
        step = project.find_step(step_id) if project else None
        if self._require(step, "project step", step_id) is None:
            return None
        return self._run_session(
            "project_tutor", step.title,
            lambda: self.client.review_project_code(step.challenge or step.description, code),
            project_id=project_id, step_id=step_id, code=code,
        )

    def define_term(self, term: str):
        return self._run_session("definition", term, lambda: self.client.define_term(term))

    def start_topic_practice(self, course_id: str, subtopic_id: str):
        _, _, subtopic = self._subtopic_or_warn(course_id, subtopic_id)
        if subtopic is None:
            return None
        return self._run_session(
            "practice", subtopic.title, lambda: self.client.generate_practice_session(subtopic.title),
            course_id=course_id, subtopic_id=subtopic_id,
        )

    def start_practice_quiz(self, topic: str, difficulty: str = "beginner", count: int = 5):
        return self._run_session(
            "practice_quiz", topic,
            lambda: self.client.generate_assessment_quiz(topic, difficulty, count),
            topic=topic, difficulty=difficulty,
        )

    def submit_practice_quiz(self, answers: list[Optional[int]]) -> Optional[TestResult]:
        """Score the open practice quiz, record the result and fetch recommendations."""
        session = self.state.sessions["practice_quiz"]
        if not session.is_open or not session.result:
            logger.warning("No practice quiz to submit")
            return None
        topic, difficulty = session.context["topic"], session.context["difficulty"]
        result = quiz.build_test_result(topic, difficulty, session.result, answers)
        storage.save_test_result(self.db_path, result)
        session.context["test_result"] = result
        if result.question_count and result.score == 1.0:
            self.unlock_achievement("quizMaster")
        history = quiz.topic_history(storage.get_test_results(self.db_path), topic)
        try:
            session.context["recommendations"] = self.client.generate_recommendations(topic, history)
        except GenerationError as e:
            logger.warning("Recommendations failed: %s", e)
            session.error = str(e)
        self._commit()
        return result

    def explain_code(self, content: str, kind: str = "text"):
        return self._run_session(
            "code_explainer", "Code explanation", lambda: self.client.generate_code_explanation(content, kind)
        )

    def open_article_tutor(self, article_id: str):
        article = self._require(self.get_article(article_id), "article", article_id)
        if article is None:
            return None
        session = self.state.sessions.open("article_tutor", article.title, article_id=article.id)
        session.result = [ChatMessage("model", f'Hello! How can I help you with the article "{article.title}"?')]
        self._notify()
        return session

    def send_article_tutor_message(self, message: str) -> Optional[str]:
        session = self.state.sessions["article_tutor"]
        article = self.get_article(session.context.get("article_id")) if session.is_open else None
        if article is None:
            logger.warning("Article tutor is not open")
            return None
        history = list(session.result or [])
        session.result = history + [ChatMessage("user", message)]
        session.is_loading = True
        self._notify()
        context = f"The user is asking about the following article:\n\nTitle: {article.title}\nContent:\n{article.blog_post}"
        try:
            reply = self.client.generate_chat_response(history, message, context)
        except GenerationError as e:
            logger.error("Article tutor reply failed: %s", e)
            reply = TUTOR_ERROR_REPLY
        session.result.append(ChatMessage("model", reply))
        session.is_loading = False
        self._notify()
        return reply

    def start_interview_prep(self, course_id: str):
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        session = self.state.sessions.open("interview_prep", course.title, course_id=course.id)
        session.result = course.interview_question_sets
        self._notify()
        return session

    def generate_interview_questions(self, course_id: str, difficulty: str, count: int) -> Optional[InterviewQuestionSet]:
        """Append a new question set that avoids every question already asked for the course."""
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        session = self.state.sessions["interview_prep"]
        if not session.is_open:
            session = self.state.sessions.open("interview_prep", course.title, course_id=course.id)
        session.is_loading = True
        session.error = None
        self._notify()
        existing = [q.question for s in course.interview_question_sets for q in s.questions]
        try:
            questions = self.client.generate_interview_questions(course.title, difficulty, count, existing)
        except GenerationError as e:
            logger.error("Interview questions failed: %s", e)
            session.error = str(e)
            session.is_loading = False
            self._notify()
            return None
        question_set = InterviewQuestionSet(
            id=new_id("set"),
            timestamp=now_ms(),
            difficulty=difficulty,
            question_count=len(questions),
            questions=questions,
        )
        course.interview_question_sets.append(question_set)
        session.result = course.interview_question_sets
        session.is_loading = False
        self._commit()
        return question_set

    def elaborate_answer(self, course_id: str, set_id: str, index: int) -> Optional[str]:
        course = self._require(self.get_course(course_id), "course", course_id)
        question_set = next((s for s in course.interview_question_sets if s.id == set_id), None) if course else None
        if question_set is None or not 0 <= index < len(question_set.questions):
            logger.warning("No interview question %s[%s] in course %s", set_id, index, course_id)
            return None
        item = question_set.questions[index]
        session = self.state.sessions["interview_prep"]
        try:
            elaborated = self.client.elaborate_on_answer(item.question, item.answer)
        except GenerationError as e:
            logger.error("Elaboration failed: %s", e)
            session.error = str(e)
            self._notify()
            return None
        item.answer = elaborated
        self._commit()
        return elaborated

    def close_session(self, kind: str) -> None:
        self.state.sessions.close(kind)
        self._notify()

    def mind_map(self, course_id: str) -> Optional[dict]:
        """Course -> topics -> subtopics tree, built locally."""
        course = self._require(self.get_course(course_id), "course", course_id)
        if course is None:
            return None
        return {
            "id": course.id,
            "title": course.title,
            "children": [
                {
                    "id": t.id,
                    "title": t.title,
                    "children": [
                        {"id": s.id, "title": s.title, "completed": s.id in course.progress, "children": []}
                        for s in t.subtopics
                    ],
                }
                for t in course.topics
            ],
        }

    # --- Tasks ---

    def cancel_task(self, task_id: str) -> None:
        self.state.tracker.cancel(task_id)
        self._notify()

    def minimize_task(self, task_id: str) -> None:
        self.state.tracker.minimize(task_id)
        self._notify()

    def restore_task(self, task_id: str) -> Optional[BackgroundTask]:
        task = self.state.tracker.restore(task_id)
        self._notify()
        return task

    def clear_task(self, task_id: str) -> None:
        self.state.tracker.clear(task_id)
        self._notify()

    # --- Backup ---

    def export_backup(self) -> str:
        return json.dumps(storage.export_backup(self.db_path), indent=2)

    def import_backup(self, text: str) -> None:
        """Replace all learning data with a backup; BackupImportError leaves everything as it was."""
        storage.import_backup(self.db_path, text)
        self.reload()

    def reset(self) -> None:
        storage.reset_application(self.db_path)
        self.reload()
