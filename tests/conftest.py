import pytest

from learnai.db import init_db
from learnai.errors import GenerationCallError
from learnai.models import (
    ArticleData, BlogPostAndIdeas, ContentBlock, Course, DailyQuest, Flashcard,
    InterviewQuestion, LearningPlanBreakdown, PlanDay, Project, ProjectStep,
    QuizQuestion, Recommendation, Subtopic, Topic, new_id,
)
from learnai.store import ContentStore


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_learnai.db")
    return db_path


def make_subtopic(title, text="Some text"):
    return Subtopic(
        id=new_id("subtopic"),
        type="article",
        title=title,
        data=ArticleData(
            objective=f"Understand {title}",
            content_blocks=[
                ContentBlock(id=new_id("block"), type="text", text=text),
                ContentBlock(id=new_id("block"), type="diagram", diagram="graph TD; A-->B"),
            ],
        ),
    )


def make_course(title="Python Basics", outline=None):
    """Build a course from {topic title: [subtopic titles]}."""
    outline = outline or {"Getting Started": ["Install", "Hello World"], "Data": ["Lists"]}
    topics = [
        Topic(id=new_id("topic"), title=t, subtopics=[make_subtopic(s) for s in subs])
        for t, subs in outline.items()
    ]
    return Course(id=new_id("course"), title=title, description=f"Learn {title}", topics=topics)


QUIZ = [
    QuizQuestion(q="2 + 2?", options=["3", "4"], answer=1),
    QuizQuestion(q="Capital of France?", options=["Paris", "Rome", "Berlin"], answer=0),
]


class FakeGenerationClient:
    """Stands in for GenerationClient; set `fail` to make every call raise."""

    def __init__(self):
        self.fail = False
        self.calls = []
        self.on_call = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.on_call:
            self.on_call(name)
        if self.fail:
            raise GenerationCallError("Generation request failed: connection refused")

    def generate_course(self, topic, level="beginner", goal="curiosity", style="balanced",
                        source=None, specific_tech=None, include_theory=False):
        self._record("generate_course", topic, level)
        return make_course(f"{topic} Path")

    def generate_follow_up_subtopics(self, course, topic, subtopic, instruction):
        self._record("generate_follow_up_subtopics", instruction)
        return [make_subtopic("Deeper A"), make_subtopic("Deeper B")]

    def generate_remedial_subtopic(self, subtopic):
        self._record("generate_remedial_subtopic", subtopic.title)
        return make_subtopic(f"{subtopic.title}, simply")

    def generate_learning_plan(self, topic, duration=None):
        self._record("generate_learning_plan", topic, duration)
        days = duration or 3
        return LearningPlanBreakdown(
            title=f"{topic} in {days} days",
            duration=days,
            days=[PlanDay(day=d, title=f"Day {d}: {topic}", objective=f"Objective {d}") for d in range(1, days + 1)],
        )

    def generate_blog_post_and_ideas(self, topic):
        self._record("generate_blog_post_and_ideas", topic)
        return BlogPostAndIdeas(
            title=f"All about {topic}", subtitle="A short read", blog_post=f"# {topic}\n\nBody.",
            related_topics=[f"{topic} advanced", f"{topic} history"],
        )

    def generate_article_ideas(self, course_title):
        self._record("generate_article_ideas", course_title)
        return [f"Why {course_title} matters"]

    def generate_article_topics_from_syllabus(self, syllabus):
        self._record("generate_article_topics_from_syllabus", syllabus)
        return [line.strip() for line in syllabus.splitlines() if line.strip()]

    def generate_project(self, course, subtopic):
        self._record("generate_project", subtopic.title)
        return Project(
            id=new_id("project"), title=f"Build with {subtopic.title}", description="A small build",
            steps=[ProjectStep(id=new_id("step"), title="Step 1", challenge="Write a function")],
        )

    def generate_story(self, topic):
        self._record("generate_story", topic)
        return f"Once upon a time, {topic}."

    def generate_analogy(self, topic):
        self._record("generate_analogy", topic)
        return f"{topic} is like a kitchen."

    def define_term(self, term):
        self._record("define_term", term)
        return f"{term}: a definition."

    def generate_flashcards(self, topic):
        self._record("generate_flashcards", topic)
        return [Flashcard("What is it?", topic)]

    def generate_practice_session(self, topic):
        self._record("generate_practice_session", topic)
        return None

    def generate_socratic_quiz(self, content):
        self._record("generate_socratic_quiz", content)
        return list(QUIZ)

    def generate_understanding_check(self, content):
        self._record("generate_understanding_check", content)
        return list(QUIZ)

    def generate_assessment_quiz(self, topic, difficulty, count=5):
        self._record("generate_assessment_quiz", topic, difficulty, count)
        return list(QUIZ)

    def generate_recommendations(self, topic, history):
        self._record("generate_recommendations", topic, history)
        return [Recommendation(f"{topic} next steps", "You are ready for more")]

    def generate_related_topics(self, course_title):
        self._record("generate_related_topics", course_title)
        return [Recommendation("Related", "Close by")]

    def generate_daily_quest(self):
        self._record("generate_daily_quest")
        return DailyQuest(title="Read one lesson", description="Any lesson counts", xp=50)

    def review_project_code(self, instructions, code):
        self._record("review_project_code", instructions, code)
        return "Looks good."

    def generate_interview_questions(self, topic, difficulty, count, existing=None):
        self._record("generate_interview_questions", topic, difficulty, count, existing)
        start = len(existing or [])
        return [InterviewQuestion(f"Question {start + i}?", f"Answer {start + i}") for i in range(count)]

    def elaborate_on_answer(self, question, answer):
        self._record("elaborate_on_answer", question, answer)
        return f"{answer}, in more depth."

    def generate_code_explanation(self, content, kind="text"):
        self._record("generate_code_explanation", content, kind)
        return "It prints a greeting."

    def generate_chat_response(self, history, message, context=None):
        self._record("generate_chat_response", history, message, context)
        return f"You said: {message}"


@pytest.fixture
def fake_client():
    return FakeGenerationClient()


@pytest.fixture
def store(tmp_db, fake_client):
    init_db(tmp_db)
    return ContentStore(tmp_db, fake_client)
