"""Client for the local LLM server and decoding of its answers into domain records."""
import json
import logging
import re
from typing import Any, Optional

import requests
from pydantic import TypeAdapter, ValidationError

from learnai import prompts
from learnai.config import Settings, get_settings
from learnai.errors import GenerationCallError, MalformedGenerationError
from learnai.models import (
    ArticleData, BlogPostAndIdeas, ChatMessage, ContentBlock, Course, CourseRef,
    CourseSource, DailyQuest, Flashcard, InterviewQuestion, LearningPlanBreakdown,
    PathOverview, PlanDay, PracticeConcept, PracticeSession, Project,
    ProjectActivityData, ProjectStep, QuizActivityData, QuizQuestion,
    Recommendation, Subtopic, TestResult, Topic, new_id,
)
from learnai.schemas import (
    BlogPostSchema, CourseSchema, DailyQuestSchema,
    FlashcardSchema, InterviewQuestionSchema, LearningPlanSchema,
    PracticeSessionSchema, ProjectSchema, QuizItem, RecommendationSchema,
    SubtopicSchema,
)

logger = logging.getLogger(__name__)

_COURSE = TypeAdapter(CourseSchema)
_PLAN = TypeAdapter(LearningPlanSchema)
_BLOG_POST = TypeAdapter(BlogPostSchema)
_STRINGS = TypeAdapter(list[str])
_FLASHCARDS = TypeAdapter(list[FlashcardSchema])
_PRACTICE = TypeAdapter(PracticeSessionSchema)
_PROJECT = TypeAdapter(ProjectSchema)
_SUBTOPICS = TypeAdapter(list[SubtopicSchema])
_SUBTOPIC = TypeAdapter(SubtopicSchema)
_QUIZ = TypeAdapter(list[QuizItem])
_RECOMMENDATIONS = TypeAdapter(list[RecommendationSchema])
_QUEST = TypeAdapter(DailyQuestSchema)
_INTERVIEW = TypeAdapter(list[InterviewQuestionSchema])

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def call_llm(prompt: str, *, settings: Optional[Settings] = None, system: Optional[str] = None) -> str:
    """POST one prompt to {OLLAMA_HOST}/api/generate and return the raw response text."""
    settings = settings or get_settings()
    url = f"{settings.ollama_host}/api/generate"
    payload = {
        "model": settings.ollama_model,
        "prompt": prompt,
        "stream": False,
        "options": {"temperature": settings.temperature, "num_ctx": 8192},
    }
    if system:
        payload["system"] = system
    try:
        r = requests.post(url, json=payload, timeout=settings.request_timeout)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Generation request to %s failed: %s", url, e)
        raise GenerationCallError(f"Generation request failed: {e}") from e
    return data.get("response", "") if isinstance(data, dict) else ""


def parse_json_loose(text: str) -> Any:
    """Pull JSON out of a model answer even when it is fenced or wrapped in prose."""
    s = text.strip()
    if s.startswith("```"):
        s = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", s))

    try:
        return json.loads(s)
    except ValueError:
        pass

    # Outermost object or array, whichever opens first.
    starts = [i for i in (s.find("{"), s.find("[")) if i != -1]
    if starts:
        start = min(starts)
        end = s.rfind("}" if s[start] == "{" else "]")
        if end > start:
            return json.loads(s[start : end + 1])

    raise ValueError("Could not find JSON in the model response.")


# --- Conversion into domain records ---

def _quiz_question(item: QuizItem) -> QuizQuestion:
    return QuizQuestion(q=item.q, options=list(item.options), answer=item.answer, explanation=item.explanation)


def _content_block(block) -> ContentBlock:
    converted = ContentBlock(id=new_id("block"), type=block.type)
    if block.type == "quiz":
        converted.quiz = _quiz_question(block.quiz)
    elif block.type in ("text", "code", "diagram"):
        setattr(converted, block.type, getattr(block, block.type))
    else:
        # interactiveModel -> interactive_model, and so on
        name = re.sub(r"(?<!^)(?=[A-Z])", "_", block.type).lower()
        setattr(converted, name, getattr(block, name).model_dump(by_alias=True))
    return converted


def _subtopic(schema, is_adaptive: bool = False) -> Subtopic:
    if schema.type == "article":
        data = ArticleData(
            objective=schema.data.objective,
            content_blocks=[_content_block(b) for b in schema.data.content_blocks],
        )
    elif schema.type == "quiz":
        data = QuizActivityData(
            description=schema.data.description,
            questions=[_quiz_question(q) for q in schema.data.questions],
        )
    else:
        data = ProjectActivityData(
            description=schema.data.description,
            code_stub=schema.data.code_stub,
            challenge=schema.data.challenge,
        )
    return Subtopic(id=new_id("subtopic"), type=schema.type, title=schema.title, data=data, is_adaptive=is_adaptive)


def _course(schema: CourseSchema, level: str) -> Course:
    topics = [
        Topic(id=new_id("topic"), title=t.title, subtopics=[_subtopic(s) for s in t.subtopics])
        for t in schema.topics
    ]
    overview = PathOverview(
        duration=schema.overview.duration,
        total_topics=len(topics),
        total_subtopics=sum(len(t.subtopics) for t in topics),
        key_features=list(schema.overview.key_features),
    )
    return Course(
        id=new_id("course"),
        title=schema.title,
        description=schema.description,
        about=schema.about,
        category=schema.category,
        technologies=list(schema.technologies),
        topics=topics,
        knowledge_level=level,
        progress={},
        overview=overview,
        learning_outcomes=list(schema.learning_outcomes),
        skills=list(schema.skills),
    )


class GenerationClient:
    """One method per generation need. Every failure surfaces as a GenerationError."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _text(self, prompt: str, system: Optional[str] = None) -> str:
        text = call_llm(prompt, settings=self.settings, system=system).strip()
        if not text:
            raise MalformedGenerationError("The model returned an empty response.")
        return text

    def _structured(self, prompt: str, adapter: TypeAdapter, what: str):
        raw = call_llm(prompt, settings=self.settings)
        try:
            data = parse_json_loose(raw)
        except ValueError as e:
            logger.warning("Unparsable %s response: %.200s", what, raw)
            raise MalformedGenerationError(f"The model's {what} response was not valid JSON.") from e
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            logger.warning("Invalid %s response: %s", what, e)
            raise MalformedGenerationError(
                f"The model's {what} response did not match the expected shape ({e.error_count()} error(s))."
            ) from e

    # --- Courses ---

    def generate_course(
        self,
        topic: str,
        level: str = "beginner",
        goal: str = "curiosity",
        style: str = "balanced",
        source: Optional[CourseSource] = None,
        specific_tech: Optional[str] = None,
        include_theory: bool = False,
    ) -> Course:
        tech_line = f"- Specific technologies to focus on: {specific_tech}\n" if specific_tech else ""
        theory_line = "- Include a dedicated theory section on the underlying principles.\n" if include_theory else ""
        source_block = ""
        if source and source.content:
            source_block = prompts.SOURCE_PROMPTS.get(source.type, prompts.SOURCE_PROMPTS["syllabus"]).format(
                content=source.content
            )
        prompt = prompts.COURSE_PROMPT.format(
            topic=topic,
            level=level,
            goal=goal,
            style=style,
            tech_line=tech_line,
            theory_line=theory_line,
            source_block=source_block,
            subtopic_shape=prompts.SUBTOPIC_SHAPE,
            block_shape=prompts.CONTENT_BLOCK_SHAPE,
            json_only=prompts.JSON_ONLY,
        )
        schema = self._structured(prompt, _COURSE, "course")
        course = _course(schema, level)
        logger.info("Generated course %r with %d topic(s)", course.title, len(course.topics))
        return course

    def generate_follow_up_subtopics(self, course: Course, topic: Topic, subtopic: Subtopic, instruction: str) -> list[Subtopic]:
        prompt = prompts.FOLLOW_UP_PROMPT.format(
            course_title=course.title,
            topic_title=topic.title,
            subtopic_title=subtopic.title,
            instruction=instruction,
            subtopic_shape=prompts.SUBTOPIC_SHAPE,
            block_shape=prompts.CONTENT_BLOCK_SHAPE,
            json_only=prompts.JSON_ONLY,
        )
        schemas = self._structured(prompt, _SUBTOPICS, "follow-up subtopics")
        if not schemas:
            raise MalformedGenerationError("The model returned no follow-up subtopics.")
        return [_subtopic(s, is_adaptive=True) for s in schemas]

    def generate_remedial_subtopic(self, subtopic: Subtopic) -> Subtopic:
        prompt = prompts.REMEDIAL_PROMPT.format(
            subtopic_title=subtopic.title,
            objective=subtopic.objective or subtopic.title,
            subtopic_shape=prompts.SUBTOPIC_SHAPE,
            block_shape=prompts.CONTENT_BLOCK_SHAPE,
            json_only=prompts.JSON_ONLY,
        )
        return _subtopic(self._structured(prompt, _SUBTOPIC, "remedial subtopic"), is_adaptive=True)

    # --- Plans, articles, projects ---

    def generate_learning_plan(self, topic: str, duration: Optional[int] = None) -> LearningPlanBreakdown:
        if duration:
            duration_line = f"The plan must last exactly {duration} days."
        else:
            duration_line = "Choose the optimal number of days (between 3 and 30) to learn it well."
        prompt = prompts.LEARNING_PLAN_PROMPT.format(topic=topic, duration_line=duration_line, json_only=prompts.JSON_ONLY)
        schema = self._structured(prompt, _PLAN, "learning plan")
        days = sorted(schema.daily_breakdown, key=lambda d: d.day)
        if not days:
            raise MalformedGenerationError("The learning plan has no days.")
        return LearningPlanBreakdown(
            title=schema.plan_title,
            duration=len(days),
            days=[PlanDay(day=d.day, title=d.title, objective=d.objective) for d in days],
        )

    def generate_blog_post_and_ideas(self, topic: str) -> BlogPostAndIdeas:
        prompt = prompts.BLOG_POST_PROMPT.format(topic=topic, json_only=prompts.JSON_ONLY)
        schema = self._structured(prompt, _BLOG_POST, "blog post")
        return BlogPostAndIdeas(
            title=schema.title,
            subtitle=schema.subtitle,
            blog_post=schema.blog_post,
            related_topics=list(schema.related_topics),
        )

    def generate_article_ideas(self, course_title: str) -> list[str]:
        prompt = prompts.ARTICLE_IDEAS_PROMPT.format(course_title=course_title, json_only=prompts.JSON_ONLY)
        return self._structured(prompt, _STRINGS, "article ideas")

    def generate_article_topics_from_syllabus(self, syllabus: str) -> list[str]:
        prompt = prompts.SYLLABUS_TOPICS_PROMPT.format(syllabus=syllabus, json_only=prompts.JSON_ONLY)
        return [t for t in self._structured(prompt, _STRINGS, "syllabus topics") if t.strip()]

    def generate_project(self, course: Course, subtopic: Subtopic) -> Project:
        prompt = prompts.PROJECT_PROMPT.format(
            course_title=course.title,
            subtopic_title=subtopic.title,
            objective=subtopic.objective or subtopic.title,
            json_only=prompts.JSON_ONLY,
        )
        schema = self._structured(prompt, _PROJECT, "project")
        return Project(
            id=new_id("project"),
            title=schema.title,
            description=schema.description,
            steps=[
                ProjectStep(id=new_id("step"), title=s.title, description=s.description,
                            code_stub=s.code_stub, challenge=s.challenge)
                for s in schema.steps
            ],
            course=CourseRef(id=course.id, title=course.title),
        )

    # --- Study aids ---

    def generate_story(self, topic: str) -> str:
        return self._text(prompts.STORY_PROMPT.format(topic=topic))

    def generate_analogy(self, topic: str) -> str:
        return self._text(prompts.ANALOGY_PROMPT.format(topic=topic))

    def define_term(self, term: str) -> str:
        return self._text(prompts.DEFINE_TERM_PROMPT.format(term=term))

    def generate_flashcards(self, topic: str) -> list[Flashcard]:
        prompt = prompts.FLASHCARDS_PROMPT.format(topic=topic, json_only=prompts.JSON_ONLY)
        return [Flashcard(question=c.question, answer=c.answer) for c in self._structured(prompt, _FLASHCARDS, "flashcards")]

    def generate_practice_session(self, topic: str) -> PracticeSession:
        prompt = prompts.PRACTICE_SESSION_PROMPT.format(topic=topic, quiz_shape=prompts.QUIZ_ITEM_SHAPE, json_only=prompts.JSON_ONLY)
        schema = self._structured(prompt, _PRACTICE, "practice session")
        return PracticeSession(
            topic=schema.topic,
            concepts=[PracticeConcept(title=c.title, description=c.description, code_example=c.code_example) for c in schema.concepts],
            quiz=[_quiz_question(q) for q in schema.quiz],
        )

    def _quiz(self, template: str, what: str, **fields) -> list[QuizQuestion]:
        prompt = template.format(quiz_shape=prompts.QUIZ_ITEM_SHAPE, json_only=prompts.JSON_ONLY, **fields)
        items = self._structured(prompt, _QUIZ, what)
        if not items:
            raise MalformedGenerationError(f"The {what} has no questions.")
        return [_quiz_question(q) for q in items]

    def generate_socratic_quiz(self, content: str) -> list[QuizQuestion]:
        return self._quiz(prompts.SOCRATIC_QUIZ_PROMPT, "Socratic quiz", content=content)

    def generate_understanding_check(self, content: str) -> list[QuizQuestion]:
        return self._quiz(prompts.UNDERSTANDING_CHECK_PROMPT, "understanding check", content=content)

    def generate_assessment_quiz(self, topic: str, difficulty: str, count: int = 5) -> list[QuizQuestion]:
        return self._quiz(prompts.ASSESSMENT_QUIZ_PROMPT, "assessment quiz", topic=topic, difficulty=difficulty, count=count)

    def generate_recommendations(self, topic: str, history: list[TestResult]) -> list[Recommendation]:
        lines = "\n".join(
            f"- {r.difficulty}: {round(r.score * 100)}% on {r.question_count} question(s)" for r in history
        ) or "- no tests taken yet"
        prompt = prompts.RECOMMENDATIONS_PROMPT.format(topic=topic, history=lines, json_only=prompts.JSON_ONLY)
        return [Recommendation(r.topic, r.reason) for r in self._structured(prompt, _RECOMMENDATIONS, "recommendations")]

    def generate_related_topics(self, course_title: str) -> list[Recommendation]:
        prompt = prompts.RELATED_TOPICS_PROMPT.format(course_title=course_title, json_only=prompts.JSON_ONLY)
        return [Recommendation(r.topic, r.reason) for r in self._structured(prompt, _RECOMMENDATIONS, "related topics")]

    def generate_daily_quest(self) -> DailyQuest:
        schema = self._structured(prompts.DAILY_QUEST_PROMPT.format(json_only=prompts.JSON_ONLY), _QUEST, "daily quest")
        return DailyQuest(title=schema.title, description=schema.description, xp=schema.xp)

    def review_project_code(self, instructions: str, code: str) -> str:
        return self._text(prompts.PROJECT_REVIEW_PROMPT.format(instructions=instructions, code=code))

    def generate_interview_questions(
        self, topic: str, difficulty: str, count: int, existing: Optional[list[str]] = None
    ) -> list[InterviewQuestion]:
        existing_lines = "\n".join(f"- {q}" for q in existing or []) or "- none"
        prompt = prompts.INTERVIEW_QUESTIONS_PROMPT.format(
            topic=topic, difficulty=difficulty, count=count, existing=existing_lines, json_only=prompts.JSON_ONLY
        )
        items = self._structured(prompt, _INTERVIEW, "interview questions")
        seen = {q.strip().lower() for q in existing or []}
        return [InterviewQuestion(i.question, i.answer) for i in items if i.question.strip().lower() not in seen]

    def elaborate_on_answer(self, question: str, answer: str) -> str:
        return self._text(prompts.ELABORATE_PROMPT.format(question=question, answer=answer))

    def generate_code_explanation(self, content: str, kind: str = "text") -> str:
        return self._text(prompts.CODE_EXPLANATION_PROMPT.format(kind=kind, content=content))

    # --- Chat ---

    def generate_chat_response(self, history: list[ChatMessage], message: str, context: Optional[str] = None) -> str:
        """Answer the latest message given the running conversation."""
        transcript = "\n".join(f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in history)
        prompt = f"{transcript}\nUser: {message}\nAssistant:" if transcript else f"User: {message}\nAssistant:"
        return self._text(prompt, system=prompts.CHAT_SYSTEM_PROMPT.format(context=context or "").strip())
