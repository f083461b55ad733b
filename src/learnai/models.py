"""Data classes for the learning domain model and their JSON codecs."""
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

KNOWLEDGE_LEVELS = ("beginner", "intermediate", "advanced")
LEARNING_GOALS = ("project", "interview", "theory", "curiosity")
LEARNING_STYLES = ("visual", "code", "balanced", "interactive")
BLOCK_TYPES = (
    "text", "code", "quiz", "diagram",
    "interactiveModel", "hyperparameterSimulator", "triageChallenge",
)
SUBTOPIC_TYPES = ("article", "quiz", "project")

# Progress maps a completed unit id to its completion time in epoch milliseconds.
Progress = dict[str, int]


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    """Timestamped id, unique even when several are minted in the same millisecond."""
    return f"{prefix}_{now_ms()}_{uuid.uuid4().hex[:6]}"


def progress_to_plain(progress: Progress) -> dict[str, int]:
    return {str(k): int(v) for k, v in progress.items()}


def progress_from_plain(data: dict | None) -> Progress:
    """Decode a stored progress object, dropping entries whose timestamp isn't numeric."""
    progress: Progress = {}
    for key, value in (data or {}).items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        progress[str(key)] = int(value)
    return progress


@dataclass
class QuizQuestion:
    q: str
    options: list[str]
    answer: int
    explanation: str = ""

    def to_dict(self) -> dict:
        return {"q": self.q, "options": list(self.options), "answer": self.answer, "explanation": self.explanation}

    @classmethod
    def from_dict(cls, data: dict) -> "QuizQuestion":
        return cls(
            q=data.get("q", ""),
            options=list(data.get("options", [])),
            answer=int(data.get("answer", 0)),
            explanation=data.get("explanation") or "",
        )


_BLOCK_PAYLOADS = ("text", "code", "diagram", "interactive_model", "hyperparameter_simulator", "triage_challenge")


@dataclass
class ContentBlock:
    id: str
    type: str
    text: Optional[str] = None
    code: Optional[str] = None
    quiz: Optional[QuizQuestion] = None
    diagram: Optional[str] = None
    interactive_model: Optional[dict] = None
    hyperparameter_simulator: Optional[dict] = None
    triage_challenge: Optional[dict] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "type": self.type}
        for name in _BLOCK_PAYLOADS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.quiz is not None:
            data["quiz"] = self.quiz.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ContentBlock":
        quiz = data.get("quiz")
        return cls(
            id=data.get("id") or new_id("block"),
            type=data.get("type", "text"),
            quiz=QuizQuestion.from_dict(quiz) if quiz else None,
            **{name: data.get(name) for name in _BLOCK_PAYLOADS},
        )


@dataclass
class ArticleData:
    objective: str = ""
    content_blocks: list[ContentBlock] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"objective": self.objective, "content_blocks": [b.to_dict() for b in self.content_blocks]}

    @classmethod
    def from_dict(cls, data: dict) -> "ArticleData":
        return cls(
            objective=data.get("objective", ""),
            content_blocks=[ContentBlock.from_dict(b) for b in data.get("content_blocks", [])],
        )


@dataclass
class QuizActivityData:
    description: str = ""
    questions: list[QuizQuestion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"description": self.description, "questions": [q.to_dict() for q in self.questions]}

    @classmethod
    def from_dict(cls, data: dict) -> "QuizActivityData":
        return cls(
            description=data.get("description", ""),
            questions=[QuizQuestion.from_dict(q) for q in data.get("questions", [])],
        )


@dataclass
class ProjectActivityData:
    description: str = ""
    code_stub: str = ""
    challenge: str = ""

    def to_dict(self) -> dict:
        return {"description": self.description, "code_stub": self.code_stub, "challenge": self.challenge}

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectActivityData":
        return cls(
            description=data.get("description", ""),
            code_stub=data.get("code_stub", ""),
            challenge=data.get("challenge", ""),
        )


SubtopicData = Union[ArticleData, QuizActivityData, ProjectActivityData]
SUBTOPIC_DATA_TYPES = {"article": ArticleData, "quiz": QuizActivityData, "project": ProjectActivityData}


@dataclass
class Subtopic:
    id: str
    type: str
    title: str
    data: SubtopicData
    notes: Optional[str] = None
    is_adaptive: bool = False

    @property
    def objective(self) -> str:
        return self.data.objective if isinstance(self.data, ArticleData) else ""

    def text_content(self) -> str:
        """Markdown of the article's text blocks, or the title for other kinds."""
        if isinstance(self.data, ArticleData) and self.data.content_blocks:
            return "\n\n".join(b.text for b in self.data.content_blocks if b.type == "text" and b.text)
        return self.title

    def to_dict(self) -> dict:
        data = {"id": self.id, "type": self.type, "title": self.title, "data": self.data.to_dict()}
        if self.notes is not None:
            data["notes"] = self.notes
        if self.is_adaptive:
            data["is_adaptive"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Subtopic":
        kind = data.get("type", "article")
        data_cls = SUBTOPIC_DATA_TYPES.get(kind, ArticleData)
        return cls(
            id=data.get("id") or new_id("subtopic"),
            type=kind,
            title=data.get("title", ""),
            data=data_cls.from_dict(data.get("data") or {}),
            notes=data.get("notes"),
            is_adaptive=bool(data.get("is_adaptive", False)),
        )


@dataclass
class Topic:
    id: str
    title: str
    subtopics: list[Subtopic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "subtopics": [s.to_dict() for s in self.subtopics]}

    @classmethod
    def from_dict(cls, data: dict) -> "Topic":
        # Topics saved before they carried ids get one on first load.
        return cls(
            id=data.get("id") or new_id("topic"),
            title=data.get("title", ""),
            subtopics=[Subtopic.from_dict(s) for s in data.get("subtopics", [])],
        )


@dataclass
class PathOverview:
    duration: str = ""
    total_topics: int = 0
    total_subtopics: int = 0
    key_features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "total_topics": self.total_topics,
            "total_subtopics": self.total_subtopics,
            "key_features": list(self.key_features),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "PathOverview":
        data = data or {}
        return cls(
            duration=data.get("duration", ""),
            total_topics=int(data.get("total_topics", 0)),
            total_subtopics=int(data.get("total_subtopics", 0)),
            key_features=list(data.get("key_features", [])),
        )


@dataclass
class InterviewQuestion:
    question: str
    answer: str


@dataclass
class InterviewQuestionSet:
    id: str
    timestamp: int
    difficulty: str
    question_count: int
    questions: list[InterviewQuestion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "difficulty": self.difficulty,
            "question_count": self.question_count,
            "questions": [{"question": q.question, "answer": q.answer} for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InterviewQuestionSet":
        questions = [InterviewQuestion(q["question"], q["answer"]) for q in data.get("questions", [])]
        return cls(
            id=data["id"],
            timestamp=int(data.get("timestamp", 0)),
            difficulty=data.get("difficulty", "beginner"),
            question_count=int(data.get("question_count", len(questions))),
            questions=questions,
        )


@dataclass
class Course:
    id: str
    title: str
    description: str = ""
    about: str = ""
    category: str = ""
    technologies: list[str] = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)
    knowledge_level: str = "beginner"
    progress: Progress = field(default_factory=dict)
    overview: PathOverview = field(default_factory=PathOverview)
    learning_outcomes: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    interview_question_sets: list[InterviewQuestionSet] = field(default_factory=list)
    learning_plan_id: Optional[str] = None
    day_in_plan: Optional[int] = None

    def subtopic_ids(self) -> list[str]:
        return [s.id for t in self.topics for s in t.subtopics]

    def find_topic(self, topic_id: str) -> Optional[Topic]:
        return next((t for t in self.topics if t.id == topic_id), None)

    def find_subtopic(self, subtopic_id: str) -> tuple[Optional[Topic], Optional[Subtopic]]:
        for topic in self.topics:
            for subtopic in topic.subtopics:
                if subtopic.id == subtopic_id:
                    return topic, subtopic
        return None, None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "about": self.about,
            "category": self.category,
            "technologies": list(self.technologies),
            "topics": [t.to_dict() for t in self.topics],
            "knowledge_level": self.knowledge_level,
            "progress": progress_to_plain(self.progress),
            "overview": self.overview.to_dict(),
            "learning_outcomes": list(self.learning_outcomes),
            "skills": list(self.skills),
            "interview_question_sets": [s.to_dict() for s in self.interview_question_sets],
            "learning_plan_id": self.learning_plan_id,
            "day_in_plan": self.day_in_plan,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            about=data.get("about", ""),
            category=data.get("category", ""),
            technologies=list(data.get("technologies", [])),
            topics=[Topic.from_dict(t) for t in data.get("topics", [])],
            knowledge_level=data.get("knowledge_level", "beginner"),
            progress=progress_from_plain(data.get("progress")),
            overview=PathOverview.from_dict(data.get("overview")),
            learning_outcomes=list(data.get("learning_outcomes", [])),
            skills=list(data.get("skills", [])),
            interview_question_sets=[InterviewQuestionSet.from_dict(s) for s in data.get("interview_question_sets", [])],
            learning_plan_id=data.get("learning_plan_id"),
            day_in_plan=data.get("day_in_plan"),
        )


@dataclass
class CourseRef:
    id: str
    title: str

    @classmethod
    def from_dict(cls, data: dict | None) -> Optional["CourseRef"]:
        return cls(id=data["id"], title=data.get("title", "")) if data else None


@dataclass
class ProjectStep:
    id: str
    title: str
    description: str = ""
    code_stub: str = ""
    challenge: str = ""


@dataclass
class Project:
    id: str
    title: str
    description: str = ""
    steps: list[ProjectStep] = field(default_factory=list)
    course: Optional[CourseRef] = None
    progress: Progress = field(default_factory=dict)

    def find_step(self, step_id: str) -> Optional[ProjectStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "steps": [vars(s).copy() for s in self.steps],
            "course": vars(self.course).copy() if self.course else None,
            "progress": progress_to_plain(self.progress),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            steps=[ProjectStep(**s) for s in data.get("steps", [])],
            course=CourseRef.from_dict(data.get("course")),
            progress=progress_from_plain(data.get("progress")),
        )


@dataclass
class Article:
    id: str
    title: str
    subtitle: str = ""
    blog_post: str = ""
    course: Optional[CourseRef] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "blog_post": self.blog_post,
            "course": vars(self.course).copy() if self.course else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Article":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            subtitle=data.get("subtitle", ""),
            blog_post=data.get("blog_post", ""),
            course=CourseRef.from_dict(data.get("course")),
        )


@dataclass
class Folder:
    id: str
    name: str
    course_ids: list[str] = field(default_factory=list)
    article_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        # Members are stored as id references only.
        return {
            "id": self.id,
            "name": self.name,
            "courses": [{"id": cid} for cid in self.course_ids],
            "articles": [{"id": aid} for aid in self.article_ids],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Folder":
        def ids(entries):
            return [e["id"] for e in entries or [] if isinstance(e, dict) and e.get("id")]

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            course_ids=ids(data.get("courses")),
            article_ids=ids(data.get("articles")),
        )


@dataclass
class Habit:
    id: str
    title: str
    goal: str = "daily"
    created_at: int = 0
    history: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Habit":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            goal=data.get("goal", "daily"),
            created_at=int(data.get("created_at", 0)),
            history={k: True for k, v in (data.get("history") or {}).items() if v},
        )


@dataclass
class LocalUser:
    id: str = "guest"
    name: str = "Guest"
    email: str = ""
    xp: int = 0
    level: int = 1
    achievements: list[str] = field(default_factory=list)
    habits: list[Habit] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "xp": self.xp,
            "level": self.level,
            "achievements": list(self.achievements),
            "habits": [vars(h).copy() for h in self.habits],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LocalUser":
        return cls(
            id=data.get("id", "guest"),
            name=data.get("name", "Guest"),
            email=data.get("email", ""),
            xp=int(data.get("xp", 0)),
            level=int(data.get("level", 1)),
            achievements=list(data.get("achievements", [])),
            habits=[Habit.from_dict(h) for h in data.get("habits") or []],
        )


@dataclass
class DailyTask:
    id: str
    day: int
    date: int
    course_id: str
    is_completed: bool = False


@dataclass
class LearningPlan:
    id: str
    title: str
    start_date: int
    duration: int
    daily_tasks: list[DailyTask] = field(default_factory=list)
    status: str = "active"
    folder_id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "start_date": self.start_date,
            "duration": self.duration,
            "daily_tasks": [vars(t).copy() for t in self.daily_tasks],
            "status": self.status,
            "folder_id": self.folder_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LearningPlan":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            start_date=int(data.get("start_date", 0)),
            duration=int(data.get("duration", 0)),
            daily_tasks=[DailyTask(**t) for t in data.get("daily_tasks", [])],
            status=data.get("status", "active"),
            folder_id=data.get("folder_id", ""),
        )


@dataclass
class TestResult:
    __test__ = False  # keep pytest from collecting it

    id: str
    topic: str
    difficulty: str
    score: float
    question_count: int
    timestamp: int


@dataclass
class ChatMessage:
    role: str
    content: str


@dataclass
class DailyQuest:
    title: str
    description: str
    xp: int
    completed: bool = False


@dataclass
class Flashcard:
    question: str
    answer: str


@dataclass
class Recommendation:
    topic: str
    reason: str


@dataclass
class CourseSource:
    type: str  # syllabus | url | pdf
    content: str
    filename: Optional[str] = None


@dataclass
class PracticeConcept:
    title: str
    description: str
    code_example: str


@dataclass
class PracticeSession:
    topic: str
    concepts: list[PracticeConcept] = field(default_factory=list)
    quiz: list[QuizQuestion] = field(default_factory=list)


@dataclass
class PlanDay:
    day: int
    title: str
    objective: str


@dataclass
class LearningPlanBreakdown:
    title: str
    duration: int
    days: list[PlanDay] = field(default_factory=list)


@dataclass
class BlogPostAndIdeas:
    title: str
    subtitle: str
    blog_post: str
    related_topics: list[str] = field(default_factory=list)
