"""Shape contracts for structured model responses."""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, conint, conlist, model_validator
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    # Models answer in camelCase, matching the prompt wording.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuizItem(_Schema):
    q: str
    options: conlist(str, min_length=2, max_length=6)
    answer: conint(ge=0)
    explanation: str = ""

    @model_validator(mode="after")
    def _answer_in_range(self):
        if self.answer >= len(self.options):
            raise ValueError("answer must index into options")
        return self


class Layer(_Schema):
    type: Literal["input", "hidden", "output"]
    neurons: conint(ge=1)
    activation: Optional[Literal["relu", "sigmoid", "tanh"]] = None


class InteractiveModel(_Schema):
    title: str
    description: str
    layers: list[Layer]
    sample_input: list[float]
    expected_output: list[float]


class ParameterOption(_Schema):
    label: str
    description: str = ""


class Parameter(_Schema):
    name: str
    options: list[ParameterOption]


class Outcome(_Schema):
    training_loss: list[float]
    validation_loss: list[float]
    description: str = ""


class OutcomeEntry(_Schema):
    combination: str
    result: Outcome


class HyperparameterSimulator(_Schema):
    title: str
    description: str
    parameters: list[Parameter]
    outcomes: list[OutcomeEntry]


class TriageOption(_Schema):
    title: str
    description: str = ""


class TriageChallenge(_Schema):
    scenario: str
    evidence: str
    options: conlist(TriageOption, min_length=2)
    correct_option_index: conint(ge=0)
    explanation: str


class TextBlock(_Schema):
    type: Literal["text"]
    text: str


class CodeBlock(_Schema):
    type: Literal["code"]
    code: str


class QuizBlock(_Schema):
    type: Literal["quiz"]
    quiz: QuizItem


class DiagramBlock(_Schema):
    type: Literal["diagram"]
    diagram: str


class InteractiveModelBlock(_Schema):
    type: Literal["interactiveModel"]
    interactive_model: InteractiveModel


class HyperparameterSimulatorBlock(_Schema):
    type: Literal["hyperparameterSimulator"]
    hyperparameter_simulator: HyperparameterSimulator


class TriageChallengeBlock(_Schema):
    type: Literal["triageChallenge"]
    triage_challenge: TriageChallenge


ContentBlockSchema = Annotated[
    Union[
        TextBlock, CodeBlock, QuizBlock, DiagramBlock,
        InteractiveModelBlock, HyperparameterSimulatorBlock, TriageChallengeBlock,
    ],
    Field(discriminator="type"),
]


class ArticleDataSchema(_Schema):
    objective: str = ""
    content_blocks: list[ContentBlockSchema] = []


class QuizActivitySchema(_Schema):
    description: str = ""
    questions: list[QuizItem] = []


class ProjectActivitySchema(_Schema):
    description: str = ""
    code_stub: str = ""
    challenge: str = ""


class ArticleSubtopic(_Schema):
    type: Literal["article"]
    title: str
    data: ArticleDataSchema


class QuizSubtopic(_Schema):
    type: Literal["quiz"]
    title: str
    data: QuizActivitySchema


class ProjectSubtopic(_Schema):
    type: Literal["project"]
    title: str
    data: ProjectActivitySchema


SubtopicSchema = Annotated[
    Union[ArticleSubtopic, QuizSubtopic, ProjectSubtopic],
    Field(discriminator="type"),
]


class TopicSchema(_Schema):
    title: str
    subtopics: list[SubtopicSchema]


class OverviewSchema(_Schema):
    duration: str = ""
    total_topics: int = 0
    total_subtopics: int = 0
    key_features: list[str] = []


class CourseSchema(_Schema):
    title: str = Field(min_length=1)
    description: str = ""
    about: str = ""
    category: str = ""
    technologies: list[str] = []
    learning_outcomes: list[str] = []
    skills: list[str] = []
    overview: OverviewSchema = Field(default_factory=OverviewSchema)
    topics: conlist(TopicSchema, min_length=1)


class BlogPostSchema(_Schema):
    title: str
    subtitle: str = ""
    blog_post: str
    related_topics: list[str] = []


class FlashcardSchema(_Schema):
    question: str
    answer: str


class PracticeConceptSchema(_Schema):
    title: str
    description: str
    code_example: str = ""


class PracticeSessionSchema(_Schema):
    topic: str
    concepts: list[PracticeConceptSchema]
    quiz: list[QuizItem]


class ProjectStepSchema(_Schema):
    title: str
    description: str
    code_stub: str = ""
    challenge: str = ""


class ProjectSchema(_Schema):
    title: str
    description: str
    steps: conlist(ProjectStepSchema, min_length=1)


class PlanDaySchema(_Schema):
    day: conint(ge=1)
    title: str
    objective: str = ""


class LearningPlanSchema(_Schema):
    plan_title: str
    optimal_duration: conint(ge=1, le=365)
    daily_breakdown: list[PlanDaySchema]


class RecommendationSchema(_Schema):
    topic: str
    reason: str


class InterviewQuestionSchema(_Schema):
    question: str
    answer: str


class DailyQuestSchema(_Schema):
    title: str
    description: str
    xp: conint(ge=0)
