"""Quiz scoring for practice quizzes and understanding checks."""
from typing import Optional

from learnai.models import QuizQuestion, TestResult, new_id, now_ms


def is_correct(question: QuizQuestion, answer: Optional[int]) -> bool:
    return answer is not None and answer == question.answer


def score_answers(questions: list[QuizQuestion], answers: list[Optional[int]]) -> tuple[int, int]:
    """Return (correct, total). Missing answers count as wrong."""
    padded = list(answers) + [None] * (len(questions) - len(answers))
    correct = sum(1 for q, a in zip(questions, padded) if is_correct(q, a))
    return correct, len(questions)


def build_test_result(topic: str, difficulty: str, questions: list[QuizQuestion], answers: list[Optional[int]]) -> TestResult:
    correct, total = score_answers(questions, answers)
    return TestResult(
        id=new_id("test"),
        topic=topic,
        difficulty=difficulty,
        score=correct / total if total else 0.0,
        question_count=total,
        timestamp=now_ms(),
    )


def get_quiz_score(results: list[TestResult]) -> float:
    """Average score over results as a percentage."""
    if not results:
        return 0.0
    return round(sum(r.score for r in results) / len(results) * 100, 1)


def topic_history(results: list[TestResult], topic: str) -> list[TestResult]:
    wanted = topic.strip().lower()
    return [r for r in results if r.topic.strip().lower() == wanted]
