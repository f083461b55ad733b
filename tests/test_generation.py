"""Tests for the generation client, with the HTTP call patched out."""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from learnai.config import Settings
from learnai.errors import GenerationCallError, GenerationErrorCategory, MalformedGenerationError
from learnai.generation import GenerationClient, call_llm, parse_json_loose
from learnai.models import ChatMessage, CourseSource, Subtopic

from conftest import make_course

SETTINGS = Settings(ollama_host="http://ollama.test", ollama_model="test-model", request_timeout=5)

COURSE_JSON = {
    "title": "Intro to SQL",
    "description": "Query data",
    "category": "Databases",
    "overview": {"duration": "2 weeks", "totalTopics": 9, "totalSubtopics": 99, "keyFeatures": ["Hands-on"]},
    "topics": [
        {
            "title": "Basics",
            "subtopics": [
                {
                    "type": "article",
                    "title": "SELECT",
                    "data": {
                        "objective": "Read rows",
                        "contentBlocks": [
                            {"type": "text", "text": "SELECT picks columns."},
                            {"type": "code", "code": "SELECT * FROM t;"},
                            {"type": "quiz", "quiz": {"q": "Keyword?", "options": ["GET", "SELECT"], "answer": 1}},
                        ],
                    },
                },
                {
                    "type": "quiz",
                    "title": "Check",
                    "data": {"description": "Quick", "questions": [{"q": "?", "options": ["a", "b"], "answer": 0}]},
                },
            ],
        },
    ],
}


def ollama_response(text):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"response": text}
    return response


def test_call_llm_posts_to_generate_endpoint():
    with patch("learnai.generation.requests.post", return_value=ollama_response("hi")) as post:
        assert call_llm("Hello", settings=SETTINGS, system="Be brief") == "hi"
    url = post.call_args.args[0]
    payload = post.call_args.kwargs["json"]
    assert url == "http://ollama.test/api/generate"
    assert payload["model"] == "test-model"
    assert payload["stream"] is False
    assert payload["system"] == "Be brief"
    assert post.call_args.kwargs["timeout"] == 5


def test_call_llm_wraps_request_errors():
    with patch("learnai.generation.requests.post", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(GenerationCallError) as exc:
            call_llm("Hello", settings=SETTINGS)
    assert exc.value.category == GenerationErrorCategory.CALL_FAILURE


def test_call_llm_wraps_http_errors():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    with patch("learnai.generation.requests.post", return_value=response):
        with pytest.raises(GenerationCallError):
            call_llm("Hello", settings=SETTINGS)


def test_parse_json_loose_plain():
    assert parse_json_loose('{"a": 1}') == {"a": 1}


def test_parse_json_loose_fenced():
    assert parse_json_loose('```json\n["x", "y"]\n```') == ["x", "y"]


def test_parse_json_loose_with_prose():
    assert parse_json_loose('Sure! Here it is: {"a": [1, 2]} Hope that helps.') == {"a": [1, 2]}


def test_parse_json_loose_rejects_prose():
    with pytest.raises(ValueError):
        parse_json_loose("I cannot help with that.")


def test_generate_course_builds_records():
    client = GenerationClient(SETTINGS)
    with patch("learnai.generation.requests.post", return_value=ollama_response(json.dumps(COURSE_JSON))):
        course = client.generate_course("SQL", "beginner", source=CourseSource(type="syllabus", content="Week 1"))
    assert course.title == "Intro to SQL"
    assert course.progress == {}
    assert course.overview.total_topics == 1
    assert course.overview.total_subtopics == 2
    article, check = course.topics[0].subtopics
    blocks = article.data.content_blocks
    assert [b.type for b in blocks] == ["text", "code", "quiz"]
    assert blocks[2].quiz.answer == 1
    assert len({b.id for b in blocks}) == 3
    assert check.data.questions[0].options == ["a", "b"]


def test_generate_course_sends_source_material():
    client = GenerationClient(SETTINGS)
    with patch("learnai.generation.requests.post", return_value=ollama_response(json.dumps(COURSE_JSON))) as post:
        client.generate_course("SQL", source=CourseSource(type="syllabus", content="Week 1: Joins"))
    assert "Week 1: Joins" in post.call_args.kwargs["json"]["prompt"]


def test_malformed_course_raises():
    client = GenerationClient(SETTINGS)
    with patch("learnai.generation.requests.post", return_value=ollama_response("no json here")):
        with pytest.raises(MalformedGenerationError) as exc:
            client.generate_course("SQL")
    assert exc.value.category == GenerationErrorCategory.MALFORMED_RESPONSE


def test_course_without_topics_is_malformed():
    client = GenerationClient(SETTINGS)
    with patch("learnai.generation.requests.post", return_value=ollama_response('{"title": "Empty", "topics": []}')):
        with pytest.raises(MalformedGenerationError):
            client.generate_course("SQL")


def test_quiz_answer_out_of_range_is_malformed():
    client = GenerationClient(SETTINGS)
    bad = json.dumps([{"q": "?", "options": ["a", "b"], "answer": 5}])
    with patch("learnai.generation.requests.post", return_value=ollama_response(bad)):
        with pytest.raises(MalformedGenerationError):
            client.generate_assessment_quiz("SQL", "beginner")


def test_follow_up_subtopics_are_adaptive():
    client = GenerationClient(SETTINGS)
    course = make_course()
    topic = course.topics[0]
    payload = json.dumps([COURSE_JSON["topics"][0]["subtopics"][0]])
    with patch("learnai.generation.requests.post", return_value=ollama_response(payload)):
        subtopics = client.generate_follow_up_subtopics(course, topic, topic.subtopics[0], "more on joins")
    assert len(subtopics) == 1
    assert isinstance(subtopics[0], Subtopic)
    assert subtopics[0].is_adaptive


def test_learning_plan_days_are_sorted():
    client = GenerationClient(SETTINGS)
    payload = json.dumps({
        "planTitle": "Go in 2 days",
        "optimalDuration": 2,
        "dailyBreakdown": [{"day": 2, "title": "Second"}, {"day": 1, "title": "First"}],
    })
    with patch("learnai.generation.requests.post", return_value=ollama_response(payload)):
        plan = client.generate_learning_plan("Go")
    assert plan.title == "Go in 2 days"
    assert plan.duration == 2
    assert [d.title for d in plan.days] == ["First", "Second"]


def test_interview_questions_skip_existing():
    client = GenerationClient(SETTINGS)
    payload = json.dumps([
        {"question": "What is a JOIN?", "answer": "Combines rows"},
        {"question": "What is an index?", "answer": "Speeds lookups"},
    ])
    with patch("learnai.generation.requests.post", return_value=ollama_response(payload)):
        questions = client.generate_interview_questions("SQL", "beginner", 2, existing=["what is a join?"])
    assert [q.question for q in questions] == ["What is an index?"]


def test_empty_text_response_is_malformed():
    client = GenerationClient(SETTINGS)
    with patch("learnai.generation.requests.post", return_value=ollama_response("   ")):
        with pytest.raises(MalformedGenerationError):
            client.generate_story("Recursion")


def test_chat_response_includes_history_and_context():
    client = GenerationClient(SETTINGS)
    history = [ChatMessage("user", "Hi"), ChatMessage("model", "Hello!")]
    with patch("learnai.generation.requests.post", return_value=ollama_response("Sure.")) as post:
        reply = client.generate_chat_response(history, "Explain joins", context="Article about SQL")
    payload = post.call_args.kwargs["json"]
    assert reply == "Sure."
    assert "User: Hi\nAssistant: Hello!\nUser: Explain joins" in payload["prompt"]
    assert "Article about SQL" in payload["system"]
