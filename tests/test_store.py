"""Tests for the content store commands."""
import json
from datetime import date

import pytest

from learnai import storage
from learnai.db import dump_all
from learnai.errors import BackupImportError
from learnai.models import CourseSource, LocalUser
from learnai.store import CHAT_ERROR_REPLY, TUTOR_ERROR_REPLY, ContentStore
from learnai.tasks import DONE, ERROR

from conftest import make_course


def add_course(store, course=None):
    course = course or make_course()
    store.state.courses.append(course)
    store._commit()
    return course


# --- Courses ---

def test_generate_course_adds_course_and_achievements(store, fake_client):
    course = store.generate_course("Rust", "intermediate", source=CourseSource("syllabus", "Week 1"))
    assert course is not None
    assert store.state.courses == [course]
    assert course.knowledge_level == "intermediate"
    assert course.progress == {}
    assert "curiousMind" in store.state.user.achievements
    task = store.state.tracker.active
    assert task.status == DONE
    assert task.course_id == course.id
    assert storage.get_courses(store.db_path)[0].id == course.id


def test_generate_course_into_folder(store):
    folder = store.create_folder("Systems")
    course = store.generate_course("Rust", folder_id=folder.id)
    assert store.folder_courses(folder.id) == [course]
    assert store.uncategorized_courses() == []


def test_generate_course_failure_leaves_courses_unchanged(store, fake_client):
    add_course(store)
    fake_client.fail = True
    assert store.generate_course("Rust") is None
    assert len(store.state.courses) == 1
    assert store.state.tracker.active.status == ERROR
    assert "connection refused" in store.state.error


def test_fifth_course_unlocks_topic_explorer(store):
    for topic in ["A", "B", "C", "D"]:
        store.generate_course(topic)
    assert "topicExplorer" not in store.state.user.achievements
    store.generate_course("E")
    assert "topicExplorer" in store.state.user.achievements


def test_cancelled_course_generation_is_discarded(store, fake_client):
    def cancel_mid_call(name):
        store.cancel_task(store.state.tracker.active.id)

    fake_client.on_call = cancel_mid_call
    assert store.generate_course("Rust") is None
    assert store.state.courses == []
    assert store.state.tracker.all() == []


def test_bulk_generate_courses(store, fake_client):
    folder = store.create_folder("Batch")
    created = store.bulk_generate_courses(["Go", "Zig"], folder.id)
    assert [c.title for c in created] == ["Go Path", "Zig Path"]
    assert all(name == "generate_course" for name, _ in fake_client.calls)
    assert len(store.folder_courses(folder.id)) == 2


def test_select_course_remembers_last_active(store):
    course = add_course(store)
    store.select_course(course.id)
    assert store.active_course is course
    assert storage.get_last_active_course_id(store.db_path) == course.id
    assert store.up_next().title == "Pick Up Where You Left Off"


def test_delete_course_purges_folders_and_plan_tasks(store):
    plan = store.create_learning_plan("Go", 3)
    doomed = plan.daily_tasks[0].course_id
    store.delete_course(doomed)
    assert store.get_course(doomed) is None
    assert all(doomed not in f.course_ids for f in store.state.folders)
    assert all(t.course_id != doomed for t in store.get_plan(plan.id).daily_tasks)


def test_toggle_subtopic_awards_xp_and_levels_up(store):
    course = add_course(store)
    store.state.user.xp = 450
    sub_id = course.subtopic_ids()[0]
    store.toggle_subtopic_complete(course.id, sub_id)
    assert store.state.user.level == 2
    assert store.state.user.xp == 50
    assert sub_id in course.progress
    assert "firstSteps" in store.state.user.achievements


def test_uncompleting_keeps_xp(store):
    course = add_course(store)
    sub_id = course.subtopic_ids()[0]
    store.toggle_subtopic_complete(course.id, sub_id)
    store.toggle_subtopic_complete(course.id, sub_id)
    assert sub_id not in course.progress
    assert store.state.user.xp == 100


def test_toggle_unknown_unit_is_ignored(store):
    course = add_course(store)
    store.toggle_subtopic_complete(course.id, "nope")
    assert course.progress == {}
    assert store.state.user.xp == 0


def test_reaching_level_five_unlocks_dedicated_learner(store):
    store.state.user.level = 4
    store.award_xp(2000)
    assert store.state.user.level == 5
    assert "dedicatedLearner" in store.state.user.achievements


def test_achievements_unlock_once(store):
    assert store.unlock_achievement("quizMaster") is True
    assert store.unlock_achievement("quizMaster") is False
    assert store.state.user.achievements.count("quizMaster") == 1


def test_unknown_achievement_raises(store):
    with pytest.raises(ValueError):
        store.unlock_achievement("bestEver")


def test_save_note_and_diagram(store):
    course = add_course(store)
    subtopic = course.topics[0].subtopics[0]
    diagram_block = subtopic.data.content_blocks[1]
    store.save_subtopic_note(course.id, subtopic.id, "remember this")
    store.update_content_block(course.id, subtopic.id, diagram_block.id, "graph LR; X-->Y")
    reloaded = storage.get_courses(store.db_path)[0]
    _, saved = reloaded.find_subtopic(subtopic.id)
    assert saved.notes == "remember this"
    assert saved.data.content_blocks[1].diagram == "graph LR; X-->Y"


def test_expand_topic_splices_after_anchor(store):
    course = add_course(store, make_course(outline={"T": ["A", "B"]}))
    topic = course.topics[0]
    anchor = topic.subtopics[0]
    assert store.expand_topic(course.id, topic.id, anchor.id, "go deeper") is True
    titles = [s.title for s in topic.subtopics]
    assert titles == ["A", "Deeper A", "Deeper B", "B"]
    assert all(s.is_adaptive for s in topic.subtopics[1:3])
    assert store.state.tracker.active.type == "topic_expansion"


def test_expand_topic_failure_changes_nothing(store, fake_client):
    course = add_course(store, make_course(outline={"T": ["A", "B"]}))
    topic = course.topics[0]
    fake_client.fail = True
    assert store.expand_topic(course.id, topic.id, topic.subtopics[0].id, "more") is False
    assert [s.title for s in topic.subtopics] == ["A", "B"]
    assert store.state.tracker.active.status == ERROR


def test_expand_unknown_topic_returns_false(store, fake_client):
    course = add_course(store)
    assert store.expand_topic(course.id, "nope", "nope", "more") is False
    assert fake_client.calls == []


def test_insert_remedial_subtopic(store):
    course = add_course(store, make_course(outline={"T": ["Hard", "Next"]}))
    hard = course.topics[0].subtopics[0]
    assert store.insert_remedial_subtopic(course.id, hard.id) is True
    assert [s.title for s in course.topics[0].subtopics] == ["Hard", "Hard, simply", "Next"]


def test_move_course_between_folders(store):
    course = add_course(store)
    a = store.create_folder("A")
    b = store.create_folder("B")
    store.move_course_to_folder(course.id, a.id)
    store.move_course_to_folder(course.id, b.id)
    assert a.course_ids == []
    assert b.course_ids == [course.id]
    store.move_course_to_folder(course.id, None)
    assert store.uncategorized_courses() == [course]


# --- Folders ---

def test_delete_folder_uncategorizes_members(store):
    course = add_course(store)
    folder = store.create_folder("Temp")
    store.move_course_to_folder(course.id, folder.id)
    store.delete_folder(folder.id)
    assert store.state.folders == []
    assert store.state.courses == [course]
    assert store.uncategorized_courses() == [course]


def test_rename_folder_persists(store):
    folder = store.create_folder("Old")
    store.rename_folder(folder.id, "New")
    assert storage.get_folders(store.db_path)[0].name == "New"


# --- Articles ---

def test_generate_article_opens_ideas_session(store):
    folder = store.create_folder("Reading")
    article = store.generate_article("Closures", folder.id)
    assert store.folder_articles(folder.id) == [article]
    task = store.state.tracker.active
    assert task.article_ids == [article.id]
    session = store.state.sessions["article_ideas"]
    assert session.is_open
    assert session.result == ["Closures advanced", "Closures history"]


def test_bulk_generate_articles_keeps_partial_results(store, fake_client):
    calls = {"n": 0}

    def fail_on_second_article(name):
        if name == "generate_blog_post_and_ideas":
            calls["n"] += 1
            fake_client.fail = calls["n"] == 2

    fake_client.on_call = fail_on_second_article
    created = store.bulk_generate_articles("Topic one\nTopic two\nTopic three")
    assert [a.title for a in created] == ["All about Topic one"]
    assert store.state.articles == created
    assert store.state.tracker.active.status == ERROR


def test_bulk_generate_articles_success(store):
    created = store.bulk_generate_articles("First\nSecond")
    task = store.state.tracker.active
    assert len(created) == 2
    assert task.status == DONE
    assert task.message == "All articles generated successfully!"
    assert task.article_ids == [a.id for a in created]


def test_delete_article_purges_folders(store):
    folder = store.create_folder("Reading")
    article = store.generate_article("Closures", folder.id)
    store.delete_article(article.id)
    assert store.state.articles == []
    assert folder.article_ids == []


# --- Projects ---

def test_generate_project_links_course(store):
    course = add_course(store)
    project = store.generate_project(course.id, course.subtopic_ids()[0])
    assert project.course.id == course.id
    assert "projectStarter" in store.state.user.achievements
    store.toggle_project_step_complete(project.id, project.steps[0].id)
    assert project.steps[0].id in project.progress
    store.toggle_project_step_complete(project.id, project.steps[0].id)
    assert project.progress == {}


# --- Learning plans ---

def test_create_learning_plan(store):
    plan = store.create_learning_plan("Go", 3)
    assert plan.duration == 3
    assert [t.day for t in plan.daily_tasks] == [1, 2, 3]
    assert len(store.state.courses) == 3
    folder = store.get_folder(plan.folder_id)
    assert folder.name == plan.title
    assert folder.course_ids == [t.course_id for t in plan.daily_tasks]
    assert store.state.tracker.active.plan_id == plan.id


def test_plan_completes_when_all_tasks_done(store):
    plan = store.create_learning_plan("Go", 2)
    for task in plan.daily_tasks:
        store.toggle_plan_task_complete(plan.id, task.id)
    assert plan.status == "completed"
    store.toggle_plan_task_complete(plan.id, plan.daily_tasks[0].id)
    assert plan.status == "active"


def test_reschedule_plan_task(store):
    plan = store.create_learning_plan("Go", 2)
    task = plan.daily_tasks[1]
    store.reschedule_plan_task(plan.id, task.id, date(2030, 1, 15))
    assert date.fromtimestamp(task.date / 1000) == date(2030, 1, 15)


def test_delete_plan_task_removes_its_course(store):
    plan = store.create_learning_plan("Go", 3)
    task = plan.daily_tasks[0]
    store.delete_plan_task(plan.id, task.id)
    assert len(plan.daily_tasks) == 2
    assert store.get_course(task.course_id) is None


def test_delete_plan_removes_its_courses(store):
    other = add_course(store)
    plan = store.create_learning_plan("Go", 3)
    store.delete_plan(plan.id)
    assert store.state.learning_plans == []
    assert store.state.courses == [other]


# --- Habits ---

def test_habit_toggle_and_delete(store):
    habit = store.add_habit("Read 20 minutes")
    store.toggle_habit(habit.id, "2024-05-01")
    assert habit.history == {"2024-05-01": True}
    store.toggle_habit(habit.id, "2024-05-01")
    assert habit.history == {}
    store.delete_habit(habit.id)
    assert store.state.user.habits == []


# --- Chat ---

def test_send_chat_message(store, fake_client):
    reply = store.send_chat_message("hello")
    assert reply == "You said: hello"
    assert [m.role for m in store.state.chat_history] == ["user", "model"]
    assert len(storage.get_chat_history(store.db_path)) == 2


def test_chat_failure_appends_error_reply(store, fake_client):
    fake_client.fail = True
    assert store.send_chat_message("hello") == CHAT_ERROR_REPLY
    assert store.state.chat_history[-1].content == CHAT_ERROR_REPLY
    store.clear_chat_history()
    assert store.state.chat_history == []


# --- Feature sessions ---

def test_story_session(store):
    session = store.show_story("Recursion")
    assert session.result == "Once upon a time, Recursion."
    assert store.state.sessions["story"].is_open


def test_session_failure_sets_error(store, fake_client):
    fake_client.fail = True
    session = store.show_analogy("Recursion")
    assert session.error
    assert session.result is None


def test_understanding_check_toggles_subtopic(store):
    course = add_course(store)
    sub_id = course.subtopic_ids()[0]
    store.check_understanding(course.id, sub_id)
    assert store.submit_understanding_check([1, 2]) == (1, 2)
    assert sub_id in course.progress
    assert store.state.sessions["understanding_check"].is_open is False


def test_practice_quiz_records_result(store):
    store.start_practice_quiz("SQL", "beginner")
    result = store.submit_practice_quiz([1, 0])
    assert result.score == 1.0
    assert "quizMaster" in store.state.user.achievements
    assert storage.get_test_results(store.db_path)[0].id == result.id
    recs = store.state.sessions["practice_quiz"].context["recommendations"]
    assert recs[0].topic == "SQL next steps"
    assert store.profile_stats()["avg_quiz_score"] == 100.0


def test_article_tutor_greets_and_answers(store, fake_client):
    article = store.generate_article("Closures")
    session = store.open_article_tutor(article.id)
    assert session.result[0].content.startswith("Hello!")
    assert store.send_article_tutor_message("why?") == "You said: why?"
    context = fake_client.calls[-1][1][2]
    assert article.title in context
    fake_client.fail = True
    assert store.send_article_tutor_message("again?") == TUTOR_ERROR_REPLY


def test_interview_questions_accumulate(store, fake_client):
    course = add_course(store)
    store.start_interview_prep(course.id)
    first = store.generate_interview_questions(course.id, "beginner", 2)
    second = store.generate_interview_questions(course.id, "advanced", 2)
    assert first.id.startswith("set_")
    assert len(course.interview_question_sets) == 2
    existing = fake_client.calls[-1][1][3]
    assert existing == ["Question 0?", "Question 1?"]
    assert second.questions[0].question == "Question 2?"
    elaborated = store.elaborate_answer(course.id, first.id, 0)
    assert first.questions[0].answer == elaborated


def test_mind_map(store):
    course = add_course(store, make_course(outline={"T": ["A"]}))
    tree = store.mind_map(course.id)
    assert tree["title"] == course.title
    assert tree["children"][0]["children"][0]["title"] == "A"


# --- Gamification ---

def test_daily_quest_is_cached(store, fake_client):
    today = date(2024, 6, 1)
    store.load_daily_quest(today)
    store.load_daily_quest(today)
    assert [name for name, _ in fake_client.calls] == ["generate_daily_quest"]
    store.complete_daily_quest(today)
    assert store.state.daily_quest.completed
    assert store.state.user.xp == 50
    assert storage.get_daily_quest(store.db_path, today).completed


def test_daily_quest_failure_returns_none(store, fake_client):
    fake_client.fail = True
    assert store.load_daily_quest(date(2024, 6, 1)) is None


# --- Plumbing and backup ---

def test_subscribers_are_notified(store):
    seen = []
    unsubscribe = store.subscribe(lambda state: seen.append(len(state.folders)))
    store.create_folder("One")
    unsubscribe()
    store.create_folder("Two")
    assert seen == [1]


def test_state_survives_reload(store, tmp_db, fake_client):
    course = store.generate_course("Rust")
    store.create_folder("Kept")
    again = ContentStore(tmp_db, fake_client)
    assert [c.id for c in again.state.courses] == [course.id]
    assert [f.name for f in again.state.folders] == ["Kept"]


def test_store_opens_on_unreadable_database(tmp_path, fake_client):
    bad = tmp_path / "bad.db"
    bad.write_bytes(b"garbage" * 200)
    opened = ContentStore(str(bad), fake_client)
    assert opened.state.courses == []
    assert opened.state.user == LocalUser()
    assert opened.state.last_active_course_id is None


def test_backup_round_trip(store):
    course = store.generate_course("Rust")
    exported = store.export_backup()
    store.reset()
    assert store.state.courses == []
    assert store.state.user == LocalUser()
    store.import_backup(exported)
    assert [c.id for c in store.state.courses] == [course.id]
    assert "curiousMind" in store.state.user.achievements


def test_bad_backup_keeps_state(store):
    store.generate_course("Rust")
    before = dump_all(store.db_path)
    with pytest.raises(BackupImportError):
        store.import_backup(json.dumps({"courses": "[]"}))
    assert dump_all(store.db_path) == before
    assert len(store.state.courses) == 1
