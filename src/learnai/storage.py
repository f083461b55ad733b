"""Local persistence of learning collections in the key-value store."""
import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, TypeVar

from learnai.db import delete_value, get_connection, get_value, set_value
from learnai.errors import BackupImportError
from learnai.models import (
    Article, ChatMessage, Course, DailyQuest, Folder, LearningPlan, LocalUser,
    Project, TestResult, now_ms,
)

logger = logging.getLogger(__name__)

COURSES_KEY = "learnai:courses"
FOLDERS_KEY = "learnai:folders"
PROJECTS_KEY = "learnai:projects"
ARTICLES_KEY = "learnai:articles"
GUEST_USER_PROFILE_KEY = "learnai:guest_user_profile"
LEARNING_PLANS_KEY = "learnai:learning_plans"
CHAT_HISTORY_KEY = "learnai:chat_history"
TEST_RESULTS_KEY = "learnai:test_results"
THEME_KEY = "learnai:theme"
LAST_ACTIVE_COURSE_KEY = "learnai:last_active_course"
QUEST_KEY = "learnai:quest"
QUEST_DATE_KEY = "learnai:quest_date"

# Errors raised while decoding a stored JSON value into domain records.
DECODE_ERRORS = (ValueError, TypeError, KeyError, AttributeError)

BACKUP_VERSION = "1.3"

# Backup field name -> storage key. Order is the order fields appear in an export.
BACKUP_FIELDS = {
    "courses": COURSES_KEY,
    "folders": FOLDERS_KEY,
    "projects": PROJECTS_KEY,
    "articles": ARTICLES_KEY,
    "guestUserProfile": GUEST_USER_PROFILE_KEY,
    "chatHistory": CHAT_HISTORY_KEY,
    "testResults": TEST_RESULTS_KEY,
    "learningPlans": LEARNING_PLANS_KEY,
}
REQUIRED_BACKUP_FIELDS = ("courses", "folders", "projects")
LEARNING_DATA_KEYS = tuple(BACKUP_FIELDS.values())

T = TypeVar("T")


@dataclass
class Snapshot:
    """Everything the content store keeps durable, as loaded from storage."""
    courses: list[Course] = field(default_factory=list)
    folders: list[Folder] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    articles: list[Article] = field(default_factory=list)
    user: LocalUser = field(default_factory=LocalUser)
    learning_plans: list[LearningPlan] = field(default_factory=list)
    chat_history: list[ChatMessage] = field(default_factory=list)


def _read(db_path: str, key: str, default: Optional[str] = None) -> Optional[str]:
    try:
        return get_value(db_path, key, default)
    except sqlite3.Error:
        logger.exception("Failed to read %s from %s", key, db_path)
        return default


def _load_list(db_path: str, key: str, decode: Callable[[dict], T]) -> list[T]:
    raw = _read(db_path, key)
    if not raw:
        return []
    try:
        return [decode(item) for item in json.loads(raw)]
    except DECODE_ERRORS:
        logger.exception("Failed to load %s, starting with an empty collection", key)
        return []


def _save(db_path: str, key: str, payload) -> None:
    try:
        set_value(db_path, key, json.dumps(payload))
    except Exception:
        logger.exception("Failed to save %s", key)


# --- Courses, projects, articles ---

def get_courses(db_path: str) -> list[Course]:
    return _load_list(db_path, COURSES_KEY, Course.from_dict)


def save_courses(db_path: str, courses: list[Course]) -> None:
    _save(db_path, COURSES_KEY, [c.to_dict() for c in courses])


def get_projects(db_path: str) -> list[Project]:
    return _load_list(db_path, PROJECTS_KEY, Project.from_dict)


def save_projects(db_path: str, projects: list[Project]) -> None:
    _save(db_path, PROJECTS_KEY, [p.to_dict() for p in projects])


def get_articles(db_path: str) -> list[Article]:
    return _load_list(db_path, ARTICLES_KEY, Article.from_dict)


def save_articles(db_path: str, articles: list[Article]) -> None:
    _save(db_path, ARTICLES_KEY, [a.to_dict() for a in articles])


# --- Folders ---

def get_folders(db_path: str) -> list[Folder]:
    """Folders with member id lists, not yet checked against the collections."""
    return _load_list(db_path, FOLDERS_KEY, Folder.from_dict)


def save_folders(db_path: str, folders: list[Folder]) -> None:
    _save(db_path, FOLDERS_KEY, [f.to_dict() for f in folders])


def resolve_folders(folders: list[Folder], courses: list[Course], articles: list[Article]) -> list[Folder]:
    """Drop folder members that no longer point at a loaded course or article."""
    course_ids = {c.id for c in courses}
    article_ids = {a.id for a in articles}
    resolved = []
    for folder in folders:
        kept_courses = [cid for cid in folder.course_ids if cid in course_ids]
        kept_articles = [aid for aid in folder.article_ids if aid in article_ids]
        dropped = (len(folder.course_ids) - len(kept_courses)) + (len(folder.article_ids) - len(kept_articles))
        if dropped:
            logger.warning("Folder %s referenced %d missing item(s); dropping them", folder.id, dropped)
        resolved.append(Folder(id=folder.id, name=folder.name, course_ids=kept_courses, article_ids=kept_articles))
    return resolved


# --- Guest profile ---

def _read_profile_dict(db_path: str) -> Optional[dict]:
    raw = _read(db_path, GUEST_USER_PROFILE_KEY)
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        logger.exception("Failed to load guest user profile")
        return None
    return data if isinstance(data, dict) else None


def get_guest_user_profile(db_path: str) -> Optional[LocalUser]:
    data = _read_profile_dict(db_path)
    if data is None:
        return None
    try:
        return LocalUser.from_dict(data)
    except DECODE_ERRORS:
        logger.exception("Guest user profile is malformed")
        return None


def save_guest_user_profile(db_path: str, user: LocalUser) -> None:
    _save(db_path, GUEST_USER_PROFILE_KEY, user.to_dict())


# --- Learning plans ---

def get_learning_plans(db_path: str) -> list[LearningPlan]:
    return _load_list(db_path, LEARNING_PLANS_KEY, LearningPlan.from_dict)


def save_learning_plans(db_path: str, plans: list[LearningPlan]) -> None:
    _save(db_path, LEARNING_PLANS_KEY, [p.to_dict() for p in plans])


# --- Chat history ---

def get_chat_history(db_path: str) -> list[ChatMessage]:
    return _load_list(db_path, CHAT_HISTORY_KEY, lambda m: ChatMessage(role=m["role"], content=m["content"]))


def save_chat_history(db_path: str, history: list[ChatMessage]) -> None:
    _save(db_path, CHAT_HISTORY_KEY, [vars(m).copy() for m in history])


# --- Test results ---

def get_test_results(db_path: str) -> list[TestResult]:
    return _load_list(db_path, TEST_RESULTS_KEY, lambda r: TestResult(**r))


def save_test_result(db_path: str, result: TestResult) -> None:
    """Prepend a result so the newest comes first."""
    results = [result] + get_test_results(db_path)
    _save(db_path, TEST_RESULTS_KEY, [vars(r).copy() for r in results])


# --- Small settings ---

def get_last_active_course_id(db_path: str) -> str | None:
    return _read(db_path, LAST_ACTIVE_COURSE_KEY)


def set_last_active_course_id(db_path: str, course_id: str) -> None:
    set_value(db_path, LAST_ACTIVE_COURSE_KEY, course_id)


def get_theme(db_path: str) -> str:
    return _read(db_path, THEME_KEY, "dark")


def set_theme(db_path: str, theme: str) -> None:
    set_value(db_path, THEME_KEY, theme)


def get_daily_quest(db_path: str, today: date | None = None) -> Optional[DailyQuest]:
    """Return today's cached quest, or None when it's missing or was issued on another day."""
    today = today or date.today()
    if _read(db_path, QUEST_DATE_KEY) != today.isoformat():
        return None
    raw = _read(db_path, QUEST_KEY)
    if not raw:
        return None
    try:
        return DailyQuest(**json.loads(raw))
    except DECODE_ERRORS:
        logger.exception("Cached daily quest is malformed")
        return None


def set_daily_quest(db_path: str, quest: DailyQuest, today: date | None = None) -> None:
    today = today or date.today()
    set_value(db_path, QUEST_KEY, json.dumps(vars(quest)))
    set_value(db_path, QUEST_DATE_KEY, today.isoformat())


# --- Snapshot ---

def _migrate_legacy_profile(db_path: str, snapshot: Snapshot) -> None:
    """Lift folders/plans embedded in an old profile into the top-level collections."""
    data = _read_profile_dict(db_path)
    if not data:
        return
    if not snapshot.folders and data.get("folders"):
        try:
            snapshot.folders = [Folder.from_dict(f) for f in data["folders"]]
            logger.info("Migrated %d folder(s) from the guest profile", len(snapshot.folders))
        except DECODE_ERRORS:
            logger.exception("Could not migrate legacy folders")
    if not snapshot.learning_plans and data.get("learningPlans"):
        try:
            snapshot.learning_plans = [LearningPlan.from_dict(p) for p in data["learningPlans"]]
            logger.info("Migrated %d learning plan(s) from the guest profile", len(snapshot.learning_plans))
        except DECODE_ERRORS:
            logger.exception("Could not migrate legacy learning plans")


def load_snapshot(db_path: str) -> Snapshot:
    """Load every collection, re-resolving folder members against the loaded items."""
    snapshot = Snapshot(
        courses=get_courses(db_path),
        folders=get_folders(db_path),
        projects=get_projects(db_path),
        articles=get_articles(db_path),
        user=get_guest_user_profile(db_path) or LocalUser(),
        learning_plans=get_learning_plans(db_path),
        chat_history=get_chat_history(db_path),
    )
    _migrate_legacy_profile(db_path, snapshot)
    snapshot.folders = resolve_folders(snapshot.folders, snapshot.courses, snapshot.articles)
    return snapshot


def save_snapshot(db_path: str, snapshot: Snapshot) -> None:
    save_courses(db_path, snapshot.courses)
    save_folders(db_path, snapshot.folders)
    save_projects(db_path, snapshot.projects)
    save_articles(db_path, snapshot.articles)
    save_guest_user_profile(db_path, snapshot.user)
    save_learning_plans(db_path, snapshot.learning_plans)
    save_chat_history(db_path, snapshot.chat_history)


# --- Backup ---

def export_backup(db_path: str) -> dict:
    """Raw stored strings for every collection, plus a version tag and timestamp."""
    bundle = {name: get_value(db_path, key) for name, key in BACKUP_FIELDS.items()}
    bundle["backupVersion"] = BACKUP_VERSION
    bundle["timestamp"] = now_ms()
    return bundle


def import_backup(db_path: str, text: str) -> None:
    """Replace all learning data with a backup bundle.

    The bundle is fully validated first; a BackupImportError leaves storage untouched.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise BackupImportError(f"Import failed: backup file is not valid JSON ({e}).") from e
    if not isinstance(data, dict):
        raise BackupImportError("Import failed: backup file must contain a JSON object.")
    for name in REQUIRED_BACKUP_FIELDS:
        if name not in data:
            raise BackupImportError(f'Import failed: Missing required key "{name}" in backup file.')
    for name in BACKUP_FIELDS:
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            raise BackupImportError(f'Import failed: "{name}" must be a serialized string.')

    conn = get_connection(db_path)
    try:
        with conn:
            conn.executemany("DELETE FROM kv_store WHERE key = ?", [(k,) for k in LEARNING_DATA_KEYS])
            conn.executemany(
                "INSERT INTO kv_store (key, value) VALUES (?, ?)",
                [(key, data[name]) for name, key in BACKUP_FIELDS.items() if data.get(name)],
            )
    finally:
        conn.close()
    logger.info("Imported backup version %s", data.get("backupVersion", "unknown"))


def reset_application(db_path: str) -> None:
    """Clear all learning data; the theme survives."""
    for key in LEARNING_DATA_KEYS + (LAST_ACTIVE_COURSE_KEY,):
        delete_value(db_path, key)
