"""Per-feature dialog state: one independent session for each kind of study aid."""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from learnai.errors import GenerationError

logger = logging.getLogger(__name__)

SESSION_KINDS = (
    "story",
    "analogy",
    "flashcards",
    "socratic",
    "explore",
    "article_ideas",
    "understanding_check",
    "project_tutor",
    "definition",
    "practice",
    "practice_quiz",
    "code_explainer",
    "article_tutor",
    "interview_prep",
)


@dataclass
class FeatureSession:
    kind: str
    is_open: bool = False
    is_loading: bool = False
    error: Optional[str] = None
    title: str = ""
    result: Any = None
    # Whatever the dialog needs besides the result: ids, a running transcript, answers.
    context: dict = field(default_factory=dict)


class SessionBoard:
    def __init__(self):
        self._sessions = {kind: FeatureSession(kind) for kind in SESSION_KINDS}

    def __getitem__(self, kind: str) -> FeatureSession:
        return self._sessions[kind]

    def open_sessions(self) -> list[FeatureSession]:
        return [s for s in self._sessions.values() if s.is_open]

    def open(self, kind: str, title: str, **context) -> FeatureSession:
        """Reset a session and show it, keeping every other session as it is."""
        session = FeatureSession(kind, is_open=True, title=title, context=dict(context))
        self._sessions[kind] = session
        return session

    def run(self, kind: str, title: str, fn: Callable[[], Any], **context) -> FeatureSession:
        """Open a session, call fn and keep its result, or its error message when generation fails."""
        session = self.open(kind, title, **context)
        session.is_loading = True
        try:
            session.result = fn()
        except GenerationError as e:
            logger.warning("%s session failed: %s", kind, e)
            session.error = str(e)
        finally:
            session.is_loading = False
        return session

    def close(self, kind: str) -> None:
        self._sessions[kind] = FeatureSession(kind)
