"""Tracking of long-running generation tasks."""
import logging
from dataclasses import dataclass, field
from typing import Optional

from learnai.models import new_id

logger = logging.getLogger(__name__)

GENERATING = "generating"
DONE = "done"
ERROR = "error"

TASK_TYPES = (
    "course_generation",
    "topic_expansion",
    "project_generation",
    "plan_generation",
    "article_generation",
)


@dataclass
class BackgroundTask:
    id: str
    type: str
    topic: str
    status: str = GENERATING
    message: str = ""
    course_id: Optional[str] = None
    project_id: Optional[str] = None
    plan_id: Optional[str] = None
    article_ids: list[str] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.status in (DONE, ERROR)


class TaskTracker:
    """One foreground task plus a list of minimized ones.

    Status only ever moves generating -> done or generating -> error. Results
    reported for a task that was cancelled are dropped.
    """

    def __init__(self):
        self.active: Optional[BackgroundTask] = None
        self.minimized: list[BackgroundTask] = []

    def all(self) -> list[BackgroundTask]:
        return ([self.active] if self.active else []) + list(self.minimized)

    def get(self, task_id: str) -> Optional[BackgroundTask]:
        return next((t for t in self.all() if t.id == task_id), None)

    def start(self, task_type: str, topic: str, message: str) -> BackgroundTask:
        if task_type not in TASK_TYPES:
            raise ValueError(f"Unknown task type: {task_type}")
        task = BackgroundTask(id=new_id(f"task-{task_type.split('_')[0]}"), type=task_type, topic=topic, message=message)
        previous = self.active
        if previous and not previous.is_finished:
            self.minimized.append(previous)
        self.active = task
        return task

    def update_message(self, task_id: str, message: str) -> None:
        task = self.get(task_id)
        if task and not task.is_finished:
            task.message = message

    def complete(self, task_id: str, message: str = "Success!", **result_ids) -> Optional[BackgroundTask]:
        return self._finish(task_id, DONE, message, result_ids)

    def fail(self, task_id: str, message: str) -> Optional[BackgroundTask]:
        return self._finish(task_id, ERROR, message, {})

    def _finish(self, task_id: str, status: str, message: str, result_ids: dict) -> Optional[BackgroundTask]:
        task = self.get(task_id)
        if task is None:
            logger.debug("Discarding result for cancelled task %s", task_id)
            return None
        if task.is_finished:
            logger.warning("Task %s already %s; ignoring transition to %s", task_id, task.status, status)
            return task
        task.status = status
        task.message = message
        for name, value in result_ids.items():
            setattr(task, name, value)
        return task

    def cancel(self, task_id: str) -> None:
        if self.active and self.active.id == task_id:
            self.active = None
        self.minimized = [t for t in self.minimized if t.id != task_id]

    def minimize(self, task_id: str) -> None:
        if self.active and self.active.id == task_id:
            self.minimized.append(self.active)
            self.active = None

    def restore(self, task_id: str) -> Optional[BackgroundTask]:
        """Bring a minimized task to the foreground."""
        task = next((t for t in self.minimized if t.id == task_id), None)
        if task is None:
            return None
        self.minimized.remove(task)
        if self.active:
            self.minimized.append(self.active)
        self.active = task
        return task

    def clear(self, task_id: str) -> None:
        """Dismiss a finished task; a running one stays tracked."""
        task = self.get(task_id)
        if task and task.is_finished:
            self.cancel(task_id)
