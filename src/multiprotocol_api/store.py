"""Task storage behind a small append/list interface.

Two implementations:
- ``InMemoryTaskStore`` for the default, process-local deployment
- ``JsonFileTaskStore`` which persists to a JSON file; an unreadable file is
  moved aside rather than overwritten

Both serialize writes with a lock so concurrent ``createTask`` calls never lose
an append.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from multiprotocol_api.schemas import Task

logger = logging.getLogger(__name__)


class TaskStore(ABC):
    """Storage interface consumed by the task operations."""

    @abstractmethod
    def append(self, task: Task) -> Task:
        """Persist a new task.

        Raises:
            ValueError: If a task with the same id already exists.
        """

    @abstractmethod
    def list(self) -> list[Task]:
        """Return all tasks in insertion order."""


class InMemoryTaskStore(TaskStore):
    def __init__(self, tasks: list[Task] | None = None) -> None:
        self._lock = threading.Lock()
        self._tasks: list[Task] = list(tasks or [])

    def append(self, task: Task) -> Task:
        with self._lock:
            if any(t.id == task.id for t in self._tasks):
                raise ValueError(f"Duplicate task id: {task.id}")
            self._tasks.append(task)
            return task

    def list(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)


class JsonFileTaskStore(TaskStore):
    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load_unlocked(self, *, quarantine: bool = False) -> list[Task]:
        """Read every stored task.

        An unreadable file reads as empty. With ``quarantine`` it is also moved
        aside first, so the write that follows never replaces its contents.
        """

        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON list, got {type(raw).__name__}")
            return [Task.model_validate(item) for item in raw]
        except ValueError as e:
            # JSONDecodeError and pydantic's ValidationError are both ValueErrors.
            if not quarantine:
                logger.warning(
                    "Task store is unreadable; reading as empty",
                    extra={"path": str(self.path), "error": str(e)},
                )
                return []
            stamp = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S%f")
            backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
            self.path.replace(backup)
            logger.error(
                "Task store is unreadable; moved aside before writing",
                extra={"path": str(self.path), "backup": str(backup), "error": str(e)},
            )
            return []

    def _save_unlocked(self, tasks: list[Task]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [t.model_dump(mode="json") for t in tasks]
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def append(self, task: Task) -> Task:
        with self._lock:
            tasks = self._load_unlocked(quarantine=True)
            if any(t.id == task.id for t in tasks):
                raise ValueError(f"Duplicate task id: {task.id}")
            tasks.append(task)
            self._save_unlocked(tasks)
            return task

    def list(self) -> list[Task]:
        with self._lock:
            return self._load_unlocked()


def build_task_store(path: Path | None) -> TaskStore:
    if path is None:
        return InMemoryTaskStore()
    logger.info("Using JSON task store", extra={"path": str(path)})
    return JsonFileTaskStore(path)
