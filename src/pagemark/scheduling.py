"""One-shot job scheduling for background export chunks."""

import json
import logging
import os
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ScheduledJob:
    """A task due to run at a given time."""

    task: str
    run_at: float
    args: list[Any] = field(default_factory=list)
    id: str = field(default_factory=_new_job_id)


class Scheduler(Protocol):
    """
    Protocol for deferring work to a later, separate invocation.

    Something outside the process (a cron entry running `pagemark tick`,
    a systemd timer) lists due jobs, runs them and marks each one
    complete. A job whose run was interrupted stays queued and runs again
    on the next tick.
    """

    def schedule_once(self, delay: float, task: str, args: list[Any]) -> ScheduledJob:
        ...

    def clear(self, task: str) -> int:
        ...

    def due(self, now: Optional[float] = None) -> list[ScheduledJob]:
        ...

    def complete(self, job: ScheduledJob) -> None:
        ...


class MemoryScheduler:
    """Scheduler holding jobs in memory."""

    def __init__(self, clock: Clock = time.time) -> None:
        self.clock = clock
        self.jobs: list[ScheduledJob] = []

    def schedule_once(self, delay: float, task: str, args: list[Any]) -> ScheduledJob:
        job = ScheduledJob(task=task, run_at=self.clock() + delay, args=list(args))
        self.jobs.append(job)
        return job

    def clear(self, task: str) -> int:
        before = len(self.jobs)
        self.jobs = [job for job in self.jobs if job.task != task]
        return before - len(self.jobs)

    def due(self, now: Optional[float] = None) -> list[ScheduledJob]:
        now = self.clock() if now is None else now
        return sorted((job for job in self.jobs if job.run_at <= now), key=lambda job: job.run_at)

    def complete(self, job: ScheduledJob) -> None:
        self.jobs = [queued for queued in self.jobs if queued.id != job.id]


class FileScheduler:
    """
    Scheduler persisting its queue in a JSON file.

    Example:
        scheduler = FileScheduler(Path(".pagemark/jobs.json"))
        scheduler.schedule_once(2.0, "process_export_chunk", ["export_ab12", 1])
        for job in scheduler.due():
            ...
            scheduler.complete(job)
    """

    def __init__(self, path: Path, clock: Clock = time.time):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.clock = clock

    def _load(self) -> list[ScheduledJob]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return [ScheduledJob(**entry) for entry in data]
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Could not load job queue {self.path}: {e}")
            return []

    def _save(self, jobs: list[ScheduledJob]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([asdict(job) for job in jobs], f, indent=2)
        os.replace(tmp_path, self.path)

    @property
    def jobs(self) -> list[ScheduledJob]:
        return self._load()

    def schedule_once(self, delay: float, task: str, args: list[Any]) -> ScheduledJob:
        job = ScheduledJob(task=task, run_at=self.clock() + delay, args=list(args))
        jobs = self._load()
        jobs.append(job)
        self._save(jobs)
        logger.debug(f"Scheduled {task}{tuple(args)} in {delay}s")
        return job

    def clear(self, task: str) -> int:
        jobs = self._load()
        remaining = [job for job in jobs if job.task != task]
        if len(remaining) != len(jobs):
            self._save(remaining)
        return len(jobs) - len(remaining)

    def due(self, now: Optional[float] = None) -> list[ScheduledJob]:
        now = self.clock() if now is None else now
        return sorted((job for job in self._load() if job.run_at <= now), key=lambda job: job.run_at)

    def complete(self, job: ScheduledJob) -> None:
        jobs = self._load()
        remaining = [queued for queued in jobs if queued.id != job.id]
        if len(remaining) != len(jobs):
            self._save(remaining)
