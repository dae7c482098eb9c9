"""Queue job and status models."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, NamedTuple, Optional


class JobStatus(Enum):
    """Status enumeration for queued jobs."""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class QueueJob:
    """A deferred unit of work plus the future that reports its outcome."""

    job_id: str
    task: Callable[[], Awaitable[Any]]
    completion: asyncio.Future
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None

    def update_status(self, new_status: JobStatus, error_message: Optional[str] = None) -> None:
        """Update job status and timestamp."""
        self.status = new_status
        self.updated_at = datetime.now()
        if error_message:
            self.error_message = error_message


class QueueTicket(NamedTuple):
    """What ``JobQueue.add`` hands back to the caller."""

    position: int
    completion: asyncio.Future
