from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import Optional

def utcnow() -> datetime:
    """timezone-aware now, the datetime columns reject naive values"""
    return datetime.now(timezone.utc)

class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)

class JobKind(str, Enum):
    VIDEO = "video"
    SCRIPT = "script"

class Job(SQLModel, table=True):
    """one generation request (a video or a script) and its progress"""
    __tablename__ = "generation_jobs"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: str = Field(index=True)  # user the job and its notifications belong to
    kind: JobKind = Field(index=True)
    title: str
    prompt: str
    options: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    status: JobStatus = Field(default=JobStatus.PENDING, index=True)
    progress: int = Field(default=0)  # 0-100
    result: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))  # only when completed
    failure_reason: Optional[str] = Field(default=None, nullable=True)  # only when failed
    failure_kind: Optional[str] = Field(default=None, nullable=True)  # "downstream", "cancelled", "internal"
    started_at: Optional[datetime] = Field(default=None, nullable=True)
    finished_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "owner_id": self.owner_id,
            "kind": self.kind.value,
            "title": self.title,
            "prompt": self.prompt,
            "options": self.options or {},
            "status": self.status.value,
            "progress": self.progress,
            "result": self.result,
            "failure_reason": self.failure_reason,
            "failure_kind": self.failure_kind,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
