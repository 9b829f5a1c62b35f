"""Persistent resume record and its status values."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class ResumeStatus(str, enum.Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str) -> ResumeStatus:
        """Map a stored status string to a status; unknown values become pending."""
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


@dataclass
class Resume:
    """A row of the ``resumes`` table."""

    id: str
    filename: str
    file_hash: str
    file_url: str
    status: str
    uploaded_at: datetime
    job_key: str | None = None
    error_message: str | None = None
    analyzed_at: datetime | None = None
    analysis_json: str | None = None
    name: str | None = None
    score: int | None = None