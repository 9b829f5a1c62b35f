"""Storage and queries for resume records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from .entities import Resume, ResumeStatus
from .models import Analysis

_COLUMNS = (
    "id",
    "filename",
    "file_hash",
    "file_url",
    "status",
    "job_key",
    "error_message",
    "uploaded_at",
    "analyzed_at",
    "analysis_json",
    "name",
    "score",
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM resumes"
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class RecordNotFound(LookupError):
    """Raised when an update targets a resume that does not exist."""


@dataclass
class ListFilters:
    status: str | None = None
    job_key: str | None = None
    search: str | None = None
    page: int = 1
    page_size: int = 20


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _store_time(value: datetime | None) -> str | None:
    return None if value is None else value.strftime(_TIMESTAMP_FORMAT)


def _load_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _status_value(status: str | ResumeStatus) -> str:
    return status.value if isinstance(status, ResumeStatus) else status


def _to_resume(row: Any) -> Resume:
    fields = dict(zip(_COLUMNS, row))
    fields["uploaded_at"] = _load_time(fields["uploaded_at"])
    fields["analyzed_at"] = _load_time(fields["analyzed_at"])
    return Resume(**fields)


class ResumeRepository:
    """Reads and writes the ``resumes`` table."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self.db = db

    async def create(self, resume: Resume) -> Resume:
        await self.db.execute(
            f"INSERT INTO resumes ({', '.join(_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
            (
                resume.id,
                resume.filename,
                resume.file_hash,
                resume.file_url,
                resume.status,
                resume.job_key,
                resume.error_message,
                _store_time(resume.uploaded_at),
                _store_time(resume.analyzed_at),
                resume.analysis_json,
                resume.name,
                resume.score,
            ),
        )
        await self.db.commit()
        return resume

    async def _find_one(self, column: str, value: str) -> Resume | None:
        async with self.db.execute(f"{_SELECT} WHERE {column} = ? LIMIT 1", (value,)) as cur:
            row = await cur.fetchone()
        return None if row is None else _to_resume(row)

    async def find_by_id(self, resume_id: str) -> Resume | None:
        return await self._find_one("id", resume_id)

    async def find_by_hash(self, file_hash: str) -> Resume | None:
        return await self._find_one("file_hash", file_hash)

    async def list(self, filters: ListFilters | None = None) -> tuple[list[Resume], int]:
        """Return one page of matching resumes, newest upload first, and the total count."""
        filters = filters or ListFilters()
        if filters.page < 1:
            raise ValueError("page must be at least 1")
        if filters.page_size < 1:
            raise ValueError("page_size must be at least 1")

        clauses: list[str] = []
        params: list[Any] = []
        if filters.status is not None:
            clauses.append("status = ?")
            params.append(filters.status)
        if filters.job_key is not None:
            clauses.append("job_key = ?")
            params.append(filters.job_key)
        if filters.search is not None:
            pattern = f"%{filters.search}%"
            clauses.append("(name LIKE ? OR filename LIKE ?)")
            params.extend((pattern, pattern))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        async with self.db.execute(f"SELECT COUNT(*) FROM resumes{where}", params) as cur:
            (total,) = await cur.fetchone()

        offset = (filters.page - 1) * filters.page_size
        async with self.db.execute(
            f"{_SELECT}{where} ORDER BY uploaded_at DESC LIMIT ? OFFSET ?",
            [*params, filters.page_size, offset],
        ) as cur:
            rows = await cur.fetchall()
        return [_to_resume(row) for row in rows], total

    async def _require(self, resume_id: str) -> Resume:
        resume = await self.find_by_id(resume_id)
        if resume is None:
            raise RecordNotFound(f"Resume {resume_id} not found")
        return resume

    async def update_status(
        self,
        resume_id: str,
        status: str | ResumeStatus,
        error_message: str | None = None,
    ) -> None:
        """Set the status; analysing or completing also stamps ``analyzed_at``."""
        await self._require(resume_id)
        value = _status_value(status)
        assignments = ["status = ?"]
        params: list[Any] = [value]
        if value in (ResumeStatus.ANALYZING.value, ResumeStatus.COMPLETED.value):
            assignments.append("analyzed_at = ?")
            params.append(_store_time(_utc_now()))
        if error_message is not None:
            assignments.append("error_message = ?")
            params.append(error_message)
        await self.db.execute(
            f"UPDATE resumes SET {', '.join(assignments)} WHERE id = ?",
            [*params, resume_id],
        )
        await self.db.commit()

    async def save_analysis(self, resume_id: str, analysis: Analysis) -> None:
        """Store the analysis and mark the resume completed."""
        await self._require(resume_id)
        await self.db.execute(
            "UPDATE resumes SET analysis_json = ?, status = ?, analyzed_at = ?, "
            "name = ?, score = ? WHERE id = ?",
            (
                analysis.to_json(),
                ResumeStatus.COMPLETED.value,
                _store_time(_utc_now()),
                analysis.basic_info.name,
                analysis.score,
                resume_id,
            ),
        )
        await self.db.commit()

    async def delete(self, resume_id: str) -> None:
        await self.db.execute("DELETE FROM resumes WHERE id = ?", (resume_id,))
        await self.db.commit()

    async def batch_update_status(self, ids: list[str], status: str | ResumeStatus) -> None:
        ids = list(ids)
        if not ids:
            return
        placeholders = ", ".join("?" for _ in ids)
        await self.db.execute(
            f"UPDATE resumes SET status = ? WHERE id IN ({placeholders})",
            [_status_value(status), *ids],
        )
        await self.db.commit()