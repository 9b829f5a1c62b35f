"""HTTP handlers for uploading, analysing, listing and deleting resumes."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import re
import sqlite3
import uuid
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

from aiohttp import BodyPartReader, web

from .analyzer import Analyzer, calculate_hash
from .entities import Resume, ResumeStatus
from .errors import AppError, FileError, InternalError
from .models import Analysis
from .repository import ListFilters, RecordNotFound, ResumeRepository

log = logging.getLogger(__name__)

T = TypeVar("T")

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_UNSIGNED = re.compile(r"\+?[0-9]+")
_dumps = functools.partial(json.dumps, ensure_ascii=False)


@dataclass
class AppState:
    """Shared services for the request handlers."""

    analyzer: Analyzer
    repo: ResumeRepository
    tasks: set[asyncio.Task[None]] = field(default_factory=set, repr=False)


STATE_KEY: web.AppKey[AppState] = web.AppKey("state", AppState)


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as ``YYYY-MM-DD HH:MM:SS``; ``None`` stays ``None``."""
    return None if value is None else value.strftime(_TIMESTAMP_FORMAT)


def _json(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=_dumps)


async def _db(awaitable: Awaitable[T], context: str) -> T:
    try:
        return await awaitable
    except (sqlite3.Error, RecordNotFound) as exc:
        raise InternalError(f"{context}: {exc}") from exc


def _state(request: web.Request) -> AppState:
    return request.app[STATE_KEY]


@web.middleware
async def error_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Turn application errors into JSON error responses."""
    try:
        return await handler(request)
    except AppError as exc:
        return _json(exc.to_payload(), status=int(exc.status))


async def health_check(request: web.Request) -> web.Response:
    return web.Response(text="OK")


async def upload_resumes(request: web.Request) -> web.Response:
    """Store every ``file`` field of a multipart upload without analysing it."""
    state = _state(request)
    log.info("Received upload request")

    try:
        reader = await request.multipart()
    except (ValueError, AssertionError) as exc:
        raise FileError(f"Failed to read field: {exc}") from exc

    uploaded: list[dict[str, str]] = []
    while True:
        try:
            part = await reader.next()
        except (ValueError, asyncio.IncompleteReadError) as exc:
            raise FileError(f"Failed to read field: {exc}") from exc
        if part is None:
            break
        if not isinstance(part, BodyPartReader) or part.name != "file":
            continue

        filename = part.filename or "unknown"
        try:
            data = bytes(await part.read())
        except (ValueError, asyncio.IncompleteReadError) as exc:
            raise FileError(f"Failed to read bytes: {exc}") from exc
        log.info("Processing file: %s (%d bytes)", filename, len(data))

        file_url = await state.analyzer.save_file(data, filename)
        file_hash = calculate_hash(data)

        existing = await _db(state.repo.find_by_hash(file_hash), "Database error")
        if existing is not None:
            log.info("File already exists: %s", existing.id)
            uploaded.append(
                {"id": existing.id, "filename": existing.filename, "status": existing.status}
            )
            continue

        resume = Resume(
            id=str(uuid.uuid4()),
            filename=filename,
            file_hash=file_hash,
            file_url=file_url,
            status=ResumeStatus.PENDING.value,
            uploaded_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        await _db(state.repo.create(resume), "Failed to create resume record")
        log.info("Created resume record: %s", resume.id)
        uploaded.append(
            {"id": resume.id, "filename": filename, "status": ResumeStatus.PENDING.value}
        )

    return _json({"uploaded": uploaded})


def _parse_analyze_request(body: Any) -> tuple[list[str], str]:
    if not isinstance(body, dict):
        raise FileError("Request body must be a JSON object")
    ids = body.get("resume_ids")
    job = body.get("job")
    if not isinstance(ids, list) or not all(isinstance(item, str) for item in ids):
        raise FileError("Field 'resume_ids' must be a list of strings")
    if not isinstance(job, str):
        raise FileError("Field 'job' must be a string")
    return ids, job


async def _run_analysis(state: AppState, resume_id: str, job_key: str) -> None:
    try:
        await analyze_single_resume(state, resume_id, job_key)
    except Exception as exc:  # background task: report and carry on
        log.error("Failed to analyze resume: %s", exc)


async def analyze_resumes(request: web.Request) -> web.Response:
    """Mark the given resumes as analysing and analyse each in the background."""
    state = _state(request)
    try:
        body = await request.json()
    except ValueError as exc:
        raise FileError(f"Invalid JSON body: {exc}") from exc
    resume_ids, job = _parse_analyze_request(body)
    log.info("Received analyze request for %d resumes", len(resume_ids))

    await _db(
        state.repo.batch_update_status(resume_ids, ResumeStatus.ANALYZING),
        "Failed to update status",
    )

    for resume_id in resume_ids:
        task = asyncio.create_task(_run_analysis(state, resume_id, job))
        state.tasks.add(task)
        task.add_done_callback(state.tasks.discard)

    return _json({"message": "开始分析", "count": len(resume_ids)})


def _local_file_path(state: AppState, file_url: str) -> Path:
    server = state.analyzer.server_config
    prefix = f"{server.base_url.rstrip('/')}/files/"
    if file_url.startswith(prefix):
        return Path(server.files_dir) / file_url[len(prefix):]
    return Path(file_url)


async def analyze_single_resume(state: AppState, resume_id: str, job_key: str) -> None:
    """Analyse one stored resume and record the result or the failure."""
    log.info("Analyzing resume: %s", resume_id)

    resume = await _db(state.repo.find_by_id(resume_id), "Database error")
    if resume is None:
        raise FileError(f"Resume {resume_id} not found")

    path = _local_file_path(state, resume.file_url)
    try:
        file_data = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise FileError(f"Failed to read file: {exc}") from exc

    try:
        analysis = await state.analyzer.analyze_file(file_data, resume.filename, job_key)
    except AppError as exc:
        await _db(
            state.repo.update_status(resume_id, ResumeStatus.FAILED, str(exc)),
            "Failed to update status",
        )
        log.error("Analysis failed for resume %s: %s", resume_id, exc)
        raise

    await _db(state.repo.save_analysis(resume_id, analysis), "Failed to save analysis")
    log.info("Analysis completed for resume: %s", resume_id)


def _query_int(request: web.Request, name: str, default: int) -> int:
    raw = request.query.get(name)
    if raw is None:
        return default
    if not _UNSIGNED.fullmatch(raw) or int(raw) >= 2**64:
        raise FileError(f"Failed to deserialize query string: invalid {name}: {raw!r}")
    value = int(raw)
    if value < 1:
        raise FileError(f"{name} must be at least 1")
    return value


async def list_resumes(request: web.Request) -> web.Response:
    """Return one page of resumes, filtered by status, job and search text."""
    state = _state(request)
    filters = ListFilters(
        status=request.query.get("status"),
        job_key=request.query.get("job_key"),
        search=request.query.get("search"),
        page=_query_int(request, "page", 1),
        page_size=_query_int(request, "page_size", 20),
    )
    log.debug("List resumes query: %s", filters)

    items, total = await _db(state.repo.list(filters), "Database error")
    return _json(
        {
            "total": total,
            "items": [
                {
                    "id": item.id,
                    "filename": item.filename,
                    "status": item.status,
                    "job_key": item.job_key,
                    "score": item.score,
                    "name": item.name,
                    "uploaded_at": format_timestamp(item.uploaded_at),
                    "analyzed_at": format_timestamp(item.analyzed_at),
                }
                for item in items
            ],
        }
    )


async def _require_resume(state: AppState, resume_id: str) -> Resume:
    resume = await _db(state.repo.find_by_id(resume_id), "Database error")
    if resume is None:
        raise FileError(f"Resume {resume_id} not found")
    return resume


async def get_resume_detail(request: web.Request) -> web.Response:
    """Return one resume together with its stored analysis."""
    resume_id = request.match_info["id"]
    log.debug("Get resume detail: %s", resume_id)
    resume = await _require_resume(_state(request), resume_id)

    analysis = None
    if resume.analysis_json is not None:
        try:
            data = json.loads(resume.analysis_json)
            analysis = None if data is None else Analysis.from_dict(data).to_dict()
        except ValueError as exc:
            raise InternalError(f"Failed to parse analysis: {exc}") from exc

    return _json(
        {
            "id": resume.id,
            "filename": resume.filename,
            "file_url": resume.file_url,
            "status": resume.status,
            "job_key": resume.job_key,
            "error_message": resume.error_message,
            "uploaded_at": format_timestamp(resume.uploaded_at),
            "analyzed_at": format_timestamp(resume.analyzed_at),
            "analysis": analysis,
        }
    )


async def get_resume_status(request: web.Request) -> web.Response:
    """Return the status of one resume; analysing resumes report 50% progress."""
    resume = await _require_resume(_state(request), request.match_info["id"])
    progress = 50 if resume.status == ResumeStatus.ANALYZING.value else None
    return _json({"status": resume.status, "progress": progress})


async def delete_resume(request: web.Request) -> web.Response:
    resume_id = request.match_info["id"]
    log.info("Deleting resume: %s", resume_id)
    await _db(_state(request).repo.delete(resume_id), "Failed to delete resume")
    return _json({"message": "简历已删除"})