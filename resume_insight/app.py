"""Application assembly and the command that starts the server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from pathlib import Path

from aiohttp import web
from dotenv import find_dotenv, load_dotenv

from .analyzer import Analyzer
from .config import Config, ConfigError
from .database import connect, migrate
from .handlers import (
    STATE_KEY,
    AppState,
    analyze_resumes,
    delete_resume,
    error_middleware,
    get_resume_detail,
    get_resume_status,
    health_check,
    list_resumes,
    upload_resumes,
)
from .prompts import PromptError
from .repository import ResumeRepository

log = logging.getLogger(__name__)

MAX_BODY_SIZE = 500 * 1024 * 1024
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _preflight(request: web.Request) -> web.Response:
    response = web.Response()
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = request.headers.get(
        "Access-Control-Request-Method", "*"
    )
    response.headers["Access-Control-Allow-Headers"] = request.headers.get(
        "Access-Control-Request-Headers", "*"
    )
    return response


@web.middleware
async def _cors_middleware(request: web.Request, handler: _Handler) -> web.StreamResponse:
    if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
        return _preflight(request)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Expose-Headers"] = "*"
    return response


async def _cancel_tasks(app: web.Application) -> None:
    tasks = list(app[STATE_KEY].tasks)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def create_app(state: AppState, files_dir: str | Path) -> web.Application:
    """Build the web application serving the API and the stored files."""
    app = web.Application(
        middlewares=[_cors_middleware, error_middleware],
        client_max_size=MAX_BODY_SIZE,
    )
    app[STATE_KEY] = state
    app.router.add_get("/health", health_check)
    app.router.add_post("/api/v1/resumes/upload", upload_resumes)
    app.router.add_post("/api/v1/resumes/analyze", analyze_resumes)
    app.router.add_get("/api/v1/resumes", list_resumes)
    app.router.add_get("/api/v1/resumes/{id}", get_resume_detail)
    app.router.add_delete("/api/v1/resumes/{id}", delete_resume)
    app.router.add_get("/api/v1/resumes/{id}/status", get_resume_status)
    app.router.add_static("/files", Path(files_dir))
    app.on_cleanup.append(_cancel_tasks)
    return app


async def _build_app(config: Config) -> web.Application:
    log.info("Connecting to database: %s", config.database.url)
    db = await connect(config.database.url)
    log.info("Database connected successfully")
    log.info("Running database migrations...")
    await migrate(db)
    log.info("Database migrations completed")

    state = AppState(
        analyzer=Analyzer(config.llm, config.server),
        repo=ResumeRepository(db),
    )
    app = create_app(state, config.server.files_dir)

    async def close_db(_: web.Application) -> None:
        await db.close()

    app.on_cleanup.append(close_db)
    return app


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("resume_insight").setLevel(logging.DEBUG)


def main(argv: list[str] | None = None) -> int:
    """Start the resume analysis API server."""
    parser = argparse.ArgumentParser(
        prog="resume-insight", description="Resume upload and analysis API server."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    _configure_logging()

    try:
        config = Config.from_env()
    except ConfigError as exc:
        log.error("%s", exc)
        return 1
    log.info("Configuration loaded successfully")

    try:
        Path(config.server.files_dir).mkdir(parents=True, exist_ok=True)
        Path(config.server.logs_dir).mkdir(parents=True, exist_ok=True)
        log.info("Files directory: %s", config.server.files_dir)
        log.info("Logs directory: %s", config.server.logs_dir)
        log.info("Resume Insight API running on http://%s:%d", args.host, args.port)
        web.run_app(_build_app(config), host=args.host, port=args.port, print=None)
    except (OSError, PromptError, sqlite3.Error, ValueError) as exc:
        log.error("%s", exc)
        return 1
    return 0