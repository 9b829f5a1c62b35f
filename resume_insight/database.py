"""SQLite connection handling and schema migrations."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, quote

import aiosqlite

_MIGRATIONS_TABLE = "seaql_migrations"


@dataclass(frozen=True)
class _Migration:
    name: str
    up: tuple[str, ...]
    down: tuple[str, ...]


_MIGRATIONS: tuple[_Migration, ...] = (
    _Migration(
        name="m20240129_create_resumes",
        up=(
            """
            CREATE TABLE IF NOT EXISTS resumes (
                id varchar NOT NULL PRIMARY KEY,
                filename varchar NOT NULL,
                file_hash varchar NOT NULL,
                file_url varchar NOT NULL,
                status varchar NOT NULL,
                job_key varchar,
                error_message text,
                uploaded_at datetime_text NOT NULL,
                analyzed_at datetime_text,
                analysis_json text,
                name varchar,
                score integer
            )
            """,
            "CREATE INDEX idx_resumes_status ON resumes (status)",
            "CREATE INDEX idx_resumes_job_key ON resumes (job_key)",
            "CREATE INDEX idx_resumes_uploaded_at ON resumes (uploaded_at)",
            "CREATE UNIQUE INDEX idx_resumes_file_hash ON resumes (file_hash)",
        ),
        down=("DROP TABLE resumes",),
    ),
)


def _split_url(url: str) -> tuple[str, dict[str, list[str]]]:
    if not url.startswith("sqlite:"):
        raise ValueError(f"unsupported database URL: {url}")
    rest = url[len("sqlite:"):]
    if rest.startswith("//"):
        rest = rest[2:]
    path, _, query = rest.partition("?")
    if not path:
        raise ValueError(f"database URL has no path: {url}")
    return path, parse_qs(query)


def sqlite_path(url: str) -> str:
    """Return the file path (or ``:memory:``) named by a ``sqlite:`` URL."""
    return _split_url(url)[0]


async def connect(url: str) -> aiosqlite.Connection:
    """Open the database named by ``url``; ``mode=rwc`` creates a missing file."""
    path, params = _split_url(url)
    if path == ":memory:":
        return await aiosqlite.connect(":memory:")
    mode = params.get("mode", ["rw"])[-1]
    return await aiosqlite.connect(f"file:{quote(path)}?mode={quote(mode)}", uri=True)


async def _applied_versions(conn: aiosqlite.Connection) -> set[str]:
    await conn.execute(
        f"CREATE TABLE IF NOT EXISTS {_MIGRATIONS_TABLE} ("
        "version varchar NOT NULL PRIMARY KEY, applied_at bigint NOT NULL)"
    )
    async with conn.execute(f"SELECT version FROM {_MIGRATIONS_TABLE}") as cursor:
        return {row[0] for row in await cursor.fetchall()}


async def migrate(conn: aiosqlite.Connection) -> None:
    """Apply every migration that has not been applied yet."""
    applied = await _applied_versions(conn)
    for migration in _MIGRATIONS:
        if migration.name in applied:
            continue
        for statement in migration.up:
            await conn.execute(statement)
        await conn.execute(
            f"INSERT INTO {_MIGRATIONS_TABLE} (version, applied_at) "
            "VALUES (?, CAST(strftime('%s', 'now') AS INTEGER))",
            (migration.name,),
        )
    await conn.commit()


async def rollback(conn: aiosqlite.Connection) -> None:
    """Revert every applied migration, newest first."""
    applied = await _applied_versions(conn)
    for migration in reversed(_MIGRATIONS):
        if migration.name not in applied:
            continue
        for statement in migration.down:
            await conn.execute(statement)
        await conn.execute(
            f"DELETE FROM {_MIGRATIONS_TABLE} WHERE version = ?", (migration.name,)
        )
    await conn.commit()