import sqlite3

import pytest

from resume_insight.database import connect, migrate, rollback, sqlite_path


async def _tables(conn):
    async with conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'") as cur:
        return {row[0] for row in await cur.fetchall()}


async def _indexes(conn):
    async with conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'") as cur:
        return {row[0] for row in await cur.fetchall()}


def test_sqlite_path_default_url():
    assert sqlite_path("sqlite://data/resume.db?mode=rwc") == "data/resume.db"


def test_sqlite_path_absolute_and_memory():
    assert sqlite_path("sqlite:///var/db/resume.db") == "/var/db/resume.db"
    assert sqlite_path("sqlite::memory:") == ":memory:"


def test_sqlite_path_rejects_other_schemes():
    with pytest.raises(ValueError):
        sqlite_path("postgres://localhost/db")


def test_sqlite_path_rejects_empty_path():
    with pytest.raises(ValueError):
        sqlite_path("sqlite://?mode=rwc")


@pytest.mark.asyncio
async def test_connect_rwc_creates_file(tmp_path):
    db_file = tmp_path / "resume.db"
    conn = await connect(f"sqlite://{db_file}?mode=rwc")
    try:
        await migrate(conn)
    finally:
        await conn.close()
    assert db_file.exists()


@pytest.mark.asyncio
async def test_connect_without_create_mode_fails_for_missing_file(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        await connect(f"sqlite://{tmp_path / 'missing.db'}")


@pytest.mark.asyncio
async def test_migrate_creates_table_and_indexes():
    conn = await connect("sqlite::memory:")
    try:
        await migrate(conn)
        assert "resumes" in await _tables(conn)
        assert {
            "idx_resumes_status",
            "idx_resumes_job_key",
            "idx_resumes_uploaded_at",
            "idx_resumes_file_hash",
        } <= await _indexes(conn)
    finally:
        await conn.close()


@pytest.mark.asyncio
async def test_migrate_is_idempotent():
    conn = await connect("sqlite::memory:")
    try:
        await migrate(conn)
        await migrate(conn)
        async with conn.execute("SELECT COUNT(*) FROM seaql_migrations") as cur:
            (count,) = await cur.fetchone()
        assert count == 1
    finally:
        await conn.close()


@pytest.mark.asyncio
async def test_rollback_drops_table_and_allows_reapply():
    conn = await connect("sqlite::memory:")
    try:
        await migrate(conn)
        await rollback(conn)
        assert "resumes" not in await _tables(conn)
        await migrate(conn)
        assert "resumes" in await _tables(conn)
    finally:
        await conn.close()


@pytest.mark.asyncio
async def test_file_hash_is_unique():
    conn = await connect("sqlite::memory:")
    try:
        await migrate(conn)
        insert = (
            "INSERT INTO resumes (id, filename, file_hash, file_url, status, uploaded_at) "
            "VALUES (?, ?, ?, ?, ?, ?)"
        )
        await conn.execute(insert, ("a", "a.pdf", "h", "u", "pending", "2024-01-01 00:00:00"))
        with pytest.raises(sqlite3.IntegrityError):
            await conn.execute(
                insert, ("b", "b.pdf", "h", "u", "pending", "2024-01-01 00:00:00")
            )
    finally:
        await conn.close()