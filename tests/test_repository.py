from contextlib import asynccontextmanager
from datetime import datetime

import pytest

from resume_insight.database import connect, migrate
from resume_insight.entities import Resume, ResumeStatus
from resume_insight.models import Analysis, BasicInfo, Experience, Skills
from resume_insight.repository import ListFilters, RecordNotFound, ResumeRepository


@asynccontextmanager
async def _repository():
    conn = await connect("sqlite::memory:")
    try:
        await migrate(conn)
        yield ResumeRepository(conn)
    finally:
        await conn.close()


def _resume(resume_id, day, **overrides):
    fields = dict(
        id=resume_id,
        filename=f"{resume_id}.pdf",
        file_hash=f"hash-{resume_id}",
        file_url=f"http://localhost:3000/files/{resume_id}.pdf",
        status="pending",
        uploaded_at=datetime(2024, 1, day, 9, 30, 0),
    )
    fields.update(overrides)
    return Resume(**fields)


def _analysis():
    return Analysis(
        basic_info=BasicInfo(
            name="张三",
            gender="男",
            age="28",
            phone="未知",
            email="zhang@example.com",
            location="北京",
            work_years="5年",
            degree="本科",
            major="计算机科学",
            school="北京大学",
            current_company="某公司",
            current_position="高级工程师",
        ),
        score=85,
        summary="优秀候选人",
        skills=Skills(level="优秀", details="技术栈扎实"),
        experience=Experience(level="良好", details="5年经验"),
        strengths=["Rust 精通"],
        concerns=["团队协作待考察"],
        focus=["架构能力"],
    )


@pytest.mark.asyncio
async def test_create_and_find_round_trip():
    async with _repository() as repo:
        original = _resume("r1", 1, job_key="backend")
        await repo.create(original)
        assert await repo.find_by_id("r1") == original
        assert await repo.find_by_hash("hash-r1") == original


@pytest.mark.asyncio
async def test_find_missing_returns_none():
    async with _repository() as repo:
        assert await repo.find_by_id("nope") is None
        assert await repo.find_by_hash("nope") is None


@pytest.mark.asyncio
async def test_list_orders_newest_first_and_counts():
    async with _repository() as repo:
        for day, resume_id in enumerate(["a", "b", "c"], start=1):
            await repo.create(_resume(resume_id, day))
        items, total = await repo.list(ListFilters())
        assert total == 3
        assert [r.id for r in items] == ["c", "b", "a"]


@pytest.mark.asyncio
async def test_list_paginates():
    async with _repository() as repo:
        for day, resume_id in enumerate(["a", "b", "c"], start=1):
            await repo.create(_resume(resume_id, day))
        items, total = await repo.list(ListFilters(page=2, page_size=2))
        assert total == 3
        assert [r.id for r in items] == ["a"]


@pytest.mark.asyncio
async def test_list_filters_by_status_job_and_search():
    async with _repository() as repo:
        await repo.create(_resume("a", 1, status="completed", job_key="backend", name="Alice"))
        await repo.create(_resume("b", 2, status="pending", job_key="backend"))
        await repo.create(_resume("c", 3, status="completed", job_key="frontend"))

        items, total = await repo.list(ListFilters(status="completed"))
        assert {r.id for r in items} == {"a", "c"} and total == 2

        items, _ = await repo.list(ListFilters(job_key="backend", status="completed"))
        assert [r.id for r in items] == ["a"]

        items, _ = await repo.list(ListFilters(search="lic"))
        assert [r.id for r in items] == ["a"]

        items, _ = await repo.list(ListFilters(search="b.pd"))
        assert [r.id for r in items] == ["b"]


@pytest.mark.asyncio
async def test_list_rejects_page_zero():
    async with _repository() as repo:
        with pytest.raises(ValueError):
            await repo.list(ListFilters(page=0))


@pytest.mark.asyncio
async def test_update_status_analyzing_sets_analyzed_at():
    async with _repository() as repo:
        await repo.create(_resume("r1", 1))
        await repo.update_status("r1", ResumeStatus.ANALYZING)
        stored = await repo.find_by_id("r1")
        assert stored.status == "analyzing"
        assert stored.analyzed_at is not None
        assert stored.error_message is None


@pytest.mark.asyncio
async def test_update_status_failed_keeps_analyzed_at_and_records_error():
    async with _repository() as repo:
        await repo.create(_resume("r1", 1))
        await repo.update_status("r1", "failed", "boom")
        stored = await repo.find_by_id("r1")
        assert (stored.status, stored.error_message, stored.analyzed_at) == (
            "failed",
            "boom",
            None,
        )


@pytest.mark.asyncio
async def test_update_status_missing_raises():
    async with _repository() as repo:
        with pytest.raises(RecordNotFound):
            await repo.update_status("ghost", "failed")


@pytest.mark.asyncio
async def test_save_analysis_marks_completed():
    async with _repository() as repo:
        await repo.create(_resume("r1", 1))
        analysis = _analysis()
        await repo.save_analysis("r1", analysis)
        stored = await repo.find_by_id("r1")
        assert stored.status == "completed"
        assert stored.name == "张三"
        assert stored.score == 85
        assert stored.analyzed_at is not None
        assert Analysis.from_json(stored.analysis_json) == analysis


@pytest.mark.asyncio
async def test_save_analysis_missing_raises():
    async with _repository() as repo:
        with pytest.raises(RecordNotFound):
            await repo.save_analysis("ghost", _analysis())


@pytest.mark.asyncio
async def test_delete_removes_record_and_ignores_missing():
    async with _repository() as repo:
        await repo.create(_resume("r1", 1))
        await repo.delete("r1")
        await repo.delete("r1")
        assert await repo.find_by_id("r1") is None


@pytest.mark.asyncio
async def test_batch_update_status_touches_only_listed_ids():
    async with _repository() as repo:
        for day, resume_id in enumerate(["a", "b", "c"], start=1):
            await repo.create(_resume(resume_id, day))
        await repo.batch_update_status(["a", "c"], ResumeStatus.ANALYZING)
        await repo.batch_update_status([], "failed")
        statuses = {r.id: r.status for r in (await repo.list())[0]}
        assert statuses == {"a": "analyzing", "b": "pending", "c": "analyzing"}