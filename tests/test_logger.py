import json

import pytest

from resume_insight.logger import RequestLogger
from resume_insight.models import ChatRequest, Message


@pytest.mark.asyncio
async def test_ensure_log_dir_creates_nested_directory(tmp_path):
    target = tmp_path / "a" / "b"
    logger = RequestLogger(target)
    await logger.ensure_log_dir()
    assert target.is_dir()


@pytest.mark.asyncio
async def test_log_llm_request_writes_sections(tmp_path):
    logger = RequestLogger(tmp_path / "logs")
    request = ChatRequest(model="vision", messages=[Message("user", "hello")])
    path = await logger.log_llm_request("sys prompt", "user prompt", "http://f/x.pdf", request)
    text = path.read_text(encoding="utf-8")
    assert path.name.startswith("llm_request_") and path.suffix == ".log"
    assert "LLM Request Log" in text
    assert "File URL: http://f/x.pdf" in text
    assert "sys prompt" in text and "user prompt" in text
    payload = text.split("Request Payload (JSON)\n" + "=" * 80 + "\n", 1)[1]
    assert json.loads(payload) == request.to_dict()


@pytest.mark.asyncio
async def test_log_llm_request_reports_unserializable_payload(tmp_path):
    logger = RequestLogger(tmp_path)
    path = await logger.log_llm_request("s", "u", "f", {"bad": object()})
    assert "Failed to serialize request:" in path.read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_log_llm_response_counts_lines(tmp_path):
    logger = RequestLogger(tmp_path)
    path = await logger.log_llm_response("abc\ndef\n")
    text = path.read_text(encoding="utf-8")
    assert path.name.startswith("llm_response_")
    assert "Content Lines: 2" in text
    assert text.endswith("abc\ndef\n\n")


@pytest.mark.asyncio
async def test_log_error_contains_context(tmp_path):
    logger = RequestLogger(tmp_path)
    path = await logger.log_error("LLM API Error", "status 500")
    text = path.read_text(encoding="utf-8")
    assert path.name.startswith("error_")
    assert "Context: LLM API Error" in text
    assert "Error Details" in text
    assert text.rstrip().endswith("status 500")