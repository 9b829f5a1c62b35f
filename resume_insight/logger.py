"""Writes LLM request, response and error records to timestamped files."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

_RULE = "=" * 80


def _file_stamp(now: datetime) -> str:
    return f"{now:%Y%m%d_%H%M%S}.{now.microsecond // 1000:03d}"


def _display_stamp(now: datetime) -> str:
    return f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:03d}"


def _count_lines(text: str) -> int:
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return len(parts)


def _section(title: str) -> str:
    return f"{_RULE}\n{title}\n{_RULE}\n"


class RequestLogger:
    """Stores one file per logged event in a log directory."""

    def __init__(self, log_dir: str | Path) -> None:
        self.log_dir = Path(log_dir)

    async def ensure_log_dir(self) -> None:
        if not self.log_dir.exists():
            await asyncio.to_thread(self.log_dir.mkdir, parents=True, exist_ok=True)
            log.info("Log directory created: %s", self.log_dir)

    async def _write(self, prefix: str, content: str, now: datetime) -> Path:
        await self.ensure_log_dir()
        path = self.log_dir / f"{prefix}_{_file_stamp(now)}.log"
        await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        log.debug("Logged to: %s", path)
        return path

    async def log_llm_request(
        self, system_prompt: str, user_prompt: str, file_url: str, request: Any
    ) -> Path:
        now = datetime.now()
        payload = request.to_dict() if hasattr(request, "to_dict") else request
        try:
            request_json = json.dumps(payload, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            request_json = f"Failed to serialize request: {exc}"
        content = (
            _section("LLM Request Log")
            + f"Timestamp: {_display_stamp(now)}\nFile URL: {file_url}\n\n"
            + _section("System Prompt")
            + f"{system_prompt}\n\n"
            + _section("User Prompt")
            + f"{user_prompt}\n\n"
            + _section("Request Payload (JSON)")
            + f"{request_json}\n"
        )
        return await self._write("llm_request", content, now)

    async def log_llm_response(self, content: str) -> Path:
        now = datetime.now()
        text = (
            _section("LLM Response Log")
            + f"Timestamp: {_display_stamp(now)}\n"
            + f"Content Length: {len(content.encode('utf-8'))} chars\n"
            + f"Content Lines: {_count_lines(content)}\n\n"
            + _section("Response Content")
            + f"{content}\n"
        )
        return await self._write("llm_response", text, now)

    async def log_error(self, context: str, error: str) -> Path:
        now = datetime.now()
        text = (
            _section("Error Log")
            + f"Timestamp: {_display_stamp(now)}\nContext: {context}\n\n"
            + _section("Error Details")
            + f"{error}\n"
        )
        return await self._write("error", text, now)