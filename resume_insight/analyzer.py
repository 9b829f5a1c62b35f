"""Stores uploaded resumes and asks the LLM to assess them."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import xml.etree.ElementTree as ET
from http import HTTPStatus
from pathlib import Path, PurePath

import aiohttp

from .config import LlmConfig, ServerConfig
from .errors import InternalError, LlmError
from .logger import RequestLogger
from .models import (
    Analysis,
    BasicInfo,
    ChatRequest,
    ChatResponse,
    Experience,
    FileUrlPart,
    Message,
    Skills,
    TextPart,
    ThinkingConfig,
)
from .prompts import PromptError, PromptManager

log = logging.getLogger(__name__)

_BASIC_INFO_TAGS = (
    "name",
    "gender",
    "age",
    "phone",
    "email",
    "location",
    "work_years",
    "degree",
    "major",
    "school",
    "current_company",
    "current_position",
)
_SCORE = re.compile(r"\+?[0-9]+")


def calculate_hash(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def get_extension(filename: str) -> str:
    """Return the lowercased extension of ``filename``, ``pdf`` when there is none."""
    name = PurePath(filename).name
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem or name == "..":
        return "pdf"
    return extension.lower()


def extract_analysis_xml(content: str) -> str:
    """Cut the ``<analysis>`` document out of a reply, dropping code fences."""
    if "```xml" in content:
        text = content.split("```xml")[1].split("```")[0]
    elif "```" in content:
        text = content.split("```")[1]
    else:
        text = content
    text = text.strip()
    start = text.find("<analysis>")
    if start == -1:
        return text
    end = text.find("</analysis>")
    if end == -1:
        return text
    return text[start : end + len("</analysis>")]


def _child(parent: ET.Element, tag: str) -> ET.Element:
    element = parent.find(tag)
    if element is None:
        raise ValueError(f"missing field `{tag}`")
    return element


def _text(element: ET.Element) -> str:
    return "".join(element.itertext()).strip()


def _field(parent: ET.Element, tag: str) -> str:
    return _text(_child(parent, tag))


def _items(parent: ET.Element, tag: str) -> list[str]:
    return [_text(item) for item in _child(parent, tag).findall("item")]


def parse_xml(xml: str) -> Analysis:
    """Parse an ``<analysis>`` document, raising ValueError if it is malformed."""
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise ValueError(f"invalid XML: {exc}") from exc

    score_text = _field(root, "score")
    if not _SCORE.fullmatch(score_text) or int(score_text) >= 2**32:
        raise ValueError(f"invalid score: {score_text!r}")

    info = _child(root, "basic_info")
    skills = _child(root, "skills")
    experience = _child(root, "experience")
    return Analysis(
        basic_info=BasicInfo(**{tag: _field(info, tag) for tag in _BASIC_INFO_TAGS}),
        score=int(score_text),
        summary=_field(root, "summary"),
        skills=Skills(level=_field(skills, "level"), details=_field(skills, "details")),
        experience=Experience(
            level=_field(experience, "level"), details=_field(experience, "details")
        ),
        strengths=_items(root, "strengths"),
        concerns=_items(root, "concerns"),
        focus=_items(root, "focus"),
    )


def parse_analysis(content: str) -> Analysis:
    """Extract and parse the analysis in an LLM reply, raising LlmError on failure."""
    xml = extract_analysis_xml(content)
    try:
        return parse_xml(xml)
    except ValueError as exc:
        log.error("Failed to parse XML: %s", exc)
        log.error("Content: %s", xml)
        raise LlmError(f"Failed to parse analysis: {exc}") from exc


def _status_line(status: int) -> str:
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = "<unknown status code>"
    return f"{status} {reason}"


class Analyzer:
    """Saves resume files and runs the LLM assessment on them."""

    def __init__(
        self,
        llm_config: LlmConfig,
        server_config: ServerConfig,
        prompt_manager: PromptManager | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.llm_config = llm_config
        self.server_config = server_config
        self.prompt_manager = prompt_manager if prompt_manager is not None else PromptManager.load()
        self.session = session
        self.logger = RequestLogger(server_config.logs_dir)

    async def save_file(self, data: bytes, filename: str) -> str:
        """Store ``data`` under its content hash and return its public URL."""
        files_dir = Path(self.server_config.files_dir)
        try:
            await asyncio.to_thread(files_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise InternalError(f"Failed to create files dir: {exc}") from exc

        file_hash = calculate_hash(data)
        hash_filename = f"{file_hash}.{get_extension(filename)}"
        file_path = files_dir / hash_filename

        if file_path.exists():
            log.info("File already exists (hash: %s), reusing", file_hash)
        else:
            try:
                await asyncio.to_thread(file_path.write_bytes, data)
            except OSError as exc:
                raise InternalError(f"Failed to write file: {exc}") from exc
            log.info("New file saved (hash: %s)", file_hash)

        return f"{self.server_config.base_url.rstrip('/')}/files/{hash_filename}"

    async def analyze_file(
        self, file_data: bytes, filename: str, job_key: str | None = None
    ) -> Analysis:
        """Save the file, send it to the LLM with the job prompt and parse the reply."""
        file_url = await self.save_file(file_data, filename)
        try:
            prompt = self.prompt_manager.build_analysis_prompt_for_vision(job_key)
        except PromptError as exc:
            raise InternalError(str(exc)) from exc
        system_prompt = self.prompt_manager.system_prompt()

        request = ChatRequest(
            model=self.llm_config.model,
            messages=[
                Message(role="system", content=system_prompt),
                Message(role="user", content=[FileUrlPart(url=file_url), TextPart(text=prompt)]),
            ],
            temperature=0.7,
            thinking=ThinkingConfig(thinking_type="enabled"),
        )

        log.info("Sending LLM request")
        log.debug("Model: %s", request.model)
        log.debug("File URL: %s", file_url)
        try:
            await self.logger.log_llm_request(system_prompt, prompt, file_url, request)
        except OSError as exc:
            log.warning("Failed to write request log: %s", exc)

        if self.session is None:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None)
            ) as session:
                content = await self._complete(session, request)
        else:
            content = await self._complete(self.session, request)

        log.info("Received LLM response (%d chars)", len(content))
        try:
            await self.logger.log_llm_response(content)
        except OSError as exc:
            log.warning("Failed to write response log: %s", exc)

        try:
            return parse_analysis(content)
        except LlmError as exc:
            detail = f"Parse error: {exc}\n\nResponse content:\n{content}"
            try:
                await self.logger.log_error("XML Parse Error", detail)
            except OSError as log_exc:
                log.warning("Failed to write parse error log: %s", log_exc)
            raise

    async def _complete(self, session: aiohttp.ClientSession, request: ChatRequest) -> str:
        url = f"{self.llm_config.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.llm_config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with session.post(url, json=request.to_dict(), headers=headers) as response:
                if not 200 <= response.status < 300:
                    try:
                        body = (await response.read()).decode("utf-8", errors="replace")
                    except aiohttp.ClientError:
                        body = ""
                    message = f"LLM API returned status {_status_line(response.status)}: {body}"
                    try:
                        await self.logger.log_error("LLM API Error", message)
                    except OSError as exc:
                        log.warning("Failed to write error log: %s", exc)
                    raise LlmError(message)
                try:
                    data = await response.json(content_type=None)
                    chat_response = ChatResponse.from_dict(data)
                except (aiohttp.ClientError, ValueError) as exc:
                    raise LlmError(f"Failed to parse LLM response: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise LlmError(f"Failed to send request to LLM: {exc}") from exc
        return chat_response.first_content()