"""Analysis results and the chat-completion wire format."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Union

from .errors import LlmError

_BASIC_INFO_FIELDS = (
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


def _require(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object containing '{key}'")
    if key not in data:
        raise ValueError(f"missing field '{key}'")
    return data[key]


def _string(data: Any, key: str) -> str:
    value = _require(data, key)
    if not isinstance(value, str):
        raise ValueError(f"field '{key}' must be a string")
    return value


def _string_list(data: Any, key: str) -> list[str]:
    value = _require(data, key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"field '{key}' must be a list of strings")
    return list(value)


@dataclass
class BasicInfo:
    name: str
    gender: str
    age: str
    phone: str
    email: str
    location: str
    work_years: str
    degree: str
    major: str
    school: str
    current_company: str
    current_position: str


@dataclass
class Skills:
    level: str
    details: str


@dataclass
class Experience:
    level: str
    details: str


@dataclass
class Analysis:
    """The structured assessment of one resume."""

    basic_info: BasicInfo
    score: int
    summary: str
    skills: Skills
    experience: Experience
    strengths: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)
    focus: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> Analysis:
        """Build an analysis from decoded JSON, raising ValueError if it is malformed."""
        info = _require(data, "basic_info")
        score = _require(data, "score")
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score < 2**32:
            raise ValueError("field 'score' must be a non-negative integer")
        skills = _require(data, "skills")
        experience = _require(data, "experience")
        return cls(
            basic_info=BasicInfo(**{name: _string(info, name) for name in _BASIC_INFO_FIELDS}),
            score=score,
            summary=_string(data, "summary"),
            skills=Skills(level=_string(skills, "level"), details=_string(skills, "details")),
            experience=Experience(
                level=_string(experience, "level"),
                details=_string(experience, "details"),
            ),
            strengths=_string_list(data, "strengths"),
            concerns=_string_list(data, "concerns"),
            focus=_string_list(data, "focus"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str) -> Analysis:
        return cls.from_dict(json.loads(text))


@dataclass
class ThinkingConfig:
    thinking_type: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.thinking_type}


@dataclass
class TextPart:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass
class FileUrlPart:
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "file_url", "file_url": {"url": self.url}}


ContentPart = Union[TextPart, FileUrlPart]


@dataclass
class Message:
    """A chat message whose content is plain text or a list of parts."""

    role: str
    content: str | list[ContentPart] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role}
        if isinstance(self.content, str):
            result["content"] = self.content
        elif self.content is not None:
            result["content"] = [part.to_dict() for part in self.content]
        return result


@dataclass
class ChatRequest:
    model: str
    messages: list[Message]
    temperature: float | None = None
    thinking: ThinkingConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
        }
        if self.temperature is not None:
            result["temperature"] = self.temperature
        if self.thinking is not None:
            result["thinking"] = self.thinking.to_dict()
        return result


@dataclass
class ChatResponse:
    """The message contents of each returned choice."""

    choices: list[str]

    @classmethod
    def from_dict(cls, data: Any) -> ChatResponse:
        choices = _require(data, "choices")
        if not isinstance(choices, list):
            raise ValueError("field 'choices' must be a list")
        return cls(choices=[_string(_require(choice, "message"), "content") for choice in choices])

    def first_content(self) -> str:
        if not self.choices:
            raise LlmError("No choices in response")
        return self.choices[0]


@dataclass
class AnalysisResponse:
    filename: str
    job_key: str | None
    analysis: Analysis

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "job_key": self.job_key,
            "analysis": self.analysis.to_dict(),
        }