"""System prompt, output format and per-job requirement prompts."""

from __future__ import annotations

from pathlib import Path

SYSTEM_PROMPT = (
    "你是一位专业的HR和招聘专家，擅长分析简历并给出客观、专业的评价。"
    "你需要根据岗位要求评估候选人的匹配度。"
)

_SAMPLE_BASIC_INFO = (
    ("name", "张三"),
    ("gender", "男"),
    ("age", "28"),
    ("phone", "[phone]"),
    ("email", "zhangsan@example.com"),
    ("location", "北京"),
    ("work_years", "5年"),
    ("degree", "本科"),
    ("major", "计算机科学与技术"),
    ("school", "北京大学"),
    ("current_company", "某科技公司"),
    ("current_position", "高级后端工程师"),
)

_SAMPLE_SUMMARY = (
    "候选人具有5年软件开发经验，技术栈扎实。"
    "在分布式系统和高并发场景有丰富实践，主导过多个核心项目。"
    "Rust 技能突出，符合岗位核心要求。"
    "有开源贡献，展现良好的技术影响力。"
    "整体与岗位匹配度较高，建议进入面试环节。"
)

_SAMPLE_SKILLS = (
    "优秀",
    "精通 Rust 语言，熟悉 Tokio 异步编程。"
    "对分布式系统、微服务架构有深入理解。"
    "数据库和缓存使用经验丰富。"
    "完全符合岗位技术栈要求。",
)

_SAMPLE_EXPERIENCE = (
    "良好",
    "5年后端开发经验，参与过3个大型项目。"
    "有从0到1搭建系统的经验，能独立承担核心模块开发。"
    "项目复杂度适中,展现出较强的工程能力。",
)

_SAMPLE_STRENGTHS = (
    "Rust 技术深度突出，" "有3年以上实战经验和开源项目贡献",
    "分布式系统设计能力强，" "主导过千万级用户量的核心服务",
    "代码质量意识好，" "注重测试和文档，有良好的工程素养",
    "学习能力强，" "技术栈更新及时，保持技术敏感度",
)

_SAMPLE_CONCERNS = (
    "团队协作经验描述较少，" "需面试中重点了解沟通协作能力",
    "云原生技术栈（K8s）经验不足，" "需确认学习意愿和能力",
    "简历中性能优化案例缺少量化数据，" "需验证实际深度",
)

_SAMPLE_FOCUS = (
    "深入考察分布式系统设计能力：" "询问具体架构决策、技术选型依据、遇到的挑战及解决方案",
    "验证 Rust 实战能力：" "了解异步编程最佳实践、内存管理经验、性能调优案例",
    "评估问题解决能力：" "询问遇到的最大技术难题、分析思路、解决过程和反思总结",
    "了解团队协作方式：" "沟通风格、code review 习惯、技术分享经验、冲突处理方式",
    "确认岗位匹配度：" "对该岗位的理解、职业规划、技术成长预期、稳定性评估",
)

_IMPORTANT_NOTICE = (
    "**重要提示**：所有基础信息字段必须从简历中真实提取，"
    "如果简历中没有相关信息，必须填写\"未知\"，不要编造或推测。"
)


def _element(tag: str, text: str, indent: int) -> str:
    return f"{' ' * indent}<{tag}>{text}</{tag}>"


def _block(tag: str, children: list[str]) -> list[str]:
    return [f"  <{tag}>", *children, f"  </{tag}>"]


def _item_block(tag: str, items: tuple[str, ...]) -> list[str]:
    return _block(tag, [_element("item", item, 4) for item in items])


def _pair_block(tag: str, pair: tuple[str, str]) -> list[str]:
    level, details = pair
    return _block(tag, [_element("level", level, 4), _element("details", details, 4)])


def _build_output_spec() -> str:
    sections = [
        _block("basic_info", [_element(tag, text, 4) for tag, text in _SAMPLE_BASIC_INFO]),
        [_element("score", "85", 2), _element("summary", _SAMPLE_SUMMARY, 2)],
        _pair_block("skills", _SAMPLE_SKILLS),
        _pair_block("experience", _SAMPLE_EXPERIENCE),
        _item_block("strengths", _SAMPLE_STRENGTHS),
        _item_block("concerns", _SAMPLE_CONCERNS),
        _item_block("focus", _SAMPLE_FOCUS),
    ]
    body = "\n  \n".join("\n".join(section) for section in sections)
    example = f"<analysis>\n{body}\n</analysis>"
    heading = "\n## 返回格式\n\n" + "严格的 XML 格式，" + "不要有任何额外的文字说明：\n\n"
    return f"{heading}```xml\n{example}\n```\n\n{_IMPORTANT_NOTICE}\n"


OUTPUT_FORMAT_SPEC = _build_output_spec()

_VISION_INTRO = "请仔细阅读上传的简历文件，" + "并根据以下岗位要求进行分析："

_VISION_NOTES = (
    "仔细提取简历中的所有关键信息，" "包括基础信息、技能、经验等",
    "如果简历中没有某个基础信息字段，" "请填写\"未知\"，不要推测或编造",
    "按照 XML 格式" "严格输出分析结果",
)

UNKNOWN_JOB_TITLE = "未知岗位"
DEFAULT_JOBS_DIR = "prompts/jobs"


class PromptError(Exception):
    """Raised when job prompts cannot be loaded or found."""


def extract_title(content: str) -> str:
    """Return the first level-one Markdown heading, or a placeholder title."""
    for line in content.split("\n"):
        line = line.removesuffix("\r")
        if line.startswith("# "):
            while line.startswith("# "):
                line = line[2:]
            return line.strip()
    return UNKNOWN_JOB_TITLE


class PromptManager:
    """Holds job requirement texts keyed by job name."""

    def __init__(self, jobs: dict[str, str]) -> None:
        self.jobs = dict(jobs)

    @classmethod
    def load(cls, jobs_dir: str | Path = DEFAULT_JOBS_DIR) -> PromptManager:
        """Read every ``*.md`` file of ``jobs_dir``, keyed by file stem."""
        directory = Path(jobs_dir)
        if not directory.exists():
            raise PromptError(f"Jobs directory not found at {jobs_dir}")
        jobs: dict[str, str] = {}
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            raise PromptError(f"Failed to list jobs directory {jobs_dir}: {exc}") from exc
        for path in entries:
            if path.suffix != ".md":
                continue
            try:
                jobs[path.stem] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise PromptError(f"Failed to read job file: {path}") from exc
        if not jobs:
            raise PromptError(f"No job files found in {jobs_dir} directory")
        return cls(jobs)

    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_analysis_prompt_for_vision(self, job_key: str | None = None) -> str:
        """Build the user prompt for a vision model; unknown jobs fall back to ``default``."""
        key = job_key or "default"
        content = self.jobs.get(key)
        if content is None:
            content = self.jobs.get("default")
        if content is None:
            raise PromptError(f"Job '{key}' not found")
        job_xml = (
            f"<job_title>{extract_title(content)}</job_title>\n"
            f"<requirements>\n{content.strip()}\n</requirements>"
        )
        notes = "\n".join(
            f"{number}. {note}" for number, note in enumerate(_VISION_NOTES, start=1)
        )
        return "\n\n".join([_VISION_INTRO, job_xml, OUTPUT_FORMAT_SPEC, "请注意：\n" + notes])