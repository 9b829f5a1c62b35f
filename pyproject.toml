[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "resume-insight"
version = "0.1.0"
description = "HTTP service that stores uploaded résumés and scores them against job descriptions with a multimodal LLM"
requires-python = ">=3.10"
keywords = ["resume", "recruiting", "llm", "http-api", "aiohttp", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business",
]
dependencies = [
    "aiohttp>=3.9",
    "aiosqlite>=0.19",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
resume-insight = "resume_insight.app:main"

[tool.hatch.build.targets.wheel]
packages = ["resume_insight"]

[tool.hatch.build.targets.sdist]
include = ["resume_insight", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
