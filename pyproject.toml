[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fundamentum"
version = "0.1.0"
description = "SQLite-backed storage layer for a community chat moderation and engagement bot"
requires-python = ">=3.11"
dependencies = [
    "bcrypt",
]
keywords = ["chat", "bot", "moderation", "sqlite", "community"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fundamentum"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
