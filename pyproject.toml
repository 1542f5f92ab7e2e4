[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "growbot"
version = "0.1.0"
description = "SQLite storage, scoring and helper logic for a group-chat length-growing game bot"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "bot", "game", "sqlite", "leaderboard", "prometheus"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Games/Entertainment",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["growbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
