[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "listly"
version = "0.1.0"
description = "Named todo lists kept in a local store, with a Vim-style terminal editor and JSON/YAML import and export."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["todo", "tasks", "tui", "productivity", "yaml", "json"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["listly"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
