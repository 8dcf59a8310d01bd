[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zimbuild"
version = "0.1.0"
description = "Component-oriented build orchestration: rules, dependencies, conditions, artifact stores and a parallel scheduler"
requires-python = ">=3.10"
keywords = ["build", "monorepo", "scheduler", "dependency-graph", "cache"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "networkx",
    "requests",
    "termcolor",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["zimbuild"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
