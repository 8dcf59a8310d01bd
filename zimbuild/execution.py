"""Interfaces for executing commands and running rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TextIO

from zimbuild.status import Code


@dataclass
class ExecOpts:
    """Options for executing one command."""

    command: str = ""
    working_directory: str = ""
    env: list[str] = field(default_factory=list)
    image: str = ""
    name: str = ""
    stdout: TextIO | None = None
    stderr: TextIO | None = None
    cmdout: TextIO | None = None
    debug: bool = False


class Executor(ABC):
    """Runs shell commands, possibly inside a container."""

    @abstractmethod
    def execute(self, opts: ExecOpts) -> None:
        """Run a command; raise if it fails."""

    @abstractmethod
    def uses_docker(self) -> bool:
        """True if commands run inside a Docker container."""

    @abstractmethod
    def executor_path(self, path: str) -> str:
        """The given host path as seen by executed commands."""


@dataclass
class RunOpts:
    """Options used when running a rule."""

    build_id: str = ""
    executor: Executor | None = None
    output: TextIO | None = None
    debug_output: TextIO | None = None
    debug: bool = False


class RunError(Exception):
    """Running a rule failed; ``code`` tells how."""

    def __init__(self, message: str, code: Code = Code.ERROR) -> None:
        super().__init__(message)
        self.code = Code(code)


class Runner(ABC):
    """Runs rules; implementations may decorate one another."""

    @abstractmethod
    def run(self, rule: Any, opts: RunOpts) -> Code:
        """Run a rule and return its result code; raise RunError on failure."""


class RunnerFunc(Runner):
    """A runner backed by a plain function taking a rule and options."""

    def __init__(self, func: Callable[[Any, RunOpts], Code]) -> None:
        self.func = func

    def run(self, rule: Any, opts: RunOpts) -> Code:
        return self.func(rule, opts)