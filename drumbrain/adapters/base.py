"""
Runner base — the contract between steps and external programs.

Steps never call ``subprocess`` themselves. They hand an argv list to
a ``CommandRunner`` and get a ``CommandResult`` back. Runners NEVER
raise for a failed command: a non-zero exit, a timeout or a missing
executable is captured in the result, and the step decides whether
that outcome is fatal, ignorable, or "already done".
"""

from __future__ import annotations

import shlex
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of one external command."""

    argv: list[str]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    error: str | None = None         # runner-level failure (timeout, not found)

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    @property
    def failed(self) -> bool:
        return not self.ok

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)

    def describe(self) -> str:
        """One-line failure description for error messages."""
        if self.error:
            return f"{self.command_line}: {self.error}"
        tail = self.stderr.strip().splitlines()[-1:] or [""]
        suffix = f": {tail[0]}" if tail[0] else ""
        return f"{self.command_line} exited {self.returncode}{suffix}"

    @classmethod
    def success(cls, argv: list[str], stdout: str = "", **kwargs) -> CommandResult:
        return cls(argv=argv, returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(
        cls,
        argv: list[str],
        returncode: int = 1,
        stderr: str = "",
        **kwargs,
    ) -> CommandResult:
        return cls(argv=argv, returncode=returncode, stderr=stderr, **kwargs)


class CommandRunner(ABC):
    """Abstract base class for everything that executes commands.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement run()
    """

    @abstractmethod
    def run(
        self,
        argv: list[str],
        *,
        sudo: bool = False,
        input_text: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = 300,
    ) -> CommandResult:
        """Run ``argv`` (prefixed with ``sudo`` when asked) and return its result.

        MUST never raise for a failed command.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class CommandLog(BaseModel):
    """A recorded call, kept by test doubles."""

    argv: list[str]
    sudo: bool = False
    input_text: str | None = None
    env: dict[str, str] = Field(default_factory=dict)
