"""
Recording runner — test double for every command a step issues.

Records each call and answers from configured rules. By default every
command succeeds with empty output, so a whole setup run can be
exercised without touching apt, systemd or user accounts.
"""

from __future__ import annotations

from typing import Callable

from drumbrain.adapters.base import CommandLog, CommandResult, CommandRunner

Responder = Callable[[list[str]], CommandResult]


class RecordingRunner(CommandRunner):
    """Universal fake runner.

    Rules match on an argv prefix; the most recently added matching
    rule wins. A rule answers with a fixed result or a callable.
    """

    def __init__(self):
        self._rules: list[tuple[tuple[str, ...], Responder]] = []
        self._call_log: list[CommandLog] = []

    @property
    def call_log(self) -> list[CommandLog]:
        """All calls this runner has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def commands(self) -> list[list[str]]:
        """Just the argv of every call."""
        return [entry.argv for entry in self._call_log]

    def calls_starting_with(self, *prefix: str) -> list[CommandLog]:
        return [c for c in self._call_log if tuple(c.argv[: len(prefix)]) == prefix]

    def respond(self, prefix: tuple[str, ...] | list[str], answer: CommandResult | Responder) -> None:
        """Answer commands starting with ``prefix``."""
        if isinstance(answer, CommandResult):
            fixed = answer
            responder: Responder = lambda argv: fixed.model_copy(update={"argv": argv})
        else:
            responder = answer
        self._rules.append((tuple(prefix), responder))

    def fail(
        self,
        prefix: tuple[str, ...] | list[str],
        stderr: str = "mock failure",
        returncode: int = 1,
    ) -> None:
        """Make commands starting with ``prefix`` fail."""
        self.respond(prefix, CommandResult.failure(list(prefix), returncode=returncode, stderr=stderr))

    def run(
        self,
        argv: list[str],
        *,
        sudo: bool = False,
        input_text: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = 300,
    ) -> CommandResult:
        self._call_log.append(
            CommandLog(argv=list(argv), sudo=sudo, input_text=input_text, env=env or {})
        )
        for prefix, responder in reversed(self._rules):
            if tuple(argv[: len(prefix)]) == prefix:
                return responder(list(argv))
        return CommandResult.success(list(argv))

    def reset(self) -> None:
        """Clear call log and rules."""
        self._call_log.clear()
        self._rules.clear()
