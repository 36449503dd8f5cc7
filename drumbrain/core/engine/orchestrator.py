"""
Provisioning orchestrator — runs the setup steps, in order, once.

Flow:
    identity check → banner → for each step: progress line → action → outcome
    → completion summary + next steps

Strictly sequential and fail-fast. The first step that raises a
``ProvisioningError`` ends the run with a ``StepFailure``; earlier
steps are not undone. Every step converges, so running the whole
setup again is the recovery path.
"""

from __future__ import annotations

import getpass
import logging
import os
import pwd
import time
from typing import Callable

from drumbrain.core.errors import IdentityMismatch, ProvisioningError, StepFailure
from drumbrain.core.models.config import SetupConfig
from drumbrain.core.models.step import (
    RunReport,
    RunState,
    Step,
    StepOutcome,
    format_progress,
)
from drumbrain.core.services.artifacts import SERVICE_NAMES
from drumbrain.core.services.templates import BANNER, NEXT_STEPS, render_template

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def current_user() -> str:
    """Login name of the effective uid (what ``whoami`` prints)."""
    try:
        return pwd.getpwuid(os.geteuid()).pw_name
    except KeyError:
        return getpass.getuser()


class Orchestrator:
    """Drive an ordered list of steps to completion or first failure."""

    def __init__(
        self,
        steps: list[Step],
        config: SetupConfig,
        echo: Echo = print,
        whoami: Callable[[], str] = current_user,
    ):
        self._steps = list(steps)
        self._config = config
        self._echo = echo
        self._whoami = whoami

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    def check_identity(self) -> None:
        """Raise ``IdentityMismatch`` unless run by the configured user."""
        actual = self._whoami()
        if actual != self._config.user:
            raise IdentityMismatch(expected=self._config.user, actual=actual)

    def run(self) -> RunReport:
        """Run every step.

        Raises:
            IdentityMismatch: Invoked by the wrong user; nothing was run.
            StepFailure: A step failed; later steps were not run.
        """
        self._echo(BANNER)
        self.check_identity()

        state = RunState(total_steps=len(self._steps))
        report = RunReport(user=self._config.user)

        for step in self._steps:
            state.advance()
            self._echo(format_progress(state, step.description))

            start = time.monotonic()
            try:
                message = step.action()
            except ProvisioningError as exc:
                # The caller reports the failure
                logger.info("Step %d failed: %s", step.index, exc.message)
                if exc.detail:
                    logger.debug("  %s", exc.detail)
                raise StepFailure(step.index, step.description, exc) from exc
            elapsed_ms = int((time.monotonic() - start) * 1000)

            if message:
                self._echo(f"      {message}")
            logger.debug("Step %d done in %dms", step.index, elapsed_ms)
            report.outcomes.append(
                StepOutcome(
                    index=step.index,
                    description=step.description,
                    message=message or "",
                    duration_ms=elapsed_ms,
                )
            )

        self._echo_summary()
        return report

    def _echo_summary(self) -> None:
        rule = "=" * 40
        self._echo("")
        self._echo(rule)
        self._echo("  DrumBrain setup complete (100% done)  ")
        self._echo(rule)
        self._echo("")
        status_lines = "\n".join(
            f"       systemctl status {name.removesuffix('.service')}" for name in SERVICE_NAMES
        )
        self._echo(render_template(NEXT_STEPS, {"status_lines": status_lines}))
