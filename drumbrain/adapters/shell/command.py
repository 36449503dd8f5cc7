"""
Subprocess runner — the SINGLE PLACE where ``subprocess.run`` is called.

Sudo handling, environment overrides, output capture and timeouts
are centralised here. Nothing else in the package spawns processes.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from drumbrain.adapters.base import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

# Keep only the tail of long outputs (apt is chatty)
_OUTPUT_TAIL = 4000


class SubprocessRunner(CommandRunner):
    """Run commands on the local machine.

    ``sudo=True`` prefixes the command with ``sudo`` unless the process
    already runs as root. Sudo itself is expected to prompt on the
    terminal; no password is ever handled here.
    """

    def __init__(self, use_sudo: bool = True):
        self._use_sudo = use_sudo

    def run(
        self,
        argv: list[str],
        *,
        sudo: bool = False,
        input_text: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = 300,
    ) -> CommandResult:
        cmd = list(argv)
        if sudo and self._use_sudo and os.geteuid() != 0:
            cmd = ["sudo"]
            if env:
                # sudo resets the environment; pass overrides explicitly
                cmd += [f"{key}={value}" for key, value in env.items()]
            cmd += argv

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input_text,
                env=full_env,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                argv=cmd,
                returncode=-1,
                error=f"timed out after {timeout}s",
            )
        except FileNotFoundError as e:
            return CommandResult(
                argv=cmd,
                returncode=127,
                error=f"executable not found: {e.filename or cmd[0]}",
            )
        except OSError as e:
            return CommandResult(argv=cmd, returncode=-1, error=str(e))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout[-_OUTPUT_TAIL:] if result.stdout else ""
        stderr = result.stderr[-_OUTPUT_TAIL:] if result.stderr else ""

        if result.returncode != 0:
            logger.debug("Exit %d from %s: %s", result.returncode, cmd[0], stderr.strip())

        return CommandResult(
            argv=cmd,
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed_ms,
        )
