"""
Best-effort command handling — ignore only the outcomes we expect.

Disabling audio servers and adding group memberships must not abort a
run just because a unit or group doesn't exist on this image. Rather
than swallowing every failure, each result is classified from its
stderr and only the named classes are discarded. Anything else
(permission denied, a broken system bus) still surfaces.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Collection

from drumbrain.adapters.base import CommandResult
from drumbrain.core.errors import ProvisioningError

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ALREADY_DONE = "already_done"
    NO_BUS = "no_bus"
    PERMISSION = "permission"
    OTHER = "other"


# Order matters: the first matching class wins.
_PATTERNS: list[tuple[Outcome, re.Pattern[str]]] = [
    (
        Outcome.PERMISSION,
        re.compile(
            r"permission denied|access denied|interactive authentication required"
            r"|not in the sudoers|a password is required|must be root",
            re.IGNORECASE,
        ),
    ),
    (
        Outcome.NO_BUS,
        re.compile(
            r"failed to connect to (user scope )?bus|DBUS_SESSION_BUS_ADDRESS|XDG_RUNTIME_DIR",
            re.IGNORECASE,
        ),
    ),
    (
        Outcome.NOT_FOUND,
        re.compile(
            r"does not exist|not found|no such file|not loaded|could not be found",
            re.IGNORECASE,
        ),
    ),
    (
        Outcome.ALREADY_DONE,
        re.compile(r"already (masked|disabled|stopped|a member)|is masked", re.IGNORECASE),
    ),
]


def classify(result: CommandResult) -> Outcome:
    """Map a command result to an ``Outcome``."""
    if result.ok:
        return Outcome.OK
    if result.error:
        return Outcome.OTHER
    text = f"{result.stderr}\n{result.stdout}"
    for outcome, pattern in _PATTERNS:
        if pattern.search(text):
            return outcome
    return Outcome.OTHER


def try_ignoring(
    result: CommandResult,
    ignorable: Collection[Outcome],
    error: type[ProvisioningError],
    message: str = "",
) -> Outcome:
    """Accept ``result`` if it succeeded or failed in an ignorable way.

    Ignored outcomes are logged at debug and returned. Any other
    failure raises ``error`` with the command's diagnostic attached.

    >>> r = CommandResult.failure(["systemctl", "mask", "x"], stderr="Unit x.service not loaded.")
    >>> try_ignoring(r, {Outcome.NOT_FOUND}, ProvisioningError).value
    'not_found'
    """
    outcome = classify(result)
    if outcome is Outcome.OK:
        return outcome
    if outcome in ignorable:
        logger.debug("Ignoring %s for %s", outcome.value, result.command_line)
        return outcome
    raise error(
        message or f"{result.command_line} failed ({outcome.value})",
        detail=result.describe(),
    )
