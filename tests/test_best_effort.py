"""
Tests for best-effort classification of failed commands.
"""

import pytest

from drumbrain.adapters.base import CommandResult
from drumbrain.core.errors import ServiceCommandFailure
from drumbrain.core.reliability.best_effort import Outcome, classify, try_ignoring

ARGV = ["systemctl", "mask", "pipewire.service"]


def _failed(stderr: str, returncode: int = 1) -> CommandResult:
    return CommandResult.failure(ARGV, returncode=returncode, stderr=stderr)


class TestClassify:
    def test_success(self):
        assert classify(CommandResult.success(ARGV)) is Outcome.OK

    @pytest.mark.parametrize(
        "stderr, expected",
        [
            ("Failed to disable unit: Unit file pipewire.service does not exist.", Outcome.NOT_FOUND),
            ("Unit wireplumber.service not loaded.", Outcome.NOT_FOUND),
            ("usermod: group 'realtime' does not exist", Outcome.NOT_FOUND),
            ("Unit pulseaudio.service is masked.", Outcome.ALREADY_DONE),
            ("Failed to connect to bus: No medium found", Outcome.NO_BUS),
            ("Failed to connect to bus: No such file or directory", Outcome.NO_BUS),
            ("Failed to connect to user scope bus via local transport: $DBUS_SESSION_BUS_ADDRESS and $XDG_RUNTIME_DIR not defined", Outcome.NO_BUS),
            ("Failed to mask unit: Access denied", Outcome.PERMISSION),
            ("sudo: a password is required", Outcome.PERMISSION),
            ("Failed to mask unit: Read-only file system", Outcome.OTHER),
        ],
    )
    def test_stderr_patterns(self, stderr, expected):
        assert classify(_failed(stderr)) is expected

    def test_permission_wins_over_not_found(self):
        result = _failed("Failed to disable unit: Unit file does not exist: Permission denied")
        assert classify(result) is Outcome.PERMISSION

    def test_runner_error_is_other(self):
        result = CommandResult(argv=ARGV, returncode=127, error="executable not found: systemctl")
        assert classify(result) is Outcome.OTHER

    def test_stdout_is_considered(self):
        result = CommandResult(argv=ARGV, returncode=1, stdout="Unit foo.service not found.")
        assert classify(result) is Outcome.NOT_FOUND


class TestTryIgnoring:
    def test_ok_passes(self):
        assert try_ignoring(CommandResult.success(ARGV), set(), ServiceCommandFailure) is Outcome.OK

    def test_ignorable_returned(self):
        outcome = try_ignoring(_failed("Unit x not loaded."), {Outcome.NOT_FOUND}, ServiceCommandFailure)
        assert outcome is Outcome.NOT_FOUND

    def test_not_ignorable_raises_given_error(self):
        with pytest.raises(ServiceCommandFailure) as exc_info:
            try_ignoring(
                _failed("Access denied"),
                {Outcome.NOT_FOUND},
                ServiceCommandFailure,
                "Cannot mask pipewire.service",
            )
        assert exc_info.value.message == "Cannot mask pipewire.service"
        assert "systemctl mask pipewire.service exited 1: Access denied" == exc_info.value.detail

    def test_default_message(self):
        with pytest.raises(ServiceCommandFailure, match="failed \\(other\\)"):
            try_ignoring(_failed("boom"), set(), ServiceCommandFailure)
