"""
Tests for CLI commands — setup, plan, render, devices, and global options.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from drumbrain.adapters.base import CommandResult
from drumbrain.adapters.mock import RecordingRunner
from drumbrain.main import cli


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path: Path):
    monkeypatch.delenv("DRUMBRAIN_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A drumbrain.yml rooted in tmp_path, with the kit already installed."""
    root = tmp_path / "root"
    kit = root / "home" / "drummer" / "drumkits" / "CrocellKit_Stereo_MIX"
    kit.mkdir(parents=True)
    (kit / "CrocellKit_full.xml").write_text("<drumkit/>")
    (kit / "Midimap_full.xml").write_text("<midimap/>")

    content = textwrap.dedent(f"""\
        drumbrain:
          user: drummer
          home: {root}/home/drummer
          use_sudo: false
          paths:
            bin_dir: {root}/usr/local/bin
            systemd_dir: {root}/etc/systemd/system
            limits_file: {root}/etc/security/limits.d/audio.conf
            plumbing_rules: {root}/etc/jack-plumbing
    """)
    path = tmp_path / "drumbrain.yml"
    path.write_text(content)
    return path


@pytest.fixture
def fake_runner(monkeypatch) -> RecordingRunner:
    """Replace the real subprocess runner with a recording one."""
    fake = RecordingRunner()
    monkeypatch.setattr(
        "drumbrain.adapters.shell.command.SubprocessRunner",
        lambda use_sudo=True: fake,
    )
    return fake


@pytest.fixture
def as_drummer(monkeypatch):
    monkeypatch.setattr("drumbrain.core.engine.orchestrator.current_user", lambda: "drummer")


# ── Global ───────────────────────────────────────────────────────────


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "DrumBrain" in result.output
        for command in ("setup", "plan", "render", "devices"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        bad = tmp_path / "bad.yml"
        bad.write_text("user: [oops\n")
        result = CliRunner().invoke(cli, ["--config", str(bad), "plan"])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


# ── plan ─────────────────────────────────────────────────────────────


class TestPlanCommand:
    def test_lists_eleven_steps(self, config_file: Path):
        result = CliRunner().invoke(cli, ["--config", str(config_file), "plan"])
        assert result.exit_code == 0
        assert "user 'drummer'" in result.output
        assert " 1. Updating apt and installing required packages..." in result.output
        assert "11. Reloading systemd and enabling services..." in result.output

    def test_defaults_without_config(self):
        result = CliRunner().invoke(cli, ["plan"])
        assert result.exit_code == 0
        assert "Ensuring user 'pi' is in audio and realtime groups..." in result.output

    def test_runs_no_commands(self, config_file: Path, monkeypatch):
        def refuse(self, argv, **kwargs):
            raise AssertionError(f"unexpected command: {argv}")

        monkeypatch.setattr("drumbrain.adapters.shell.command.SubprocessRunner.run", refuse)
        result = CliRunner().invoke(cli, ["--config", str(config_file), "plan"])
        assert result.exit_code == 0, result.output


# ── render ───────────────────────────────────────────────────────────


class TestRenderCommand:
    def test_writes_all_files(self, tmp_path: Path):
        out = tmp_path / "preview"
        result = CliRunner().invoke(cli, ["render", str(out)])
        assert result.exit_code == 0, result.output
        assert (out / "etc" / "security" / "limits.d" / "audio.conf").is_file()
        assert (out / "etc" / "jack-plumbing").is_file()
        assert (out / "etc" / "systemd" / "system" / "drumbrain-jackd.service").is_file()
        script = out / "usr" / "local" / "bin" / "jackd_start.sh"
        assert script.stat().st_mode & 0o777 == 0o755
        assert "0755" in result.output

    def test_runs_no_commands(self, tmp_path: Path, monkeypatch):
        def refuse(self, argv, **kwargs):
            raise AssertionError(f"unexpected command: {argv}")

        monkeypatch.setattr("drumbrain.adapters.shell.command.SubprocessRunner.run", refuse)
        result = CliRunner().invoke(cli, ["render", str(tmp_path / "preview")])
        assert result.exit_code == 0, result.output


# ── setup ────────────────────────────────────────────────────────────


class TestSetupCommand:
    def test_success(self, config_file: Path, fake_runner: RecordingRunner, as_drummer):
        result = CliRunner().invoke(cli, ["--config", str(config_file), "setup"])
        assert result.exit_code == 0, result.output
        assert "[1/11] Updating apt" in result.output
        assert "[11/11] Reloading systemd and enabling services... (100% complete)" in result.output
        assert "DrumBrain setup complete (100% done)" in result.output
        assert ["systemctl", "daemon-reload"] in fake_runner.commands()
        assert (config_file.parent / "root" / "usr" / "local" / "bin" / "drumbrain_start.sh").is_file()

    def test_json(self, config_file: Path, fake_runner: RecordingRunner, as_drummer):
        result = CliRunner().invoke(cli, ["--config", str(config_file), "setup", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["status"] == "ok"
        assert data["user"] == "drummer"
        assert data["steps_completed"] == 11

    def test_wrong_user(self, config_file: Path, fake_runner: RecordingRunner, monkeypatch):
        monkeypatch.setattr("drumbrain.core.engine.orchestrator.current_user", lambda: "root")
        result = CliRunner().invoke(cli, ["--config", str(config_file), "setup"])
        assert result.exit_code == 1
        assert "run this setup as user 'drummer'" in result.output
        assert fake_runner.call_count == 0

    def test_step_failure(self, config_file: Path, fake_runner: RecordingRunner, as_drummer):
        fake_runner.fail(("apt-get", "install"), stderr="E: Unable to locate package drumgizmo")
        result = CliRunner().invoke(cli, ["--config", str(config_file), "setup"])
        assert result.exit_code == 1
        assert "Step 1 failed" in result.output
        assert "Unable to locate package drumgizmo" in result.output
        assert "[2/11]" not in result.output

    def test_step_failure_json(self, config_file: Path, fake_runner: RecordingRunner, as_drummer):
        fake_runner.fail(("systemctl", "enable"), stderr="Failed to enable unit: Access denied")
        result = CliRunner().invoke(cli, ["--config", str(config_file), "setup", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == "failed"
        assert data["step"] == 11
        assert data["error"]["kind"] == "service_registration_failure"


# ── devices ──────────────────────────────────────────────────────────


class TestDevicesCommand:
    APLAY = "card 0: Headphones [bcm2835 Headphones], device 0: bcm2835 Headphones [bcm2835 Headphones]\n"

    def test_lists_cards(self, fake_runner: RecordingRunner):
        fake_runner.respond(("aplay",), CommandResult.success(["aplay", "-l"], stdout=self.APLAY))
        result = CliRunner().invoke(cli, ["devices"])
        assert result.exit_code == 0
        assert "hw:0" in result.output
        assert "JACK device: hw:0" in result.output

    def test_json(self, fake_runner: RecordingRunner):
        fake_runner.respond(("aplay",), CommandResult.success(["aplay", "-l"], stdout=self.APLAY))
        result = CliRunner().invoke(cli, ["devices", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["selected"] == "hw:0"

    def test_aplay_missing(self, fake_runner: RecordingRunner):
        fake_runner.fail(("aplay",), stderr="aplay: command not found", returncode=127)
        result = CliRunner().invoke(cli, ["devices"])
        assert result.exit_code == 1
        assert "command not found" in result.output
