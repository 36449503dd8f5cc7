"""
Shared test fixtures and configuration.
"""

import zipfile
from pathlib import Path

import pytest

from drumbrain.adapters.mock import RecordingRunner
from drumbrain.core.models.config import PathSettings, SetupConfig

KIT_XML = "CrocellKit_full.xml"
MIDIMAP_XML = "Midimap_full.xml"


@pytest.fixture
def config(tmp_path: Path) -> SetupConfig:
    """A config whose every path lives under tmp_path, written without sudo."""
    root = tmp_path / "root"
    return SetupConfig(
        user="drummer",
        home=str(root / "home" / "drummer"),
        use_sudo=False,
        paths=PathSettings(
            bin_dir=str(root / "usr" / "local" / "bin"),
            systemd_dir=str(root / "etc" / "systemd" / "system"),
            limits_file=str(root / "etc" / "security" / "limits.d" / "audio.conf"),
            plumbing_rules=str(root / "etc" / "jack-plumbing"),
        ),
    )


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


class FakeDownloader:
    """Stands in for the HTTP download: writes a zip with the given members."""

    def __init__(self, members: dict[str, str] | None = None, payload: bytes | None = None):
        self.members = members or {}
        self.payload = payload
        self.calls: list[tuple[str, Path, int]] = []

    def __call__(self, url: str, dest: Path, timeout: int) -> None:
        self.calls.append((url, dest, timeout))
        if self.payload is not None:
            dest.write_bytes(self.payload)
            return
        with zipfile.ZipFile(dest, "w") as zf:
            for name, content in self.members.items():
                zf.writestr(name, content)


@pytest.fixture
def make_downloader():
    """Factory: ``make_downloader({"Kit/CrocellKit_full.xml": "<drumkit/>"})``."""
    return FakeDownloader


@pytest.fixture
def kit_members() -> dict[str, str]:
    """A kit laid out the way the published archive nests it."""
    return {
        f"CrocellKit/{KIT_XML}": "<drumkit/>",
        f"CrocellKit/{MIDIMAP_XML}": "<midimap/>",
        "CrocellKit/samples/kick.wav": "RIFF",
    }


@pytest.fixture
def installed_kit(config: SetupConfig) -> Path:
    """Put a kit in place so no download is attempted."""
    kit_dir = Path(config.kit_dir)
    kit_dir.mkdir(parents=True)
    (kit_dir / KIT_XML).write_text("<drumkit/>")
    (kit_dir / MIDIMAP_XML).write_text("<midimap/>")
    return kit_dir
