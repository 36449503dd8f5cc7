"""
Setup configuration — every path, name and number a run depends on.

Loaded from drumbrain.yml (all keys optional) and passed explicitly
into each step builder. Defaults reproduce a stock Raspberry Pi OS
install driven by user ``pi`` with the CrocellKit stereo mix.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator


class ConflictingServices(BaseModel):
    """Audio servers that would grab the sound card before JACK."""

    user: list[str] = Field(
        default_factory=lambda: [
            "pipewire.service",
            "pipewire.socket",
            "wireplumber.service",
            "pipewire-pulse.service",
            "pulseaudio.service",
            "pulseaudio.socket",
        ]
    )
    system: list[str] = Field(
        default_factory=lambda: [
            "pipewire.service",
            "pipewire.socket",
            "wireplumber.service",
        ]
    )


class LimitsSettings(BaseModel):
    """Realtime limits granted to the audio groups."""

    rtprio: int = Field(default=95, ge=1, le=99)
    memlock: str = "unlimited"


class KitSettings(BaseModel):
    """Where the sample kit comes from and what "installed" means."""

    dir_name: str = "CrocellKit_Stereo_MIX"
    descriptor: str = "CrocellKit_full.xml"
    midimap: str = "Midimap_full.xml"
    url: str = "https://drumgizmo.org/kits/CrocellKit/CrocellKit1_1.zip"
    archive_name: str = "CrocellKit1_1.zip"
    stale_archives: list[str] = Field(default_factory=lambda: ["CrocellKit_Stereo_MIX.zip"])
    search_depth: int = Field(default=2, ge=0)
    download_timeout: int = 300


class JackSettings(BaseModel):
    """JACK server launch parameters and service limits."""

    sample_rate: int = 48000
    period: int = 512
    periods: int = 3
    priority: int = Field(default=75, ge=1, le=99)
    device: str | None = None           # pin e.g. "hw:1"; None = detect at boot
    device_patterns: list[str] = Field(
        default_factory=lambda: ["usb", "umc", "codec", "audio"]
    )
    fallback_pattern: str = "Headphones"
    service_rtprio: int = 95
    engine_rtprio: int = 90


class PollPolicy(BaseModel):
    """Bounded wait used by both helper scripts."""

    attempts: int = Field(default=50, ge=1)
    interval: float = Field(default=0.2, gt=0)

    @property
    def timeout(self) -> float:
        return self.attempts * self.interval


class PlumbingSettings(BaseModel):
    """jack-plumbing connect rules: (source port, destination port)."""

    connections: list[tuple[str, str]] = Field(
        default_factory=lambda: [
            ("DrumGizmo:0-Left", "system:playback_1"),
            ("DrumGizmo:1-Right", "system:playback_2"),
        ]
    )
    ready_port: str = "system:playback_1"


class PathSettings(BaseModel):
    """Filesystem locations written to and external binaries referenced."""

    bin_dir: str = "/usr/local/bin"
    systemd_dir: str = "/etc/systemd/system"
    limits_file: str = "/etc/security/limits.d/audio.conf"
    plumbing_rules: str = "/etc/jack-plumbing"
    jackd: str = "/usr/bin/jackd"
    drumgizmo: str = "/usr/bin/drumgizmo"
    jack_plumbing: str = "/usr/bin/jack-plumbing"
    jack_lsp: str = "/usr/bin/jack_lsp"
    aplay: str = "aplay"


class SetupConfig(BaseModel):
    """Root configuration for a provisioning run."""

    user: str = "pi"
    home: str | None = None             # default: /home/<user>
    use_sudo: bool = True

    packages: list[str] = Field(
        default_factory=lambda: [
            "jackd2",
            "jack-tools",
            "drumgizmo",
            "alsa-utils",
            "wget",
            "unzip",
        ]
    )
    conflicting_services: ConflictingServices = Field(default_factory=ConflictingServices)
    groups: list[str] = Field(default_factory=lambda: ["audio", "realtime"])
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    kit: KitSettings = Field(default_factory=KitSettings)
    jack: JackSettings = Field(default_factory=JackSettings)
    poll: PollPolicy = Field(default_factory=PollPolicy)
    plumbing: PlumbingSettings = Field(default_factory=PlumbingSettings)
    paths: PathSettings = Field(default_factory=PathSettings)

    @field_validator("user")
    @classmethod
    def _user_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user must not be empty")
        return value

    # ── Derived locations ───────────────────────────────────────

    @property
    def home_dir(self) -> PurePosixPath:
        return PurePosixPath(self.home or f"/home/{self.user}")

    @property
    def kits_dir(self) -> PurePosixPath:
        return self.home_dir / "drumkits"

    @property
    def kit_dir(self) -> PurePosixPath:
        return self.kits_dir / self.kit.dir_name

    @property
    def kit_descriptor(self) -> PurePosixPath:
        return self.kit_dir / self.kit.descriptor

    @property
    def kit_midimap(self) -> PurePosixPath:
        return self.kit_dir / self.kit.midimap

    @property
    def jackd_script(self) -> PurePosixPath:
        return PurePosixPath(self.paths.bin_dir) / "jackd_start.sh"

    @property
    def drumgizmo_script(self) -> PurePosixPath:
        return PurePosixPath(self.paths.bin_dir) / "drumbrain_start.sh"

    def unit_path(self, unit_name: str) -> PurePosixPath:
        return PurePosixPath(self.paths.systemd_dir) / unit_name
