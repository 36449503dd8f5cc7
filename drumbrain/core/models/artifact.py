"""
Generated artifacts — files written verbatim from templates.

Every artifact is a full overwrite: content depends only on the
template and the configured substitution values, so writing it
twice leaves the same bytes on disk.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GeneratedArtifact(BaseModel):
    """A file produced by a generation step.

    Attributes:
        path:    Absolute target path.
        content: Full file content.
        mode:    Octal permission string passed to ``install -m``.
        reason:  Why this file exists (shown by ``drumbrain render``).
    """

    path: str
    content: str
    mode: str = "0644"
    reason: str = ""

    @property
    def executable(self) -> bool:
        return int(self.mode, 8) & 0o111 != 0


class ServiceUnit(BaseModel):
    """A systemd service owned by systemd once written.

    Only what the setup needs is modelled; ``render()`` emits the
    unit file in a fixed key order.
    """

    name: str
    description: str
    exec_start: str
    user: str

    after: list[str] = Field(default_factory=list)
    wants: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    condition_path_exists: str | None = None

    environment: dict[str, str] = Field(default_factory=dict)
    limit_rtprio: int | None = None
    limit_memlock: str | None = None

    restart: str = "on-failure"
    restart_sec: int = 1
    wanted_by: str = "multi-user.target"

    def render(self) -> str:
        unit = [f"Description={self.description}"]
        if self.after:
            unit.append(f"After={' '.join(self.after)}")
        if self.wants:
            unit.append(f"Wants={' '.join(self.wants)}")
        if self.requires:
            unit.append(f"Requires={' '.join(self.requires)}")
        if self.condition_path_exists:
            unit.append(f"ConditionPathExists={self.condition_path_exists}")

        service = ["Type=simple", f"User={self.user}"]
        for key, value in self.environment.items():
            service.append(f"Environment={key}={value}")
        if self.limit_rtprio is not None:
            service.append(f"LimitRTPRIO={self.limit_rtprio}")
        if self.limit_memlock is not None:
            service.append(f"LimitMEMLOCK={self.limit_memlock}")
        service.append(f"ExecStart={self.exec_start}")
        service.append(f"Restart={self.restart}")
        service.append(f"RestartSec={self.restart_sec}")

        sections = [
            ("Unit", unit),
            ("Service", service),
            ("Install", [f"WantedBy={self.wanted_by}"]),
        ]
        return "\n".join(
            f"[{title}]\n" + "\n".join(lines) + "\n" for title, lines in sections
        )
