"""
Artifact writer — puts generated files on disk.

Root-owned locations (/etc, /usr/local/bin) are written through
``sudo install -D -m MODE /dev/stdin PATH`` so the setup itself can
run as the unprivileged user. With ``use_sudo`` off (tests, ``render``)
files are written directly.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from drumbrain.adapters.base import CommandRunner
from drumbrain.core.errors import ArtifactWriteFailure
from drumbrain.core.models.artifact import GeneratedArtifact

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Write ``GeneratedArtifact`` instances, always overwriting."""

    def __init__(self, runner: CommandRunner, use_sudo: bool = True, root: Path | None = None):
        self._runner = runner
        self._use_sudo = use_sudo
        self._root = root

    def target(self, artifact: GeneratedArtifact) -> Path:
        """Resolve where an artifact lands (re-rooted when ``root`` is set)."""
        path = Path(artifact.path)
        if self._root is not None:
            return self._root / path.relative_to(path.anchor)
        return path

    def write(self, artifact: GeneratedArtifact) -> Path:
        target = self.target(artifact)
        if self._use_sudo:
            self._write_privileged(artifact, target)
        else:
            self._write_direct(artifact, target)
        logger.info("Wrote %s (%d bytes, mode %s)", target, len(artifact.content), artifact.mode)
        return target

    def _write_privileged(self, artifact: GeneratedArtifact, target: Path) -> None:
        result = self._runner.run(
            ["install", "-D", "-m", artifact.mode, "/dev/stdin", str(target)],
            sudo=True,
            input_text=artifact.content,
            timeout=30,
        )
        if not result.ok:
            raise ArtifactWriteFailure(
                f"Cannot write {target}",
                detail=result.describe(),
            )

    def _write_direct(self, artifact: GeneratedArtifact, target: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(artifact.content, encoding="utf-8")
            os.chmod(target, int(artifact.mode, 8))
        except OSError as e:
            raise ArtifactWriteFailure(f"Cannot write {target}", detail=str(e)) from e
