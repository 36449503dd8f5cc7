"""
Kit installer — fetch the sample kit once and put it where DrumGizmo looks.

"Installed" means exactly one thing: both the kit descriptor and the
midimap exist under the target kit directory. If they do, nothing is
downloaded or extracted.

The archive's internal folder name has changed between kit releases,
so after extraction the tree is searched (breadth-first, bounded
depth, names sorted) for the first directory holding the descriptor,
and that directory is renamed to the target.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Callable

from drumbrain.core.errors import (
    KitDownloadFailure,
    KitStructureNotFound,
    KitVerificationFailed,
)
from drumbrain.core.models.config import SetupConfig
from drumbrain.core.services.download import download_archive

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path, int], None]


def find_kit_root(root: Path, descriptor: str, max_depth: int = 2) -> Path | None:
    """Return the first directory at depth 0..max_depth holding ``descriptor``.

    Depth 0 is ``root`` itself. Directories at each level are visited in
    name order; symlinks are not followed.
    """
    frontier = [root]
    for depth in range(max_depth + 1):
        next_frontier: list[Path] = []
        for directory in frontier:
            if (directory / descriptor).is_file():
                return directory
            if depth < max_depth:
                next_frontier.extend(
                    sorted(
                        (p for p in directory.iterdir() if p.is_dir() and not p.is_symlink()),
                        key=lambda p: p.name,
                    )
                )
        frontier = next_frontier
    return None


class KitInstaller:
    """Install the configured kit under ``<home>/drumkits``."""

    def __init__(self, config: SetupConfig, downloader: Downloader | None = None):
        self._config = config
        self._kit = config.kit
        self._download = downloader or download_archive

    @property
    def kit_dir(self) -> Path:
        return Path(self._config.kit_dir)

    @property
    def kits_dir(self) -> Path:
        return Path(self._config.kits_dir)

    @property
    def archive_path(self) -> Path:
        return self.kits_dir / self._kit.archive_name

    @property
    def staging_dir(self) -> Path:
        return self.kits_dir / f".{self._kit.dir_name}.extract"

    def required_files(self) -> list[Path]:
        return [self.kit_dir / self._kit.descriptor, self.kit_dir / self._kit.midimap]

    def is_installed(self) -> bool:
        return all(p.is_file() for p in self.required_files())

    def install(self) -> str:
        """Converge on an installed kit and describe what happened.

        Raises:
            KitDownloadFailure: Download, extraction or a filesystem operation failed.
            KitStructureNotFound: No directory in the archive holds the descriptor.
            KitVerificationFailed: Kit files still missing after the move.
        """
        if self.is_installed():
            logger.info("Kit already present at %s", self.kit_dir)
            return f"kit already present at {self.kit_dir}"

        logger.info("Kit not found, downloading from %s", self._kit.url)
        try:
            self._fetch_and_place()
        except OSError as exc:
            raise KitDownloadFailure(
                f"Cannot install kit into {self.kits_dir}",
                detail=str(exc),
            ) from exc

        if not self.is_installed():
            missing = [str(p) for p in self.required_files() if not p.is_file()]
            raise KitVerificationFailed(
                "Kit or midimap XML still missing after move",
                detail="Expected: " + ", ".join(missing),
            )

        logger.info("Kit installed at %s", self.kit_dir)
        return f"kit installed at {self.kit_dir}"

    def _fetch_and_place(self) -> None:
        self.kits_dir.mkdir(parents=True, exist_ok=True)
        self._clear_stale()

        self._download(self._kit.url, self.archive_path, self._kit.download_timeout)
        self._extract()

        found = find_kit_root(self.staging_dir, self._kit.descriptor, self._kit.search_depth)
        if found is None:
            raise KitStructureNotFound(
                f"Could not find {self._kit.descriptor} after extraction",
                detail=f"Please inspect {self.staging_dir} manually.",
            )
        logger.info("Found kit directory: %s", found)

        # Remove-then-move: the old target never survives next to the new one
        if self.kit_dir.exists():
            shutil.rmtree(self.kit_dir)
        shutil.move(str(found), str(self.kit_dir))

        self.archive_path.unlink(missing_ok=True)
        shutil.rmtree(self.staging_dir, ignore_errors=True)

    def _clear_stale(self) -> None:
        for name in [self._kit.archive_name, *self._kit.stale_archives]:
            stale = self.kits_dir / name
            stale.unlink(missing_ok=True)
            stale.with_name(stale.name + ".part").unlink(missing_ok=True)
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)

    def _extract(self) -> None:
        logger.info("Extracting %s", self.archive_path.name)
        try:
            with zipfile.ZipFile(self.archive_path) as zf:
                zf.extractall(self.staging_dir)
        except (zipfile.BadZipFile, OSError) as exc:
            raise KitDownloadFailure(
                f"Cannot extract {self.archive_path}",
                detail=str(exc),
            ) from exc
