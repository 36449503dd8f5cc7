"""
Archive download — stream a URL to disk.

Size formatting is kept here too so download logs read the same
everywhere.
"""

from __future__ import annotations

import http.client
import logging
import urllib.request
from pathlib import Path

from drumbrain import __version__
from drumbrain.core.errors import KitDownloadFailure

logger = logging.getLogger(__name__)


def fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string.

    >>> fmt_size(1536)
    '1.5 KB'
    """
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


def download_archive(url: str, dest: Path, timeout: int = 300) -> None:
    """Stream ``url`` into ``dest``.

    Writes to ``dest.part`` first and renames on completion so an
    interrupted download never looks like a finished archive.

    Raises:
        KitDownloadFailure: On any network or filesystem error.
    """
    partial = dest.with_name(dest.name + ".part")
    written = 0
    try:
        req = urllib.request.Request(url, headers={"User-Agent": f"drumbrain/{__version__}"})
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(partial, "wb") as f:
            while True:
                chunk = resp.read(65536)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
        partial.replace(dest)
    except (OSError, ValueError, http.client.HTTPException) as exc:
        partial.unlink(missing_ok=True)
        raise KitDownloadFailure(f"Download failed: {url}", detail=str(exc)) from exc
    logger.info("Downloaded %s (%s)", url, fmt_size(written))
