"""Adapters — bindings to external programs and the filesystem.

Public re-exports for convenient access.
"""

from drumbrain.adapters.base import CommandResult, CommandRunner
from drumbrain.adapters.mock import RecordingRunner
from drumbrain.adapters.shell.command import SubprocessRunner
from drumbrain.adapters.shell.filesystem import ArtifactWriter

__all__ = [
    "ArtifactWriter",
    "CommandResult",
    "CommandRunner",
    "RecordingRunner",
    "SubprocessRunner",
]
