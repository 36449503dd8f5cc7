"""
Domain models — Pydantic and dataclass types for a setup run.

    from drumbrain.core.models import SetupConfig, Step, GeneratedArtifact, ServiceUnit
"""

from drumbrain.core.models.artifact import GeneratedArtifact, ServiceUnit
from drumbrain.core.models.config import (
    ConflictingServices,
    JackSettings,
    KitSettings,
    LimitsSettings,
    PathSettings,
    PlumbingSettings,
    PollPolicy,
    SetupConfig,
)
from drumbrain.core.models.step import RunReport, RunState, Step, StepOutcome

__all__ = [
    # artifact.py
    "GeneratedArtifact",
    "ServiceUnit",
    # config.py
    "ConflictingServices",
    "JackSettings",
    "KitSettings",
    "LimitsSettings",
    "PathSettings",
    "PlumbingSettings",
    "PollPolicy",
    "SetupConfig",
    # step.py
    "RunReport",
    "RunState",
    "Step",
    "StepOutcome",
]
