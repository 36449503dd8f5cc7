"""
Provisioning errors — the failure taxonomy for a setup run.

Steps raise a ``ProvisioningError`` subclass when they cannot reach
their desired state. The orchestrator wraps whatever a step raised
into a ``StepFailure`` and aborts the run. There is no rollback:
every step is convergent, so the recovery path is to fix the cause
and run the whole setup again.

Best-effort outcomes (missing units, groups that don't exist on this
platform) never become exceptions — see ``core.reliability.best_effort``.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for every fatal provisioning failure."""

    #: Short label shown in summaries and JSON output.
    kind = "provisioning_error"

    def __init__(self, message: str, *, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, str]:
        data = {"kind": self.kind, "message": self.message}
        if self.detail:
            data["detail"] = self.detail
        return data


class IdentityMismatch(ProvisioningError):
    """The setup was invoked by a user other than the configured one."""

    kind = "identity_mismatch"

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Please run this setup as user '{expected}' "
            f"(not with sudo directly); current user is '{actual}'."
        )
        self.expected = expected
        self.actual = actual


class PackageInstallFailure(ProvisioningError):
    """apt-get update or install exited non-zero."""

    kind = "package_install_failure"


class ServiceCommandFailure(ProvisioningError):
    """A systemctl call failed for a reason other than a missing unit."""

    kind = "service_command_failure"


class GroupMembershipFailure(ProvisioningError):
    """usermod failed for a reason other than a missing group."""

    kind = "group_membership_failure"


class KitDownloadFailure(ProvisioningError):
    """The kit archive could not be downloaded or extracted."""

    kind = "kit_download_failure"


class KitStructureNotFound(ProvisioningError):
    """No directory holding the kit descriptor exists in the extracted archive."""

    kind = "kit_structure_not_found"


class KitVerificationFailed(ProvisioningError):
    """Kit files are still missing after the kit directory was moved into place."""

    kind = "kit_verification_failed"


class ArtifactWriteFailure(ProvisioningError):
    """A generated file could not be written."""

    kind = "artifact_write_failure"


class ServiceRegistrationFailure(ProvisioningError):
    """systemctl daemon-reload or enable failed."""

    kind = "service_registration_failure"


class StepFailure(Exception):
    """A step aborted the run.

    Attributes:
        index: 1-based position of the failed step.
        description: The step's progress description.
        cause: The ``ProvisioningError`` the step raised.
    """

    def __init__(self, index: int, description: str, cause: ProvisioningError):
        super().__init__(f"Step {index} failed ({description}): {cause.message}")
        self.index = index
        self.description = description
        self.cause = cause

    def to_dict(self) -> dict:
        return {
            "step": self.index,
            "description": self.description,
            "error": self.cause.to_dict(),
        }
