"""
Setup steps — the canonical, ordered list of convergent changes.

Each step function takes its collaborators explicitly, performs one
change, raises a ``ProvisioningError`` subclass when it cannot, and
returns a short message for the progress output. ``build_steps``
binds them into ``Step`` objects in the order the system needs:
groups before limits matter, kit files before the DrumGizmo unit,
every file on disk before systemd is reloaded.
"""

from __future__ import annotations

import logging
from functools import partial

from drumbrain.adapters.base import CommandRunner
from drumbrain.adapters.shell.filesystem import ArtifactWriter
from drumbrain.core.errors import (
    GroupMembershipFailure,
    PackageInstallFailure,
    ServiceCommandFailure,
    ServiceRegistrationFailure,
)
from drumbrain.core.models.artifact import GeneratedArtifact
from drumbrain.core.models.config import SetupConfig
from drumbrain.core.models.step import Step
from drumbrain.core.reliability.best_effort import Outcome, try_ignoring
from drumbrain.core.services import artifacts
from drumbrain.core.services.kit_installer import Downloader, KitInstaller

logger = logging.getLogger(__name__)

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

_USER_SCOPE_IGNORABLE = {Outcome.NOT_FOUND, Outcome.ALREADY_DONE, Outcome.NO_BUS}
_SYSTEM_SCOPE_IGNORABLE = {Outcome.NOT_FOUND, Outcome.ALREADY_DONE}


# ── 1. Packages ─────────────────────────────────────────────────


def install_packages(config: SetupConfig, runner: CommandRunner) -> str:
    update = runner.run(["apt-get", "update", "-y"], sudo=True, env=_APT_ENV, timeout=900)
    if not update.ok:
        raise PackageInstallFailure("apt-get update failed", detail=update.describe())

    install = runner.run(
        ["apt-get", "install", "-y", *config.packages],
        sudo=True,
        env=_APT_ENV,
        timeout=3600,
    )
    if not install.ok:
        raise PackageInstallFailure(
            f"apt-get install failed for: {' '.join(config.packages)}",
            detail=install.describe(),
        )
    return f"{len(config.packages)} packages installed"


# ── 2. Conflicting audio servers ────────────────────────────────


def disable_conflicting_services(config: SetupConfig, runner: CommandRunner) -> str:
    """Stop, disable and mask competing audio servers at user and system scope.

    Units that don't exist, or are already off, are fine. A missing
    user session bus skips the rest of the user scope. Anything else
    (e.g. permission errors) raises ``ServiceCommandFailure``.
    """
    masked = 0
    ignored = 0
    scopes = [
        ("user", config.conflicting_services.user, ["systemctl", "--user"], False, _USER_SCOPE_IGNORABLE),
        ("system", config.conflicting_services.system, ["systemctl"], True, _SYSTEM_SCOPE_IGNORABLE),
    ]

    for scope, units, prefix, sudo, ignorable in scopes:
        for unit in units:
            no_bus = False
            for verb in (["disable", "--now"], ["mask"]):
                result = runner.run([*prefix, *verb, unit], sudo=sudo, timeout=60)
                outcome = try_ignoring(
                    result,
                    ignorable,
                    ServiceCommandFailure,
                    f"Cannot {verb[0]} {scope} unit {unit}",
                )
                if outcome is Outcome.NO_BUS:
                    no_bus = True
                    break
                if outcome is not Outcome.OK:
                    ignored += 1
                elif verb == ["mask"]:
                    masked += 1
            if no_bus:
                logger.warning("No user session bus; skipping remaining user-scope units")
                break

    return f"{masked} units masked, {ignored} commands ignored"


# ── 3. Groups ───────────────────────────────────────────────────


def ensure_groups(config: SetupConfig, runner: CommandRunner) -> str:
    """Add the user to the realtime/audio groups; existing membership is success."""
    current = runner.run(["id", "-nG", config.user], timeout=15)
    if not current.ok:
        raise GroupMembershipFailure(
            f"Cannot read groups of user '{config.user}'",
            detail=current.describe(),
        )
    member_of = set(current.stdout.split())

    added: list[str] = []
    for group in config.groups:
        if group in member_of:
            logger.info("User '%s' already in group '%s'", config.user, group)
            continue
        result = runner.run(["usermod", "-aG", group, config.user], sudo=True, timeout=30)
        outcome = try_ignoring(
            result,
            {Outcome.NOT_FOUND},
            GroupMembershipFailure,
            f"Cannot add '{config.user}' to group '{group}'",
        )
        if outcome is Outcome.NOT_FOUND:
            logger.warning("Group '%s' does not exist on this system; skipped", group)
        else:
            added.append(group)

    if not added:
        return "group membership already in place"
    return "added to " + ", ".join(added)


# ── 4–10. Generated files ───────────────────────────────────────


def write_artifacts(writer: ArtifactWriter, files: list[GeneratedArtifact]) -> str:
    written = [str(writer.write(artifact)) for artifact in files]
    return "wrote " + ", ".join(written)


# ── 5. Kit ──────────────────────────────────────────────────────


def install_kit(installer: KitInstaller) -> str:
    return installer.install()


# ── 11. Registration ────────────────────────────────────────────


def register_services(config: SetupConfig, runner: CommandRunner) -> str:
    reload = runner.run(["systemctl", "daemon-reload"], sudo=True, timeout=60)
    if not reload.ok:
        raise ServiceRegistrationFailure("systemctl daemon-reload failed", detail=reload.describe())

    enable = runner.run(["systemctl", "enable", *artifacts.SERVICE_NAMES], sudo=True, timeout=60)
    if not enable.ok:
        raise ServiceRegistrationFailure(
            f"systemctl enable failed for: {' '.join(artifacts.SERVICE_NAMES)}",
            detail=enable.describe(),
        )
    return "enabled " + ", ".join(artifacts.SERVICE_NAMES)


# ── Assembly ────────────────────────────────────────────────────


def build_steps(
    config: SetupConfig,
    runner: CommandRunner,
    writer: ArtifactWriter,
    downloader: Downloader | None = None,
) -> list[Step]:
    """Return the full setup in execution order."""
    installer = KitInstaller(config, downloader=downloader)
    groups = " and ".join(config.groups)

    plan = [
        ("Updating apt and installing required packages...",
         partial(install_packages, config, runner)),
        ("Disabling PipeWire / WirePlumber / PulseAudio services...",
         partial(disable_conflicting_services, config, runner)),
        (f"Ensuring user '{config.user}' is in {groups} groups...",
         partial(ensure_groups, config, runner)),
        ("Configuring realtime priority and memlock limits...",
         partial(write_artifacts, writer, [artifacts.limits_file(config)])),
        (f"Downloading and installing {config.kit.dir_name} (if needed)...",
         partial(install_kit, installer)),
        (f"Creating {config.jackd_script}...",
         partial(write_artifacts, writer, [artifacts.jackd_start_script(config)])),
        (f"Configuring systemd service {artifacts.JACKD_UNIT}...",
         partial(write_artifacts, writer, [artifacts.unit_file(config, artifacts.jackd_unit(config))])),
        (f"Creating {config.drumgizmo_script}...",
         partial(write_artifacts, writer, [artifacts.drumgizmo_start_script(config)])),
        (f"Configuring systemd service {artifacts.DRUMGIZMO_UNIT}...",
         partial(write_artifacts, writer, [artifacts.unit_file(config, artifacts.drumgizmo_unit(config))])),
        ("Creating JACK plumbing rules and service...",
         partial(write_artifacts, writer, [
             artifacts.plumbing_rules(config),
             artifacts.unit_file(config, artifacts.plumbing_unit(config)),
         ])),
        ("Reloading systemd and enabling services...",
         partial(register_services, config, runner)),
    ]

    return [
        Step(index=i, description=description, action=action)
        for i, (description, action) in enumerate(plan, start=1)
    ]
