"""
Artifact builders — turn a SetupConfig into the files the Pi needs.

Pure functions: no I/O, no subprocess. Each builder returns the
``GeneratedArtifact``(s) for one generation step, so the same output
feeds both the setup run and ``drumbrain render``.
"""

from __future__ import annotations

from drumbrain.core.models.artifact import GeneratedArtifact, ServiceUnit
from drumbrain.core.models.config import PollPolicy, SetupConfig
from drumbrain.core.services.templates import (
    DRUMGIZMO_START,
    HEADER,
    JACKD_START,
    WAIT_UNTIL_FN,
    render_template,
)

JACKD_UNIT = "drumbrain-jackd.service"
DRUMGIZMO_UNIT = "drumbrain-drumgizmo.service"
PLUMBING_UNIT = "jack-plumbing.service"

# Enable order used by the registration step
SERVICE_NAMES = (JACKD_UNIT, PLUMBING_UNIT, DRUMGIZMO_UNIT)


def _poll_values(policy: PollPolicy) -> dict[str, object]:
    return {
        "attempts": policy.attempts,
        "interval": f"{policy.interval:g}",
        "timeout": f"{policy.timeout:g}",
    }


# ── Limits policy ───────────────────────────────────────────────


def limits_lines(config: SetupConfig) -> list[str]:
    """The directive lines of the limits file, two per group."""
    lines: list[str] = []
    for group in config.groups:
        domain = f"@{group}"
        lines.append(f"{domain:<10}-  {'rtprio':<10} {config.limits.rtprio}")
        lines.append(f"{domain:<10}-  {'memlock':<10} {config.limits.memlock}")
    return lines


def limits_file(config: SetupConfig) -> GeneratedArtifact:
    content = f"# {HEADER}\n" + "\n".join(limits_lines(config)) + "\n"
    return GeneratedArtifact(
        path=config.paths.limits_file,
        content=content,
        reason="Realtime priority and memlock limits for the audio groups",
    )


# ── Helper scripts ──────────────────────────────────────────────


def jackd_start_script(config: SetupConfig) -> GeneratedArtifact:
    jack = config.jack
    if jack.device:
        ready_regex = "^card "
    else:
        ready_regex = "|".join([*jack.device_patterns, jack.fallback_pattern])

    content = render_template(
        JACKD_START,
        {
            "header": HEADER,
            "wait_until": WAIT_UNTIL_FN,
            "pinned_device": jack.device or "",
            "aplay": config.paths.aplay,
            "ready_regex": ready_regex,
            "card_regex": "|".join(p.lower() for p in jack.device_patterns),
            "fallback_regex": jack.fallback_pattern,
            "jackd": config.paths.jackd,
            "priority": jack.priority,
            "sample_rate": jack.sample_rate,
            "period": jack.period,
            "periods": jack.periods,
            **_poll_values(config.poll),
        },
    )
    return GeneratedArtifact(
        path=str(config.jackd_script),
        content=content,
        mode="0755",
        reason="Waits for ALSA, picks the audio interface, execs jackd",
    )


def drumgizmo_start_script(config: SetupConfig) -> GeneratedArtifact:
    content = render_template(
        DRUMGIZMO_START,
        {
            "header": HEADER,
            "wait_until": WAIT_UNTIL_FN,
            "kit_descriptor": config.kit_descriptor,
            "kit_midimap": config.kit_midimap,
            "jack_lsp": config.paths.jack_lsp,
            "ready_port": config.plumbing.ready_port,
            "drumgizmo": config.paths.drumgizmo,
            **_poll_values(config.poll),
        },
    )
    return GeneratedArtifact(
        path=str(config.drumgizmo_script),
        content=content,
        mode="0755",
        reason="Waits for JACK ports, checks the kit, execs DrumGizmo",
    )


# ── Service units ───────────────────────────────────────────────


def jackd_unit(config: SetupConfig) -> ServiceUnit:
    return ServiceUnit(
        name=JACKD_UNIT,
        description="DrumBrain JACK Audio Server",
        after=["sound.target"],
        wants=["sound.target"],
        user=config.user,
        environment={"JACK_NO_AUDIO_RESERVATION": "1"},
        limit_rtprio=config.jack.service_rtprio,
        limit_memlock="infinity",
        exec_start=str(config.jackd_script),
    )


def drumgizmo_unit(config: SetupConfig) -> ServiceUnit:
    return ServiceUnit(
        name=DRUMGIZMO_UNIT,
        description="DrumBrain DrumGizmo Engine",
        after=[JACKD_UNIT],
        requires=[JACKD_UNIT],
        condition_path_exists=str(config.kit_descriptor),
        user=config.user,
        limit_rtprio=config.jack.engine_rtprio,
        limit_memlock="infinity",
        exec_start=str(config.drumgizmo_script),
    )


def plumbing_unit(config: SetupConfig) -> ServiceUnit:
    return ServiceUnit(
        name=PLUMBING_UNIT,
        description="JACK Plumbing Autoconnect",
        after=[DRUMGIZMO_UNIT],
        requires=[DRUMGIZMO_UNIT],
        user=config.user,
        exec_start=f"{config.paths.jack_plumbing} {config.paths.plumbing_rules}",
    )


def unit_file(config: SetupConfig, unit: ServiceUnit) -> GeneratedArtifact:
    return GeneratedArtifact(
        path=str(config.unit_path(unit.name)),
        content=f"# {HEADER}\n" + unit.render(),
        reason=unit.description,
    )


# ── Auto-connect rules ──────────────────────────────────────────


def plumbing_rules(config: SetupConfig) -> GeneratedArtifact:
    connections = config.plumbing.connections
    width = max((len(src) for src, _ in connections), default=0) + 2
    lines = []
    for src, dst in connections:
        quoted = f'"{src}"'
        lines.append(f'( connect {quoted:<{width}} "{dst}" )')
    return GeneratedArtifact(
        path=config.paths.plumbing_rules,
        content="\n".join(lines) + "\n",
        reason="DrumGizmo stereo out to system playback",
    )


def all_artifacts(config: SetupConfig) -> list[GeneratedArtifact]:
    """Every file a setup run writes, in step order."""
    return [
        limits_file(config),
        jackd_start_script(config),
        unit_file(config, jackd_unit(config)),
        drumgizmo_start_script(config),
        unit_file(config, drumgizmo_unit(config)),
        plumbing_rules(config),
        unit_file(config, plumbing_unit(config)),
    ]
