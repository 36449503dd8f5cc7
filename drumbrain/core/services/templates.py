"""
Embedded file templates — the helper scripts the services launch.

Templates are plain strings with ``{name}`` substitution points
(lower-case names only, so bash's upper-case ``${VAR}`` expansions
pass through untouched). ``render_template`` refuses to return
output that still contains an unresolved placeholder.

Both helper scripts share ``WAIT_UNTIL_FN``: a bounded poll that runs
a predicate every INTERVAL seconds at most ATTEMPTS times and returns
non-zero when the bound is reached.
"""

from __future__ import annotations

import re

from drumbrain import __version__

# Bump when generated output changes shape
TEMPLATE_VERSION = 1

HEADER = f"Managed by drumbrain {__version__} (templates v{TEMPLATE_VERSION}); rewritten on every setup run."

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


class TemplateError(ValueError):
    """A template was rendered with missing values."""


def render_template(template: str, values: dict[str, object]) -> str:
    """Substitute ``{name}`` placeholders with ``values``.

    Simple string replacement, no escaping.

    >>> render_template("rate={rate}", {"rate": 48000})
    'rate=48000'
    >>> render_template("x={missing}", {})
    Traceback (most recent call last):
    ...
    drumbrain.core.services.templates.TemplateError: Unresolved template variables: {missing}
    """
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace(f"{{{key}}}", str(value))

    unresolved = check_unsubstituted(rendered)
    if unresolved:
        names = ", ".join(f"{{{name}}}" for name in unresolved)
        raise TemplateError(f"Unresolved template variables: {names}")
    return rendered


def check_unsubstituted(rendered: str) -> list[str]:
    """Return the placeholder names still present in ``rendered``."""
    return _PLACEHOLDER.findall(rendered)


# ── Shared shell snippets ───────────────────────────────────────

WAIT_UNTIL_FN = """\
# wait_until ATTEMPTS INTERVAL COMMAND...
# Runs COMMAND up to ATTEMPTS times, sleeping INTERVAL seconds between
# tries. Returns 0 as soon as COMMAND succeeds, 1 once the bound is hit.
wait_until() {
    local attempts="$1" interval="$2"
    shift 2
    local i
    for ((i = 1; i <= attempts; i++)); do
        if "$@"; then
            return 0
        fi
        sleep "$interval"
    done
    return 1
}"""


# ── jackd_start.sh ──────────────────────────────────────────────

JACKD_START = """\
#!/bin/bash
# {header}
set -e

{wait_until}

PINNED_DEVICE="{pinned_device}"

alsa_ready() {
    {aplay} -l 2>/dev/null | grep -qiE '{ready_regex}'
}

echo "[jackd_start] Waiting for ALSA cards to appear..."

if ! wait_until {attempts} {interval} alsa_ready; then
    echo "[jackd_start] No audio device enumerated after {timeout}s, giving up." >&2
    exit 1
fi

CARD_LIST=$({aplay} -l 2>/dev/null || true)
echo "[jackd_start] ALSA card list:"
echo "${CARD_LIST}"

if [ -n "${PINNED_DEVICE}" ]; then
    CARD_NAME="${PINNED_DEVICE}"
    echo "[jackd_start] Using configured audio device: ${CARD_NAME}"
else
    # Prefer a USB interface (a UMC22 shows up as 'USB Audio')
    USB_CARD_INDEX=$(printf "%s\\n" "${CARD_LIST}" | awk '/^card / && tolower($0) ~ /{card_regex}/ {print $2; exit}' | tr -d ':')

    if [ -n "${USB_CARD_INDEX}" ]; then
        CARD_NAME="hw:${USB_CARD_INDEX}"
        echo "[jackd_start] Using USB audio device: ${CARD_NAME}"
    else
        HP_CARD_INDEX=$(printf "%s\\n" "${CARD_LIST}" | awk '/^card / && /{fallback_regex}/ {print $2; exit}' | tr -d ':')
        if [ -n "${HP_CARD_INDEX}" ]; then
            CARD_NAME="hw:${HP_CARD_INDEX}"
            echo "[jackd_start] Using fallback {fallback_regex} device: ${CARD_NAME}"
        else
            echo "[jackd_start] No suitable audio device found." >&2
            exit 1
        fi
    fi
fi

exec {jackd} -P{priority} -dalsa -d"${CARD_NAME}" -r{sample_rate} -p{period} -n{periods}
"""


# ── drumbrain_start.sh ──────────────────────────────────────────

DRUMGIZMO_START = """\
#!/bin/bash
# {header}
set -e

{wait_until}

DRUMKIT_XML="{kit_descriptor}"
MIDIMAP_XML="{kit_midimap}"

jack_ready() {
    {jack_lsp} 2>/dev/null | grep -q "{ready_port}"
}

echo "[drumbrain_start] Waiting for JACK..."

if ! wait_until {attempts} {interval} jack_ready; then
    echo "[drumbrain_start] JACK did not become ready after {timeout}s, giving up." >&2
    exit 1
fi
echo "[drumbrain_start] JACK is up."

if [ ! -f "${DRUMKIT_XML}" ]; then
    echo "[drumbrain_start] ERROR: Kit XML not found at: ${DRUMKIT_XML}" >&2
    exit 1
fi

if [ ! -f "${MIDIMAP_XML}" ]; then
    echo "[drumbrain_start] ERROR: Midimap XML not found at: ${MIDIMAP_XML}" >&2
    exit 1
fi

echo "[drumbrain_start] Starting DrumGizmo with:"
echo "  KIT:     ${DRUMKIT_XML}"
echo "  MIDIMAP: ${MIDIMAP_XML}"

exec {drumgizmo} -i jackmidi -I midimap="${MIDIMAP_XML}" -o jackaudio "${DRUMKIT_XML}"
"""


# ── Post-run text ───────────────────────────────────────────────

BANNER = """\
//////////////////////////////////////
//       DrumBrain Pi Setup         //
//    JACK + DrumGizmo Autostart    //
//////////////////////////////////////
Step / Task status will be shown below.
"""

NEXT_STEPS = """\
Next steps:
  1) Reboot the Pi:
       sudo reboot

  2) After reboot, check status from SSH:
{status_lines}

When the drum controller is sending MIDI to JACK,
DrumGizmo should already be running and auto-connected.
"""
