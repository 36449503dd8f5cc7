"""
ALSA device detection — which card will the JACK helper pick?

Mirrors the selection done by jackd_start.sh at boot so it can be
previewed from a shell (``drumbrain devices``): first card whose line
matches one of the preferred patterns (case-insensitive), else the
first card matching the fallback pattern, else nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from drumbrain.adapters.base import CommandRunner
from drumbrain.core.models.config import SetupConfig

logger = logging.getLogger(__name__)

_CARD_LINE = re.compile(r"^card (\d+):\s*(.*)$")


@dataclass(frozen=True)
class AlsaCard:
    index: int
    line: str

    @property
    def hw(self) -> str:
        return f"hw:{self.index}"


def parse_card_list(text: str) -> list[AlsaCard]:
    """Parse ``aplay -l`` output into cards (one entry per ``card N:`` line).

    >>> parse_card_list("card 1: Device [USB Audio Device], device 0: USB Audio [USB Audio]")[0].hw
    'hw:1'
    """
    cards: list[AlsaCard] = []
    for raw in text.splitlines():
        match = _CARD_LINE.match(raw.strip())
        if match:
            cards.append(AlsaCard(index=int(match.group(1)), line=raw.strip()))
    return cards


def select_device(
    text: str,
    patterns: list[str],
    fallback: str,
    pinned: str | None = None,
) -> str | None:
    """Return the ``hw:N`` string JACK should use, or None."""
    if pinned:
        return pinned

    cards = parse_card_list(text)
    preferred = re.compile("|".join(patterns), re.IGNORECASE)
    for card in cards:
        if preferred.search(card.line):
            return card.hw

    fallback_re = re.compile(fallback)
    for card in cards:
        if fallback_re.search(card.line):
            return card.hw
    return None


@dataclass
class DeviceReport:
    cards: list[AlsaCard]
    selected: str | None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "cards": [{"index": c.index, "line": c.line} for c in self.cards],
            "selected": self.selected,
            "error": self.error,
        }


def detect_devices(config: SetupConfig, runner: CommandRunner) -> DeviceReport:
    """Enumerate playback cards with ``aplay -l`` and apply the selection rules."""
    result = runner.run([config.paths.aplay, "-l"], timeout=15)
    if not result.ok:
        logger.warning("aplay failed: %s", result.describe())
        return DeviceReport(cards=[], selected=config.jack.device, error=result.describe())

    jack = config.jack
    return DeviceReport(
        cards=parse_card_list(result.stdout),
        selected=select_device(
            result.stdout,
            jack.device_patterns,
            jack.fallback_pattern,
            pinned=jack.device,
        ),
    )
