"""
Tests for ALSA card parsing and JACK device selection.
"""

import textwrap

from drumbrain.adapters.base import CommandResult
from drumbrain.core.models.config import JackSettings, SetupConfig
from drumbrain.core.services.devices import detect_devices, parse_card_list, select_device

APLAY_PI = textwrap.dedent("""\
    **** List of PLAYBACK Hardware Devices ****
    card 0: Headphones [bcm2835 Headphones], device 0: bcm2835 Headphones [bcm2835 Headphones]
      Subdevices: 8/8
      Subdevice #0: subdevice #0
    card 1: vc4hdmi [vc4-hdmi], device 0: MAI PCM i2s-hifi-0 [MAI PCM i2s-hifi-0]
      Subdevices: 1/1
""")

APLAY_UMC = APLAY_PI + textwrap.dedent("""\
    card 2: U192k [UMC202HD 192k], device 0: USB Audio [USB Audio]
      Subdevices: 1/1
""")

PATTERNS = ["usb", "umc", "codec", "audio"]


class TestParse:
    def test_only_card_lines(self):
        cards = parse_card_list(APLAY_UMC)
        assert [c.index for c in cards] == [0, 1, 2]
        assert cards[2].hw == "hw:2"
        assert "UMC202HD" in cards[2].line

    def test_empty(self):
        assert parse_card_list("") == []


class TestSelect:
    def test_prefers_usb_interface(self):
        assert select_device(APLAY_UMC, PATTERNS, "Headphones") == "hw:2"

    def test_falls_back_to_headphones(self):
        assert select_device(APLAY_PI, PATTERNS, "Headphones") == "hw:0"

    def test_case_insensitive(self):
        text = "card 3: Device [Generic CODEC], device 0: x [x]\n"
        assert select_device(text, PATTERNS, "Headphones") == "hw:3"

    def test_nothing_suitable(self):
        text = "card 1: vc4hdmi [vc4-hdmi], device 0: MAI PCM [MAI PCM]\n"
        assert select_device(text, PATTERNS, "Headphones") is None

    def test_pinned_wins(self):
        assert select_device(APLAY_UMC, PATTERNS, "Headphones", pinned="hw:0") == "hw:0"


class TestDetect:
    def test_runs_aplay(self, runner):
        runner.respond(("aplay", "-l"), CommandResult.success(["aplay", "-l"], stdout=APLAY_UMC))
        report = detect_devices(SetupConfig(), runner)
        assert runner.commands() == [["aplay", "-l"]]
        assert report.selected == "hw:2"
        assert len(report.cards) == 3
        assert report.error is None

    def test_aplay_failure(self, runner):
        runner.fail(("aplay",), stderr="aplay: device_list:274: no soundcards found...")
        report = detect_devices(SetupConfig(jack=JackSettings(device="hw:1")), runner)
        assert report.cards == []
        assert report.selected == "hw:1"
        assert "no soundcards" in report.error

    def test_to_dict(self, runner):
        runner.respond(("aplay",), CommandResult.success(["aplay"], stdout=APLAY_PI))
        data = detect_devices(SetupConfig(), runner).to_dict()
        assert data["selected"] == "hw:0"
        assert data["cards"][0] == {"index": 0, "line": APLAY_PI.splitlines()[1]}
