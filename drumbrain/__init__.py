"""DrumBrain — Raspberry Pi drum sound engine provisioning."""

__version__ = "0.1.0"
