"""romsprobe: point sampling of ROMS ocean-model output for simulated probes."""

__version__ = "0.1.0"
