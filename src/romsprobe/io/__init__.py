"""Dataset loading and coordinate helpers that feed the interpolation engine."""
