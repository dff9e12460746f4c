"""Flap patterns, job timing, shake counting and a DFPlayer Mini driver."""

__version__ = "0.1.0"
__all__ = ["counter", "flapgen", "jobs", "player", "protocol"]