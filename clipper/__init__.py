"""Rolling per-speaker voice capture and on-demand clip reconstruction."""

__version__ = "0.1.0"
