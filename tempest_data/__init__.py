"""Tempest weather station UDP collector."""

__all__ = [
    "cli",
    "collector",
    "config",
    "decode",
    "distill",
    "errors",
    "log",
    "normalize",
    "schema",
    "snapshot",
    "timeseries",
]
