"""
Core constants and utilities for discrete-speed workout generation.
"""

from enum import Enum


class Units(str, Enum):
    """Speed units a device profile can be expressed in."""

    MPH = "mph"
    KPH = "kph"


UNIT_CHOICES = tuple(unit.value for unit in Units)

# Cue annotations written by the safety pipeline
MERGE_SEPARATOR = " | "
CLAMPED_MARKER = "(clamped)"

# Float slack for ramp comparisons (0.1 mph steps are not exact in binary)
RAMP_TOLERANCE = 1e-9

# Fallback profile for the interactive REPL (WalkingPad-style walking pad)
DEFAULT_UNITS = Units.MPH
DEFAULT_SPEEDS = (1.5, 2.0, 2.5, 3.0, 3.5, 4.0)

# Application metadata
__version__ = "0.1.0"
__description__ = "Generate treadmill workouts for devices with discrete speed settings"


def format_speed(speed: float) -> str:
    """Format a speed in its shortest form (``2`` rather than ``2.0``)."""
    return f"{speed:g}"


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
