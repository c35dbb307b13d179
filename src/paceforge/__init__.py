"""
PaceForge - Discrete-Speed Workout Generation Library

A Python library for turning interval, steady and progression workout
intentions into speed commands a specific treadmill can actually run.
"""

__version__ = "0.1.0"
__description__ = (
    "Generate treadmill workouts for devices with discrete speed settings"
)

from .builders import (
    IntervalOptions,
    ProgressionOptions,
    SteadyOptions,
    build_workout,
    make_intervals,
    make_progression,
    make_steady,
)
from .core import Units
from .display import DisplayManager, describe
from .errors import EmptyDomainError, InvalidOptionError, PaceForgeError, ProfileError
from .models import DeviceProfile, Segment, Workout
from .profiles import load_profile
from .safety import apply_safety, quantize_down

__all__ = [
    "DeviceProfile",
    "DisplayManager",
    "EmptyDomainError",
    "IntervalOptions",
    "InvalidOptionError",
    "PaceForgeError",
    "ProfileError",
    "ProgressionOptions",
    "Segment",
    "SteadyOptions",
    "Units",
    "Workout",
    "apply_safety",
    "build_workout",
    "describe",
    "load_profile",
    "make_intervals",
    "make_progression",
    "make_steady",
    "quantize_down",
]
