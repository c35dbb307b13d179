"""
Domain values passed between the workout builders, the safety pipeline
and the renderers.

All values are frozen dataclasses: a generated workout never shares
mutable state with the profile or options it was built from.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .core import Units


@dataclass(frozen=True)
class DeviceProfile:
    """Physical constraints of one exercise device."""

    units: Units
    speeds: tuple[float, ...]
    name: str = "Device"
    min_segment_sec: Optional[int] = None
    ramp_limit_per_change: Optional[float] = None
    inclines: Optional[tuple[float, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "units", Units(self.units))
        object.__setattr__(self, "speeds", tuple(self.speeds))
        if self.inclines is not None:
            object.__setattr__(self, "inclines", tuple(self.inclines))

    def sorted_speeds(self) -> tuple[float, ...]:
        """Return the allowed speeds sorted ascending without duplicates."""
        return tuple(sorted(set(self.speeds)))


@dataclass(frozen=True)
class Segment:
    """One contiguous speed command."""

    secs: int
    speed: float
    cue: Optional[str] = None


@dataclass(frozen=True)
class Workout:
    """A finalized, ordered list of segments.

    ``total_secs`` is derived from the segments when the value is built,
    so it always reflects the post-merge durations.
    """

    name: str
    units: Units
    segments: tuple[Segment, ...]
    total_secs: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "units", Units(self.units))
        object.__setattr__(self, "segments", tuple(self.segments))
        object.__setattr__(
            self, "total_secs", sum(segment.secs for segment in self.segments)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary.

        Returns:
            Dictionary with name, units, totalSecs and segments
        """
        return {
            "name": self.name,
            "units": self.units.value,
            "totalSecs": self.total_secs,
            "segments": [
                {"secs": segment.secs, "speed": segment.speed, "cue": segment.cue}
                for segment in self.segments
            ],
        }
