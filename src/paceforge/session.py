"""
Playback timeline for a finalized workout.

A playback driver owns its own timer; this module only answers "where
am I" for a given elapsed time, so the driver and the REPL read the
same numbers.
"""

from dataclasses import dataclass
from typing import Optional

from .core import Units, format_speed
from .models import Segment, Workout


def segment_label(segment: Segment, units: Units) -> str:
    """Text announced for a segment: its cue, or its speed when it has none."""
    if segment.cue:
        return segment.cue
    return f"Speed {format_speed(segment.speed)} {Units(units).value}"


def format_clock(seconds: int) -> str:
    """Convert seconds to M:SS format."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


@dataclass(frozen=True)
class SessionPosition:
    index: int
    segment: Segment
    next_segment: Optional[Segment]
    segment_elapsed: int
    segment_remaining: int
    total_elapsed: int
    progress: float
    finished: bool


def locate(workout: Workout, elapsed_secs: int) -> Optional[SessionPosition]:
    """Find the active segment after ``elapsed_secs`` of playback.

    Elapsed time is clamped into ``[0, total_secs]``. A segment becomes
    active at its start second and stays active until its last second;
    at ``total_secs`` the last segment is reported as finished.

    Args:
        workout: Finalized workout
        elapsed_secs: Seconds since playback started

    Returns:
        Position in the workout, or None for a workout without segments
    """
    if not workout.segments:
        return None

    total = workout.total_secs
    elapsed = max(0, min(int(elapsed_secs), total))
    progress = elapsed / total if total > 0 else 0.0

    start = 0
    last_index = len(workout.segments) - 1
    for index, segment in enumerate(workout.segments):
        end = start + segment.secs
        if elapsed < end or index == last_index:
            segment_elapsed = min(elapsed - start, segment.secs)
            next_segment = (
                workout.segments[index + 1] if index < last_index else None
            )
            return SessionPosition(
                index=index,
                segment=segment,
                next_segment=next_segment,
                segment_elapsed=segment_elapsed,
                segment_remaining=max(0, segment.secs - segment_elapsed),
                total_elapsed=elapsed,
                progress=progress,
                finished=elapsed >= total,
            )
        start = end
    return None


def completion_summary(workout: Workout) -> str:
    return (
        f"Completed {len(workout.segments)} segments in "
        f"{format_clock(workout.total_secs)}."
    )
