"""
Safety normalization for raw workout segments.

Every segment leaving this module runs at a speed the device can execute,
respects the profile's ramp limit and has been coalesced with short
same-speed neighbours. The pipeline is a chain of pure stages, each taking
and returning an immutable tuple:

    drop empty -> quantize -> ramp limit -> merge
"""

import logging
from typing import Iterable, Optional, Sequence

from .core import CLAMPED_MARKER, MERGE_SEPARATOR, RAMP_TOLERANCE
from .errors import EmptyDomainError
from .models import DeviceProfile, Segment

logger = logging.getLogger(__name__)


def quantize_down(allowed: Sequence[float], target: float) -> float:
    """Snap a target speed down to the nearest allowed speed.

    Args:
        allowed: Allowed speeds, sorted ascending
        target: Continuous target speed

    Returns:
        Largest allowed speed not above target, or the smallest allowed
        speed when the target is below the whole range

    Raises:
        EmptyDomainError: If allowed is empty
    """
    if not allowed:
        raise EmptyDomainError("Device profile has no allowed speeds")

    candidate = allowed[0]
    for value in allowed:
        if value <= target:
            candidate = value
        else:
            break
    return candidate


def limit_ramp(
    allowed: Sequence[float], prev: float, base: float, ramp_limit: float
) -> float:
    """Pick the speed to emit after ``prev`` when ``base`` was requested.

    Args:
        allowed: Allowed speeds, sorted ascending
        prev: Speed emitted for the previous segment
        base: Quantized speed wanted for this segment
        ramp_limit: Maximum allowed change between segments

    Returns:
        ``base`` when within the limit, else the compliant allowed speed
        closest to ``base`` (first found on ties), else ``prev``
    """
    bound = ramp_limit + RAMP_TOLERANCE
    if abs(base - prev) <= bound:
        return base

    best: Optional[float] = None
    best_distance = 0.0
    for value in allowed:
        if abs(value - prev) > bound:
            continue
        distance = abs(value - base)
        if best is None or distance < best_distance:
            best = value
            best_distance = distance

    if best is None:
        return prev
    return best


def annotate_clamped(cue: Optional[str]) -> str:
    if cue:
        return f"{cue} {CLAMPED_MARKER}"
    return CLAMPED_MARKER


def merge_cues(first: Optional[str], second: Optional[str]) -> Optional[str]:
    """Combine the cues of two coalesced segments."""
    if first and second and first != second:
        return f"{first}{MERGE_SEPARATOR}{second}"
    return first or second


def drop_empty_segments(segments: Iterable[Segment]) -> tuple[Segment, ...]:
    kept = []
    for segment in segments:
        if segment.secs <= 0:
            logger.debug(f"Dropping {segment.secs}s segment: {segment.cue}")
            continue
        kept.append(segment)
    return tuple(kept)


def quantize_segments(
    allowed: Sequence[float], segments: Iterable[Segment]
) -> tuple[Segment, ...]:
    return tuple(
        Segment(
            secs=segment.secs,
            speed=quantize_down(allowed, segment.speed),
            cue=segment.cue,
        )
        for segment in segments
    )


def limit_segments(
    allowed: Sequence[float],
    segments: Iterable[Segment],
    ramp_limit: Optional[float],
) -> tuple[Segment, ...]:
    """Apply the ramp limit to already-quantized segments.

    The first segment passes unchecked. Each later segment is compared
    with the speed actually emitted before it, not the one requested.

    Args:
        allowed: Allowed speeds, sorted ascending
        segments: Quantized segments in playback order
        ramp_limit: Maximum change per segment, None to disable

    Returns:
        New tuple of segments, clamped ones annotated in their cue
    """
    if ramp_limit is None:
        return tuple(segments)

    limited: list[Segment] = []
    prev: Optional[float] = None
    for segment in segments:
        speed = segment.speed
        cue = segment.cue
        if prev is not None:
            speed = limit_ramp(allowed, prev, segment.speed, ramp_limit)
            if speed != segment.speed:
                if speed == prev:
                    logger.debug(
                        f"Holding {prev} instead of {segment.speed}: no speed within ramp limit {ramp_limit}"
                    )
                else:
                    logger.debug(
                        f"Clamped {segment.speed} -> {speed} (ramp limit {ramp_limit})"
                    )
                cue = annotate_clamped(cue)
        limited.append(Segment(secs=segment.secs, speed=speed, cue=cue))
        prev = speed
    return tuple(limited)


def merge_segments(
    segments: Iterable[Segment], min_segment_sec: Optional[int]
) -> tuple[Segment, ...]:
    """Coalesce adjacent same-speed segments when either is too short.

    This is one greedy left-to-right pass, not a fixed point: a merged
    segment may still be shorter than ``min_segment_sec`` when its next
    neighbour runs at a different speed.

    Args:
        segments: Segments in playback order
        min_segment_sec: Duration threshold, None to disable merging

    Returns:
        New tuple of segments
    """
    if min_segment_sec is None:
        return tuple(segments)

    merged: list[Segment] = []
    for segment in segments:
        if merged:
            last = merged[-1]
            if last.speed == segment.speed and (
                last.secs < min_segment_sec or segment.secs < min_segment_sec
            ):
                logger.debug(
                    f"Merging {last.secs}s + {segment.secs}s at {last.speed}"
                )
                merged[-1] = Segment(
                    secs=last.secs + segment.secs,
                    speed=last.speed,
                    cue=merge_cues(last.cue, segment.cue),
                )
                continue
        merged.append(segment)
    return tuple(merged)


def apply_safety(
    profile: DeviceProfile, raw_segments: Iterable[Segment]
) -> tuple[Segment, ...]:
    """Normalize a raw plan against a device profile.

    Args:
        profile: Device constraints
        raw_segments: Unconstrained segments from a plan builder

    Returns:
        Segments that only use the profile's speeds, respect its ramp
        limit and have short same-speed neighbours merged

    Raises:
        EmptyDomainError: If the profile has no speeds
    """
    allowed = profile.sorted_speeds()
    if not allowed:
        raise EmptyDomainError(f"Device profile '{profile.name}' has no allowed speeds")

    segments = drop_empty_segments(raw_segments)
    segments = quantize_segments(allowed, segments)
    segments = limit_segments(allowed, segments, profile.ramp_limit_per_change)
    return merge_segments(segments, profile.min_segment_sec)
