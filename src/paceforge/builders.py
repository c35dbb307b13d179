"""
Plan builders for interval, steady and progression workouts.

Each builder turns high-level options into raw (duration, target speed,
cue) segments and hands them to the safety pipeline. Builders never
validate device speeds themselves.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from .core import clamp, format_speed
from .errors import InvalidOptionError
from .models import DeviceProfile, Segment, Workout
from .safety import apply_safety, quantize_down

logger = logging.getLogger(__name__)

# Warm-up/cool-down speed sits this far between the slowest and fastest speed
WARM_FRACTION = 0.35

# Warm-up and cool-down are each capped at five minutes
WARM_COOL_CAP_SECS = 300

# Strides spliced into the end of a steady cruise
STRIDE_FRACTION = 0.9
STRIDE_COUNT = 4
STRIDE_SECS = 20
STRIDE_RECOVERY_SECS = 40
STRIDE_BLOCK_SECS = STRIDE_COUNT * (STRIDE_SECS + STRIDE_RECOVERY_SECS)
STRIDE_MIN_SPEEDS = 3

MODES = ("intervals", "steady", "progression")


@dataclass(frozen=True)
class IntervalOptions:
    """Options for :func:`make_intervals`.

    Intensities are fractions of the device's top speed.
    """

    name: str = "Intervals"
    warmup_mins: float = 5
    cooldown_mins: float = 5
    repeats: int = 6
    hard_secs: int = 90
    easy_secs: int = 90
    hard_intensity: float = 0.85
    easy_intensity: float = 0.55


@dataclass(frozen=True)
class SteadyOptions:
    """Options for :func:`make_steady`."""

    name: str = "Steady"
    total_mins: float = 30
    intensity: float = 0.65
    add_strides: bool = True


@dataclass(frozen=True)
class ProgressionOptions:
    """Options for :func:`make_progression`."""

    name: str = "Progression"
    total_mins: float = 30
    steps: int = 4
    top_intensity: float = 0.8


PlanOptions = Union[IntervalOptions, SteadyOptions, ProgressionOptions]

OPTIONS_BY_MODE: dict[str, type] = {
    "intervals": IntervalOptions,
    "steady": SteadyOptions,
    "progression": ProgressionOptions,
}


@dataclass(frozen=True)
class _SpeedRange:
    speeds: tuple[float, ...]
    min: float
    max: float
    warm: float

    def at_intensity(self, intensity: float, floor: Optional[float] = None) -> float:
        """Quantized speed for a fraction of the top speed."""
        lo = self.min if floor is None else floor
        return quantize_down(self.speeds, clamp(self.max * intensity, lo, self.max))


def _speed_range(profile: DeviceProfile) -> _SpeedRange:
    speeds = profile.sorted_speeds()
    # Warm speed quantization raises EmptyDomainError before min/max are needed
    lo = speeds[0] if speeds else 0.0
    hi = speeds[-1] if speeds else 0.0
    warm = quantize_down(speeds, clamp(lo + (hi - lo) * WARM_FRACTION, lo, hi))
    return _SpeedRange(speeds=speeds, min=lo, max=hi, warm=warm)


def _minutes_to_secs(minutes: float) -> int:
    return int(math.floor(minutes * 60 + 0.5))


def _warm_cool_secs(total_secs: int) -> int:
    return max(0, min(total_secs // 2, WARM_COOL_CAP_SECS))


def _cue(label: str, speed: float, profile: DeviceProfile) -> str:
    return f"{label} @ {format_speed(speed)} {profile.units.value}"


def _finish(profile: DeviceProfile, name: str, raw: list[Segment]) -> Workout:
    return Workout(name=name, units=profile.units, segments=apply_safety(profile, raw))


def make_intervals(
    profile: DeviceProfile, options: Optional[IntervalOptions] = None
) -> Workout:
    """Build a warm-up, ``repeats`` hard/easy pairs and a cool-down.

    Args:
        profile: Device constraints
        options: Interval options, defaults when None

    Returns:
        Normalized workout

    Raises:
        EmptyDomainError: If the profile has no speeds
    """
    opts = options or IntervalOptions()
    rng = _speed_range(profile)
    hard = rng.at_intensity(opts.hard_intensity)
    easy = rng.at_intensity(opts.easy_intensity)
    logger.debug(f"Intervals: warm={rng.warm} hard={hard} easy={easy}")

    raw: list[Segment] = []
    if opts.warmup_mins > 0:
        raw.append(
            Segment(
                _minutes_to_secs(opts.warmup_mins),
                rng.warm,
                _cue("Warm-up", rng.warm, profile),
            )
        )

    for i in range(opts.repeats):
        label = f"{i + 1}/{opts.repeats}"
        raw.append(Segment(opts.hard_secs, hard, _cue(f"Hard {label}", hard, profile)))
        raw.append(Segment(opts.easy_secs, easy, _cue(f"Easy {label}", easy, profile)))

    if opts.cooldown_mins > 0:
        raw.append(
            Segment(
                _minutes_to_secs(opts.cooldown_mins),
                rng.warm,
                _cue("Cool-down", rng.warm, profile),
            )
        )

    return _finish(profile, opts.name, raw)


def make_steady(
    profile: DeviceProfile, options: Optional[SteadyOptions] = None
) -> Workout:
    """Build a warm-up, a cruise block and a cool-down.

    When the cruise is long enough and the device has a few speeds to
    choose from, four short strides are spliced into the end of the cruise.
    Otherwise the strides are skipped without error.

    Args:
        profile: Device constraints
        options: Steady options, defaults when None

    Returns:
        Normalized workout
    """
    opts = options or SteadyOptions()
    rng = _speed_range(profile)
    cruise = rng.at_intensity(opts.intensity)

    total_secs = _minutes_to_secs(opts.total_mins)
    warm_cool = _warm_cool_secs(total_secs)
    cruise_secs = max(0, total_secs - 2 * warm_cool)
    logger.debug(f"Steady: warm={rng.warm} cruise={cruise} cruise_secs={cruise_secs}")

    warmup = Segment(warm_cool, rng.warm, _cue("Warm-up", rng.warm, profile))
    cooldown = Segment(warm_cool, rng.warm, _cue("Cool-down", rng.warm, profile))
    cruise_cue = _cue("Cruise", cruise, profile)

    with_strides = (
        opts.add_strides
        and cruise_secs >= STRIDE_BLOCK_SECS
        and len(rng.speeds) >= STRIDE_MIN_SPEEDS
    )
    if not with_strides:
        raw = [warmup, Segment(cruise_secs, cruise, cruise_cue), cooldown]
        return _finish(profile, opts.name, raw)

    stride = rng.at_intensity(STRIDE_FRACTION)
    raw = [warmup, Segment(max(0, cruise_secs - STRIDE_BLOCK_SECS), cruise, cruise_cue)]
    for i in range(STRIDE_COUNT):
        raw.append(
            Segment(
                STRIDE_SECS,
                stride,
                _cue(f"Stride {i + 1}/{STRIDE_COUNT}", stride, profile),
            )
        )
        raw.append(
            Segment(
                STRIDE_RECOVERY_SECS,
                cruise,
                _cue("Easy between strides", cruise, profile),
            )
        )
    raw.append(cooldown)
    return _finish(profile, opts.name, raw)


def _ladder(rng: _SpeedRange, top: float, steps: int) -> list[float]:
    usable = [speed for speed in rng.speeds if rng.warm <= speed <= top]
    if not usable:
        return [rng.warm] * steps

    ladder = []
    for i in range(steps):
        if steps == 1:
            idx = len(usable) - 1
        else:
            idx = int(math.floor(i / (steps - 1) * (len(usable) - 1) + 0.5))
        ladder.append(usable[idx])
    return ladder


def make_progression(
    profile: DeviceProfile, options: Optional[ProgressionOptions] = None
) -> Workout:
    """Build a warm-up, an ascending ladder of ``steps`` speeds and a cool-down.

    Args:
        profile: Device constraints
        options: Progression options, defaults when None

    Returns:
        Normalized workout
    """
    opts = options or ProgressionOptions()
    rng = _speed_range(profile)
    top = rng.at_intensity(opts.top_intensity, floor=rng.warm)
    ladder = _ladder(rng, top, opts.steps)
    logger.debug(f"Progression: warm={rng.warm} top={top} ladder={ladder}")

    total_secs = _minutes_to_secs(opts.total_mins)
    warm_cool = _warm_cool_secs(total_secs)
    work_secs = max(0, total_secs - 2 * warm_cool)
    each, remainder = divmod(work_secs, opts.steps) if opts.steps > 0 else (0, 0)

    raw = [Segment(warm_cool, rng.warm, _cue("Warm-up", rng.warm, profile))]
    for i, speed in enumerate(ladder):
        secs = each + (1 if i < remainder else 0)
        raw.append(Segment(secs, speed, _cue(f"Step {i + 1}/{opts.steps}", speed, profile)))
    raw.append(Segment(warm_cool, rng.warm, _cue("Cool-down", rng.warm, profile)))

    return _finish(profile, opts.name, raw)


def build_workout(
    profile: DeviceProfile, mode: str, options: Optional[PlanOptions] = None
) -> Workout:
    """Dispatch to the builder for ``mode``.

    Args:
        profile: Device constraints
        mode: One of ``MODES``
        options: Options record matching the mode, defaults when None

    Returns:
        Normalized workout

    Raises:
        InvalidOptionError: If the mode is unknown or the options do not match it
    """
    options_type = OPTIONS_BY_MODE.get(mode)
    if options_type is None:
        raise InvalidOptionError(f"Unknown mode: {mode}")
    if options is not None and not isinstance(options, options_type):
        raise InvalidOptionError(
            f"{type(options).__name__} cannot configure a {mode} workout"
        )

    if mode == "intervals":
        return make_intervals(profile, options)  # type: ignore[arg-type]
    if mode == "steady":
        return make_steady(profile, options)  # type: ignore[arg-type]
    return make_progression(profile, options)  # type: ignore[arg-type]
