#!/usr/bin/env python
"""Interval, steady and progression builders against small device profiles."""

import pytest

from paceforge.builders import (
    IntervalOptions,
    ProgressionOptions,
    SteadyOptions,
    build_workout,
    make_intervals,
    make_progression,
    make_steady,
)
from paceforge.core import Units
from paceforge.errors import EmptyDomainError, InvalidOptionError
from paceforge.models import DeviceProfile


@pytest.fixture
def profile() -> DeviceProfile:
    return DeviceProfile(
        name="Test Device",
        units=Units.MPH,
        speeds=(1, 1.5, 2, 2.5, 3),
        min_segment_sec=30,
        ramp_limit_per_change=1,
    )


def _assert_safe(profile: DeviceProfile, workout) -> None:
    speeds = set(profile.speeds)
    assert workout.total_secs == sum(s.secs for s in workout.segments)
    for segment in workout.segments:
        assert segment.speed in speeds
        assert segment.secs > 0
    limit = profile.ramp_limit_per_change
    for prev, cur in zip(workout.segments, workout.segments[1:]):
        if limit is not None:
            assert abs(cur.speed - prev.speed) <= limit + 1e-9 or cur.speed == prev.speed
        if profile.min_segment_sec is not None and cur.speed == prev.speed:
            assert not (
                prev.secs < profile.min_segment_sec and cur.secs < profile.min_segment_sec
            )


def test_intervals_segment_count_and_durations(profile):
    workout = make_intervals(
        profile,
        IntervalOptions(
            name="Custom Intervals",
            warmup_mins=1,
            cooldown_mins=1,
            repeats=3,
            hard_secs=60,
            easy_secs=30,
            hard_intensity=0.85,
            easy_intensity=0.55,
        ),
    )

    assert workout.name == "Custom Intervals"
    assert workout.units == Units.MPH
    assert [s.secs for s in workout.segments] == [60, 60, 30, 60, 30, 60, 30, 60]
    assert workout.total_secs == 60 + 3 * (60 + 30) + 60
    assert workout.segments[0].cue == "Warm-up @ 1.5 mph"
    assert workout.segments[1].cue == "Hard 1/3 @ 2.5 mph"
    assert workout.segments[2].cue == "Easy 1/3 @ 1.5 mph"
    assert workout.segments[-1].cue == "Cool-down @ 1.5 mph"
    _assert_safe(profile, workout)


def test_intervals_defaults(profile):
    workout = make_intervals(profile)

    assert workout.name == "Intervals"
    assert len(workout.segments) == 14
    assert workout.total_secs == 300 + 6 * 180 + 300
    assert workout.segments[3].cue == "Hard 2/6 @ 2.5 mph"


def test_intervals_ramp_limit_clamps_and_annotates(profile):
    clamped = DeviceProfile(
        units=Units.MPH, speeds=(1, 2, 3), min_segment_sec=30, ramp_limit_per_change=0.2
    )
    workout = make_intervals(
        clamped,
        IntervalOptions(
            warmup_mins=1,
            cooldown_mins=0,
            repeats=1,
            hard_secs=60,
            easy_secs=30,
            hard_intensity=1,
            easy_intensity=1,
        ),
    )

    assert any("(clamped)" in (s.cue or "") for s in workout.segments)
    assert workout.segments[0].speed == workout.segments[1].speed
    _assert_safe(clamped, workout)


def test_intervals_merges_same_speed_segments_below_minimum(profile):
    stuck = DeviceProfile(
        units=Units.MPH,
        speeds=profile.speeds,
        min_segment_sec=120,
        ramp_limit_per_change=0,
    )
    workout = make_intervals(
        stuck,
        IntervalOptions(
            warmup_mins=1,
            cooldown_mins=0,
            repeats=1,
            hard_secs=60,
            easy_secs=30,
            hard_intensity=1,
            easy_intensity=1,
        ),
    )

    assert len(workout.segments) == 1
    assert workout.segments[0].secs == 60 + 60 + 30
    assert workout.total_secs == 150
    assert workout.segments[0].cue.startswith("Warm-up @ 1.5 mph | Hard 1/1")


def test_intervals_without_warmup_or_cooldown(profile):
    workout = make_intervals(
        profile, IntervalOptions(warmup_mins=0, cooldown_mins=0, repeats=2)
    )
    assert len(workout.segments) == 4
    assert workout.segments[0].cue.startswith("Hard 1/2")


def test_intervals_zero_length_easy_is_dropped(profile):
    workout = make_intervals(
        profile, IntervalOptions(warmup_mins=0, cooldown_mins=0, repeats=3, easy_secs=0)
    )
    # Hard reps are long enough to stay separate once the easy gaps vanish
    assert [s.secs for s in workout.segments] == [90, 90, 90]
    assert all(s.cue.startswith("Hard") for s in workout.segments)


def test_steady_adds_four_strides(profile):
    workout = make_steady(profile, SteadyOptions(total_mins=30, intensity=0.7))

    strides = [s for s in workout.segments if s.cue and s.cue.startswith("Stride")]
    cruise = [s for s in workout.segments if s.cue and "Cruise" in s.cue]

    assert len(strides) == 4
    assert all(s.secs == 20 for s in strides)
    assert cruise
    assert strides[0].speed > cruise[0].speed
    assert workout.total_secs == 30 * 60
    assert len(workout.segments) == 11
    _assert_safe(profile, workout)


def test_steady_can_disable_strides(profile):
    workout = make_steady(
        profile, SteadyOptions(total_mins=30, intensity=0.7, add_strides=False)
    )
    assert len(workout.segments) == 3
    assert [s.secs for s in workout.segments] == [300, 1200, 300]


def test_steady_skips_strides_on_two_speed_device():
    two_speed = DeviceProfile(units=Units.KPH, speeds=(2, 3))
    workout = make_steady(two_speed, SteadyOptions(total_mins=30))
    assert len(workout.segments) == 3
    assert workout.total_secs == 1800
    assert workout.segments[1].cue.endswith("kph")


def test_steady_short_session_splits_warm_and_cool(profile):
    workout = make_steady(profile, SteadyOptions(total_mins=1))

    # Cruise shrinks to nothing and strides are skipped
    assert [s.secs for s in workout.segments] == [30, 30]
    assert workout.total_secs == 60


def test_progression_ladder_is_non_decreasing(profile):
    workout = make_progression(
        profile, ProgressionOptions(total_mins=30, steps=5, top_intensity=0.85)
    )

    steps = [s for s in workout.segments if s.cue and s.cue.startswith("Step")]
    assert len(steps) == 5

    speeds = [s.speed for s in steps]
    assert speeds == sorted(speeds)
    assert speeds == [1.5, 2, 2, 2.5, 2.5]

    warm_cool = workout.segments[0].secs + workout.segments[-1].secs
    assert sum(s.secs for s in steps) + warm_cool == workout.total_secs
    assert workout.total_secs == 30 * 60
    assert workout.segments[-1].speed == workout.segments[0].speed
    _assert_safe(profile, workout)


def test_progression_spreads_remainder_over_early_steps():
    loose = DeviceProfile(units=Units.MPH, speeds=(1, 1.5, 2, 2.5, 3))
    workout = make_progression(loose, ProgressionOptions(total_mins=30.1, steps=4))

    steps = [s for s in workout.segments if s.cue and s.cue.startswith("Step")]
    assert [s.secs for s in steps] == [302, 302, 301, 301]
    assert workout.total_secs == 1806


def test_progression_single_step_runs_at_top(profile):
    workout = make_progression(
        profile, ProgressionOptions(steps=1, top_intensity=0.85)
    )
    steps = [s for s in workout.segments if s.cue and s.cue.startswith("Step")]
    assert len(steps) == 1
    assert steps[0].speed == 2.5
    assert steps[0].secs == 1200


def test_builders_are_deterministic(profile):
    assert make_intervals(profile) == make_intervals(profile)
    assert make_steady(profile) == make_steady(profile)
    assert make_progression(profile) == make_progression(profile)


def test_empty_profile_raises():
    empty = DeviceProfile(units=Units.MPH, speeds=())
    with pytest.raises(EmptyDomainError):
        make_intervals(empty)
    with pytest.raises(EmptyDomainError):
        make_steady(empty)
    with pytest.raises(EmptyDomainError):
        make_progression(empty)


def test_wide_device_respects_ramp_limit():
    wide = DeviceProfile(
        units=Units.KPH,
        speeds=(1, 2, 3, 4, 5, 6, 7, 8),
        min_segment_sec=45,
        ramp_limit_per_change=1,
    )
    workout = make_intervals(
        wide, IntervalOptions(hard_intensity=1.0, easy_intensity=0.2, hard_secs=30)
    )
    _assert_safe(wide, workout)
    assert any("(clamped)" in (s.cue or "") for s in workout.segments)


def test_build_workout_dispatch(profile):
    assert build_workout(profile, "steady") == make_steady(profile)
    options = ProgressionOptions(steps=3)
    assert build_workout(profile, "progression", options) == make_progression(
        profile, options
    )


def test_build_workout_rejects_unknown_mode_and_mismatched_options(profile):
    with pytest.raises(InvalidOptionError):
        build_workout(profile, "fartlek")
    with pytest.raises(InvalidOptionError):
        build_workout(profile, "steady", IntervalOptions())
