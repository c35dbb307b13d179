#!/usr/bin/env python
"""End-to-end runs of the paceforge command line."""

import json
from pathlib import Path

import pytest

from paceforge.cli import main

SPEEDS = "1,1.5,2,2.5,3"


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


@pytest.mark.integration
def test_intervals_text_output(capsys):
    code = _run(
        [
            "intervals",
            "--speeds", SPEEDS,
            "--warmup", "1",
            "--cooldown", "1",
            "--repeats", "3",
            "--hard-secs", "60",
            "--easy-secs", "30",
            "--min-segment-sec", "30",
            "--ramp-limit", "1",
        ]
    )

    lines = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert len(lines) == 8
    assert lines[0] == "00:00–01:00 @ 1.5 mph  Warm-up @ 1.5 mph"
    assert lines[1] == "01:00–02:00 @ 2.5 mph  Hard 1/3 @ 2.5 mph"
    assert lines[-1] == "05:30–06:30 @ 1.5 mph  Cool-down @ 1.5 mph"


@pytest.mark.integration
def test_json_output(capsys):
    code = _run(["progression", "--speeds", SPEEDS, "--steps", "5", "--top", "0.85", "--out", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["name"] == "Progression"
    assert payload["units"] == "mph"
    assert payload["totalSecs"] == 1800
    assert len(payload["segments"]) == 7


@pytest.mark.integration
def test_steady_without_strides_in_kph(capsys):
    code = _run(["steady", "--speeds", SPEEDS, "--units", "kph", "--no-strides", "--name", "Easy Day"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert len(lines) == 3
    assert lines[1].endswith("Cruise @ 1.5 kph")


@pytest.mark.integration
def test_table_output(capsys):
    code = _run(["steady", "--speeds", SPEEDS, "--out", "table"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Stride 1/4" in out


@pytest.mark.integration
def test_profile_file_with_overrides(tmp_path: Path, capsys):
    profile = tmp_path / "pad.json"
    profile.write_text(
        json.dumps(
            {
                "name": "Walking Pad",
                "units": "kph",
                "speeds": [1, 2, 3],
                "minSegmentSec": 30,
                "rampLimitPerChange": 0.2,
            }
        ),
        encoding="utf-8",
    )

    code = _run(["intervals", "--profile-file", str(profile), "--repeats", "1", "--cooldown", "0"])

    out = capsys.readouterr().out
    assert code == 0
    assert "(clamped)" in out
    assert "kph" in out


@pytest.mark.integration
def test_missing_speeds_is_an_error(capsys):
    code = _run(["intervals"])

    err = capsys.readouterr().err
    assert code == 1
    assert "Error: Provide --speeds" in err


@pytest.mark.integration
def test_invalid_profile_file_is_an_error(tmp_path: Path, capsys):
    profile = tmp_path / "bad.json"
    profile.write_text(json.dumps({"name": "Pad", "units": "mph", "speeds": []}), encoding="utf-8")

    code = _run(["steady", "--profile-file", str(profile)])

    assert code == 1
    assert "Profile validation failed" in capsys.readouterr().err


@pytest.mark.integration
def test_bad_flag_values_exit_with_usage_error(capsys):
    assert _run(["intervals", "--speeds", "1,fast"]) == 2
    assert _run(["intervals", "--speeds", SPEEDS, "--repeats", "many"]) == 2
    assert _run(["progression", "--speeds", SPEEDS, "--steps", "0"]) == 1
