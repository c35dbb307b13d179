"""
Device profile loading and validation.

Profiles arrive either as a JSON file or as command-line values. Both
paths are validated by the same pydantic schema before a
:class:`DeviceProfile` reaches the workout builders.
"""

import logging
from pathlib import Path
from typing import Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core import DEFAULT_UNITS, Units
from .errors import InvalidOptionError, ProfileError
from .models import DeviceProfile

logger = logging.getLogger(__name__)


class ProfileSchema(BaseModel):
    """On-disk device profile. Keys use the camelCase names of profile files.

    ``minSegmentSec`` also takes whole-number floats such as ``30.0``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, strict=True)

    name: str
    units: Literal["mph", "kph"]
    speeds: list[float] = Field(min_length=1)
    inclines: Optional[list[float]] = None
    min_segment_sec: Optional[int] = Field(
        default=None, ge=1, alias="minSegmentSec", strict=False
    )
    ramp_limit_per_change: Optional[float] = Field(
        default=None, ge=0, alias="rampLimitPerChange"
    )

    def to_profile(self) -> DeviceProfile:
        return DeviceProfile(
            name=self.name,
            units=Units(self.units),
            speeds=normalize_speeds(self.speeds),
            inclines=tuple(self.inclines) if self.inclines is not None else None,
            min_segment_sec=self.min_segment_sec,
            ramp_limit_per_change=self.ramp_limit_per_change,
        )


def _describe_errors(exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        details.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return ", ".join(details)


def normalize_speeds(values: Iterable[float]) -> tuple[float, ...]:
    """Sort speeds ascending and drop duplicates."""
    return tuple(sorted(set(values)))


def parse_speeds(text: str) -> list[float]:
    """Parse a comma-separated speed list such as ``"1,1.5,2"``.

    Args:
        text: Raw user input

    Returns:
        Parsed speeds in input order

    Raises:
        InvalidOptionError: If the list is empty or holds a non-number
    """
    parts = [part.strip() for part in text.split(",") if part.strip()]
    if not parts:
        raise InvalidOptionError("Speeds list cannot be empty.")

    speeds = []
    for part in parts:
        try:
            speeds.append(float(part))
        except ValueError as e:
            raise InvalidOptionError(f"Invalid speed: {part}") from e
    return speeds


def load_profile(path: Union[str, Path]) -> DeviceProfile:
    """Load and validate a device profile JSON file.

    Args:
        path: Profile file location

    Returns:
        Validated profile with normalized speeds

    Raises:
        ProfileError: If the file cannot be read or fails validation
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileError(f"Failed to read profile file: {e}") from e

    try:
        schema = ProfileSchema.model_validate_json(raw)
    except ValidationError as e:
        raise ProfileError(f"Profile validation failed: {_describe_errors(e)}") from e

    logger.debug(f"Loaded profile '{schema.name}' from {file_path}")
    return schema.to_profile()


def resolve_profile(
    *,
    speeds: Optional[Iterable[float]] = None,
    units: Optional[str] = None,
    min_segment_sec: Optional[int] = None,
    ramp_limit: Optional[float] = None,
    profile_file: Optional[Union[str, Path]] = None,
) -> DeviceProfile:
    """Combine explicit values with an optional profile file.

    Explicit values win over the file. Speeds must come from one of the
    two sources; units default to mph.

    Raises:
        InvalidOptionError: If no speeds were given or a value is out of range
        ProfileError: If the profile file is invalid
    """
    file_profile = load_profile(profile_file) if profile_file else None

    resolved_speeds = list(speeds) if speeds is not None else None
    if resolved_speeds is None and file_profile is not None:
        resolved_speeds = list(file_profile.speeds)
    if not resolved_speeds:
        raise InvalidOptionError("Provide --speeds or a profile file with speeds.")

    resolved_units = units
    if resolved_units is None:
        resolved_units = (
            file_profile.units.value if file_profile else DEFAULT_UNITS.value
        )

    payload = {
        "name": file_profile.name if file_profile else "CLI Profile",
        "units": resolved_units,
        "speeds": list(normalize_speeds(float(speed) for speed in resolved_speeds)),
        "inclines": list(file_profile.inclines)
        if file_profile and file_profile.inclines is not None
        else None,
        "min_segment_sec": min_segment_sec
        if min_segment_sec is not None
        else (file_profile.min_segment_sec if file_profile else None),
        "ramp_limit_per_change": ramp_limit
        if ramp_limit is not None
        else (file_profile.ramp_limit_per_change if file_profile else None),
    }

    try:
        schema = ProfileSchema.model_validate(payload)
    except ValidationError as e:
        raise InvalidOptionError(f"Invalid profile: {_describe_errors(e)}") from e
    return schema.to_profile()
