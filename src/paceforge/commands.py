"""
Command definitions and auto-completion for REPL.

Defines all available commands with metadata, parses ``key=value``
builder options and provides a completer for prompt_toolkit.
"""

from dataclasses import dataclass, fields
from typing import Any, List, get_type_hints

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .builders import OPTIONS_BY_MODE, PlanOptions
from .core import UNIT_CHOICES
from .errors import InvalidOptionError


@dataclass
class Command:
    """Command definition with metadata."""

    name: str
    aliases: List[str]
    description: str
    usage: str
    handler: str


# Define all available commands
COMMANDS = [
    Command(
        name="speeds",
        aliases=["sp"],
        description="Set the device's allowed speeds",
        usage="speeds <s1,s2,...>",
        handler="cmd_speeds",
    ),
    Command(
        name="units",
        aliases=["u"],
        description="Set speed units",
        usage="units <mph|kph>",
        handler="cmd_units",
    ),
    Command(
        name="ramp",
        aliases=["r"],
        description="Set max speed change between segments",
        usage="ramp <delta|off>",
        handler="cmd_ramp",
    ),
    Command(
        name="minseg",
        aliases=["m"],
        description="Set minimum segment length for merging",
        usage="minseg <seconds|off>",
        handler="cmd_minseg",
    ),
    Command(
        name="load",
        aliases=["ld"],
        description="Load a device profile JSON file",
        usage="load <path>",
        handler="cmd_load",
    ),
    Command(
        name="profile",
        aliases=["pr"],
        description="Show the active device profile",
        usage="profile",
        handler="cmd_profile",
    ),
    Command(
        name="intervals",
        aliases=["i", "int"],
        description="Generate an interval workout",
        usage="intervals [repeats=6 hard_secs=90 ...]",
        handler="cmd_intervals",
    ),
    Command(
        name="steady",
        aliases=["sd"],
        description="Generate a steady workout with optional strides",
        usage="steady [total_mins=30 intensity=0.65 add_strides=yes]",
        handler="cmd_steady",
    ),
    Command(
        name="progression",
        aliases=["pg", "prog"],
        description="Generate a progression workout",
        usage="progression [total_mins=30 steps=4 top_intensity=0.8]",
        handler="cmd_progression",
    ),
    Command(
        name="show",
        aliases=["sh"],
        description="Show the last workout as a table",
        usage="show",
        handler="cmd_show",
    ),
    Command(
        name="json",
        aliases=["j"],
        description="Show the last workout as JSON",
        usage="json",
        handler="cmd_json",
    ),
    Command(
        name="at",
        aliases=["a"],
        description="Show playback position at an elapsed time",
        usage="at <mm:ss|seconds>",
        handler="cmd_at",
    ),
    Command(
        name="help",
        aliases=["h", "?"],
        description="Show all available commands",
        usage="help",
        handler="cmd_help",
    ),
    Command(
        name="quit",
        aliases=["q", "exit"],
        description="Exit the REPL",
        usage="quit",
        handler="cmd_quit",
    ),
]

BUILDER_COMMANDS = {
    "intervals": "intervals",
    "i": "intervals",
    "int": "intervals",
    "steady": "steady",
    "sd": "steady",
    "progression": "progression",
    "pg": "progression",
    "prog": "progression",
}

_TRUE_WORDS = {"1", "true", "yes", "on", "y"}
_FALSE_WORDS = {"0", "false", "no", "off", "n"}


def get_command(name: str) -> Command | None:
    """Get command by name or alias.

    Args:
        name: Command name or alias

    Returns:
        Command object if found, None otherwise
    """
    for cmd in COMMANDS:
        if cmd.name == name or name in cmd.aliases:
            return cmd
    return None


def option_keys(mode: str) -> list[str]:
    return [f.name for f in fields(OPTIONS_BY_MODE[mode])]


def _coerce(key: str, raw: str, kind: Any) -> Any:
    text = raw.strip()
    if kind is bool:
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise InvalidOptionError(f"Expected yes/no for {key}, received {raw}")
    if kind is int:
        try:
            return int(text)
        except ValueError as e:
            raise InvalidOptionError(
                f"Expected an integer for {key}, received {raw}"
            ) from e
    if kind is float:
        try:
            return float(text)
        except ValueError as e:
            raise InvalidOptionError(f"Invalid {key}: {raw}") from e
    return text


def parse_options(mode: str, args: List[str]) -> PlanOptions:
    """Build an options record from ``key=value`` words.

    Args:
        mode: Workout mode the options configure
        args: Words such as ``["repeats=4", "hard-secs=60"]``

    Returns:
        Options record with unspecified fields at their defaults

    Raises:
        InvalidOptionError: For unknown keys or malformed values. Numbers
            must be >= 0 and steps must be >= 1.
    """
    options_type = OPTIONS_BY_MODE.get(mode)
    if options_type is None:
        raise InvalidOptionError(f"Unknown mode: {mode}")

    hints = get_type_hints(options_type)
    values: dict[str, Any] = {}
    for arg in args:
        key, sep, raw = arg.partition("=")
        key = key.strip().replace("-", "_")
        if not sep or not key:
            raise InvalidOptionError(f"Expected key=value, received '{arg}'")
        if key not in hints:
            valid = ", ".join(option_keys(mode))
            raise InvalidOptionError(f"Unknown {mode} option '{key}' (valid: {valid})")
        value = _coerce(key, raw, hints[key])
        if not isinstance(value, bool) and isinstance(value, (int, float)) and value < 0:
            raise InvalidOptionError(f"{key} must be >= 0")
        if key == "steps" and value < 1:
            raise InvalidOptionError("steps must be >= 1")
        values[key] = value
    return options_type(**values)


def parse_clock(text: str) -> int:
    """Parse ``mm:ss`` or plain seconds into seconds.

    Raises:
        InvalidOptionError: If the text is not a time
    """
    try:
        if ":" in text:
            mins, secs = text.split(":", 1)
            return int(mins) * 60 + int(secs)
        return int(text)
    except ValueError as e:
        raise InvalidOptionError(f"Invalid time: {text}") from e


class CommandCompleter(Completer):
    """Auto-completion for commands and arguments."""

    def __init__(self) -> None:
        """Initialize completer."""
        self._command_names = set()
        self._command_aliases = set()

        for cmd in COMMANDS:
            self._command_names.add(cmd.name)
            self._command_aliases.update(cmd.aliases)

    def get_completions(self, document: Document, complete_event) -> Any:  # type: ignore[no-untyped-def]
        """Get completion suggestions for current input.

        Args:
            document: Current input document
            complete_event: Completion event

        Yields:
            Completion objects for matching commands/arguments
        """
        text = document.text_before_cursor.lstrip()
        parts = text.split()

        # If no text yet, suggest nothing (avoid spam)
        if not text:
            return

        # First part: complete command name
        if len(parts) <= 1 and not text.endswith(" "):
            partial_cmd = parts[0].lower() if parts else ""
            all_names = self._command_names | self._command_aliases

            for name in sorted(all_names):
                if name.startswith(partial_cmd):
                    # Calculate completion (what needs to be added)
                    completion = name[len(partial_cmd) :]
                    yield Completion(
                        completion,
                        start_position=-len(partial_cmd),
                        display=f"({name})",
                    )
            return

        first_cmd = parts[0].lower()
        partial = "" if text.endswith(" ") else parts[-1].lower()

        if first_cmd in ("units", "u"):
            candidates = list(UNIT_CHOICES)
        elif first_cmd in BUILDER_COMMANDS:
            used = {part.split("=", 1)[0] for part in parts[1:] if "=" in part}
            candidates = [
                f"{key}=" for key in option_keys(BUILDER_COMMANDS[first_cmd])
                if key not in used
            ]
        else:
            return

        for candidate in candidates:
            if candidate.startswith(partial):
                yield Completion(
                    candidate[len(partial) :],
                    start_position=0,
                    display=candidate,
                )
