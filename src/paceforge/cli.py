"""
Command-line entry point and interactive REPL for workout generation.

With a mode argument, builds one workout and prints it. Without one,
starts an interactive command loop with auto-completion for tweaking a
device profile and generating workouts against it.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import InMemoryHistory

from .builders import (
    MODES,
    IntervalOptions,
    PlanOptions,
    ProgressionOptions,
    SteadyOptions,
    build_workout,
)
from .commands import (
    BUILDER_COMMANDS,
    COMMANDS,
    CommandCompleter,
    get_command,
    parse_clock,
    parse_options,
)
from .core import DEFAULT_SPEEDS, DEFAULT_UNITS, UNIT_CHOICES, Units, __version__
from .display import DisplayManager, describe, workout_json
from .errors import InvalidOptionError, PaceForgeError
from .models import DeviceProfile, Workout
from .profiles import load_profile, parse_speeds, resolve_profile
from .session import locate

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


class WorkoutREPL:
    """Interactive REPL for building workouts against a device profile."""

    def __init__(
        self,
        profile: Optional[DeviceProfile] = None,
        display: Optional[DisplayManager] = None,
    ) -> None:
        """Initialize REPL with a profile and display manager.

        Args:
            profile: Starting device profile (a default walking pad if None)
            display: Output manager (creates one if None)
        """
        self.profile = profile or DeviceProfile(
            name="Default", units=DEFAULT_UNITS, speeds=DEFAULT_SPEEDS
        )
        self.display = display or DisplayManager()
        self.workout: Optional[Workout] = None
        self.running = False
        # Created in run() so handlers can be driven without a terminal
        self.session: Optional[PromptSession] = None

    async def run(self) -> None:
        """Run the main REPL loop."""
        self.running = True
        self.session = PromptSession(
            completer=CommandCompleter(),
            history=InMemoryHistory(),
            enable_history_search=True,
        )
        self.display.print_banner()
        self.display.print_profile(self.profile)

        try:
            while self.running:
                try:
                    text = await self.session.prompt_async(self._get_prompt())
                    if text.strip():
                        await self._handle_input(text.strip())
                except KeyboardInterrupt:
                    # Just show new prompt on Ctrl+C
                    self.display.console.print()
                    continue
        except EOFError:
            # End of input (Ctrl+D)
            await self.cmd_quit([])
        finally:
            self.running = False

    def _get_prompt(self) -> FormattedText:
        """Get prompt showing the active profile.

        Returns:
            FormattedText for prompt_toolkit
        """
        return FormattedText(
            [("class:prompt", f"[{self.profile.name} {self.profile.units.value}] > ")]
        )

    async def _handle_input(self, text: str) -> None:
        """Parse and dispatch command.

        Args:
            text: Raw user input text
        """
        parts = text.split(maxsplit=1)
        if not parts:
            return

        cmd_name = parts[0].lower()
        args = parts[1].split() if len(parts) > 1 else []

        # Find command
        cmd = get_command(cmd_name)
        if not cmd:
            self.display.print_error(
                f"Unknown command: {cmd_name}. Type 'help' for available commands."
            )
            return

        handler = getattr(self, cmd.handler)

        # Execute command
        try:
            await handler(args)
        except PaceForgeError as e:
            self.display.print_error(str(e))
        except Exception as e:
            self.display.print_error(f"Command failed: {e}")
            logger.exception("Command exception")

    def _generate(self, mode: str, args: list) -> None:
        options = parse_options(mode, args)
        self.workout = build_workout(self.profile, mode, options)
        self.display.print_workout(self.workout)

    def _require_workout(self) -> Optional[Workout]:
        if self.workout is None:
            self.display.print_error(
                "No workout yet. Use 'intervals', 'steady' or 'progression' first."
            )
        return self.workout

    # ========== Command Handlers ==========

    async def cmd_speeds(self, args: list) -> None:
        """Replace the profile's allowed speeds."""
        if not args:
            self.display.print_error("Usage: speeds <s1,s2,...>")
            return
        speeds = parse_speeds(",".join(args))
        self.profile = replace(self.profile, speeds=tuple(sorted(set(speeds))))
        self.display.print_info(f"Speeds set ({len(self.profile.speeds)} settings)")

    async def cmd_units(self, args: list) -> None:
        """Switch speed units."""
        if not args or args[0].lower() not in UNIT_CHOICES:
            self.display.print_error(f"Usage: units <{'|'.join(UNIT_CHOICES)}>")
            return
        self.profile = replace(self.profile, units=Units(args[0].lower()))
        self.display.print_info(f"Units set to {self.profile.units.value}")

    async def cmd_ramp(self, args: list) -> None:
        """Set or disable the ramp limit."""
        if not args:
            self.display.print_error("Usage: ramp <delta|off>")
            return
        if args[0].lower() == "off":
            self.profile = replace(self.profile, ramp_limit_per_change=None)
            self.display.print_info("Ramp limit disabled")
            return
        try:
            limit = float(args[0])
        except ValueError as e:
            raise InvalidOptionError(f"Invalid ramp limit: {args[0]}") from e
        if limit < 0:
            raise InvalidOptionError("Ramp limit must be >= 0")
        self.profile = replace(self.profile, ramp_limit_per_change=limit)
        self.display.print_info(f"Ramp limit set to {args[0]}")

    async def cmd_minseg(self, args: list) -> None:
        """Set or disable the minimum segment length."""
        if not args:
            self.display.print_error("Usage: minseg <seconds|off>")
            return
        if args[0].lower() == "off":
            self.profile = replace(self.profile, min_segment_sec=None)
            self.display.print_info("Segment merging disabled")
            return
        try:
            secs = int(args[0])
        except ValueError as e:
            raise InvalidOptionError(
                f"Expected an integer for minseg, received {args[0]}"
            ) from e
        if secs < 1:
            raise InvalidOptionError("Minimum segment length must be >= 1")
        self.profile = replace(self.profile, min_segment_sec=secs)
        self.display.print_info(f"Minimum segment set to {secs} s")

    async def cmd_load(self, args: list) -> None:
        """Load a device profile file."""
        if not args:
            self.display.print_error("Usage: load <path>")
            return
        self.profile = load_profile(" ".join(args))
        self.display.print_profile(self.profile)

    async def cmd_profile(self, args: list) -> None:
        """Show the active device profile."""
        self.display.print_profile(self.profile)

    async def cmd_intervals(self, args: list) -> None:
        self._generate(BUILDER_COMMANDS["intervals"], args)

    async def cmd_steady(self, args: list) -> None:
        self._generate(BUILDER_COMMANDS["steady"], args)

    async def cmd_progression(self, args: list) -> None:
        self._generate(BUILDER_COMMANDS["progression"], args)

    async def cmd_show(self, args: list) -> None:
        """Show the last workout as a table."""
        workout = self._require_workout()
        if workout is not None:
            self.display.print_workout_table(workout)

    async def cmd_json(self, args: list) -> None:
        """Show the last workout as JSON."""
        workout = self._require_workout()
        if workout is not None:
            self.display.print_json(workout)

    async def cmd_at(self, args: list) -> None:
        """Show where playback would be after the given time."""
        if not args:
            self.display.print_error("Usage: at <mm:ss|seconds>")
            return
        workout = self._require_workout()
        if workout is None:
            return
        position = locate(workout, parse_clock(args[0]))
        if position is None:
            self.display.print_info("Workout has no segments")
            return
        self.display.print_position(workout, position)

    async def cmd_help(self, args: list) -> None:
        """Show all available commands."""
        self.display.print_help(COMMANDS)

    async def cmd_quit(self, args: list) -> None:
        """Exit the REPL."""
        self.display.console.print("[cyan]Goodbye![/cyan]")
        self.running = False


def _positive_int(label: str):  # type: ignore[no-untyped-def]
    def parse(value: str) -> int:
        try:
            parsed = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(
                f"Expected an integer for {label}, received {value}"
            )
        if parsed < 0:
            raise argparse.ArgumentTypeError(f"{label} must be >= 0")
        return parsed

    return parse


def _number(label: str):  # type: ignore[no-untyped-def]
    def parse(value: str) -> float:
        try:
            parsed = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid {label}: {value}")
        if parsed < 0:
            raise argparse.ArgumentTypeError(f"{label} must be >= 0")
        return parsed

    return parse


def _speeds(value: str) -> list[float]:
    try:
        return parse_speeds(value)
    except InvalidOptionError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paceforge",
        description="Generate treadmill-style workouts for discrete-speed devices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  paceforge                                        # Start interactive REPL
  paceforge intervals --speeds 1,1.5,2,2.5,3       # Default 6x90s intervals
  paceforge steady --profile-file pad.json --total-mins 40
  paceforge progression --speeds 2,3,4,5 --steps 3 --out json
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "mode", nargs="?", choices=MODES, help="Workout mode (omit for the REPL)"
    )

    profile = parser.add_argument_group("device profile")
    profile.add_argument("--units", choices=UNIT_CHOICES, help="Device units (default mph)")
    profile.add_argument(
        "--speeds", type=_speeds, help="Comma-separated allowed speeds (e.g. 1,1.5,2)"
    )
    profile.add_argument("--profile-file", help="Path to a device profile JSON file")
    profile.add_argument(
        "--min-segment-sec",
        type=_positive_int("min-segment-sec"),
        help="Minimum segment length (seconds)",
    )
    profile.add_argument(
        "--ramp-limit",
        type=_number("ramp-limit"),
        help="Maximum allowed speed change per segment",
    )

    plan = parser.add_argument_group("workout options")
    plan.add_argument("--name", help="Override workout name")
    plan.add_argument("--warmup", type=_number("warmup"), help="Warm-up minutes")
    plan.add_argument("--cooldown", type=_number("cooldown"), help="Cool-down minutes")
    plan.add_argument("--repeats", type=_positive_int("repeats"), help="Interval repeats")
    plan.add_argument(
        "--hard-secs", type=_positive_int("hard-secs"), help="Hard interval seconds"
    )
    plan.add_argument(
        "--easy-secs", type=_positive_int("easy-secs"), help="Easy interval seconds"
    )
    plan.add_argument(
        "--hard", type=_number("hard"), help="Hard intensity as a fraction of max speed"
    )
    plan.add_argument(
        "--easy", type=_number("easy"), help="Easy intensity as a fraction of max speed"
    )
    plan.add_argument(
        "--total-mins", type=_number("total-mins"), help="Total workout minutes"
    )
    plan.add_argument(
        "--intensity",
        type=_number("intensity"),
        help="Steady intensity as a fraction of max speed",
    )
    plan.add_argument(
        "--no-strides",
        dest="strides",
        action="store_false",
        help="Disable strides in steady workouts",
    )
    plan.add_argument(
        "--steps", type=_positive_int("steps"), help="Number of progression steps"
    )
    plan.add_argument(
        "--top", type=_number("top"), help="Top intensity as a fraction of max speed"
    )

    parser.add_argument(
        "--out",
        choices=("text", "json", "table"),
        default="text",
        help="Output format (default text)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _set(values: dict, key: str, value: object) -> None:
    if value is not None:
        values[key] = value


def options_from_args(args: argparse.Namespace) -> PlanOptions:
    """Map parsed flags onto the options record for ``args.mode``.

    Flags that were not given keep the record's defaults.
    """
    values: dict = {}
    _set(values, "name", args.name)

    if args.mode == "intervals":
        _set(values, "warmup_mins", args.warmup)
        _set(values, "cooldown_mins", args.cooldown)
        _set(values, "repeats", args.repeats)
        _set(values, "hard_secs", args.hard_secs)
        _set(values, "easy_secs", args.easy_secs)
        _set(values, "hard_intensity", args.hard)
        _set(values, "easy_intensity", args.easy)
        return IntervalOptions(**values)

    if args.mode == "steady":
        _set(values, "total_mins", args.total_mins)
        _set(values, "intensity", args.intensity)
        values["add_strides"] = args.strides
        return SteadyOptions(**values)

    if args.mode == "progression":
        _set(values, "total_mins", args.total_mins)
        _set(values, "top_intensity", args.top)
        if args.steps is not None:
            if args.steps < 1:
                raise InvalidOptionError("steps must be >= 1")
            values["steps"] = args.steps
        return ProgressionOptions(**values)

    raise InvalidOptionError(f"Unknown mode: {args.mode}")


def emit_workout(workout: Workout, out: str, display: DisplayManager) -> None:
    if out == "json":
        print(workout_json(workout))
    elif out == "table":
        display.print_workout_table(workout)
    else:
        print(describe(workout))


def run_generate(args: argparse.Namespace, display: DisplayManager) -> int:
    """Build and print one workout.

    Returns:
        Process exit code
    """
    try:
        profile = resolve_profile(
            speeds=args.speeds,
            units=args.units,
            min_segment_sec=args.min_segment_sec,
            ramp_limit=args.ramp_limit,
            profile_file=args.profile_file,
        )
        workout = build_workout(profile, args.mode, options_from_args(args))
    except PaceForgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    emit_workout(workout, args.out, display)
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the CLI and REPL."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    display = DisplayManager()

    if args.mode is not None:
        sys.exit(run_generate(args, display))

    # No mode: start the REPL, seeded from any profile flags
    try:
        profile = None
        if args.speeds is not None or args.profile_file:
            profile = resolve_profile(
                speeds=args.speeds,
                units=args.units,
                min_segment_sec=args.min_segment_sec,
                ramp_limit=args.ramp_limit,
                profile_file=args.profile_file,
            )
        repl = WorkoutREPL(profile=profile, display=display)
        asyncio.run(repl.run())
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
