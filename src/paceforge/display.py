"""
Workout rendering and Rich-based console output.

``describe`` is the plain-text cue list used by the CLI and by anything
that wants a workout as text. ``DisplayManager`` wraps a Rich console for
the REPL and the table/JSON output modes.
"""

import json
import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .core import format_speed
from .models import DeviceProfile, Workout
from .session import SessionPosition, completion_summary, format_clock, segment_label

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    """Convert seconds to MM:SS format.

    Args:
        seconds: Number of seconds

    Returns:
        Zero-padded time string; minutes are not wrapped into hours
    """
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"


def describe(workout: Workout) -> str:
    """Render a workout as one timestamped cue line per segment.

    Args:
        workout: Finalized workout

    Returns:
        Lines like ``00:00–01:00 @ 1.5 mph  Warm-up @ 1.5 mph``
    """
    lines = []
    elapsed = 0
    for segment in workout.segments:
        start = elapsed
        elapsed += segment.secs
        line = (
            f"{format_time(start)}–{format_time(elapsed)} @ "
            f"{format_speed(segment.speed)} {workout.units.value}  {segment.cue or ''}"
        )
        lines.append(line.rstrip())
    return "\n".join(lines)


def workout_json(workout: Workout) -> str:
    return json.dumps(workout.to_dict(), indent=2)


class DisplayManager:
    """Manages console output with Rich library."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize display manager.

        Args:
            console: Rich Console instance (creates one if None)
        """
        self.console = console or Console()

    def print_banner(self) -> None:
        """Print startup banner."""
        panel = Panel(
            "[bold cyan]PaceForge - Discrete-Speed Workout Builder[/bold cyan]\n"
            "[dim]Type 'help' for commands, 'quit' to exit[/dim]",
            expand=False,
        )
        self.console.print(panel)

    def print_workout(self, workout: Workout) -> None:
        """Print the plain-text cue list with a summary header."""
        self.console.print(
            f"[bold]{escape(workout.name)}[/bold] "
            f"[dim]({len(workout.segments)} segments, "
            f"{format_clock(workout.total_secs)})[/dim]"
        )
        self.console.print(describe(workout), markup=False, highlight=False)

    def print_workout_table(self, workout: Workout) -> None:
        self.console.print(self.format_workout_table(workout))

    def print_json(self, workout: Workout) -> None:
        self.console.print_json(workout_json(workout))

    def print_profile(self, profile: DeviceProfile) -> None:
        """Display the active device profile.

        Args:
            profile: Device profile to show
        """
        table = Table(title=escape(profile.name), show_header=True, header_style="bold cyan")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="yellow")

        speeds = ", ".join(format_speed(speed) for speed in profile.sorted_speeds())
        table.add_row("Units", profile.units.value)
        table.add_row("Speeds", speeds or "-")
        table.add_row(
            "Min segment",
            f"{profile.min_segment_sec} s" if profile.min_segment_sec is not None else "off",
        )
        table.add_row(
            "Ramp limit",
            format_speed(profile.ramp_limit_per_change)
            if profile.ramp_limit_per_change is not None
            else "off",
        )
        if profile.inclines:
            table.add_row("Inclines", ", ".join(format_speed(i) for i in profile.inclines))

        self.console.print(table)

    def print_position(self, workout: Workout, position: SessionPosition) -> None:
        """Display where playback would be at a given elapsed time."""
        if position.finished:
            self.print_info(completion_summary(workout))
            return

        units = workout.units
        upcoming = (
            segment_label(position.next_segment, units)
            if position.next_segment is not None
            else "Finish strong!"
        )
        table = Table(show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="yellow")
        table.add_row(
            "Elapsed",
            f"{format_clock(position.total_elapsed)} / {format_clock(workout.total_secs)}"
            f" ({position.progress:.0%})",
        )
        table.add_row(
            "Segment", f"{position.index + 1}/{len(workout.segments)}"
        )
        table.add_row("Current", segment_label(position.segment, units))
        table.add_row("Remaining", format_clock(position.segment_remaining))
        table.add_row("Next", upcoming)
        self.console.print(table)

    def print_error(self, message: str) -> None:
        """Print red error message.

        Args:
            message: Error message text
        """
        self.console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)

    def print_info(self, message: str) -> None:
        """Print blue info message.

        Args:
            message: Info message text
        """
        self.console.print(f"[cyan]Info:[/cyan] {escape(message)}", highlight=False)

    def print_help(self, commands: list) -> None:
        """Display command reference.

        Args:
            commands: List of Command objects
        """
        table = Table(title="Available Commands", show_header=True)
        table.add_column("Command", style="cyan")
        table.add_column("Aliases", style="magenta")
        table.add_column("Description", style="white")
        table.add_column("Usage", style="yellow")

        for cmd in commands:
            aliases = ", ".join(cmd.aliases) if cmd.aliases else "-"
            table.add_row(cmd.name, aliases, cmd.description, cmd.usage)

        self.console.print(table)
        self.console.print(
            "[dim]Keyboard shortcuts: Ctrl+C to interrupt, Ctrl+D to exit[/dim]"
        )

    def format_workout_table(self, workout: Workout) -> Table:
        """Create Rich Table for a workout.

        Args:
            workout: Finalized workout

        Returns:
            Rich Table object with one row per segment
        """
        table = Table(
            title=f"{escape(workout.name)} ({format_clock(workout.total_secs)})",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("#", style="dim", justify="right")
        table.add_column("Start", style="cyan")
        table.add_column("End", style="cyan")
        table.add_column("Speed", style="yellow", justify="right")
        table.add_column("Cue", style="white")

        elapsed = 0
        for index, segment in enumerate(workout.segments, start=1):
            start = elapsed
            elapsed += segment.secs
            table.add_row(
                str(index),
                format_time(start),
                format_time(elapsed),
                f"{format_speed(segment.speed)} {workout.units.value}",
                segment.cue or "",
            )
        return table
