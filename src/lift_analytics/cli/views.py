"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sets, exercises and analytics.
"""

from typing import Any

from rich.console import Console
from rich.table import Table

from ..core.grouping import group_sets_by_day
from ..core.models import Exercise, ProgressionResult, WorkoutSet
from .app import SET_ID_DISPLAY_LENGTH

console = Console()

_ARROWS = {"up": "[green]▲[/green]", "down": "[red]▼[/red]", "same": "[dim]=[/dim]"}


def format_weight(weight: float) -> str:
    """62.5 -> "62.5", 60.0 -> "60"."""
    return f"{weight:g}"


def format_set(s: WorkoutSet) -> str:
    """Short "60 kg × 10" style description of a set."""
    if s.weight == 0:
        return f"{s.reps} reps"
    if s.reps == 0:
        return f"{format_weight(s.weight)} kg"
    return f"{format_weight(s.weight)} kg × {s.reps}"


def _delta(value: float, unit: str = "") -> str:
    if value > 0:
        return f"[green]+{value:g}{unit}[/green]"
    if value < 0:
        return f"[red]{value:g}{unit}[/red]"
    return f"[dim]±0{unit}[/dim]"


def format_exercise_table(exercises: list[Exercise], set_counts: dict[str, int]) -> Table:
    """
    Create a Rich table listing exercises.

    Args:
        exercises: Exercise catalog
        set_counts: Number of sets per exercise_id

    Returns:
        Rich Table object
    """
    table = Table(title="Exercises")

    table.add_column("Name", style="cyan")
    table.add_column("Tags", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Last updated", style="dim")
    table.add_column("Id", style="dim")

    for ex in exercises:
        table.add_row(
            ex.name,
            ", ".join(sorted(ex.tags)) or "-",
            str(set_counts.get(ex.exercise_id, 0)),
            ex.last_updated.strftime("%Y-%m-%d %H:%M") if ex.last_updated else "-",
            ex.exercise_id[:SET_ID_DISPLAY_LENGTH],
        )

    return table


def format_history_table(sets: list[WorkoutSet], title: str = "Set History") -> Table:
    """
    Create a Rich table of sets grouped by day, newest first.

    Args:
        sets: All sets for one exercise

    Returns:
        Rich Table object
    """
    table = Table(title=title)

    table.add_column("Day", style="cyan")
    table.add_column("Time", style="dim")
    table.add_column("Set", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Rest(s)", justify="right")
    table.add_column("PB", justify="center")
    table.add_column("Id", style="dim")

    for group in group_sets_by_day(sets):
        first = True
        for s in group.sets:
            table.add_row(
                group.day.isoformat() if first else "",
                s.timestamp.strftime("%H:%M:%S"),
                format_set(s),
                s.set_type_label or "",
                str(s.rest_seconds) if s.rest_seconds is not None else "-",
                "★" if s.is_pb else "",
                s.set_id[:SET_ID_DISPLAY_LENGTH],
            )
            first = False
        table.add_row("", "", f"[dim]volume {group.volume:g}[/dim]", "", "", "", "", end_section=True)

    return table


def print_history(sets: list[WorkoutSet], exercise: Exercise) -> None:
    """Print one exercise's set history."""
    if not sets:
        console.print("[yellow]No sets recorded yet.[/yellow]")
        return
    console.print(format_history_table(sets, title=f"{exercise.name} history"))


def print_status(summary: dict[str, Any], exercise: Exercise) -> None:
    """
    Print today's progress, the personal record and the best day.

    Args:
        summary: Result of summarize_exercise()
        exercise: The exercise being summarized
    """
    console.print()
    console.print(f"[bold cyan]{exercise.name}[/bold cyan]  [dim]{summary['today']}[/dim]")

    pr = summary["personal_record"]
    if pr is None:
        console.print("  Personal record: [dim]none yet[/dim]")
    elif pr["is_bodyweight"]:
        console.print(f"  Personal record: [bold]{pr['reps']} reps[/bold]  ({pr['timestamp'][:10]})")
    else:
        console.print(
            f"  Personal record: [bold]{format_weight(pr['weight'])} kg × {pr['reps']}[/bold]"
            f"  ({pr['timestamp'][:10]})"
        )

    best = summary["best_day"]
    if best is not None:
        console.print(
            f"  Best day:        {best['day']}  volume {best['total_volume']:g}, {best['total_reps']} reps"
        )

    today = summary["today_metrics"]
    last = summary["last_session"]
    progress = summary["progress"]

    console.print()
    if last is not None:
        lm = last["metrics"]
        console.print(
            f"  Last session ({lm['day']}): {lm['set_count']} sets, volume {lm['volume']:g}, "
            f"top {format_weight(lm['max_weight'])} kg × {lm['max_weight_reps']}"
        )
        for group in last["breakdown"]:
            reps = ", ".join(str(r) for r in group["reps"])
            console.print(f"    {format_weight(group['weight'])} kg: {reps}")
    else:
        console.print("  Last session: [dim]none[/dim]")

    if today is None:
        console.print("  Today: [dim]no working sets yet[/dim]")
        return

    console.print(
        f"  Today: {today['set_count']} sets, volume {today['volume']:g}, {today['total_reps']} reps"
        f"  {_ARROWS[progress['direction']]}"
    )
    console.print(
        f"  Progress: {progress['percent_of_last']}% of last session"
        f"  (gain {progress['gains_percent']:+d}%)"
    )
    if progress["type_changed"]:
        print_warning("Exercise type changed since last session; comparison is approximate")

    ind = progress["indicators"]
    if ind is not None:
        console.print(
            f"  Latest set vs last: weight {_delta(ind['weight_delta'], ' kg')}, "
            f"reps {_delta(ind['reps_delta'])}, volume {_delta(ind['volume_delta'])}"
        )

    diff = summary["reps"]["difference"]
    if diff is not None:
        console.print(f"  Reps: {diff['amount']} {diff['label']} than last session")

    duration = summary["today_duration_minutes"]
    avg_rest = summary["today_average_rest_seconds"]
    if duration is not None:
        rest_str = f", avg rest {avg_rest}s" if avg_rest is not None else ""
        console.print(f"  [dim]Duration ~{duration} min{rest_str}[/dim]")


def print_targets(result: ProgressionResult, exercise: Exercise) -> None:
    """Print progressive-overload targets for the next session."""
    console.print()
    console.print(f"[bold cyan]Next session targets: {exercise.name}[/bold cyan]")

    if result.has_warning:
        print_warning(result.warning)

    targets = result.targets
    if targets is None:
        print_info(result.message or "Not enough history for targets.")
        return

    base = targets.baseline
    reps = ", ".join(str(r) for r in base.rep_pattern)
    console.print(
        f"  Baseline ({result.baseline_day}): {base.set_count} sets, "
        f"{format_weight(base.primary_weight)} kg ({reps} reps)"
    )

    table = Table(show_header=True)
    table.add_column("Plan", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Reps")
    table.add_column("", style="green")

    rp = targets.rep_progression
    wp = targets.weight_progression
    marker = {"reps": "", "weight": ""}
    marker[targets.recommended_path] = "recommended"
    table.add_row(
        "Add reps",
        f"{format_weight(rp.weight)} kg",
        ", ".join(str(r) for r in rp.target_reps) + f"  (+{rp.total_reps_gain})",
        marker["reps"],
    )
    table.add_row(
        "Add weight",
        f"{format_weight(wp.weight)} kg (+{format_weight(wp.weight_increase)})",
        ", ".join(str(r) for r in wp.target_reps),
        marker["weight"],
    )
    console.print(table)


def print_tag_distribution(distribution: list[tuple[str, float]]) -> None:
    """Print today's share of training per tag."""
    if not distribution:
        console.print("[yellow]No tagged exercises trained today.[/yellow]")
        return
    table = Table(title="Today by tag")
    table.add_column("Tag", style="magenta")
    table.add_column("Share", justify="right")
    for tag, pct in distribution:
        table.add_row(tag, f"{pct:.0f}%")
    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
