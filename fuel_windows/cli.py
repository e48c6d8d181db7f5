"""Command-line interface for the fuel window planner."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config
from .models import WindowFlag
from .loaders import PlanInputError, load_profile, load_windows, load_workouts
from .samples import SampleWorkoutSource, sample_profile
from .analysis import allocate_weekly_deficits, build_windows, reset_deficits, resting_metabolic_rate
from .export import plan_to_json, weekly_to_csv, windows_to_csv
from .units import LB_PER_KG, parse_timestamp

console = Console()
err_console = Console(stderr=True)

FLAG_LABELS = {
    WindowFlag.EMPTY: "Safety flag: >1 kg overnight drop detected, deficit halved for this window.",
    WindowFlag.UNDER_RECOVERY: "Safety flag: weight loss exceeding target, deficit paused to prioritise recovery.",
}


def _load_profile(profile_path):
    if profile_path:
        return load_profile(profile_path)
    return sample_profile()


def _render_windows(windows) -> Table:
    table = Table(title="Fuel Windows", box=box.ROUNDED)
    table.add_column("Window End", style="cyan")
    table.add_column("Next", style="yellow")
    table.add_column("Need", justify="right")
    table.add_column("Target", justify="right", style="green")
    table.add_column("AF", justify="right")
    table.add_column("Carbs g/hr (pre/during/post)")
    table.add_column("P / F / C g", style="magenta")
    table.add_column("Notes")

    for window in windows:
        notes = [FLAG_LABELS[flag] for flag in sorted(window.flags, key=lambda flag: flag.value)]
        notes.extend(window.notes)
        table.add_row(
            window.window_end.strftime("%Y-%m-%d %H:%M"),
            f"{window.next_workout_type.value} ({window.next_workout_id})",
            f"{window.need_kcal:.0f}",
            f"{window.target_kcal:.0f}",
            f"{window.activity_factor_applied:.2f}",
            f"{window.carbs.g_per_hr:.1f} ({window.carbs.pre_g:.1f}/{window.carbs.during_g:.1f}/{window.carbs.post_g:.1f})",
            f"{window.macros.protein_g:.1f} / {window.macros.fat_g:.1f} / {window.macros.carb_g:.1f}",
            "\n".join(notes),
        )
    return table


def _render_weekly(weekly) -> Table:
    table = Table(title="Weekly Deficit Placement", box=box.ROUNDED)
    table.add_column("Week", style="cyan")
    table.add_column("Dates")
    table.add_column("Allocated / Target", justify="right", style="green")
    table.add_column("Carry-over", justify="right", style="yellow")
    table.add_column("Protein", justify="right")
    table.add_column("Fat", justify="right")
    table.add_column("Carbs", justify="right")

    for week in weekly:
        table.add_row(
            week.week_key,
            f"{week.week_start:%b %d} - {week.week_end:%b %d}",
            f"{week.weekly_allocated_kcal:.0f} / {week.weekly_target_deficit_kcal:.0f} kcal",
            f"{week.carry_over_kcal:.0f} kcal" if week.carry_over_kcal else "-",
            f"{week.macros.protein_g:.1f} g",
            f"{week.macros.fat_g:.1f} g",
            f"{week.macros.carb_g:.1f} g",
        )
    return table


def _emit(windows, weekly, output_format, output, title):
    if output_format == "table":
        console.print(Panel.fit(title, style="bold blue"))
        console.print(_render_windows(windows))
        console.print(_render_weekly(weekly))
        return

    if output_format == "json":
        text = plan_to_json(windows, weekly)
    else:
        text = windows_to_csv(windows) + "\n" + weekly_to_csv(weekly)

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]✅ Plan written to {output}[/green]")
    else:
        click.echo(text)


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to FUEL_LOG_LEVEL)")
def cli(log_level):
    """Fuel window planner: energy and macros around scheduled workouts."""
    logging.basicConfig(
        level=(log_level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--profile", "profile_path", type=click.Path(exists=True, dir_okay=False), help="Profile JSON file (sample profile if omitted)")
@click.option("--workouts", "workouts_path", type=click.Path(exists=True, dir_okay=False), help="Workouts JSON file (sample workouts if omitted)")
@click.option("--start", default=None, help="Sample range start (ISO-8601)")
@click.option("--end", default=None, help="Sample range end (ISO-8601)")
@click.option("--omit-kj", is_flag=True, help="Drop planned kJ from sample workouts")
@click.option("--empty-flag", multiple=True, help="Workout id whose window gets EMPTY_FLAG")
@click.option("--under-recovery-flag", multiple=True, help="Workout id whose window gets UNDER_RECOVERY_FLAG")
@click.option("--format", "output_format", type=click.Choice(["table", "json", "csv"]), default="table", help="Output format")
@click.option("--output", type=click.Path(dir_okay=False), help="Write JSON/CSV output to this file")
def plan(profile_path, workouts_path, start, end, omit_kj, empty_flag, under_recovery_flag, output_format, output):
    """Build fuel windows and allocate the weekly deficit."""
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {e}[/red]")
        raise SystemExit(1)

    try:
        profile = _load_profile(profile_path)
        if workouts_path:
            workouts = load_workouts(workouts_path)
        else:
            default_start, default_end = config.get_sample_range()
            source = SampleWorkoutSource(omit_planned_kj=omit_kj or None)
            workouts = source.get_planned_workouts(
                parse_timestamp(start) if start else default_start,
                parse_timestamp(end) if end else default_end,
            )
    except (PlanInputError, OSError, json.JSONDecodeError, ValueError) as e:
        console.print(f"[red]❌ Could not load plan input: {e}[/red]")
        raise SystemExit(1)

    if not workouts:
        console.print("[red]❌ No workouts found for the requested range.[/red]")
        raise SystemExit(1)

    windows = build_windows(profile, workouts)
    for window in windows:
        if window.next_workout_id in empty_flag:
            window.tag(WindowFlag.EMPTY)
        if window.next_workout_id in under_recovery_flag:
            window.tag(WindowFlag.UNDER_RECOVERY)

    windows, weekly = allocate_weekly_deficits(profile, windows, workouts)
    _emit(windows, weekly, output_format, output, f"🍝 Fuel plan for {len(workouts)} workouts")


@cli.command()
@click.option("--windows", "windows_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Exported plan JSON (from plan --format json)")
@click.option("--profile", "profile_path", type=click.Path(exists=True, dir_okay=False), help="Profile JSON file (sample profile if omitted)")
@click.option("--workouts", "workouts_path", type=click.Path(exists=True, dir_okay=False), help="Workouts JSON file; their types override the types stored on the windows")
@click.option("--reset", is_flag=True, help="Reset every target to its need before allocating")
@click.option("--format", "output_format", type=click.Choice(["table", "json", "csv"]), default="table", help="Output format")
@click.option("--output", type=click.Path(dir_okay=False), help="Write JSON/CSV output to this file")
def allocate(windows_path, profile_path, workouts_path, reset, output_format, output):
    """Re-run weekly deficit placement on previously built windows.

    Targets are lowered from their current values, so allocating an already
    allocated plan stacks a second deficit unless --reset is given.
    """
    try:
        profile = _load_profile(profile_path)
        windows = load_windows(windows_path)
        workouts = load_workouts(workouts_path) if workouts_path else []
    except (PlanInputError, OSError, json.JSONDecodeError, ValueError) as e:
        console.print(f"[red]❌ Could not load plan input: {e}[/red]")
        raise SystemExit(1)

    if reset:
        windows = reset_deficits(profile, windows)
    elif any(window.deficit_kcal > 0 for window in windows):
        err_console.print("[yellow]⚠️  Windows already carry a deficit; allocating again will stack it (use --reset).[/yellow]")

    windows, weekly = allocate_weekly_deficits(profile, windows, workouts)
    _emit(windows, weekly, output_format, output, f"🍝 Reallocated {len(windows)} windows")


@cli.command()
@click.option("--profile", "profile_path", type=click.Path(exists=True, dir_okay=False), help="Profile JSON file (sample profile if omitted)")
def rmr(profile_path):
    """Show the Harris-Benedict resting metabolic rate."""
    try:
        profile = _load_profile(profile_path)
    except (PlanInputError, OSError, json.JSONDecodeError) as e:
        console.print(f"[red]❌ Could not load profile: {e}[/red]")
        raise SystemExit(1)

    console.print(f"Resting metabolic rate: [bold]{resting_metabolic_rate(profile):.1f}[/bold] kcal/day")
    if profile.use_imperial:
        console.print(f"Body weight: {profile.weight_kg * LB_PER_KG:.1f} lb")
    else:
        console.print(f"Body weight: {profile.weight_kg:.1f} kg")


def main():
    cli()


if __name__ == "__main__":
    main()
