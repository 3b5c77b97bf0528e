"""Command-line interface for Tasbeeh."""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Optional

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .domain.identity import Identity
from .logging_config import setup_logging
from .services.session_controller import InvariantViolation


def _progress(app: AppContext) -> str:
    controller = app.controller
    name = controller.active_counter.name if controller.active_counter else "-"
    if controller.current_goal is not None:
        return f"{name}: {controller.current_count}/{controller.current_goal}"
    return f"{name}: {controller.current_count}"


def _counter_or_fail(app: AppContext, name: str):
    counter = app.controller.find_counter(name)
    if counter is None:
        raise click.ClickException(f"No counter named {name!r}")
    return counter


@click.group()
@click.option(
    "--user",
    "user_id",
    envvar="TASBEEH_USER",
    default=None,
    help="Act as this signed-in user (default: guest, local only).",
)
@click.option("--verbose", is_flag=True, default=False, help="Log to the console.")
@click.pass_context
def cli(ctx: click.Context, user_id: Optional[str], verbose: bool) -> None:
    """Digital tasbeeh counter."""

    config = BaseConfig()
    config.DEV_MODE = verbose
    setup_logging(config)

    identity = Identity.signed_in(user_id) if user_id else Identity.guest()
    app = create_app_context(config, identity)
    ctx.obj = app
    ctx.call_on_close(app.shutdown)


@cli.command("counters")
@click.pass_obj
def list_counters(app: AppContext) -> None:
    """List counters; the active one is starred."""

    active_id = app.controller.active_counter.id if app.controller.active_counter else None
    for counter in app.controller.counters:
        marker = "*" if counter.id == active_id else " "
        click.echo(f"{marker} {counter.name} [{counter.color}/{counter.icon}] {counter.id}")


@cli.command("use")
@click.argument("name")
@click.pass_obj
def use_counter(app: AppContext, name: str) -> None:
    """Make NAME the active counter."""

    app.select_counter(_counter_or_fail(app, name))
    click.echo(_progress(app))


@cli.command("count")
@click.option("-n", "times", type=click.IntRange(min=1), default=1, show_default=True)
@click.pass_obj
def count(app: AppContext, times: int) -> None:
    """Increment the active counter."""

    for _ in range(times):
        app.controller.increment()
    click.echo(_progress(app))


@cli.command("goal")
@click.argument("value", type=int, required=False)
@click.option("--clear", is_flag=True, default=False, help="Remove the goal.")
@click.pass_obj
def goal(app: AppContext, value: Optional[int], clear: bool) -> None:
    """Set or clear the goal for the current run."""

    if value is None and not clear:
        raise click.UsageError("Provide a goal value or --clear")
    try:
        app.controller.set_goal(None if clear else value)
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(_progress(app))


@cli.command("reset")
@click.pass_obj
def reset(app: AppContext) -> None:
    """Discard the current run."""

    app.controller.reset()
    click.echo(_progress(app))


@cli.command("complete")
@click.pass_obj
def complete(app: AppContext) -> None:
    """Record the current run as a session."""

    try:
        session = app.controller.complete_session()
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    if session is None:
        raise click.ClickException("No active counter")
    status = "completed" if session.completed else "recorded"
    click.echo(f"Session {status}: {session.count} ({session.id})")


@cli.command("log")
@click.argument("counter_name")
@click.argument("count", type=int)
@click.option("--goal", "goal_value", type=int, default=None)
@click.option("--completed", is_flag=True, default=False, help="Mark as completed (no goal).")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.pass_obj
def log_session(
    app: AppContext,
    counter_name: str,
    count: int,
    goal_value: Optional[int],
    completed: bool,
    day: Optional[datetime],
) -> None:
    """Log a session by hand."""

    counter = _counter_or_fail(app, counter_name)
    data = {
        "counter_id": counter.id,
        "count": count,
        "goal": goal_value,
        "completed": count >= goal_value if goal_value else completed,
    }
    if day is not None:
        data["date"] = datetime.combine(day.date(), time(12, 0), tzinfo=timezone.utc)
    try:
        session = app.controller.save_session_manually(data)
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Logged {session.count} for {counter.name} on {session.date.date().isoformat()}")


@cli.command("sessions")
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_obj
def list_sessions(app: AppContext, limit: int) -> None:
    """Show the most recent sessions."""

    names = {c.id: c.name for c in app.controller.counters}
    for session in app.controller.sessions[:limit]:
        goal_text = f"/{session.goal}" if session.goal is not None else ""
        flag = "done" if session.completed else "open"
        click.echo(
            f"{session.date.date().isoformat()} {names.get(session.counter_id, '?')} "
            f"{session.count}{goal_text} {flag} {session.id}"
        )


@cli.command("delete-session")
@click.argument("session_id")
@click.pass_obj
def delete_session(app: AppContext, session_id: str) -> None:
    """Delete a session and subtract it from its day."""

    if not app.controller.delete_session(session_id):
        raise click.ClickException(f"No session {session_id}")
    click.echo(f"Deleted {session_id}")


@cli.command("stats")
@click.option("--daily", is_flag=True, default=False, help="Also list every stored daily total.")
@click.pass_obj
def stats(app: AppContext, daily: bool) -> None:
    """Show totals and the last seven days."""

    summary = app.controller.summary()
    click.echo(f"Total: {summary.total}")
    click.echo(f"Today: {summary.today}")
    click.echo(f"Active days: {summary.active_days}")
    click.echo(f"Daily average: {summary.daily_average}")
    click.echo("Last 7 days:")
    for day, total in summary.recent_days:
        click.echo(f"  {day.strftime('%a')} {day.isoformat()} {total}")

    if daily:
        click.echo("Daily totals:")
        for stat in sorted(app.controller.stats, key=lambda s: s.date, reverse=True):
            click.echo(f"  {stat.date.isoformat()} {stat.total_count}")


@cli.command("dark-mode")
@click.argument("state", type=click.Choice(["on", "off"]), required=False)
@click.pass_obj
def dark_mode(app: AppContext, state: Optional[str]) -> None:
    """Show or set the dark-mode display preference."""

    if state is not None:
        app.local_store.save_dark_mode(state == "on")
    click.echo(f"Dark mode: {'on' if app.local_store.get_dark_mode() else 'off'}")


@cli.command("status")
@click.pass_obj
def status(app: AppContext) -> None:
    """Show the active counter and its progress."""

    click.echo(_progress(app))


@cli.command("add-counter")
@click.argument("name")
@click.option("--color", default="green", show_default=True)
@click.option("--icon", default="leaf", show_default=True)
@click.pass_obj
def add_counter(app: AppContext, name: str, color: str, icon: str) -> None:
    """Create a counter."""

    try:
        counter = app.controller.add_counter(name, color=color, icon=icon)
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Added {counter.name} ({counter.id})")


@cli.command("edit-counter")
@click.argument("name")
@click.option("--name", "new_name", default=None)
@click.option("--color", default=None)
@click.option("--icon", default=None)
@click.pass_obj
def edit_counter(
    app: AppContext,
    name: str,
    new_name: Optional[str],
    color: Optional[str],
    icon: Optional[str],
) -> None:
    """Rename or restyle a counter."""

    counter = _counter_or_fail(app, name)
    changes = {k: v for k, v in {"name": new_name, "color": color, "icon": icon}.items() if v}
    if not changes:
        raise click.UsageError("Nothing to change")
    try:
        updated = app.controller.update_counter(counter.id, changes)
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Updated {updated.name if updated else name}")


@cli.command("delete-counter")
@click.argument("name")
@click.pass_obj
def delete_counter(app: AppContext, name: str) -> None:
    """Delete a counter (the last one cannot be removed)."""

    counter = _counter_or_fail(app, name)
    try:
        app.controller.delete_counter(counter.id)
    except InvariantViolation as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {counter.name}")


def main() -> None:  # pragma: no cover - console entry point
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
