"""dayplanner CLI - energy-aware daily planning."""

import json
import logging
import sys
from datetime import date, datetime

import click

from .config import load_config
from .errors import PlanningError
from .planner import DailyPlannerService


def _setup_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


def _local_time(iso: str) -> str:
    """HH:MM in local time for a UTC ...Z timestamp."""
    return datetime.fromisoformat(iso.replace("Z", "+00:00")).astimezone().strftime("%H:%M")


@click.group()
@click.version_option()
def main():
    """dayplanner - Energy-aware daily planning CLI."""
    pass


@main.command()
@click.option("--date", "target_date", default=None, help="Day to plan (YYYY-MM-DD, default: today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def plan(target_date: str | None, as_json: bool, debug: bool):
    """Generate a daily plan."""
    _setup_logging(debug)
    config = load_config()
    service = DailyPlannerService.from_config(config)

    try:
        result = service.generate_plan(config.user_id, target_date or date.today())
    except PlanningError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"### Plan for {result['date']}")
    if not result["scheduleBlocks"]:
        click.echo("Nothing scheduled.")
    for block in result["scheduleBlocks"]:
        task = block["task"]
        span = f"{_local_time(block['startTime'])}-{_local_time(block['endTime'])}"
        click.echo(f"  {span}  {task['title']}")
        click.echo(f"               {block['reasoning']}")

    if result["unscheduledTasks"]:
        click.echo("\nUnscheduled:")
        for task in result["unscheduledTasks"]:
            click.echo(f"  • {task['title']}")

    click.echo(
        f"\n{result['totalEstimatedMinutes']} min planned | "
        f"energy {result['energyOptimization']:.0%} | "
        f"focus {result['focusOptimization']:.0%} | "
        f"deadline risk {result['deadlineRisk']:.0%}"
    )


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def deps(as_json: bool):
    """Show which tasks are ready and what blocks the rest."""
    config = load_config()
    service = DailyPlannerService.from_config(config)
    # Finished tasks are passed in so their dependents resolve as ready
    result = service.resolve_dependencies(service.task_repo.find_all(config.user_id))

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    open_tasks = [t for t in result["readyTasks"] if t["status"] != "DONE"]
    click.echo(f"Ready ({len(open_tasks)}):")
    for task in open_tasks:
        click.echo(f"  ✓ {task['title']}")

    if result["blockedTasks"]:
        click.echo(f"\nBlocked ({result['blockedCount']}):")
        for blocked in result["blockedTasks"]:
            click.echo(f"  ✗ {blocked['task']['title']}")
            for reason in blocked["reasons"]:
                click.echo(f"      {reason['message']}")


@main.command()
@click.option("--date", "target_date", default=None, help="Day to show (YYYY-MM-DD, default: today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def calendar(target_date: str | None, as_json: bool, debug: bool):
    """Show calendar commitments from all connected calendars."""
    _setup_logging(debug)
    config = load_config()
    service = DailyPlannerService.from_config(config)

    try:
        result = service.get_calendar_events(config.user_id, target_date or date.today())
    except PlanningError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    if not result["events"]:
        click.echo("No events.")
        return

    click.echo(f"### {result['date']}")
    for event in result["events"]:
        when = "all day" if event["isAllDay"] else _local_time(event["startTime"])
        click.echo(f"  {when:8} {event['title']} [{event['source']}, {event['energyLevel'].lower()} energy]")


@main.command("cal-auth")
def cal_auth():
    """Authenticate with Google Calendar."""
    config = load_config()

    if not config.google_config_folder:
        click.echo("GOOGLE_CONFIG_FOLDER not set in dayplanner.conf", err=True)
        sys.exit(1)

    if not config.google_client_secret_file:
        click.echo("GOOGLE_CLIENT_SECRET_FILE not set in dayplanner.conf", err=True)
        sys.exit(1)

    from .adapters.google_calendar import GoogleCalendarProvider

    provider = GoogleCalendarProvider(
        config_folder=config.google_config_folder,
        client_secret_file=config.google_client_secret_file,
    )
    if provider.authenticate():
        click.echo(f"✓ Token saved to {provider._token_path}")
    else:
        click.echo("✗ Authentication failed", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
