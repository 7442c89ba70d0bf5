"""Pulse command line entry point.

Usage:
    python -m pulse [OPTIONS] COMMAND ...

Options:
    --config PATH    Path to YAML config file
    --profile NAME   Profile name (dev, prod, test)
    --user ID        User to operate on
    --verbose        Enable debug logging
"""

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime
from pathlib import Path

from dotenv import load_dotenv

from . import __version__
from .analytics.errors import PulseError
from .analytics.goals import GoalType, ProductivityGoal
from .analytics.models import ActionableInsight
from .analytics.periods import PeriodType
from .analytics.sessions import SessionStatus, SessionType, TimeSession
from .config import PulseConfig
from .config.loader import load_config
from .digest.trends import TrendMetric
from .service import AnalyticsService
from .storage.factory import open_repositories

logger = logging.getLogger("pulse")


def setup_logging(level: str, log_format: str | None = None, datefmt: str | None = None) -> None:
    """Configure logging based on config."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=log_format or "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt=datefmt or "%Y-%m-%d %H:%M:%S",
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="pulse",
        description="Pulse - productivity analytics and insights",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pulse --user alice snapshot                 # Compute today's snapshot
  pulse --user alice summary --week-of 2024-01-17
  pulse --user alice goal create daily_tasks 5 --period daily
  pulse --user alice insights generate

Environment:
  PULSE_PROFILE          Set profile (dev, prod, test)
  PULSE_STORAGE_BACKEND  sqlite or mongodb
  PULSE_SQLITE_PATH      SQLite database file
  PULSE_MONGO_URI        MongoDB connection URI
  PULSE_USER_ID          Default user
""",
    )
    parser.add_argument("--config", type=Path, help="Path to YAML config file", metavar="PATH")
    parser.add_argument(
        "--profile", choices=["dev", "prod", "test"], help="Configuration profile to use"
    )
    parser.add_argument("--user", help="User ID (defaults to configured user)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"Pulse v{__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    snapshot = commands.add_parser("snapshot", help="Compute a daily snapshot")
    snapshot.add_argument("--date", type=_parse_date, help="Day to compute (default today)")
    snapshot.set_defaults(handler=cmd_snapshot)

    summary = commands.add_parser("summary", help="Compute a weekly summary")
    summary.add_argument("--week-of", type=_parse_date, help="Any day in the week")
    summary.set_defaults(handler=cmd_summary)

    dashboard = commands.add_parser("dashboard", help="Show the dashboard")
    dashboard.set_defaults(handler=cmd_dashboard)

    trends = commands.add_parser("trends", help="Show productivity trends")
    trends.add_argument("--days", type=int, help="Window length in days")
    trends.set_defaults(handler=cmd_trends)

    goal = commands.add_parser("goal", help="Manage goals")
    goal_commands = goal.add_subparsers(dest="goal_command", required=True)
    goal_create = goal_commands.add_parser("create", help="Create a goal")
    goal_create.add_argument("goal_type", choices=[t.value for t in GoalType])
    goal_create.add_argument("target", type=int)
    goal_create.add_argument(
        "--period", choices=[p.value for p in PeriodType], default=PeriodType.DAILY.value
    )
    goal_create.set_defaults(handler=cmd_goal_create)
    goal_progress = goal_commands.add_parser("progress", help="Update goal progress")
    goal_progress.add_argument("goal_id")
    goal_progress.add_argument("value", type=int)
    goal_progress.add_argument(
        "--add", action="store_true", help="Add to progress instead of setting it"
    )
    goal_progress.set_defaults(handler=cmd_goal_progress)
    goal_commands.add_parser("list", help="List active goals").set_defaults(handler=cmd_goal_list)
    goal_achieved = goal_commands.add_parser("achieved", help="List achieved goals")
    goal_achieved.add_argument("--limit", type=int)
    goal_achieved.set_defaults(handler=cmd_goal_achieved)

    insights = commands.add_parser("insights", help="Manage insights")
    insight_commands = insights.add_subparsers(dest="insights_command", required=True)
    insight_commands.add_parser("generate", help="Generate insights").set_defaults(
        handler=cmd_insights_generate
    )
    insight_commands.add_parser("list", help="List active insights").set_defaults(
        handler=cmd_insights_list
    )
    recent = insight_commands.add_parser("recent", help="List the most recent insights")
    recent.add_argument("--limit", type=int)
    recent.set_defaults(handler=cmd_insights_recent)
    dismiss = insight_commands.add_parser("dismiss", help="Dismiss an insight")
    dismiss.add_argument("insight_id")
    dismiss.set_defaults(handler=cmd_insights_dismiss)
    done = insight_commands.add_parser("done", help="Mark an insight as acted on")
    done.add_argument("insight_id")
    done.set_defaults(handler=cmd_insights_done)
    insight_commands.add_parser("cleanup", help="Delete expired insights").set_defaults(
        handler=cmd_insights_cleanup
    )

    session = commands.add_parser("session", help="Track time sessions")
    session_commands = session.add_subparsers(dest="session_command", required=True)
    session_start = session_commands.add_parser("start", help="Start a session")
    session_start.add_argument("title")
    session_start.add_argument(
        "--type", choices=[t.value for t in SessionType], default=SessionType.FOCUS.value
    )
    session_start.add_argument("--category", default="")
    session_start.add_argument("--reference", help="ID of the related task or habit")
    session_start.set_defaults(handler=cmd_session_start)
    session_end = session_commands.add_parser("end", help="End the active session")
    session_end.add_argument(
        "--status",
        choices=[s.value for s in SessionStatus if s != SessionStatus.ACTIVE],
        default=SessionStatus.COMPLETED.value,
    )
    session_end.add_argument("--notes")
    session_end.set_defaults(handler=cmd_session_end)
    session_commands.add_parser("status", help="Show the active session").set_defaults(
        handler=cmd_session_status
    )

    return parser


# Formatting


def format_goal(goal: ProductivityGoal) -> str:
    status = "achieved" if goal.achieved else f"{goal.progress_percentage:.0f}%"
    return (
        f"{goal.id}  {goal.description}: {goal.current_value}/{goal.target_value} "
        f"({status}, {goal.period_type.value})"
    )


def format_insight(insight: ActionableInsight) -> str:
    return (
        f"[{insight.priority.value}] {insight.title}\n"
        f"    {insight.description}\n"
        f"    -> {insight.suggestion}\n"
        f"    id: {insight.id}"
    )


def format_session(session: TimeSession, now: datetime) -> str:
    minutes = int(session.duration(now).total_seconds() // 60)
    return f"{session.title} ({session.session_type.value}), {minutes} min, {session.status.value}"


def format_trend(name: str, metric: TrendMetric | None) -> str:
    if metric is None:
        return f"  {name}: no data"
    return (
        f"  {name}: {metric.direction} {metric.change:+.1f}% "
        f"({metric.previous_avg:.1f} -> {metric.current_avg:.1f})"
    )


# Commands

Handler = Callable[[AnalyticsService, argparse.Namespace, str, PulseConfig], int]


def cmd_snapshot(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    day = args.date or datetime.now(UTC).date()
    snapshot = service.compute_snapshot(user, day)
    print(f"Snapshot for {snapshot.snapshot_date.isoformat()}: score {snapshot.productivity_score}")
    print(f"  Tasks:  {snapshot.tasks_completed}/{snapshot.tasks_created} completed")
    print(f"  Blocks: {snapshot.blocks_completed}/{snapshot.blocks_scheduled} completed")
    print(f"  Habits: {snapshot.habits_completed}/{snapshot.habits_due} completed")
    print(f"  Focus:  {snapshot.total_focus_minutes} min in {snapshot.focus_sessions} sessions")
    return 0


def cmd_summary(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    if args.week_of:
        result = service.compute_weekly_summary(user, args.week_of)
    else:
        result = service.compute_current_week_summary(user)
    summary = result.summary
    complete = "" if result.is_complete else " (in progress)"
    print(f"Week of {summary.week_start.isoformat()}{complete}: {result.days_with_data} days")
    print(f"  Avg score: {summary.avg_daily_productivity_score:.1f} ({result.productivity_trend})")
    print(f"  Tasks: {summary.total_tasks_completed}  Habits: {summary.total_habits_completed}")
    print(f"  Focus: {summary.total_focus_minutes} min")
    if summary.most_productive_day:
        print(f"  Best day: {summary.most_productive_day.isoformat()}")
    return 0


def cmd_dashboard(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    now = datetime.now(UTC)
    dashboard = service.get_dashboard(user, now=now)
    today = dashboard.today.productivity_score if dashboard.today else "-"
    print(f"Today's score: {today}")
    print(f"Week average: {dashboard.avg_score}  Focus this week: {dashboard.focus_this_week} min")
    if dashboard.active_session:
        print(f"Active session: {format_session(dashboard.active_session, now)}")
    for goal in dashboard.active_goals:
        print(f"Goal: {format_goal(goal)}")
    return 0


def cmd_trends(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    days = args.days if args.days is not None else config.analytics.trend_days
    trends = service.get_trends(user, days)
    print(f"Trends over {trends.days} days:")
    print(format_trend("Productivity", trends.productivity_trend))
    print(format_trend("Tasks", trends.task_completion_trend))
    print(format_trend("Habits", trends.habit_completion_trend))
    print(format_trend("Focus", trends.focus_time_trend))
    best = trends.best_day
    if best:
        print(f"  Best day: {best.date.isoformat()} ({best.productivity_score})")
    if trends.best_day_of_week:
        print(f"  Best weekday: {trends.best_day_of_week}")
    if trends.best_hour_of_day is not None:
        print(f"  Peak hour: {trends.best_hour_of_day}:00")
    return 0


def cmd_goal_create(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    goal = service.create_goal(user, GoalType(args.goal_type), args.target, PeriodType(args.period))
    print(f"Created goal {format_goal(goal)}")
    return 0


def cmd_goal_progress(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    if args.add:
        goal = service.increment_goal(user, args.goal_id, args.value)
    else:
        goal = service.update_goal_progress(user, args.goal_id, args.value)
    print(format_goal(goal))
    return 0


def cmd_goal_list(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    goals = service.get_active_goals(user)
    if not goals:
        print("No active goals")
    for goal in goals:
        print(format_goal(goal))
    return 0


def cmd_goal_achieved(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    limit = args.limit or config.analytics.achieved_goals_limit
    for goal in service.get_achieved_goals(user, limit):
        print(format_goal(goal))
    return 0


def cmd_insights_generate(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    result = service.generate_insights(user)
    print(
        f"Generated {result.insights_generated} insights "
        f"({result.skipped_duplicate} duplicates skipped, {len(result.errors)} errors)"
    )
    for insight in result.insights:
        print(format_insight(insight))
    return 0


def cmd_insights_list(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    active = service.get_active_insights(user)
    print(f"{active.total_count} active insights, {active.high_priority} high priority")
    for insight in active.insights:
        print(format_insight(insight))
    return 0


def cmd_insights_recent(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    limit = args.limit or config.analytics.recent_insights_limit
    for insight in service.get_recent_insights(user, limit):
        print(format_insight(insight))
    return 0


def cmd_insights_dismiss(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    service.dismiss_insight(user, args.insight_id)
    print(f"Dismissed {args.insight_id}")
    return 0


def cmd_insights_done(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    service.mark_insight_acted_on(user, args.insight_id)
    print(f"Marked {args.insight_id} as acted on")
    return 0


def cmd_insights_cleanup(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    print(f"Removed {service.cleanup_expired_insights()} expired insights")
    return 0


def cmd_session_start(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    session = service.start_session(
        user,
        SessionType(args.type),
        args.title,
        reference_id=args.reference,
        category=args.category,
    )
    print(f"Started {session.session_type.value} session '{session.title}' ({session.id})")
    return 0


def cmd_session_end(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    session = service.end_session(user, SessionStatus(args.status), notes=args.notes)
    print(f"Ended '{session.title}' after {session.duration_minutes} min ({session.status.value})")
    return 0


def cmd_session_status(
    service: AnalyticsService, args: argparse.Namespace, user: str, config: PulseConfig
) -> int:
    session = service.get_active_session(user)
    if session is None:
        print("No active session")
    else:
        print(format_session(session, datetime.now(UTC)))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for Pulse.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = load_config(path=args.config, profile=args.profile)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        "DEBUG" if args.verbose else config.logging.level,
        config.logging.format,
        config.logging.datefmt,
    )

    user = args.user or config.analytics.default_user
    if not user:
        print("Error: no user given; pass --user or set PULSE_USER_ID", file=sys.stderr)
        return 1

    handler: Handler = args.handler
    try:
        with open_repositories(config.storage) as repos:
            service = AnalyticsService(
                repos.snapshots,
                repos.summaries,
                repos.goals,
                repos.insights,
                repos.sessions,
                data_source=repos.data_source,
            )
            return handler(service, args, user, config)
    except PulseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Command '%s' failed", args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
