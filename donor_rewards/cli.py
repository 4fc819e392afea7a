"""
Rewards CLI - inspect scoring from JSON exports of the donation store.

Usage:
    # Itemized points for one donation (or a list of donations)
    donor-rewards breakdown donation.json

    # Same, as a table, also writing the per-factor audit trail
    donor-rewards --format table breakdown donations.json --audit audit.json

    # Profile-page summary for one donor ({"profile": {...}, "donations": [...]})
    donor-rewards summary donor.json --now 2026-03-01T00:00:00+00:00

    # Leaderboard over a list of donor documents
    donor-rewards leaderboard donors.json --period monthly --blood-type O-

Results go to stdout (JSON by default); logs go to stderr.
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from donor_rewards.config import get_log_level, load_settings_env
from donor_rewards.constants import LEADERBOARD_MAX_ENTRIES
from donor_rewards.errors import InvalidArgumentError, RulesConfigError
from donor_rewards.schemas.donation import DonorHistory
from donor_rewards.schemas.enums import LeaderboardPeriod
from donor_rewards.schemas.results import FACTOR_KEYS, DonorSummary, LeaderboardEntry, PointBreakdown
from donor_rewards.scorers.leaderboard import find_donor_rank, rank_leaderboard
from donor_rewards.scorers.points import DonationPointCalculator
from donor_rewards.scorers.summary import summarize_donor
from donor_rewards.utils.logger import RewardsLogger
from donor_rewards.utils.scoring_audit import ScoringAuditLog

console = Console()


def _read_json(path: str):
    file_path = Path(path)
    if not file_path.exists():
        raise InvalidArgumentError(f"File not found: {path}")
    with open(file_path) as f:
        return json.load(f)


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidArgumentError(f"--now must be an ISO-8601 timestamp, got {value!r}") from e


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


# =============================================================================
# Table output
# =============================================================================


def display_breakdowns(breakdowns: list[PointBreakdown]) -> None:
    """One column per donation, one row per factor."""
    table = Table(title="Donation Points")
    table.add_column("Factor", style="cyan")
    for i in range(len(breakdowns)):
        table.add_column(f"#{i + 1}", justify="right")

    for attr, key in FACTOR_KEYS.items():
        table.add_row(key, *[str(getattr(b, attr)) for b in breakdowns])
    table.add_row("[bold]total[/bold]", *[f"[bold]{b.total}[/bold]" for b in breakdowns])
    console.print(table)


def display_summary(summary: DonorSummary) -> None:
    badge = summary.badge
    next_line = (
        f"Next: {badge.next_badge.title} ({badge.progress_percent:.0f}%, {badge.donations_needed} to go)"
        if badge.next_badge
        else "Next: - (highest tier)"
    )
    text = (
        f"Donations: {summary.completed_donations}\n"
        f"Points: {summary.total_points}\n"
        f"Badge: {badge.current.title}\n"
        f"{next_line}\n"
        f"Streak: {summary.streak}\n"
        f"Lives saved: {summary.lives_saved}\n"
        f"Achievements: {len(summary.achievements)} ({summary.achievement_completion_percent}%), "
        f"+{summary.achievement_points} pts\n"
        f"Rules: v{summary.rules_version}"
    )
    console.print(Panel(text, title=f"Donor {summary.donor_id or '?'}", border_style="blue"))

    if summary.achievements:
        table = Table(title="Unlocked Achievements")
        table.add_column("Achievement", style="cyan")
        table.add_column("Family")
        table.add_column("Rarity")
        table.add_column("Points", justify="right")
        table.add_column("Unlocked")
        for a in summary.achievements:
            table.add_row(a.title, a.family.value, a.rarity.label, str(a.points), a.unlocked_at.isoformat())
        console.print(table)


def display_leaderboard(entries: list[LeaderboardEntry], period: str) -> None:
    if not entries:
        console.print("[yellow]No ranked donors[/yellow]")
        return

    table = Table(title=f"Leaderboard ({period})")
    table.add_column("Rank", justify="right")
    table.add_column("Donor", style="cyan")
    table.add_column("Blood", justify="center")
    table.add_column("Points", justify="right")
    table.add_column("Donations", justify="right")
    for e in entries:
        name = e.display_name
        table.add_row(
            str(e.rank),
            name[:30] + "..." if len(name) > 30 else name,
            e.blood_type,
            str(e.total_points),
            str(e.donation_count),
        )
    console.print(table)


# =============================================================================
# Commands
# =============================================================================


def cmd_breakdown(args: argparse.Namespace, logger: RewardsLogger) -> int:
    """Points for each donation in the file."""
    data = _read_json(args.file)
    donations = data if isinstance(data, list) else [data]

    audit_log = ScoringAuditLog() if args.audit else None
    calculator = DonationPointCalculator(audit_log=audit_log)

    with logger.time_operation("breakdown", donations=len(donations)):
        breakdowns = [calculator.calculate(d, donor_id=args.donor_id) for d in donations]

    if audit_log is not None:
        audit_log.export_to_json(args.audit)
        for entry in audit_log.get_warnings():
            logger.warning(entry.warning_message, factor=entry.factor)

    if args.format == "table":
        display_breakdowns(breakdowns)
        return 0

    results = [b.as_dict() for b in breakdowns]
    _emit(results if isinstance(data, list) else results[0])
    return 0


def cmd_summary(args: argparse.Namespace, logger: RewardsLogger) -> int:
    """Profile-page summary for one donor."""
    history = DonorHistory.model_validate(_read_json(args.file))
    now = _parse_now(args.now)

    with logger.time_operation("summary", donor_id=history.profile.donor_id):
        summary = summarize_donor(history.profile, history.donations, now=now)

    if args.format == "table":
        display_summary(summary)
    else:
        _emit(summary.model_dump(mode="json"))
    return 0


def cmd_leaderboard(args: argparse.Namespace, logger: RewardsLogger) -> int:
    """Ranked leaderboard, or one donor's rank with --donor-id."""
    donors = _read_json(args.file)
    now = _parse_now(args.now)

    with logger.time_operation("leaderboard", period=args.period):
        if args.donor_id:
            entry = find_donor_rank(donors, args.donor_id, period=args.period, blood_type=args.blood_type, now=now)
            entries = [entry] if entry else []
            if entry is None:
                logger.info(f"Donor {args.donor_id} is not ranked for {args.period}")
        else:
            entries = rank_leaderboard(
                donors, period=args.period, blood_type=args.blood_type, now=now, limit=args.limit
            )

    if args.format == "table":
        display_leaderboard(entries, args.period)
    elif args.donor_id:
        _emit(entries[0].model_dump(mode="json") if entries else None)
    else:
        _emit([e.model_dump(mode="json") for e in entries])
    return 0


COMMANDS = {
    "breakdown": cmd_breakdown,
    "summary": cmd_summary,
    "leaderboard": cmd_leaderboard,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    load_settings_env()

    parser = argparse.ArgumentParser(
        description="Donor rewards scoring inspector",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: from env)")
    parser.add_argument("--format", choices=["json", "table"], default="json", help="Output format (default: json)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # breakdown command
    breakdown_parser = subparsers.add_parser("breakdown", help="Itemized points for donations in a JSON file")
    breakdown_parser.add_argument("file", help="JSON file with one donation or a list of donations")
    breakdown_parser.add_argument("--donor-id", help="Donor ID to record in the audit trail")
    breakdown_parser.add_argument("--audit", help="Write the per-factor audit trail to this JSON file")

    # summary command
    summary_parser = subparsers.add_parser("summary", help="Points, badge, streak and achievements for one donor")
    summary_parser.add_argument("file", help="JSON file with a donor document")
    summary_parser.add_argument("--now", help="Evaluation time, ISO-8601 (default: current time)")

    # leaderboard command
    leaderboard_parser = subparsers.add_parser("leaderboard", help="Rank donors from a JSON list")
    leaderboard_parser.add_argument("file", help="JSON file with a list of donor documents")
    leaderboard_parser.add_argument(
        "--period",
        default=LeaderboardPeriod.ALL_TIME.value,
        choices=[p.value for p in LeaderboardPeriod],
        help="Trailing window (default: allTime)",
    )
    leaderboard_parser.add_argument("--blood-type", help="Only rank donors of this blood type")
    leaderboard_parser.add_argument("--limit", type=int, default=LEADERBOARD_MAX_ENTRIES, help="Maximum entries")
    leaderboard_parser.add_argument("--donor-id", help="Show only this donor's rank (uncapped)")
    leaderboard_parser.add_argument("--now", help="Evaluation time, ISO-8601 (default: current time)")

    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    logger = RewardsLogger(log_level=args.log_level or get_log_level())
    try:
        code = command(args, logger)
        tracked = logger.get_error_summary()
        if tracked["total_warnings"]:
            logger.info(f"{args.command} finished with {tracked['total_warnings']} warning(s)")
        return code
    except (InvalidArgumentError, RulesConfigError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 2
    except ValidationError as e:
        logger.error(f"{args.command} failed: malformed record ({e.error_count()} errors)", exception=e)
        return 2
    except json.JSONDecodeError as e:
        logger.error(f"{args.command} failed: {args.file} is not valid JSON", exception=e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
