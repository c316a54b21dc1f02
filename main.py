"""CLI entry point for the job matching engine."""

import argparse
import json
import logging
import sys

from job_matching.core.config import Settings
from job_matching.core.db import init_db
from job_matching.core.schemas import JobMatch, MatchStatus
from job_matching.core.seed import SeedData
from job_matching.pipeline.engine import MatchingEngine
from job_matching.pipeline.lifecycle import VALID_STATUSES


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job matching engine - score listings against user preferences and track matches",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- import ---
    import_parser = subparsers.add_parser("import", help="Load listings and preferences from YAML")
    import_parser.add_argument("--seed", required=True, help="Path to seed YAML file")
    _add_common(import_parser)

    # --- refresh ---
    refresh_parser = subparsers.add_parser("refresh", help="Score unmatched jobs for a user")
    refresh_parser.add_argument("--user", required=True, help="User id")
    _add_common(refresh_parser)

    # --- matches ---
    matches_parser = subparsers.add_parser("matches", help="List a user's matches")
    matches_parser.add_argument("--user", required=True, help="User id")
    matches_parser.add_argument("--status", choices=VALID_STATUSES, help="Only this status")
    matches_parser.add_argument("--min-score", type=float, help="Minimum compatibility score")
    matches_parser.add_argument("--limit", type=_positive_int, help="Maximum number of matches")
    matches_parser.add_argument("--offset", type=int, default=0, help="Matches to skip")
    matches_parser.add_argument("--json", action="store_true", help="Print JSON")
    _add_common(matches_parser)

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Show a single match")
    show_parser.add_argument("--match", required=True, help="Match id")
    show_parser.add_argument("--json", action="store_true", help="Print JSON")
    _add_common(show_parser)

    # --- status ---
    status_parser = subparsers.add_parser("status", help="Change a match's review status")
    status_parser.add_argument("--match", required=True, help="Match id")
    status_parser.add_argument("--status", required=True, choices=VALID_STATUSES)
    _add_common(status_parser)

    # --- stats ---
    stats_parser = subparsers.add_parser("stats", help="Show match statistics for a user")
    stats_parser.add_argument("--user", required=True, help="User id")
    stats_parser.add_argument("--limit", type=_positive_int, help="Number of top skill gaps")
    stats_parser.add_argument("--json", action="store_true", help="Print JSON")
    _add_common(stats_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _format_match(m: JobMatch) -> str:
    return (
        f"  {m.id}  job={m.job_id}  score={m.compatibility_score:.0f}  status={m.status.value}\n"
        f"    skills={m.skills_score:.0f} keywords={m.keywords_score:.0f} "
        f"experience={m.experience_score:.0f} education={m.education_score:.0f}\n"
        f"    missing skills: {', '.join(m.missing_skills) or '-'}"
    )


def cmd_import(engine: MatchingEngine, args: argparse.Namespace) -> int:
    seed = SeedData.from_yaml(args.seed)
    n_listings, n_prefs = engine.import_seed(seed)
    print(f"Imported {n_listings} listings and {n_prefs} preference profiles.")
    return 0


def cmd_refresh(engine: MatchingEngine, args: argparse.Namespace) -> int:
    result = engine.refresher.refresh(args.user)
    print(f"Refresh complete: {result.new_matches} new, {result.total_matches} total matches.")
    return 0


def cmd_matches(engine: MatchingEngine, args: argparse.Namespace) -> int:
    status = MatchStatus(args.status) if args.status else None
    matches = engine.matches.find_for_user(
        args.user,
        status=status,
        min_score=args.min_score,
        limit=args.limit,
        offset=args.offset,
    )
    if args.json:
        print(json.dumps([m.model_dump(mode="json") for m in matches], indent=2))
        return 0
    print(f"{len(matches)} matches for '{args.user}'")
    for m in matches:
        print(_format_match(m))
    return 0


def cmd_show(engine: MatchingEngine, args: argparse.Namespace) -> int:
    match = engine.matches.find_by_id(args.match)
    if match is None:
        print(f"Match not found: {args.match}", file=sys.stderr)
        return 1
    if args.json:
        print(match.model_dump_json(indent=2))
    else:
        print(_format_match(match))
    return 0


def cmd_status(engine: MatchingEngine, args: argparse.Namespace) -> int:
    updated = engine.lifecycle.transition(args.match, args.status)
    if updated is None:
        print(f"Match not found: {args.match}", file=sys.stderr)
        return 1
    print(f"Match {updated.id} is now '{updated.status.value}'.")
    return 0


def cmd_stats(engine: MatchingEngine, args: argparse.Namespace) -> int:
    stats = engine.stats.stats(args.user, limit=args.limit)
    if args.json:
        print(stats.model_dump_json(indent=2))
        return 0
    print(f"Matches for '{args.user}': {stats.total} total")
    print(f"  New: {stats.new}  Saved: {stats.saved}  Applied: {stats.applied}")
    print(f"  Average score: {stats.average_score:.2f}")
    print(f"  High matches: {stats.high_match_count}")
    gaps = ", ".join(f"{g.skill} ({g.count})" for g in stats.top_skill_gaps)
    print(f"  Top skill gaps: {gaps or '-'}")
    return 0


_COMMANDS = {
    "import": cmd_import,
    "refresh": cmd_refresh,
    "matches": cmd_matches,
    "show": cmd_show,
    "status": cmd_status,
    "stats": cmd_stats,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    conn = init_db(settings.database.path, busy_timeout_s=settings.database.busy_timeout_s)
    try:
        engine = MatchingEngine(settings, conn)
        code = _COMMANDS[args.command](engine, args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    finally:
        conn.close()

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
