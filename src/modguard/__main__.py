"""Bot runtime launcher.

Provides a console entry point for `python -m modguard` with optional flags:
  --dry-run              Validate config & policy book, print summary, exit.
  --print-policy ID      Print the effective policy for one community, exit.
  --stats ID             Print the last 24h of logged actions for one community, exit.
  --history ACTOR_ID     Print the most recent logged actions against one member, exit.

Default with no flags: start the Discord bot.
"""
from __future__ import annotations

import argparse
import sys
import time

from .config.settings import load_config
from .domain.policy.loader import load_policy_book
from .domain.policy.formatter import format_book, format_policy
from .infrastructure.logging.structured_logging import init_logging
from .infrastructure.persistence.db_core import ModerationDB

STATS_WINDOW_MS = 24 * 60 * 60 * 1000
HISTORY_LIMIT = 20


def _validate_policy(path: str, verbose: bool = False):
    try:
        book = load_policy_book(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"Policy load failed: {e}", file=sys.stderr)
        return None
    if verbose:
        print("Policy book loaded:\n" + format_book(book))
    return book


def _print_stats(path: str, community_id: int) -> int:
    db = ModerationDB(path)
    try:
        since = int(time.time() * 1000) - STATS_WINDOW_MS
        ok = db.actions.aggregate_counts(community_id, since_ms=since)
        failed = db.actions.aggregate_counts(community_id, since_ms=since, status="failure")
    finally:
        db.close()
    if not ok and not failed:
        print(f"No actions logged for {community_id} in the last 24h.")
        return 0
    for kind in sorted(set(ok) | set(failed)):
        print(f"{kind:<18} ok={ok.get(kind, 0)} failed={failed.get(kind, 0)}")
    return 0


def _print_history(path: str, actor_id: int) -> int:
    db = ModerationDB(path)
    try:
        rows = db.actions.fetch_actions(actor_id, limit=HISTORY_LIMIT)
    finally:
        db.close()
    if not rows:
        print(f"No actions logged against {actor_id}.")
        return 0
    for row in rows:
        when = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(row["ts_ms"] // 1000))
        line = f"{when}  {row['kind']:<18} {row['status']:<8} {row['reason']}"
        if row["failure_reason"]:
            line += f" ({row['failure_reason']})"
        print(line)
    return 0


def main(argv: list[str] | None = None) -> int:  # pragma: no cover (manual entry)
    parser = argparse.ArgumentParser(description="Run the modguard auto-moderation bot")
    parser.add_argument("--dry-run", action="store_true", help="Validate config & policy then exit")
    parser.add_argument("--print-policy", type=int, metavar="COMMUNITY_ID", help="Print one community's effective policy and exit")
    parser.add_argument("--stats", type=int, metavar="COMMUNITY_ID", help="Print action counts for one community (last 24h) and exit")
    parser.add_argument("--history", type=int, metavar="ACTOR_ID", help="Print recent actions logged against one member and exit")
    args = parser.parse_args(argv)

    config = load_config()
    init_logging(config.log_level, json_output=config.log_json)
    print("modguard: policy=%s db=%s workers=%d" % (config.policy_file, config.sqlite_path, config.action_workers))

    if args.stats is not None:
        return _print_stats(config.sqlite_path, args.stats)

    if args.history is not None:
        return _print_history(config.sqlite_path, args.history)

    if args.dry_run or args.print_policy is not None:
        book = _validate_policy(config.policy_file, verbose=args.dry_run)
        if book is None:
            return 1
        if args.print_policy is not None:
            print(format_policy(book.policy_for(args.print_policy), detail=True))
        else:
            print("\nDry run validation successful.")
        return 0

    try:
        token = config.require_token()
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    if _validate_policy(config.policy_file) is None:
        return 1

    from .discord.client import create_bot

    bot = create_bot(config)
    bot.run(token, log_handler=None)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
