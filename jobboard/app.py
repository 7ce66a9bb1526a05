import argparse
import json
from datetime import datetime
from pathlib import Path

from . import __version__
from .cleanup import cleanup_expired_jobs
from .decay import decay_styles
from .duplicates import dedupe_exact, detect_duplicates
from .env import Settings, load_env
from .errors import NotFoundError, RateLimitedError, StoreError, ValidationError
from .featured import get_featured_jobs, pin_jobs, refresh_featured
from .importer import import_jobs, load_job_payloads
from .logger import get_logger
from .merge import merge_jobs
from .models import parse_datetime
from .notify import notify_cleanup, notify_merge, notify_refresh
from .ratelimit import ActionRateLimiter
from .storage import JobStore

REFRESH_ACTION = "featured_refresh"


def _store(args: argparse.Namespace) -> JobStore:
    return JobStore(Path(args.db))


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def cmd_init_db(args: argparse.Namespace) -> None:
    store = _store(args)
    print(f"Database ready: {store.db_path}")


def cmd_import(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    try:
        payloads = load_job_payloads(input_path)
    except (ValueError, json.JSONDecodeError) as e:
        raise SystemExit(f"Could not read {input_path}: {e}")
    result = import_jobs(_store(args), payloads)
    for message in result.errors:
        print(f"[skip] {message}")
    print(f"Done. imported={result.imported} skipped={result.skipped}")


def cmd_duplicates(args: argparse.Namespace) -> None:
    groups = detect_duplicates(_store(args), limit=args.limit)
    if args.json:
        _print_json({"groups": [g.to_dict() for g in groups]})
        return
    if not groups:
        print("No duplicate groups found.")
        return
    print(f"Found {len(groups)} duplicate groups:\n")
    for group in groups:
        print(f"[{group.similarity}%] {group.key}")
        for job in group.jobs:
            print(f"  {job.id}  {job.title} @ {job.company}  ({job.source or 'unknown'})")
        print()


def cmd_dedup_exact(args: argparse.Namespace) -> None:
    try:
        result = dedupe_exact(_store(args), dry_run=args.dry_run)
    except StoreError as e:
        raise SystemExit(f"Exact dedup failed: {e}")
    _print_json(result.to_dict())


def cmd_merge(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    try:
        result = merge_jobs(_store(args), args.keep, args.delete)
    except ValidationError as e:
        raise SystemExit(f"Invalid merge request: {e}")
    except NotFoundError as e:
        raise SystemExit(str(e))
    except StoreError as e:
        raise SystemExit(f"Merge failed, nothing changed: {e}")
    _print_json(result.to_dict())
    if settings.discord_webhook_url:
        notify_merge(settings.discord_webhook_url, result)


def cmd_featured(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    jobs = get_featured_jobs(_store(args), limit=settings.featured_limit)
    if args.json:
        _print_json({"jobs": [job.to_dict() for job in jobs]})
        return
    if not jobs:
        print("No featured jobs. Run 'refresh-featured' first.")
        return
    for job in jobs:
        pin = "📌 " if job.featured_pinned else ""
        print(f"{pin}{job.featured_score:>6.0f}  {job.id}  {job.title} @ {job.company}")


def cmd_refresh_featured(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    if not args.force:
        limiter = ActionRateLimiter(Path(args.db), settings.refresh_rate_limit_seconds)
        try:
            limiter.acquire(REFRESH_ACTION)
        except RateLimitedError as e:
            raise SystemExit(str(e))
    try:
        result = refresh_featured(_store(args), limit=settings.featured_limit)
    except StoreError as e:
        raise SystemExit(f"Featured refresh failed: {e}")
    print("Featured refresh complete!")
    print(f"   Jobs scored: {result.updated}")
    print(f"   Pinned: {result.pinned}")
    print(f"   Top scored: {result.top_scored}")
    if settings.discord_webhook_url:
        notify_refresh(settings.discord_webhook_url, result)


def cmd_pin(args: argparse.Namespace) -> None:
    try:
        count = pin_jobs(_store(args), args.ids, not args.unpin)
    except ValidationError as e:
        raise SystemExit(f"Invalid pin request: {e}")
    state = "Unpinned" if args.unpin else "Pinned"
    print(f"{state} {count} jobs. Run 'refresh-featured' to rebuild the slate.")


def cmd_decay(args: argparse.Namespace) -> None:
    now = parse_datetime(args.now) if args.now else None
    if args.posted_date is not None:
        _print_json(decay_styles(args.posted_date, now=now).to_dict())
        return
    store = _store(args)
    for job in store.fetch_active_jobs():
        styles = decay_styles(job.posted_date, now=now)
        print(
            f"{job.id}  days={styles.days_old:<4} opacity={styles.opacity:.2f} "
            f"grayscale={styles.grayscale:.2f}  {job.title}"
        )


def cmd_cleanup_expired(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    max_age = args.max_age_days if args.max_age_days is not None else settings.max_job_age_days
    try:
        result = cleanup_expired_jobs(_store(args), max_age_days=max_age)
    except StoreError as e:
        raise SystemExit(f"Cleanup failed: {e}")
    _print_json({**result.to_dict(), "maxAgeDays": max_age, "cleanedAt": datetime.now().isoformat()})
    if settings.discord_webhook_url:
        notify_cleanup(settings.discord_webhook_url, result)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobboard", description="Job board moderation tools")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", default=str(settings.db_path),
                        help=f"Path to SQLite database (default: {settings.db_path})")

    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init-db", help="Create the database and tables")
    init.set_defaults(func=cmd_init_db)

    imp = subparsers.add_parser("import", help="Import job records from a JSON export")
    imp.add_argument("--input", required=True, help="JSON file: list of jobs or {\"jobs\": [...]}")
    imp.set_defaults(func=cmd_import)

    dup = subparsers.add_parser("duplicates", help="Find likely duplicate postings")
    dup.add_argument("--limit", type=int, default=settings.duplicate_scan_limit,
                     help=f"Max active jobs to scan (default: {settings.duplicate_scan_limit})")
    dup.add_argument("--json", action="store_true", help="Print {\"groups\": [...]} as JSON")
    dup.set_defaults(func=cmd_duplicates)

    dex = subparsers.add_parser("dedup-exact", help="Deactivate exact duplicates, keeping the best source")
    dex.add_argument("--dry-run", action="store_true", help="Report without writing")
    dex.set_defaults(func=cmd_dedup_exact)

    mrg = subparsers.add_parser("merge", help="Keep one job, merge tags from duplicates and delete them")
    mrg.add_argument("--keep", required=True, help="Id of the job to keep")
    mrg.add_argument("--delete", required=True, nargs="+", help="Ids of the duplicates to delete")
    mrg.set_defaults(func=cmd_merge)

    fea = subparsers.add_parser("featured", help="Show the current featured slate")
    fea.add_argument("--json", action="store_true", help="Print as JSON")
    fea.set_defaults(func=cmd_featured)

    ref = subparsers.add_parser("refresh-featured", help="Rescore active jobs and rebuild the featured slate")
    ref.add_argument("--force", action="store_true", help="Ignore the refresh rate limit")
    ref.set_defaults(func=cmd_refresh_featured)

    pin = subparsers.add_parser("pin", help="Pin jobs to the featured slate")
    pin.add_argument("ids", nargs="+", help="Job ids")
    pin.add_argument("--unpin", action="store_true", help="Remove the pin instead")
    pin.set_defaults(func=cmd_pin)

    dec = subparsers.add_parser("decay", help="Show decay styles for a date or all active jobs")
    dec.add_argument("--posted-date", help="ISO posting date to evaluate")
    dec.add_argument("--now", help="ISO reference time (default: now)")
    dec.set_defaults(func=cmd_decay)

    cln = subparsers.add_parser("cleanup-expired", help="Deactivate expired and old jobs")
    cln.add_argument("--max-age-days", type=int, help="Override MAX_JOB_AGE_DAYS")
    cln.set_defaults(func=cmd_cleanup_expired)

    return parser


def main(argv=None):
    # Load .env if present (JOBBOARD_DB_PATH, DISCORD_WEBHOOK_URL, etc.)
    load_env()
    settings = Settings.from_env()
    get_logger().configure(level=settings.log_level, log_dir=settings.log_dir)

    parser = build_parser(settings)
    args = parser.parse_args(argv)
    args.settings = settings

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        get_logger().log_metrics_summary()
        return

    parser.print_help()


if __name__ == "__main__":
    main()
