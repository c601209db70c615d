#!/usr/bin/env python3
# db/infra/manage.py
"""
manage.py

Command-line maintenance for the prompt builder store.

Commands:
  migrate            apply pending migrations
  status             show applied and pending migrations
  seed               run migrations, then seed the Default Project if empty
  backup             create a timestamped backup
  backups            list backups, newest first
  restore NAME       restore the store from a backup (current state is backed up first)
  integrity          run all integrity checks
  optimize           VACUUM, recreate missing indexes, ANALYZE
  cleanup            back up, then delete inactive user components and VACUUM
  size               show the store size and row counts per table

Examples:
  # Show migration state of the default DB
  python -m prompt_builder.db.infra.manage status

  # Back up a custom DB file into a custom folder
  python -m prompt_builder.db.infra.manage --db my.db --backup-dir ./bk backup
"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from prompt_builder.config import BACKUPS_PATH, DB_FILE_PATH, MAX_BACKUPS, configure_logging
from prompt_builder.db.infra import maintenance
from prompt_builder.db.infra.backup_utils import BackupManager
from prompt_builder.db.infra.cli_utils import format_rows, print_user_message
from prompt_builder.db.infra.core import Database
from prompt_builder.db.infra.migrations import MigrationRunner
from prompt_builder.db.seeding import initialize_database_if_needed
from prompt_builder.errors import PromptBuilderError

logger = logging.getLogger(__name__)

MANAGE_CMD = "python -m prompt_builder.db.infra.manage"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage the prompt builder database (migrations, backups, maintenance)."
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=str(DB_FILE_PATH),
        help=f"Path to SQLite database file (default: {DB_FILE_PATH})",
    )
    parser.add_argument(
        "--backup-dir",
        default=str(BACKUPS_PATH),
        help=f"Folder holding backups (default: {BACKUPS_PATH})",
    )
    parser.add_argument(
        "--max-backups",
        type=int,
        default=MAX_BACKUPS,
        help=f"Number of backups to retain (default: {MAX_BACKUPS})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show details")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress output")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="Apply pending migrations")
    sub.add_parser("status", help="Show applied and pending migrations")
    sub.add_parser("seed", help="Migrate, then seed the Default Project if empty")
    sub.add_parser("backup", help="Create a backup")
    sub.add_parser("backups", help="List backups")
    restore = sub.add_parser("restore", help="Restore from a backup")
    restore.add_argument("name", help="Backup file name (see 'backups')")
    sub.add_parser("integrity", help="Run integrity checks")
    sub.add_parser("optimize", help="VACUUM, recreate indexes, ANALYZE")
    sub.add_parser("cleanup", help="Delete inactive user components")
    sub.add_parser("size", help="Show database size")
    return parser


def _cmd_migrate(db, args) -> int:
    applied = MigrationRunner(db).run()
    if applied:
        print_user_message(
            f"Applied {len(applied)} migration(s).",
            details="\n".join(applied),
            verbose=args.verbose,
            quiet=args.quiet,
        )
    else:
        print_user_message("No pending migrations.", quiet=args.quiet)
    return 0


def _cmd_status(db, args) -> int:
    status = MigrationRunner(db).status()
    print_user_message(
        f"{len(status['applied'])} applied, {len(status['pending'])} pending.",
        action=f"{MANAGE_CMD} migrate" if status["pending"] else None,
        quiet=args.quiet,
    )
    if not args.quiet:
        if status["applied"]:
            print(format_rows(status["applied"], ("name", "applied_at")))
        for name in status["pending"]:
            print(f"pending  {name}")
    return 0


def _cmd_seed(db, args) -> int:
    MigrationRunner(db).run()
    inserted = initialize_database_if_needed(db)
    if inserted:
        print_user_message(f"Seeded {inserted} starter component(s).", quiet=args.quiet)
    else:
        print_user_message("Database already seeded.", quiet=args.quiet)
    return 0


def _print_result(result, args) -> int:
    if result.success:
        print_user_message(
            result.message or "Done.",
            details=json.dumps(result.data, indent=2) if result.data else None,
            verbose=args.verbose,
            quiet=args.quiet,
        )
        return 0
    print_user_message(f"Failed: {result.error}", error=True)
    return 1


def _cmd_backups(backups, args) -> int:
    items = backups.list_backups()
    if not items:
        print_user_message(
            "No backups found.", action=f"{MANAGE_CMD} backup", quiet=args.quiet
        )
        return 0
    print_user_message(f"{len(items)} backup(s):", quiet=args.quiet)
    if not args.quiet:
        print(format_rows(items, ("name", "time", "size")))
    return 0


def _cmd_integrity(db, args) -> int:
    report = maintenance.run_integrity_checks(db)
    if report.valid:
        print_user_message("All integrity checks passed.", quiet=args.quiet)
        return 0
    print_user_message(
        f"{len(report.errors)} integrity check(s) failed.",
        action=f"{MANAGE_CMD} optimize",
        details="\n".join(report.errors),
        verbose=True,
        error=True,
    )
    return 1


def _cmd_size(db, args) -> int:
    result = maintenance.get_database_size(db)
    if not result.success:
        return _print_result(result, args)
    print_user_message(f"Total size: {result.data['total_size']} bytes", quiet=args.quiet)
    if not args.quiet:
        print(format_rows(result.data["tables"], ("name", "row_count")))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    # Every command except migrate/seed needs an existing store
    if args.command not in ("migrate", "seed") and not os.path.exists(args.db_path):
        print_user_message(
            f"Database file not found: {args.db_path}",
            action=f"{MANAGE_CMD} --db {args.db_path} seed",
            error=True,
        )
        return 1

    try:
        with Database(args.db_path) as db:
            backups = BackupManager(db, args.backup_dir, args.max_backups)
            if args.command == "migrate":
                return _cmd_migrate(db, args)
            if args.command == "status":
                return _cmd_status(db, args)
            if args.command == "seed":
                return _cmd_seed(db, args)
            if args.command == "backup":
                return _print_result(backups.create_backup(), args)
            if args.command == "backups":
                return _cmd_backups(backups, args)
            if args.command == "restore":
                return _print_result(backups.restore_from_backup(args.name), args)
            if args.command == "integrity":
                return _cmd_integrity(db, args)
            if args.command == "optimize":
                return _print_result(maintenance.optimize_database(db), args)
            if args.command == "cleanup":
                return _print_result(maintenance.cleanup_database(db, backups), args)
            if args.command == "size":
                return _cmd_size(db, args)
    except PromptBuilderError as e:
        logger.exception("Command %s failed", args.command)
        print_user_message(f"Failed: {e}", error=True)
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
