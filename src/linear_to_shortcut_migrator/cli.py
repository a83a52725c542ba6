"""
Command-line interface for the Linear to Shortcut migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from . import linear_utils, shortcut_utils
from .config import load_config
from .orchestrator import Migrator
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import SummaryRecord
    from .orchestrator import MigrationResult


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate Linear initiatives, projects and issues to Shortcut objectives, epics and stories"
    )

    _ = parser.add_argument(
        "--test-mode", action="store_true", help="Migrate only the Education/Foundation teams and a few issues"
    )
    _ = parser.add_argument("--test-limit", type=int, help="Number of issues per team in test mode (default: 1)")
    _ = parser.add_argument(
        "--skip-epics-objectives",
        action="store_true",
        help="Do not create or update epics and objectives; only migrate stories",
    )
    _ = parser.add_argument(
        "--update-existing", action="store_true", help="Update epics and objectives that already exist in Shortcut"
    )

    _ = parser.add_argument(
        "--team-map",
        "-m",
        action="append",
        help='Team name mapping (format: "linear_name:shortcut_name", * allowed). Can be specified multiple times.',
    )
    _ = parser.add_argument(
        "--skip-team", action="append", help="Skip Linear teams whose name contains this text. Repeatable."
    )

    _ = parser.add_argument("--delay", type=float, help="Seconds to wait after each story (default: 0.1)")
    _ = parser.add_argument("--workspace", help="Shortcut workspace slug, used for links in the summary")

    _ = parser.add_argument(
        "--linear-pass-token", help="Path for Linear token in pass utility (default: linear/api_token)"
    )
    _ = parser.add_argument(
        "--shortcut-pass-token", help="Path for Shortcut token in pass utility (default: shortcut/api_token)"
    )

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def _print_records(title: str, records: list[SummaryRecord]) -> None:
    if not records:
        return
    print(f"\n{title} ({len(records)}):")
    for record in records:
        prefix = f"{record.linear_id} -> " if record.linear_id else ""
        details = ", ".join(f"{key}: {value}" for key, value in record.details.items())
        print(f'   {prefix}#{record.target_id}: "{record.name}"' + (f" ({details})" if details else ""))
        print(f"      URL: {record.url}")


def _print_run_summary(result: MigrationResult) -> None:
    stats = result.stats
    print("\n" + "=" * 60)
    print("Migration summary")
    print("=" * 60)
    print(f"Teams migrated: {stats.teams_migrated} of {len(result.teams)}")
    print(f"Objectives: {stats.objectives_created} created, {stats.objectives_updated} updated")
    print(f"Epics: {stats.epics_created} created, {stats.epics_updated} updated")
    print(
        f"Stories: {stats.stories_created} created, {stats.stories_skipped} skipped (duplicates), "
        f"{stats.stories_failed} errors"
    )
    print(f"Parent/child links: {stats.links_created}")

    _print_records("Created stories", stats.created_stories)
    _print_records("Updated epics", stats.updated_epics)
    _print_records("Updated objectives", stats.updated_objectives)
    _print_records("Updated tickets", stats.updated_tickets)
    _print_records("Design tickets", stats.design_tickets)

    if stats.errors:
        print(f"\nErrors ({len(stats.errors)}):")
        for error in stats.errors:
            print(f"   - {error}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    # Setup logging
    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    try:
        config = load_config(args)
        migrator = Migrator(
            linear_utils.get_client(config.linear_token),
            shortcut_utils.get_client(config.shortcut_token),
            config,
        )

        # Execute migration
        result = migrator.migrate()
        _print_run_summary(result)

        if result.success:
            sys.exit(0)
        else:
            sys.exit(1)

    except Exception:
        logger = logging.getLogger(__name__)
        logger.exception("Migration failed")
        sys.exit(1)
