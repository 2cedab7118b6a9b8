"""Command-line argument parsing for the release dashboard."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed CLI arguments. ``command`` is one of ``serve``, ``ingest`` or
        ``query``; ``query`` also carries ``start_date``, ``end_date`` and
        ``repository``.
    """
    parser = argparse.ArgumentParser(
        prog="release-dashboard",
        description=(
            "Harvest GitHub release metadata into a CSV table and serve "
            "monthly, weekday and release-type aggregates."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "serve",
        help="Run the HTTP API with periodic ingestion.",
    )
    subparsers.add_parser(
        "ingest",
        help="Run a single ingestion cycle and exit.",
    )

    query_parser = subparsers.add_parser(
        "query",
        help="Print the aggregate payload for the persisted table as JSON.",
    )
    query_parser.add_argument(
        "--start-date",
        default=None,
        help="Inclusive lower publish-date bound (YYYY-MM-DD).",
    )
    query_parser.add_argument(
        "--end-date",
        default=None,
        help="Inclusive upper publish-date bound (YYYY-MM-DD, default: today when --start-date is set).",
    )
    query_parser.add_argument(
        "--repository",
        default=None,
        help="Restrict to one 'owner/name' repository ('all' for no filter).",
    )

    return parser.parse_args(argv)
