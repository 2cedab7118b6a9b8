"""Release dashboard entry point."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

import uvicorn
from dotenv import load_dotenv

from .app import create_app
from .cli import parse_args
from .config import Config, load_config
from .errors import (
    AuthenticationError,
    ConfigurationError,
    InvalidQueryError,
    StorageError,
)
from .github_client import GitHubClient
from .ingestor import Ingestor
from .logging_setup import setup_logging
from .query import QueryEngine, parse_query_params
from .store import CsvReleaseStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_STORAGE = 5


def run_ingest(config: Config) -> int:
    """Run one ingestion cycle and print a short summary."""
    if not config.repositories:
        logger.warning("No repositories configured; writing an empty release table")

    ingestor = Ingestor(
        client=GitHubClient(config.github_token),
        store=CsvReleaseStore(config.releases_file),
        repositories=config.repositories,
    )
    report = ingestor.run()

    print(f"Fetched {report.total_records} releases from {len(config.repositories)} repositories.")
    for repository in report.failed_repositories:
        print(f"  - failed: {repository}")

    if not report.written:
        print(f"ERROR: {report.write_error}", file=sys.stderr)
        return EXIT_STORAGE

    print(f"Release table written to {config.releases_file}")

    if config.repositories and len(report.failed_repositories) == len(config.repositories):
        print("ERROR: every repository failed to fetch", file=sys.stderr)
        return EXIT_API
    return EXIT_OK


def run_query(config: Config, args: argparse.Namespace) -> int:
    """Print the aggregate payload for the persisted table."""
    params = parse_query_params(args.start_date, args.end_date, args.repository)
    engine = QueryEngine(CsvReleaseStore(config.releases_file), locale=config.locale)
    payload = engine.query(params)
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return EXIT_OK


def run_serve(config: Config) -> int:
    """Serve the HTTP API; ingestion runs on the app's event loop."""
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dispatch a CLI command and map failures onto exit codes."""
    try:
        load_dotenv()
        args = parse_args(argv)
        config = load_config(require_token=args.command != "query")
        setup_logging(config.log_level, config.log_file)

        if args.command == "serve":
            return run_serve(config)
        if args.command == "ingest":
            return run_ingest(config)
        return run_query(config, args)
    except (ConfigurationError, InvalidQueryError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except StorageError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_STORAGE
    except Exception as exc:
        logger.exception("Unexpected failure")
        print(f"ERROR: unexpected failure: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
