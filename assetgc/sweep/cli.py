"""
Sweep command line entry point.

Usage:
    python sweep.py [--dry-run] [--batch-size N] [--page-size N] [--report-limit N] [--debug]

Exit codes: 0 on success, 1 when configuration is missing or the sweep fails.
"""

import argparse
import logging
import sys
from typing import Optional

from assetgc.configs import get_full_config, get_logger, setup_logging
from assetgc.configs.runtime import get_blob_store_settings
from assetgc.configs.services import (
    get_blob_store,
    get_document_store,
    get_registry,
    reset_services,
)
from assetgc.exceptions import MissingConfigError
from assetgc.sweep.scanner import run_sweep


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find blob store assets no document references")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report orphan candidates without writing them to the registry",
    )
    parser.add_argument("--batch-size", type=int, default=None, help="Documents per batch while collecting known ids")
    parser.add_argument("--page-size", type=int, default=None, help="Assets per store listing page (max 500)")
    parser.add_argument("--report-limit", type=int, default=None, help="Candidates shown in a dry-run report")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Phase progress goes to the console as well as the log file
    setup_logging(debug=True if args.debug else None, console_level=logging.INFO)
    logger = get_logger("sweep.cli")

    config = get_full_config()
    sweep_config = config["sweep"]

    try:
        get_blob_store_settings(config)
    except MissingConfigError as e:
        logger.error(f"Cannot start sweep: {e}")
        print(f"Missing configuration: {', '.join(e.missing)}", file=sys.stderr)
        return 1

    logger.info(f"Sweep job starting. Dry run is {'ENABLED' if args.dry_run else 'DISABLED'}")
    try:
        result = run_sweep(
            documents=get_document_store(),
            registry=get_registry(),
            blob_store=get_blob_store(),
            dry_run=args.dry_run,
            batch_size=args.batch_size or sweep_config["batch_size"],
            page_size=args.page_size or sweep_config["page_size"],
            excluded_folders=sweep_config["excluded_folders"],
            report_limit=args.report_limit or sweep_config["report_limit"],
        )
    except Exception as e:
        logger.exception(f"Sweep failed: {e}")
        print(f"Sweep failed: {e}", file=sys.stderr)
        return 1
    finally:
        reset_services()
        logger.info("Services released, database closed")

    if result.report:
        print(result.report)
    print(
        f"Known ids: {result.known_ids} | Scanned: {result.scanned} | "
        f"Candidates: {result.candidates} | New: {result.inserted} | Already tracked: {result.matched}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
