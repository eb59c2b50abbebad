"""Command-line entry point.

    ledger transactions.csv > accounts.csv

Applies every record of the input file in order and writes the final
state of each client account to stdout. Logs go to stderr.
"""

import argparse
import csv
import sys
from typing import List, Optional

import structlog

from config import get_settings
from csv_io import TransactionReader, write_report
from errors import LedgerError, RecordError
from logging_config import configure_logging
from repositories import InMemoryAccountRepository
from services import TransactionService

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger",
        description="Rebuild client account balances from a CSV transaction log.",
    )
    parser.add_argument("source", help="CSV file with type,client,tx,amount records")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        default=None,
        help="Abort on the first record that cannot be applied",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    updates = {}
    if args.log_level:
        updates["log_level"] = args.log_level
    if args.stop_on_error is not None:
        updates["stop_on_error"] = args.stop_on_error
    settings = get_settings().model_copy(update=updates)
    configure_logging(settings)

    service = TransactionService(InMemoryAccountRepository(), settings.stop_on_error)

    status = 0
    try:
        # undecodable bytes surface as malformed records
        with open(args.source, newline="", encoding="utf-8-sig", errors="replace") as stream:
            reader = TransactionReader(stream, strict=settings.stop_on_error)
            summary = service.process(reader)
    except OSError as exc:
        logger.error("Could not read input file", source=args.source, error=str(exc))
        return 1
    except csv.Error as exc:
        logger.error("Could not read input file", source=args.source, error=str(exc))
        status = 1
    except (LedgerError, RecordError) as exc:
        logger.error("Processing stopped", source=args.source, error=str(exc))
        return 1
    else:
        logger.info(
            "Input processed",
            source=args.source,
            applied=summary.applied,
            rejected=len(summary.rejected),
            malformed=reader.malformed
        )

    try:
        rows = service.report()
    except LedgerError as exc:
        logger.error("Could not generate CSV report", error=str(exc))
        return 1

    write_report(rows, sys.stdout)
    sys.stdout.flush()
    return status


if __name__ == "__main__":
    sys.exit(main())
