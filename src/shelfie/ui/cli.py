# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from shelfie.adapters.sources import SourceFormat
from shelfie.app import (
    import_file,
    list_batch_failures,
    list_household_batches,
    search_items,
    summarize_batch,
)
from shelfie.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

CANCEL_IMPORT = threading.Event()
IMPORT_RUNNING = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import and inspect shelfie catalog data")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_cmd = subparsers.add_parser("import", help="Import an exported catalog file")
    import_cmd.add_argument("path", type=Path, help="File to import")
    import_cmd.add_argument(
        "--household-id",
        type=str,
        required=True,
        help="Household that owns the imported items",
    )
    import_cmd.add_argument(
        "--source",
        type=str,
        help="Free-text origin of the data (defaults to '<format>-upload')",
    )
    import_cmd.add_argument(
        "--format",
        dest="source_format",
        choices=[member.value for member in SourceFormat],
        help="File format (inferred from the extension when omitted)",
    )
    import_cmd.add_argument(
        "--archive",
        action="store_true",
        help="Archive the raw file before importing it",
    )

    report = subparsers.add_parser("report", help="Summarise an import batch")
    report.add_argument("batch_id", type=str, help="Import batch id")
    report.add_argument(
        "--failures",
        action="store_true",
        help="List every failed record of the batch",
    )

    batches = subparsers.add_parser("batches", help="List import batches of a household")
    batches.add_argument("--household-id", type=str, required=True, help="Household id")
    batches.add_argument("--take", type=int, default=20, help="Page size (default: %(default)s)")
    batches.add_argument("--skip", type=int, default=0, help="Rows to skip (default: %(default)s)")

    search = subparsers.add_parser("search", help="Search catalog items of a household")
    search.add_argument("--household-id", type=str, required=True, help="Household id")
    search.add_argument("--query", type=str, help="Text to look for in titles and authors")
    search.add_argument("--barcode", type=str, help="Exact barcode")
    search.add_argument("--status", type=str, help="Exact item status")
    search.add_argument("--location", type=str, help="Exact shelf location")
    search.add_argument("--take", type=int, default=50, help="Page size (default: %(default)s)")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command == "import" and not args.path.is_file():
        raise ValueError(f"Import file not found: {args.path}")
    if args.command == "import" and args.source_format is None:
        SourceFormat.from_path(args.path)
    for name in ("take", "skip"):
        value = getattr(args, name, None)
        if value is not None and value < 0:
            raise ValueError(f"--{name} must be non-negative")
    for name in ("household_id", "batch_id"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(args, name, _parse_uuid(value))


def _run_import(args: argparse.Namespace) -> None:
    CANCEL_IMPORT.clear()
    IMPORT_RUNNING.set()
    try:
        result = import_file(
            args.path,
            household_id=args.household_id,
            source=args.source,
            source_format=SourceFormat(args.source_format) if args.source_format else None,
            archive=args.archive,
            cancel=CANCEL_IMPORT,
        )
    finally:
        IMPORT_RUNNING.clear()
    batch = result.batch
    print(f"batch {batch.id}: {batch.status}")
    print(
        f"  completed={result.completed} failed={result.failed} duplicates={result.duplicates}"
        + (" (cancelled)" if result.cancelled else "")
    )
    for failure in result.failures:
        print(f"  ! {failure.external_id or '-'}: {failure.error}")


def _run_report(args: argparse.Namespace) -> None:
    summary = summarize_batch(args.batch_id)
    print(f"batch {summary.batch_id}: {summary.status}")
    print(
        f"  total={summary.total} completed={summary.completed} failed={summary.failed} "
        f"pending={summary.pending} duplicates_skipped={summary.duplicates_skipped}"
    )
    if args.failures and summary.has_failures:
        for failure in list_batch_failures(args.batch_id):
            print(f"  ! {failure.external_id or '-'} [{failure.created_at:%Y-%m-%d %H:%M:%S}]")
            print(f"    {failure.error}")


def _run_batches(args: argparse.Namespace) -> None:
    for batch in list_household_batches(args.household_id, take=args.take, skip=args.skip):
        finished = f"{batch.finished_at:%Y-%m-%d %H:%M}" if batch.finished_at else "-"
        print(
            f"{batch.id}  {batch.status:<9}  {batch.started_at:%Y-%m-%d %H:%M}  {finished}  "
            f"{batch.source}  {batch.file_name or ''}"
        )


def _run_search(args: argparse.Namespace) -> None:
    results = search_items(
        args.household_id,
        query=args.query,
        barcode=args.barcode,
        status=args.status,
        location=args.location,
        take=args.take,
    )
    for item in results:
        print(
            f"{item.item_id}  {item.title}  [{item.authors or '-'}]  "
            f"barcode={item.barcode or '-'} location={item.location or '-'}"
        )
    log.info("Found %s items", len(results))


COMMANDS = {
    "import": _run_import,
    "report": _run_report,
    "batches": _run_batches,
    "search": _run_search,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        COMMANDS[parsed_args.command](parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop a running import after the current record; otherwise exit."""
    if IMPORT_RUNNING.is_set() and not CANCEL_IMPORT.is_set():
        CANCEL_IMPORT.set()
        log.info("Cancelling after the current record (Ctrl+C again to quit)")
        return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
