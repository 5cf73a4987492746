from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import (
    ENV_PROJECT_ID,
    ConfigError,
    ImportConfig,
    load_config,
    validate_preconditions,
)
from ..excel.reader import SheetNotFoundError, list_sheet_names, read_sheet_rows
from ..logging.init import log_summary, setup_logging
from ..services.documents import build_document, find_rename_collisions
from ..services.orchestrator import ProcessingError, process_workbook
from ..services.summary import render_summary_line
from ..store.firestore_batch import create_client

"""CLI entrypoint.

Flow:
- Load .env, then read settings from the environment (+ optional mapping YAML)
- Check preconditions (credentials, project id, spreadsheet); exit 1 if any fails
- Connect to Firestore and upload the sheet in batches
- Print one SUMMARY line

Exit codes: 0 when the run completes (row-level failures included), 1 for
any fatal error.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path) -> None:
    """Load .env without overriding variables already set in the process."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Excel -> Firestore inventory importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Build documents and report counts without connecting to Firestore",
    )
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print sheet headers, field mapping & first documents then exit",
    )
    return p.parse_args(argv)


def _connect(cfg: ImportConfig) -> Any:
    if not cfg.project_id:
        raise ConfigError(f"{ENV_PROJECT_ID} is not set")
    return create_client(cfg.service_account_path, cfg.project_id)


def _inspect_data(cfg: ImportConfig) -> int:
    print(f"FILE: {cfg.excel_path}")
    print(f"  sheets={list_sheet_names(cfg.excel_path)} selected_index={cfg.sheet_index}")
    try:
        rows = read_sheet_rows(cfg.excel_path, cfg.sheet_index)
    except SheetNotFoundError as e:
        print(f"  error: {e}")
        return EXIT_FATAL
    columns = list(rows[0].keys()) if rows else []
    print(f"  rows={len(rows)}")
    for col in columns:
        print(f"    {col!r} -> {cfg.rename_table.get(col) or col!r}")
    for target, sources in find_rename_collisions(columns, cfg.rename_table).items():
        print(f"  collision: {sources} -> {target!r} (last column wins)")
    for raw in rows[:INSPECT_SAMPLE_ROWS]:
        doc = build_document(raw, cfg.rename_table, cfg.date_fields)
        # datetimes outside date fields are shown as ISO text
        print("    sample_doc=", {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in doc.items()})
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when nothing was passed: main([]) must not pick up
    # the test runner's arguments.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        logger.setLevel(logging.DEBUG)
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    try:
        cfg = load_config()
        validate_preconditions(cfg, require_store=not (args.dry_run or args.inspect_data))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    try:
        client = None
        if not args.dry_run:
            client = _connect(cfg)
            logger.info(f"connected to Firestore project={cfg.project_id}")
        result = process_workbook(cfg, client)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.error(f"unexpected: {e}")
        logger.debug("unexpected error", exc_info=True)
        return EXIT_FATAL

    if result.batch_stats is not None and result.batch_stats.total_batches:
        logger.debug(
            f"commit timing avg={result.batch_stats.avg_batch_seconds:.3f}s "
            f"p95={result.batch_stats.p95_batch_seconds:.3f}s"
        )
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
