#!/usr/bin/env python3
"""
Module Importer

Load modules, fiches, videos and quizzes from JSON fixtures into Firestore.

Usage:
    python main.py            # Merge fixtures into existing data
    python main.py --reset    # Empty each module's fiches/videos/quizzes first

Fixtures (next to this file unless configured otherwise):
    modules.json, fiches_<id>.json, videos_<id>.json, quizzes_<id>.json

Settings come from config.yaml, .env and MODIMPORT_SECTION__KEY variables.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from module_importer.config import get_config, resolve_path
from module_importer.database import ContentStore
from module_importer.exceptions import ModuleImporterError
from module_importer.fixtures import FixtureLoader
from module_importer.importer import ImportSummary, ModuleImporter
from module_importer.logging_config import get_logger, log_exception, setup_logging

PROJECT_DIR = Path(__file__).resolve().parent

# Initialize logging (will be configured in main())
logger = get_logger('main')


def print_progress(module_id: str, status: str):
    """Print progress to console."""
    print(f"  [{module_id}] {status}")


def print_summary(summary: ImportSummary):
    print("\n=== Summary ===")
    print(f"Modules:  {len(summary.modules)}")
    print(f"Fiches:   {summary.total_fiches}")
    print(f"Videos:   {summary.total_videos}")
    print(f"Quizzes:  {summary.total_quizzes}")

    failures = summary.reset_failures
    if failures:
        print(f"\nPartial resets ({len(failures)}):")
        for m in failures:
            print(f"  {m.module_id}: {m.reset_error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import module fixtures into Firestore",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py
    python main.py --reset
        """
    )
    parser.add_argument(
        '--reset',
        action='store_true',
        help="Delete each module's fiches, videos and quizzes before importing"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ModuleImporterError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        console=config.logging.console,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )
    logger.info("Module importer starting")

    fixtures = FixtureLoader(resolve_path(config.fixtures.directory, PROJECT_DIR), config.fixtures)
    credentials_path = resolve_path(config.firestore.credentials_path, PROJECT_DIR)

    try:
        with ContentStore.connect(str(credentials_path), config.firestore.project_id) as store:
            modules = fixtures.load_modules()
            print(f"\nImporting {len(modules)} module(s){' with reset' if args.reset else ''}...")

            importer = ModuleImporter(
                store,
                fixtures,
                reset=args.reset,
                collections=config.collections,
                batch_size=config.firestore.delete_batch_size,
                on_progress=print_progress,
            )
            summary = importer.run(modules)

        print_summary(summary)
        print("\nImport completed successfully.")
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print("\n\nInterrupted by user.")
        return 130

    except ModuleImporterError as e:
        log_exception(logger, e, "Import failed")
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
