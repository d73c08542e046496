"""
Docmost Bundle Importer - command-line entry point

Imports export bundles (zip archives) and loose Markdown/HTML files as a note
hierarchy in a local SQLite document store, copying attachments into the
uploads directory.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config_loader import ConfigLoader, get_nested
from .importers import ImportPipeline
from .logger import log_section, setup_logging
from .models import ConfigurationError, ImportOptions, ImportResult, UploadedFile
from .storage import LocalBlobStorage, SqliteDocumentStore

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='docmost-import',
        description="Import Docmost export bundles and Markdown/HTML files as notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import an export bundle for user 1
  docmost-import export.zip --owner-id 1

  # Import loose files under an existing note, flat
  docmost-import a.md b.md --owner-id 1 --parent-id 42 --no-preserve-structure

  # Write the JSON result to a file
  docmost-import export.zip --owner-id 1 --report result.json

  # Verbose logging
  docmost-import export.zip --owner-id 1 -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        'files',
        nargs='+',
        metavar='FILE',
        help='Zip bundles or loose .md/.html files (and their attachments)'
    )

    parser.add_argument(
        '--owner-id',
        type=int,
        required=True,
        help='User ID that will own the imported notes'
    )

    parser.add_argument(
        '--parent-id',
        type=int,
        help='Existing note to import under (default: top level)'
    )

    parser.add_argument(
        '--preserve-structure',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Rebuild the folder hierarchy as nested notes (default: from config, true)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--database',
        type=str,
        help='Path to the SQLite notes database (overrides storage.database_path)'
    )

    parser.add_argument(
        '--uploads-dir',
        type=str,
        help='Directory receiving attachment copies (overrides storage.uploads_path)'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write the import result as JSON to this path'
    )

    parser.add_argument(
        '--progress',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Show progress bars'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also log to this file (rotating)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(config_path: Optional[str]) -> dict:
    """
    Load configuration, tolerating a missing default config file.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
    """
    if config_path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return ConfigLoader.with_defaults({})
        config_path = DEFAULT_CONFIG_PATH

    return ConfigLoader.load(config_path)


def validate_input_files(paths: List[str], logger: logging.Logger) -> bool:
    """Check that every input path is an existing regular file."""
    valid = True
    for path in paths:
        if not os.path.isfile(path):
            logger.error(f"Input file not found or not a regular file: {path}")
            valid = False
    return valid


def print_summary(result: ImportResult) -> None:
    print("\n" + "=" * 60)
    print("IMPORT SUMMARY")
    print("=" * 60)
    print(f"Status: {'success' if result.success else 'completed with errors'}")
    print(f"Notes imported: {result.imported_notes}")
    print(f"Attachments imported: {result.imported_attachments}")
    print(f"Root notes: {', '.join(str(i) for i in result.root_note_ids) or '-'}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        print("-" * 60)
        for error in result.errors:
            print(f"  {error.file}: {error.error}")

    print("=" * 60)


def write_report(result: ImportResult, report_path: str) -> None:
    report_dir = os.path.dirname(report_path)
    if report_dir:
        os.makedirs(report_dir, exist_ok=True)

    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)


def run_import(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the import against the configured store."""
    store = SqliteDocumentStore(get_nested(config, 'storage.database_path'))

    try:
        if args.parent_id is not None and not store.document_exists(args.owner_id, args.parent_id):
            logger.error(f"Parent note {args.parent_id} not found for owner {args.owner_id}")
            return 2

        blob_storage = LocalBlobStorage(
            get_nested(config, 'storage.uploads_path'),
            get_nested(config, 'storage.url_prefix', '/uploads/')
        )

        pipeline = ImportPipeline(store, blob_storage, config, logger)
        options = ImportOptions(
            owner_id=args.owner_id,
            parent_id=args.parent_id,
            preserve_structure=get_nested(config, 'import.preserve_structure', True)
        )
        files = [
            UploadedFile(original_name=os.path.basename(path), stored_path=os.path.abspath(path))
            for path in args.files
        ]

        result = pipeline.process_import(files, options)
    finally:
        store.close()

    print_summary(result)

    if args.report:
        write_report(result, args.report)
        logger.info(f"Report written to {args.report}")

    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = load_configuration(args.config)

        # CLI takes precedence over the config file
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        logger = setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=None if args.verbose else get_nested(config, 'logging.level')
        )

        log_section("Docmost Bundle Import")
        logger.info(f"Version: {__version__}")

        if not validate_input_files(args.files, logger):
            return 2

        return run_import(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ConfigurationError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nImport interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
