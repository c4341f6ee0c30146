"""
Eagle Export CLI - Entry point

Exports an Eagle library into a plain directory tree, incrementally.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.table import Table

from eagle_export.core.config import Config, get_data_dir, load_config
from eagle_export.core.console import get_console
from eagle_export.core.output import log, set_quiet, setup_loguru
from eagle_export.domain.export import (
    ExportOptions,
    ExportResult,
    Library,
    RichProgressSink,
    SmartFolderFilter,
)
from eagle_export.domain.library import (
    EagleExportError,
    load_asset_info,
    load_library_info,
    load_mtime_index,
)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_TASK_ERRORS = 2


def _print_summary(result: ExportResult) -> None:
    table = Table(title="Export summary", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Assets", str(result.total))
    table.add_row("Copied", str(result.copied))
    table.add_row("Up to date", str(result.up_to_date))
    table.add_row("Deleted (skipped)", str(result.deleted))
    table.add_row("Failed", str(result.failed))
    table.add_row("Bytes copied", f"{result.bytes_copied:,}")
    get_console().print(table)

    for error in result.errors:
        log(f"✗ {error}", "error")


def run_export(
    config: Config,
    library_dir: Optional[str],
    output_dir: Optional[str],
    show_progress: bool = True,
) -> int:
    """Run an export using config values with CLI overrides applied.

    Returns:
        Exit code (0 success, 1 export-fatal error, 2 some assets failed)
    """
    library_dir = library_dir or config.library.path
    output_dir = output_dir or config.library.output_dir
    if not library_dir or not output_dir:
        log("Error: library and output directories are required "
            "(pass them as arguments or set [library] in config.toml)", "error")
        return EXIT_FATAL

    library = Library(Path(library_dir).expanduser())
    options = ExportOptions(
        overwrite=config.export.overwrite,
        force=config.export.force,
        group_by_smart_folder=config.export.group_by_smart_folder,
        max_workers=config.export.max_workers or None,
        uncategorized_name=config.export.uncategorized_name,
    )
    destination = Path(output_dir).expanduser()

    log(f"Exporting {library.base_dir} → {destination}")
    try:
        if show_progress:
            with RichProgressSink(console=get_console()) as progress:
                options.progress = progress
                result = library.export(destination, options)
        else:
            result = library.export(destination, options)
    except EagleExportError as e:
        log(f"Export aborted: {e}", "error")
        return EXIT_FATAL

    _print_summary(result)
    return EXIT_OK if result.ok else EXIT_TASK_ERRORS


def run_info(library_dir: str) -> int:
    """Print asset counts and the smart folder tree of a library."""
    library_path = Path(library_dir).expanduser()
    try:
        index = load_mtime_index(library_path)
        info = load_library_info(library_path)
    except EagleExportError as e:
        log(f"Error: {e}", "error")
        return EXIT_FATAL

    deleted = 0
    unreadable = 0
    for asset_id in index.entries:
        try:
            if load_asset_info(library_path, asset_id).is_deleted:
                deleted += 1
        except EagleExportError as e:
            logger.warning(str(e))
            unreadable += 1

    console = get_console()
    console.print(f"Library: {library_path}", markup=False)
    console.print(f"Assets: {len(index)} (all={index.total}, deleted={deleted}, unreadable={unreadable})")
    console.print(f"Folders: {len(info.folder_ids)}")

    smart_folders = list(info.iter_smart_folders())
    console.print(f"Smart folders: {len(smart_folders)}")
    for folder in smart_folders:
        console.print(f"  • {folder.name} ({len(folder.conditions)} conditions)", markup=False)

    for error in SmartFolderFilter(info).errors:
        log(f"⚠ {error}", "warning")

    return EXIT_OK


def _setup_logging(config: Config) -> None:
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "eagle-export.log"
    )
    setup_loguru(log_file, level=config.logging.level, console_output=config.logging.console_output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eagle-export",
        description="Eagle Export - incremental export of an Eagle library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--config',
        type=Path,
        help='Path to config.toml (default: ./config.toml or ~/.config/eagle-export/config.toml)'
    )
    parser.add_argument(
        '--log-level',
        help='Override the configured log level (DEBUG, INFO, WARNING, ERROR)'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Do not echo log messages to the console'
    )

    subparsers = parser.add_subparsers(dest='subcommand', help='Available commands')

    export_parser = subparsers.add_parser('export', help='Export a library to a directory')
    export_parser.add_argument('library', nargs='?', help='Path to the Eagle library')
    export_parser.add_argument('output', nargs='?', help='Destination directory')
    export_parser.add_argument(
        '--overwrite',
        action='store_true',
        help='Re-copy every asset even when timestamps match'
    )
    export_parser.add_argument(
        '--force',
        action='store_true',
        help='Delete the output directory before exporting'
    )
    export_parser.add_argument(
        '--group',
        action='store_true',
        help='Group assets into folders named after matching smart folders'
    )
    export_parser.add_argument(
        '--workers',
        type=int,
        help='Number of concurrent copy workers (default: one per CPU)'
    )
    export_parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Do not show a progress bar'
    )

    info_parser = subparsers.add_parser('info', help='Show library statistics and smart folders')
    info_parser.add_argument('library', nargs='?', help='Path to the Eagle library')

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the eagle-export command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return EXIT_FATAL

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        log(f"Error loading configuration: {e}", "error")
        return EXIT_FATAL

    if args.log_level:
        config.logging.level = args.log_level.upper()
        try:
            config.logging.validate()
        except ValueError as e:
            log(f"Error: {e}", "error")
            return EXIT_FATAL
    _setup_logging(config)
    set_quiet(args.quiet)

    if args.subcommand == 'info':
        library_dir = args.library or config.library.path
        if not library_dir:
            log("Error: library directory is required", "error")
            return EXIT_FATAL
        return run_info(library_dir)

    # export
    if args.overwrite:
        config.export.overwrite = True
    if args.force:
        config.export.force = True
    if args.group:
        config.export.group_by_smart_folder = True
    if args.workers is not None:
        if args.workers < 1:
            log("Error: --workers must be at least 1", "error")
            return EXIT_FATAL
        config.export.max_workers = args.workers

    show_progress = config.export.show_progress and not args.no_progress
    return run_export(config, args.library, args.output, show_progress=show_progress)


if __name__ == "__main__":
    sys.exit(main())
