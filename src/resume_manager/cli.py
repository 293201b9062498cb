"""
Command-line interface for Resume Manager.

Provides the `resume-manager` command with the following subcommands:
- serve: Run the JSON HTTP API
- mcp: Run the stdio MCP proxy against a running API
- export: Write the whole document to a JSON file
- import: Load a JSON document (override or merge), or preview it
- tags: List tags across collections
- stats: Show collection counts and total experience
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, load_config
from .durations import document_stats
from .errors import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    ConfigurationError,
    ResumeManagerError,
)
from .logging_config import level_from_name, setup_logging
from .models import COLLECTIONS
from .records import RecordRepository
from .store import DocumentStore
from .transfer import (
    IMPORT_MODES,
    MODE_OVERRIDE,
    export_document,
    export_filename,
    import_document,
    preview_import,
)

# Set up module logger
logger = logging.getLogger(__name__)


def _config(args: argparse.Namespace) -> Config:
    config = getattr(args, "_config", None)
    return config if config is not None else Config()


def _data_path(args: argparse.Namespace) -> Path:
    """Backing file: --data beats the config file (and its env overrides)."""
    data = getattr(args, "data", None)
    if data:
        return Path(data)
    return _config(args).data_path


def _open_store(args: argparse.Namespace) -> DocumentStore:
    path = _data_path(args)
    logger.info(f"Using data file: {path}")
    return DocumentStore.from_path(path)


def serve_command(args: argparse.Namespace) -> int:
    """
    Execute the serve command (start the HTTP API).

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    from .web import run_server

    config = _config(args)
    host = args.host or config.server.host
    port = args.port if args.port is not None else config.server.port

    try:
        run_server(
            host=host,
            port=port,
            debug=args.debug_server,
            data_path=_data_path(args),
            allow_unsafe_bind=args.allow_remote,
        )
        return EXIT_SUCCESS
    except OSError as e:
        logger.error(f"Error starting web server: {e}")
        print(f"❌ Error: {e}")
        return EXIT_ERROR


def mcp_command(args: argparse.Namespace) -> int:
    """
    Execute the mcp command (stdio proxy).

    Nothing but protocol lines may reach stdout here.
    """
    from .proxy import McpProxy

    api_url = args.api_url or _config(args).mcp.api_url
    return McpProxy(api_url).serve()


def export_command(args: argparse.Namespace) -> int:
    """
    Execute the export command.

    Writes to ``-o FILE``, to stdout for ``-o -``, or to a dated file name
    in the current directory.
    """
    store = _open_store(args)
    text = export_document(store)

    if args.output == "-":
        sys.stdout.write(text + "\n")
        return EXIT_SUCCESS

    output = Path(args.output) if args.output else Path(export_filename())
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        logger.error(f"Error writing export: {e}")
        print(f"❌ Error: {e}")
        return EXIT_ERROR

    counts = store.document.counts()
    logger.info(f"Exported {sum(counts.values())} records to {output}")
    print(f"✅ Exported to {output}")
    return EXIT_SUCCESS


def import_command(args: argparse.Namespace) -> int:
    """
    Execute the import command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (EXIT_VALIDATION_ERROR if the file is rejected).
    """
    source = Path(args.file)
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading {source}: {e}")
        print(f"❌ Error: cannot read {source}: {e}")
        return EXIT_ERROR

    store = _open_store(args)

    if args.preview:
        preview = preview_import(store, text)
        if not preview.valid:
            print(f"❌ Invalid import file: {preview.error}")
            return EXIT_VALIDATION_ERROR

        print(f"\n📋 Import preview: {source}")
        for name, count in preview.summary.items():
            print(f"   {name}: {count}")
        print(f"   profile: {'yes' if preview.has_profile else 'no'}")
        if preview.conflicts:
            print(f"\n   {len(preview.conflicts)} conflict(s), skipped in merge mode:")
            for conflict in preview.conflicts:
                print(f"   ⚠️  {conflict.type} {conflict.id}: "
                      f"'{conflict.existing}' vs '{conflict.incoming}'")
        return EXIT_SUCCESS

    result = import_document(store, text, args.mode)
    if not result.success:
        print(f"❌ Import failed: {result.error}")
        return EXIT_VALIDATION_ERROR

    print(f"\n📥 Import Results ({result.mode}):")
    for name in COLLECTIONS:
        added = result.added.get(name, 0)
        skipped = result.skipped.get(name, 0)
        if added or skipped:
            print(f"   {name}: {added} added, {skipped} skipped")
    if result.profile_imported:
        print("   profile: imported")
    return EXIT_SUCCESS


def tags_command(args: argparse.Namespace) -> int:
    """Print every tag, one per line."""
    repository = RecordRepository(_open_store(args))
    for tag in repository.all_tags(args.collection):
        print(tag)
    return EXIT_SUCCESS


def stats_command(args: argparse.Namespace) -> int:
    """Print collection counts and total experience."""
    stats = document_stats(_open_store(args).document)

    print("\n📊 Resume statistics:")
    for name in COLLECTIONS:
        print(f"   {name:<15} {stats[name]}")
    print(f"   {'profile':<15} {'yes' if stats['hasProfile'] else 'no'}")
    print(f"   {'experience':<15} {stats['totalExperience']}")
    return EXIT_SUCCESS


def _add_data_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data", "-d",
        type=str,
        help="Path to the resume JSON file (default: data/resume.json)"
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="resume-manager",
        description="Manage resume data in a single JSON document and expose it to AI assistants.",
        epilog="Example: resume-manager serve --port 3000"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"resume-manager {__version__}"
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (INFO level logging)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level logging)"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress output except errors"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        dest="config_file",
        help="Path to config file (default: resume_manager.toml)"
    )

    # Subcommands
    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands"
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the JSON HTTP API",
        description="Serve the resume document over HTTP (including the /api/mcp endpoint)."
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (default: 3000)"
    )
    _add_data_argument(serve_parser)
    serve_parser.add_argument(
        "--debug-server",
        action="store_true",
        dest="debug_server",
        help="Run Flask in debug mode"
    )
    serve_parser.add_argument(
        "--allow-remote",
        action="store_true",
        dest="allow_remote",
        help="Allow binding to non-localhost addresses (the API has no authentication)"
    )
    serve_parser.set_defaults(func=serve_command)

    # MCP command
    mcp_parser = subparsers.add_parser(
        "mcp",
        help="Run the stdio MCP proxy",
        description="Forward newline-delimited JSON-RPC requests from stdin to the HTTP API."
    )
    mcp_parser.add_argument(
        "--api-url",
        type=str,
        dest="api_url",
        help="Base URL of the running API (default: http://localhost:3000)"
    )
    mcp_parser.set_defaults(func=mcp_command)

    # Export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export the whole document as JSON",
        description="Write the whole document to a pretty-printed JSON file."
    )
    _add_data_argument(export_parser)
    export_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output file, or '-' for stdout (default: resume-data-YYYY-MM-DD.json)"
    )
    export_parser.set_defaults(func=export_command)

    # Import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import a JSON document",
        description="Replace the document (override) or add non-conflicting records (merge)."
    )
    import_parser.add_argument(
        "file",
        type=str,
        help="JSON file to import"
    )
    import_parser.add_argument(
        "--mode", "-m",
        choices=IMPORT_MODES,
        default=MODE_OVERRIDE,
        help="Import mode (default: override)"
    )
    import_parser.add_argument(
        "--preview",
        action="store_true",
        help="Show counts and id conflicts without importing"
    )
    _add_data_argument(import_parser)
    import_parser.set_defaults(func=import_command)

    # Tags command
    tags_parser = subparsers.add_parser(
        "tags",
        help="List tags",
        description="Print the sorted, de-duplicated tags of one or all collections."
    )
    tags_parser.add_argument(
        "--collection",
        type=str,
        help="Only this collection (e.g., 'experiences')"
    )
    _add_data_argument(tags_parser)
    tags_parser.set_defaults(func=tags_command)

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show collection counts",
        description="Print record counts per collection and total experience."
    )
    _add_data_argument(stats_parser)
    stats_parser.set_defaults(func=stats_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv).

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load config file if specified or found
    config_path = Path(args.config_file) if args.config_file else None
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        setup_logging(verbose=args.verbose, debug=args.debug, quiet=args.quiet)
        logger.error(f"Config error: {e.message}")
        print(f"❌ Config error: {e.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    setup_logging(
        verbose=args.verbose,
        debug=args.debug,
        quiet=args.quiet,
        log_file=log_file,
        default_level=level_from_name(config.logging.level),
    )
    args._config = config  # Attach to args for commands to use

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_SUCCESS

    try:
        return args.func(args)
    except ResumeManagerError as e:
        logger.error(e.message)
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return e.exit_code


def main_cli() -> None:
    """
    CLI entry point for setuptools console_scripts.

    Calls main() and exits with the returned code.
    """
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
