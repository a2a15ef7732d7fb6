"""
Module 09C - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m escrow_cli build <request.json> [--store DIR] [--fee-rate BP] [--json]
    python -m escrow_cli verify <root> [--store DIR] [--json]
    python -m escrow_cli config --init
    python -m escrow_cli config --show

Environment Variables:
    ESCROW_FEE_RATE         Fee rate in basis points (default: 100)
    ESCROW_ARTIFACT_DIR     Artifact directory (default: deposits)
    ESCROW_LOG_LEVEL        Log level (default: INFO)
    ESCROW_LOG_FILE         Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from escrow_cli.commands import build, verify
from escrow_cli.config import DEFAULT_CONFIG_NAME, load_config, get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="escrow",
        description="Merkle Escrow CLI - Build release commitments and verify stored artifacts.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./escrow.json or ~/.config/escrow/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build and store a commitment from a request file",
        description="Compute the merkle root and proofs for a recipient list and persist the artifact.",
    )
    build_parser.add_argument(
        "request",
        type=str,
        help="JSON request file (deposits body or list of recipients)",
    )
    build_parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Artifact directory (default: from config)",
    )
    build_parser.add_argument(
        "--fee-rate",
        type=int,
        default=None,
        help="Fee rate in basis points (default: from config)",
    )
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a stored artifact offline",
        description="Recompute every leaf and proof of a stored artifact against its root.",
    )
    verify_parser.add_argument(
        "root",
        type=str,
        help="Commitment root (0x + 64 hex)",
    )
    verify_parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Artifact directory (default: from config)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_NAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_NAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (ESCROW_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        config = load_config(Path(args.path) if args.path else None)
        print(json.dumps(asdict(config), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: escrow config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
