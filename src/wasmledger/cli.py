"""wasmledger CLI: registry validation and on-chain reconciliation commands."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional

from wasmledger.config import NETWORKS, get_settings


def _configure_logging(verbose: bool, default_level: str) -> None:
    level = "DEBUG" if verbose else default_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


def main():
    """Main CLI entry point for wasmledger commands."""
    try:
        wasmledger_version = get_version("wasmledger")
    except PackageNotFoundError:
        wasmledger_version = "dev"

    parser = argparse.ArgumentParser(
        prog="wasmledger",
        description="wasmledger: validate a wasm contract registry and reconcile it with chain state"
    )
    parser.add_argument("--version", action="version", version=f"wasmledger {wasmledger_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--registry",
        type=Path,
        default=None,
        help="Path to the registry JSON file (defaults to WASMLEDGER_REGISTRY_PATH or contracts.json)"
    )
    parent_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging."
    )
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Validate registry structure and verify it against on-chain data",
        parents=[parent_parser]
    )
    mode_group = check_parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        help="Only validate registry structure"
    )
    mode_group.add_argument(
        "--verify-only",
        action="store_true",
        help="Only verify against on-chain data"
    )
    check_parser.add_argument(
        "--network",
        choices=list(NETWORKS),
        default="mainnet",
        help="Primary network to verify against (default: mainnet)"
    )
    check_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write validation_report.json to this directory"
    )

    # stats command
    subparsers.add_parser(
        "stats",
        help="Print registry statistics",
        parents=[parent_parser]
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = get_settings()
    _configure_logging(args.verbose, settings.log_level)
    registry_path = (args.registry or Path(settings.registry_path)).resolve()

    if args.command == "check":
        from .api import run
        from .codes import RunMode
        from .report import render_report
        from ._internal.canonical_json import write_report

        if args.validate_only:
            mode = RunMode.VALIDATE_ONLY
        elif args.verify_only:
            mode = RunMode.VERIFY_ONLY
        else:
            mode = RunMode.ALL

        try:
            report = run(registry_path, mode=mode, network=args.network, settings=settings)

            report_out: Optional[Path] = None
            if args.output_dir:
                report_out = write_report(report, Path(args.output_dir).resolve())

            if not args.quiet:
                print(render_report(report))
                if report_out is not None:
                    print(f"  Report: {report_out}")
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            sys.exit(1)
        sys.exit(0 if report.ok else 1)
    elif args.command == "stats":
        from pydantic import ValidationError

        from .report import render_statistics
        from ._internal.io.registry import RegistryLoadError, compute_statistics, load_records

        try:
            stats = compute_statistics(load_records(registry_path))
        except FileNotFoundError:
            print(f"Error: Registry file not found: {registry_path}", file=sys.stderr)
            sys.exit(1)
        except (RegistryLoadError, ValidationError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if not args.quiet:
            print(render_statistics(stats))
        sys.exit(0)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
