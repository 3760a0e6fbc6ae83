"""
rustdoc_surface.py

Reads rustdoc JSON output (one file per crate, e.g. core/alloc/std) and
reports the flattened public API surface: one record per trait, struct,
enum, function and trait impl, with its rendered declaration, generics
usage, stability and method count, plus const/async adoption ratios.

This tool is read-only; it never runs rustdoc itself.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from doctools.shared.console import ConsoleManager

from .config import ConfigurationManager
from .core import SurfaceService


class CliInterface:
    """
    Handles command-line arguments and application bootstrapping.
    """

    def __init__(self) -> None:
        self._parser = self._build_parser()

    def run(self, argv: list[str] | None = None) -> None:
        args = self._parser.parse_args(argv)

        log_level = args.log_level or logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )
        console = ConsoleManager(level=log_level, no_color=args.no_color)

        try:
            config = self._build_config(args)
            service = SurfaceService(
                app_config=config,
                inputs=[Path(p) for p in args.inputs],
            )
        except (FileNotFoundError, ValueError, TypeError, IOError) as e:
            console.critical(f"Configuration or Usage Error: {e}")
            sys.exit(1)

        try:
            report, items = service.run()

            output_path = None
            if not args.stdout:
                output_path = args.output_path or f"api_surface.{args.format}"
            if args.format == "csv":
                service.write_csv(items, output_path)
            else:
                service.write_yaml(report, output_path)

            if args.print_summary:
                console.print_summary(report)

            errors = report["stats"]["graphs_load_errors"]
            if errors > 0:
                console.error(f"Run finished with {errors} graph error(s).")
                sys.exit(2)
            sys.exit(0)

        except FileNotFoundError as e:
            console.critical(f"Configuration or Usage Error: {e}")
            sys.exit(1)
        except Exception as e:
            console.critical(
                f"An unexpected error occurred: {e}",
                exc_info=log_level <= logging.DEBUG,
            )
            sys.exit(2)

    def _build_config(self, args: argparse.Namespace) -> dict[str, Any]:
        overrides = {
            "exclude": args.excludes,
            "exclude_prefixes": args.exclude_prefixes,
            "match_mode": args.match_mode,
            "include_items": args.include_items,
            "concurrency": args.concurrency,
        }

        mgr = ConfigurationManager()
        return mgr.load_config(args.config, overrides)

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Denormalized API surface of rustdoc JSON output.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Example:
  doctools-surface target/doc/core.json target/doc/alloc.json target/doc/std.json \\
    --format yaml -o surface.yaml --print-summary
""",
        )

        # Core
        parser.add_argument(
            "inputs", nargs="+", help="rustdoc JSON files or directories of them."
        )
        parser.add_argument("--config", help="Path to JSON/JSONC config.")
        parser.add_argument(
            "-e",
            "--exclude",
            action="append",
            dest="excludes",
            help="Glob of JSON files to skip inside input directories. Repeatable.",
        )

        # Classification
        parser.add_argument(
            "--exclude-prefix",
            action="append",
            dest="exclude_prefixes",
            help="API path prefix left out of every classification. Repeatable.",
        )
        parser.add_argument(
            "--match", dest="match_mode", choices=["prefix", "contains"]
        )

        # Output
        parser.add_argument("--format", choices=["yaml", "csv"], default="yaml")
        out_g = parser.add_mutually_exclusive_group()
        out_g.add_argument("-o", "--output", dest="output_path")
        out_g.add_argument("--stdout", action="store_true")
        parser.add_argument(
            "--no-items", action="store_false", dest="include_items", default=None
        )
        parser.add_argument("-j", "--concurrency", type=int)

        # Log
        log_g = parser.add_mutually_exclusive_group()
        log_g.add_argument(
            "-v",
            "--verbose",
            action="store_const",
            dest="log_level",
            const=logging.DEBUG,
        )
        log_g.add_argument(
            "-q", "--quiet", action="store_const", dest="log_level", const=logging.ERROR
        )
        parser.add_argument("--no-color", action="store_true")
        parser.add_argument("--print-summary", action="store_true")

        return parser


def main() -> None:
    CliInterface().run()


if __name__ == "__main__":
    main()
