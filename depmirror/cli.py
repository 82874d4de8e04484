"""CLI entrypoints for depmirror commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError
from .errors import AnalysisError
from .logging import configure_logging
from .pipeline import ProjectAnalyzer


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path inside the project (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depmirror",
        description="Mirror source files into documentation paths and map their dependencies.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Build the dependency reference graph for a project.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write reference data to this file instead of the configured output.",
    )
    analyze_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the reference data as JSON instead of writing it.",
    )

    map_parser = subparsers.add_parser(
        "map",
        help="Print the mirrored document path for source files.",
    )
    _add_verbose_option(map_parser, suppress_default=True)
    map_parser.add_argument("files", nargs="+", help="Source files relative to the project root.")
    map_parser.add_argument(
        "--root",
        default=".",
        help="Path inside the project (defaults to current directory).",
    )

    verify_parser = subparsers.add_parser(
        "verify",
        help="Check that every source path round-trips through its document path.",
    )
    _add_verbose_option(verify_parser, suppress_default=True)
    _add_path_argument(verify_parser)

    table_parser = subparsers.add_parser(
        "table",
        help="Print the project mapping table as JSON.",
    )
    _add_verbose_option(table_parser, suppress_default=True)
    _add_path_argument(table_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for depmirror commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)
    except ValueError as exc:
        parser.error(str(exc))

    analyzer = ProjectAnalyzer()

    try:
        if args.command == "analyze":
            if args.stdout:
                data = analyzer.analyze(args.path)
                _print_json(data.to_dict())
            else:
                outcome = analyzer.run_analysis(args.path, output=args.output)
                stats = outcome.data.statistics
                print(
                    f"Analyzed {stats.total_files} files "
                    f"({stats.total_dependencies} dependencies, {stats.orphaned_files} orphaned, "
                    f"{stats.circular_dependencies} cycles); "
                    f"reference data at {_relativize(outcome.output_path)}"
                )
        elif args.command == "map":
            mapping = analyzer.map_files(args.root, args.files)
            for source, document in mapping.items():
                print(f"{_relativize(Path(source))} -> {_relativize(Path(document))}")
            if len(mapping) < len(set(args.files)):
                parser.exit(1, "Some files could not be mapped. Run with --verbose for details.\n")
        elif args.command == "verify":
            report = analyzer.verify_all(args.path)
            print(
                f"{report.perfect_matches}/{report.total_files} files round-trip exactly"
            )
            for failure in report.failures:
                print(f"  {failure['source_file']}: {failure['error']}")
            if not report.ok:
                parser.exit(1)
        elif args.command == "table":
            _print_json(analyzer.generate_project_mapping_table(args.path))
        elif args.command == "serve":
            from .service import run_service

            run_service(host=args.host, port=args.port)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (AnalysisError, ConfigError) as exc:
        parser.exit(1, f"depmirror {args.command} failed: {exc}\n")
    except RuntimeError as exc:
        parser.exit(1, f"depmirror {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
