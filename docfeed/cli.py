"""CLI entrypoints for docfeed commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigurationError, load_config
from .logging import configure_logging
from .orchestrator import FeedPipeline
from .sink import FileSystemFeedSink, MemoryFeedSink


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docfeed",
        description="Build Atom feeds for a documentation site from tagged pages.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Resolve every configured feed and write it to the output directory.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory holding .docfeed.yml, or the config file itself (defaults to current directory).",
    )
    build_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Override the output directory from the configuration.",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and render feeds without writing them.",
    )
    build_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report skipped pages and feeds.",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docfeed commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "build":
        dry_run = bool(getattr(args, "dry_run", False))
        try:
            config = load_config(Path(args.path))
            if args.output is not None:
                config.output_dir = args.output.expanduser().resolve()
            sink = MemoryFeedSink() if dry_run else FileSystemFeedSink(config.output_dir)
            report = FeedPipeline(sink=sink).run(config)
        except ConfigurationError as exc:
            parser.exit(1, f"docfeed build failed: {exc}\n")
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        for url in report.published:
            print(url)
        summary = f"{len(report.published)} feeds built"
        if report.skipped:
            summary += f", {len(report.skipped)} skipped"
        if report.dropped_documents:
            summary += f", {report.dropped_documents} pages without timestamps"
        if dry_run:
            summary += " (dry-run)"
        print(summary)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
