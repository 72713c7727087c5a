"""CLI shell for counting and printing the lines of (gzipped) text files."""
from __future__ import annotations

import argparse
import logging
from itertools import islice
from pathlib import Path
from typing import Optional

from common.config import load_reader_settings
from common.errors import BackendError
from common.models import ReaderSettings
from core.lines import LinesView

logger = logging.getLogger(__name__)


def build_view(args: argparse.Namespace) -> LinesView:
    settings: ReaderSettings = load_reader_settings(
        config_path=Path(args.config) if args.config else None,
        overrides={"encoding": args.encoding, "error_policy": args.error_policy},
    )
    return LinesView.from_settings(Path(args.path), settings, compressed=args.gzip)


def command_count(args: argparse.Namespace) -> None:
    view = build_view(args)
    print(view.count())


def command_cat(args: argparse.Namespace) -> None:
    view = build_view(args)
    with view.new_stream() as stream:
        for line in stream:
            print(line)


def command_head(args: argparse.Namespace) -> None:
    view = build_view(args)
    limit = max(0, args.lines)
    with view.new_stream() as stream:
        for line in islice(stream, limit):
            print(line)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Text file to read")
    parser.add_argument("--config", help="Reader configuration JSON")
    parser.add_argument("--encoding", help="Text encoding (defaults to the configured one)")
    parser.add_argument(
        "--error-policy",
        choices=["fail-fast", "strict", "replace"],
        help="How to treat undecodable bytes",
    )
    parser.add_argument(
        "--gzip",
        dest="gzip",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force gzip decompression on/off (default: by configuration or .gz suffix)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filelines", description="Stream the lines of plain or gzipped text files"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command")

    count = subparsers.add_parser("count", help="Print the number of lines")
    _add_common_arguments(count)
    count.set_defaults(func=command_count)

    cat = subparsers.add_parser("cat", help="Print every line")
    _add_common_arguments(cat)
    cat.set_defaults(func=command_cat)

    head = subparsers.add_parser("head", help="Print the first lines")
    _add_common_arguments(head)
    head.add_argument("-n", "--lines", type=int, default=10, help="Number of lines to print")
    head.set_defaults(func=command_head)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except BackendError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
