"""Command line interface for dirwatch."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import TARGET_PATH_ENV, load_options
from .errors import ConfigurationError, RegistrationError, TraversalError
from .logger import configure_logging, log_event
from .session import WatchSession
from .watcher.source import default_source_factory


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        options = load_options(
            args.directory,
            recursive=args.recursive,
            log_path=args.log_file,
            verbose=args.verbose,
        )
    except ConfigurationError as exc:
        print(f"dirwatch: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    logger = configure_logging(options.log_path, level=logging.DEBUG if options.verbose else logging.INFO)

    try:
        session = WatchSession(
            options.root,
            recursive=options.recursive,
            source_factory=default_source_factory,
        )
    except (RuntimeError, OSError) as exc:
        print(f"dirwatch: {exc}", file=sys.stderr)
        return 1

    with session:
        try:
            session.init()
        except (TraversalError, RegistrationError) as exc:
            log_event(
                logger,
                level=logging.ERROR,
                action="session.init_failed",
                message=str(exc),
                path=options.root,
            )
            print(f"dirwatch: {exc}", file=sys.stderr)
            return 1
        session.run()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirwatch",
        description="Report filesystem changes under a directory tree",
        epilog=f"When DIRECTORY is omitted it is read from ${TARGET_PATH_ENV}.",
    )
    parser.add_argument("directory", nargs="?", help="Directory to watch")
    recursion = parser.add_mutually_exclusive_group()
    recursion.add_argument(
        "-r",
        "--recursive",
        dest="recursive",
        action="store_true",
        default=True,
        help="Watch the whole tree, including directories created later (default)",
    )
    recursion.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        help="Watch only the directory itself",
    )
    parser.add_argument("--log-file", type=Path, help="Write JSON log lines to a rotating file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
