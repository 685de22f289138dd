"""CLI entrypoint for minifying the site into the destination directory."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import SiteConfig, load_config
from .errors import ConfigError
from .logs import setup_logging
from .pipeline import format_summary, run_pipeline

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a sitekit.yaml file (default: ./sitekit.yaml when present).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any stage fails instead of keeping the partial build.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def load_cli_config(path: Optional[Path]) -> SiteConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc


def run(args: argparse.Namespace) -> int:
    setup_logging(args.verbose)
    config = load_cli_config(args.config)
    if args.strict:
        config = config.model_copy(update={"strict": True})

    try:
        report = run_pipeline(config)
    except Exception:
        logger.exception("Error during minification")
        return 1

    for line in format_summary(report):
        print(line)

    failed = [stage.stage for stage in report.failed_stages]
    if failed:
        print(
            f"Build finished with failed stage(s): {', '.join(failed)}. "
            "Output in the destination directory is only partially minified.",
            file=sys.stderr,
        )
        if config.strict:
            return 1
    else:
        print("Minification complete!")
    print(f"Output saved to: {config.dest_root}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Minify images, CSS, JS, JSON and HTML into dist/.")
    add_arguments(parser)
    return run(parser.parse_args(argv))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
