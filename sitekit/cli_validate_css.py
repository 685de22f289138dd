"""CLI entrypoint for validating stylesheets with the W3C CSS validator."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .cli_build import load_cli_config
from .css_validate import (
    CssValidator,
    find_css_files,
    format_results,
    save_report,
    validate_all_css,
)
from .logs import setup_logging

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, default=None, help="Path to a sitekit.yaml file.")
    parser.add_argument("--root", type=Path, default=None, help="Directory searched for CSS files.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def run(args: argparse.Namespace, *, validator: Optional[CssValidator] = None) -> int:
    setup_logging(args.verbose)
    config = load_cli_config(args.config)
    root = args.root or config.css_root

    try:
        print("Searching for CSS files...")
        files = find_css_files(root, config.css_excluded_dirs)
        if not files:
            print("No CSS files found.", file=sys.stderr)
            return 1

        print(f"Found {len(files)} CSS file(s):")
        for path in files:
            print(f"   - {path}")
        print()

        validator = validator or CssValidator(
            warning_level=config.css_warning_level, timeout=config.request_timeout
        )
        report = validate_all_css(files, validator, root=root, delay=config.css_request_delay)
    except Exception:
        logger.exception("Unexpected error")
        return 1

    print()
    for line in format_results(report):
        print(line)
    save_report(report, config.css_report_path)
    return 1 if report.has_errors else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate non-minified CSS files with the W3C validator.")
    add_arguments(parser)
    return run(parser.parse_args(argv))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
