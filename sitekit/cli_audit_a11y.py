"""CLI entrypoint for the accessibility audit."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .a11y import exit_code, format_summary, run_accessibility_audit, save_report
from .cli_build import load_cli_config
from .logs import setup_logging

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, default=None, help="Path to a sitekit.yaml file.")
    parser.add_argument("--url", default=None, help="Override the audited URL.")
    parser.add_argument("--report", type=Path, default=None, help="Override the report path.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def run(args: argparse.Namespace) -> int:
    setup_logging(args.verbose)
    config = load_cli_config(args.config)
    url = args.url or config.target_url
    report_path = args.report or config.report_path

    print("Starting accessibility audit...")
    try:
        report = run_accessibility_audit(url, config)
        save_report(report, report_path)
    except Exception:
        logger.exception("Unhandled error")
        return 1

    print()
    for line in format_summary(report):
        print(line)
    return exit_code(report)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run an axe-core accessibility audit against a URL.")
    add_arguments(parser)
    return run(parser.parse_args(argv))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
