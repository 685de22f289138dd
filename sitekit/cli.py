"""Command-line interface for sitekit."""

from __future__ import annotations

import argparse
from typing import Iterable, Optional

from . import cli_audit_a11y, cli_build, cli_validate_css


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitekit", description="Static site minification and quality checks."
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser_ = subparsers.add_parser(
        "build",
        help="Minify the site into the destination directory.",
        description="Run the image, CSS, JS, JSON and HTML stages.",
    )
    cli_build.add_arguments(build_parser_)
    build_parser_.set_defaults(func=cli_build.run)

    a11y_parser = subparsers.add_parser(
        "audit-a11y",
        help="Run an accessibility audit against the target URL.",
        description="Load the target URL in headless Chromium and run axe-core.",
    )
    cli_audit_a11y.add_arguments(a11y_parser)
    a11y_parser.set_defaults(func=cli_audit_a11y.run)

    css_parser = subparsers.add_parser(
        "validate-css",
        help="Validate stylesheets with the W3C CSS validator.",
        description="Validate every non-minified CSS file, one request at a time.",
    )
    cli_validate_css.add_arguments(css_parser)
    css_parser.set_defaults(func=cli_validate_css.run)

    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 2


__all__ = ["build_parser", "main"]
