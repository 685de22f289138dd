"""Accessibility audit driven by Playwright and axe-core.

The browser is launched once per audit and closed on every exit path,
including failed launches of the page, navigation timeouts and axe errors.
"""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, ContextManager, Iterator, Optional

import requests
from playwright.sync_api import sync_playwright

from .config import SiteConfig
from .errors import AuditError
from .io_utils import write_json_stable
from .models import AccessibilityReport, AccessibilitySummary, Finding
from .util_fs import ensure_dir

logger = logging.getLogger(__name__)

AXE_VERSION = "4.9.1"
AXE_CDN = f"https://cdnjs.cloudflare.com/ajax/libs/axe-core/{AXE_VERSION}/axe.min.js"
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

AXE_RUN_SCRIPT = "async (options) => await axe.run(document, options)"

BrowserLauncher = Callable[[SiteConfig], ContextManager[Any]]


def _timestamp() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


@contextmanager
def launch_chromium(config: SiteConfig) -> Iterator[Any]:
    """Start the Playwright driver and yield a headless Chromium browser.

    Closing the browser is left to the caller; the driver is stopped when the
    context exits.
    """

    with sync_playwright() as playwright:
        yield playwright.chromium.launch(headless=True, args=BROWSER_ARGS)


def resolve_axe_script(config: SiteConfig) -> Path:
    """Return a local axe-core script, downloading it once if needed."""

    if config.axe_script is not None:
        if not config.axe_script.is_file():
            raise AuditError(f"axe-core script not found: {config.axe_script}")
        return config.axe_script

    cached = config.axe_cache_dir / f"axe-{AXE_VERSION}.min.js"
    if cached.is_file() and cached.stat().st_size > 0:
        return cached

    logger.info("Downloading axe-core %s from %s", AXE_VERSION, AXE_CDN)
    response = requests.get(AXE_CDN, timeout=config.request_timeout)
    response.raise_for_status()
    ensure_dir(cached.parent)
    cached.write_bytes(response.content)
    return cached


def axe_options(config: SiteConfig) -> dict:
    return {
        "runOnly": {"type": "tag", "values": list(config.axe_tags)},
        "rules": {rule: {"enabled": True} for rule in config.axe_rules},
    }


def _finding(violation: dict) -> Finding:
    return Finding(
        id=violation.get("id", ""),
        impact=violation.get("impact"),
        description=violation.get("description", ""),
        help=violation.get("helpUrl"),
        nodes=len(violation.get("nodes") or []),
    )


def build_report(url: str, timestamp: str, page_title: Optional[str], results: dict) -> AccessibilityReport:
    """Summarize raw axe results into an AccessibilityReport."""

    violations = results.get("violations") or []
    passes = len(results.get("passes") or [])
    incomplete = len(results.get("incomplete") or [])
    return AccessibilityReport(
        url=url,
        timestamp=timestamp,
        page_title=page_title,
        summary=AccessibilitySummary(
            violations=len(violations), passes=passes, incomplete=incomplete
        ),
        violations=[_finding(v) for v in violations],
        passes=passes,
        incomplete=incomplete,
        raw_results=results,
    )


def _audit_page(browser: Any, url: str, config: SiteConfig, axe_script: Path, timestamp: str) -> AccessibilityReport:
    page = browser.new_page(viewport=dict(config.viewport))
    page.goto(url, wait_until="networkidle", timeout=config.navigation_timeout_ms)
    page.add_script_tag(path=str(axe_script))
    results = page.evaluate(AXE_RUN_SCRIPT, axe_options(config))
    if not isinstance(results, dict):
        raise AuditError("axe.run returned no results")
    return build_report(url, timestamp, page.title(), results)


def run_accessibility_audit(
    url: str,
    config: SiteConfig,
    *,
    launcher: Optional[BrowserLauncher] = None,
) -> AccessibilityReport:
    """Audit ``url`` and return the report.

    Failures never raise: they are returned as a report carrying ``error``.
    """

    launcher = launcher or launch_chromium
    timestamp = _timestamp()
    logger.info("Testing accessibility for: %s", url)
    try:
        axe_script = resolve_axe_script(config)
        with launcher(config) as browser:
            try:
                return _audit_page(browser, url, config, axe_script, timestamp)
            finally:
                browser.close()
    except Exception as exc:
        logger.error("Accessibility test failed: %s", exc)
        return AccessibilityReport(url=url, timestamp=timestamp, error=str(exc))


def save_report(report: AccessibilityReport, path: Path) -> Optional[Path]:
    """Write the report as indented JSON; returns None if it cannot be written."""

    try:
        write_json_stable(path, report.to_payload())
    except OSError as exc:
        logger.error("Failed to save report: %s", exc)
        return None
    logger.info("Report saved to: %s", path)
    return path


def format_summary(report: AccessibilityReport) -> list[str]:
    if report.error:
        return [f"Test failed: {report.error}"]

    summary = report.summary or AccessibilitySummary()
    lines = [
        "Accessibility Audit Summary:",
        "=" * 30,
        f"URL: {report.url}",
        f"Title: {report.page_title}",
        f"Timestamp: {report.timestamp}",
        "",
        "Results:",
        f"  Violations: {summary.violations} issues found",
        f"  Passes: {summary.passes} checks passed",
        f"  Incomplete: {summary.incomplete} checks need review",
        "",
    ]
    if report.violations:
        lines.append("Violations found:")
        for index, violation in enumerate(report.violations, start=1):
            lines.append(f"  {index}. {violation.id} ({violation.impact}) - {violation.description}")
            lines.append(f"     Affects {violation.nodes} element(s)")
            lines.append(f"     Help: {violation.help}")
    else:
        lines.append("No violations found!")
    return lines


def exit_code(report: AccessibilityReport) -> int:
    if report.error:
        return 1
    return 1 if report.violations else 0


__all__ = [
    "AXE_CDN",
    "AXE_VERSION",
    "axe_options",
    "build_report",
    "exit_code",
    "format_summary",
    "launch_chromium",
    "resolve_axe_script",
    "run_accessibility_audit",
    "save_report",
]
