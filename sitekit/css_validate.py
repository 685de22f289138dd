"""CSS conformance checks against the W3C CSS validation service."""

from __future__ import annotations

import datetime as dt
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol

import requests

from .errors import ValidationServiceError
from .io_utils import write_json_stable
from .models import (
    CssFileResult,
    CssMessage,
    CssValidationReport,
    CssValidationSummary,
)
from .util_fs import is_minified_name, iter_files

logger = logging.getLogger(__name__)

W3C_VALIDATOR_URL = "https://jigsaw.w3.org/css-validator/validator"
DEFAULT_EXCLUDED_DIRS = ("node_modules",)
# The public service asks for at least one second between requests.
DEFAULT_DELAY = 1.5


@dataclass
class ServiceResult:
    valid: bool
    errors: List[CssMessage] = field(default_factory=list)
    warnings: List[CssMessage] = field(default_factory=list)


class TextValidator(Protocol):
    def validate_text(self, css: str) -> ServiceResult: ...


def _messages(entries: Optional[Iterable[dict]]) -> List[CssMessage]:
    messages: List[CssMessage] = []
    for entry in entries or []:
        messages.append(
            CssMessage(
                line=entry.get("line"),
                message=str(entry.get("message", "")).strip(),
                context=(str(entry["context"]).strip() or None) if entry.get("context") else None,
                type=entry.get("type"),
            )
        )
    return messages


class CssValidator:
    """Thin client for the W3C CSS validator's JSON output."""

    def __init__(
        self,
        *,
        url: str = W3C_VALIDATOR_URL,
        warning_level: int = 0,
        profile: str = "css3svg",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.warning_level = warning_level
        self.profile = profile
        self.timeout = timeout
        self.session = session or requests.Session()

    def _form(self, css: str) -> dict:
        return {
            "text": css,
            "profile": self.profile,
            "usermedium": "all",
            "output": "json",
            "lang": "en",
            "warning": "no" if self.warning_level == 0 else str(self.warning_level),
        }

    def validate_text(self, css: str) -> ServiceResult:
        files = {key: (None, value) for key, value in self._form(css).items()}
        response = self.session.post(self.url, files=files, timeout=self.timeout)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValidationServiceError(f"Validator returned non-JSON response: {exc}") from exc

        result = payload.get("cssvalidation") if isinstance(payload, dict) else None
        if not isinstance(result, dict) or "validity" not in result:
            raise ValidationServiceError("Validator response has no cssvalidation result")
        return ServiceResult(
            valid=bool(result["validity"]),
            errors=_messages(result.get("errors")),
            warnings=_messages(result.get("warnings")),
        )


def find_css_files(root: Path, excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS) -> list[Path]:
    """Find non-minified stylesheets under ``root``, skipping dependency folders."""

    return [
        path
        for path in iter_files(root, ".css", recursive=True, excluded_dirs=excluded_dirs)
        if not is_minified_name(path.name)
    ]


def validate_css_file(path: Path, validator: TextValidator) -> CssFileResult:
    """Validate one file; any failure becomes an invalid result."""

    logger.info("Validating: %s", path)
    try:
        outcome = validator.validate_text(path.read_text(encoding="utf-8"))
    except Exception as exc:
        logger.warning("Validation of %s failed: %s", path, exc)
        return CssFileResult(
            file_path=str(path),
            is_valid=False,
            errors=[CssMessage(message=f"Validation failed: {exc}")],
        )
    return CssFileResult(
        file_path=str(path),
        is_valid=outcome.valid,
        errors=outcome.errors,
        warnings=outcome.warnings,
    )


def validate_all_css(
    files: list[Path],
    validator: TextValidator,
    *,
    root: Path,
    delay: float = DEFAULT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> CssValidationReport:
    """Validate ``files`` one after another with ``delay`` seconds between requests."""

    results: list[CssFileResult] = []
    for index, path in enumerate(files):
        if index:
            sleep(delay)
        results.append(validate_css_file(path, validator))

    summary = CssValidationSummary(
        files=len(results),
        invalid=sum(1 for result in results if not result.is_valid),
        errors=sum(len(result.errors) for result in results),
        warnings=sum(len(result.warnings) for result in results),
    )
    return CssValidationReport(
        root=str(root),
        timestamp=dt.datetime.now(dt.timezone.utc).isoformat(),
        summary=summary,
        results=results,
    )


def save_report(report: CssValidationReport, path: Path) -> Optional[Path]:
    try:
        write_json_stable(path, report.to_payload())
    except OSError as exc:
        logger.error("Failed to save report: %s", exc)
        return None
    return path


def _line(message: CssMessage) -> str:
    return f"      - Line {message.line if message.line is not None else '?'}: {message.message}"


def format_results(report: CssValidationReport) -> list[str]:
    lines = ["VALIDATION RESULTS:", "=" * 50]
    for result in report.results:
        lines.append("")
        lines.append(f"{result.file_path}:")
        if result.is_valid and not result.warnings:
            lines.append("   Valid CSS - No errors or warnings")
            continue
        if result.errors:
            lines.append("   Errors:")
            lines.extend(_line(error) for error in result.errors)
        if result.warnings:
            lines.append("   Warnings:")
            lines.extend(_line(warning) for warning in result.warnings)
        if result.is_valid:
            lines.append("   Valid CSS (with warnings)")

    summary = report.summary
    lines.append("")
    lines.append("=" * 50)
    lines.append(
        f"Summary: {summary.errors} error(s), {summary.warnings} warning(s) "
        f"across {summary.files} file(s)"
    )
    if report.has_errors:
        lines.append("Validation failed - CSS errors found")
    else:
        lines.append("All CSS files are valid!")
    return lines


__all__ = [
    "CssValidator",
    "DEFAULT_DELAY",
    "ServiceResult",
    "W3C_VALIDATOR_URL",
    "find_css_files",
    "format_results",
    "save_report",
    "validate_all_css",
    "validate_css_file",
]
