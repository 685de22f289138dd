"""Pydantic models for build and audit reports."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ItemStatus = Literal["minified", "copied", "fallback"]
StageStatus = Literal["ok", "failed", "skipped"]


class ItemResult(BaseModel):
    """Outcome of processing one source file inside a stage."""

    source: str = Field(..., description="Source path relative to the source root.")
    output: Optional[str] = Field(
        None, description="Output path relative to the destination root, if written."
    )
    status: ItemStatus = Field(
        "minified",
        description=(
            "minified, copied (passed through unchanged), fallback (original"
            " content kept after an error)."
        ),
    )
    reason: Optional[str] = Field(
        None, description="Why a fallback was used."
    )
    bytes_in: Optional[int] = Field(None, alias="bytesIn")
    bytes_out: Optional[int] = Field(None, alias="bytesOut")

    model_config = ConfigDict(populate_by_name=True)


class StageReport(BaseModel):
    """Result of one asset pipeline stage."""

    stage: str = Field(..., description="Stage name (images, css, js, json, html).")
    status: StageStatus = "ok"
    items: List[ItemResult] = Field(default_factory=list)
    mapping: Dict[str, str] = Field(
        default_factory=dict,
        description="Original to output relative path for referenced asset classes.",
    )
    error: Optional[str] = Field(None, description="Failure or skip reason.")

    def count(self, status: ItemStatus) -> int:
        return sum(1 for item in self.items if item.status == status)


class BuildReport(BaseModel):
    """Aggregate of every stage executed by one pipeline run."""

    source_root: str = Field(..., alias="sourceRoot")
    dest_root: str = Field(..., alias="destRoot")
    stages: List[StageReport] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def failed_stages(self) -> List[StageReport]:
        return [stage for stage in self.stages if stage.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed_stages

    def stage(self, name: str) -> Optional[StageReport]:
        for stage in self.stages:
            if stage.stage == name:
                return stage
        return None


class Finding(BaseModel):
    """A single accessibility rule violation."""

    id: str = Field(..., description="axe rule identifier.")
    impact: Optional[str] = Field(None, description="Severity reported by axe.")
    description: str = Field("", description="Human readable rule description.")
    help: Optional[str] = Field(None, description="URL with remediation guidance.")
    nodes: int = Field(0, description="Number of affected elements.")


class AccessibilitySummary(BaseModel):
    violations: int = 0
    passes: int = 0
    incomplete: int = 0


class AccessibilityReport(BaseModel):
    """Schema for accessibility-report.json."""

    url: str = Field(..., description="Audited page URL.")
    timestamp: str = Field(..., description="ISO timestamp of the audit.")
    page_title: Optional[str] = Field(None, alias="pageTitle")
    summary: Optional[AccessibilitySummary] = None
    violations: List[Finding] = Field(default_factory=list)
    passes: int = 0
    incomplete: int = 0
    raw_results: Optional[Dict[str, Any]] = Field(None, alias="rawResults")
    error: Optional[str] = Field(
        None, description="Set when the audit could not run to completion."
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class CssMessage(BaseModel):
    """One error or warning returned by the CSS validator."""

    line: Optional[int] = None
    message: str = ""
    context: Optional[str] = None
    type: Optional[str] = None


class CssFileResult(BaseModel):
    """Validation outcome for one stylesheet."""

    file_path: str = Field(..., alias="filePath")
    is_valid: bool = Field(..., alias="isValid")
    errors: List[CssMessage] = Field(default_factory=list)
    warnings: List[CssMessage] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class CssValidationSummary(BaseModel):
    files: int = 0
    invalid: int = 0
    errors: int = 0
    warnings: int = 0


class CssValidationReport(BaseModel):
    """Schema for css-validation-report.json."""

    root: str
    timestamp: str
    summary: CssValidationSummary = Field(default_factory=CssValidationSummary)
    results: List[CssFileResult] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(not result.is_valid for result in self.results)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "AccessibilityReport",
    "AccessibilitySummary",
    "BuildReport",
    "CssFileResult",
    "CssMessage",
    "CssValidationReport",
    "CssValidationSummary",
    "Finding",
    "ItemResult",
    "ItemStatus",
    "StageReport",
    "StageStatus",
]
