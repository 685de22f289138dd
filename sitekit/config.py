"""Configuration record for the build pipeline and audit runners."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

DEFAULT_CONFIG_FILE = Path("sitekit.yaml")
DEFAULT_TARGET_URL = "https://danielsofran.github.io/Contrast/"


class SiteConfig(BaseModel):
    """Options shared by the build, accessibility and CSS scripts."""

    source_root: Path = Field(Path("src"), alias="sourceRoot")
    dest_root: Path = Field(Path("dist"), alias="destRoot")
    target_url: str = Field(DEFAULT_TARGET_URL, alias="targetUrl")
    report_path: Path = Field(Path("accessibility-report.json"), alias="reportPath")

    strict: bool = Field(
        False, description="Exit non-zero when any build stage fails."
    )
    image_quality: Tuple[float, float] = Field(
        (0.65, 0.8),
        alias="imageQuality",
        description="Accepted quality range for lossy PNG compression.",
    )
    json_excluded_dirs: List[str] = Field(
        default_factory=lambda: ["node_modules"], alias="jsonExcludedDirs"
    )

    navigation_timeout_ms: int = Field(30000, alias="navigationTimeoutMs")
    viewport: Dict[str, int] = Field(
        default_factory=lambda: {"width": 1280, "height": 800}
    )
    axe_tags: List[str] = Field(
        default_factory=lambda: ["wcag2a", "wcag2aa", "best-practice"],
        alias="axeTags",
    )
    axe_rules: List[str] = Field(
        default_factory=lambda: [
            "color-contrast",
            "image-alt",
            "label",
            "link-name",
            "button-name",
        ],
        alias="axeRules",
    )
    axe_script: Optional[Path] = Field(
        None,
        alias="axeScript",
        description="Local axe.min.js; downloaded and cached when unset.",
    )
    axe_cache_dir: Path = Field(Path(".sitekit-cache"), alias="axeCacheDir")

    css_root: Path = Field(Path("."), alias="cssRoot")
    css_report_path: Path = Field(
        Path("css-validation-report.json"), alias="cssReportPath"
    )
    css_excluded_dirs: List[str] = Field(
        default_factory=lambda: ["node_modules"], alias="cssExcludedDirs"
    )
    css_request_delay: float = Field(1.5, alias="cssRequestDelay")
    css_warning_level: int = Field(0, alias="cssWarningLevel")
    request_timeout: float = Field(30.0, alias="requestTimeout")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("image_quality")
    @classmethod
    def _check_quality(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if not 0.0 <= low <= high <= 1.0:
            raise ValueError("image quality must satisfy 0 <= min <= max <= 1")
        return value

    @field_validator("css_warning_level")
    @classmethod
    def _check_warning_level(cls, value: int) -> int:
        if value not in (0, 1, 2, 3):
            raise ValueError("cssWarningLevel must be 0, 1, 2 or 3")
        return value


def load_config(path: Optional[Path] = None) -> SiteConfig:
    """Load configuration from YAML, falling back to the built-in defaults.

    An explicit ``path`` must exist. Without one, ``sitekit.yaml`` in the
    working directory is used when present.
    """

    if path is None:
        if not DEFAULT_CONFIG_FILE.exists():
            return SiteConfig()
        path = DEFAULT_CONFIG_FILE
    elif not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of options.")
    try:
        return SiteConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc


__all__ = ["DEFAULT_CONFIG_FILE", "DEFAULT_TARGET_URL", "SiteConfig", "load_config"]
