"""Build orchestrator running the asset stages in dependency order."""

from __future__ import annotations

import logging
from typing import Callable

from .build import (
    BuildContext,
    minify_css,
    minify_images,
    minify_index_html,
    minify_js,
    minify_json,
)
from .config import SiteConfig
from .errors import StageError
from .models import BuildReport, StageReport
from .util_fs import ensure_dir

logger = logging.getLogger(__name__)

StageFunc = Callable[[BuildContext, StageReport], StageReport]

# Stages that do not depend on any other stage; HTML runs after all of them.
ASSET_STAGES: tuple[tuple[str, StageFunc], ...] = (
    ("images", minify_images),
    ("css", minify_css),
    ("js", minify_js),
    ("json", minify_json),
)
STAGE_ORDER = tuple(name for name, _ in ASSET_STAGES) + ("html",)


def run_stage(name: str, func: StageFunc, ctx: BuildContext) -> StageReport:
    """Run one stage, turning any exception into a failed report.

    A failed stage contributes no filename mapping, so later stages never
    rewrite references to its partial output.
    """

    report = StageReport(stage=name)
    try:
        return func(ctx, report)
    except Exception as exc:
        logger.exception("Error during %s stage", name)
        report.status = "failed"
        report.error = f"{type(exc).__name__}: {exc}"
        report.mapping = {}
        return report


def context_from_config(config: SiteConfig) -> BuildContext:
    return BuildContext(
        src_root=config.source_root,
        out_root=config.dest_root,
        image_quality=config.image_quality,
        json_excluded_dirs=tuple(config.json_excluded_dirs),
    )


def run_pipeline(config: SiteConfig) -> BuildReport:
    """Produce a minified mirror of ``config.source_root`` in ``config.dest_root``.

    Stages run as images, CSS, JS, JSON, then HTML. A failing stage is logged
    and recorded, and the remaining stages still run.
    """

    ctx = context_from_config(config)
    try:
        ensure_dir(ctx.out_root)
    except OSError as exc:
        raise StageError("setup", f"cannot create {ctx.out_root}: {exc}") from exc
    build = BuildReport(source_root=str(ctx.src_root), dest_root=str(ctx.out_root))

    for name, func in ASSET_STAGES:
        build.stages.append(run_stage(name, func, ctx))

    css_stage, js_stage, json_stage = (build.stage(name) for name in ("css", "js", "json"))

    def _html(ctx: BuildContext, report: StageReport) -> StageReport:
        return minify_index_html(
            ctx,
            report,
            css_map=css_stage.mapping if css_stage else {},
            js_map=js_stage.mapping if js_stage else {},
            json_map=json_stage.mapping if json_stage else {},
        )

    build.stages.append(run_stage("html", _html, ctx))
    return build


def format_summary(build: BuildReport) -> list[str]:
    """Human readable lines describing a finished build."""

    lines: list[str] = []
    for stage in build.stages:
        if stage.status == "skipped":
            lines.append(f"[{stage.stage}] skipped ({stage.error})")
            continue
        if stage.status == "failed":
            lines.append(f"[{stage.stage}] FAILED: {stage.error}")
            continue
        counts = ", ".join(
            f"{stage.count(status)} {status}"
            for status in ("minified", "copied", "fallback")
            if stage.count(status)
        )
        lines.append(f"[{stage.stage}] ok ({counts or 'no files'})")
    return lines


__all__ = [
    "ASSET_STAGES",
    "STAGE_ORDER",
    "context_from_config",
    "format_summary",
    "run_pipeline",
    "run_stage",
]
