"""Asset pipeline stages for the static site build."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Tuple

import rcssmin
import rjsmin

from .errors import MinifyError
from .html_min import minify_html
from .images import compress_png, is_png
from .io_utils import compact_json_dumps
from .models import ItemResult, StageReport
from .rewrite import RewriteStats, rewrite_references
from .util_fs import (
    copy_file,
    copy_tree,
    ensure_dir,
    is_minified_name,
    iter_files,
    min_name,
    relative_posix,
    write_bytes,
    write_text,
)

logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """Source and destination layout for one build."""

    src_root: Path
    out_root: Path
    image_quality: Tuple[float, float] = (0.65, 0.8)
    json_excluded_dirs: tuple[str, ...] = ("node_modules",)
    _written: set[Path] = field(default_factory=set, init=False, repr=False)

    @property
    def assets_src(self) -> Path:
        return self.src_root / "assets"

    @property
    def assets_out(self) -> Path:
        return self.out_root / "assets"

    @property
    def css_src(self) -> Path:
        return self.src_root / "css"

    @property
    def css_out(self) -> Path:
        return self.out_root / "css"

    @property
    def js_src(self) -> Path:
        return self.src_root / "js"

    @property
    def js_out(self) -> Path:
        return self.out_root / "js"

    @property
    def html_src(self) -> Path:
        return self.src_root / "index.html"

    @property
    def html_out(self) -> Path:
        return self.out_root / "index.html"

    def source_label(self, path: Path) -> str:
        return relative_posix(path, self.src_root)

    def output_label(self, path: Path) -> str:
        return relative_posix(path, self.out_root)

    def record_write(self, path: Path) -> Path:
        self._written.add(path.resolve())
        return path

    def was_written(self, output: str) -> bool:
        """Whether ``output`` (relative to the out root) was written in this build."""

        return (self.out_root / output).resolve() in self._written


def _skip(report: StageReport, reason: str) -> StageReport:
    report.status = "skipped"
    report.error = reason
    logger.info("Skipping %s stage: %s", report.stage, reason)
    return report


def _copy_item(ctx: BuildContext, source: Path, target: Path) -> ItemResult:
    ctx.record_write(copy_file(source, target))
    size = source.stat().st_size
    return ItemResult(
        source=ctx.source_label(source),
        output=ctx.output_label(target),
        status="copied",
        bytes_in=size,
        bytes_out=size,
    )


def minify_images(ctx: BuildContext, report: StageReport) -> StageReport:
    """Compress PNG files under assets/ and copy every other asset as-is.

    When compression raises, the whole assets tree is copied verbatim instead.
    """

    if not ctx.assets_src.is_dir():
        return _skip(report, f"{ctx.assets_src} not found")

    logger.info("Optimizing images in %s", ctx.assets_src)
    ensure_dir(ctx.assets_out)
    items: list[ItemResult] = []
    try:
        for source in sorted(p for p in ctx.assets_src.rglob("*") if p.is_file()):
            target = ctx.assets_out / source.relative_to(ctx.assets_src)
            if not is_png(source):
                items.append(_copy_item(ctx, source, target))
                continue

            raw = source.read_bytes()
            compressed = compress_png(raw, ctx.image_quality)
            if not compressed.accepted:
                ctx.record_write(write_bytes(target, raw))
                items.append(
                    ItemResult(
                        source=ctx.source_label(source),
                        output=ctx.output_label(target),
                        status="fallback",
                        reason=(
                            f"quality {compressed.quality:.2f} below "
                            f"minimum {ctx.image_quality[0]:.2f}"
                        ),
                        bytes_in=len(raw),
                        bytes_out=len(raw),
                    )
                )
                continue

            ctx.record_write(write_bytes(target, compressed.data))
            items.append(
                ItemResult(
                    source=ctx.source_label(source),
                    output=ctx.output_label(target),
                    bytes_in=len(raw),
                    bytes_out=len(compressed.data),
                )
            )
    except Exception as exc:
        logger.error("Error optimizing images: %s", exc)
        logger.warning("Falling back to copying images as-is")
        reason = f"{type(exc).__name__}: {exc}"
        items = []
        for target in copy_tree(ctx.assets_src, ctx.assets_out):
            ctx.record_write(target)
            source = ctx.assets_src / target.relative_to(ctx.assets_out)
            items.append(
                ItemResult(
                    source=ctx.source_label(source),
                    output=ctx.output_label(target),
                    status="fallback",
                    reason=reason,
                )
            )

    report.items = items
    optimized = report.count("minified")
    logger.info("Optimized %d image(s)", optimized)
    return report


def _minify_text_files(
    ctx: BuildContext,
    report: StageReport,
    *,
    src_dir: Path,
    out_dir: Path,
    suffix: str,
    minifier: Callable[[str], str],
) -> StageReport:
    if not src_dir.is_dir():
        return _skip(report, f"{src_dir} not found")

    ensure_dir(out_dir)
    for source in iter_files(src_dir, suffix):
        if is_minified_name(source.name):
            report.items.append(_copy_item(ctx, source, out_dir / source.name))
            continue

        content = source.read_text(encoding="utf-8")
        try:
            minified = minifier(content)
        except Exception as exc:
            raise MinifyError(source.name, str(exc)) from exc

        output_name = min_name(source.name)
        target = ctx.record_write(write_text(out_dir / output_name, minified))
        report.mapping[source.name] = output_name
        report.items.append(
            ItemResult(
                source=ctx.source_label(source),
                output=ctx.output_label(target),
                bytes_in=len(content.encode("utf-8")),
                bytes_out=len(minified.encode("utf-8")),
            )
        )
        logger.info("Minified %s: %s -> %s", report.stage.upper(), source.name, output_name)
    return report


def minify_css(ctx: BuildContext, report: StageReport) -> StageReport:
    """Minify top-level stylesheets in css/ into ``*.min.css``."""

    return _minify_text_files(
        ctx, report, src_dir=ctx.css_src, out_dir=ctx.css_out, suffix=".css", minifier=rcssmin.cssmin
    )


def minify_js(ctx: BuildContext, report: StageReport) -> StageReport:
    """Minify top-level scripts in js/ into ``*.min.js``."""

    return _minify_text_files(
        ctx, report, src_dir=ctx.js_src, out_dir=ctx.js_out, suffix=".js", minifier=rjsmin.jsmin
    )


def _compact_json(raw: bytes) -> bytes:
    return compact_json_dumps(json.loads(raw.decode("utf-8"))).encode("utf-8")


def minify_json_text(content: str) -> str:
    """Reserialize JSON compactly. Malformed input is returned unchanged."""

    try:
        return _compact_json(content.encode("utf-8")).decode("utf-8")
    except ValueError as exc:
        logger.warning("Error minifying JSON: %s", exc)
        return content


def minify_json(ctx: BuildContext, report: StageReport) -> StageReport:
    """Minify every JSON file under the source root, keeping relative paths."""

    if not ctx.src_root.is_dir():
        return _skip(report, f"{ctx.src_root} not found")

    for source in iter_files(
        ctx.src_root, ".json", recursive=True, excluded_dirs=ctx.json_excluded_dirs
    ):
        relative = ctx.source_label(source)
        if is_minified_name(source.name):
            report.items.append(_copy_item(ctx, source, ctx.out_root / relative))
            continue

        raw = source.read_bytes()
        output = min_name(relative)
        target = ctx.out_root / output
        try:
            encoded = _compact_json(raw)
        except ValueError as exc:
            logger.warning("Error minifying JSON %s, keeping original: %s", relative, exc)
            ctx.record_write(write_bytes(target, raw))
            item = ItemResult(
                source=relative,
                output=output,
                status="fallback",
                reason=str(exc),
                bytes_in=len(raw),
                bytes_out=len(raw),
            )
        else:
            ctx.record_write(write_bytes(target, encoded))
            item = ItemResult(
                source=relative, output=output, bytes_in=len(raw), bytes_out=len(encoded)
            )
            logger.info("Minified JSON: %s", relative)
        report.mapping[relative] = output
        report.items.append(item)
    return report


def _written_only(ctx: BuildContext, mapping: Mapping[str, str], prefix: str = "") -> dict[str, str]:
    """Drop mapping entries whose output file was not produced by this build."""

    kept: dict[str, str] = {}
    for original, output in mapping.items():
        if ctx.was_written(f"{prefix}{output}"):
            kept[original] = output
        else:
            logger.warning("Ignoring mapping %s -> %s: output was not written", original, output)
    return kept


def minify_index_html(
    ctx: BuildContext,
    report: StageReport,
    *,
    css_map: Mapping[str, str],
    js_map: Mapping[str, str],
    json_map: Mapping[str, str],
) -> StageReport:
    """Rewrite asset references in index.html, then minify it."""

    if not ctx.html_src.is_file():
        return _skip(report, f"{ctx.html_src} not found")

    content = ctx.html_src.read_text(encoding="utf-8")
    stats = RewriteStats()
    rewritten = rewrite_references(
        content,
        _written_only(ctx, css_map, "css/"),
        _written_only(ctx, js_map, "js/"),
        _written_only(ctx, json_map),
        stats=stats,
    )
    minified = minify_html(rewritten)
    target = ctx.record_write(write_text(ctx.html_out, minified))
    report.items.append(
        ItemResult(
            source=ctx.source_label(ctx.html_src),
            output=ctx.output_label(target),
            bytes_in=len(content.encode("utf-8")),
            bytes_out=len(minified.encode("utf-8")),
        )
    )
    logger.info(
        "Minified HTML: %s (%d reference(s) rewritten)", ctx.output_label(target), stats.total
    )
    return report


__all__ = [
    "BuildContext",
    "minify_css",
    "minify_images",
    "minify_index_html",
    "minify_js",
    "minify_json",
    "minify_json_text",
]
