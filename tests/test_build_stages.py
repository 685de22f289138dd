from pathlib import Path

import pytest
import rcssmin
import rjsmin
from PIL import Image, PngImagePlugin
from pydantic import ValidationError

import sitekit.build as build_module
from sitekit.build import BuildContext, minify_css, minify_images, minify_index_html, minify_js
from sitekit.errors import MinifyError
from sitekit.models import ItemResult, StageReport


def _ctx(tmp_path: Path, **kwargs) -> BuildContext:
    src = tmp_path / "src"
    src.mkdir(exist_ok=True)
    return BuildContext(src_root=src, out_root=tmp_path / "dist", **kwargs)


def _write_png(path: Path, *, noisy: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", (64, 64), (255, 255, 255))
    if noisy:
        for x in range(64):
            for y in range(64):
                image.putpixel((x, y), ((x * 7) % 256, (y * 13) % 256, (x * y) % 256))
    else:
        for x in range(32):
            for y in range(64):
                image.putpixel((x, y), (10, 20, 200))
    info = PngImagePlugin.PngInfo()
    info.add_text("Comment", "exported by an editor")
    image.save(path, format="PNG", pnginfo=info)


def test_css_stage_writes_min_files_and_mapping(tmp_path: Path):
    ctx = _ctx(tmp_path)
    ctx.css_src.mkdir()
    (ctx.css_src / "app.css").write_text("body {\n  color: red;\n}\n", encoding="utf-8")
    (ctx.css_src / "vendor.min.css").write_text("a{b:c}", encoding="utf-8")
    (ctx.css_src / "notes.txt").write_text("ignored", encoding="utf-8")

    report = minify_css(ctx, StageReport(stage="css"))

    assert report.mapping == {"app.css": "app.min.css"}
    minified = (ctx.css_out / "app.min.css").read_text(encoding="utf-8")
    assert minified.startswith("body{color:red")
    assert "\n" not in minified
    assert (ctx.css_out / "vendor.min.css").exists()
    assert not (ctx.css_out / "notes.txt").exists()
    assert [item.status for item in report.items] == ["minified", "copied"]


def test_js_stage_aborts_on_minifier_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    ctx = _ctx(tmp_path)
    ctx.js_src.mkdir()
    (ctx.js_src / "app.js").write_text("function (", encoding="utf-8")

    def _boom(_script: str) -> str:
        raise ValueError("Unexpected token")

    monkeypatch.setattr(rjsmin, "jsmin", _boom)

    with pytest.raises(MinifyError, match="app.js"):
        minify_js(ctx, StageReport(stage="js"))


def test_missing_source_dir_skips_stage(tmp_path: Path):
    ctx = _ctx(tmp_path)

    report = minify_css(ctx, StageReport(stage="css"))

    assert report.status == "skipped"
    assert report.mapping == {}
    assert not ctx.css_out.exists()


@pytest.mark.parametrize("stage, attr", [(minify_css, "css"), (minify_js, "js")])
def test_empty_source_dir_gives_empty_output_and_mapping(tmp_path: Path, stage, attr: str):
    ctx = _ctx(tmp_path)
    getattr(ctx, f"{attr}_src").mkdir()

    report = stage(ctx, StageReport(stage=attr))

    out_dir = getattr(ctx, f"{attr}_out")
    assert report.status == "ok"
    assert report.mapping == {}
    assert out_dir.is_dir()
    assert list(out_dir.iterdir()) == []


def test_empty_assets_dir_gives_empty_output(tmp_path: Path):
    ctx = _ctx(tmp_path)
    ctx.assets_src.mkdir()

    report = minify_images(ctx, StageReport(stage="images"))

    assert report.status == "ok"
    assert report.items == []
    assert report.mapping == {}
    assert ctx.assets_out.is_dir()
    assert list(ctx.assets_out.iterdir()) == []


def test_images_are_compressed_and_stripped(tmp_path: Path):
    ctx = _ctx(tmp_path)
    _write_png(ctx.assets_src / "icons" / "logo.png")
    (ctx.assets_src / "fonts").mkdir()
    (ctx.assets_src / "fonts" / "a.woff2").write_bytes(b"font")

    report = minify_images(ctx, StageReport(stage="images"))

    output = ctx.assets_out / "icons" / "logo.png"
    with Image.open(output) as image:
        assert image.mode == "P"
        assert "Comment" not in image.info
    assert (ctx.assets_out / "fonts" / "a.woff2").read_bytes() == b"font"
    statuses = {item.source: item.status for item in report.items}
    assert statuses == {"assets/fonts/a.woff2": "copied", "assets/icons/logo.png": "minified"}
    assert report.mapping == {}


def test_images_below_quality_floor_keep_original_bytes(tmp_path: Path):
    ctx = _ctx(tmp_path, image_quality=(1.0, 1.0))
    source = ctx.assets_src / "noise.png"
    _write_png(source, noisy=True)

    report = minify_images(ctx, StageReport(stage="images"))

    assert report.items[0].status == "fallback"
    assert (ctx.assets_out / "noise.png").read_bytes() == source.read_bytes()


def test_image_errors_fall_back_to_copying_the_tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    ctx = _ctx(tmp_path)
    _write_png(ctx.assets_src / "a.png")
    _write_png(ctx.assets_src / "nested" / "b.png")

    def _broken(_data, _quality):
        raise OSError("decoder not available")

    monkeypatch.setattr(build_module, "compress_png", _broken)

    report = minify_images(ctx, StageReport(stage="images"))

    assert report.status == "ok"
    assert {item.status for item in report.items} == {"fallback"}
    for name in ("a.png", "nested/b.png"):
        assert (ctx.assets_out / name).read_bytes() == (ctx.assets_src / name).read_bytes()


def test_html_ignores_mappings_without_written_output(tmp_path: Path):
    ctx = _ctx(tmp_path)
    ctx.html_src.write_text('<link rel="stylesheet" href="css/app.css">', encoding="utf-8")

    report = minify_index_html(
        ctx, StageReport(stage="html"), css_map={"app.css": "app.min.css"}, js_map={}, json_map={}
    )

    assert report.status == "ok"
    assert 'href="css/app.css"' in ctx.html_out.read_text(encoding="utf-8")


def test_rcssmin_is_used_for_css(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    ctx = _ctx(tmp_path)
    ctx.css_src.mkdir()
    (ctx.css_src / "a.css").write_text("a { }", encoding="utf-8")
    calls: list[str] = []

    def _record(style: str) -> str:
        calls.append(style)
        return "minified"

    monkeypatch.setattr(rcssmin, "cssmin", _record)

    minify_css(ctx, StageReport(stage="css"))

    assert calls == ["a { }"]
    assert (ctx.css_out / "a.min.css").read_text(encoding="utf-8") == "minified"


def test_item_results_only_carry_per_item_outcomes():
    with pytest.raises(ValidationError):
        ItemResult(source="css/app.css", status="failed")
