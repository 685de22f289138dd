import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
import rjsmin

from sitekit import cli_build
from sitekit.config import SiteConfig
from sitekit.errors import StageError
from sitekit.pipeline import STAGE_ORDER, format_summary, run_pipeline

REPO_ROOT = Path(__file__).resolve().parents[1]

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <!-- styles -->
    <link rel="stylesheet" href="css/app.css">
    <script type="application/ld+json">{"@type": "WebSite"}</script>
  </head>
  <body>
    <main class="">
      <h1>Contrast</h1>
    </main>
    <script src="js/app.js"></script>
    <script src="./data/palette.json" type="application/json"></script>
  </body>
</html>
"""


def _make_site(root: Path) -> Path:
    src = root / "src"
    (src / "css").mkdir(parents=True)
    (src / "js").mkdir()
    (src / "data").mkdir()
    (src / "css" / "app.css").write_text("body {\n  margin: 0;\n}\n", encoding="utf-8")
    (src / "js" / "app.js").write_text("function greet(name) {\n  return 'hi ' + name;\n}\n", encoding="utf-8")
    (src / "data" / "palette.json").write_text('{\n  "primary": "#000"\n}\n', encoding="utf-8")
    (src / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    return src


def _config(tmp_path: Path, **kwargs) -> SiteConfig:
    return SiteConfig(source_root=tmp_path / "src", dest_root=tmp_path / "dist", **kwargs)


def test_pipeline_rewrites_references_to_minified_outputs(tmp_path: Path):
    _make_site(tmp_path)

    report = run_pipeline(_config(tmp_path))

    dist = tmp_path / "dist"
    html = (dist / "index.html").read_text(encoding="utf-8")
    assert 'href="css/app.min.css"' in html
    assert 'src="js/app.min.js"' in html
    assert 'src="data/palette.min.json"' in html
    assert '{"@type": "WebSite"}' in html
    assert "<!-- styles -->" not in html
    assert (dist / "css" / "app.min.css").exists()
    assert (dist / "js" / "app.min.js").exists()
    assert json.loads((dist / "data" / "palette.min.json").read_text(encoding="utf-8")) == {"primary": "#000"}
    assert [stage.stage for stage in report.stages] == list(STAGE_ORDER)
    assert report.ok


def test_every_mapped_output_exists_on_disk(tmp_path: Path):
    _make_site(tmp_path)

    report = run_pipeline(_config(tmp_path))

    dist = tmp_path / "dist"
    for stage_name, prefix in (("css", "css/"), ("js", "js/"), ("json", "")):
        for output in report.stage(stage_name).mapping.values():
            assert (dist / f"{prefix}{output}").is_file()


def test_js_failure_does_not_stop_later_stages(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _make_site(tmp_path)

    def _syntax_error(_script: str) -> str:
        raise ValueError("Unexpected token")

    monkeypatch.setattr(rjsmin, "jsmin", _syntax_error)

    report = run_pipeline(_config(tmp_path))

    js_stage = report.stage("js")
    assert js_stage.status == "failed"
    assert "app.js" in js_stage.error
    assert js_stage.mapping == {}
    assert report.stage("json").status == "ok"
    assert report.stage("html").status == "ok"
    html = (tmp_path / "dist" / "index.html").read_text(encoding="utf-8")
    assert 'href="css/app.min.css"' in html
    assert 'src="js/app.js"' in html
    assert not report.ok


def test_missing_index_skips_html_stage(tmp_path: Path):
    src = _make_site(tmp_path)
    (src / "index.html").unlink()

    report = run_pipeline(_config(tmp_path))

    assert report.stage("html").status == "skipped"
    assert not (tmp_path / "dist" / "index.html").exists()
    assert report.stage("css").mapping == {"app.css": "app.min.css"}


def test_empty_source_tree_builds_nothing(tmp_path: Path):
    (tmp_path / "src").mkdir()

    report = run_pipeline(_config(tmp_path))

    assert (tmp_path / "dist").is_dir()
    assert list((tmp_path / "dist").iterdir()) == []
    assert report.ok
    statuses = {stage.stage: stage.status for stage in report.stages}
    assert statuses == {"images": "skipped", "css": "skipped", "js": "skipped", "json": "ok", "html": "skipped"}


def test_unwritable_destination_is_run_fatal(tmp_path: Path):
    _make_site(tmp_path)
    (tmp_path / "dist").write_text("not a directory", encoding="utf-8")

    with pytest.raises(StageError):
        run_pipeline(_config(tmp_path))


def test_summary_lists_each_stage(tmp_path: Path):
    _make_site(tmp_path)

    lines = format_summary(run_pipeline(_config(tmp_path)))

    assert lines[0].startswith("[images] skipped")
    assert "[css] ok (1 minified)" in lines


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "sitekit.yaml"
    config_path.write_text(
        f"sourceRoot: {tmp_path / 'src'}\ndestRoot: {tmp_path / 'dist'}\n", encoding="utf-8"
    )
    return config_path


def test_cli_keeps_exit_zero_on_partial_failure_unless_strict(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    _make_site(tmp_path)
    config_path = _write_config(tmp_path)

    def _syntax_error(_script: str) -> str:
        raise ValueError("Unexpected token")

    monkeypatch.setattr(rjsmin, "jsmin", _syntax_error)

    assert cli_build.main(["--config", str(config_path)]) == 0
    assert "failed stage(s): js" in capsys.readouterr().err
    assert cli_build.main(["--config", str(config_path), "--strict"]) == 1


def test_cli_rejects_invalid_config(tmp_path: Path):
    config_path = tmp_path / "sitekit.yaml"
    config_path.write_text("imageQuality: [0.9, 0.1]\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        cli_build.main(["--config", str(config_path)])


def test_module_entrypoint_builds_with_defaults(tmp_path: Path):
    _make_site(tmp_path)
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))

    result = subprocess.run(
        [sys.executable, "-m", "sitekit", "build"],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
    assert "Minification complete!" in result.stdout
    assert (tmp_path / "dist" / "index.html").exists()
