"""
Tests for build fan-out between sibling projects and demo site copying.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from suitebuild.build.fanout import (
    AssetCopyRule,
    apply_rule,
    clean_demo_dirs,
    copy_tree,
    fanout_rules,
    run_rules,
    site_copy_rules,
)

from .conftest import PROJECT_NAMES, Suite


def _populate_outputs(suite: Suite) -> None:
    for name, root in suite.projects.items():
        output = root / "build" / "output"
        output.mkdir(parents=True, exist_ok=True)
        (output / f"{name.lower()}-NEXT.min.js").write_text(f"// {name} next")
        (output / f"{name.lower()}-NEXT.combined.js").write_text("// not fanned out")
        (root / "examples" / "assets").mkdir(parents=True, exist_ok=True)


# =============================================================================
# Fan-out
# =============================================================================


@pytest.mark.evergreen
class TestFanout:
    def test_each_output_reaches_every_sibling(self, suite: Suite) -> None:
        _populate_outputs(suite)

        count = run_rules(fanout_rules(suite.settings()))

        assert count == 12
        for name, root in suite.projects.items():
            assets = sorted(p.name for p in (root / "examples" / "assets").iterdir())
            expected = sorted(f"{other.lower()}-NEXT.min.js" for other in PROJECT_NAMES if other != name)
            assert assets == expected

    def test_no_self_copy(self, suite: Suite) -> None:
        _populate_outputs(suite)
        run_rules(fanout_rules(suite.settings()))
        easel_assets = suite.projects["EaselJS"] / "examples" / "assets"
        assert not (easel_assets / "easeljs-NEXT.min.js").exists()

    def test_no_matches_is_not_an_error(self, suite: Suite, capsys: pytest.CaptureFixture[str]) -> None:
        assert run_rules(fanout_rules(suite.settings())) == 0
        assert "Copied 0 files." in capsys.readouterr().out

    def test_custom_pattern(self, suite: Suite) -> None:
        _populate_outputs(suite)
        count = run_rules(fanout_rules(suite.settings(), "*.combined.js"))
        assert count == 12


@pytest.mark.evergreen
class TestApplyRule:
    def test_glob_destination(self, tmp_path: Path) -> None:
        source = tmp_path / "out"
        source.mkdir()
        (source / "lib-NEXT.min.js").write_text("x")
        for site in ("a", "b"):
            (tmp_path / "sites" / site / "assets").mkdir(parents=True)
        (tmp_path / "sites" / "stray.txt").write_text("not a dir")

        rule = AssetCopyRule(source, "*NEXT.min.js", (str(tmp_path / "sites" / "*" / "assets"),))

        assert apply_rule(rule) == 2
        assert (tmp_path / "sites" / "a" / "assets" / "lib-NEXT.min.js").exists()
        assert (tmp_path / "sites" / "b" / "assets" / "lib-NEXT.min.js").exists()

    def test_missing_destination_skipped(self, tmp_path: Path) -> None:
        source = tmp_path / "out"
        source.mkdir()
        (source / "lib-NEXT.min.js").write_text("x")
        rule = AssetCopyRule(source, "*NEXT.min.js", (tmp_path / "absent",))
        assert apply_rule(rule) == 0
        assert not (tmp_path / "absent").exists()


# =============================================================================
# Demo Site
# =============================================================================


@pytest.fixture
def site(suite: Suite, tmp_path: Path) -> Path:
    site = tmp_path / "site"
    site.mkdir()
    suite.write_config(site_path=str(site))
    for name, root in suite.projects.items():
        demo = root / "examples" / f"{name}Demo.html"
        demo.parent.mkdir(parents=True, exist_ok=True)
        demo.write_text("<html></html>")
    return site


@pytest.mark.evergreen
class TestSiteCopy:
    def test_sources_and_examples_copied(self, suite: Suite, site: Path) -> None:
        settings = suite.settings()
        for rule in site_copy_rules(settings, site):
            copy_tree(rule)

        demos = site / "Demos"
        assert (demos / "src" / "createjs" / "events" / "EventDispatcher.js").exists()
        assert (demos / "src" / "soundjs" / "Sound.js").exists()
        for name in PROJECT_NAMES:
            assert (demos / name / f"{name}Demo.html").exists()

    def test_easel_builds_excluded_from_sibling_sources(self, suite: Suite, site: Path) -> None:
        suite.write_source("PreloadJS", "src/easeljs-0.8.2.min.js", "// stale bundled easel")
        suite.write_source("EaselJS", "src/easeljs/display/Stage.js", "// easel stage")

        for rule in site_copy_rules(suite.settings(), site):
            copy_tree(rule)

        demos_src = site / "Demos" / "src"
        assert not (demos_src / "easeljs-0.8.2.min.js").exists()
        assert (demos_src / "easeljs" / "display" / "Stage.js").read_text() == "// easel stage"

    def test_only_js_sources(self, suite: Suite, site: Path) -> None:
        suite.write_source("TweenJS", "src/tweenjs/README.md", "docs")
        for rule in site_copy_rules(suite.settings(), site):
            copy_tree(rule)
        assert not (site / "Demos" / "src" / "tweenjs" / "README.md").exists()

    def test_missing_source_dir(self, tmp_path: Path) -> None:
        from suitebuild.build.fanout import TreeCopyRule

        assert copy_tree(TreeCopyRule(tmp_path / "none", tmp_path / "dest")) == 0


@pytest.mark.evergreen
class TestCleanDemoDirs:
    def test_removes_project_dirs_only(self, suite: Suite, site: Path) -> None:
        demos = site / "Demos"
        for name in ("EaselJS", "SoundJS", "src"):
            (demos / name).mkdir(parents=True)
            (demos / name / "old.html").write_text("old")

        removed = clean_demo_dirs(suite.settings(), site)

        assert removed == 2
        assert not (demos / "EaselJS").exists()
        assert not (demos / "SoundJS").exists()
        assert (demos / "src" / "old.html").exists()
