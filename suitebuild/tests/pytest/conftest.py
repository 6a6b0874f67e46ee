"""
Shared pytest fixtures for suitebuild tests.

Provides a fixture that lays out four sibling projects and a coordinator
root on tmp_path, so build steps run against real files without touching
any actual checkout.

Test Tier Markers:
  @pytest.mark.evergreen - Tests that always run, never skip (production tests)
  @pytest.mark.dev       - Development/WIP tests, toggle-able
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest

from suitebuild.build.combine import Minifier
from suitebuild.build.config import BuildSettings, load_settings


# =============================================================================
# Test Data Constants
# =============================================================================

# Priority order: EaselJS (P1) .. TweenJS (P4)
PROJECT_NAMES = ["EaselJS", "PreloadJS", "SoundJS", "TweenJS"]

PATH_KEYS = {
    "EaselJS": "easel_path",
    "PreloadJS": "preload_path",
    "SoundJS": "sound_path",
    "TweenJS": "tween_path",
}

SOURCE_KEYS = {
    "EaselJS": "easel_source",
    "PreloadJS": "source",
    "SoundJS": "source",
    "TweenJS": "source",
}

# Source files declared by each project, relative to the project root
PROJECT_SOURCES: dict[str, list[str]] = {
    "EaselJS": [
        "src/createjs/utils/extend.js",
        "src/createjs/events/EventDispatcher.js",
        "src/easeljs/display/Stage.js",
    ],
    "PreloadJS": [
        "src/createjs/events/EventDispatcher.js",
        "src/preloadjs/LoadQueue.js",
    ],
    "SoundJS": [
        "src/createjs/events/EventDispatcher.js",
        "src/soundjs/Sound.js",
    ],
    "TweenJS": [
        "src/createjs/utils/extend.js",
        "src/tweenjs/Tween.js",
    ],
}

LICENSE_TEXT = "/*!\n* CreateJS\n* Copyright (c) 2024 gskinner.com, inc.\n*/\n"


# =============================================================================
# Suite Factory
# =============================================================================


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))


class Suite:
    """Four sibling projects plus a coordinator root on disk."""

    def __init__(self, base: Path):
        self.base = base
        self.root = base / "coordinator"
        self.projects = {name: base / name for name in PROJECT_NAMES}
        self.config: dict[str, Any] = {
            PATH_KEYS[name]: str(path) for name, path in self.projects.items()
        }

    def create(self) -> "Suite":
        self.root.mkdir(parents=True)
        (self.root / "LICENSE").write_text(LICENSE_TEXT)
        self.write_config()

        for name, root in self.projects.items():
            build_dir = root / "build"
            _write_json(
                build_dir / "config.json",
                {SOURCE_KEYS[name]: [f"../{rel}" for rel in PROJECT_SOURCES[name]]},
            )
            _write_json(build_dir / "package.json", {"name": name.lower(), "version": "1.0.0"})
            (build_dir / "Gruntfile.js").write_text("module.exports = function (grunt) {};\n")
            for rel in PROJECT_SOURCES[name]:
                self.write_source(name, rel, f"// {name} copy of {Path(rel).name}\n")
        return self

    def write_config(self, **extra: Any) -> None:
        self.config.update(extra)
        _write_json(self.root / "config.json", self.config)

    def write_source(self, project: str, rel: str, text: str) -> Path:
        path = self.projects[project] / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path

    def source(self, project: str, rel: str) -> Path:
        return self.projects[project] / rel

    def settings(self) -> BuildSettings:
        return load_settings(self.root)


class FakeMinifier(Minifier):
    """Records minify calls and writes a placeholder output."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[Path], Path, str]] = []

    def minify(self, sources, output: Path, banner: str) -> None:
        self.calls.append((list(sources), output, banner))
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(banner + "/* minified */")


class RecordingRunner:
    """Sub-build runner that records calls instead of spawning processes."""

    def __init__(self, fail: Optional[str] = None, on_run=None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = fail
        self.on_run = on_run

    def __call__(self, name: str, root: Path, task: str) -> bool:
        from suitebuild.build.errors import SubBuildFailure

        self.calls.append((name, task))
        if self.on_run is not None:
            self.on_run(name, root, task)
        if name == self.fail:
            raise SubBuildFailure(name, 3)
        return True


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test tiers."""
    config.addinivalue_line(
        "markers",
        "evergreen: tests that always run, never skip (production tests)"
    )
    config.addinivalue_line(
        "markers",
        "dev: development/WIP tests, toggle-able for active development"
    )


@pytest.fixture
def suite(tmp_path: Path) -> Suite:
    """A fully populated four-project suite."""
    return Suite(tmp_path).create()


@pytest.fixture
def fake_minifier() -> FakeMinifier:
    return FakeMinifier()
