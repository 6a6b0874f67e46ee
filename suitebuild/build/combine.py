"""
Combined bundle assembly.

Merges the priority-ordered source lists of all projects (first occurrence
of each canonical key wins) into a readable concatenated bundle and a
minified bundle.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from suitebuild.core.utils import log, run_cmd
from suitebuild.build.config import BuildSettings
from suitebuild.build.dedup import build_canonical_set
from suitebuild.build.errors import MinifyFailure, SourceDirectoryMissing
from suitebuild.build.manifest import Project, SourceFileRef, load_project

DATE_FORMAT = "%Y.%m.%d"


# =============================================================================
# Source Collection
# =============================================================================


@dataclass
class CombinedSources:
    """Deduplicated source list, possibly cut short by a missing project."""

    files: list[SourceFileRef] = field(default_factory=list)
    complete: bool = True
    missing: Optional[Path] = None

    @property
    def paths(self) -> list[Path]:
        return [ref.path for ref in self.files]


def unique_sources(projects: Sequence[Project]) -> list[SourceFileRef]:
    """The canonical copy of each source, in discovery order."""
    return list(build_canonical_set(projects).values())


def collect_combined_sources(settings: BuildSettings) -> CombinedSources:
    """Load projects in priority order and deduplicate their sources.

    A missing project build directory stops collection; whatever was
    gathered before it is returned with ``complete=False``.
    """
    projects: list[Project] = []
    for spec in settings.projects:
        try:
            projects.append(load_project(spec, settings))
        except SourceDirectoryMissing as e:
            log.error(f"Source directory missing: {e.path}")
            return CombinedSources(unique_sources(projects), complete=False, missing=e.path)

    return CombinedSources(unique_sources(projects))


# =============================================================================
# Concatenation Transforms
# =============================================================================

_LEADING_BLOCK_COMMENT = re.compile(r"\A\s*/\*.*?\*/\s*", re.S)
_LICENSE_WORDS = re.compile(r"copyright|licen[sc]e|permission is hereby granted", re.I)
_NAMESPACE_COMMENT = re.compile(r"^[ \t]*//[ \t]*namespace:.*(?:\r?\n)?", re.M)
_MODULE_DOC = re.compile(r"/\*\*(?:(?!\*/).)*?@module\b(?:(?!\*/).)*\*/[ \t]*(?:\r?\n)?", re.S)

BANNER_RULE = "//" + "#" * 78


def strip_license_header(text: str) -> str:
    """Drop a leading block comment that reads like a license header."""
    match = _LEADING_BLOCK_COMMENT.match(text)
    if match and _LICENSE_WORDS.search(match.group(0)):
        return text[match.end():]
    return text


def strip_namespace_assignment(text: str, namespace: str) -> str:
    """Drop ``this.<ns> = this.<ns>||{};`` (or the ``window.`` form)."""
    ns = re.escape(namespace)
    pattern = re.compile(
        rf"(?:this|window)\.{ns}\s*=\s*(?:this|window)\.{ns}\s*\|\|\s*\{{\s*\}}\s*;?[ \t]*(?:\r?\n)?"
    )
    return pattern.sub("", text)


def strip_namespace_comment(text: str) -> str:
    return _NAMESPACE_COMMENT.sub("", text)


def strip_module_doc(text: str) -> str:
    return _MODULE_DOC.sub("", text)


def source_banner(name: str) -> str:
    return f"\n\n{BANNER_RULE}\n// {name}\n{BANNER_RULE}\n\n"


def transform_source(text: str, name: str, namespace: str) -> str:
    """Apply the per-file concat pipeline."""
    text = strip_license_header(text)
    text = strip_namespace_assignment(text, namespace)
    text = strip_namespace_comment(text)
    text = strip_module_doc(text)
    return source_banner(name) + text.strip()


def concat_sources(files: Sequence[Path], license_text: str, namespace: str) -> str:
    """Concatenate transformed files under a single license banner."""
    parts = [license_text]
    for path in files:
        parts.append(transform_source(path.read_text(encoding="utf-8"), path.name, namespace))
    return "".join(parts)


# =============================================================================
# Minification
# =============================================================================


class Minifier(ABC):
    """Interface to an external JavaScript minifier."""

    @abstractmethod
    def minify(self, sources: Sequence[Path], output: Path, banner: str) -> None:
        """Write the minified form of ``sources`` to ``output``, prefixed by ``banner``."""


class UglifyMinifier(Minifier):
    """Runs the ``uglifyjs`` CLI.

    ``DEBUG`` is forced to ``false`` before compression so debug-only
    branches are dropped; comments marked for preservation are kept.
    """

    def __init__(
        self,
        command: Sequence[str] = ("uglifyjs",),
        defines: Optional[dict[str, str]] = None,
    ):
        self.command = list(command)
        self.defines = defines if defines is not None else {"DEBUG": "false"}

    def build_command(self, sources: Sequence[Path], output: Path, banner: str) -> list[str]:
        cmd = [*self.command, *(str(p) for p in sources), "--compress", "--mangle"]
        for name, value in self.defines.items():
            cmd += ["--define", f"{name}={value}"]
        cmd += ["--comments", "some"]
        if banner:
            cmd += ["--preamble", banner]
        cmd += ["-o", str(output)]
        return cmd

    def minify(self, sources: Sequence[Path], output: Path, banner: str) -> None:
        cmd = self.build_command(sources, output, banner)
        try:
            result = run_cmd(cmd, capture=True, check=False)
        except FileNotFoundError as e:
            raise MinifyFailure(cmd, None, f"executable not found ({e.filename})") from e
        if result.returncode != 0:
            raise MinifyFailure(cmd, result.returncode, (result.stderr or "").strip()[:200])


# =============================================================================
# Combined Build
# =============================================================================


@dataclass
class CombinedBuildResult:
    sources: CombinedSources
    combined: Optional[Path] = None
    minified: Optional[Path] = None


def bundle_paths(settings: BuildSettings, today: Optional[date] = None) -> tuple[Path, Path]:
    """(combined, minified) output paths stamped with the build date."""
    stamp = (today or date.today()).strftime(DATE_FORMAT)
    name = settings.get("bundle_name")
    builds = settings.builds_dir
    return builds / f"{name}-{stamp}.combined.js", builds / f"{name}-{stamp}.min.js"


def read_license(settings: BuildSettings) -> str:
    path = settings.path("license_path")
    if not path.exists():
        log.warning(f"License file not found at {path}, bundles will have no banner")
        return ""
    return path.read_text(encoding="utf-8")


def build_combined(
    settings: BuildSettings,
    minifier: Minifier,
    today: Optional[date] = None,
) -> CombinedBuildResult:
    """Write the combined and minified bundles into the builds directory."""
    sources = collect_combined_sources(settings)
    result = CombinedBuildResult(sources=sources)

    if not sources.files:
        log.warning("No sources collected, combined bundle not written")
        return result
    if not sources.complete:
        log.warning(f"Combined bundle is incomplete ({len(sources.files)} files collected)")

    license_text = read_license(settings)
    combined_path, minified_path = bundle_paths(settings, today)
    combined_path.parent.mkdir(parents=True, exist_ok=True)

    combined_path.write_text(
        concat_sources(sources.paths, license_text, settings.get("namespace")),
        encoding="utf-8",
    )
    result.combined = combined_path
    log.success(f"Combined {len(sources.files)} files into {combined_path.name}")

    minifier.minify(sources.paths, minified_path, license_text)
    result.minified = minified_path
    log.success(f"Minified bundle written to {minified_path.name}")

    return result
