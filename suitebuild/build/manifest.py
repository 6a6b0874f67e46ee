"""
Project manifest resolution.

Each sibling project declares its ordered source files in build/config.json
and its released version in build/package.json.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from suitebuild.core.utils import log
from suitebuild.build.config import BuildSettings, ProjectSpec
from suitebuild.build.errors import ManifestInvalid, ManifestMissing, SourceDirectoryMissing

BUILD_DIR = "build"
SOURCE_MANIFEST = "config.json"
PACKAGE_MANIFEST = "package.json"
SOURCE_ROOT = "src"

_SOURCE_LIST = TypeAdapter(list[str])


# =============================================================================
# Manifest Models
# =============================================================================


class PackageManifest(BaseModel):
    """The fields of build/package.json this tool reads."""

    name: str = Field("", description="Package name")
    version: str = Field(description="Released version string")


# =============================================================================
# Data Classes
# =============================================================================


def canonical_key(path: Path) -> str:
    """Identity of a source file independent of the project tree it lives in.

    The POSIX path from the last ``src`` component onward, e.g.
    ``/work/PreloadJS/src/createjs/events/Event.js`` -> ``src/createjs/events/Event.js``.
    """
    parts = PurePosixPath(Path(path).as_posix()).parts
    for index in range(len(parts) - 1, -1, -1):
        if parts[index] == SOURCE_ROOT:
            return "/".join(parts[index:])
    return Path(path).as_posix()


@dataclass(frozen=True)
class SourceFileRef:
    """A source file as declared by one project's manifest."""

    project: str
    path: Path

    @property
    def canonical_key(self) -> str:
        return canonical_key(self.path)


@dataclass(frozen=True)
class Project:
    """A sibling project loaded from disk for this run."""

    name: str
    root: Path
    sources: tuple[SourceFileRef, ...]
    version: Optional[str] = None


# =============================================================================
# Reading
# =============================================================================


def _load_json(project: str, path: Path) -> Any:
    if not path.parent.is_dir():
        raise SourceDirectoryMissing(project, path.parent)
    if not path.exists():
        raise ManifestMissing(project, path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestInvalid(path, str(e)) from e


def read_source_manifest(root: Path, key: str, project: str = "") -> list[Path]:
    """Return the ordered, absolute source paths declared under ``key``."""
    project = project or root.name
    build_dir = root / BUILD_DIR
    path = build_dir / SOURCE_MANIFEST
    data = _load_json(project, path)

    if not isinstance(data, dict) or key not in data:
        raise ManifestInvalid(path, f"missing '{key}' source list")

    try:
        entries = _SOURCE_LIST.validate_python(data[key])
    except ValidationError as e:
        raise ManifestInvalid(path, f"'{key}' must be a list of paths ({e.error_count()} errors)") from e

    return [(build_dir / entry).resolve() for entry in entries]


def read_version(root: Path, project: str = "") -> str:
    """Return the version declared in build/package.json."""
    project = project or root.name
    path = root / BUILD_DIR / PACKAGE_MANIFEST
    data = _load_json(project, path)

    try:
        return PackageManifest.model_validate(data).version
    except ValidationError as e:
        raise ManifestInvalid(path, f"no usable 'version' field ({e.error_count()} errors)") from e


def load_project(spec: ProjectSpec, settings: BuildSettings) -> Project:
    """Load one project's sources (required) and version (if declared)."""
    root = settings.project_root(spec)
    paths = read_source_manifest(root, spec.source_key, spec.name)

    # Version is informational here; an unreadable package.json leaves it None
    try:
        version: Optional[str] = read_version(root, spec.name)
    except ManifestMissing:
        version = None
    except ManifestInvalid as e:
        log.warning(f"{spec.name}: {e}")
        version = None

    return Project(
        name=spec.name,
        root=root,
        sources=tuple(SourceFileRef(spec.name, p) for p in paths),
        version=version,
    )


def load_projects(settings: BuildSettings) -> list[Project]:
    """Load every project in priority order."""
    return [load_project(spec, settings) for spec in settings.projects]
