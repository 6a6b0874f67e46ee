"""
Release set selection.

The artifact pool (the builds directory) holds bundles named
``<prefix><yyyy>.<mm>.<dd>...``. The newest file anchors the release stamp;
every pool file carrying the same stamp, plus each project's
``lib/*-<version>*`` files, forms the release set staged for the CDN.
"""

from __future__ import annotations

import glob
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from suitebuild.core.utils import copy_file, log
from suitebuild.build.config import BuildSettings, ProjectSpec
from suitebuild.build.errors import ManifestMissing, NoArtifactsFound
from suitebuild.build.manifest import read_version

RELEASE_DIR = "lib"
STAMP_SEPARATOR = "."

# Any dotted numeric run in a filename, e.g. "2024.01.02" in "easeljs-2024.01.02.min.js"
_STAMP_RUN = re.compile(r"\d+(?:\.\d+)+")


# =============================================================================
# Build Stamp
# =============================================================================


@dataclass(frozen=True, order=True)
class BuildStamp:
    """Dotted numeric build token, e.g. ``2024.01.02``."""

    parts: tuple[int, ...]
    token: str = field(compare=False)

    @classmethod
    def parse(cls, name: str, prefix: str) -> Optional["BuildStamp"]:
        """Parse the stamp following ``prefix`` in a filename, or None."""
        match = re.match(rf"{re.escape(prefix)}([0-9.]+)", name)
        if not match:
            return None
        token = match.group(1)
        if token.endswith(STAMP_SEPARATOR):
            token = token[:-1]
        pieces = token.split(STAMP_SEPARATOR)
        if not all(piece.isdigit() for piece in pieces):
            return None
        return cls(parts=tuple(int(piece) for piece in pieces), token=token)

    @classmethod
    def search(cls, name: str) -> list["BuildStamp"]:
        """Every dotted numeric run in a filename, wherever it appears."""
        return [
            cls(parts=tuple(int(piece) for piece in token.split(STAMP_SEPARATOR)), token=token)
            for token in _STAMP_RUN.findall(name)
        ]

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True)
class Artifact:
    path: Path
    stamp: BuildStamp
    mtime: float

    @property
    def name(self) -> str:
        return self.path.name


# =============================================================================
# Pool Scanning
# =============================================================================


def scan_pool(pool_dir: Path, prefix: str) -> list[Artifact]:
    """Every file in the pool whose name carries a build stamp."""
    if not pool_dir.is_dir():
        return []

    artifacts = []
    for path in sorted(pool_dir.iterdir()):
        if not path.is_file():
            continue
        stamp = BuildStamp.parse(path.name, prefix)
        if stamp is None:
            continue
        artifacts.append(Artifact(path=path, stamp=stamp, mtime=path.stat().st_mtime))
    return artifacts


def select_reference(artifacts: Sequence[Artifact], pool_dir: Path) -> Artifact:
    """Newest artifact by mtime; ties go to the greatest filename."""
    if not artifacts:
        raise NoArtifactsFound(pool_dir)
    return max(artifacts, key=lambda a: (a.mtime, a.name))


def match_group(pool_dir: Path, stamp: BuildStamp) -> list[Artifact]:
    """Every pool file carrying ``stamp``, whatever its prefix.

    Stamps are compared as parsed numbers, so ``2024.01.022`` is not part of
    the ``2024.01.02`` group.
    """
    if not pool_dir.is_dir():
        return []

    group = []
    for path in sorted(pool_dir.iterdir()):
        if path.is_file() and stamp in BuildStamp.search(path.name):
            group.append(Artifact(path=path, stamp=stamp, mtime=path.stat().st_mtime))
    return group


def project_release_files(root: Path, project: str = "") -> Optional[list[Path]]:
    """Files in ``lib/`` tagged with the project's released version.

    Returns None when the project's package manifest cannot be found.
    """
    try:
        version = read_version(root, project)
    except ManifestMissing as e:
        log.warning(f"{e}, skipping its release files")
        return None

    pattern = f"*-{glob.escape(version)}*"
    lib_dir = root / RELEASE_DIR
    return sorted(p for p in lib_dir.glob(pattern) if p.is_file())


# =============================================================================
# Release Set
# =============================================================================


@dataclass
class ReleaseSet:
    reference: Artifact
    group: list[Artifact]
    per_project: dict[str, Optional[list[Path]]] = field(default_factory=dict)

    @property
    def stamp(self) -> BuildStamp:
        return self.reference.stamp

    @property
    def files(self) -> list[Path]:
        """Union of per-project files and the stamp group, without repeats."""
        seen: set[Path] = set()
        ordered: list[Path] = []
        candidates: list[Path] = []
        for paths in self.per_project.values():
            if paths is None:
                continue
            candidates.extend(paths)
        candidates.extend(a.path for a in self.group)

        for path in candidates:
            if path not in seen:
                seen.add(path)
                ordered.append(path)
        return ordered


def select_release_set(
    settings: BuildSettings,
    projects: Optional[Sequence[ProjectSpec]] = None,
) -> ReleaseSet:
    """Pick the newest stamp group from the pool and gather project files."""
    pool_dir = settings.builds_dir
    prefix = f"{settings.get('bundle_name')}-"

    artifacts = scan_pool(pool_dir, prefix)
    reference = select_reference(artifacts, pool_dir)
    group = match_group(pool_dir, reference.stamp)
    log.info(f"Release stamp {reference.stamp} from {reference.name} ({len(group)} files)")

    per_project: dict[str, Optional[list[Path]]] = {}
    for spec in projects if projects is not None else settings.projects:
        per_project[spec.name] = project_release_files(settings.project_root(spec), spec.name)

    return ReleaseSet(reference=reference, group=group, per_project=per_project)


def stage_release(release_set: ReleaseSet, staging_dir: Path) -> int:
    """Copy the release set flat into staging_dir.

    The first file with a given base name wins; later ones are skipped with a
    warning. Returns the number of distinct files staged.
    """
    staging_dir.mkdir(parents=True, exist_ok=True)
    staged: dict[str, Path] = {}
    for path in release_set.files:
        if path.name in staged:
            log.warning(f"Not staging {path}, {path.name} already staged from {staged[path.name]}")
            continue
        copy_file(path, staging_dir / path.name)
        staged[path.name] = path
    log.success(f"Staged {len(staged)} files to {staging_dir}")
    return len(staged)
