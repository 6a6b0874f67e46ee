"""
Cross-project source deduplication.

Several libraries embed verbatim copies of shared files (EventDispatcher,
Event, ...). The copy declared by the highest-priority project is canonical;
every later copy is overwritten with the canonical bytes when it is missing
or differs. Nothing flows from a lower-priority project back up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from suitebuild.core.utils import copy_file, log
from suitebuild.build.manifest import Project, SourceFileRef


@dataclass
class DedupReport:
    """Outcome of one reconciliation pass."""

    canonical: dict[str, SourceFileRef] = field(default_factory=dict)
    copied: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)  # canonical files absent on disk

    @property
    def count(self) -> int:
        return len(self.copied)


def iter_sources(projects: Sequence[Project]) -> list[SourceFileRef]:
    """All declared sources, concatenated in priority order."""
    refs: list[SourceFileRef] = []
    for project in projects:
        refs.extend(project.sources)
    return refs


def build_canonical_set(projects: Sequence[Project]) -> dict[str, SourceFileRef]:
    """Map each canonical key to its first occurrence in priority order."""
    canonical: dict[str, SourceFileRef] = {}
    for ref in iter_sources(projects):
        canonical.setdefault(ref.canonical_key, ref)
    return canonical


def _needs_copy(canonical: Path, duplicate: Path) -> bool:
    if not duplicate.exists():
        return True
    return duplicate.read_bytes() != canonical.read_bytes()


def sync_shared_sources(projects: Sequence[Project]) -> DedupReport:
    """Overwrite stale duplicates of shared files with the canonical copy.

    ``projects`` must be in priority order (P1 first).
    """
    report = DedupReport()

    for ref in iter_sources(projects):
        key = ref.canonical_key
        canonical = report.canonical.setdefault(key, ref)
        if canonical is ref or canonical.path == ref.path:
            continue

        if not canonical.path.exists():
            if canonical.path not in report.missing:
                log.warning(f"Canonical source missing, cannot sync {key}: {canonical.path}")
                report.missing.append(canonical.path)
            continue

        if _needs_copy(canonical.path, ref.path):
            copy_file(canonical.path, ref.path)
            report.copied.append(ref.path)
            log.dim(f"{key}: {canonical.project} -> {ref.project}")

    if report.count:
        log.success(f"Copied {report.count} files.")
    else:
        log.info("No files copied.")

    return report
