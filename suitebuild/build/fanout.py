"""
Asset fan-out between sibling projects, plus demo site copying.

Each project's freshly minified build is copied into every other project's
examples/assets directory so demos can use the siblings' latest builds.
"""

from __future__ import annotations

import glob
import shutil
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Optional, Sequence, Union

from suitebuild.core.utils import copy_file, log
from suitebuild.build.config import BuildSettings

OUTPUT_DIR = Path("build") / "output"
EXAMPLE_ASSETS_DIR = Path("examples") / "assets"
SITE_DEMOS_DIR = "Demos"


# =============================================================================
# Fan-out Rules
# =============================================================================


@dataclass(frozen=True)
class AssetCopyRule:
    """Copy files matching ``pattern`` in ``source_dir`` into each destination.

    Destinations may themselves be glob patterns.
    """

    source_dir: Path
    pattern: str
    destinations: tuple[Union[str, Path], ...]


def expand_destinations(destination: Union[str, Path]) -> list[Path]:
    """Resolve a destination (possibly a glob) to existing directories."""
    return [Path(p) for p in sorted(glob.glob(str(destination))) if Path(p).is_dir()]


def apply_rule(rule: AssetCopyRule) -> int:
    """Copy every match into every resolved destination. Returns copy count."""
    sources = sorted(p for p in rule.source_dir.glob(rule.pattern) if p.is_file())
    count = 0

    for destination in rule.destinations:
        for dest_dir in expand_destinations(destination):
            for src in sources:
                copy_file(src, dest_dir / src.name)
                count += 1

    log.info(f"Copied {count} files.")
    return count


def run_rules(rules: Sequence[AssetCopyRule]) -> int:
    return sum(apply_rule(rule) for rule in rules)


def fanout_rules(settings: BuildSettings, pattern: Optional[str] = None) -> list[AssetCopyRule]:
    """One rule per project: its build output into every sibling's assets."""
    pattern = pattern or settings.get("fanout_pattern")
    roots = [(spec.name, settings.project_root(spec)) for spec in settings.projects]

    rules = []
    for name, root in roots:
        destinations = tuple(
            other_root / EXAMPLE_ASSETS_DIR
            for other_name, other_root in roots
            if other_name != name
        )
        rules.append(AssetCopyRule(root / OUTPUT_DIR, pattern, destinations))
    return rules


# =============================================================================
# Demo Site
# =============================================================================


@dataclass(frozen=True)
class TreeCopyRule:
    """Recursive copy of files whose basename matches ``pattern``."""

    source_dir: Path
    dest_dir: Path
    pattern: str = "*"
    exclude: Optional[str] = None


def copy_tree(rule: TreeCopyRule) -> int:
    if not rule.source_dir.is_dir():
        log.warning(f"Nothing to copy, {rule.source_dir} does not exist")
        return 0

    count = 0
    for path in sorted(rule.source_dir.rglob("*")):
        if not path.is_file() or not fnmatch(path.name, rule.pattern):
            continue
        if rule.exclude and fnmatch(path.name, rule.exclude):
            continue
        copy_file(path, rule.dest_dir / path.relative_to(rule.source_dir))
        count += 1
    return count


def site_copy_rules(settings: BuildSettings, site: Path) -> list[TreeCopyRule]:
    """Latest sources into Demos/src, each project's examples into Demos/<Name>."""
    demos = site / SITE_DEMOS_DIR
    rules = []

    for spec in settings.projects:
        root = settings.project_root(spec)
        rules.append(TreeCopyRule(root / "src", demos / "src", "*.js", spec.site_src_exclude))

    for spec in settings.projects:
        root = settings.project_root(spec)
        rules.append(TreeCopyRule(root / "examples", demos / spec.demo_dir))

    return rules


def clean_demo_dirs(settings: BuildSettings, site: Path) -> int:
    """Remove each project's generated demo directory from the site."""
    removed = 0
    for spec in settings.projects:
        target = site / SITE_DEMOS_DIR / spec.demo_dir
        if target.exists():
            shutil.rmtree(target)
            log.dim(f"Removed {target}")
            removed += 1
    return removed
