"""
External build operations.

Sub-project builds, the CSS preprocessor, and the version snapshot used to
undo temporary version bumps made by sub-builds.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from suitebuild.core.utils import log, run_cmd
from suitebuild.build.config import MAX_CONCURRENT_BUILDS
from suitebuild.build.errors import ExternalToolFailure, SubBuildFailure
from suitebuild.build.manifest import BUILD_DIR, PACKAGE_MANIFEST

# (project name, project root, task) -> True if built, False if skipped
SubBuildRunner = Callable[[str, Path, str], bool]


# =============================================================================
# Sub-project Builds
# =============================================================================


def run_sub_build(
    name: str,
    root: Path,
    task: str,
    command: Sequence[str] = ("grunt",),
    entry: str = "Gruntfile.js",
) -> bool:
    """Run one project's own build task in its build directory.

    Returns False when the project has no build entry point (skipped).
    """
    build_dir = root / BUILD_DIR
    if not (build_dir / entry).exists():
        log.warning(f"{name}: No {entry} in {build_dir}, skipping")
        return False

    cmd = [*command, task]
    log.info(f"{name}: Running {' '.join(cmd)}")
    try:
        result = run_cmd(cmd, cwd=build_dir, check=False)
    except FileNotFoundError as e:
        raise SubBuildFailure(name, None, f"executable not found ({e.filename})") from e

    if result.returncode != 0:
        raise SubBuildFailure(name, result.returncode)

    log.success(f"{name}: Built ({task})")
    return True


def make_runner(command: Sequence[str], entry: str) -> SubBuildRunner:
    def runner(name: str, root: Path, task: str) -> bool:
        return run_sub_build(name, root, task, command, entry)

    return runner


def run_sub_builds(
    projects: Sequence[tuple[str, Path]],
    task: str,
    runner: SubBuildRunner,
    max_workers: int = MAX_CONCURRENT_BUILDS,
) -> list[str]:
    """Run sub-builds with bounded concurrency.

    The first failure cancels builds that have not started yet and is
    re-raised once the running ones finish. Returns the names built.
    """
    workers = max(1, min(max_workers, MAX_CONCURRENT_BUILDS))
    aborted = threading.Event()

    def guarded(name: str, root: Path) -> bool:
        # A worker may pick up queued work before the pool is cancelled
        if aborted.is_set():
            return False
        try:
            return runner(name, root, task)
        except BaseException:
            aborted.set()
            raise

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sub-build")

    order = [name for name, _ in projects]

    try:
        futures = {
            executor.submit(guarded, name, root): name
            for name, root in projects
        }
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in done if f.exception() is not None]
        if failed:
            executor.shutdown(wait=True, cancel_futures=True)
            first = min(failed, key=lambda f: order.index(futures[f]))
            raise first.exception()

        built = [futures[f] for f in futures if f.result()]
    finally:
        executor.shutdown(wait=True)

    # Preserve priority order in the report
    return sorted(built, key=order.index)


# =============================================================================
# CSS Preprocessor
# =============================================================================


def compile_css(command: Sequence[str], source: Path, output: Path) -> None:
    """Run the external CSS preprocessor: ``command source output``."""
    output.parent.mkdir(parents=True, exist_ok=True)
    cmd = [*command, str(source), str(output)]
    try:
        result = run_cmd(cmd, capture=True, check=False)
    except FileNotFoundError as e:
        raise ExternalToolFailure(cmd, None, f"executable not found ({e.filename})") from e
    if result.returncode != 0:
        raise ExternalToolFailure(cmd, result.returncode, (result.stderr or "").strip()[:200])


# =============================================================================
# Version Reset
# =============================================================================


@dataclass
class VersionSnapshot:
    """Original bytes of each project's package manifest."""

    contents: dict[Path, bytes] = field(default_factory=dict)

    @classmethod
    def capture(cls, roots: Sequence[Path]) -> "VersionSnapshot":
        snapshot = cls()
        for root in roots:
            path = root / BUILD_DIR / PACKAGE_MANIFEST
            if path.exists():
                snapshot.contents[path] = path.read_bytes()
        return snapshot

    def restore(self) -> int:
        """Write back any manifest changed since capture. Returns count."""
        restored = 0
        for path, original in self.contents.items():
            if path.exists() and path.read_bytes() == original:
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(original)
            log.dim(f"Reset {path}")
            restored += 1
        return restored

