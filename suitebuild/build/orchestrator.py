"""
Build coordinator for the library suite.

Runs the sibling builds with bounded concurrency, then the aggregation
steps (shared source sync, combined bundle, fan-out, site copy) in a fixed
order on a single thread, and finally resets temporary version bumps.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

from suitebuild.core.timing import StepTimings
from suitebuild.core.utils import log
from suitebuild.build.artifacts import select_release_set, stage_release
from suitebuild.build.combine import CombinedBuildResult, Minifier, UglifyMinifier, build_combined
from suitebuild.build.config import BuildSettings
from suitebuild.build.dedup import DedupReport, sync_shared_sources
from suitebuild.build.errors import ConfigError
from suitebuild.build.fanout import clean_demo_dirs, copy_tree, fanout_rules, run_rules, site_copy_rules
from suitebuild.build.manifest import load_projects
from suitebuild.build.phases import (
    SubBuildRunner,
    VersionSnapshot,
    compile_css,
    make_runner,
    run_sub_builds,
)


COMMANDS = ("build", "next", "core", "js", "cdn", "cdn:build", "design")


class BuildCoordinator:
    """Coordinates sub-builds and the suite-wide aggregation steps."""

    def __init__(
        self,
        settings: BuildSettings,
        runner: Optional[SubBuildRunner] = None,
        minifier: Optional[Minifier] = None,
        css_compiler=compile_css,
        today: Optional[date] = None,
    ):
        self.settings = settings
        self.runner = runner or make_runner(
            settings.command("sub_build_command"),
            settings.get("sub_build_entry"),
        )
        self.minifier = minifier or UglifyMinifier(settings.command("minifier_command"))
        self.css_compiler = css_compiler
        self.today = today

        self.timings = StepTimings()
        self._snapshot: Optional[VersionSnapshot] = None

    def _roots(self) -> list[tuple[str, Path]]:
        return [(spec.name, self.settings.project_root(spec)) for spec in self.settings.projects]

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def sync_sources(self) -> DedupReport:
        """Make shared source files identical to the highest-priority copy."""
        log.header("Syncing shared sources")
        log.info(f"Priority: {' > '.join(self.settings.priority)}")
        with self.timings.step("sync_sources"):
            return sync_shared_sources(load_projects(self.settings))

    def sub_builds(self, task: str) -> list[str]:
        log.header(f"Building projects ({task})")
        self._snapshot = VersionSnapshot.capture([root for _, root in self._roots()])
        with self.timings.step("sub_builds"):
            built = run_sub_builds(
                self._roots(),
                task,
                self.runner,
                self.settings.max_workers,
            )
        log.success(f"{len(built)} of {len(self.settings.projects)} projects built")
        return built

    def js(self) -> CombinedBuildResult:
        """Concatenate and minify the combined bundle."""
        log.header("Building combined bundle")
        with self.timings.step("js"):
            return build_combined(self.settings, self.minifier, self.today)

    def fan_out(self) -> int:
        log.header("Copying builds to sibling examples")
        with self.timings.step("fan_out"):
            return run_rules(fanout_rules(self.settings))

    def clean_examples(self) -> int:
        site = self.settings.site_dir
        if site is None:
            log.info("No site_path configured, skipping example cleanup")
            return 0

        log.header("Cleaning site examples")
        with self.timings.step("clean_examples"):
            removed = clean_demo_dirs(self.settings, site)
        log.info(f"Removed {removed} directories")
        return removed

    def copy_static(self) -> int:
        site = self.settings.site_dir
        if site is None:
            log.info("No site_path configured, skipping site copy")
            return 0

        log.header("Copying sources and examples to site")
        with self.timings.step("copy_static"):
            count = sum(copy_tree(rule) for rule in site_copy_rules(self.settings, site))
        log.success(f"Copied {count} files to {site}")
        return count

    def reset_versions(self) -> int:
        """Undo version changes sub-builds left in package manifests."""
        if self._snapshot is None:
            return 0

        log.header("Resetting versions")
        restored = self._snapshot.restore()
        self._snapshot = None
        if restored:
            log.success(f"Reset {restored} package manifests")
        else:
            log.info("No versions to reset")
        return restored

    def stage_cdn(self) -> int:
        """Stage the newest release set into the CDN directory."""
        log.header("Staging CDN release")
        with self.timings.step("cdn"):
            release_set = select_release_set(self.settings)
            return stage_release(release_set, self.settings.cdn_dir)

    def design_css(self) -> None:
        source = self.settings.optional_path("design_source")
        output = self.settings.optional_path("design_output")
        if source is None or output is None:
            raise ConfigError("design requires 'design_source' and 'design_output' in config")

        log.header("Compiling site styles")
        with self.timings.step("design_css"):
            self.css_compiler(self.settings.command("css_command"), source, output)
        log.success(f"Styles written to {output}")

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def core(self) -> None:
        """Suite-wide steps only; sibling projects are not built."""
        self.js()
        self.fan_out()
        self.clean_examples()
        self.copy_static()

    def build(self, task: str = "build") -> None:
        """Full build: sync, sibling builds, core steps, version reset."""
        try:
            self.sync_sources()
            self.sub_builds(task)
            self.core()
        finally:
            self.reset_versions()

    def cdn_build(self) -> int:
        self.js()
        return self.stage_cdn()

    def design(self) -> None:
        self.design_css()
        self.copy_static()

    def run(self, command: str) -> None:
        """Run a named command and report the elapsed time."""
        actions = {
            "build": lambda: self.build("build"),
            "next": lambda: self.build("next"),
            "core": self.core,
            "js": self.js,
            "cdn": self.stage_cdn,
            "cdn:build": self.cdn_build,
            "design": self.design,
        }
        if command not in actions:
            raise ConfigError(f"Unknown command: {command}")

        self.timings = StepTimings()
        actions[command]()

        log.header("BUILD COMPLETE")
        for line in self.timings.report_lines():
            log.dim(line)
        log.success(self.timings.done_message())
